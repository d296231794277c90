import asyncio
import dataclasses
import logging
import math
import time
import typing

import stepgraph.chord_groups
import stepgraph.event_emitter
import stepgraph.step_order
import stepgraph.voice


logger = logging.getLogger(__name__)

SIXTEENTHS_PER_BEAT = 4


@dataclasses.dataclass
class Tick:

	"""
	What one clock tick played and where the cursor went next.
	"""

	time: float
	step: int
	position: int
	next_step: int
	next_position: int
	order: typing.Tuple[int, ...]
	next_order: typing.Tuple[int, ...]
	pitches: typing.Tuple[str, ...]
	velocity: float


def chord_velocity (count: int) -> float:

	"""
	Per-note velocity for a chord of *count* notes: 1/sqrt(count).

	Equal-power compensation - a four-note chord plays each note at 0.5 so it
	sounds about as loud as a single note at 1.0.
	"""

	if count <= 0:
		return 0.0

	return 1.0 / math.sqrt(count)


class PlaybackState:

	"""
	Playback mode, the step order it produces and the cursor into that order.

	Mode changes requested while running wait in a single pending slot and are
	applied only when the cursor is back at position 0, so a pass always
	finishes in the mode it started in.
	"""

	def __init__ (self, mode: str = stepgraph.step_order.FORWARD) -> None:

		self.mode = stepgraph.step_order.check_mode(mode)
		self.pending_mode: typing.Optional[str] = None
		self.order: typing.List[int] = stepgraph.step_order.step_order(mode)
		self.position = 0


	def _apply (self, mode: str) -> None:

		self.mode = mode
		self.order = stepgraph.step_order.step_order(mode)


	def request_mode (self, mode: str, running: bool) -> None:

		"""
		Ask for a new playback mode.

		When stopped the mode applies at once and the cursor goes back to 0.
		When running it waits for the next pass boundary; asking for the mode
		that is already active just cancels any change still waiting.
		"""

		stepgraph.step_order.check_mode(mode)

		if not running:
			self.pending_mode = None
			self._apply(mode)
			self.position = 0
			return

		if mode == self.mode:
			self.pending_mode = None
			return

		self.pending_mode = mode


	def advance (self) -> typing.Tuple[int, int, int, int]:

		"""
		Move the cursor one tick.

		Returns ``(step, position, next_step, next_position)`` where *step* is
		the step to play now.
		"""

		if self.position == 0 and self.pending_mode is not None:
			self._apply(self.pending_mode)
			self.pending_mode = None
			logger.info(f"Playback mode switched to {self.mode} at pass boundary")

		position = self.position
		step = self.order[position]
		next_position = (position + 1) % len(self.order)
		next_step = self.order_at(next_position)[next_position]

		self.position = next_position

		return step, position, next_step, next_position


	def order_at (self, position: int) -> typing.List[int]:

		"""
		Return the order the tick at *position* will read from.

		At position 0 a pending mode is about to take over, so its order is the
		one that counts.
		"""

		if position == 0 and self.pending_mode is not None:
			return stepgraph.step_order.step_order(self.pending_mode)

		return self.order


	def reset (self) -> None:

		"""
		Return the cursor to the start and apply any mode still waiting.
		"""

		self.position = 0

		if self.pending_mode is not None:
			self._apply(self.pending_mode)
			self.pending_mode = None


class VisualScheduler:

	"""
	Runs visual callbacks at a tick's own timestamp rather than "now".

	Callbacks are placed on the running event loop at the ``perf_counter``
	time they belong to, so highlights and the marker stay in phase with the
	audio even when the loop is busy. With no running loop they run
	immediately, trailing the audio by however long the caller took.
	"""

	def __init__ (self, now: typing.Callable[[], float] = time.perf_counter) -> None:

		self._now = now
		self._handles: typing.Set[asyncio.TimerHandle] = set()


	def schedule (self, callback: typing.Callable[[], None], at: float) -> None:

		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			callback()
			return

		handle: asyncio.TimerHandle

		def _run () -> None:
			self._handles.discard(handle)
			callback()

		handle = loop.call_later(max(0.0, at - self._now()), _run)
		self._handles.add(handle)


	def pending (self) -> int:

		return len(self._handles)


	def cancel_all (self) -> None:

		for handle in self._handles:
			handle.cancel()

		self._handles.clear()


class PlaybackClock:

	"""
	The sixteenth-note clock that plays the grid.

	Each tick reads the current chord grouping, triggers the voice and then
	emits ``"step"`` at the tick's timestamp for the visual side. The clock
	runs as an asyncio task, sleeping until just before each tick and then
	spin-waiting; ``tick()`` can also be driven directly from any other
	time base.
	"""

	def __init__ (
		self,
		voice: typing.Optional[stepgraph.voice.Voice],
		grouping: stepgraph.chord_groups.ChordGrouping,
		initial_bpm: float = 120,
		mode: str = stepgraph.step_order.FORWARD,
		spin_wait: bool = True
	) -> None:

		"""
		Parameters:
			voice: Where notes go. None runs the clock silently.
			grouping: The session's chord grouping, read on every tick.
			initial_bpm: Tempo in beats per minute; one tick per sixteenth note.
			mode: Starting playback mode.
			spin_wait: Busy-wait the final millisecond before each tick for
				tighter timing, at the cost of some CPU.
		"""

		self.voice = voice
		self.grouping = grouping
		self.state = PlaybackState(mode)
		self.events = stepgraph.event_emitter.EventEmitter()
		self.visuals = VisualScheduler()

		self.running = False
		self.task: typing.Optional[asyncio.Task] = None
		self.tick_count = 0

		self.current_bpm: float = 0
		self.seconds_per_step = 0.0

		self._spin_wait = spin_wait
		self._spin_threshold = 0.001

		self.set_bpm(initial_bpm)


	@property
	def mode (self) -> str:
		return self.state.mode


	def set_bpm (self, bpm: float) -> None:

		"""
		Change the tempo. Takes effect from the next tick.
		"""

		if not math.isfinite(bpm) or bpm <= 0:
			raise ValueError(f"BPM must be a positive number, got {bpm}")

		self.current_bpm = bpm
		self.seconds_per_step = 60.0 / bpm / SIXTEENTHS_PER_BEAT

		logger.info(f"BPM set to {self.current_bpm:.2f}")

		self.events.emit_sync("bpm", bpm)


	def request_mode (self, mode: str) -> None:

		"""
		Switch playback mode - immediately when stopped, at the next pass boundary when running.
		"""

		self.state.request_mode(mode, self.running)

		if self.state.pending_mode is not None:
			logger.info(f"Playback mode {mode} queued for the next pass")
		else:
			logger.info(f"Playback mode is {self.state.mode}")

		self.events.emit_sync("mode", self.state.mode, self.state.pending_mode)


	def tick (self, at: float) -> Tick:

		"""
		Play one sixteenth note scheduled for *at* (a ``perf_counter`` timestamp).
		"""

		step, position, next_step, next_position = self.state.advance()

		pitches = self.grouping.pitches_at(step)
		velocity = chord_velocity(len(pitches))

		if pitches and self.voice is not None:
			self.voice.trigger_notes(pitches, self.seconds_per_step, at, velocity)

		tick = Tick(
			time = at,
			step = step,
			position = position,
			next_step = next_step,
			next_position = next_position,
			order = tuple(self.state.order),
			next_order = tuple(self.state.order_at(next_position)),
			pitches = pitches,
			velocity = velocity
		)

		self.tick_count += 1

		self.visuals.schedule(lambda: self.events.emit_sync("step", tick), at)

		return tick


	async def start (self) -> None:

		"""
		Start ticking in a background task. Does nothing if already running.
		"""

		if self.running:
			return

		self.running = True
		self.task = asyncio.create_task(self._run_loop())

		logger.info(f"Clock started ({self.state.mode}, {self.current_bpm:.2f} BPM)")

		await self.events.emit_async("start")


	async def stop (self) -> None:

		"""
		Stop ticking, rewind to the first step and drop visuals not yet shown.
		"""

		if not self.running:
			return

		self.running = False
		self.visuals.cancel_all()
		self.state.reset()

		if self.task is not None:
			self.task.cancel()
			try:
				await self.task
			except asyncio.CancelledError:
				pass
			self.task = None

		logger.info("Clock stopped")

		await self.events.emit_async("stop")


	async def _run_loop (self) -> None:

		"""Tick on the wall clock until stopped."""

		next_tick_time = time.perf_counter()

		while self.running:

			current_time = time.perf_counter()

			while current_time >= next_tick_time and self.running:
				self.tick(next_tick_time)
				# Read the step length after the tick so a tempo change lands on the next one.
				next_tick_time += self.seconds_per_step

			sleep_time = next_tick_time - time.perf_counter()

			if sleep_time > 0:
				if self._spin_wait and sleep_time > self._spin_threshold:
					await asyncio.sleep(sleep_time - self._spin_threshold)
					while time.perf_counter() < next_tick_time:
						pass
				else:
					await asyncio.sleep(sleep_time)
			else:
				await asyncio.sleep(0)
