import asyncio
import logging
import signal
import typing

import stepgraph.chord_groups
import stepgraph.clock
import stepgraph.constants.layout
import stepgraph.event_emitter
import stepgraph.graph
import stepgraph.graph_sync
import stepgraph.grid
import stepgraph.layout
import stepgraph.osc
import stepgraph.step_order
import stepgraph.traversal
import stepgraph.voice
import stepgraph.web_ui

if typing.TYPE_CHECKING:
	import stepgraph.config


logger = logging.getLogger(__name__)


class Session:

	"""
	One sequencer session: the grid, its graph and the clock that plays it.

	The session owns all mutable state. Every grid change runs the whole
	derived rebuild - chord grouping, graph topology, layout - synchronously
	before returning, so the next tick always sees a consistent picture.

	Typical use:

		```python
		session = stepgraph.Session(bpm=110)
		session.toggle("C4", 0)
		session.toggle("E4", 0)
		session.toggle("G4", 8)
		session.play()
		```
	"""

	def __init__ (
		self,
		voice: typing.Optional[stepgraph.voice.Voice] = None,
		graph: typing.Optional[stepgraph.graph.GraphRenderer] = None,
		bpm: float = 120,
		mode: str = stepgraph.step_order.FORWARD,
		output_device: typing.Optional[str] = None,
		midi_channel: int = 0,
		spin_wait: bool = True,
		layout: typing.Optional[stepgraph.layout.RadialLayout] = None
	) -> None:

		"""
		Parameters:
			voice: The audio collaborator. When omitted a ``MidiVoice`` is
				opened on *output_device*.
			graph: The graph front end. Defaults to a headless ``GraphModel``.
			bpm: Initial tempo.
			mode: Initial playback mode.
			output_device: MIDI output port for the default voice.
			midi_channel: MIDI channel for the default voice.
			spin_wait: Passed to the clock.
			layout: Radial layout settings; defaults to the standard sizes.
		"""

		if voice is None:
			voice = stepgraph.voice.MidiVoice(output_device, channel=midi_channel)

		self.voice = voice
		self.graph: stepgraph.graph.GraphRenderer = graph if graph is not None else stepgraph.graph.GraphModel()
		self.grid = stepgraph.grid.Grid()
		self.grouping = stepgraph.chord_groups.ChordGrouping()
		self.layout = layout if layout is not None else stepgraph.layout.RadialLayout()
		self.animator = stepgraph.traversal.TraversalAnimator(self.graph, self.grouping)
		self.synchronizer = stepgraph.graph_sync.GraphSynchronizer(self.graph, self.grouping, self.layout, self.animator)
		self.clock = stepgraph.clock.PlaybackClock(voice, self.grouping, initial_bpm=bpm, mode=mode, spin_wait=spin_wait)
		self.events = stepgraph.event_emitter.EventEmitter()

		self.current_step: typing.Optional[int] = None
		self.last_traversal: typing.Optional[stepgraph.traversal.Traversal] = None

		self._resize_handle: typing.Optional[asyncio.TimerHandle] = None
		self._osc_server: typing.Optional[stepgraph.osc.OscServer] = None
		self._web_ui: typing.Optional[stepgraph.web_ui.WebUI] = None

		self.clock.events.on("step", self._on_step)


	@classmethod
	def from_config (cls, config: "stepgraph.config.SessionConfig", voice: typing.Optional[stepgraph.voice.Voice] = None) -> "Session":

		"""
		Build a session from a loaded configuration.
		"""

		session = cls(
			voice = voice,
			graph = stepgraph.graph.GraphModel(config.graph_width, config.graph_height),
			bpm = config.initial_bpm,
			mode = config.mode,
			output_device = config.midi_device,
			midi_channel = config.midi_channel,
			spin_wait = config.spin_wait
		)

		if config.osc_enabled:
			session.osc(config.osc_receive_port, config.osc_send_port, config.osc_send_host)

		if config.web_ui_enabled:
			session.web_ui(config.web_ui_port)

		return session


	@property
	def bpm (self) -> float:
		return self.clock.current_bpm

	@property
	def mode (self) -> str:
		return self.clock.mode

	@property
	def playing (self) -> bool:
		return self.clock.running


	# Grid

	def toggle (self, pitch: str, step: int) -> bool:

		"""
		Flip one grid cell, rebuild the graph and return the cell's new state.
		"""

		active = self.grid.toggle(pitch, step)
		self._rebuild()

		return active


	def set_cell (self, pitch: str, step: int, active: bool) -> None:

		"""
		Set one grid cell on or off and rebuild the graph.
		"""

		self.grid.set(pitch, step, active)
		self._rebuild()


	def clear (self) -> None:

		"""
		Turn every cell off and clear the graph down to the hidden marker.
		"""

		self.grid.clear()
		self._rebuild()

		logger.info("Grid cleared")


	def _rebuild (self) -> None:

		self.synchronizer.rebuild(self.grid)
		self.events.emit_sync("grid", self.grid)


	# Transport and controls

	def set_mode (self, mode: str) -> None:

		"""
		Change playback mode; while playing, the change waits for the end of the pass.
		"""

		self.clock.request_mode(mode)


	def set_bpm (self, bpm: float) -> None:

		self.clock.set_bpm(bpm)


	def control (self, name: str, value: typing.Any) -> None:

		"""
		Pass a synth control (waveform, filter, envelope, reverb send and decay) to the voice.
		"""

		if self.voice is None:
			return

		self.voice.control(name, value)


	async def start (self) -> None:

		await self.clock.start()


	async def stop (self) -> None:

		"""
		Stop playback, hide the marker and clear highlights.
		"""

		await self.clock.stop()

		self.animator.halt()
		self.current_step = None


	# View

	def fit (self) -> None:

		"""
		Recompute the layout for the current viewport and fit the view.
		"""

		self.animator.halt()

		if self.grouping.sequence:
			self.layout.apply(self.graph, self.grouping.sequence)


	def resize (self, width: float, height: float) -> None:

		"""
		Record a new viewport size and refit.

		Inside a running event loop the refit is debounced, so a burst of
		resize events (a window being dragged) lays the graph out once.
		"""

		self.graph.resize(width, height)

		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			self.fit()
			return

		if self._resize_handle is not None:
			self._resize_handle.cancel()

		self._resize_handle = loop.call_later(stepgraph.constants.layout.RESIZE_DEBOUNCE_SECONDS, self._resize_done)


	def _resize_done (self) -> None:

		self._resize_handle = None
		self.fit()


	def _on_step (self, tick: stepgraph.clock.Tick) -> None:

		self.current_step = tick.step

		self.last_traversal = self.animator.on_step(
			tick.step,
			tick.next_position,
			tick.next_order,
			self.clock.seconds_per_step
		)


	# Control surfaces

	def osc (self, receive_port: int = 9000, send_port: int = 9001, send_host: str = "127.0.0.1") -> None:

		"""
		Enable OSC control (toggles, mode, tempo, transport, synth controls).

		The server starts with playback.
		"""

		self._osc_server = stepgraph.osc.OscServer(
			self,
			receive_port = receive_port,
			send_port = send_port,
			send_host = send_host
		)


	def web_ui (self, ws_port: int = 8765) -> None:

		"""
		Enable the WebSocket bridge that streams the graph to a browser.

		The server starts with playback.
		"""

		self._web_ui = stepgraph.web_ui.WebUI(self, ws_port=ws_port)


	def play (self, autostart: bool = True) -> None:

		"""
		Run the session and block until interrupted (Ctrl+C).

		Parameters:
			autostart: Start the clock straight away. Pass False to wait for a
				play command from OSC or the browser.
		"""

		try:
			asyncio.run(self._run(autostart))

		except KeyboardInterrupt:
			pass


	async def _run (self, autostart: bool = True) -> None:

		if self._osc_server is not None:
			await self._osc_server.start()

		if self._web_ui is not None:
			await self._web_ui.start()

		if autostart:
			await self.start()

		logger.info("Session running. Press Ctrl+C to stop.")

		stop_event = asyncio.Event()
		loop = asyncio.get_running_loop()

		for sig in (signal.SIGINT, signal.SIGTERM):
			loop.add_signal_handler(sig, stop_event.set)

		try:
			await stop_event.wait()
		finally:
			await self.stop()

			if self._web_ui is not None:
				await self._web_ui.stop()

			if self._osc_server is not None:
				await self._osc_server.stop()

			if self.voice is not None:
				self.voice.close()

