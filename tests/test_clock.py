import asyncio
import math
import typing

import pytest

import stepgraph.chord_groups
import stepgraph.clock
import stepgraph.grid


def _grouping (*cells: typing.Tuple[str, int]) -> stepgraph.chord_groups.ChordGrouping:

	grid = stepgraph.grid.Grid()

	for pitch, step in cells:
		grid.set(pitch, step, True)

	grouping = stepgraph.chord_groups.ChordGrouping()
	grouping.rebuild(grid)

	return grouping


# ─── Velocity law ────────────────────────────────────────────────────────────


@pytest.mark.parametrize("count,expected", [(1, 1.0), (2, 1 / math.sqrt(2)), (3, 1 / math.sqrt(3)), (4, 0.5)])
def test_chord_velocity_is_inverse_square_root (count: int, expected: float) -> None:

	"""A k-note chord plays at 1/sqrt(k)."""

	assert stepgraph.clock.chord_velocity(count) == pytest.approx(expected)


# ─── PlaybackState ───────────────────────────────────────────────────────────


def test_state_starts_forward_at_zero () -> None:

	"""A new state is forward, at position 0, nothing pending."""

	state = stepgraph.clock.PlaybackState()

	assert state.mode == "forward"
	assert state.position == 0
	assert state.pending_mode is None
	assert state.order == list(range(16))


def test_advance_reports_step_and_next_step () -> None:

	"""advance() returns this tick's step and the next tick's step and position."""

	state = stepgraph.clock.PlaybackState("reverse")

	assert state.advance() == (15, 0, 14, 1)
	assert state.position == 1


def test_advance_wraps_at_end_of_pass () -> None:

	"""The cursor wraps from the last position back to 0."""

	state = stepgraph.clock.PlaybackState()

	for _ in range(15):
		state.advance()

	assert state.advance() == (15, 15, 0, 0)
	assert state.position == 0


def test_mode_change_while_running_waits_for_boundary () -> None:

	"""A mode requested mid-pass only takes over when the cursor returns to 0."""

	state = stepgraph.clock.PlaybackState()

	for _ in range(3):
		state.advance()

	state.request_mode("reverse", running=True)

	assert state.pending_mode == "reverse"
	assert state.position == 3

	steps = [state.advance()[0] for _ in range(13)]

	assert steps == list(range(3, 16))
	assert state.mode == "forward"
	assert state.position == 0

	assert state.advance()[0] == 15
	assert state.mode == "reverse"
	assert state.pending_mode is None


def test_requesting_active_mode_is_a_no_op () -> None:

	"""Asking for the current mode while running leaves cursor and order alone."""

	state = stepgraph.clock.PlaybackState()

	for _ in range(5):
		state.advance()

	order = list(state.order)
	state.request_mode("forward", running=True)

	assert state.position == 5
	assert state.order == order
	assert state.pending_mode is None


def test_requesting_active_mode_cancels_pending_change () -> None:

	"""Switching back to the active mode before the boundary cancels the queued change."""

	state = stepgraph.clock.PlaybackState()
	state.advance()

	state.request_mode("pingpong", running=True)
	state.request_mode("forward", running=True)

	assert state.pending_mode is None


def test_mode_change_while_stopped_applies_immediately () -> None:

	"""When stopped the new mode and its order take effect at once."""

	state = stepgraph.clock.PlaybackState()
	state.advance()

	state.request_mode("pingpong", running=False)

	assert state.mode == "pingpong"
	assert len(state.order) == 32
	assert state.position == 0
	assert state.pending_mode is None


def test_last_tick_of_pass_looks_ahead_into_pending_mode () -> None:

	"""On the tick before a queued mode takes over, the next step comes from the new order."""

	state = stepgraph.clock.PlaybackState("pingpong")

	for _ in range(31):
		state.advance()

	state.request_mode("reverse", running=True)

	assert state.order_at(0) == list(range(15, -1, -1))
	assert state.order_at(5) == state.order
	assert state.advance() == (0, 31, 15, 0)
	assert state.advance()[0] == 15


def test_reset_flushes_pending_mode () -> None:

	"""reset() rewinds and applies a mode that was still waiting."""

	state = stepgraph.clock.PlaybackState()
	state.advance()
	state.request_mode("reverse", running=True)

	state.reset()

	assert state.position == 0
	assert state.mode == "reverse"
	assert state.pending_mode is None


def test_unknown_mode_is_rejected () -> None:

	"""An unknown mode raises and leaves the state untouched."""

	state = stepgraph.clock.PlaybackState()

	with pytest.raises(ValueError):
		state.request_mode("sideways", running=True)

	assert state.pending_mode is None


# ─── PlaybackClock ───────────────────────────────────────────────────────────


def test_tick_triggers_chord_with_compensated_velocity (fake_voice: typing.Any) -> None:

	"""A three-note step triggers once with all pitches at 1/sqrt(3)."""

	grouping = _grouping(("G4", 0), ("E4", 0), ("C4", 0))
	clock = stepgraph.clock.PlaybackClock(fake_voice, grouping, initial_bpm=120)

	tick = clock.tick(10.0)

	assert len(fake_voice.triggered) == 1
	pitches, duration, at, velocity = fake_voice.triggered[0]
	assert pitches == ("G4", "E4", "C4")
	assert duration == pytest.approx(0.125)
	assert at == 10.0
	assert velocity == pytest.approx(1 / math.sqrt(3))
	assert tick.step == 0
	assert tick.next_step == 1


def test_rest_steps_trigger_nothing (fake_voice: typing.Any) -> None:

	"""Steps without a chord are rests."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping(("C4", 4)))

	for i in range(4):
		clock.tick(float(i))

	assert fake_voice.triggered == []

	clock.tick(4.0)

	assert fake_voice.triggered[0][0] == ("C4",)


def test_tick_reads_grouping_live (fake_voice: typing.Any) -> None:

	"""The clock sees grid changes made between ticks."""

	grid = stepgraph.grid.Grid()
	grouping = stepgraph.chord_groups.ChordGrouping()
	grouping.rebuild(grid)
	clock = stepgraph.clock.PlaybackClock(fake_voice, grouping)

	clock.tick(0.0)
	grid.set("A4", 1, True)
	grouping.rebuild(grid)
	clock.tick(0.1)

	assert [t[0] for t in fake_voice.triggered] == [("A4",)]


def test_step_event_fires_with_tick_outside_event_loop (fake_voice: typing.Any) -> None:

	"""Without a running loop the visual step event runs immediately."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping())
	seen: list[int] = []

	clock.events.on("step", lambda tick: seen.append(tick.step))
	clock.tick(0.0)
	clock.tick(0.1)

	assert seen == [0, 1]


def test_set_bpm_updates_step_length (fake_voice: typing.Any) -> None:

	"""One step is a sixteenth note: 60 / bpm / 4 seconds."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping())
	clock.set_bpm(150)

	assert clock.seconds_per_step == pytest.approx(0.1)

	with pytest.raises(ValueError):
		clock.set_bpm(0)

	with pytest.raises(ValueError):
		clock.set_bpm(float("inf"))

	assert clock.current_bpm == 150


def test_request_mode_while_stopped_applies_now (fake_voice: typing.Any) -> None:

	"""A stopped clock switches mode without waiting."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping())
	modes: list[tuple] = []
	clock.events.on("mode", lambda mode, pending: modes.append((mode, pending)))

	clock.request_mode("reverse")

	assert clock.mode == "reverse"
	assert clock.tick(0.0).step == 15
	assert modes == [("reverse", None)]


@pytest.mark.asyncio
async def test_visuals_are_scheduled_at_tick_time (fake_voice: typing.Any) -> None:

	"""Inside a loop the step event waits until the tick's timestamp."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping())
	seen: list[int] = []
	clock.events.on("step", lambda tick: seen.append(tick.step))

	clock.tick(clock.visuals._now() + 0.05)

	assert seen == []
	assert clock.visuals.pending() == 1

	await asyncio.sleep(0.1)

	assert seen == [0]
	assert clock.visuals.pending() == 0


@pytest.mark.asyncio
async def test_running_clock_ticks_and_stop_rewinds (fake_voice: typing.Any) -> None:

	"""The clock ticks on its own, and stop() rewinds and applies a pending mode."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping(("C4", 0)), initial_bpm=600, spin_wait=False)

	await clock.start()
	await asyncio.sleep(0.06)

	assert clock.running
	assert clock.tick_count >= 1

	clock.request_mode("pingpong")
	assert clock.state.pending_mode == "pingpong" or clock.mode == "pingpong"

	await clock.stop()

	assert not clock.running
	assert clock.state.position == 0
	assert clock.mode == "pingpong"
	assert clock.state.pending_mode is None
	assert clock.visuals.pending() == 0

	count = clock.tick_count
	await asyncio.sleep(0.05)
	assert clock.tick_count == count


@pytest.mark.asyncio
async def test_start_and_stop_emit_events (fake_voice: typing.Any) -> None:

	"""start and stop events fire once each; repeated calls are ignored."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping(), spin_wait=False)
	events: list[str] = []
	clock.events.on("start", lambda: events.append("start"))
	clock.events.on("stop", lambda: events.append("stop"))

	await clock.start()
	await clock.start()
	await clock.stop()
	await clock.stop()

	assert events == ["start", "stop"]


def test_tick_carries_next_order (fake_voice: typing.Any) -> None:

	"""The tick record says which order the following tick will read from."""

	clock = stepgraph.clock.PlaybackClock(fake_voice, _grouping())

	for _ in range(15):
		clock.tick(0.0)

	clock.state.request_mode("reverse", running=True)
	tick = clock.tick(0.0)

	assert tick.step == 15
	assert tick.order == tuple(range(16))
	assert tick.next_order == tuple(range(15, -1, -1))
	assert tick.next_step == 15
