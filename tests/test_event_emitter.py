import asyncio

import pytest

import stepgraph.event_emitter


def test_on_and_emit_sync () -> None:

	"""Registered sync callbacks are called on emit_sync."""

	emitter = stepgraph.event_emitter.EventEmitter()
	received: list[int] = []

	emitter.on("step", lambda v: received.append(v))
	emitter.emit_sync("step", 3)

	assert received == [3]


def test_listeners_run_in_registration_order () -> None:

	"""Callbacks for one event fire in the order they were added."""

	emitter = stepgraph.event_emitter.EventEmitter()
	calls: list[str] = []

	emitter.on("grid", lambda: calls.append("first"))
	emitter.on("grid", lambda: calls.append("second"))
	emitter.emit_sync("grid")

	assert calls == ["first", "second"]


def test_off_only_removes_target_callback () -> None:

	"""off() leaves other callbacks for the same event intact."""

	emitter = stepgraph.event_emitter.EventEmitter()
	a: list[int] = []
	b: list[int] = []

	def cb_a (v: int) -> None:
		a.append(v)

	def cb_b (v: int) -> None:
		b.append(v)

	emitter.on("step", cb_a)
	emitter.on("step", cb_b)
	emitter.off("step", cb_a)
	emitter.emit_sync("step", 7)

	assert a == []
	assert b == [7]
	assert emitter.has_listeners("step")


def test_off_raises_for_unregistered_callback () -> None:

	"""off() raises ValueError when the callback was never registered."""

	emitter = stepgraph.event_emitter.EventEmitter()

	with pytest.raises(ValueError, match="step"):
		emitter.off("step", lambda: None)


def test_emit_sync_rejects_async_callback () -> None:

	"""The tick path never awaits, so async listeners on emit_sync are an error."""

	emitter = stepgraph.event_emitter.EventEmitter()

	async def cb () -> None:
		pass

	emitter.on("step", cb)

	with pytest.raises(ValueError):
		emitter.emit_sync("step")


@pytest.mark.asyncio
async def test_emit_async_awaits_coroutines () -> None:

	"""emit_async runs sync listeners and awaits async ones."""

	emitter = stepgraph.event_emitter.EventEmitter()
	calls: list[str] = []

	async def slow () -> None:
		await asyncio.sleep(0)
		calls.append("async")

	emitter.on("stop", lambda: calls.append("sync"))
	emitter.on("stop", slow)

	await emitter.emit_async("stop")

	assert sorted(calls) == ["async", "sync"]
