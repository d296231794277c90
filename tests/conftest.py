import typing

import mido
import pytest

import stepgraph.graph
import stepgraph.session


class FakeMidiOut:

	"""MIDI output stub that keeps every message it is sent."""

	def __init__ (self) -> None:

		self.messages: typing.List[mido.Message] = []
		self.closed = False


	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.messages.append(message)


	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True


# Module-level reference so tests can read what the most recent port received.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	_current_fake_output = FakeMidiOut()
	return _current_fake_output


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to open fake MIDI outputs."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def fake_output (patch_midi: None) -> typing.Callable[[], typing.Optional[FakeMidiOut]]:

	"""Return a getter for the fake port opened most recently."""

	return lambda: _current_fake_output


class FakeVoice:

	"""Voice stub that records triggers and control changes."""

	def __init__ (self) -> None:

		self.triggered: typing.List[typing.Tuple[typing.Tuple[str, ...], float, float, float]] = []
		self.controls: typing.List[typing.Tuple[str, typing.Any]] = []
		self.closed = False


	def trigger_notes (self, pitches: typing.Sequence[str], duration: float, time: float, velocity: float) -> None:

		"""Record a chord trigger."""

		self.triggered.append((tuple(pitches), duration, time, velocity))


	def control (self, name: str, value: typing.Any) -> None:

		"""Record a control change."""

		self.controls.append((name, value))


	def close (self) -> None:

		"""Mark the voice closed."""

		self.closed = True


class FakeTime:

	"""Manually advanced clock for graph animations."""

	def __init__ (self) -> None:

		self.now = 0.0


	def __call__ (self) -> float:

		return self.now


@pytest.fixture
def fake_voice () -> FakeVoice:

	return FakeVoice()


@pytest.fixture
def fake_time () -> FakeTime:

	return FakeTime()


@pytest.fixture
def graph (fake_time: FakeTime) -> stepgraph.graph.GraphModel:

	"""A 400 x 380 headless graph driven by the fake clock."""

	return stepgraph.graph.GraphModel(400, 380, now=fake_time)


@pytest.fixture
def session (fake_voice: FakeVoice, graph: stepgraph.graph.GraphModel) -> stepgraph.session.Session:

	"""A session wired to the fake voice and headless graph."""

	return stepgraph.session.Session(voice=fake_voice, graph=graph, bpm=120, spin_wait=False)
