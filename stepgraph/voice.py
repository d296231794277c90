"""The sound-making side of the sequencer.

The clock only needs to trigger a set of pitches for a duration at a given
time with a velocity. Everything else the control panel offers - waveform,
filter cutoff, resonance and type, envelope, reverb send and decay - is
passed through ``control()`` untouched.

``MidiVoice`` plays the grid on any MIDI synth: chords become simultaneous
note-ons, the velocity (0.0-1.0) is scaled to MIDI 1-127, and the note-offs
are scheduled on the running event loop.
"""

import asyncio
import logging
import time
import typing

import mido

import stepgraph.constants.midi_controls
import stepgraph.constants.pitches
import stepgraph.midi_utils


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class Voice (typing.Protocol):

	"""
	Protocol for the audio collaborator.
	"""

	def trigger_notes (self, pitches: typing.Sequence[str], duration: float, time: float, velocity: float) -> None:

		"""
		Sound *pitches* together for *duration* seconds, starting at *time*
		(a ``time.perf_counter()`` timestamp), at *velocity* in 0.0-1.0.
		"""

		...

	def control (self, name: str, value: typing.Any) -> None:

		"""
		Apply a synth parameter change.
		"""

		...

	def close (self) -> None:

		...


def velocity_to_midi (velocity: float) -> int:

	"""
	Scale a 0.0-1.0 velocity to MIDI 1-127. Zero would be a note-off, so 1 is the floor.
	"""

	value = int(round(velocity * stepgraph.constants.midi_controls.MAX_VELOCITY))

	return max(stepgraph.constants.midi_controls.MIN_VELOCITY, min(stepgraph.constants.midi_controls.MAX_VELOCITY, value))


def control_to_midi (value: float) -> int:

	"""
	Scale a 0.0-1.0 control value to 0-127.
	"""

	return max(0, min(127, int(round(float(value) * 127))))


class MidiVoice:

	"""
	A ``Voice`` that plays through a MIDI output port.
	"""

	def __init__ (self, output_device_name: typing.Optional[str] = None, channel: int = 0) -> None:

		"""
		Parameters:
			output_device_name: MIDI output port name. When omitted the first
				available port is used; with no ports at all the voice is silent.
			channel: MIDI channel 0-15.
		"""

		if not 0 <= channel <= 15:
			raise ValueError(f"MIDI channel must be in 0..15, got {channel}")

		self.channel = channel
		# Sounding note -> serial of the trigger that started it.
		self.sounding: typing.Dict[int, int] = {}
		self._serial = 0
		self._handles: typing.Set[asyncio.TimerHandle] = set()

		self.output_device_name, self.midi_out = stepgraph.midi_utils.select_output_device(output_device_name)


	def _send (self, message: mido.Message) -> None:

		if self.midi_out is None:
			return

		try:
			self.midi_out.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")


	def _note_on (self, notes: typing.Sequence[int], velocity: int, serial: int) -> None:

		"""
		Start *notes* on behalf of trigger *serial*.

		A note that is still sounding from an earlier trigger is released first,
		so the synth always sees off before on for a repeated pitch.
		"""

		for note in notes:
			if note in self.sounding:
				self._send(mido.Message('note_off', channel=self.channel, note=note, velocity=0))
			self._send(mido.Message('note_on', channel=self.channel, note=note, velocity=velocity))
			self.sounding[note] = serial


	def _note_off (self, notes: typing.Sequence[int], serial: typing.Optional[int] = None) -> None:

		"""
		Release *notes*. With *serial*, only notes still owned by that trigger are released.
		"""

		for note in notes:

			if note not in self.sounding:
				continue

			# Retriggered since; the later trigger owns the release.
			if serial is not None and self.sounding[note] != serial:
				continue

			self._send(mido.Message('note_off', channel=self.channel, note=note, velocity=0))
			del self.sounding[note]


	def _call_later (self, loop: asyncio.AbstractEventLoop, delay: float, callback: typing.Callable[..., None], *args: typing.Any) -> None:

		handle: asyncio.TimerHandle

		def _run () -> None:
			self._handles.discard(handle)
			callback(*args)

		handle = loop.call_later(delay, _run)
		self._handles.add(handle)


	def trigger_notes (self, pitches: typing.Sequence[str], duration: float, time: float, velocity: float) -> None:

		"""
		Play *pitches* as one chord.

		Without a running event loop the notes start immediately and are
		released at the next trigger or on ``close()``.
		"""

		notes = [stepgraph.constants.pitches.MIDI_NOTES[pitch] for pitch in pitches]
		midi_velocity = velocity_to_midi(velocity)

		self._serial += 1
		serial = self._serial

		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			self._note_off(sorted(self.sounding))
			self._note_on(notes, midi_velocity, serial)
			return

		delay = max(0.0, time - _now())

		self._call_later(loop, delay, self._note_on, notes, midi_velocity, serial)
		self._call_later(loop, delay + duration, self._note_off, notes, serial)


	def control (self, name: str, value: typing.Any) -> None:

		"""
		Send a synth control change.

		``waveform`` and ``filter_type`` take a name: the waveform becomes a
		program change and the filter type a stepped CC. Every other control
		takes a 0.0-1.0 value and becomes a CC.
		"""

		if name == "waveform":

			if value not in stepgraph.constants.midi_controls.WAVEFORM_PROGRAMS:
				available = ", ".join(sorted(stepgraph.constants.midi_controls.WAVEFORM_PROGRAMS))
				raise ValueError(f"Unknown waveform {value!r}. Available waveforms: {available}")

			program = stepgraph.constants.midi_controls.WAVEFORM_PROGRAMS[value]
			self._send(mido.Message('program_change', channel=self.channel, program=program))
			logger.info(f"Waveform set to {value}")
			return

		if name == "filter_type":

			if value not in stepgraph.constants.midi_controls.FILTER_TYPE_VALUES:
				available = ", ".join(sorted(stepgraph.constants.midi_controls.FILTER_TYPE_VALUES))
				raise ValueError(f"Unknown filter type {value!r}. Available filter types: {available}")

			self._send(mido.Message(
				'control_change',
				channel = self.channel,
				control = stepgraph.constants.midi_controls.FILTER_TYPE_CC,
				value = stepgraph.constants.midi_controls.FILTER_TYPE_VALUES[value]
			))
			logger.info(f"Filter type set to {value}")
			return

		if name not in stepgraph.constants.midi_controls.CONTROL_CCS:
			available = ", ".join(["filter_type", "waveform"] + sorted(stepgraph.constants.midi_controls.CONTROL_CCS))
			raise ValueError(f"Unknown synth control {name!r}. Available controls: {available}")

		cc = stepgraph.constants.midi_controls.CONTROL_CCS[name]
		self._send(mido.Message('control_change', channel=self.channel, control=cc, value=control_to_midi(value)))


	def panic (self) -> None:

		"""
		Cancel pending notes and release everything that is sounding.
		"""

		for handle in list(self._handles):
			handle.cancel()

		self._handles.clear()
		self._note_off(sorted(self.sounding))


	def close (self) -> None:

		self.panic()

		if self.midi_out is not None:
			self.midi_out.close()
			self.midi_out = None


def _now () -> float:

	return time.perf_counter()
