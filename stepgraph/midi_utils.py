import logging
import typing

import mido


logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open a MIDI output port for the synth voice.

	With *device_name*, opens exactly that port. Without it, opens the first
	port the backend reports, which is the only one on most setups.

	Returns:
		``(device_name, port)``, or ``(None, None)`` when no usable port exists.
		A missing device is logged rather than raised, so a session can still
		run silently with just the graph.
	"""

	try:
		outputs = mido.get_output_names()
	except Exception:
		logger.exception("Could not list MIDI outputs (is a MIDI backend installed?)")
		return None, None

	logger.info(f"Available MIDI outputs: {outputs}")

	if not outputs:
		logger.error("No MIDI output devices found - playing silently.")
		return None, None

	if device_name is None:
		device_name = outputs[0]

		if len(outputs) > 1:
			logger.info(f"Several MIDI outputs found - using '{device_name}'. Set midi.device_name to choose.")

	elif device_name not in outputs:
		logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
		return None, None

	try:
		midi_out = mido.open_output(device_name)
	except Exception:
		logger.exception(f"Failed to open MIDI output '{device_name}'")
		return None, None

	logger.info(f"Opened MIDI output: {device_name}")

	return device_name, midi_out
