"""YAML configuration for the command-line session.

A minimal ``config.yaml``::

    midi:
      device_name: "Scarlett 2i4 USB MIDI 1"
    sequencer:
      initial_bpm: 110
      mode: pingpong
    osc:
      enabled: true

Every key is optional; anything missing takes the default below.
"""

import dataclasses
import logging
import os
import typing

import yaml

import stepgraph.step_order


logger = logging.getLogger(__name__)


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file. A missing file gives an empty dict.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		data = yaml.safe_load(f)

	if data is None:
		return {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

	return data


@dataclasses.dataclass
class SessionConfig:

	"""
	Settings for building a ``Session`` from the command line.
	"""

	midi_device: typing.Optional[str] = None
	midi_channel: int = 0
	initial_bpm: float = 120
	mode: str = stepgraph.step_order.FORWARD
	spin_wait: bool = True
	autostart: bool = True
	graph_width: float = 400
	graph_height: float = 380
	osc_enabled: bool = False
	osc_receive_port: int = 9000
	osc_send_port: int = 9001
	osc_send_host: str = "127.0.0.1"
	web_ui_enabled: bool = False
	web_ui_port: int = 8765
	log_level: str = "INFO"


	@classmethod
	def from_dict (cls, data: typing.Dict[str, typing.Any]) -> "SessionConfig":

		"""
		Build a config from the nested YAML mapping, validating values.
		"""

		midi = data.get('midi') or {}
		sequencer = data.get('sequencer') or {}
		graph = data.get('graph') or {}
		osc = data.get('osc') or {}
		web_ui = data.get('web_ui') or {}
		logging_section = data.get('logging') or {}

		defaults = cls()

		config = cls(
			midi_device = midi.get('device_name', defaults.midi_device),
			midi_channel = int(midi.get('channel', defaults.midi_channel)),
			initial_bpm = float(sequencer.get('initial_bpm', defaults.initial_bpm)),
			mode = stepgraph.step_order.check_mode(sequencer.get('mode', defaults.mode)),
			spin_wait = bool(sequencer.get('spin_wait', defaults.spin_wait)),
			autostart = bool(sequencer.get('autostart', defaults.autostart)),
			graph_width = float(graph.get('width', defaults.graph_width)),
			graph_height = float(graph.get('height', defaults.graph_height)),
			osc_enabled = bool(osc.get('enabled', defaults.osc_enabled)),
			osc_receive_port = int(osc.get('receive_port', defaults.osc_receive_port)),
			osc_send_port = int(osc.get('send_port', defaults.osc_send_port)),
			osc_send_host = str(osc.get('send_host', defaults.osc_send_host)),
			web_ui_enabled = bool(web_ui.get('enabled', defaults.web_ui_enabled)),
			web_ui_port = int(web_ui.get('ws_port', defaults.web_ui_port)),
			log_level = str(logging_section.get('level', defaults.log_level)).upper()
		)

		if config.initial_bpm <= 0:
			raise ValueError("sequencer.initial_bpm must be positive")

		if not 0 <= config.midi_channel <= 15:
			raise ValueError("midi.channel must be in 0..15")

		if config.graph_width <= 0 or config.graph_height <= 0:
			raise ValueError("graph.width and graph.height must be positive")

		return config
