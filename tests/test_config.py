import pathlib

import pytest

import stepgraph.config


def test_missing_file_gives_defaults (tmp_path: pathlib.Path) -> None:

	"""A missing config file is not an error; every setting takes its default."""

	data = stepgraph.config.load_config(str(tmp_path / "absent.yaml"))
	config = stepgraph.config.SessionConfig.from_dict(data)

	assert data == {}
	assert config == stepgraph.config.SessionConfig()
	assert config.initial_bpm == 120
	assert config.mode == "forward"


def test_empty_file_gives_defaults (tmp_path: pathlib.Path) -> None:

	"""An empty YAML document loads as an empty mapping."""

	path = tmp_path / "config.yaml"
	path.write_text("")

	assert stepgraph.config.load_config(str(path)) == {}


def test_nested_sections_are_read (tmp_path: pathlib.Path) -> None:

	"""Values are taken from their sections and coerced to the right types."""

	path = tmp_path / "config.yaml"
	path.write_text(
		"midi:\n"
		"  device_name: Synth A\n"
		"  channel: 3\n"
		"sequencer:\n"
		"  initial_bpm: 96\n"
		"  mode: pingpong\n"
		"  autostart: false\n"
		"graph:\n"
		"  width: 800\n"
		"osc:\n"
		"  enabled: true\n"
		"  receive_port: 9100\n"
		"web_ui:\n"
		"  enabled: true\n"
		"logging:\n"
		"  level: debug\n"
	)

	config = stepgraph.config.SessionConfig.from_dict(stepgraph.config.load_config(str(path)))

	assert config.midi_device == "Synth A"
	assert config.midi_channel == 3
	assert config.initial_bpm == 96.0
	assert config.mode == "pingpong"
	assert config.autostart is False
	assert config.graph_width == 800.0
	assert config.graph_height == 380
	assert config.osc_enabled is True
	assert config.osc_receive_port == 9100
	assert config.osc_send_port == 9001
	assert config.web_ui_enabled is True
	assert config.web_ui_port == 8765
	assert config.log_level == "DEBUG"


def test_example_config_loads () -> None:

	"""The example config shipped with the project is valid."""

	path = pathlib.Path(__file__).parent.parent / "config.example.yaml"

	config = stepgraph.config.SessionConfig.from_dict(stepgraph.config.load_config(str(path)))

	assert config == stepgraph.config.SessionConfig()


def test_top_level_must_be_mapping (tmp_path: pathlib.Path) -> None:

	"""A YAML list at the top level is rejected."""

	path = tmp_path / "config.yaml"
	path.write_text("- 1\n- 2\n")

	with pytest.raises(ValueError):
		stepgraph.config.load_config(str(path))


@pytest.mark.parametrize("data", [
	{"sequencer": {"initial_bpm": 0}},
	{"sequencer": {"mode": "shuffle"}},
	{"midi": {"channel": 16}},
	{"graph": {"height": -1}},
])
def test_invalid_values_raise (data: dict) -> None:

	"""Out-of-range values fail when the config is built, not later."""

	with pytest.raises(ValueError):
		stepgraph.config.SessionConfig.from_dict(data)
