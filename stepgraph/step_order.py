"""Playback modes and the step order each one traverses.

Available modes:

    "forward"   Steps 0 to 15.
    "reverse"   Steps 15 to 0.
    "pingpong"  Steps 0 to 15 then 15 to 0 - 32 ticks per pass, the turning
                steps sound twice.

Step orders are plain lists, recomputed on demand::

    stepgraph.step_order.step_order("pingpong")[14:18]    # [14, 15, 15, 14]
"""

import typing

import stepgraph.constants


FORWARD = "forward"
REVERSE = "reverse"
PINGPONG = "pingpong"

PLAYBACK_MODES: typing.Tuple[str, ...] = (FORWARD, REVERSE, PINGPONG)


def check_mode (mode: str) -> str:

	"""Return *mode* unchanged, or raise :class:`ValueError` for unknown names."""

	if mode not in PLAYBACK_MODES:
		available = ", ".join(f'"{m}"' for m in PLAYBACK_MODES)
		raise ValueError(f"Unknown playback mode {mode!r}. Available modes: {available}")

	return mode


def step_order (mode: str) -> typing.List[int]:

	"""Return the ordered step indices for one full pass in *mode*."""

	check_mode(mode)

	forward = list(range(stepgraph.constants.STEPS))

	if mode == REVERSE:
		return forward[::-1]

	if mode == PINGPONG:
		return forward + forward[::-1]

	return forward
