"""Constants for stepgraph.

This package contains three sets of constants:

- ``stepgraph.constants.pitches`` - The fixed 13-pitch, 16-step grid and its MIDI note numbers
- ``stepgraph.constants.layout`` - Node sizes, spacing and padding used by the radial layout
- ``stepgraph.constants.midi_controls`` - MIDI CC and program numbers for synth pass-through controls

The grid dimensions are re-exported here because nearly every module needs them.
"""

STEPS = 16
PITCH_COUNT = 13
