"""Grid pitch constants.

The grid spans one octave plus the top note, C4 to C5 inclusive, ordered
**high to low** - the same order the rows appear in the piano roll. Chord
grouping relies on this order: the last active pitch at a step is always the
lowest, which makes it the anchor of the chord.

MIDI numbers follow the **C4 = 60** convention (Middle C)::

    import stepgraph.constants.pitches as pitches

    pitches.MIDI_NOTES["A4"]     # 69
    pitches.LABELS["C#4"]        # "C#"
"""

import stepgraph.constants


STEPS = stepgraph.constants.STEPS

PITCHES = ('C5', 'B4', 'A#4', 'A4', 'G#4', 'G4', 'F#4', 'F4', 'E4', 'D#4', 'D4', 'C#4', 'C4')

# Short labels drawn inside graph nodes - the octave is only shown on the two Cs.
LABELS = {
	'C5': 'C5',
	'B4': 'B',
	'A#4': 'A#',
	'A4': 'A',
	'G#4': 'G#',
	'G4': 'G',
	'F#4': 'F#',
	'F4': 'F',
	'E4': 'E',
	'D#4': 'D#',
	'D4': 'D',
	'C#4': 'C#',
	'C4': 'C4',
}

MIDI_NOTES = {pitch: 72 - index for index, pitch in enumerate(PITCHES)}
