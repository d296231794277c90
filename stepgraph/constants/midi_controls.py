"""MIDI mappings for synth controls passed straight through to the voice.

Control values arrive normalised to 0.0-1.0 and are scaled to 0-127. The CC
numbers follow the General MIDI 2 sound controller assignments, so most
synths respond without any mapping on their side. Filter type and reverb decay
have no General MIDI controller, so they use CCs from the undefined range for
the receiving synth to map.
"""

FILTER_FREQUENCY_CC = 74   # Brightness
FILTER_Q_CC = 71           # Timbre / harmonic intensity
RELEASE_CC = 72
ATTACK_CC = 73
DECAY_CC = 75
SUSTAIN_CC = 70
REVERB_SEND_CC = 91
REVERB_DECAY_CC = 103     # Undefined in GM; free for the reverb time

CONTROL_CCS = {
	"filter_frequency": FILTER_FREQUENCY_CC,
	"filter_q": FILTER_Q_CC,
	"attack": ATTACK_CC,
	"decay": DECAY_CC,
	"sustain": SUSTAIN_CC,
	"release": RELEASE_CC,
	"reverb_send": REVERB_SEND_CC,
	"reverb_decay": REVERB_DECAY_CC,
}

# Filter response is a choice, not a level: one CC with a fixed value per type.
FILTER_TYPE_CC = 102       # Undefined in GM
FILTER_TYPE_VALUES = {
	"lowpass": 0,
	"bandpass": 64,
	"highpass": 127,
}

# GM programs closest to each raw oscillator shape.
WAVEFORM_PROGRAMS = {
	"sine": 79,        # Ocarina
	"square": 80,      # Lead 1 (square)
	"sawtooth": 81,    # Lead 2 (sawtooth)
	"triangle": 82,    # Lead 3 (calliope)
}

MIN_VELOCITY = 1
MAX_VELOCITY = 127
