"""Engine defaults and MIDI assignments.

Timing
	``STEPS_PER_BAR`` is the sequencer grid: sixteen sixteenth-note steps per
	bar, four subdivisions per beat.

MIDI
	Melodic voices default to channels 1 and 2 (0-indexed 0 and 1); drums use
	the General MIDI percussion channel 10 (0-indexed 9).  Synth parameters are
	mirrored as control changes using the General MIDI sound controller
	numbers where one exists.
"""

# Timing

STEPS_PER_BAR = 16
SUBDIVISIONS_PER_BEAT = 4

DEFAULT_BPM = 142
BPM_BOUNDS = (70, 200)

WANDER_INTERVAL_SECONDS = 0.1
WANDER_SCALE_FACTOR = 1 / 400

# Delay time follows the tempo: a dotted eighth.
DELAY_BEAT_FRACTION = 3 / 4

# MIDI channels (0-indexed)

BASS_CHANNEL_1 = 0
BASS_CHANNEL_2 = 1
DRUM_CHANNEL = 9

# MIDI velocities

NOTE_VELOCITY = 100
ACCENT_VELOCITY = 127
MAX_VELOCITY = 127

# General MIDI drum notes, in NineOhGen voice order.

GM_BASS_DRUM = 36
GM_OPEN_HI_HAT = 46
GM_CLOSED_HI_HAT = 42
GM_SNARE = 38

DRUM_NOTES = (GM_BASS_DRUM, GM_OPEN_HI_HAT, GM_CLOSED_HI_HAT, GM_SNARE)

# Control change numbers

CC_VOLUME = 7
CC_PORTAMENTO = 65
CC_RESONANCE = 71
CC_CUTOFF = 74
CC_DECAY = 75
CC_ENV_MOD = 79
CC_DELAY_MIX = 91
CC_DELAY_FEEDBACK = 92
CC_DELAY_TIME = 93
CC_ALL_NOTES_OFF = 123
