"""Note name conversion.

Generated note sets are stored as names (``"C2"``, ``"D#3"``).  The two
directions do not share an octave convention: :func:`midi_note_to_text`
names note ``n`` with octave ``n // 12``, while :func:`text_note_to_number`
places octave 0 at note 12.  A generated line therefore sounds one octave
above the register it was generated in, which is the intended bass register
for the default root band (notes 16-30 play back as 28-42).
"""

import re
import typing


NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

_NAME_TO_PC: typing.Dict[str, int] = {name: pc for pc, name in enumerate(NOTE_NAMES)}

_NOTE_PATTERN = re.compile(r"^([A-G]#?)(-?\d+)$")

REST = "-"


def midi_note_to_text (note: int) -> str:

	"""
	Name a note number, e.g. ``24`` -> ``"C2"``, ``27`` -> ``"D#2"``.
	"""

	return f"{NOTE_NAMES[note % 12]}{note // 12}"


def text_note_to_number (name: str) -> int:

	"""
	Convert a note name back to a MIDI note number, e.g. ``"C2"`` -> ``36``.

	Raises ``ValueError`` for anything that is not a sharp-spelled note name.
	"""

	match = _NOTE_PATTERN.match(name)

	if match is None:
		raise ValueError(f"Not a note name: {name!r}")

	pitch_class = _NAME_TO_PC[match.group(1)]
	octave = int(match.group(2))

	return octave * 12 + pitch_class + 12
