"""Step pattern generators for the acid lines and the drum machine.

:class:`ThreeOhGen` writes sixteen-step bass lines from a shared note set.
The note set persists between patterns, so every line generated from the
same set sounds related; setting ``new_notes`` asks for a new set on the
next call.

:class:`NineOhGen` writes four drum lanes at once.  Each call picks a style
per lane group, lays down the style's fixed hits and sprinkles random ghost
hits on top.  Calls are independent of each other.

Both generators draw every random decision from an injectable
``random.Random`` so a seeded engine is fully repeatable.
"""

import dataclasses
import random
import typing

import acidloop.notes
import acidloop.parameter
import acidloop.sequence_utils
from acidloop.sequence_utils import chance, choose, velocity


PATTERN_LENGTH = 16

# Interval shapes (semitones above the root) a note set is built from.
# Repeated zeros weight the choice toward the root.
OFFSET_CHOICES: typing.List[typing.List[int]] = [
	[0, 0, 12, 24, 27],
	[0, 0, 0, 12, 10, 19, 26, 27],
	[0, 1, 7, 10, 12, 13],
	[0],
	[0, 0, 0, 12],
	[0, 0, 12, 14, 15, 19],
	[0, 0, 0, 0, 12, 13, 16, 19, 22, 24, 25],
	[0, 0, 0, 7, 12, 15, 17, 20, 24],
]

ROOT_LOW = 16
ROOT_CHOICES = 15

ACCENT_CHANCE = 0.3
GLIDE_CHANCE = 0.1


@dataclasses.dataclass (frozen=True)
class PatternSlot:

	"""
	One step of a bass line: a note name or a rest, plus performance flags.
	"""

	note: str
	accent: bool = False
	glide: bool = False

	@property
	def is_rest (self) -> bool:

		return self.note == acidloop.notes.REST


REST_SLOT = PatternSlot(acidloop.notes.REST)


class DrumPatternSet (typing.NamedTuple):

	"""
	Four sixteen-step velocity lanes.  ``0.0`` is silence, ``(0, 1]`` a hit.
	"""

	kick: typing.List[float]
	open_hat: typing.List[float]
	closed_hat: typing.List[float]
	snare: typing.List[float]


def step_chance (index: int, density: float = 1.0) -> float:

	"""
	Probability that step ``index`` of a bass line holds a note.

	Beats are most likely, then steps on the dotted-eighth grid, then the
	remaining eighths, then everything else.
	"""

	if index % 4 == 0:
		base = 0.6
	elif index % 3 == 0:
		base = 0.5
	elif index % 2 == 0:
		base = 0.3
	else:
		base = 0.1

	return density * base


class ThreeOhGen:

	"""
	Bass line generator with a persistent note set.
	"""

	def __init__ (self, rng: typing.Optional[random.Random] = None, density: float = 1.0) -> None:

		"""
		Parameters:
			rng: Random source.  A fresh unseeded ``random.Random`` if omitted.
			density: Multiplier applied to every step's note probability.
		"""

		self.rng = rng or random.Random()
		self.density = density

		self.note_set: acidloop.parameter.Parameter[typing.List[str]] = acidloop.parameter.generic_parameter("note set", ["C1"])
		self.new_notes = acidloop.parameter.trigger("new note set", True)


	def change_notes (self) -> None:

		"""
		Replace the note set with a random shape on a random root.
		"""

		root = acidloop.sequence_utils.rnd_int(ROOT_CHOICES, self.rng) + ROOT_LOW
		offsets = choose(OFFSET_CHOICES, self.rng)

		self.note_set.value = [acidloop.notes.midi_note_to_text(offset + root) for offset in offsets]


	def create_pattern (self) -> typing.List[PatternSlot]:

		"""
		Generate a sixteen-step line, refreshing the note set first if requested.
		"""

		if self.new_notes.value is True:
			self.change_notes()
			self.new_notes.value = False

		notes = self.note_set.value
		pattern: typing.List[PatternSlot] = []

		for i in range(PATTERN_LENGTH):

			if chance(step_chance(i, self.density), self.rng):
				pattern.append(PatternSlot(
					note = choose(notes, self.rng),
					accent = chance(ACCENT_CHANCE, self.rng),
					glide = chance(GLIDE_CHANCE, self.rng)
				))

			else:
				pattern.append(REST_SLOT)

		return pattern


class NineOhGen:

	"""
	Drum pattern generator: kick, open hat, closed hat and snare.
	"""

	KICK_MODES = ("electro", "fourfloor")

	def __init__ (self, rng: typing.Optional[random.Random] = None) -> None:

		self.rng = rng or random.Random()


	def create_patterns (self, full: bool = False) -> DrumPatternSet:

		"""
		Generate a new set of drum lanes.

		Parameters:
			full: When True the hats and snare always play something; otherwise
				each of them has a one-in-three chance of sitting the pattern out.
		"""

		patterns = DrumPatternSet(
			kick = [0.0] * PATTERN_LENGTH,
			open_hat = [0.0] * PATTERN_LENGTH,
			closed_hat = [0.0] * PATTERN_LENGTH,
			snare = [0.0] * PATTERN_LENGTH
		)

		kick_mode = choose(self.KICK_MODES, self.rng)
		hat_mode = choose(("offbeats", "closed", "offbeats" if full else "none"), self.rng)
		snare_mode = choose(("backbeat", "skip", "backbeat" if full else "none"), self.rng)

		self._fill_kick(patterns.kick, kick_mode)
		self._fill_snare(patterns.snare, snare_mode)
		self._fill_hats(patterns.open_hat, patterns.closed_hat, hat_mode)

		return patterns


	def _fill_kick (self, kick: typing.List[float], mode: str) -> None:

		rng = self.rng

		if mode == "fourfloor":
			for i in range(PATTERN_LENGTH):
				if i % 4 == 0:
					kick[i] = 0.9
				elif i % 2 == 0 and chance(0.1, rng):
					kick[i] = 0.6

		elif mode == "electro":
			for i in range(PATTERN_LENGTH):
				if i == 0:
					kick[i] = 1.0
				# Syncopation on the eighths, keeping beats 2 and 4 free for the snare.
				elif i % 2 == 0 and i % 8 != 4 and chance(0.5, rng):
					kick[i] = velocity(0.9, rng)
				elif chance(0.05, rng):
					kick[i] = velocity(0.9, rng)


	def _fill_snare (self, snare: typing.List[float], mode: str) -> None:

		rng = self.rng

		if mode == "backbeat":
			for i in range(PATTERN_LENGTH):
				if i % 8 == 4:
					snare[i] = 1.0

		elif mode == "skip":
			for i in range(PATTERN_LENGTH):
				if i % 8 == 3 or i % 8 == 6:
					snare[i] = velocity(0.4, rng, 0.6)
				elif i % 2 == 0 and chance(0.2, rng):
					snare[i] = velocity(0.2, rng, 0.4)
				elif chance(0.1, rng):
					snare[i] = velocity(0.2, rng, 0.2)


	def _fill_hats (self, open_hat: typing.List[float], closed_hat: typing.List[float], mode: str) -> None:

		rng = self.rng

		if mode == "offbeats":
			for i in range(PATTERN_LENGTH):
				if i % 4 == 2:
					open_hat[i] = 0.4
				elif chance(0.3, rng):
					if chance(0.5, rng):
						closed_hat[i] = velocity(0.2, rng)
					else:
						open_hat[i] = velocity(0.2, rng)

		elif mode == "closed":
			for i in range(PATTERN_LENGTH):
				if i % 2 == 0:
					closed_hat[i] = 0.4
				elif chance(0.5, rng):
					closed_hat[i] = velocity(0.3, rng)
