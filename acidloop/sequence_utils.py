import random
import typing

T = typing.TypeVar("T")


def rnd_int (max_exclusive: int, rng: random.Random) -> int:

	"""Return a uniformly distributed integer in ``[0, max_exclusive)``."""

	if max_exclusive <= 0:
		raise ValueError("Upper bound must be positive")

	return rng.randrange(max_exclusive)


def choose (options: typing.Sequence[T], rng: random.Random) -> T:

	"""Pick one item uniformly from a non-empty sequence."""

	if not options:
		raise ValueError("Options cannot be empty")

	return options[rng.randrange(len(options))]


def chance (probability: float, rng: random.Random) -> bool:

	"""Roll a Bernoulli trial that succeeds with ``probability``.

	Example:
		```python
		if chance(0.3, rng):
			accent = True
		```
	"""

	return rng.random() < probability


def velocity (scale: float, rng: random.Random, offset: float = 0.0) -> float:

	"""Draw a velocity in ``(offset, offset + scale]``.

	Drawing from ``1 - random()`` keeps a chosen hit audible: the result can
	reach the top of the range but never the bottom.
	"""

	return offset + (1.0 - rng.random()) * scale
