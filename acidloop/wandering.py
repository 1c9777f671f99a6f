"""Slow random-walk drift for a bounded parameter.

:class:`WanderingParameter` imitates a hand slowly turning a knob.  Each
:meth:`~WanderingParameter.step` adds a small random push to a momentum term
and moves the value by that momentum, so the value drifts smoothly rather
than jittering.

Two rules keep the drift musical:

- **Hands off after an edit.**  If something else wrote to the parameter since
  the last step, the wanderer stops, forgets its momentum and waits.  Movement
  resumes after a quiet period, starting gently (strong damping) until the
  cooldown has fully run out.
- **Soft walls.**  Once the value is in the top or bottom fifth of its range,
  each step adds a random push back toward the middle.  The value can still
  overshoot briefly; it is never clamped.
"""

import random
import typing

import acidloop.constants
import acidloop.parameter


# Steps of cooldown after an external edit, and the level below which
# wandering resumes.
TOUCH_COOLDOWN = 200
TOUCH_ACTIVE_BELOW = 100

DAMPING_SETTLING = 0.8
DAMPING_FREE = 0.98

EDGE_FRACTION = 0.2


class WanderingParameter:

	"""Momentum random walk over a bounded :class:`~acidloop.parameter.Parameter`."""

	def __init__ (
		self,
		param: acidloop.parameter.Parameter[float],
		scale_factor: float = acidloop.constants.WANDER_SCALE_FACTOR,
		rng: typing.Optional[random.Random] = None,
	) -> None:

		"""Wrap ``param`` for wandering.

		Parameters:
			param: The parameter to move.  Must have bounds.
			scale_factor: Size of each random push as a fraction of the
			    parameter's range.
			rng: Random source.  A fresh unseeded ``random.Random`` if omitted.

		The wanderer starts out believing the value sits in the middle of its
		range, so unless it really does, the first step treats the current
		value as a fresh edit and holds still through the cooldown.
		"""

		if param.bounds is None:
			raise ValueError(f"Parameter {param.name!r} needs bounds to wander")

		self.param = param
		self.rng = rng or random.Random()

		self.min, self.max = param.bounds
		self.scale = scale_factor * (self.max - self.min)
		self.diff = 0.0
		self.touch_countdown = 0
		self.previous_value: float = (self.min + self.max) / 2


	def step (self) -> None:

		"""Advance the walk by one tick."""

		if self.previous_value != self.param.value:
			self.diff = 0.0
			self.previous_value = self.param.value
			self.touch_countdown = TOUCH_COOLDOWN
			return

		if self.touch_countdown > 0:
			self.touch_countdown -= 1

		if self.touch_countdown >= TOUCH_ACTIVE_BELOW:
			return

		self.diff *= DAMPING_SETTLING if self.touch_countdown > 0 else DAMPING_FREE
		self.diff += (self.rng.random() - 0.5) * self.scale

		self.param.value += self.diff
		self.previous_value = self.param.value

		span = self.max - self.min

		if self.param.value > self.min + (1.0 - EDGE_FRACTION) * span:
			self.diff -= self.rng.random() * self.scale

		elif self.param.value < self.min + EDGE_FRACTION * span:
			self.diff += self.rng.random() * self.scale
