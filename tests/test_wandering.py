import random

import pytest

import acidloop.parameter
import acidloop.wandering

from conftest import StubRandom


def _centred (value: float = 50.0) -> acidloop.parameter.Parameter[float]:

	return acidloop.parameter.parameter("knob", (0, 100), value)


def test_centred_parameter_moves_on_first_step () -> None:

	"""A value sitting mid-range is picked up immediately."""

	param = _centred()
	wanderer = acidloop.wandering.WanderingParameter(param, rng=StubRandom(0.9))

	wanderer.step()

	# (0.9 - 0.5) * (100 / 400)
	assert param.value == pytest.approx(50.1)
	assert wanderer.previous_value == param.value


def test_external_edit_holds_for_cooldown () -> None:

	"""After someone else writes the value, it stays put for 100 steps."""

	param = _centred()
	wanderer = acidloop.wandering.WanderingParameter(param, rng=random.Random(1))

	wanderer.step()
	param.value = 70.0

	wanderer.step()

	assert wanderer.diff == 0.0
	assert wanderer.touch_countdown == acidloop.wandering.TOUCH_COOLDOWN

	for _ in range(100):
		wanderer.step()
		assert param.value == 70.0

	wanderer.step()

	assert param.value != 70.0


def test_off_centre_start_counts_as_an_edit () -> None:

	"""A wanderer on an off-centre value waits before moving."""

	param = acidloop.parameter.parameter("cutoff", (30, 700), 400)
	wanderer = acidloop.wandering.WanderingParameter(param, rng=random.Random(2))

	for _ in range(101):
		wanderer.step()

	assert param.value == 400

	wanderer.step()

	assert param.value != 400


def test_settling_damps_harder_than_free_running () -> None:

	"""Momentum decays at 0.8 while the cooldown runs out, 0.98 after."""

	param = _centred()
	wanderer = acidloop.wandering.WanderingParameter(param, rng=StubRandom(0.5))

	wanderer.diff = 1.0
	wanderer.touch_countdown = 50
	wanderer.step()

	assert wanderer.diff == pytest.approx(0.8)

	param.value = 50.0
	wanderer.previous_value = 50.0
	wanderer.diff = 1.0
	wanderer.touch_countdown = 0
	wanderer.step()

	assert wanderer.diff == pytest.approx(0.98)


@pytest.mark.parametrize("start, direction", [(90.0, -1), (10.0, 1)])
def test_edges_push_back_toward_the_middle (start: float, direction: int) -> None:

	"""Near either end of the range the momentum is nudged inward."""

	param = _centred(start)
	wanderer = acidloop.wandering.WanderingParameter(param, rng=StubRandom(0.5))
	wanderer.previous_value = start

	wanderer.step()

	assert param.value == pytest.approx(start)
	assert wanderer.diff * direction > 0


def test_value_is_not_clamped () -> None:

	"""A strong push can carry the value past its bound."""

	param = _centred(99.9)
	wanderer = acidloop.wandering.WanderingParameter(param, rng=StubRandom(0.5))
	wanderer.previous_value = 99.9
	wanderer.diff = 5.0

	wanderer.step()

	assert param.value > 100


def test_stays_roughly_in_range_over_time () -> None:

	"""Left alone for a long time the walk hovers inside its bounds."""

	param = _centred()
	wanderer = acidloop.wandering.WanderingParameter(param, rng=random.Random(3))
	values = []

	for _ in range(5000):
		wanderer.step()
		values.append(param.value)

	assert min(values) > -10
	assert max(values) < 110
	assert max(values) - min(values) > 5


def test_unbounded_parameter_rejected () -> None:

	"""Only bounded parameters can wander."""

	with pytest.raises(ValueError):
		acidloop.wandering.WanderingParameter(acidloop.parameter.generic_parameter("free", 1.0))
