"""Composition-level decisions: when to change lines, drums, mutes and knobs.

The autopilot listens to the step bus and counts bars twice:

- ``upcoming_measure`` ticks on step 4, well before the bar ends.  Pattern
  requests are made here so the units pick them up at their next step 0.
- ``current_measure`` ticks on step 15, the last step of the bar.  Mutes are
  rerolled here so they apply from the first step of the next bar.

On every 16th upcoming measure each bass voice has an even chance of a new
line and the drums a 30% chance of a new pattern; on every 64th the shared
note set has a 20% chance of being replaced.  Every 8th current measure the
four drum mutes are rerolled, the kick less likely to drop out than the rest.

Independently of tempo, every bass voice parameter and the delay's feedback
and mix wander slowly, stepped ten times a second.

Each behaviour has a switch (``switches``) that can be flipped at any time.
"""

import asyncio
import logging
import random
import typing

import acidloop.clock
import acidloop.constants
import acidloop.parameter
import acidloop.wandering

if typing.TYPE_CHECKING:
	import acidloop.engine


logger = logging.getLogger(__name__)


UPCOMING_MEASURE_STEP = 4
CURRENT_MEASURE_STEP = 15

NOTE_SET_EVERY = 64
NOTE_SET_CHANCE = 0.2

PATTERN_EVERY = 16
LINE_CHANCE = 0.5
DRUM_PATTERN_CHANCE = 0.3

MUTES_EVERY = 8
MUTE_CHANCES = (0.2, 0.5, 0.5, 0.5)


class AutoPilot:

	"""
	Drives pattern changes, drum mutes and knob wandering from the step bus.
	"""

	def __init__ (
		self,
		state: "acidloop.engine.Engine",
		loop: typing.Optional[asyncio.AbstractEventLoop] = None,
		rng: typing.Optional[random.Random] = None
	) -> None:

		"""
		Attach to a program state.

		Parameters:
			state: Anything exposing ``clock.current_step``, ``gen.new_notes``,
				``notes`` (bass units), ``drums`` and ``delay``.
			loop: Event loop for the wandering ticker.  Defaults to the running loop.
			rng: Random source for decisions; wanderers get child streams of it.
		"""

		self.state = state
		self.rng = rng or random.Random()

		self.upcoming_measure = acidloop.parameter.parameter("upcomingMeasure", (0, float("inf")), 0)
		self.current_measure = acidloop.parameter.parameter("measure", (0, float("inf")), 0)

		self.pattern_enabled = acidloop.parameter.generic_parameter("Alter Patterns", True)
		self.dials_enabled = acidloop.parameter.generic_parameter("Twiddle With Knobs", True)
		self.mutes_enabled = acidloop.parameter.generic_parameter("Mute Drum Parts", True)

		wandering_params = [param for unit in state.notes for param in unit.parameters.values()]
		wandering_params += [state.delay.feedback, state.delay.dry_wet]

		self.wanderers = [
			acidloop.wandering.WanderingParameter(param, rng=random.Random(self.rng.getrandbits(64)))
			for param in wandering_params
		]

		self._ticker = acidloop.clock.Interval(acidloop.constants.WANDER_INTERVAL_SECONDS, self.step_wanderers, loop)

		for switch in self.switches:
			switch.subscribe(self._make_switch_logger(switch))

		state.clock.current_step.subscribe(self._on_step)
		self.upcoming_measure.subscribe(self._on_upcoming_measure)
		self.current_measure.subscribe(self._on_current_measure)


	@property
	def switches (self) -> typing.List[acidloop.parameter.Parameter[bool]]:

		"""The enable switches, in display order."""

		return [self.pattern_enabled, self.dials_enabled, self.mutes_enabled]


	def start (self) -> None:

		"""Start stepping the wanderers on wall-clock time."""

		self._ticker.start()


	def stop (self) -> None:

		"""Stop stepping the wanderers."""

		self._ticker.stop()


	def step_wanderers (self) -> None:

		"""Step every wanderer once, if knob wandering is enabled."""

		if not self.dials_enabled.value:
			return

		for wanderer in self.wanderers:
			wanderer.step()


	def _on_step (self, step: int) -> None:

		if step == UPCOMING_MEASURE_STEP:
			self.upcoming_measure.value = self.upcoming_measure.value + 1

		# On the last step so the mutes land on the next downbeat.
		elif step == CURRENT_MEASURE_STEP:
			self.current_measure.value = self.current_measure.value + 1


	def _on_upcoming_measure (self, measure: int) -> None:

		if not self.pattern_enabled.value:
			return

		if measure % NOTE_SET_EVERY == 0 and self.rng.random() < NOTE_SET_CHANCE:
			logger.info(f"Measure {measure}: new note set")
			self.state.gen.new_notes.value = True

		if measure % PATTERN_EVERY == 0:

			for unit in self.state.notes:
				if self.rng.random() < LINE_CHANCE:
					logger.debug(f"Measure {measure}: new line for {unit.name}")
					unit.new_pattern.value = True

			if self.rng.random() < DRUM_PATTERN_CHANCE:
				logger.debug(f"Measure {measure}: new drum pattern")
				self.state.drums.new_pattern.value = True


	def _on_current_measure (self, measure: int) -> None:

		if not self.mutes_enabled.value:
			return

		if measure % MUTES_EVERY != 0:
			return

		drum_mutes = [self.rng.random() < p for p in MUTE_CHANCES]

		for mute, muted in zip(self.state.drums.mutes, drum_mutes):
			mute.value = muted

		logger.debug(f"Measure {measure}: drum mutes {drum_mutes}")


	@staticmethod
	def _make_switch_logger (switch: acidloop.parameter.Parameter[bool]) -> typing.Callable[[bool], None]:

		def log_switch (enabled: bool) -> None:
			logger.info(f"Autopilot '{switch.name}': {'on' if enabled else 'off'}")

		return log_switch
