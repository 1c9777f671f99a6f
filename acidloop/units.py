"""Instrument units: the things the step bus drives.

A unit owns a pattern, a ``new_pattern`` trigger and its control
parameters, and exposes ``step(index)``.  Units do not make sound
themselves; they play an external synth or drum machine over MIDI:

- :class:`ThreeOhUnit` - a monophonic acid bass voice.  Notes become note
  on/off messages, accents raise the velocity, glides turn on portamento and
  overlap the notes.  Cutoff, resonance, envelope amount and decay are sent
  as control changes whenever they move.
- :class:`NineOhUnit` - four drum voices on the General MIDI drum channel,
  each with its own mute.
- :class:`DelayUnit` - delay send parameters mirrored as control changes.

Every unit works without a MIDI output (``midi_out=None``), which keeps the
pattern and parameter logic testable on its own.
"""

import logging
import random
import typing

import mido

import acidloop.constants
import acidloop.midi_utils
import acidloop.notes
import acidloop.parameter
import acidloop.pattern


logger = logging.getLogger(__name__)


class CcSink:

	"""
	Mirrors a bounded parameter to a MIDI control change.

	Consecutive writes that land on the same 7-bit value are sent once.
	"""

	def __init__ (
		self,
		param: acidloop.parameter.Parameter[float],
		midi_out: typing.Optional[typing.Any],
		channel: int,
		control: int
	) -> None:

		if param.bounds is None:
			raise ValueError(f"Parameter {param.name!r} needs bounds to map onto a controller")

		self.param = param
		self.midi_out = midi_out
		self.channel = channel
		self.control = control
		self.last_sent: typing.Optional[int] = None

		param.subscribe(self._on_value)


	def _on_value (self, value: float) -> None:

		assert self.param.bounds is not None

		cc_value = acidloop.midi_utils.scale_to_cc(value, self.param.bounds)

		if cc_value == self.last_sent:
			return

		self.last_sent = cc_value

		acidloop.midi_utils.send(
			self.midi_out,
			mido.Message("control_change", channel=self.channel, control=self.control, value=cc_value)
		)


class ThreeOhUnit:

	"""
	An acid bass voice that plays lines from a shared :class:`~acidloop.pattern.ThreeOhGen`.
	"""

	CONTROLS = {
		"cutoff": acidloop.constants.CC_CUTOFF,
		"resonance": acidloop.constants.CC_RESONANCE,
		"env_mod": acidloop.constants.CC_ENV_MOD,
		"decay": acidloop.constants.CC_DECAY,
	}

	def __init__ (
		self,
		gen: acidloop.pattern.ThreeOhGen,
		midi_out: typing.Optional[typing.Any] = None,
		channel: int = acidloop.constants.BASS_CHANNEL_1,
		name: str = "bass",
		pattern_length: int = acidloop.pattern.PATTERN_LENGTH
	) -> None:

		"""
		Parameters:
			gen: Line generator, usually shared with the other bass voice so
				both play from the same note set.
			midi_out: Open ``mido`` output port, or None to stay silent.
			channel: MIDI channel (0-indexed).
			name: Unit name, used in logs and OSC addresses.
			pattern_length: Steps before the line repeats.
		"""

		self.gen = gen
		self.midi_out = midi_out
		self.channel = channel
		self.name = name
		self.pattern_length = pattern_length

		self.pattern: acidloop.parameter.Parameter[typing.List[acidloop.pattern.PatternSlot]] = acidloop.parameter.generic_parameter("Pattern", [])
		self.new_pattern = acidloop.parameter.trigger("New Pattern Trigger", True)

		self.parameters: typing.Dict[str, acidloop.parameter.Parameter[float]] = {
			"cutoff": acidloop.parameter.parameter("Cutoff", (30, 700), 400),
			"resonance": acidloop.parameter.parameter("Resonance", (1, 30), 15),
			"env_mod": acidloop.parameter.parameter("Env Mod", (0, 8000), 4000),
			"decay": acidloop.parameter.parameter("Decay", (0.1, 0.9), 0.5),
		}

		self._sinks = [
			CcSink(self.parameters[key], midi_out, channel, control)
			for key, control in self.CONTROLS.items()
		]

		self._sounding: typing.Optional[int] = None
		self._portamento = False

		# A new note set means the current line no longer fits it.
		gen.new_notes.subscribe(self._on_new_notes)


	def step (self, index: int) -> None:

		"""
		Play step ``index``, regenerating the line at the top of the bar if requested.
		"""

		if (index == 0 and self.new_pattern.value is True) or not self.pattern.value:
			self.pattern.value = self.gen.create_pattern()
			self.new_pattern.value = False
			logger.debug(f"{self.name}: new pattern")

		slot = self.pattern.value[index % self.pattern_length]

		if slot.is_rest:
			self.note_off()
		else:
			self.note_on(slot)


	def note_on (self, slot: acidloop.pattern.PatternSlot) -> None:

		"""
		Start the note in ``slot``.  A glide overlaps it with the previous note.
		"""

		pitch = acidloop.notes.text_note_to_number(slot.note)
		velocity = acidloop.constants.ACCENT_VELOCITY if slot.accent else acidloop.constants.NOTE_VELOCITY

		self._set_portamento(slot.glide)

		previous = self._sounding

		if slot.glide and previous == pitch:
			return

		if not slot.glide:
			self.note_off()

		self._send("note_on", note=pitch, velocity=velocity)
		self._sounding = pitch

		if slot.glide and previous is not None:
			self._send("note_off", note=previous, velocity=0)


	def note_off (self) -> None:

		"""
		Release the sounding note, if any.
		"""

		if self._sounding is None:
			return

		self._send("note_off", note=self._sounding, velocity=0)
		self._sounding = None


	def _set_portamento (self, enabled: bool) -> None:

		if enabled == self._portamento:
			return

		self._portamento = enabled
		self._send("control_change", control=acidloop.constants.CC_PORTAMENTO, value=127 if enabled else 0)


	def _send (self, message_type: str, **kwargs: typing.Any) -> None:

		acidloop.midi_utils.send(self.midi_out, mido.Message(message_type, channel=self.channel, **kwargs))


	def _on_new_notes (self, new_notes: bool) -> None:

		if new_notes is True:
			self.new_pattern.value = True


class NineOhUnit:

	"""
	A four-voice drum machine with per-voice mutes.
	"""

	VOICES = ("BD", "OH", "CH", "SD")

	def __init__ (
		self,
		midi_out: typing.Optional[typing.Any] = None,
		channel: int = acidloop.constants.DRUM_CHANNEL,
		name: str = "drums",
		rng: typing.Optional[random.Random] = None
	) -> None:

		self.midi_out = midi_out
		self.channel = channel
		self.name = name
		self.gen = acidloop.pattern.NineOhGen(rng)

		self.pattern: acidloop.parameter.Parameter[typing.Any] = acidloop.parameter.generic_parameter("Drum Pattern", [])
		self.mutes: typing.List[acidloop.parameter.Parameter[bool]] = [
			acidloop.parameter.generic_parameter(f"Mute {voice}", False) for voice in self.VOICES
		]
		self.new_pattern = acidloop.parameter.trigger("New Pattern Trigger", True)

		self._held: typing.List[int] = []


	def step (self, index: int) -> None:

		"""
		Play step ``index`` on every unmuted voice that has a hit there.
		"""

		if (index == 0 and self.new_pattern.value is True) or not self.pattern.value:
			self.pattern.value = self.gen.create_patterns(True)
			self.new_pattern.value = False
			logger.debug(f"{self.name}: new pattern")

		self.release()

		for lane, mute, note in zip(self.pattern.value, self.mutes, acidloop.constants.DRUM_NOTES):

			hit = lane[index % len(lane)]

			if hit and not mute.value:
				velocity = max(1, min(acidloop.constants.MAX_VELOCITY, int(round(hit * acidloop.constants.MAX_VELOCITY))))
				acidloop.midi_utils.send(self.midi_out, mido.Message("note_on", channel=self.channel, note=note, velocity=velocity))
				self._held.append(note)


	def release (self) -> None:

		"""Send note-off for every drum note still held."""

		for note in self._held:
			acidloop.midi_utils.send(self.midi_out, mido.Message("note_off", channel=self.channel, note=note, velocity=0))

		self._held = []


class DelayUnit:

	"""
	Delay send parameters for an external effect, mirrored as control changes.
	"""

	def __init__ (
		self,
		midi_out: typing.Optional[typing.Any] = None,
		channel: int = acidloop.constants.BASS_CHANNEL_1,
		name: str = "delay"
	) -> None:

		self.name = name

		self.dry_wet = acidloop.parameter.parameter("Dry/Wet", (0, 0.5), 0.5)
		self.feedback = acidloop.parameter.parameter("Feedback", (0, 0.9), 0.3)
		self.delay_time = acidloop.parameter.parameter("Time", (0, 2), 0.3)

		self._sinks = [
			CcSink(self.dry_wet, midi_out, channel, acidloop.constants.CC_DELAY_MIX),
			CcSink(self.feedback, midi_out, channel, acidloop.constants.CC_DELAY_FEEDBACK),
			CcSink(self.delay_time, midi_out, channel, acidloop.constants.CC_DELAY_TIME),
		]


	@property
	def parameters (self) -> typing.Dict[str, acidloop.parameter.Parameter[float]]:

		return {"dry_wet": self.dry_wet, "feedback": self.feedback, "delay_time": self.delay_time}
