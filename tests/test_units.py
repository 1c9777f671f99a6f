import random
import typing

import mido
import pytest

import acidloop.constants
import acidloop.parameter
import acidloop.pattern
import acidloop.units

from conftest import FakeMidiOut


def _summary (message: mido.Message) -> typing.Tuple[typing.Any, ...]:

	"""Reduce a message to the fields the tests care about."""

	if message.type == "control_change":
		return ("cc", message.channel, message.control, message.value)

	return (message.type, message.channel, message.note, message.velocity)


class StubGen:

	"""Line generator that always returns the same pattern and counts calls."""

	def __init__ (self, pattern: typing.List[acidloop.pattern.PatternSlot]) -> None:

		self.pattern = pattern
		self.new_notes = acidloop.parameter.trigger("new note set")
		self.calls = 0

	def create_pattern (self) -> typing.List[acidloop.pattern.PatternSlot]:

		self.calls += 1
		return list(self.pattern)


def _line (*slots: acidloop.pattern.PatternSlot) -> typing.List[acidloop.pattern.PatternSlot]:

	return list(slots) + [acidloop.pattern.REST_SLOT] * (16 - len(slots))


def test_cc_sink_scales_and_deduplicates (midi_out: FakeMidiOut) -> None:

	"""Values are scaled onto 0-127, clamped, and repeats of the same CC value are dropped."""

	param = acidloop.parameter.parameter("knob", (0, 100), 50)
	acidloop.units.CcSink(param, midi_out, 3, 74)

	for value in (50.2, 100, 150, -5):
		param.value = value

	assert [_summary(m) for m in midi_out.messages] == [
		("cc", 3, 74, 64),
		("cc", 3, 74, 127),
		("cc", 3, 74, 0),
	]


def test_cc_sink_needs_bounds (midi_out: FakeMidiOut) -> None:

	with pytest.raises(ValueError):
		acidloop.units.CcSink(acidloop.parameter.generic_parameter("free", 1), midi_out, 0, 1)


def test_bass_unit_plays_line (midi_out: FakeMidiOut) -> None:

	"""Notes, rests, accents, glides and ties become the right MIDI messages."""

	Slot = acidloop.pattern.PatternSlot

	gen = StubGen(_line(
		Slot("C2"),
		acidloop.pattern.REST_SLOT,
		Slot("D2", accent=True),
		Slot("E2", glide=True),
		Slot("E2", glide=True),
		Slot("F2"),
	))

	unit = acidloop.units.ThreeOhUnit(gen, midi_out, channel=0)  # type: ignore[arg-type]
	midi_out.messages.clear()

	for index in range(7):
		unit.step(index)

	assert [_summary(m) for m in midi_out.messages] == [
		("note_on", 0, 36, 100),
		("note_off", 0, 36, 0),
		("note_on", 0, 38, 127),
		# Glide: portamento on, new note before the old one is released.
		("cc", 0, 65, 127),
		("note_on", 0, 40, 100),
		("note_off", 0, 38, 0),
		# Gliding into the same pitch ties; nothing is sent.
		("cc", 0, 65, 0),
		("note_off", 0, 40, 0),
		("note_on", 0, 41, 100),
		("note_off", 0, 41, 0),
	]


def test_bass_unit_regenerates_only_at_bar_start (midi_out: FakeMidiOut) -> None:

	"""A pattern request waits for step 0."""

	gen = StubGen(_line(acidloop.pattern.PatternSlot("C2")))
	unit = acidloop.units.ThreeOhUnit(gen, midi_out)  # type: ignore[arg-type]

	unit.step(0)
	assert gen.calls == 1
	assert unit.new_pattern.value is False

	unit.new_pattern.value = True
	unit.step(5)
	assert gen.calls == 1

	unit.step(0)
	assert gen.calls == 2
	assert unit.new_pattern.value is False


def test_bass_unit_without_pattern_generates_anywhere () -> None:

	"""A unit with no line yet builds one on whatever step it first sees."""

	gen = StubGen(_line())
	unit = acidloop.units.ThreeOhUnit(gen)  # type: ignore[arg-type]

	unit.step(7)

	assert gen.calls == 1
	assert len(unit.pattern.value) == 16


def test_new_note_set_requests_new_line () -> None:

	"""Setting the generator's new_notes trigger flags every unit that uses it."""

	gen = StubGen(_line())
	units = [acidloop.units.ThreeOhUnit(gen, name=f"bass{i}") for i in range(2)]  # type: ignore[arg-type]

	for unit in units:
		unit.step(0)
		assert unit.new_pattern.value is False

	gen.new_notes.value = True

	assert [unit.new_pattern.value for unit in units] == [True, True]


def test_bass_knobs_send_control_changes (midi_out: FakeMidiOut) -> None:

	"""Each knob maps to its own controller on the unit's channel."""

	gen = StubGen(_line())
	unit = acidloop.units.ThreeOhUnit(gen, midi_out, channel=1)  # type: ignore[arg-type]

	assert sorted(m.control for m in midi_out.of_type("control_change")) == sorted(acidloop.units.ThreeOhUnit.CONTROLS.values())

	midi_out.messages.clear()
	unit.parameters["cutoff"].value = 700
	unit.parameters["decay"].value = 0.1

	assert [_summary(m) for m in midi_out.messages] == [
		("cc", 1, acidloop.constants.CC_CUTOFF, 127),
		("cc", 1, acidloop.constants.CC_DECAY, 0),
	]


def test_bass_unit_is_silent_without_output () -> None:

	"""With no MIDI output a unit still steps through its line."""

	unit = acidloop.units.ThreeOhUnit(acidloop.pattern.ThreeOhGen(rng=random.Random(1)))

	for index in range(32):
		unit.step(index % 16)

	assert len(unit.pattern.value) == 16


def test_drum_unit_plays_unmuted_hits (midi_out: FakeMidiOut) -> None:

	"""Hits become note-ons at scaled velocities and are released on the next step."""

	unit = acidloop.units.NineOhUnit(midi_out)
	unit.pattern.value = acidloop.pattern.DrumPatternSet(
		kick = [1.0] + [0.0] * 15,
		open_hat = [0.0, 0.5] + [0.0] * 14,
		closed_hat = [0.4] + [0.0] * 15,
		snare = [0.01] + [0.0] * 15,
	)
	unit.new_pattern.value = False
	unit.mutes[2].value = True

	for index in range(3):
		unit.step(index)

	assert [_summary(m) for m in midi_out.messages] == [
		("note_on", 9, 36, 127),
		# Quiet hits still sound.
		("note_on", 9, 38, 1),
		("note_off", 9, 36, 0),
		("note_off", 9, 38, 0),
		("note_on", 9, 46, 64),
		("note_off", 9, 46, 0),
	]


def test_drum_unit_generates_full_patterns () -> None:

	"""The drum unit always asks for patterns with hats and snare."""

	unit = acidloop.units.NineOhUnit(rng=random.Random(2))

	for _ in range(20):
		unit.new_pattern.value = True
		unit.step(0)

		assert unit.new_pattern.value is False
		assert any(unit.pattern.value.snare)


def test_drum_mutes_named_by_voice () -> None:

	unit = acidloop.units.NineOhUnit()

	assert [m.name for m in unit.mutes] == ["Mute BD", "Mute OH", "Mute CH", "Mute SD"]
	assert all(m.value is False for m in unit.mutes)


def test_delay_unit_mirrors_parameters (midi_out: FakeMidiOut) -> None:

	"""The delay sends its three settings as controllers on construction and on change."""

	delay = acidloop.units.DelayUnit(midi_out)

	assert [_summary(m) for m in midi_out.messages] == [
		("cc", 0, acidloop.constants.CC_DELAY_MIX, 127),
		("cc", 0, acidloop.constants.CC_DELAY_FEEDBACK, 42),
		("cc", 0, acidloop.constants.CC_DELAY_TIME, 19),
	]

	midi_out.messages.clear()
	delay.delay_time.value = 2.0

	assert [_summary(m) for m in midi_out.messages] == [("cc", 0, acidloop.constants.CC_DELAY_TIME, 127)]
	assert set(delay.parameters) == {"dry_wet", "feedback", "delay_time"}
