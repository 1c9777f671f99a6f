"""MIDI port selection and guarded sending.

Hardware port names usually carry a client and port suffix that changes
between machines (``"TB-3:TB-3 MIDI 1 24:0"``), so a configured
``device_name`` matches either exactly or as a case-insensitive substring.
"""

import logging
import sys
import typing

import mido

import acidloop.constants

logger = logging.getLogger(__name__)


OutputSelection = typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]


def match_device (device_name: str, outputs: typing.Sequence[str]) -> typing.Optional[str]:

	"""
	Find ``device_name`` among ``outputs``: an exact name, or the single output containing it.

	Returns None when nothing matches or the substring is ambiguous.
	"""

	if device_name in outputs:
		return device_name

	needle = device_name.lower()
	candidates = [name for name in outputs if needle in name.lower()]

	if len(candidates) == 1:
		return candidates[0]

	if candidates:
		logger.error(f"MIDI output '{device_name}' is ambiguous: {candidates}")

	return None


def select_output_device (device_name: typing.Optional[str] = None, interactive: typing.Optional[bool] = None) -> OutputSelection:

	"""
	Pick and open a MIDI output.

	Parameters:
		device_name: The ``midi.device_name`` config value.  Matched with
			:func:`match_device`.
		interactive: Whether to ask on the console when several outputs
			exist and none was named.  Defaults to whether stdin is a terminal;
			otherwise the first output is used.

	Returns ``(name, port)``, or ``(None, None)`` when no output could be
	opened.  The engine runs silently in that case.
	"""

	try:
		outputs = mido.get_output_names()
	except Exception as e:
		logger.error(f"Could not list MIDI outputs: {e}")
		return None, None

	logger.info(f"Available MIDI outputs: {outputs}")

	if not outputs:
		logger.error("No MIDI output devices found.")
		return None, None

	if device_name is not None:
		selected = match_device(device_name, outputs)

		if selected is None:
			logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
			return None, None

		return _open(selected)

	if len(outputs) == 1:
		logger.info(f"One MIDI output found - using '{outputs[0]}'")
		return _open(outputs[0])

	if interactive is None:
		interactive = sys.stdin.isatty()

	if not interactive:
		logger.warning(f"Several MIDI outputs and no midi.device_name set - using '{outputs[0]}'")
		return _open(outputs[0])

	selected = _prompt_for_device(outputs)
	result = _open(selected)

	if result[1] is not None:
		print(f"\nTo skip this prompt, add to config.yaml:\n\n  midi:\n    device_name: \"{selected}\"\n")

	return result


def _prompt_for_device (outputs: typing.Sequence[str]) -> str:

	print("\nAvailable MIDI output devices:\n")

	for i, name in enumerate(outputs, 1):
		print(f"  {i}. {name}")

	print()

	while True:
		try:
			choice = int(input(f"Select a device (1-{len(outputs)}): "))
		except ValueError:
			choice = 0
		except EOFError:
			logger.warning(f"No answer on stdin - using '{outputs[0]}'")
			return outputs[0]

		if 1 <= choice <= len(outputs):
			return outputs[choice - 1]

		print(f"Enter a number between 1 and {len(outputs)}.")


def _open (name: str) -> OutputSelection:

	try:
		port = mido.open_output(name)
	except Exception as e:
		logger.error(f"Failed to open MIDI output '{name}': {e}")
		return None, None

	logger.info(f"Opened MIDI output: {name}")
	return name, port


def send (midi_out: typing.Optional[typing.Any], message: mido.Message) -> None:

	"""
	Send a message if there is an output, logging (not raising) on failure.
	"""

	if midi_out is None:
		return

	try:
		midi_out.send(message)
	except Exception:
		logger.exception("MIDI send failed (device may be disconnected)")


def scale_to_cc (value: float, bounds: typing.Tuple[float, float]) -> int:

	"""
	Map ``value`` within ``bounds`` onto a 7-bit controller value, clamped to 0-127.
	"""

	low, high = bounds

	if high == low:
		return 0

	ratio = (value - low) / (high - low)

	return max(0, min(127, int(round(ratio * 127))))


def all_notes_off (midi_out: typing.Optional[typing.Any], channels: typing.Iterable[int]) -> None:

	"""
	Send "All Notes Off" (CC 123) on each channel.
	"""

	for channel in channels:
		send(midi_out, mido.Message("control_change", channel=channel, control=acidloop.constants.CC_ALL_NOTES_OFF, value=0))
