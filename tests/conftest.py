import heapq
import itertools
import typing

import mido
import pytest


class FakeMidiOut:

	"""MIDI output stub that records every message sent to it."""

	def __init__ (self, name: str = "Dummy MIDI") -> None:

		self.name = name
		self.messages: typing.List[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.messages.append(message)

	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True

	def of_type (self, message_type: str) -> typing.List[mido.Message]:

		"""Return recorded messages of one type."""

		return [m for m in self.messages if m.type == message_type]


class FakeTimerHandle:

	"""Stand-in for ``asyncio.TimerHandle``."""

	def __init__ (self, when: float, callback: typing.Callable[..., typing.Any], args: typing.Tuple[typing.Any, ...]) -> None:

		self._when = when
		self._callback = callback
		self._args = args
		self.cancelled = False

	def when (self) -> float:

		return self._when

	def cancel (self) -> None:

		self.cancelled = True

	def run (self) -> None:

		self._callback(*self._args)


class FakeLoop:

	"""
	Minimal event loop whose clock only moves when a test advances it.

	Implements the two methods timers need: ``time()`` and ``call_later()``.
	"""

	def __init__ (self) -> None:

		self.now = 0.0
		self._queue: typing.List[typing.Tuple[float, int, FakeTimerHandle]] = []
		self._counter = itertools.count()

	def time (self) -> float:

		return self.now

	def call_later (self, delay: float, callback: typing.Callable[..., typing.Any], *args: typing.Any) -> FakeTimerHandle:

		handle = FakeTimerHandle(self.now + delay, callback, args)
		heapq.heappush(self._queue, (handle.when(), next(self._counter), handle))
		return handle

	def pending (self) -> typing.List[FakeTimerHandle]:

		"""Handles that are scheduled and not cancelled."""

		return [handle for _, _, handle in self._queue if not handle.cancelled]

	def advance (self, seconds: float) -> None:

		"""Move time forward, running every timer that falls due on the way."""

		target = self.now + seconds

		while self._queue and self._queue[0][0] <= target + 1e-12:

			when, _, handle = heapq.heappop(self._queue)

			if handle.cancelled:
				continue

			self.now = when
			handle.run()

		self.now = target


# Every fake output opened while ``patch_midi`` is active, oldest first.
_opened_outputs: typing.List[FakeMidiOut] = []


def _fake_get_output_names () -> typing.List[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a recording fake output regardless of the name."""

	fake = FakeMidiOut(name)
	_opened_outputs.append(fake)
	return fake


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> typing.List[FakeMidiOut]:

	"""Patch mido to use fake MIDI outputs; returns the list of outputs opened."""

	_opened_outputs.clear()
	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)
	return _opened_outputs


@pytest.fixture
def fake_loop () -> FakeLoop:

	"""A hand-driven event loop for timer tests."""

	return FakeLoop()


@pytest.fixture
def midi_out () -> FakeMidiOut:

	"""A standalone recording MIDI output."""

	return FakeMidiOut()


class StubRandom:

	"""
	``random.Random`` replacement that returns a fixed value, for forcing branches.
	"""

	def __init__ (self, value: float) -> None:

		self.value = value

	def random (self) -> float:

		return self.value

	def randrange (self, stop: int) -> int:

		return min(stop - 1, int(self.value * stop))

	def getrandbits (self, k: int) -> int:

		return 0
