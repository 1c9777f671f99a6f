"""Step clock and fixed-period ticker.

The :class:`Clock` is a single-shot timer that re-arms itself after every
tick.  Each tick hands the bound callback the elapsed time and the current
step index, then schedules the next tick one step interval later.  Swing is
applied by stretching the interval after even steps and shrinking it after
odd steps by the same amount, so pairs of steps keep their straight length.

Only one tick is ever pending: every reschedule cancels the previous timer
handle first.  Tempo changes take effect immediately by rescheduling the
pending tick from "now".  Timing is interval-chained and not compensated for
event-loop latency; late ticks delay every following tick.

Timers run on an asyncio event loop (``call_later``).  The loop can be
injected, which lets tests drive time by hand; otherwise the running loop is
looked up the first time a timer is needed.
"""

import asyncio
import logging
import math
import typing

import acidloop.constants
import acidloop.parameter


logger = logging.getLogger(__name__)


TickCallback = typing.Callable[[float, int], typing.Any]


class Clock:

	"""
	A self-rescheduling step clock with optional shuffle.
	"""

	def __init__ (
		self,
		bpm: float,
		subdivisions: int = acidloop.constants.SUBDIVISIONS_PER_BEAT,
		shuffle: float = 0.0,
		loop: typing.Optional[asyncio.AbstractEventLoop] = None
	) -> None:

		"""
		Create a stopped clock.

		Parameters:
			bpm: Tempo in beats per minute.
			subdivisions: Steps per beat (4 = sixteenth notes).
			shuffle: Swing amount in ``[0, 1)``.  Even steps are followed by an
				interval of ``(1 + shuffle)`` steps, odd steps by ``(1 - shuffle)``.
			loop: Event loop used for timers.  Defaults to the running loop.
		"""

		if not math.isfinite(bpm) or bpm <= 0:
			raise ValueError("BPM must be positive")

		if subdivisions <= 0:
			raise ValueError("Subdivisions per beat must be positive")

		if not 0.0 <= shuffle < 1.0:
			raise ValueError("Shuffle must be in the range [0, 1)")

		self.bpm = bpm
		self.subdivisions = subdivisions
		self.shuffle = shuffle
		self.step_index = 0
		self.running = False

		self._callback: TickCallback = lambda elapsed_ms, step: None
		self._loop = loop
		self._handle: typing.Optional[asyncio.TimerHandle] = None
		self._origin: typing.Optional[float] = None


	@property
	def step_interval_ms (self) -> float:

		"""The unshuffled length of one step in milliseconds."""

		return (60000.0 / self.bpm) / self.subdivisions


	def interval_after (self, step: int) -> float:

		"""
		Return the interval in milliseconds that follows the tick for ``step``.
		"""

		factor = 1.0 + self.shuffle if step % 2 == 0 else 1.0 - self.shuffle

		return factor * self.step_interval_ms


	def bind (self, callback: TickCallback) -> None:

		"""
		Replace the tick callback.  It receives ``(elapsed_ms, step_index)``.
		"""

		self._callback = callback


	def set_bpm (self, bpm: float) -> None:

		"""
		Change the tempo.

		While running, the pending tick is cancelled and rescheduled one
		(unshuffled) step from now at the new tempo.
		"""

		if not math.isfinite(bpm) or bpm <= 0:
			raise ValueError("BPM must be positive")

		self.bpm = bpm

		logger.info(f"BPM set to {self.bpm:.2f}")

		if self.running:
			self._schedule_next(self.step_interval_ms)


	def start (self) -> None:

		"""
		Start ticking.  The first tick comes one step interval from now.
		"""

		if self.running:
			return

		self.running = True

		if self._origin is None:
			self._origin = self._get_loop().time()

		self._schedule_next(self.step_interval_ms)

		logger.info(f"Clock started at step {self.step_index}")


	def stop (self) -> None:

		"""
		Stop ticking.  The pending tick is cancelled; the step index is kept.
		"""

		self.running = False
		self._cancel()

		logger.info(f"Clock stopped at step {self.step_index}")


	def _tick (self) -> None:

		self._handle = None

		if not self.running:
			return

		assert self._origin is not None, "Clock origin is set on start()"

		elapsed_ms = (self._get_loop().time() - self._origin) * 1000.0
		step = self.step_index

		self._callback(elapsed_ms, step)

		self.step_index += 1
		self._schedule_next(self.interval_after(step))


	def _schedule_next (self, interval_ms: float) -> None:

		self._cancel()

		if self.running:
			self._handle = self._get_loop().call_later(interval_ms / 1000.0, self._tick)


	def _cancel (self) -> None:

		if self._handle is not None:
			self._handle.cancel()
			self._handle = None


	def _get_loop (self) -> asyncio.AbstractEventLoop:

		if self._loop is None:
			self._loop = asyncio.get_running_loop()

		return self._loop


class Interval:

	"""
	Call a function every ``seconds`` on the event loop until stopped.

	Used for modulation that runs on wall-clock time, independent of tempo.
	"""

	def __init__ (self, seconds: float, callback: typing.Callable[[], typing.Any], loop: typing.Optional[asyncio.AbstractEventLoop] = None) -> None:

		if seconds <= 0:
			raise ValueError("Interval must be positive")

		self.seconds = seconds
		self.running = False
		self._callback = callback
		self._loop = loop
		self._handle: typing.Optional[asyncio.TimerHandle] = None


	def start (self) -> None:

		"""Start firing.  The first call comes one period from now."""

		if self.running:
			return

		self.running = True
		self._schedule_next()


	def stop (self) -> None:

		"""Stop firing and cancel the pending call."""

		self.running = False

		if self._handle is not None:
			self._handle.cancel()
			self._handle = None


	def _fire (self) -> None:

		self._handle = None

		if not self.running:
			return

		self._callback()
		self._schedule_next()


	def _schedule_next (self) -> None:

		if not self.running:
			return

		if self._loop is None:
			self._loop = asyncio.get_running_loop()

		self._handle = self._loop.call_later(self.seconds, self._fire)


class ClockUnit:

	"""
	The program's transport: a tempo parameter, a clock and the step bus.

	``current_step`` is the only timing signal instruments and the autopilot
	observe.  It carries the clock's step index wrapped to one bar (0-15).
	"""

	def __init__ (
		self,
		bpm: float = acidloop.constants.DEFAULT_BPM,
		shuffle: float = 0.0,
		loop: typing.Optional[asyncio.AbstractEventLoop] = None
	) -> None:

		self.bpm = acidloop.parameter.parameter("BPM", acidloop.constants.BPM_BOUNDS, bpm)
		self.current_step = acidloop.parameter.parameter("Current Step", (0, acidloop.constants.STEPS_PER_BAR - 1), 0)

		self.clock = Clock(self.bpm.value, acidloop.constants.SUBDIVISIONS_PER_BEAT, shuffle, loop)

		self.bpm.subscribe(self.clock.set_bpm)
		self.clock.bind(self._on_tick)


	@property
	def running (self) -> bool:

		return self.clock.running


	def start (self) -> None:

		self.clock.start()


	def stop (self) -> None:

		self.clock.stop()


	def _on_tick (self, elapsed_ms: float, step: int) -> None:

		self.current_step.value = step % acidloop.constants.STEPS_PER_BAR
