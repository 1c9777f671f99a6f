import asyncio
import logging
import math
import random
import signal
import typing

import acidloop.autopilot
import acidloop.clock
import acidloop.constants
import acidloop.midi_utils
import acidloop.osc
import acidloop.parameter
import acidloop.pattern
import acidloop.units


logger = logging.getLogger(__name__)


class Engine:

	"""
	The whole program: transport, instruments, effects and the autopilot.

	Building an ``Engine`` opens the MIDI output and wires every part together
	through parameters.  Nothing plays until :meth:`play` (or ``await run()``)
	starts the clock.

	Example:
		```python
		import acidloop

		engine = acidloop.Engine(output_device="TB-3", bpm=138, seed=7)
		engine.osc()
		engine.play()
		```
	"""

	def __init__ (
		self,
		output_device: typing.Optional[str] = None,
		bpm: float = acidloop.constants.DEFAULT_BPM,
		shuffle: float = 0.0,
		seed: typing.Optional[int] = None,
		loop: typing.Optional[asyncio.AbstractEventLoop] = None
	) -> None:

		"""
		Parameters:
			output_device: MIDI output name.  When omitted the only available
				device is used, or the user is asked to pick one.
			bpm: Initial tempo.
			shuffle: Swing amount in ``[0, 1)``.
			seed: Makes every random decision repeatable.  Each generator,
				wanderer and the autopilot get their own stream derived from it.
			loop: Event loop for timers.  Defaults to the loop ``run()`` runs on.
		"""

		self.seed = seed
		master = random.Random(seed) if seed is not None else None

		def child_rng () -> random.Random:
			if master is None:
				return random.Random()
			return random.Random(master.randint(0, 2 ** 63))

		self.output_device_name, self.midi_out = acidloop.midi_utils.select_output_device(output_device)

		self.clock = acidloop.clock.ClockUnit(bpm=bpm, shuffle=shuffle, loop=loop)
		self.delay = acidloop.units.DelayUnit(self.midi_out)

		# Delay time follows the tempo.
		self.clock.bpm.subscribe(self._sync_delay_time)

		self.gen = acidloop.pattern.ThreeOhGen(rng=child_rng())

		self.notes = [
			acidloop.units.ThreeOhUnit(self.gen, self.midi_out, acidloop.constants.BASS_CHANNEL_1, name="bass1"),
			acidloop.units.ThreeOhUnit(self.gen, self.midi_out, acidloop.constants.BASS_CHANNEL_2, name="bass2"),
		]
		self.drums = acidloop.units.NineOhUnit(self.midi_out, rng=child_rng())

		self.master_volume = acidloop.parameter.parameter("Volume", (0, 1), 0.5)
		self._volume_sinks = [
			acidloop.units.CcSink(self.master_volume, self.midi_out, channel, acidloop.constants.CC_VOLUME)
			for channel in self.channels
		]

		self.clock.current_step.subscribe(self._step_instruments)

		self.autopilot = acidloop.autopilot.AutoPilot(self, loop=loop, rng=child_rng())

		self._osc_config: typing.Optional[typing.Dict[str, typing.Any]] = None
		self.osc_bridge: typing.Optional[acidloop.osc.OscBridge] = None
		self._stop_event: typing.Optional[asyncio.Event] = None
		self._closed = False


	@property
	def channels (self) -> typing.List[int]:

		"""Every MIDI channel the engine plays on."""

		return sorted({unit.channel for unit in self.notes} | {self.drums.channel})


	def parameters (self) -> typing.Dict[str, acidloop.parameter.Parameter[typing.Any]]:

		"""
		Every controllable parameter, keyed by ``"<unit>/<name>"``.
		"""

		params: typing.Dict[str, acidloop.parameter.Parameter[typing.Any]] = {
			"clock/bpm": self.clock.bpm,
			"master/volume": self.master_volume,
		}

		for unit in self.notes:
			for name, param in unit.parameters.items():
				params[f"{unit.name}/{name}"] = param

		for name, param in self.delay.parameters.items():
			params[f"{self.delay.name}/{name}"] = param

		for voice, mute in zip(self.drums.VOICES, self.drums.mutes):
			params[f"{self.drums.name}/mute_{voice.lower()}"] = mute

		return params


	def switches (self) -> typing.Dict[str, acidloop.parameter.Parameter[bool]]:

		"""The autopilot switches, keyed by short name."""

		return {
			"patterns": self.autopilot.pattern_enabled,
			"knobs": self.autopilot.dials_enabled,
			"mutes": self.autopilot.mutes_enabled,
		}


	def set_bpm (self, bpm: float) -> None:

		"""
		Change the tempo immediately.

		Tempos outside ``BPM_BOUNDS`` are clamped.  Raises ``ValueError`` for a
		tempo that is not a positive finite number, leaving the current tempo
		untouched.
		"""

		if not math.isfinite(bpm) or bpm <= 0:
			raise ValueError(f"BPM must be a positive number, got {bpm!r}")

		low, high = acidloop.constants.BPM_BOUNDS
		clamped = max(low, min(high, bpm))

		if clamped != bpm:
			logger.warning(f"BPM {bpm} outside {low}-{high}, using {clamped}")

		self.clock.bpm.value = clamped


	def new_notes (self) -> None:

		"""Ask for a new note set; both bass lines change at the next bar."""

		logger.info("New note set requested")
		self.gen.new_notes.value = True


	def pause (self) -> None:

		"""Stop the clock and release held notes.  Knobs keep wandering."""

		self.clock.stop()

		for unit in self.notes:
			unit.note_off()

		self.drums.release()


	def resume (self) -> None:

		"""Restart the clock from where it stopped."""

		if self._closed:
			logger.warning("Engine has been stopped; not resuming")
			return

		self.clock.start()


	def osc (self, receive_port: int = 9000, send_port: int = 9001, send_host: str = "127.0.0.1") -> None:

		"""
		Enable the OSC bridge when playback starts.

		See :mod:`acidloop.osc` for the address space.
		"""

		self._osc_config = {
			"receive_port": receive_port,
			"send_port": send_port,
			"send_host": send_host,
		}


	def play (self) -> None:

		"""
		Start playing and block until interrupted (e.g. Ctrl+C).
		"""

		try:
			asyncio.run(self.run())

		except KeyboardInterrupt:
			pass


	async def run (self) -> None:

		"""
		Async entry point: start everything and run until :meth:`request_stop` or a signal.

		An engine plays once: after :meth:`stop` has closed the output, build a
		new one instead of running this one again.
		"""

		if self._closed:
			raise RuntimeError("Engine has been stopped and its MIDI output closed")

		self._stop_event = asyncio.Event()
		loop = asyncio.get_running_loop()

		for sig in (signal.SIGINT, signal.SIGTERM):
			loop.add_signal_handler(sig, self.request_stop)

		try:
			if self._osc_config is not None:
				self.osc_bridge = acidloop.osc.OscBridge(self, **self._osc_config)
				await self.osc_bridge.start()

			self.clock.start()
			self.autopilot.start()

			logger.info("Playing. Press Ctrl+C to stop.")

			await self._stop_event.wait()

		finally:
			for sig in (signal.SIGINT, signal.SIGTERM):
				loop.remove_signal_handler(sig)

			await self.stop()


	def request_stop (self) -> None:

		"""Ask a running :meth:`run` to shut down."""

		if self._stop_event is not None:
			self._stop_event.set()


	async def stop (self) -> None:

		"""
		Stop the clock and the autopilot, silence every channel and close the output.
		"""

		logger.info("Stopping...")

		self.clock.stop()
		self.autopilot.stop()

		for unit in self.notes:
			unit.note_off()

		self.drums.release()

		acidloop.midi_utils.all_notes_off(self.midi_out, self.channels)

		if self.osc_bridge is not None:
			await self.osc_bridge.stop()
			self.osc_bridge = None

		if self.midi_out is not None:
			try:
				self.midi_out.close()
			except Exception:
				logger.exception("Failed to close MIDI output")
			self.midi_out = None

		self._closed = True

		logger.info("Stopped")


	def _step_instruments (self, step: int) -> None:

		# Nothing plays while stopped, including the replay on subscribe.
		if not self.clock.running:
			return

		for unit in self.notes:
			unit.step(step)

		self.drums.step(step)


	def _sync_delay_time (self, bpm: float) -> None:

		self.delay.delay_time.value = acidloop.constants.DELAY_BEAT_FRACTION * (60.0 / bpm)
