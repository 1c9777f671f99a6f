"""OSC integration for remote control and state broadcasting.

Enable it by calling ``engine.osc()`` before ``engine.play()``.  The bridge
listens on a UDP port (default 9000) for control messages and sends
parameter changes to a target host/port (default 127.0.0.1:9001), so a
tablet or a visualiser can follow and steer the engine.

Receive Handlers
────────────────
- ``/bpm <number>``: Set tempo
- ``/new_notes``: Ask for a new note set
- ``/pause``, ``/resume``: Stop and restart the clock
- ``/switch/<patterns|knobs|mutes> <0|1>``: Toggle an autopilot switch
- ``/param/<unit>/<name> <number>``: Set a parameter (e.g. ``/param/bass1/cutoff 420``)

Send Events
───────────
- ``/step <int>``: Every step
- ``/param/<unit>/<name> <value>``: Whenever a parameter is written
- ``/switch/<name> <0|1>``: Whenever a switch is flipped
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

if typing.TYPE_CHECKING:
	from acidloop.engine import Engine


logger = logging.getLogger(__name__)


class OscBridge:

	"""Async OSC server/client mirroring engine parameters."""

	def __init__ (
		self,
		engine: "Engine",
		receive_port: int = 9000,
		send_port: int = 9001,
		send_host: str = "127.0.0.1"
	) -> None:

		self._engine = engine
		self._receive_port = receive_port
		self._send_port = send_port
		self._send_host = send_host

		self._server: typing.Optional[typing.Any] = None
		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None
		self._dispatcher = pythonosc.dispatcher.Dispatcher()
		self._subscribed = False

		self._dispatcher.map("/bpm", self._handle_bpm)
		self._dispatcher.map("/new_notes", self._handle_new_notes)
		self._dispatcher.map("/pause", self._handle_pause)
		self._dispatcher.map("/resume", self._handle_resume)
		self._dispatcher.map("/switch/*", self._handle_switch)
		self._dispatcher.map("/param/*", self._handle_param)


	async def start (self) -> None:

		"""Start the OSC server and client, and begin broadcasting."""

		self._client = pythonosc.udp_client.SimpleUDPClient(self._send_host, self._send_port)

		self._server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			("0.0.0.0", self._receive_port),
			self._dispatcher,
			asyncio.get_running_loop()
		)

		transport, _ = await self._server.create_serve_endpoint()
		self._transport = transport

		# Parameters have no unsubscribe, so broadcasting is wired once and
		# goes quiet when the client is dropped.
		if not self._subscribed:
			self._subscribe_all()
			self._subscribed = True

		logger.info(f"OSC listening on :{self._receive_port}, sending to {self._send_host}:{self._send_port}")


	async def stop (self) -> None:

		"""Stop the OSC server and stop sending."""

		self._client = None

		if self._transport:
			self._transport.close()
			self._transport = None
			logger.info("OSC server stopped")


	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message."""

		if self._client:
			try:
				self._client.send_message(address, args)
			except Exception as e:
				logger.warning(f"OSC send error: {e}")


	def _subscribe_all (self) -> None:

		self._engine.clock.current_step.subscribe(lambda step: self.send("/step", int(step)))

		for address, param in self._engine.parameters().items():
			param.subscribe(self._make_forwarder(f"/param/{address}"))

		for name, switch in self._engine.switches().items():
			switch.subscribe(self._make_forwarder(f"/switch/{name}", as_int=True))


	def _make_forwarder (self, address: str, as_int: bool = False) -> typing.Callable[[typing.Any], None]:

		def forward (value: typing.Any) -> None:
			self.send(address, int(value) if as_int else value)

		return forward


	# Handlers

	def _handle_bpm (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		try:
			self._engine.set_bpm(float(args[0]))
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC BPM argument: {args[0]}")

	def _handle_new_notes (self, address: str, *args: typing.Any) -> None:
		self._engine.new_notes()

	def _handle_pause (self, address: str, *args: typing.Any) -> None:
		self._engine.pause()

	def _handle_resume (self, address: str, *args: typing.Any) -> None:
		self._engine.resume()

	def _handle_switch (self, address: str, *args: typing.Any) -> None:
		# address is like /switch/mutes
		if not args:
			return
		parts = address.split("/")
		if len(parts) < 3:
			return
		switch = self._engine.switches().get(parts[2])
		if switch is None:
			logger.warning(f"Unknown OSC switch: {address}")
			return
		switch.value = bool(args[0])

	def _handle_param (self, address: str, *args: typing.Any) -> None:
		# address is like /param/bass1/cutoff
		if not args:
			return
		key = address[len("/param/"):]
		param = self._engine.parameters().get(key)
		if param is None:
			logger.warning(f"Unknown OSC parameter: {address}")
			return
		try:
			value = float(args[0])
			# Tempo goes through the engine so bad values never reach the clock.
			if param is self._engine.clock.bpm:
				self._engine.set_bpm(value)
			else:
				param.value = value
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC value for {key}: {args[0]}")
