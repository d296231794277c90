"""OSC control surface for a running session.

Enable it with ``session.osc()`` before ``session.play()``. The server
listens on a UDP port (default 9000) and sends playback state to a target
host/port (default 127.0.0.1:9001).

Receive
───────
- ``/toggle <pitch> <step>``: Flip a grid cell (``/toggle C4 0``)
- ``/clear``: Clear the grid
- ``/mode <name>``: Playback mode - forward, reverse or pingpong
- ``/bpm <number>``: Set tempo
- ``/play``, ``/stop``: Transport
- ``/fit``: Re-run the graph layout
- ``/resize <width> <height>``: Graph viewport size
- ``/control/<name> <value>``: Synth control pass-through (``/control/filter_frequency 0.7``).
  Names: filter_frequency, filter_q, filter_type (lowpass, bandpass, highpass),
  attack, decay, sustain, release, reverb_send, reverb_decay, waveform
  (sine, square, sawtooth, triangle)

Send
────
- ``/step <int>``: Every step, in time with the audio
- ``/bpm <float>``: On tempo change
- ``/mode <string> <string>``: Active and pending mode on mode change
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

if typing.TYPE_CHECKING:
	import stepgraph.clock
	from stepgraph.session import Session


logger = logging.getLogger(__name__)


class OscServer:

	"""Async OSC server/client bound to one session."""

	def __init__ (
		self,
		session: "Session",
		receive_port: int = 9000,
		send_port: int = 9001,
		send_host: str = "127.0.0.1"
	) -> None:

		self._session = session
		self._receive_port = receive_port
		self._send_port = send_port
		self._send_host = send_host

		self._server: typing.Optional[typing.Any] = None
		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None
		self._dispatcher = pythonosc.dispatcher.Dispatcher()

		self._dispatcher.map("/toggle", self._handle_toggle)
		self._dispatcher.map("/clear", self._handle_clear)
		self._dispatcher.map("/mode", self._handle_mode)
		self._dispatcher.map("/bpm", self._handle_bpm)
		self._dispatcher.map("/play", self._handle_play)
		self._dispatcher.map("/stop", self._handle_stop)
		self._dispatcher.map("/fit", self._handle_fit)
		self._dispatcher.map("/resize", self._handle_resize)
		self._dispatcher.map("/control/*", self._handle_control)


	async def start (self) -> None:

		"""Start listening and begin sending playback state."""

		self._client = pythonosc.udp_client.SimpleUDPClient(self._send_host, self._send_port)

		self._server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			("0.0.0.0", self._receive_port),
			self._dispatcher,
			asyncio.get_running_loop()  # type: ignore[arg-type]
		)

		transport, _ = await self._server.create_serve_endpoint()
		self._transport = transport

		events = self._session.clock.events
		events.on("step", self._send_step)
		events.on("bpm", self._send_bpm)
		events.on("mode", self._send_mode)

		logger.info(f"OSC listening on :{self._receive_port}, sending to {self._send_host}:{self._send_port}")


	async def stop (self) -> None:

		"""Stop the OSC server."""

		if self._transport is None:
			return

		events = self._session.clock.events
		events.off("step", self._send_step)
		events.off("bpm", self._send_bpm)
		events.off("mode", self._send_mode)

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


	def map (self, address: str, handler: typing.Callable) -> None:

		"""Register a custom OSC handler."""

		self._dispatcher.map(address, handler)


	# Outgoing

	def _send_step (self, tick: "stepgraph.clock.Tick") -> None:
		self.send("/step", tick.step)

	def _send_bpm (self, bpm: float) -> None:
		self.send("/bpm", float(bpm))

	def _send_mode (self, mode: str, pending_mode: typing.Optional[str]) -> None:
		self.send("/mode", mode, pending_mode or "")


	# Handlers

	def _handle_toggle (self, address: str, *args: typing.Any) -> None:
		if len(args) < 2:
			logger.warning(f"OSC /toggle needs <pitch> <step>, got {args}")
			return
		try:
			self._session.toggle(str(args[0]), int(args[1]))
		except (ValueError, TypeError, OverflowError) as e:
			logger.warning(f"Invalid OSC toggle {args}: {e}")

	def _handle_clear (self, address: str, *args: typing.Any) -> None:
		self._session.clear()

	def _handle_mode (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		try:
			self._session.set_mode(str(args[0]))
		except ValueError as e:
			logger.warning(f"Invalid OSC mode: {e}")

	def _handle_bpm (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		try:
			self._session.set_bpm(float(args[0]))
		except (ValueError, TypeError, OverflowError):
			logger.warning(f"Invalid OSC BPM argument: {args[0]}")

	def _handle_play (self, address: str, *args: typing.Any) -> None:
		asyncio.get_running_loop().create_task(self._session.start())

	def _handle_stop (self, address: str, *args: typing.Any) -> None:
		asyncio.get_running_loop().create_task(self._session.stop())

	def _handle_fit (self, address: str, *args: typing.Any) -> None:
		self._session.fit()

	def _handle_resize (self, address: str, *args: typing.Any) -> None:
		if len(args) < 2:
			return
		try:
			self._session.resize(float(args[0]), float(args[1]))
		except (ValueError, TypeError, OverflowError):
			logger.warning(f"Invalid OSC resize arguments: {args}")

	def _handle_control (self, address: str, *args: typing.Any) -> None:
		# address is like /control/filter_frequency
		parts = address.split("/")
		if len(parts) < 3 or not args:
			return
		try:
			self._session.control(parts[2], args[0])
		except (ValueError, TypeError, OverflowError) as e:
			logger.warning(f"Invalid OSC control {address}: {e}")
