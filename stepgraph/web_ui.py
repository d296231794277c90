import asyncio
import json
import logging
import typing
import weakref

import websockets
import websockets.asyncio.server
import websockets.exceptions

if typing.TYPE_CHECKING:
	from stepgraph.session import Session


logger = logging.getLogger(__name__)


def apply_command (session: "Session", command: typing.Dict[str, typing.Any]) -> None:

	"""
	Apply one JSON command from a browser client to the session.

	Commands look like ``{"type": "toggle", "pitch": "C4", "step": 0}``.
	Raises ``ValueError`` / ``KeyError`` / ``TypeError`` / ``OverflowError`` on
	malformed input.
	"""

	kind = command["type"]

	if kind == "toggle":
		session.toggle(str(command["pitch"]), int(command["step"]))

	elif kind == "clear":
		session.clear()

	elif kind == "mode":
		session.set_mode(str(command["mode"]))

	elif kind == "bpm":
		session.set_bpm(float(command["bpm"]))

	elif kind == "resize":
		session.resize(float(command["width"]), float(command["height"]))

	elif kind == "fit":
		session.fit()

	elif kind == "control":
		session.control(str(command["name"]), command["value"])

	elif kind == "play":
		asyncio.get_running_loop().create_task(session.start())

	elif kind == "stop":
		asyncio.get_running_loop().create_task(session.stop())

	else:
		raise ValueError(f"Unknown command type {kind!r}")


class WebUI:

	"""
	WebSocket bridge between a session and browser graph views.

	Streams the grid, the graph scene and playback state to every connected
	client ten times a second, and applies the commands clients send back
	(toggles, mode, tempo, resize, transport, synth controls).
	"""

	def __init__ (self, session: "Session", ws_port: int = 8765) -> None:

		self.session_ref = weakref.ref(session)
		self.ws_port = ws_port
		self._ws_server: typing.Optional[websockets.asyncio.server.Server] = None
		self._broadcast_task: typing.Optional[asyncio.Task] = None
		self._clients: typing.Set[websockets.asyncio.server.ServerConnection] = set()


	async def start (self) -> None:

		try:
			self._ws_server = await websockets.asyncio.server.serve(self._handle_client, "0.0.0.0", self.ws_port)
			self._broadcast_task = asyncio.create_task(self._broadcast_loop())
			logger.info(f"Graph view WebSocket listening on ws://localhost:{self.ws_port}")
		except OSError as e:
			logger.error(f"WebSocket server error: {e}")


	async def _handle_client (self, websocket: websockets.asyncio.server.ServerConnection) -> None:

		self._clients.add(websocket)

		try:
			async for message in websocket:
				self._handle_message(message)
		except websockets.exceptions.ConnectionClosed:
			pass
		finally:
			self._clients.discard(websocket)


	def _handle_message (self, message: typing.Union[str, bytes]) -> None:

		session = self.session_ref()

		if session is None:
			return

		try:
			apply_command(session, json.loads(message))
		except (ValueError, KeyError, TypeError, OverflowError) as e:
			logger.warning(f"Ignoring bad command from browser {message!r}: {e}")


	async def _broadcast_loop (self) -> None:

		while True:
			await asyncio.sleep(0.1)

			if not self._clients:
				continue

			session = self.session_ref()
			if session is None:
				break

			websockets.asyncio.server.broadcast(self._clients, json.dumps(self._get_state(session)))


	def _get_state (self, session: "Session") -> typing.Dict[str, typing.Any]:

		"""
		Return everything a browser needs to draw the piano roll and the graph.
		"""

		state: typing.Dict[str, typing.Any] = {
			"bpm": session.bpm,
			"mode": session.mode,
			"pending_mode": session.clock.state.pending_mode,
			"playing": session.playing,
			"step": session.current_step,
			"grid": session.grid.rows(),
			"graph": None
		}

		snapshot = getattr(session.graph, "snapshot", None)

		if callable(snapshot):
			state["graph"] = snapshot()

		return state


	async def stop (self) -> None:

		if self._broadcast_task:
			self._broadcast_task.cancel()
			self._broadcast_task = None

		if self._ws_server:
			self._ws_server.close()
			await self._ws_server.wait_closed()
			self._ws_server = None
