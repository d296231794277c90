import asyncio
import logging
import typing


logger = logging.getLogger(__name__)

CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	Named events with sync and async listeners.

	The clock emits ``"step"``, ``"start"``, ``"stop"``, ``"mode"`` and
	``"bpm"``; the session emits ``"grid"`` after every rebuild. Listeners run
	in registration order.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def on (self, event_name: str, callback: CallbackType) -> CallbackType:

		"""
		Register a callback for an event name and return it.
		"""

		self._listeners.setdefault(event_name, []).append(callback)

		return callback


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if callback not in self._listeners.get(event_name, []):
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def has_listeners (self, event_name: str) -> bool:

		"""
		Return True when at least one callback is registered for the event.
		"""

		return bool(self._listeners.get(event_name))


	def emit_sync (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for the event immediately.

		Async listeners are not allowed here - the tick path never awaits.
		"""

		for callback in list(self._listeners.get(event_name, [])):

			if asyncio.iscoroutinefunction(callback):
				raise ValueError(f"Async callback registered for synchronous event {event_name!r}")

			callback(*args, **kwargs)


	async def emit_async (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call sync listeners and await async listeners together.
		"""

		tasks: typing.List[typing.Awaitable[typing.Any]] = []

		for callback in list(self._listeners.get(event_name, [])):

			if asyncio.iscoroutinefunction(callback):
				tasks.append(callback(*args, **kwargs))

			else:
				callback(*args, **kwargs)

		if tasks:
			await asyncio.gather(*tasks)
