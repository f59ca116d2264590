"""Fan payloads out to every live listener of a session."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Protocol, Set

from models.payloads import AgentPayload, payload_to_wire

LOGGER = logging.getLogger(__name__)


class RoomPublisher(Protocol):
	"""Secondary transport (e.g. a voice-room data channel) keyed by session id."""

	async def publish(self, room: str, data: bytes) -> None: ...


class StreamHub:
	"""Broadcast sink: websocket connections per session plus an optional room publisher.

	``broadcast`` never raises; delivery failures are logged and the failing
	socket is dropped.
	"""

	def __init__(self, room_publisher: Optional[RoomPublisher] = None) -> None:
		self.room_publisher = room_publisher
		self._sockets: Dict[str, Set[Any]] = {}

	def register(self, session_id: str, websocket: Any) -> int:
		"""Attach a websocket to a session and return the session's connection count."""
		sockets = self._sockets.setdefault(session_id, set())
		sockets.add(websocket)
		LOGGER.info("Session %s now has %d connection(s)", session_id, len(sockets))
		return len(sockets)

	def unregister(self, session_id: str, websocket: Any) -> None:
		sockets = self._sockets.get(session_id)
		if not sockets:
			return
		sockets.discard(websocket)
		if not sockets:
			del self._sockets[session_id]

	def connection_count(self, session_id: str) -> int:
		return len(self._sockets.get(session_id, ()))

	async def broadcast(self, session_id: str, payload: AgentPayload) -> None:
		"""Deliver one payload to all listeners of ``session_id``."""
		message = json.dumps(payload_to_wire(payload))
		sockets = list(self._sockets.get(session_id, ()))
		if not sockets:
			LOGGER.debug("No sockets connected for session %s (%s)", session_id, payload.type)
		for websocket in sockets:
			try:
				await websocket.send_text(message)
			except Exception as exc:
				LOGGER.warning("Dropping socket for session %s after send failure: %s", session_id, exc)
				self.unregister(session_id, websocket)

		if self.room_publisher is not None:
			try:
				await self.room_publisher.publish(session_id, message.encode("utf-8"))
			except Exception as exc:
				LOGGER.warning("Room publish failed for session %s: %s", session_id, exc)
