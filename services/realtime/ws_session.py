"""Dispatch inbound websocket commands to the orchestrator."""
from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import WebSocket

from services.realtime.orchestrator import ShoppingOrchestrator


class RealtimeSessionHandler:
	"""Route websocket messages for a single shopping session."""

	def __init__(self, orchestrator: ShoppingOrchestrator) -> None:
		self.orchestrator = orchestrator

	async def handle(self, websocket: WebSocket, session_id: str, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		try:
			if message_type == "question.ask":
				await self._ask(session_id, payload)
			elif message_type == "product.buy":
				await self._buy(session_id, payload)
			elif message_type == "session.end":
				await self.orchestrator.handle_end(session_id)
			else:
				raise ValueError("Unsupported message type.")
			await self._send(websocket, {"type": "command.ack", "request_id": request_id, "command": message_type})
		except Exception as exc:
			await self._send_error(websocket, request_id, str(exc))

	async def _ask(self, session_id: str, payload: Dict[str, Any]) -> None:
		question = payload.get("question")
		if not isinstance(question, str) or not question.strip():
			raise ValueError("Question text is required.")
		await self.orchestrator.handle_question(session_id, question)

	async def _buy(self, session_id: str, payload: Dict[str, Any]) -> None:
		product_id = payload.get("product_id")
		if not isinstance(product_id, str) or not product_id.strip():
			raise ValueError("product_id is required.")
		await self.orchestrator.handle_buy(session_id, product_id)

	async def _send_error(self, websocket: WebSocket, request_id: Any, detail: str) -> None:
		await self._send(websocket, {"type": "error", "request_id": request_id, "detail": detail})

	async def _send(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		await websocket.send_text(json.dumps(payload))
