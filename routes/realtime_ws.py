"""WebSocket endpoint streaming session payloads to clients."""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Query, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.realtime.stream_hub import StreamHub
from services.realtime.ws_session import RealtimeSessionHandler

router = APIRouter()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, session_id: Optional[str] = Query(default=None, alias="sessionId")):
	"""Register a listener for one session and accept inbound commands."""
	await websocket.accept()
	if not session_id:
		await websocket.close(code=1008, reason="Missing sessionId")
		return

	hub: StreamHub = websocket.app.state.stream_hub
	hub.register(session_id, websocket)
	handler = RealtimeSessionHandler(websocket.app.state.orchestrator)
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			except Exception:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid websocket frame"}))
				continue
			try:
				payload = json.loads(raw)
			except ValueError:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(websocket, session_id, payload)
	finally:
		hub.unregister(session_id, websocket)
