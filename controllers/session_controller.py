"""Session entry points invoked by the HTTP routes."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from models.session_models import PickupEvent
from services.realtime.orchestrator import ShoppingOrchestrator
from services.realtime.pickup_filter import PickupFilter, PickupSuppressed
from services.realtime.session_store import SessionStore


def _orchestrator(request: Request) -> ShoppingOrchestrator:
	return request.app.state.orchestrator


async def submit_pickup(request: Request, session_id: str, event: PickupEvent) -> Dict[str, Any]:
	"""Run the pickup flow for an already-normalized event."""
	await _orchestrator(request).handle_pickup(session_id, event)
	return {"status": "accepted"}


async def submit_detection(request: Request, session_id: str, payload: Any) -> Dict[str, Any]:
	"""Admit a raw detector result and run the pickup flow when it passes."""
	pickup_filter: PickupFilter = request.app.state.pickup_filter
	decision = pickup_filter.handle(session_id, payload)
	if isinstance(decision, PickupSuppressed):
		return {"status": "ignored", "reason": decision.reason.value}
	await _orchestrator(request).handle_pickup(session_id, decision.event)
	return {"status": "accepted"}


async def submit_question(request: Request, session_id: str, question: str) -> Dict[str, Any]:
	if not question.strip():
		raise HTTPException(status_code=400, detail="Missing question")
	await _orchestrator(request).handle_question(session_id, question)
	return {"status": "accepted"}


async def submit_buy(request: Request, session_id: str, product_id: str) -> Dict[str, Any]:
	if not product_id.strip():
		raise HTTPException(status_code=400, detail="Missing product_id")
	await _orchestrator(request).handle_buy(session_id, product_id)
	return {"status": "accepted"}


async def end_session(request: Request, session_id: str) -> Dict[str, Any]:
	await _orchestrator(request).handle_end(session_id)
	return {"status": "ended"}


def describe_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return a snapshot of a session's threads without creating it."""
	store: SessionStore = request.app.state.session_store
	state = store.find_session(session_id)
	if state is None:
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
	return {
		"session_id": state.session_id,
		"active_thread_id": state.active_thread_id,
		"created_at": state.created_at,
		"threads": [
			{
				"thread_id": thread.thread_id,
				"query": thread.query,
				"message_count": len(thread.messages),
				"created_at": thread.created_at,
			}
			for thread in state.threads.values()
		],
	}
