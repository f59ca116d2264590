"""FastAPI routes for shopping sessions."""

from typing import Any, List, Literal, Optional

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from controllers.session_controller import (
	describe_session,
	end_session,
	submit_buy,
	submit_detection,
	submit_pickup,
	submit_question,
)
from models.session_models import PICKUP_EVENT_TYPE, PickupEvent, SearchSeed

router = APIRouter()


class SearchSeedPayload(BaseModel):
	visible_text: List[str] = []
	brand_hint: Optional[str] = None
	category_hint: Optional[str] = None
	visual_description: Optional[str] = None


class PickupEventPayload(BaseModel):
	event_id: str
	event_type: Literal["PICKUP_DETECTED"] = PICKUP_EVENT_TYPE
	confidence: float = Field(ge=0.0, le=1.0)
	frame_ref: str
	search_seed: SearchSeedPayload

	def to_event(self) -> PickupEvent:
		seed = self.search_seed
		return PickupEvent(
			event_id=self.event_id,
			confidence=self.confidence,
			frame_ref=self.frame_ref,
			search_seed=SearchSeed(
				visible_text=tuple(seed.visible_text),
				brand_hint=seed.brand_hint,
				category_hint=seed.category_hint,
				visual_description=seed.visual_description,
			),
		)


class QuestionPayload(BaseModel):
	question: str = ""


class BuyPayload(BaseModel):
	product_id: str = ""


def _parse_pickup_event(body: Any) -> PickupEvent:
	try:
		return PickupEventPayload.model_validate(body).to_event()
	except ValidationError as exc:
		raise HTTPException(status_code=400, detail="Invalid pickup event") from exc


@router.post("/sessions/{session_id}/pickup")
async def pickup_route(request: Request, session_id: str, body: Any = Body(default=None)):
	event = _parse_pickup_event(body)
	try:
		return await submit_pickup(request, session_id, event)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sessions/{session_id}/detections")
async def detection_route(request: Request, session_id: str, body: Any = Body(default=None)):
	try:
		return await submit_detection(request, session_id, body)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/webhooks/pickup")
async def pickup_webhook_route(request: Request, body: Any = Body(default=None)):
	if not isinstance(body, dict):
		raise HTTPException(status_code=400, detail="Missing session_id")
	session_id = body.get("session_id")
	if not isinstance(session_id, str) or not session_id:
		raise HTTPException(status_code=400, detail="Missing session_id")
	event = _parse_pickup_event(body.get("event"))
	try:
		return await submit_pickup(request, session_id, event)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sessions/{session_id}/question")
async def question_route(request: Request, session_id: str, payload: QuestionPayload):
	try:
		return await submit_question(request, session_id, payload.question)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sessions/{session_id}/buy")
async def buy_route(request: Request, session_id: str, payload: BuyPayload):
	try:
		return await submit_buy(request, session_id, payload.product_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sessions/{session_id}/end")
async def end_route(request: Request, session_id: str):
	try:
		return await end_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/sessions/{session_id}")
async def session_snapshot_route(request: Request, session_id: str):
	return describe_session(request, session_id)
