"""Admission filter turning raw detector output into pickup events."""

from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union
from uuid import uuid4

from models.session_models import PickupEvent, SearchSeed

LOGGER = logging.getLogger(__name__)

UNKNOWN_FRAME_REF = "detector://unknown"
MAX_UNWRAP_DEPTH = 2


class SuppressReason(str, Enum):
	INVALID_RESULT = "invalid_result"
	PICKUP_NOT_DETECTED = "pickup_not_detected"
	LOW_CONFIDENCE = "low_confidence"
	DEBOUNCED = "debounced"


@dataclass(frozen=True)
class PickupAdmitted:
	event: PickupEvent


@dataclass(frozen=True)
class PickupSuppressed:
	reason: SuppressReason


AdmissionDecision = Union[PickupAdmitted, PickupSuppressed]


def _parse_json_text(value: Any) -> Any:
	if not isinstance(value, str):
		return value
	try:
		return json.loads(value)
	except ValueError:
		return None


def decode_detector_output(payload: Any) -> Optional[Dict[str, Any]]:
	"""Unwrap ``{"result": ...}`` envelopes (JSON text or objects), two levels deep.

	Returns the detector output dict, or None when the payload is malformed
	or still wrapped after two levels.
	"""
	if not isinstance(payload, dict) or "result" not in payload:
		return None
	decoded = _parse_json_text(payload["result"])
	for _ in range(MAX_UNWRAP_DEPTH - 1):
		if _is_envelope(decoded):
			decoded = _parse_json_text(decoded["result"])
	if not isinstance(decoded, dict) or _is_envelope(decoded):
		return None
	return decoded


def _is_envelope(value: Any) -> bool:
	return isinstance(value, dict) and "result" in value and "pickup_detected" not in value


def _numeric(value: Any) -> Optional[float]:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		return None
	if not math.isfinite(value):
		return None
	return float(value)


def _optional_text(value: Any) -> Optional[str]:
	return value if isinstance(value, str) else None


def _build_seed(output: Dict[str, Any]) -> SearchSeed:
	visible = output.get("visible_text")
	visible_text = tuple(item for item in visible if isinstance(item, str)) if isinstance(visible, list) else ()
	return SearchSeed(
		visible_text=visible_text,
		brand_hint=_optional_text(output.get("brand_hint")),
		category_hint=_optional_text(output.get("category_hint")),
		visual_description=_optional_text(output.get("visual_description")),
	)


class PickupFilter:
	"""Validate, threshold, and debounce detector results per session.

	One instance is built at startup and shared by request handlers; it owns
	the per-session last-admission timestamps.
	"""

	def __init__(
		self,
		threshold: float = 0.6,
		debounce_ms: float = 1500.0,
		clock: Callable[[], float] = time.time,
	) -> None:
		self.threshold = threshold
		self.debounce_ms = debounce_ms
		self._clock = clock
		self._last_seen: Dict[str, float] = {}

	def handle(self, session_id: str, payload: Any) -> AdmissionDecision:
		"""Return an admission decision for one raw detector payload."""
		output = decode_detector_output(payload)
		if output is None:
			return PickupSuppressed(SuppressReason.INVALID_RESULT)

		if output.get("pickup_detected") is not True:
			return PickupSuppressed(SuppressReason.PICKUP_NOT_DETECTED)

		if "confidence" in output:
			confidence = _numeric(output["confidence"])
			if confidence is None or confidence < self.threshold:
				return PickupSuppressed(SuppressReason.LOW_CONFIDENCE)
		else:
			confidence = 1.0

		now_ms = self._clock() * 1000.0
		last_seen = self._last_seen.get(session_id)
		if last_seen is not None and now_ms - last_seen < self.debounce_ms:
			return PickupSuppressed(SuppressReason.DEBOUNCED)
		self._last_seen[session_id] = now_ms

		frame_ref = payload.get("frame_ref")
		event = PickupEvent(
			event_id=uuid4().hex,
			confidence=min(max(confidence, 0.0), 1.0),
			frame_ref=frame_ref if isinstance(frame_ref, str) and frame_ref else UNKNOWN_FRAME_REF,
			search_seed=_build_seed(output),
		)
		LOGGER.info("Admitted pickup %s for session %s (confidence %.2f)", event.event_id, session_id, event.confidence)
		return PickupAdmitted(event)

	def reset(self, session_id: str) -> None:
		"""Forget the debounce history for a session."""
		self._last_seen.pop(session_id, None)
