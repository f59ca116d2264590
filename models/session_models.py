"""Session domain models for realtime shopping workflows."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

PICKUP_EVENT_TYPE = "PICKUP_DETECTED"


@dataclass(frozen=True)
class SearchSeed:
	"""Hints pulled from a detection, used only to build a search query."""

	visible_text: Tuple[str, ...] = ()
	brand_hint: Optional[str] = None
	category_hint: Optional[str] = None
	visual_description: Optional[str] = None


@dataclass(frozen=True)
class PickupEvent:
	"""Normalized "user picked up a product" signal."""

	event_id: str
	confidence: float
	frame_ref: str
	search_seed: SearchSeed
	event_type: str = PICKUP_EVENT_TYPE


@dataclass(frozen=True)
class NoActiveThread:
	"""Session has no conversation thread in focus."""


@dataclass(frozen=True)
class ActiveThread:
	"""Session is focused on the thread with this id."""

	thread_id: str


NO_ACTIVE_THREAD = NoActiveThread()

ActiveThreadRef = Union[NoActiveThread, ActiveThread]


@dataclass
class ThreadState:
	"""One research conversation started from a single product query."""

	thread_id: str
	query: str
	search_seed: Optional[SearchSeed] = None
	messages: List[Any] = field(default_factory=list)
	created_at: float = field(default_factory=lambda: time.time())


@dataclass
class SessionState:
	"""In-memory session tracking for realtime interactions."""

	session_id: str
	active: ActiveThreadRef = NO_ACTIVE_THREAD
	threads: Dict[str, ThreadState] = field(default_factory=dict)
	created_at: float = field(default_factory=lambda: time.time())

	@property
	def active_thread_id(self) -> Optional[str]:
		if isinstance(self.active, ActiveThread):
			return self.active.thread_id
		return None
