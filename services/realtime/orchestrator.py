"""Session-level state machine: pickup, question, buy and end.

Each entry point emits payloads strictly in order; every emit is awaited
before the next step starts so clients can render progressively. Calls for
the same session are not serialized here.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.payloads import AgentPayload, InfoPayload
from models.session_models import PickupEvent, SearchSeed, ThreadState
from services.realtime.pickup_filter import PickupFilter
from services.realtime.session_store import SessionStore
from services.realtime.stream_hub import StreamHub
from services.research.pipeline import ResearchPipeline
from services.research.query_builder import build_query
from services.research.summary import SummaryStrategy, ValueScoreSummaryStrategy

LOGGER = logging.getLogger(__name__)

PICKUP_STARTED = "Pickup detected. Starting research."
QUESTION_STARTED = "Starting research from your question."
SESSION_ENDED = "Session ended."
NO_ACTIVE_PRODUCT = "No active product to purchase."
BUY_NOT_CONFIGURED = "buy_item tool not configured."


def to_info(session_id: str, message: str, thread_id: Optional[str] = None) -> InfoPayload:
	return InfoPayload(session_id=session_id, thread_id=thread_id, message=message)


class ShoppingOrchestrator:
	"""Tie admission, threads, research, summaries and broadcast together."""

	def __init__(
		self,
		store: SessionStore,
		sink: StreamHub,
		pipeline: ResearchPipeline,
		summarizer: Optional[SummaryStrategy] = None,
		pickup_filter: Optional[PickupFilter] = None,
	) -> None:
		self.store = store
		self.sink = sink
		self.pipeline = pipeline
		self.summarizer = summarizer or ValueScoreSummaryStrategy()
		self.pickup_filter = pickup_filter

	@property
	def tools(self):
		return self.pipeline.tools

	async def handle_pickup(self, session_id: str, event: PickupEvent) -> ThreadState:
		"""Start a fresh thread for a pickup and research it."""
		query = build_query(event.search_seed)
		thread = self.store.start_new_thread(session_id, query, event.search_seed)
		LOGGER.info("Pickup %s in session %s -> thread %s, query %r", event.event_id, session_id, thread.thread_id, query)
		await self.emit(to_info(session_id, PICKUP_STARTED, thread.thread_id))
		await self._research_and_summarize(session_id, thread.thread_id, query, event.search_seed)
		return thread

	async def handle_question(self, session_id: str, question: str) -> ThreadState:
		"""Research a follow-up question against the active thread, or start one."""
		thread = self.store.get_active_thread(session_id)
		if thread is None:
			query = question.strip()
			thread = self.store.start_new_thread(session_id, query)
			LOGGER.info("Question in session %s started thread %s", session_id, thread.thread_id)
			await self.emit(to_info(session_id, QUESTION_STARTED, thread.thread_id))
			await self._research_and_summarize(session_id, thread.thread_id, query, None)
			return thread

		query = f"{thread.query} {question}".strip()
		# persisted so later questions extend this one
		self.store.update_thread_query(session_id, thread.thread_id, query)
		LOGGER.info("Question in session %s on thread %s, query %r", session_id, thread.thread_id, query)
		await self._research_and_summarize(session_id, thread.thread_id, query, thread.search_seed)
		return thread

	async def handle_end(self, session_id: str) -> None:
		"""Announce the end of a session and drop all of its state."""
		await self.emit(to_info(session_id, SESSION_ENDED))
		self.store.end_session(session_id)
		if self.pickup_filter is not None:
			self.pickup_filter.reset(session_id)
		LOGGER.info("Session %s ended", session_id)

	async def handle_buy(self, session_id: str, product_id: str) -> None:
		"""Start a purchase for the active thread's product."""
		thread = self.store.get_active_thread(session_id)
		if thread is None:
			await self.emit(to_info(session_id, NO_ACTIVE_PRODUCT))
			return

		buy_item = getattr(self.tools, "buy_item", None)
		if buy_item is None:
			await self.emit(to_info(session_id, BUY_NOT_CONFIGURED, thread.thread_id))
			return

		result = await buy_item(product_id)
		LOGGER.info("Buy %s in session %s: %s", product_id, session_id, result.status)
		await self.emit(to_info(session_id, result.message, thread.thread_id))

	async def emit(self, payload: AgentPayload) -> None:
		"""Broadcast a payload, then record it in its thread's history."""
		await self.sink.broadcast(payload.session_id, payload)
		if payload.thread_id:
			self.store.append_message(payload.session_id, payload.thread_id, payload)

	async def _research_and_summarize(
		self,
		session_id: str,
		thread_id: str,
		query: str,
		seed: Optional[SearchSeed],
	) -> None:
		research = await self.pipeline.run(session_id, thread_id, query)
		await self.emit(research)
		summary = await self.summarizer.build(session_id, thread_id, research.top_match, research.alternatives, seed)
		await self.emit(summary)
