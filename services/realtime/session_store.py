"""Simple in-memory store for realtime shopping sessions."""

from __future__ import annotations

from typing import Dict, Optional
from uuid import uuid4

from models.payloads import AgentPayload
from models.session_models import ActiveThread, SearchSeed, SessionState, ThreadState


class SessionStore:
	"""Manage sessions, their research threads, and thread message history.

	Sessions are created lazily the first time an id is referenced and live
	until ``end_session``. A session has at most one active thread.
	"""

	def __init__(self) -> None:
		self._sessions: Dict[str, SessionState] = {}

	def get_or_create_session(self, session_id: str) -> SessionState:
		"""Return the session for ``session_id``, creating it on first use."""
		state = self._sessions.get(session_id)
		if state is None:
			state = SessionState(session_id=session_id)
			self._sessions[session_id] = state
		return state

	def find_session(self, session_id: str) -> Optional[SessionState]:
		"""Return a session without creating it."""
		return self._sessions.get(session_id)

	def start_new_thread(self, session_id: str, query: str, search_seed: Optional[SearchSeed] = None) -> ThreadState:
		"""Create a thread and install it as the session's active thread."""
		state = self.get_or_create_session(session_id)
		thread = ThreadState(thread_id=uuid4().hex, query=query, search_seed=search_seed)
		state.threads[thread.thread_id] = thread
		state.active = ActiveThread(thread.thread_id)
		return thread

	def get_active_thread(self, session_id: str) -> Optional[ThreadState]:
		"""Return the active thread, or None when the session has none."""
		state = self.get_or_create_session(session_id)
		if not isinstance(state.active, ActiveThread):
			return None
		return state.threads.get(state.active.thread_id)

	def update_thread_query(self, session_id: str, thread_id: str, query: str) -> Optional[ThreadState]:
		"""Replace a thread's working query; no-op for unknown threads."""
		state = self._sessions.get(session_id)
		thread = state.threads.get(thread_id) if state else None
		if thread is None:
			return None
		thread.query = query
		return thread

	def append_message(self, session_id: str, thread_id: str, payload: AgentPayload) -> None:
		"""Record an emitted payload; silently ignored if the thread is gone."""
		state = self._sessions.get(session_id)
		if state is None:
			return
		thread = state.threads.get(thread_id)
		if thread is None:
			return
		thread.messages.append(payload)

	def end_session(self, session_id: str) -> None:
		"""Drop the session and every thread it owns."""
		self._sessions.pop(session_id, None)

	def session_ids(self) -> list[str]:
		return list(self._sessions)
