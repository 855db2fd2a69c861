"""Coordinate the inline query affordance, the selection state, and chat sessions."""

from __future__ import annotations

import logging
from typing import List, Optional

from models.selection_models import ChatTurn
from services.chat.chat_session import ChatSession
from services.errors import ChatClosedError
from services.openai.vision_client import VisionClient
from services.selection.state_machine import SelectionStateMachine

LOGGER = logging.getLogger(__name__)


class ContextualQueryCoordinator:
	"""Open, feed, and close chat sessions in step with the selection state."""

	def __init__(self, selection: SelectionStateMachine, vision: VisionClient) -> None:
		self.selection = selection
		self.vision = vision
		self._session: Optional[ChatSession] = None

	@property
	def session(self) -> Optional[ChatSession]:
		return self._session

	def chat_log(self) -> List[ChatTurn]:
		return list(self._session.turns) if self._session else []

	async def submit_query(self, question: str) -> ChatSession:
		"""Open the chat from the affordance and ask the seed question."""
		question = (question or "").strip()
		if not question:
			raise ValueError("Question text is required.")
		if not self.selection.state.selected_text:
			raise ValueError("Select some analysis text before asking a question.")

		if self._session is not None:
			self._session.close()
		self.selection.open_chat(question)
		session = ChatSession(self.vision, self.selection)
		self._session = session
		LOGGER.info("Opened chat %s", session.session_id)
		await session.ask(question, is_seed=True)
		return session

	async def follow_up(self, question: str) -> ChatSession:
		"""Ask another question in the open chat."""
		session = self._session
		if session is None or not self.selection.state.chat_open:
			raise ChatClosedError("No chat is open.")
		await session.ask(question)
		return session

	def close_chat(self) -> None:
		"""Close the chat surface, discard its session, and clear the selection."""
		if self._session is not None:
			LOGGER.info("Closed chat %s", self._session.session_id)
			self._session.close()
			self._session = None
		self.selection.close_chat()
		self.selection.clear_selection()

	def close_query_affordance(self) -> None:
		self.selection.hide_query_affordance()
		self.selection.clear_selection()
