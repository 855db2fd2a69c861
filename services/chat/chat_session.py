"""Follow-up chat about a selected passage of the analysis output."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from uuid import uuid4

from models.selection_models import ChatRole, ChatTurn
from services.errors import ChatBusyError, ChatClosedError
from services.openai.vision_client import VisionClient
from services.selection.state_machine import SelectionStateMachine

LOGGER = logging.getLogger(__name__)


class ChatSession:
	"""Ordered question/answer log for one opening of the chat surface.

	Only one question may be awaiting an answer at a time, so replies are
	appended in the order the questions were asked. A failed call still
	produces an assistant turn describing the failure.
	"""

	def __init__(self, vision: VisionClient, selection: SelectionStateMachine) -> None:
		if vision is None:
			raise ValueError("Vision client is required.")
		self.session_id = uuid4().hex
		self.vision = vision
		self.selection = selection
		self._turns: List[ChatTurn] = []
		self._pending = False
		self.closed = False

	@property
	def turns(self) -> Tuple[ChatTurn, ...]:
		return tuple(self._turns)

	@property
	def pending(self) -> bool:
		return self._pending

	async def ask(self, question: str, is_seed: bool = False) -> Optional[ChatTurn]:
		"""Ask a question about the current selection and log both sides.

		Returns:
			The assistant turn, or None when the session closed before the
			reply arrived (the reply is discarded).

		Raises:
			ValueError: If the question is blank.
			ChatBusyError: If another question is still awaiting its answer.
			ChatClosedError: If the session has been closed.
		"""
		question = (question or "").strip()
		if not question:
			raise ValueError("Question text is required.")
		if self.closed:
			raise ChatClosedError("Chat session is closed; open a new chat.")
		if self._pending:
			raise ChatBusyError("Please wait for the current answer before asking again.")

		state = self.selection.state
		self._append(ChatRole.USER, question, selected_text=state.selected_text if is_seed else None)
		self._pending = True
		try:
			text = await self.vision.analyze_with_context(question, state.selected_text, state.full_context)
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.error("Contextual question failed in chat %s: %s", self.session_id, exc)
			text = f"Sorry, I encountered an error: {exc}"
		finally:
			self._pending = False

		if self.closed:
			LOGGER.info("Discarding reply for closed chat %s", self.session_id)
			return None
		return self._append(ChatRole.ASSISTANT, text)

	def close(self) -> None:
		"""Discard the log; late replies for this session are dropped."""
		self.closed = True
		self._turns = []

	def _append(self, role: ChatRole, text: str, selected_text: Optional[str] = None) -> ChatTurn:
		turn = ChatTurn(role=role, text=text, selected_text=selected_text)
		self._turns.append(turn)
		return turn
