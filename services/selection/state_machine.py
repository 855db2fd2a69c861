"""Workspace-wide selection / query-affordance / chat state."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from models.selection_models import EMPTY_SELECTION, SelectionState

LOGGER = logging.getLogger(__name__)

SelectionListener = Callable[[SelectionState], None]


class SelectionStateMachine:
	"""Own the SelectionState value and expose its only legal transitions.

	Every transition replaces the whole state value. Listeners are notified
	only when the value actually changes.

	Args:
		clear_highlight: Host hook that drops the live text highlight in the
			client. Called by `clear_selection` since the highlight belongs to
			the presentation layer rather than to this state.
	"""

	def __init__(self, clear_highlight: Optional[Callable[[], None]] = None) -> None:
		self._state = EMPTY_SELECTION
		self._clear_highlight = clear_highlight
		self._listeners: List[SelectionListener] = []

	@property
	def state(self) -> SelectionState:
		return self._state

	def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
		self._listeners.append(listener)

		def unsubscribe() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return unsubscribe

	def set_selection(self, text: str, context: str) -> SelectionState:
		"""Record the selected text and the context it came from."""
		return self._replace(replace(self._state, selected_text=text, full_context=context))

	def show_query_affordance(self) -> SelectionState:
		"""Show the inline query affordance unless the chat already supersedes it."""
		if self._state.query_affordance_visible or self._state.chat_open:
			return self._state
		return self._replace(replace(self._state, query_affordance_visible=True))

	def hide_query_affordance(self) -> SelectionState:
		return self._replace(replace(self._state, query_affordance_visible=False))

	def open_chat(self, seed_question: str) -> SelectionState:
		"""Open the chat surface with its seed question; the affordance closes."""
		return self._replace(
			replace(self._state, query_affordance_visible=False, chat_open=True, seed_question=seed_question)
		)

	def close_chat(self) -> SelectionState:
		return self._replace(replace(self._state, chat_open=False, seed_question=""))

	def clear_selection(self) -> SelectionState:
		"""Reset to the empty state and drop the client's text highlight."""
		state = self._replace(EMPTY_SELECTION)
		if self._clear_highlight is not None:
			try:
				self._clear_highlight()
			except Exception as exc:  # pylint: disable=broad-exception-caught
				LOGGER.error("Failed to clear text highlight: %s", exc)
		return state

	def _replace(self, state: SelectionState) -> SelectionState:
		if state == self._state:
			return self._state
		self._state = state
		for listener in list(self._listeners):
			try:
				listener(state)
			except Exception as exc:  # pylint: disable=broad-exception-caught
				LOGGER.error("Selection listener failed: %s", exc)
		return state
