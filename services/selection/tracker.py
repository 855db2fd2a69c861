"""Turn raw selection-change notifications into selection state transitions."""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from models.selection_models import SelectionEvent
from services.selection.debouncer import Debouncer
from services.selection.state_machine import SelectionStateMachine

LOGGER = logging.getLogger(__name__)


class SelectionTracker:
	"""Watch selections against registered regions and drive the state machine.

	A selection is live when it starts inside a registered region and its
	trimmed text is non-empty. Evaluation is debounced so the burst of
	notifications produced while dragging a selection is evaluated once.
	"""

	def __init__(
		self,
		machine: SelectionStateMachine,
		*,
		debounce_seconds: float = 0.1,
		click_recheck_seconds: float = 0.05,
	) -> None:
		self.machine = machine
		self._regions: Dict[str, str] = {}
		self._current = SelectionEvent()
		self._debouncer: Debouncer[SelectionEvent] = Debouncer(debounce_seconds, self.evaluate)
		self._click_recheck: Debouncer[None] = Debouncer(click_recheck_seconds, self._recheck_after_click)

	@property
	def regions(self) -> Dict[str, str]:
		return dict(self._regions)

	@property
	def current(self) -> SelectionEvent:
		return self._current

	def register_region(self, region_id: str, full_context: str) -> None:
		if not region_id:
			raise ValueError("Region id is required.")
		self._regions[region_id] = full_context

	def unregister_region(self, region_id: str) -> None:
		self._regions.pop(region_id, None)

	def replace_regions(self, regions: Mapping[str, str]) -> None:
		self._regions = dict(regions)

	def context_for(self, region_id: Optional[str]) -> Optional[str]:
		if region_id is None:
			return None
		return self._regions.get(region_id)

	def is_live(self, event: SelectionEvent) -> bool:
		return bool(event.text.strip()) and event.region_id in self._regions

	def selection_changed(self, event: SelectionEvent) -> None:
		"""Queue a selection notification for debounced evaluation."""
		self._current = event
		self._debouncer.submit(event)

	def click(self, *, on_interaction_surface: bool = False) -> None:
		"""Handle a page click; the selection is re-checked once it settles."""
		if on_interaction_surface:
			return
		self._click_recheck.submit(None)

	def evaluate(self, event: SelectionEvent) -> None:
		"""Apply the live/empty selection policy to one (debounced) event."""
		if self.is_live(event):
			text = event.text.strip()
			if text != self.machine.state.selected_text:
				self.machine.set_selection(text, self._regions[event.region_id])
				self.machine.show_query_affordance()
			return
		if event.on_interaction_surface:
			return
		self._drop_selection()

	def cancel(self) -> None:
		"""Drop any queued evaluation."""
		self._debouncer.cancel()
		self._click_recheck.cancel()

	def _recheck_after_click(self, _: None) -> None:
		if not self.is_live(self._current):
			self._drop_selection()

	def _drop_selection(self) -> None:
		state = self.machine.state
		if state.chat_open:
			return
		if not state.selected_text and not state.query_affordance_visible:
			return
		LOGGER.debug("Selection lost; hiding query affordance")
		self.machine.hide_query_affordance()
		self.machine.clear_selection()
