"""Simple in-memory store for analysis workspaces."""

from __future__ import annotations

import logging
from typing import Dict
from uuid import uuid4

from services.analysis_pipeline import AnalysisPipeline
from services.chat.contextual_query import ContextualQueryCoordinator
from services.openai.vision_client import VisionClient
from services.selection.state_machine import SelectionStateMachine
from services.selection.tracker import SelectionTracker
from services.timeframe_classifier import TimeframeClassifier
from services.workspace import Workspace
from utils.config import Settings

LOGGER = logging.getLogger(__name__)


class WorkspaceStore:
	"""Create, look up, and discard workspaces."""

	def __init__(self, settings: Settings | None = None) -> None:
		self.settings = settings or Settings()
		self._workspaces: Dict[str, Workspace] = {}

	def create(self, vision: VisionClient) -> Workspace:
		"""Create a workspace whose services all share `vision`."""
		workspace_id = uuid4().hex

		def clear_highlight() -> None:
			workspace.clear_highlight()

		selection = SelectionStateMachine(clear_highlight=clear_highlight)
		workspace = Workspace(
			workspace_id=workspace_id,
			classifier=TimeframeClassifier(vision),
			pipeline=AnalysisPipeline(vision),
			selection=selection,
			tracker=SelectionTracker(
				selection,
				debounce_seconds=self.settings.selection_debounce_seconds,
				click_recheck_seconds=self.settings.click_recheck_seconds,
			),
			chat=ContextualQueryCoordinator(selection, vision),
		)
		self._workspaces[workspace_id] = workspace
		LOGGER.info("Created workspace %s", workspace_id)
		return workspace

	def get(self, workspace_id: str) -> Workspace:
		"""Return a workspace or raise KeyError if missing."""
		workspace = self._workspaces.get(workspace_id)
		if workspace is None:
			raise KeyError(f"Workspace {workspace_id} not found")
		return workspace

	def discard(self, workspace_id: str) -> None:
		"""Drop a workspace, closing any open chat first."""
		workspace = self.get(workspace_id)
		workspace.tracker.cancel()
		if workspace.chat.session is not None:
			workspace.chat.session.close()
		del self._workspaces[workspace_id]
		LOGGER.info("Discarded workspace %s", workspace_id)

	def __len__(self) -> int:
		return len(self._workspaces)
