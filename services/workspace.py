"""Per-user analysis workspace tying the pipeline and contextual chat together."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from models.analysis_models import PipelineSnapshot
from models.chart_image import TimeframeImageSet, UploadedImage
from models.timeframe import Stage, TIMEFRAME_ORDER, stage_for
from services.analysis_pipeline import AnalysisPipeline, parse_final_sections
from services.chat.contextual_query import ContextualQueryCoordinator
from services.selection.state_machine import SelectionStateMachine
from services.selection.tracker import SelectionTracker
from services.timeframe_classifier import TimeframeClassifier

LOGGER = logging.getLogger(__name__)

FINAL_REGION = "final"


def region_id_for(stage: Stage) -> str:
	"""Return the selectable-region id under which a stage's text is rendered."""
	return FINAL_REGION if stage is Stage.FINAL else f"analysis-{stage.value}"


def regions_for(snapshot: PipelineSnapshot) -> Dict[str, str]:
	"""Return the selectable regions (id -> full context) for the produced results."""
	regions: Dict[str, str] = {}
	final_text = snapshot.results.final
	if final_text:
		regions[FINAL_REGION] = final_text
	for timeframe in TIMEFRAME_ORDER:
		text = snapshot.results.get(stage_for(timeframe))
		if text:
			regions[region_id_for(stage_for(timeframe))] = f"{timeframe.heading} Analysis: {text}"
	return regions


@dataclass
class Workspace:
	"""One user's uploaded charts, analysis run, selection state, and chat."""

	workspace_id: str
	classifier: TimeframeClassifier
	pipeline: AnalysisPipeline
	selection: SelectionStateMachine
	tracker: SelectionTracker
	chat: ContextualQueryCoordinator
	images: List[UploadedImage] = field(default_factory=list)
	image_set: TimeframeImageSet = field(default_factory=TimeframeImageSet)
	highlight_listeners: List[Callable[[], None]] = field(default_factory=list)
	created_at: float = field(default_factory=lambda: time.time())
	_classify_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

	def __post_init__(self) -> None:
		self.pipeline.subscribe(self._sync_regions)

	def add_image(self, image: UploadedImage) -> None:
		self.images.append(image)

	async def classify_pending(self) -> List[UploadedImage]:
		"""Classify pending uploads; overlapping uploads are classified one batch at a time."""
		async with self._classify_lock:
			return await self.classifier.classify_pending(list(self.images), self.image_set)

	def has_classified_image(self) -> bool:
		return any(image.is_classified for image in self.images)

	async def run_analysis(self) -> PipelineSnapshot:
		return await self.pipeline.run(self.image_set)

	async def clear_charts(self) -> None:
		"""Forget uploads, results, and progress once any classification in flight finishes."""
		async with self._classify_lock:
			self.pipeline.reset()
			self.images = []
			self.image_set.clear()
			self.tracker.replace_regions({})

	def clear_highlight(self) -> None:
		for listener in list(self.highlight_listeners):
			try:
				listener()
			except Exception as exc:  # pylint: disable=broad-exception-caught
				LOGGER.error("Highlight listener failed for workspace %s: %s", self.workspace_id, exc)

	def _sync_regions(self, snapshot: PipelineSnapshot) -> None:
		self.tracker.replace_regions(regions_for(snapshot))

	def analysis_view(self) -> Dict[str, Any]:
		snapshot = self.pipeline.snapshot
		view = snapshot.to_dict()
		final_text = snapshot.results.final
		view["final_sections"] = parse_final_sections(final_text) if final_text else None
		view["regions"] = sorted(self.tracker.regions)
		return view

	def to_dict(self) -> Dict[str, Any]:
		return {
			"workspace_id": self.workspace_id,
			"images": [image.to_dict() for image in self.images],
			"timeframes": self.image_set.to_dict(),
			"analysis": self.analysis_view(),
			"selection": self.selection.state.to_dict(),
			"chat": {
				"session_id": self.chat.session.session_id if self.chat.session else None,
				"pending": bool(self.chat.session and self.chat.session.pending),
				"turns": [turn.to_dict() for turn in self.chat.chat_log()],
			},
		}
