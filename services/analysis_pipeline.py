"""Sequential multi-timeframe chart analysis with a final aggregation stage.

A run is planned up front as an ordered list of stages (one per filled
timeframe slot, then ``final``). The pipeline walks that list with a single
active-stage pointer, storing each stage's text in an accumulator that
observers can read at any point. The first failing stage aborts the run;
results already produced stay visible.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from models.analysis_models import AnalysisResultSet, PipelineProgress, PipelineSnapshot, PipelineStatus
from models.chart_image import TimeframeImageSet, UploadedImage
from models.timeframe import TIMEFRAME_ORDER, Stage, Timeframe, stage_for
from services.errors import PipelineBusyError, PipelineValidationError
from services.openai.prompts import ANALYSIS_PROMPTS, build_final_prompt
from services.openai.vision_client import VisionClient

LOGGER = logging.getLogger(__name__)

NO_CHART_MESSAGE = "Please upload at least one chart with a detected timeframe."
GENERIC_FAILURE = "An error occurred during analysis"
CANCELLED_MESSAGE = "Analysis was cancelled"

_UNSET = object()

PipelineListener = Callable[[PipelineSnapshot], None]

_REASONING_HEADING = re.compile(r"(?:#+\s*Reasoning|\*\*Reasoning\*\*):?", re.IGNORECASE)
_POSITION_HEADING = re.compile(r"(?:#+\s*Position Details|\*\*Position Details\*\*):?", re.IGNORECASE)


def plan_stages(image_set: TimeframeImageSet) -> List[Stage]:
    """Return the stages a run over `image_set` visits, in order."""
    return [stage_for(tf) for tf in image_set.present_timeframes()] + [Stage.FINAL]


def labeled_sections(results: AnalysisResultSet) -> List[Tuple[Timeframe, str]]:
    """Return (timeframe, text) pairs for the produced analyses in fixed order."""
    sections = []
    for timeframe in TIMEFRAME_ORDER:
        text = results.get(stage_for(timeframe))
        if text:
            sections.append((timeframe, text))
    return sections


def parse_final_sections(final_text: str) -> Dict[str, str]:
    """Split a final recommendation into summary, reasoning, and position details."""
    sections = {"summary": "", "reasoning": "", "position_details": ""}
    reasoning = _REASONING_HEADING.search(final_text)
    if reasoning is None:
        sections["summary"] = final_text.strip()
        return sections

    sections["summary"] = final_text[: reasoning.start()].strip()
    position = _POSITION_HEADING.search(final_text, reasoning.end())
    if position is None:
        sections["reasoning"] = final_text[reasoning.end():].strip()
    else:
        sections["reasoning"] = final_text[reasoning.end(): position.start()].strip()
        sections["position_details"] = final_text[position.end():].strip()
    return sections


class AnalysisPipeline:
    """Run one analysis per timeframe followed by a single aggregation call."""

    def __init__(self, vision: VisionClient) -> None:
        if vision is None:
            raise ValueError("Vision client is required.")
        self.vision = vision
        self._status = PipelineStatus.IDLE
        self._progress = PipelineProgress()
        self._results = AnalysisResultSet()
        self._error: Optional[str] = None
        self._stages: List[Stage] = []
        self._listeners: List[PipelineListener] = []

    @property
    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            status=self._status,
            progress=self._progress,
            results=self._results,
            error=self._error,
        )

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def planned_stages(self) -> Tuple[Stage, ...]:
        return tuple(self._stages)

    def subscribe(self, listener: PipelineListener) -> Callable[[], None]:
        """Register a callback invoked with a snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        """Return to idle with no results."""
        if self._status is PipelineStatus.RUNNING:
            raise PipelineBusyError("Cannot reset while an analysis run is in progress.")
        self._stages = []
        self._update(
            status=PipelineStatus.IDLE,
            progress=PipelineProgress(),
            results=AnalysisResultSet(),
            error=None,
        )

    async def run(self, image_set: TimeframeImageSet) -> PipelineSnapshot:
        """Analyze every filled timeframe slot in order, then aggregate.

        Stage failures do not raise; they end the run in the ``failed``
        state and the returned snapshot carries the error message.

        Raises:
            PipelineBusyError: If a run is already in progress.
            PipelineValidationError: If the set holds no classified chart.
        """
        if self._status is PipelineStatus.RUNNING:
            raise PipelineBusyError("An analysis run is already in progress.")
        if not image_set.has_any():
            raise PipelineValidationError(NO_CHART_MESSAGE)

        timeframes = image_set.present_timeframes()
        representative = image_set.representative()
        self._stages = plan_stages(image_set)
        self._update(
            status=PipelineStatus.RUNNING,
            progress=PipelineProgress(total_count=len(self._stages)),
            results=AnalysisResultSet(),
            error=None,
        )
        LOGGER.info("Starting analysis run over %s", ", ".join(stage.value for stage in self._stages))

        try:
            for timeframe in timeframes:
                await self._run_timeframe_stage(timeframe, image_set.get(timeframe))
            await self._run_final_stage(representative)
        except asyncio.CancelledError:
            LOGGER.warning("Analysis run cancelled at stage %s", self._progress.current_stage)
            self._update(status=PipelineStatus.FAILED, error=CANCELLED_MESSAGE)
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            stage = self._progress.current_stage
            LOGGER.error("Analysis run failed at stage %s: %s", stage.value if stage else None, exc)
            self._update(status=PipelineStatus.FAILED, error=str(exc) or GENERIC_FAILURE)
            return self.snapshot

        self._update(
            status=PipelineStatus.COMPLETED,
            progress=replace(self._progress, current_stage=None, completed_count=self._progress.total_count),
        )
        return self.snapshot

    async def _run_timeframe_stage(self, timeframe: Timeframe, image: Optional[UploadedImage]) -> None:
        stage = stage_for(timeframe)
        self._update(progress=replace(self._progress, current_stage=stage))
        text = await self._timed_call(stage, image, ANALYSIS_PROMPTS[timeframe])
        self._update(
            results=self._results.with_result(stage, text),
            progress=replace(self._progress, completed_count=self._progress.completed_count + 1),
        )

    async def _run_final_stage(self, representative: Optional[UploadedImage]) -> None:
        self._update(progress=replace(self._progress, current_stage=Stage.FINAL))
        prompt = build_final_prompt(labeled_sections(self._results))
        text = await self._timed_call(Stage.FINAL, representative, prompt)
        self._update(results=self._results.with_result(Stage.FINAL, text))

    async def _timed_call(self, stage: Stage, image: Optional[UploadedImage], prompt: str) -> str:
        if image is None:
            raise RuntimeError(f"No chart available for stage {stage.value}.")
        start = time.time()
        text = await self.vision.analyze(image, prompt)
        LOGGER.info("%s stage latency: %.3fs", stage.value, time.time() - start)
        return text

    def _update(self, *, status=None, progress=None, results=None, error=_UNSET) -> None:
        if status is not None:
            self._status = status
        if progress is not None:
            self._progress = progress
        if results is not None:
            self._results = results
        if error is not _UNSET:
            self._error = error
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                LOGGER.error("Pipeline listener failed: %s", exc)
