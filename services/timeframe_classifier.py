"""Timeframe detection for uploaded chart images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from models.chart_image import TimeframeImageSet, UploadedImage
from models.timeframe import Timeframe, normalize_timeframe
from services.openai.prompts import TIMEFRAME_PROMPT
from services.openai.vision_client import VisionClient

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationResult:
    timeframe: Optional[Timeframe] = None
    error: Optional[str] = None
    raw_reply: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.timeframe is not None


class TimeframeClassifier:
    """Ask the vision model which timeframe a chart shows.

    Failures never propagate: they come back as a result carrying an error
    string so the rest of the batch keeps going.
    """

    def __init__(self, vision: VisionClient) -> None:
        if vision is None:
            raise ValueError("Vision client is required.")
        self.vision = vision

    async def classify(self, image: UploadedImage) -> ClassificationResult:
        try:
            reply = await self.vision.analyze(image, TIMEFRAME_PROMPT)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("Error detecting timeframe for chart %s: %s", image.id, exc)
            return ClassificationResult(error=f"Failed to detect timeframe: {exc}")

        timeframe = normalize_timeframe(reply)
        if timeframe is None:
            LOGGER.info("Chart %s returned unrecognised timeframe %r", image.id, reply)
            return ClassificationResult(error=f"Could not detect timeframe: {reply}", raw_reply=reply)
        return ClassificationResult(timeframe=timeframe, raw_reply=reply)

    async def classify_pending(
        self, images: Iterable[UploadedImage], image_set: TimeframeImageSet
    ) -> List[UploadedImage]:
        """Classify every unclassified image in order and slot the successes.

        Returns:
            The images that were classified by this call.
        """
        processed: List[UploadedImage] = []
        for image in images:
            if not image.is_pending:
                continue
            result = await self.classify(image)
            if not image.is_pending:
                LOGGER.info("Chart %s was classified concurrently; keeping the first result", image.id)
                continue
            if result.ok:
                image.mark_classified(result.timeframe)
                image_set.assign(image)
            else:
                image.mark_failed(result.error or "Failed to detect timeframe")
            processed.append(image)
        return processed
