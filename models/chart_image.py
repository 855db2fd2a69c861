"""Uploaded chart images and the per-timeframe slot set."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.timeframe import TIMEFRAME_ORDER, Timeframe


@dataclass
class UploadedImage:
    """In-memory chart upload awaiting (or holding) its timeframe classification.

    Attributes:
        id: Primary key of the matching CHART row.
        filename: Original filename supplied by the client.
        image_b64: Base64-encoded image bytes sent to the vision service.
        mime_type: MIME type of the original upload.
        detected_timeframe: Timeframe set by the classifier on success.
        classification_error: Error text set by the classifier on failure.
        created_at: Unix timestamp (seconds) of the upload.
    """

    id: int
    filename: str
    image_b64: bytes
    mime_type: str = "image/jpeg"
    detected_timeframe: Optional[Timeframe] = None
    classification_error: Optional[str] = None
    created_at: float = field(default_factory=lambda: time.time())

    @property
    def is_pending(self) -> bool:
        return self.detected_timeframe is None and self.classification_error is None

    @property
    def is_classified(self) -> bool:
        return self.detected_timeframe is not None

    def mark_classified(self, timeframe: Timeframe) -> None:
        """Record the detected timeframe; an image is classified exactly once."""
        self._ensure_pending()
        self.detected_timeframe = timeframe

    def mark_failed(self, error: str) -> None:
        """Record a classification error; an image is classified exactly once."""
        self._ensure_pending()
        self.classification_error = error

    def _ensure_pending(self) -> None:
        if not self.is_pending:
            raise RuntimeError(f"Chart {self.id} has already been classified.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "detected_timeframe": self.detected_timeframe.value if self.detected_timeframe else None,
            "error": self.classification_error,
        }


class TimeframeImageSet:
    """At most one classified image per timeframe; later assignments win."""

    def __init__(self) -> None:
        self._slots: Dict[Timeframe, Optional[UploadedImage]] = {tf: None for tf in TIMEFRAME_ORDER}

    def assign(self, image: UploadedImage) -> None:
        if image.detected_timeframe is None:
            raise ValueError(f"Chart {image.id} has no detected timeframe.")
        self._slots[image.detected_timeframe] = image

    def get(self, timeframe: Timeframe) -> Optional[UploadedImage]:
        return self._slots[timeframe]

    def present_timeframes(self) -> List[Timeframe]:
        """Return the filled timeframes in fixed analysis order."""
        return [tf for tf in TIMEFRAME_ORDER if self._slots[tf] is not None]

    def representative(self) -> Optional[UploadedImage]:
        """Return the first present image in priority order 4h > 1h > 15m > 5m."""
        for timeframe in TIMEFRAME_ORDER:
            image = self._slots[timeframe]
            if image is not None:
                return image
        return None

    def has_any(self) -> bool:
        return any(image is not None for image in self._slots.values())

    def clear(self) -> None:
        self._slots = {tf: None for tf in TIMEFRAME_ORDER}

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {tf.value: (image.id if image else None) for tf, image in self._slots.items()}
