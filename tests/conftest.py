"""
Shared fixtures for the chart analyst tests.

The vision service is replaced by scripted fakes so no test touches the network.
"""

from __future__ import annotations

import asyncio
import base64
import io
from typing import Callable, List, Optional, Tuple

import pytest
from PIL import Image

from models.chart_image import TimeframeImageSet, UploadedImage
from models.timeframe import Timeframe
from services.openai.prompts import TIMEFRAME_PROMPT

FINAL_TEXT = (
    "### Trading Summary\n- **Recommended Action**: BUY\n\n"
    "### Reasoning\n- Higher timeframes agree\n\n"
    "### Position Details\n- **Entry Zone**: 100-101"
)


class ScriptedVision:
    """Stand-in for VisionClient that records every call.

    Args:
        analyze_reply: Callable(image, prompt) returning the reply text or an
            exception instance to raise.
        context_reply: Callable(question, selected_text, full_context) with the
            same convention.
    """

    def __init__(
        self,
        analyze_reply: Optional[Callable[[UploadedImage, str], object]] = None,
        context_reply: Optional[Callable[[str, str, str], object]] = None,
    ) -> None:
        self.analyze_reply = analyze_reply or default_analyze_reply
        self.context_reply = context_reply or (lambda question, selected, context: f"Answer: {question}")
        self.analyze_calls: List[Tuple[UploadedImage, str]] = []
        self.context_calls: List[Tuple[str, str, str]] = []
        self.gate: Optional[asyncio.Event] = None

    async def analyze(self, image: UploadedImage, prompt: str) -> str:
        self.analyze_calls.append((image, prompt))
        return _resolve(self.analyze_reply(image, prompt))

    async def analyze_with_context(self, question: str, selected_text: str, full_context: str) -> str:
        self.context_calls.append((question, selected_text, full_context))
        if self.gate is not None:
            await self.gate.wait()
        return _resolve(self.context_reply(question, selected_text, full_context))

    @property
    def analysis_prompts(self) -> List[str]:
        return [prompt for _, prompt in self.analyze_calls if prompt != TIMEFRAME_PROMPT]


def _resolve(reply: object) -> str:
    if isinstance(reply, BaseException):
        raise reply
    return str(reply)


def default_analyze_reply(image: UploadedImage, prompt: str) -> str:
    """Classify by the timeframe embedded in the filename; analyze by echoing it."""
    if prompt == TIMEFRAME_PROMPT:
        return image.filename.rsplit(".", 1)[0].split("_")[-1]
    if "multi-timeframe analysis" in prompt:
        return FINAL_TEXT
    return f"analysis of {image.filename}"


def make_image(image_id: int, timeframe: Optional[Timeframe] = None, filename: Optional[str] = None) -> UploadedImage:
    image = UploadedImage(
        id=image_id,
        filename=filename or f"chart_{timeframe.value if timeframe else 'x'}.png",
        image_b64=base64.b64encode(b"not-really-a-png"),
        mime_type="image/png",
    )
    if timeframe is not None:
        image.mark_classified(timeframe)
    return image


def make_image_set(*timeframes: Timeframe) -> TimeframeImageSet:
    image_set = TimeframeImageSet()
    for index, timeframe in enumerate(timeframes, start=1):
        image_set.assign(make_image(index, timeframe))
    return image_set


def png_bytes(size: Tuple[int, int] = (64, 32)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (20, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def vision() -> ScriptedVision:
    return ScriptedVision()
