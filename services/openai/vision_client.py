"""Chart analysis and contextual question calls using OpenAI's Responses API."""

import logging
import time
from typing import Any, Dict, List

from openai import AsyncOpenAI

from models.chart_image import UploadedImage
from services.errors import VisionServiceError
from services.openai.media_inputs import build_image_inputs, build_text_inputs
from services.openai.prompts import ANALYST_SYSTEM_PROMPT, CONTEXT_SYSTEM_PROMPT, build_context_prompt
from services.openai.response_parser import extract_text, extract_usage
from utils.config import DEFAULT_MODEL

LOGGER = logging.getLogger(__name__)


class VisionClient:
    """Send chart images and follow-up questions to a vision-capable model."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL) -> None:
        """Initialize the VisionClient with an OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model

    async def analyze(self, image: UploadedImage, prompt: str) -> str:
        """Return the model's text reply for a prompt about one chart image.

        Raises:
            VisionServiceError: If the request fails or the reply is empty.
        """
        inputs = build_image_inputs(
            ANALYST_SYSTEM_PROMPT,
            prompt,
            image_b64=image.image_b64,
            mime_type=image.mime_type,
        )
        return await self._complete(inputs, purpose=f"chart {image.id}")

    async def analyze_with_context(self, question: str, selected_text: str, full_context: str) -> str:
        """Answer a question about a selected passage of a previous analysis."""
        inputs = build_text_inputs(
            CONTEXT_SYSTEM_PROMPT,
            build_context_prompt(question, selected_text, full_context),
        )
        return await self._complete(inputs, purpose="contextual question")

    async def _complete(self, inputs: List[Dict[str, Any]], *, purpose: str) -> str:
        start = time.time()
        try:
            response = await self.client.responses.create(model=self.model, input=inputs)
        except Exception as exc:
            logging.error("Error during OpenAI Responses API call: %s", exc)
            raise VisionServiceError(str(exc) or exc.__class__.__name__) from exc

        text = extract_text(response).strip()
        if not text:
            logging.error("Empty response from OpenAI for %s: %r", purpose, response)
            raise VisionServiceError("The vision service returned an empty response.")

        usage = extract_usage(response)
        LOGGER.info(
            "Vision call for %s took %.3fs (input_tokens=%s, output_tokens=%s)",
            purpose,
            time.time() - start,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return text
