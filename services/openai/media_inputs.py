"""Utilities to build input payloads for the Responses API."""

from typing import Any, Dict, List


def to_image_data_url(image_b64: bytes, mime_type: str = "image/jpeg") -> str:
    """Convert base64 image bytes into a data URL suitable for vision input."""
    try:
        b64_str = image_b64.decode("utf-8")
    except Exception as exc:
        raise ValueError("Image bytes must be base64-encoded UTF-8.") from exc
    if not b64_str:
        raise ValueError("Image payload is empty.")
    return f"data:{mime_type or 'image/jpeg'};base64,{b64_str}"


def text_message(role: str, text: str) -> Dict[str, Any]:
    return {"type": "message", "role": role, "content": [{"type": "input_text", "text": text}]}


def build_image_inputs(
    system_prompt: str,
    user_prompt: str,
    *,
    image_b64: bytes,
    mime_type: str = "image/jpeg",
) -> List[Dict[str, Any]]:
    """Build the input array for a prompt about a single chart image."""
    image_url = to_image_data_url(image_b64, mime_type)
    return [
        text_message("system", system_prompt),
        text_message("user", user_prompt),
        {"type": "message", "role": "user", "content": [{"type": "input_image", "image_url": image_url}]},
    ]


def build_text_inputs(system_prompt: str, *user_texts: str) -> List[Dict[str, Any]]:
    """Build a text-only input array; each user text becomes its own message."""
    inputs = [text_message("system", system_prompt)]
    inputs.extend(text_message("user", text) for text in user_texts if text)
    return inputs
