"""Helpers to parse Responses API outputs."""

from typing import Any, Dict, Optional


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_text(response: Any) -> str:
    """Return the first output_text entry, falling back to `output_text`."""
    for item in _field(response, "output", None) or []:
        if _field(item, "type") != "message":
            continue
        for content in _field(item, "content", None) or []:
            if _field(content, "type") == "output_text":
                return _field(content, "text", "") or ""
    return _field(response, "output_text", "") or ""


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = _field(response, "usage", None)
    return {
        "input_tokens": _field(usage, "input_tokens") if usage else None,
        "output_tokens": _field(usage, "output_tokens") if usage else None,
    }
