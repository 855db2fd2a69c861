"""Environment-driven settings for the chart analysis service."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MODEL = "gpt-5"
DEFAULT_DEBOUNCE_MS = 100
DEFAULT_CLICK_RECHECK_MS = 50
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise RuntimeError(f"{name} must not be negative, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read once at startup.

    Attributes:
        openai_model: Model used for every vision and follow-up call.
        selection_debounce_ms: Window for coalescing selection-change bursts.
        click_recheck_ms: Delay before re-checking the selection after a page click.
        max_upload_bytes: Largest accepted chart upload.
    """

    openai_model: str = DEFAULT_MODEL
    selection_debounce_ms: int = DEFAULT_DEBOUNCE_MS
    click_recheck_ms: int = DEFAULT_CLICK_RECHECK_MS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

    @property
    def selection_debounce_seconds(self) -> float:
        return self.selection_debounce_ms / 1000.0

    @property
    def click_recheck_seconds(self) -> float:
        return self.click_recheck_ms / 1000.0


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        openai_model=(os.getenv("OPENAI_MODEL") or DEFAULT_MODEL).strip(),
        selection_debounce_ms=_int_env("SELECTION_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS),
        click_recheck_ms=_int_env("CLICK_RECHECK_MS", DEFAULT_CLICK_RECHECK_MS),
        max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
    )
