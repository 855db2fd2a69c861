"""Tests for chart previews and environment settings."""

import io

import pytest
from PIL import Image

from services.thumbnail_generator import ThumbnailGenerator
from utils.config import DEFAULT_MODEL, load_settings

from conftest import png_bytes


def test_preview_fits_bounds_and_keeps_source_size():
    preview = ThumbnailGenerator().create_preview(png_bytes((1200, 600)))

    assert (preview.width, preview.height) == (1200, 600)
    image = Image.open(io.BytesIO(preview.png_bytes))
    assert image.format == "PNG"
    assert image.size == (240, 120)


def test_preview_rejects_non_images():
    generator = ThumbnailGenerator()
    with pytest.raises(ValueError):
        generator.create_preview(b"")
    with pytest.raises(ValueError):
        generator.create_preview(b"definitely not an image")


def test_settings_defaults(monkeypatch):
    for name in ("OPENAI_MODEL", "SELECTION_DEBOUNCE_MS", "CLICK_RECHECK_MS", "MAX_UPLOAD_BYTES"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.openai_model == DEFAULT_MODEL
    assert settings.selection_debounce_seconds == 0.1
    assert settings.click_recheck_seconds == 0.05
    assert settings.max_upload_bytes == 10 * 1024 * 1024


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_MODEL", " gpt-4o ")
    monkeypatch.setenv("SELECTION_DEBOUNCE_MS", "250")

    settings = load_settings()

    assert settings.openai_model == "gpt-4o"
    assert settings.selection_debounce_ms == 250


def test_invalid_integer_setting(monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "lots")
    with pytest.raises(RuntimeError):
        load_settings()
