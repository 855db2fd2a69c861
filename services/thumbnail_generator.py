"""Chart preview thumbnails.

Wraps Pillow to verify that an upload really is an image and to produce a
small PNG preview for the upload list. Previews fit within 240x160 pixels,
which keeps the wide aspect ratio of most chart screenshots readable.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Tuple

from PIL import Image, UnidentifiedImageError


@dataclass(frozen=True)
class ChartPreview:
    png_bytes: bytes
    width: int
    height: int


class ThumbnailGenerator:
    """Generate PNG previews from raw chart image bytes.

    Args:
        max_size: Maximum width and height for the preview.
        background: Color used when flattening images with transparency.
    """

    def __init__(self, max_size: Tuple[int, int] = (240, 160), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def create_preview(self, raw: bytes) -> ChartPreview:
        """Return a preview of `raw` along with the source dimensions.

        Raises:
            ValueError: If the bytes cannot be opened as an image.
        """
        if not raw:
            raise ValueError("Image content is empty")

        try:
            src = Image.open(io.BytesIO(raw))
            src.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Uploaded file is not a supported image format") from exc

        width, height = src.size
        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        # Flatten alpha against the background color
        flattened = Image.new("RGB", src.size, self.background)
        flattened.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        flattened.save(out_io, format="PNG", optimize=True)
        return ChartPreview(png_bytes=out_io.getvalue(), width=width, height=height)
