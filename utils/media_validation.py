"""Validation helpers for uploaded chart images."""

import base64

from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
    "image/bmp",
}

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp")


def to_base64_image(raw: bytes) -> bytes:
    """Return base64-encoded bytes for raw image content."""
    return base64.b64encode(raw)


def resolve_image_type(upload: UploadFile) -> str:
    """Return the normalized MIME type of an image upload.

    Browsers sometimes omit the content type for dropped files; in that case
    the filename extension must name a known image format.
    """
    if upload.content_type and upload.content_type != "application/octet-stream":
        content_type = upload.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {upload.content_type}")
        return "image/jpeg" if content_type == "image/jpg" else content_type

    filename = (upload.filename or "").lower()
    if not filename.endswith(IMAGE_EXTENSIONS):
        raise HTTPException(status_code=415, detail="Unsupported or missing image content type.")
    suffix = filename.rsplit(".", 1)[-1]
    return "image/jpeg" if suffix in ("jpg", "jpeg") else f"image/{suffix}"


async def read_image_bytes(upload: UploadFile, max_bytes: int) -> bytes:
    """Read a validated image upload, rejecting empty or oversized files."""
    resolve_image_type(upload)
    raw = await upload.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    if max_bytes and len(raw) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Uploaded image exceeds the {max_bytes} byte limit.")
    return raw
