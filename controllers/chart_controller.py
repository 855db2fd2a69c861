from fastapi import Request, UploadFile, HTTPException
from fastapi.responses import Response
from typing import Dict, Any, List
import asyncio
import logging

from controllers.workspace_controller import require_workspace
from dal.chart_dal import ChartDAL
from models.chart_image import UploadedImage
from models.chart_record import ChartRecord
from services.thumbnail_generator import ThumbnailGenerator
from utils.media_validation import read_image_bytes, resolve_image_type, to_base64_image

LOGGER = logging.getLogger(__name__)


async def upload_charts(request: Request, workspace_id: str, files: List[UploadFile]) -> Dict[str, Any]:
    """Store uploaded charts and classify every chart still lacking a timeframe.

    Args:
        request: FastAPI Request (used to access shared clients/state).
        workspace_id: Workspace receiving the uploads.
        files: One or more uploaded chart images.

    Returns:
        A dict with the workspace's charts, the filled timeframe slots, and
        the ids classified by this request.

    Raises:
        HTTPException(400/413/415) if an upload is not a usable image.
    """
    workspace = require_workspace(request, workspace_id)
    if not files:
        raise HTTPException(status_code=400, detail="At least one chart image is required.")

    settings = request.app.state.settings
    chart_dal = ChartDAL(request.app.state.db_initializer)
    thumb_gen = ThumbnailGenerator()

    # Validate everything before storing anything so a bad file rejects the whole batch.
    prepared = []
    for upload in files:
        mime_type = resolve_image_type(upload)
        raw = await read_image_bytes(upload, settings.max_upload_bytes)
        try:
            preview = await asyncio.to_thread(thumb_gen.create_preview, raw)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"{upload.filename or 'upload'}: {exc}") from exc
        prepared.append((upload.filename or "chart", mime_type, raw, preview))

    for filename, mime_type, raw, preview in prepared:
        chart_id = await chart_dal.create_chart(
            ChartRecord(
                id=None,
                workspace_id=workspace_id,
                chart_filename=filename,
                mime_type=mime_type,
                chart_thumbnail=preview.png_bytes,
            )
        )
        workspace.add_image(
            UploadedImage(id=chart_id, filename=filename, image_b64=to_base64_image(raw), mime_type=mime_type)
        )

    classified = await workspace.classify_pending()
    for image in classified:
        await chart_dal.update_classification(
            image.id,
            timeframe=image.detected_timeframe.value if image.detected_timeframe else None,
            classification_error=image.classification_error,
        )
    LOGGER.info(
        "Workspace %s: classified %d chart(s), %d failed",
        workspace_id,
        sum(1 for image in classified if image.is_classified),
        sum(1 for image in classified if not image.is_classified),
    )

    return {
        "workspace_id": workspace_id,
        "images": [image.to_dict() for image in workspace.images],
        "timeframes": workspace.image_set.to_dict(),
        "classified_ids": [image.id for image in classified],
        "can_analyze": workspace.has_classified_image(),
    }


async def get_thumbnail(request: Request, chart_id: int) -> Response:
    """Return the stored PNG preview of a chart.

    Raises:
        HTTPException(404) if the chart or thumbnail is not found.
    """
    record = await ChartDAL(request.app.state.db_initializer).get_chart_by_id(int(chart_id))
    if record is None:
        raise HTTPException(status_code=404, detail="Chart not found")

    if not record.chart_thumbnail:
        raise HTTPException(status_code=404, detail="Thumbnail not available for this chart")

    return Response(content=record.chart_thumbnail, media_type="image/png")
