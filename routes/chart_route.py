"""FastAPI routes for chart uploads and thumbnails."""

from typing import List

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from controllers.chart_controller import get_thumbnail, upload_charts

router = APIRouter(tags=["charts"])


@router.post("/workspaces/{workspace_id}/charts", summary="Upload and classify trading charts")
async def upload_charts_route(request: Request, workspace_id: str, files: List[UploadFile] = File(...)):
    """Store uploaded chart images and detect each one's timeframe.

    Charts whose timeframe cannot be detected are kept with an error message;
    they never fail the request.
    """
    try:
        return await upload_charts(request, workspace_id, files)
    except HTTPException:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/charts/{chart_id}/thumbnail")
async def get_chart_thumbnail(request: Request, chart_id: int):
    """Return the PNG thumbnail bytes for the specified chart id."""
    try:
        return await get_thumbnail(request, chart_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
