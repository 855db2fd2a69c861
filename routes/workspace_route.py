"""FastAPI routes for workspaces, analysis runs, and contextual chat."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.analysis_controller import get_analysis, run_analysis
from controllers.chat_controller import close_chat, close_query_affordance, follow_up, submit_query
from controllers.workspace_controller import clear_charts, create_workspace, discard_workspace, get_workspace

router = APIRouter(prefix="/workspaces")


class QuestionPayload(BaseModel):
	question: str


@router.post("")
async def create_workspace_route(request: Request):
	try:
		return await create_workspace(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{workspace_id}")
async def get_workspace_route(request: Request, workspace_id: str):
	try:
		return await get_workspace(request, workspace_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{workspace_id}")
async def discard_workspace_route(request: Request, workspace_id: str):
	try:
		return await discard_workspace(request, workspace_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{workspace_id}/charts")
async def clear_charts_route(request: Request, workspace_id: str):
	try:
		return await clear_charts(request, workspace_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{workspace_id}/analysis")
async def run_analysis_route(request: Request, workspace_id: str):
	try:
		return await run_analysis(request, workspace_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{workspace_id}/analysis")
async def get_analysis_route(request: Request, workspace_id: str):
	try:
		return await get_analysis(request, workspace_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{workspace_id}/chat/query")
async def submit_query_route(request: Request, workspace_id: str, payload: QuestionPayload):
	try:
		return await submit_query(request, workspace_id, payload.question)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{workspace_id}/chat/messages")
async def follow_up_route(request: Request, workspace_id: str, payload: QuestionPayload):
	try:
		return await follow_up(request, workspace_id, payload.question)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{workspace_id}/chat/close")
async def close_chat_route(request: Request, workspace_id: str):
	try:
		return await close_chat(request, workspace_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{workspace_id}/selection/clear")
async def clear_selection_route(request: Request, workspace_id: str):
	try:
		return await close_query_affordance(request, workspace_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
