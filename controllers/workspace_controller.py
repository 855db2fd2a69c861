"""Workspace lifecycle helpers."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from dal.chart_dal import ChartDAL
from services.errors import PipelineBusyError
from services.workspace import Workspace
from services.workspace_store import WorkspaceStore


def require_workspace(request: Request, workspace_id: str) -> Workspace:
	"""Return the workspace or raise HTTP 404."""
	store: WorkspaceStore = request.app.state.workspace_store
	try:
		return store.get(workspace_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail="Workspace not found") from exc


async def create_workspace(request: Request) -> Dict[str, Any]:
	"""Create a new workspace and return its snapshot."""
	store: WorkspaceStore = request.app.state.workspace_store
	workspace = store.create(request.app.state.vision_client)
	return workspace.to_dict()


async def get_workspace(request: Request, workspace_id: str) -> Dict[str, Any]:
	return require_workspace(request, workspace_id).to_dict()


async def clear_charts(request: Request, workspace_id: str) -> Dict[str, Any]:
	"""Forget the workspace's uploads, stored thumbnails, and analysis results."""
	workspace = require_workspace(request, workspace_id)
	try:
		await workspace.clear_charts()
	except PipelineBusyError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	removed = await ChartDAL(request.app.state.db_initializer).delete_workspace_charts(workspace_id)
	return {"workspace_id": workspace_id, "removed": removed}


async def discard_workspace(request: Request, workspace_id: str) -> Dict[str, Any]:
	store: WorkspaceStore = request.app.state.workspace_store
	require_workspace(request, workspace_id)
	store.discard(workspace_id)
	await ChartDAL(request.app.state.db_initializer).delete_workspace_charts(workspace_id)
	return {"workspace_id": workspace_id, "discarded": True}
