"""Analysis run helpers."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.workspace_controller import require_workspace
from services.errors import PipelineBusyError, PipelineValidationError


async def run_analysis(request: Request, workspace_id: str) -> Dict[str, Any]:
	"""Run the multi-timeframe pipeline and return the resulting analysis view.

	A failed stage is not an HTTP error: the view carries status ``failed``,
	the error message, and whatever results completed before the failure.
	"""
	workspace = require_workspace(request, workspace_id)
	try:
		await workspace.run_analysis()
	except PipelineValidationError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except PipelineBusyError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	return workspace.analysis_view()


async def get_analysis(request: Request, workspace_id: str) -> Dict[str, Any]:
	return require_workspace(request, workspace_id).analysis_view()
