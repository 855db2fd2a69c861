"""Contextual query and chat helpers."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.workspace_controller import require_workspace
from services.errors import ChatBusyError, ChatClosedError
from services.workspace import Workspace


def _chat_view(workspace: Workspace) -> Dict[str, Any]:
	session = workspace.chat.session
	return {
		"workspace_id": workspace.workspace_id,
		"selection": workspace.selection.state.to_dict(),
		"session_id": session.session_id if session else None,
		"turns": [turn.to_dict() for turn in workspace.chat.chat_log()],
	}


async def submit_query(request: Request, workspace_id: str, question: str) -> Dict[str, Any]:
	"""Open the chat from the query affordance with a seed question."""
	workspace = require_workspace(request, workspace_id)
	try:
		await workspace.chat.submit_query(question)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except ChatBusyError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	return _chat_view(workspace)


async def follow_up(request: Request, workspace_id: str, question: str) -> Dict[str, Any]:
	workspace = require_workspace(request, workspace_id)
	try:
		await workspace.chat.follow_up(question)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except (ChatBusyError, ChatClosedError) as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	return _chat_view(workspace)


async def close_chat(request: Request, workspace_id: str) -> Dict[str, Any]:
	workspace = require_workspace(request, workspace_id)
	workspace.chat.close_chat()
	return _chat_view(workspace)


async def close_query_affordance(request: Request, workspace_id: str) -> Dict[str, Any]:
	workspace = require_workspace(request, workspace_id)
	workspace.chat.close_query_affordance()
	return _chat_view(workspace)
