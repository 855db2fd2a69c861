"""WebSocket endpoint relaying selection events and pushing workspace state."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.realtime.ws_workspace import WorkspaceSocketHandler
from services.workspace_store import WorkspaceStore

router = APIRouter()


def _require_workspace_store(websocket: WebSocket) -> WorkspaceStore:
	store = getattr(websocket.app.state, "workspace_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Workspace store unavailable")
	return store


@router.websocket("/ws/{workspace_id}")
async def workspace_socket(
	websocket: WebSocket, workspace_id: str, store: WorkspaceStore = Depends(_require_workspace_store)
):
	"""Handle selection tracking, contextual chat, and analysis runs over one websocket."""
	await websocket.accept()
	try:
		workspace = store.get(workspace_id)
	except KeyError:
		await websocket.send_text(json.dumps({"type": "error", "detail": "Workspace not found"}))
		await websocket.close()
		return

	handler = WorkspaceSocketHandler(workspace, websocket)
	handler.attach()
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			except Exception:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid websocket frame"}))
				continue
			try:
				payload = json.loads(raw)
			except Exception:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(payload)
	finally:
		handler.detach()
	try:
		await websocket.close()
	except Exception:
		pass
