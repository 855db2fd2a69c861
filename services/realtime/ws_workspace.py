"""Dispatch workspace websocket events and push state changes back to the client."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from fastapi import WebSocket

from models.analysis_models import PipelineSnapshot
from models.selection_models import SelectionEvent, SelectionState
from services.workspace import Workspace

LOGGER = logging.getLogger(__name__)


class WorkspaceSocketHandler:
	"""Route websocket messages for one workspace connection.

	Selection and click notifications are handled inline. Analysis runs and
	chat questions await the vision service, so they run as background tasks
	and report back through pushed state frames.
	"""

	def __init__(self, workspace: Workspace, websocket: WebSocket) -> None:
		self.workspace = workspace
		self.websocket = websocket
		self._tasks: Set[asyncio.Task] = set()
		self._unsubscribers: List[Callable[[], None]] = []

	def attach(self) -> None:
		"""Start pushing selection, pipeline, and highlight changes to the client."""
		self._unsubscribers.append(self.workspace.selection.subscribe(self._on_selection))
		self._unsubscribers.append(self.workspace.pipeline.subscribe(self._on_pipeline))
		self.workspace.highlight_listeners.append(self._on_highlight_cleared)

	def detach(self) -> None:
		for unsubscribe in self._unsubscribers:
			unsubscribe()
		self._unsubscribers = []
		if self._on_highlight_cleared in self.workspace.highlight_listeners:
			self.workspace.highlight_listeners.remove(self._on_highlight_cleared)

	async def handle(self, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		try:
			if message_type == "selection.change":
				region_id = payload.get("region_id")
				if region_id is not None and not isinstance(region_id, str):
					raise ValueError("region_id must be a string.")
				self.workspace.tracker.selection_changed(
					SelectionEvent(
						text=str(payload.get("text") or ""),
						region_id=region_id,
						on_interaction_surface=bool(payload.get("on_interaction_surface")),
					)
				)
				result = None
			elif message_type == "page.click":
				self.workspace.tracker.click(on_interaction_surface=bool(payload.get("on_interaction_surface")))
				result = None
			elif message_type == "query.submit":
				self._spawn(request_id, self.workspace.chat.submit_query(str(payload.get("question") or "")))
				await asyncio.sleep(0)
				result = self._chat_frame()
			elif message_type == "chat.ask":
				self._spawn(request_id, self.workspace.chat.follow_up(str(payload.get("question") or "")))
				await asyncio.sleep(0)
				result = self._chat_frame()
			elif message_type == "chat.close":
				self.workspace.chat.close_chat()
				result = self._chat_frame()
			elif message_type == "query.close":
				self.workspace.chat.close_query_affordance()
				result = None
			elif message_type == "analysis.run":
				self._spawn(request_id, self.workspace.run_analysis(), done_frame=self._analysis_frame)
				result = None
			elif message_type == "state.get":
				result = {"type": "workspace.state", "workspace": self.workspace.to_dict()}
			else:
				raise ValueError("Unsupported message type.")
			if result is not None:
				result["request_id"] = request_id
				await self._send(result)
		except Exception as exc:
			await self._send_error(request_id, str(exc))

	def _spawn(
		self,
		request_id: Any,
		work: Awaitable[Any],
		done_frame: Optional[Callable[[], Dict[str, Any]]] = None,
	) -> None:
		build_frame = done_frame or self._chat_frame

		async def runner() -> None:
			try:
				await work
			except Exception as exc:
				await self._send_error(request_id, str(exc))
				return
			await self._send({**build_frame(), "request_id": request_id})

		task = asyncio.get_running_loop().create_task(runner())
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)

	def _analysis_frame(self) -> Dict[str, Any]:
		return {"type": "analysis.done", "analysis": self.workspace.analysis_view()}

	def _chat_frame(self) -> Dict[str, Any]:
		session = self.workspace.chat.session
		return {
			"type": "chat.log",
			"session_id": session.session_id if session else None,
			"pending": bool(session and session.pending),
			"turns": [turn.to_dict() for turn in self.workspace.chat.chat_log()],
		}

	def _on_selection(self, state: SelectionState) -> None:
		self._push({"type": "selection.state", "selection": state.to_dict()})

	def _on_pipeline(self, snapshot: PipelineSnapshot) -> None:
		self._push({"type": "pipeline.state", "analysis": snapshot.to_dict()})

	def _on_highlight_cleared(self) -> None:
		self._push({"type": "selection.cleared"})

	def _push(self, payload: Dict[str, Any]) -> None:
		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			LOGGER.debug("No running loop; dropping %s frame", payload.get("type"))
			return
		task = loop.create_task(self._send(payload))
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)

	async def _send_error(self, request_id: Optional[Any], detail: str) -> None:
		await self._send({"type": "error", "request_id": request_id, "detail": detail})

	async def _send(self, payload: Dict[str, Any]) -> None:
		try:
			await self.websocket.send_text(json.dumps(payload))
		except Exception as exc:
			LOGGER.debug("Failed to send %s frame: %s", payload.get("type"), exc)
