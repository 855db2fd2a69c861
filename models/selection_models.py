"""Selection and chat domain models for contextual follow-up questions."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4


@dataclass(frozen=True)
class SelectionState:
	"""Workspace-wide selection, affordance, and chat visibility.

	The inline query affordance and the chat surface are mutually exclusive.
	"""

	selected_text: str = ""
	full_context: str = ""
	query_affordance_visible: bool = False
	chat_open: bool = False
	seed_question: str = ""

	def __post_init__(self) -> None:
		if self.chat_open and self.query_affordance_visible:
			raise ValueError("Chat and query affordance cannot both be visible.")

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


EMPTY_SELECTION = SelectionState()


@dataclass(frozen=True)
class SelectionEvent:
	"""One selection-change notification relayed from the client.

	Attributes:
		text: Raw selected text (may be empty when the selection collapsed).
		region_id: Selectable region the selection started in, if any.
		on_interaction_surface: True when focus moved into the query bar or chat panel.
	"""

	text: str = ""
	region_id: Optional[str] = None
	on_interaction_surface: bool = False


class ChatRole(str, Enum):
	USER = "user"
	ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatTurn:
	"""One entry of a chat session log."""

	role: ChatRole
	text: str
	selected_text: Optional[str] = None
	id: str = field(default_factory=lambda: uuid4().hex)
	created_at: float = field(default_factory=lambda: time.time())

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"role": self.role.value,
			"text": self.text,
			"selected_text": self.selected_text,
			"created_at": self.created_at,
		}
