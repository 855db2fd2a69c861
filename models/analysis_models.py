"""Value objects describing the state of an analysis pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from models.timeframe import Stage


class PipelineStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisResultSet:
    """Result text per stage. Treated as immutable: every write returns a new set."""

    results: Mapping[Stage, str] = field(default_factory=dict)

    def with_result(self, stage: Stage, text: str) -> "AnalysisResultSet":
        updated = dict(self.results)
        updated[stage] = text
        return AnalysisResultSet(results=updated)

    def get(self, stage: Stage) -> Optional[str]:
        return self.results.get(stage)

    @property
    def final(self) -> Optional[str]:
        return self.results.get(Stage.FINAL)

    def __len__(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {stage.value: self.results.get(stage) for stage in Stage}


@dataclass(frozen=True)
class PipelineProgress:
    current_stage: Optional[Stage] = None
    completed_count: int = 0
    total_count: int = 0

    @property
    def percent(self) -> float:
        if not self.total_count:
            return 0.0
        return self.completed_count / self.total_count * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_stage": self.current_stage.value if self.current_stage else None,
            "completed_count": self.completed_count,
            "total_count": self.total_count,
            "percent": self.percent,
        }


@dataclass(frozen=True)
class PipelineSnapshot:
    """Read-only view handed to observers after every pipeline state change."""

    status: PipelineStatus
    progress: PipelineProgress
    results: AnalysisResultSet
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "progress": self.progress.to_dict(),
            "results": self.results.to_dict(),
            "error": self.error,
        }
