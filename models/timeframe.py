"""Chart timeframes, pipeline stages, and reply normalization."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple


class Timeframe(str, Enum):
    """Chart granularity recognised by the classifier."""

    H4 = "4h"
    H1 = "1h"
    M15 = "15m"
    M5 = "5m"

    @property
    def heading(self) -> str:
        """Upper-case label used in prompts and region contexts (e.g. ``15M``)."""
        return self.value.upper()


class Stage(str, Enum):
    """One unit of pipeline work: a timeframe analysis or the final aggregation."""

    H4 = "4h"
    H1 = "1h"
    M15 = "15m"
    M5 = "5m"
    FINAL = "final"


TIMEFRAME_ORDER: Tuple[Timeframe, ...] = (Timeframe.H4, Timeframe.H1, Timeframe.M15, Timeframe.M5)

TIMEFRAME_ALIASES: Dict[str, Timeframe] = {
    "4h": Timeframe.H4,
    "1h": Timeframe.H1,
    "15m": Timeframe.M15,
    "15min": Timeframe.M15,
    "5m": Timeframe.M5,
    "5min": Timeframe.M5,
}


def normalize_timeframe(reply: Optional[str]) -> Optional[Timeframe]:
    """Map a free-text model reply onto a timeframe, or None when unrecognised."""
    return TIMEFRAME_ALIASES.get((reply or "").strip().lower())


def stage_for(timeframe: Timeframe) -> Stage:
    return Stage(timeframe.value)
