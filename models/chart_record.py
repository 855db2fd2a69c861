from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ChartRecord:
    """In-memory representation of a row in the CHART table.

    Attributes:
        id: Primary key (None for new records).
        workspace_id: Workspace that owns the upload.
        chart_filename: Filename supplied with the upload.
        mime_type: MIME type of the original upload.
        chart_thumbnail: Optional PNG thumbnail bytes.
        timeframe: Optional timeframe detected by the classifier.
        classification_error: Optional classifier error text.
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: Optional[int]
    workspace_id: str
    chart_filename: str
    mime_type: Optional[str] = None
    chart_thumbnail: Optional[bytes] = None
    timeframe: Optional[str] = None
    classification_error: Optional[str] = None
    created_at: Optional[int] = None
