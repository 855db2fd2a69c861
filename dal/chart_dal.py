"""Async Data Access Layer for the CHART table.

Provides ChartDAL with the async operations the upload and thumbnail
controllers need, on top of `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import time
from typing import List, Optional, Sequence

from models.chart_record import ChartRecord
from utils.database_init import AsyncDatabaseInitializer


class ChartDAL:
    """Data access layer for CHART records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "workspace_id",
        "chart_filename",
        "mime_type",
        "chart_thumbnail",
        "timeframe",
        "classification_error",
        "created_at",
    )
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_chart(self, record: ChartRecord) -> int:
        """Insert a new CHART row and return the new id."""
        created_at = record.created_at or int(time.time())

        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO CHART ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    record.workspace_id,
                    record.chart_filename,
                    record.mime_type,
                    record.chart_thumbnail,
                    record.timeframe,
                    record.classification_error,
                    created_at,
                ),
            )
            await conn.commit()
            return cur.lastrowid

    async def get_chart_by_id(self, chart_id: int) -> Optional[ChartRecord]:
        """Return ChartRecord for `chart_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM CHART WHERE id = ?",
                (chart_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_charts(self, workspace_id: str) -> List[ChartRecord]:
        """List a workspace's CHART rows in upload order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM CHART WHERE workspace_id = ? ORDER BY id",
                (workspace_id,),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def update_classification(
        self,
        chart_id: int,
        *,
        timeframe: Optional[str] = None,
        classification_error: Optional[str] = None,
    ) -> bool:
        """Store the classifier outcome. Returns True if a row was changed."""
        async with self._db.connection() as conn:
            await conn.execute(
                "UPDATE CHART SET timeframe = ?, classification_error = ? WHERE id = ?",
                (timeframe, classification_error, chart_id),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def delete_workspace_charts(self, workspace_id: str) -> int:
        """Delete every CHART row of a workspace and return the count removed."""
        async with self._db.connection() as conn:
            cur = await conn.execute("DELETE FROM CHART WHERE workspace_id = ?", (workspace_id,))
            await conn.commit()
            return cur.rowcount

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ChartRecord:
        """Convert a DB row tuple into a ChartRecord."""
        return ChartRecord(
            id=row[0],
            workspace_id=row[1],
            chart_filename=row[2],
            mime_type=row[3],
            chart_thumbnail=row[4],
            timeframe=row[5],
            classification_error=row[6],
            created_at=row[7],
        )
