import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

CHART_SCHEMA = """
    CREATE TABLE IF NOT EXISTS CHART (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        workspace_id TEXT NOT NULL,
        chart_filename TEXT NOT NULL,
        mime_type TEXT,
        chart_thumbnail BLOB,
        timeframe TEXT,
        classification_error TEXT,
        created_at INTEGER
    )
"""


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database holding chart thumbnails and metadata.

    - The database file is located at: <DATABASE_DIR>/app.db, or at
      <db_dir>/app.db when a directory is passed explicitly.
    - A RuntimeError is raised if the directory is missing or invalid
      (not a directory and cannot be created).
    - On the first call to `ensure_database()` for a given instance:
        * Any existing database file at that path is deleted.
        * A new database file is created with the CHART table.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.

    Nothing survives a restart: charts and analyses are per-session only.
    """

    def __init__(self, db_dir: Optional[Path | str] = None) -> None:
        env_dir = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        resolved = Path(env_dir).expanduser()

        if resolved.exists() and not resolved.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={env_dir!r} points to a file, not a directory "
                f"({resolved}). Please set DATABASE_DIR to a directory path."
            )

        try:
            resolved.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {resolved}"
            ) from exc

        self.db_dir = resolved
        self.db_path = self.db_dir / "app.db"

        # Wipe-and-recreate happens once per instance.
        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure a fresh SQLite database exists at `self.db_path`.

        On first call this deletes any existing database file and creates
        the CHART table. Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        if self.db_path.exists():
            try:
                self.db_path.unlink()
            except Exception as exc:
                raise RuntimeError(
                    f"Failed to delete existing database at {self.db_path}"
                ) from exc

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(CHART_SCHEMA)
                    await db.execute(
                        "CREATE INDEX IF NOT EXISTS idx_chart_workspace ON CHART(workspace_id)"
                    )
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The database is created/reset on the first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
