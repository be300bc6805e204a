"""SQLite-backed box repository.

The blob lives in a single-row table; a save is one UPSERT inside a
transaction, so the stored blob is always either the old or the new one.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Union

from ..core.db import connect
from ..vault.errors import RepositoryError
from .repository import BoxRepository

logger = logging.getLogger(__name__)

_BLOB_ROW_ID = 1


class SqliteRepository(BoxRepository):
    """Stores the box blob in ``box_blob`` (one row, id = 1)."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._initialized = False

    def _init_database(self):
        if self._initialized:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS box_blob (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    data BLOB NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)
        self._initialized = True

    def load(self) -> bytes:
        try:
            self._init_database()
            with connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT data FROM box_blob WHERE id = ?", (_BLOB_ROW_ID,)
                ).fetchone()
        except (sqlite3.Error, OSError) as e:
            raise RepositoryError(f"failed to load box from {self.db_path}: {e}") from e
        if row is None:
            return b""
        return bytes(row[0])

    def save(self, data: bytes) -> None:
        try:
            self._init_database()
            with connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO box_blob (id, data, updated_at)
                    VALUES (?, ?, datetime('now'))
                    ON CONFLICT(id) DO UPDATE SET
                        data = excluded.data,
                        updated_at = excluded.updated_at
                    """,
                    (_BLOB_ROW_ID, sqlite3.Binary(data)),
                )
        except (sqlite3.Error, OSError) as e:
            raise RepositoryError(f"failed to save box to {self.db_path}: {e}") from e
        logger.debug("Saved %d bytes to %s", len(data), self.db_path)
