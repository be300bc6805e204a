# Keybox: SQLite Connection Helper
#
# Connections opened here run in WAL mode with a busy timeout, commit when
# the block exits cleanly, roll back when it raises, and always close.

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

BUSY_TIMEOUT_MS = 5000


@contextmanager
def connect(db_path: Union[str, Path]) -> Iterator[sqlite3.Connection]:
    """Yield a WAL-mode connection to ``db_path`` inside a transaction."""
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT_MS / 1000)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
