"""SQLite database handle and schema management.

A Database is constructed once (at process or app startup), handed to the
repository, and closed at shutdown. The connection is opened lazily on
first use and the schema is created on that first acquisition.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("data/planner.db")

MEMORY_PATH = ":memory:"


class Database:
    """Owned SQLite connection for the coverage store.

    Example:
        db = Database(Path("data/planner.db"))
        with db.transaction() as conn:
            conn.execute("SELECT * FROM coverage")
        db.close()
    """

    def __init__(self, path: Path | str = DEFAULT_DB_PATH):
        self.path = path
        self._conn: sqlite3.Connection | None = None
        # Serializes use of the single connection across request threads
        self._lock = threading.RLock()

    @property
    def is_memory(self) -> bool:
        return str(self.path) == MEMORY_PATH

    def connect(self) -> sqlite3.Connection:
        """Return the shared connection, opening it on first use."""
        with self._lock:
            if self._conn is None:
                self._conn = self._open()
            return self._conn

    def _open(self) -> sqlite3.Connection:
        if not self.is_memory:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        if not self.is_memory:
            conn.execute("PRAGMA journal_mode = WAL")

        _create_schema(conn)
        conn.commit()

        logger.info("database.initialized", path=str(self.path))
        return conn

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run statements in one transaction.

        Commits on success and rolls back if the block raises.
        """
        with self._lock:
            conn = self.connect()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def close(self) -> None:
        """Close the connection; a later use reopens it."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("database.closed", path=str(self.path))


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create the coverage table.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- One row per (phone, student_class); data holds the JSON progress tree
        CREATE TABLE IF NOT EXISTS coverage (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            phone TEXT NOT NULL,
            student_class TEXT NOT NULL CHECK(student_class IN ('11', '12')),
            data TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_coverage_phone_class
            ON coverage(phone, student_class);
        CREATE INDEX IF NOT EXISTS idx_coverage_updated
            ON coverage(updated_at);
        """
    )
