"""
AccessStore - Key/value persistence for per-user access records.

Each user's full access list is stored as one JSON string under
``<namespace>_<user_id>``. The engine relies only on single-key get/set.

Implementations:
- InMemoryAccessStore: process-local dict, for tests and embedding
- SqliteAccessStore: one-table SQLite database (default ~/.gradegate/access.db)
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .errors import TransientIOFailure

logger = logging.getLogger(__name__)

DEFAULT_STORE_DIR = Path.home() / ".gradegate"
DEFAULT_STORE_DB = DEFAULT_STORE_DIR / "access.db"
DEFAULT_TIMEOUT = 5.0


@runtime_checkable
class AccessStore(Protocol):
    """Persistence boundary used by the progression engine."""

    def get(self, key: str, timeout: Optional[float] = None) -> Optional[str]:
        """Return the stored value, or None if the key was never set."""
        ...

    def set(self, key: str, value: str, timeout: Optional[float] = None) -> None:
        """Store value under key, replacing any previous value."""
        ...


class InMemoryAccessStore:
    """Dict-backed store. Thread-safe; values are copied strings."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()
        self.write_count = 0

    def _acquire(self, timeout: Optional[float]):
        acquired = self._lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise TransientIOFailure(f"In-memory store busy after {timeout}s")

    def get(self, key: str, timeout: Optional[float] = None) -> Optional[str]:
        self._acquire(timeout)
        try:
            return self._data.get(key)
        finally:
            self._lock.release()

    def set(self, key: str, value: str, timeout: Optional[float] = None) -> None:
        self._acquire(timeout)
        try:
            self._data[key] = value
            self.write_count += 1
        finally:
            self._lock.release()

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))


class SqliteAccessStore:
    """
    Store values in a SQLite key/value table.

    A new connection is opened per call, so one instance can be shared
    across threads. Lock contention beyond the timeout and any other
    sqlite3 error surface as TransientIOFailure.
    """

    def __init__(self, db_path: Optional[str | Path] = None, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize the store, creating the database if needed.

        Args:
            db_path: Path to the database file (default: ~/.gradegate/access.db)
            timeout: Default seconds to wait on a locked database
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_STORE_DB
        self.timeout = timeout
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._get_connection(self.timeout)
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self, timeout: Optional[float]) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.timeout if timeout is None else timeout,
        )
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str, timeout: Optional[float] = None) -> Optional[str]:
        try:
            conn = self._get_connection(timeout)
            try:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
                return row["value"] if row else None
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to read {key} from {self.db_path}: {e}")
            raise TransientIOFailure(f"Read of {key} failed: {e}") from e

    def set(self, key: str, value: str, timeout: Optional[float] = None) -> None:
        try:
            conn = self._get_connection(timeout)
            try:
                conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at)
                       VALUES (?, ?, CURRENT_TIMESTAMP)
                       ON CONFLICT(key) DO UPDATE SET
                         value = excluded.value,
                         updated_at = excluded.updated_at""",
                    (key, value)
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to write {key} to {self.db_path}: {e}")
            raise TransientIOFailure(f"Write of {key} failed: {e}") from e

    def keys(self, prefix: str = "") -> list[str]:
        """Stored keys starting with prefix, sorted."""
        conn = self._get_connection(None)
        try:
            cursor = conn.execute(
                "SELECT key FROM kv_store WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                (prefix.replace("%", r"\%").replace("_", r"\_") + "%",)
            )
            return [row["key"] for row in cursor.fetchall()]
        finally:
            conn.close()
