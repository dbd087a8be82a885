"""
Key-Value Store

SQLite-backed durable key-value storage. Values are JSON-encoded so any
plain dict/list/scalar round-trips. The DomainStore persists its whole
snapshot under one key after every update.
"""

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

from carevoice.logger import get_logger


class KeyValueStore:
    """Thread-safe JSON key-value store on top of SQLite."""

    def __init__(self, db_path: str, config=None):
        self.logger = get_logger(__name__, config)
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        """Create the kv table if it doesn't exist."""
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key         TEXT PRIMARY KEY,
                        value       TEXT NOT NULL,
                        updated_at  TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
                    )
                """)
                conn.commit()
            finally:
                conn.close()
        self.logger.info(f"Key-value store ready at {self.db_path}")

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for key, or default if absent or unreadable."""
        with self._db_lock:
            conn = self._conn()
            try:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            self.logger.error(f"Stored value for '{key}' is not valid JSON: {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        with self._db_lock:
            conn = self._conn()
            try:
                conn.execute("""
                    INSERT INTO kv (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = datetime('now', 'localtime')
                """, (key, encoded))
                conn.commit()
            finally:
                conn.close()

    def delete(self, key: str) -> bool:
        with self._db_lock:
            conn = self._conn()
            try:
                cur = conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                conn.commit()
                return cur.rowcount > 0
            finally:
                conn.close()
