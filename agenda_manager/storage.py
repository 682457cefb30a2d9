"""
Slot storage backend (SQLite).

Each slot holds one JSON value, read and written as a whole. Load failures
fall back to the caller's default and save failures are logged, so a broken
slot never blocks startup or a user action.
"""
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

# Slot names shared with the web client's local storage keys
PERSONAL_SLOT = "agenda-manager-personal"
CONTENT_SLOT = "agenda-manager-content"
KANBAN_SLOT = "agenda-manager-kanban-settings"

DEFAULT_DB = Path.home() / ".local" / "share" / "agenda-manager" / "agenda.db"


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class SlotStore:
    """SQLite-backed key/value store for JSON slots."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize store and create the slots table if needed."""
        if db_path is None:
            db_path = str(DEFAULT_DB)
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def load(self, key: str, fallback: Any) -> Any:
        """Return the decoded slot value, or fallback if missing or unreadable."""
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM slots WHERE key = ? LIMIT 1", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Error loading slot {key}: {e}")
            return fallback

        if row is None:
            return fallback
        try:
            return json.loads(row["value"])
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Corrupt data in slot {key}, using default: {e}")
            return fallback

    def save(self, key: str, value: Any) -> bool:
        """Write a slot. Returns False and logs on failure."""
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.warning(f"Error encoding slot {key}: {e}")
            return False

        now = datetime.now(timezone.utc).isoformat()
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO slots (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, (key, payload, now))
                conn.commit()
            return True
        except sqlite3.Error as e:
            logger.warning(f"Error saving slot {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Remove a slot."""
        try:
            with _connect(self.db_path) as conn:
                conn.execute("DELETE FROM slots WHERE key = ?", (key,))
                conn.commit()
            return True
        except sqlite3.Error as e:
            logger.warning(f"Error deleting slot {key}: {e}")
            return False

    def keys(self) -> List[str]:
        """List stored slot names."""
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute("SELECT key FROM slots ORDER BY key").fetchall()
            return [r["key"] for r in rows]
        except sqlite3.Error as e:
            logger.warning(f"Error listing slots: {e}")
            return []
