"""
Backend data access for DJs, events and notes (SQLite).

Read paths log database errors and return an empty result so a broken
query only blanks one panel. Note writes raise, the caller needs to know
the change did not happen.
"""
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .schema import ValidationError, clean_title
from .views import format_day, parse_item_date

logger = logging.getLogger(__name__)

UNTITLED_EVENT = "Evento sem título"
UNDATED_EVENT = "Data não definida"


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with FK enforcement."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean_content(value: Any) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"content must be text, got {type(value).__name__}")
    return value


def init_schema(db_path: str) -> None:
    """Create backend tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with _connect(db_path) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS djs (
                id TEXT PRIMARY KEY,
                name TEXT,
                artist_name TEXT NOT NULL,
                real_name TEXT,
                email TEXT,
                status TEXT DEFAULT 'ativo',
                avatar_url TEXT,
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS producers (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                company_name TEXT,
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS events (
                id TEXT PRIMARY KEY,
                title TEXT,
                event_name TEXT,
                event_date TEXT,
                location TEXT,
                status TEXT,
                dj_id TEXT,
                producer_id TEXT,
                created_at TEXT NOT NULL,
                FOREIGN KEY (dj_id) REFERENCES djs(id),
                FOREIGN KEY (producer_id) REFERENCES producers(id)
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS notes (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                content TEXT,
                event_id TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_events_dj ON events(dj_id, event_date)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_notes_user ON notes(user_id, created_at)")
        conn.commit()


class _Service:
    """Shared connection handling."""

    def __init__(self, db_path: str):
        self.db_path = str(db_path)

    def _query(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        try:
            with _connect(self.db_path) as conn:
                rows = conn.execute(sql, params).fetchall()
            return [dict(r) for r in rows]
        except sqlite3.Error as e:
            logger.warning(f"{type(self).__name__} query failed: {e}")
            return []


class DjService(_Service):
    """DJ roster (read-mostly)."""

    def list_all(self) -> List[Dict[str, Any]]:
        return self._query("SELECT * FROM djs ORDER BY artist_name ASC")

    def get(self, dj_id: str) -> Optional[Dict[str, Any]]:
        rows = self._query("SELECT * FROM djs WHERE id = ?", (dj_id,))
        return rows[0] if rows else None

    def save(self, dj: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or replace a DJ row."""
        row = {
            "id": dj.get("id") or str(uuid.uuid4()),
            "name": dj.get("name"),
            "artist_name": dj["artist_name"],
            "real_name": dj.get("real_name"),
            "email": dj.get("email"),
            "status": dj.get("status", "ativo"),
            "avatar_url": dj.get("avatar_url"),
            "created_at": dj.get("created_at") or _now(),
        }
        with _connect(self.db_path) as conn:
            conn.execute("""
                INSERT OR REPLACE INTO djs
                (id, name, artist_name, real_name, email, status, avatar_url, created_at)
                VALUES (:id, :name, :artist_name, :real_name, :email, :status, :avatar_url, :created_at)
            """, row)
            conn.commit()
        return row


class EventService(_Service):
    """Booked events, joined with DJ and producer names."""

    _SELECT = """
        SELECT e.*, d.name AS dj_name, d.artist_name, p.name AS producer_name, p.company_name
        FROM events e
        LEFT JOIN djs d ON e.dj_id = d.id
        LEFT JOIN producers p ON e.producer_id = p.id
    """

    def get_all(self) -> List[Dict[str, Any]]:
        return self._query(self._SELECT + " ORDER BY e.event_date DESC")

    def get_by_dj(self, dj_id: str) -> List[Dict[str, Any]]:
        """Events for one DJ, newest first."""
        return self._query(self._SELECT + " WHERE e.dj_id = ? ORDER BY e.event_date DESC", (dj_id,))

    def get_by_producer(self, producer_id: str) -> List[Dict[str, Any]]:
        return self._query(self._SELECT + " WHERE e.producer_id = ? ORDER BY e.event_date DESC", (producer_id,))

    def save(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or replace an event row."""
        row = {
            "id": event.get("id") or str(uuid.uuid4()),
            "title": event.get("title"),
            "event_name": event.get("event_name"),
            "event_date": event.get("event_date"),
            "location": event.get("location"),
            "status": event.get("status"),
            "dj_id": event.get("dj_id"),
            "producer_id": event.get("producer_id"),
            "created_at": event.get("created_at") or _now(),
        }
        with _connect(self.db_path) as conn:
            conn.execute("""
                INSERT OR REPLACE INTO events
                (id, title, event_name, event_date, location, status, dj_id, producer_id, created_at)
                VALUES (:id, :title, :event_name, :event_date, :location, :status, :dj_id, :producer_id, :created_at)
            """, row)
            conn.commit()
        return row


class NotesService(_Service):
    """Per-user notes."""

    def list_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Notes for a user, newest first."""
        return self._query(
            "SELECT * FROM notes WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        )

    def get(self, note_id: str) -> Optional[Dict[str, Any]]:
        rows = self._query("SELECT * FROM notes WHERE id = ?", (note_id,))
        return rows[0] if rows else None

    def create(self, user_id: str, title: str, content: str = "") -> Dict[str, Any]:
        """
        Create a note.

        Raises:
            ValidationError: missing user or blank title
            sqlite3.Error: the insert failed
        """
        if not user_id:
            raise ValidationError("user_id is required")
        title = clean_title(title)
        content = _clean_content(content) or ""

        now = _now()
        note = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "title": title,
            "content": content,
            "event_id": None,
            "created_at": now,
            "updated_at": now,
        }
        with _connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO notes (id, user_id, title, content, event_id, created_at, updated_at)
                VALUES (:id, :user_id, :title, :content, :event_id, :created_at, :updated_at)
            """, note)
            conn.commit()
        logger.info(f"Created note {note['id']} for user {user_id}")
        return note

    def update(self, note_id: str, title: Optional[str] = None, content: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Partial update; updated_at always moves forward.

        Returns the updated note, or None if no note has that id.
        """
        updates: List[Tuple[str, Any]] = []
        if title is not None:
            title = clean_title(title)
            updates.append(("title", title))
        if content is not None:
            updates.append(("content", _clean_content(content)))
        updates.append(("updated_at", _now()))

        set_clause = ", ".join(f"{column} = ?" for column, _ in updates)
        params = tuple(value for _, value in updates) + (note_id,)
        with _connect(self.db_path) as conn:
            cursor = conn.execute(f"UPDATE notes SET {set_clause} WHERE id = ?", params)
            conn.commit()
            if cursor.rowcount == 0:
                return None
        return self.get(note_id)

    def remove(self, note_id: str) -> bool:
        """Delete a note. Returns False if it did not exist."""
        with _connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
            conn.commit()
            return cursor.rowcount > 0


def event_display(event: Dict[str, Any]) -> Tuple[str, str]:
    """Title and dd/MM/yyyy date for an event row, with fallbacks for missing values."""
    title = event.get("title") or event.get("event_name") or UNTITLED_EVENT
    parsed = parse_item_date(event.get("event_date"))
    date_text = format_day(parsed) if parsed else UNDATED_EVENT
    return title, date_text
