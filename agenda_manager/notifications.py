"""
Short-lived user notifications.

Every command outcome (success or rejected input) is posted here. Entries
expire after a TTL; subscribers are told about each one as it is posted.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Any

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3.0


@dataclass
class Notification:
    """One transient message."""
    title: str
    description: str = ""
    variant: str = "default"       # "default" | "destructive"
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "variant": self.variant,
            "created_at": self.created_at,
        }


class Notifier:
    """Holds active notifications and fans them out to subscribers."""

    def __init__(self, ttl: float = DEFAULT_TTL):
        self.ttl = ttl
        self._entries: List[Notification] = []
        self._subscribers: List[Callable[[Notification], None]] = []

    def subscribe(self, callback: Callable[[Notification], None]) -> None:
        self._subscribers.append(callback)

    def post(self, title: str, description: str = "", variant: str = "default") -> Notification:
        note = Notification(title=title, description=description, variant=variant)
        self._prune(note.created_at)
        self._entries.append(note)
        for callback in self._subscribers:
            try:
                callback(note)
            except Exception as e:
                logger.warning(f"Error in notification subscriber: {e}")
        return note

    def error(self, title: str, description: str = "") -> Notification:
        return self.post(title, description, variant="destructive")

    def active(self, now: Optional[float] = None) -> List[Notification]:
        """Drop expired entries and return the rest, oldest first."""
        if now is None:
            now = time.time()
        self._prune(now)
        return list(self._entries)

    def _prune(self, now: float) -> None:
        self._entries = [n for n in self._entries if now - n.created_at < self.ttl]
