"""
Agenda item schema and kanban settings.

Item lifecycle:
  created (todo) → in_progress → completed

Items with category "personal" belong to the personal agenda; every other
category belongs to the content plan. Status can move freely between the
three values, the board allows dragging a card anywhere.
"""
import re
import time
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple, Union


class AgendaError(Exception):
    """Base class for agenda errors."""
    pass


class ValidationError(AgendaError):
    """Raised when an item or command payload fails validation."""
    pass


class ItemNotFound(AgendaError):
    """Raised when a command targets an id no collection holds."""
    pass


class ItemStatus(Enum):
    """Workflow status of an agenda item."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ItemPriority(Enum):
    """Priority of an agenda item."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ItemCategory(Enum):
    """Category of an agenda item. PERSONAL splits the two collections."""
    INSTAGRAM = "instagram"
    MUSIC_PROJECT = "music_project"
    SET_RELEASE = "set_release"
    EVENT = "event"
    PERSONAL = "personal"


class GroupBy(Enum):
    """Kanban grouping dimension."""
    STATUS = "status"
    PRIORITY = "priority"
    CATEGORY = "category"

    @classmethod
    def from_str(cls, value: str) -> "GroupBy":
        try:
            return cls(value)
        except ValueError:
            return cls.STATUS


# Column order per dimension. Board rendering follows this exactly.
COLUMN_ORDER: Dict[GroupBy, Tuple[str, ...]] = {
    GroupBy.STATUS: tuple(s.value for s in ItemStatus),
    GroupBy.PRIORITY: tuple(p.value for p in ItemPriority),
    GroupBy.CATEGORY: tuple(c.value for c in ItemCategory),
}

NEUTRAL_COLOR = "#6b7280"

TITLE_REQUIRED = "title is required"

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# Enum-typed fields may hold a raw string when persisted data carries an
# unknown value; such items stay in lists but have no kanban column.
StatusValue = Union[ItemStatus, str]
PriorityValue = Union[ItemPriority, str]
CategoryValue = Union[ItemCategory, str]


def enum_value(v) -> Any:
    return v.value if isinstance(v, Enum) else v


def _coerce(enum_cls, value, field_name: str):
    """Strict enum coercion for user input."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {field_name}: {value!r} (allowed: {allowed})")


def _lenient(enum_cls, value):
    """Lenient enum coercion for persisted data: unknown strings pass through."""
    try:
        return enum_cls(value)
    except ValueError:
        return value if isinstance(value, str) else str(value)


def make_item_id(category: CategoryValue) -> str:
    """Generate a unique item id: category, ms timestamp, and a uuid4 hex tail."""
    ts = int(time.time() * 1000)
    return f"{enum_value(category)}-{ts}-{uuid.uuid4().hex}"


def normalize_time(value: Optional[str]) -> Optional[str]:
    """Validate an "HH:MM" time of day. Empty means no time."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if not _TIME_RE.match(value):
        raise ValidationError(f"Invalid time: {value!r} (expected HH:MM, 24h)")
    return value


def clean_title(value: Any) -> str:
    """Trimmed, non-empty title. Raises ValidationError otherwise."""
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"title must be text, got {type(value).__name__}")
    value = value.strip()
    if not value:
        raise ValidationError(TITLE_REQUIRED)
    return value


@dataclass
class AgendaItem:
    """A schedulable unit of work in the personal agenda or the content plan."""

    id: str
    title: str
    date: str                                  # ISO-8601 date-time string
    description: Optional[str] = None
    time: Optional[str] = None                 # "HH:MM", 24h
    status: StatusValue = ItemStatus.TODO
    priority: PriorityValue = ItemPriority.MEDIUM
    category: CategoryValue = ItemCategory.PERSONAL
    shared_with_djs: Optional[bool] = None
    dj_id: Optional[str] = None

    @property
    def is_personal(self) -> bool:
        return self.category == ItemCategory.PERSONAL

    @classmethod
    def create(
        cls,
        title: str,
        date: str,
        description: Optional[str] = None,
        time: Optional[str] = None,
        status: StatusValue = ItemStatus.TODO,
        priority: PriorityValue = ItemPriority.MEDIUM,
        category: CategoryValue = ItemCategory.PERSONAL,
        shared_with_djs: Optional[bool] = None,
        dj_id: Optional[str] = None,
    ) -> "AgendaItem":
        """
        Validate user input and build a new item with a generated id.

        Raises ValidationError on a blank title, a missing date, a bad time,
        or an unknown status/priority/category.
        """
        title = clean_title(title)
        if not date or not str(date).strip():
            raise ValidationError("date is required")

        category = _coerce(ItemCategory, category, "category")
        return cls(
            id=make_item_id(category),
            title=title,
            date=str(date).strip(),
            description=description,
            time=normalize_time(time),
            status=_coerce(ItemStatus, status, "status"),
            priority=_coerce(ItemPriority, priority, "priority"),
            category=category,
            shared_with_djs=None if shared_with_djs is None else bool(shared_with_djs),
            dj_id=dj_id or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the web client's camelCase keys."""
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "time": self.time,
            "status": enum_value(self.status),
            "priority": enum_value(self.priority),
            "category": enum_value(self.category),
            "sharedWithDjs": self.shared_with_djs,
            "djId": self.dj_id,
        }
        # Optional fields are omitted rather than written as null
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgendaItem":
        """Deserialize persisted data without rejecting unknown enum values."""
        shared = data.get("sharedWithDjs", data.get("shared_with_djs"))
        # Stored times that are not strings are treated as "no time"
        raw_time = data.get("time")
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            date=data.get("date", ""),
            description=data.get("description"),
            time=raw_time if isinstance(raw_time, str) and raw_time else None,
            status=_lenient(ItemStatus, data.get("status", "todo")),
            priority=_lenient(ItemPriority, data.get("priority", "medium")),
            category=_lenient(ItemCategory, data.get("category", "personal")),
            shared_with_djs=None if shared is None else bool(shared),
            dj_id=data.get("djId", data.get("dj_id")) or None,
        )


# Field names accepted by partial updates, in both spellings
UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "date": "date",
    "time": "time",
    "status": "status",
    "priority": "priority",
    "category": "category",
    "sharedWithDjs": "shared_with_djs",
    "shared_with_djs": "shared_with_djs",
    "djId": "dj_id",
    "dj_id": "dj_id",
}


def validate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a partial update and return it keyed by attribute name.

    Raises ValidationError on unknown fields or invalid values.
    """
    clean: Dict[str, Any] = {}
    for key, value in fields.items():
        attr = UPDATABLE_FIELDS.get(key)
        if attr is None:
            raise ValidationError(f"Unknown field: {key}")
        if attr == "title":
            value = clean_title(value)
        elif attr == "date":
            if not value or not str(value).strip():
                raise ValidationError("date is required")
            value = str(value).strip()
        elif attr == "time":
            value = normalize_time(value)
        elif attr == "status":
            value = _coerce(ItemStatus, value, "status")
        elif attr == "priority":
            value = _coerce(ItemPriority, value, "priority")
        elif attr == "category":
            value = _coerce(ItemCategory, value, "category")
        elif attr == "shared_with_djs":
            value = None if value is None else bool(value)
        elif attr == "dj_id":
            value = value or None
        clean[attr] = value
    return clean


@dataclass
class ColumnStyle:
    """Display metadata for one kanban column."""
    title: str
    color: str = NEUTRAL_COLOR

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "color": self.color}


def default_columns() -> Dict[str, ColumnStyle]:
    """Column styles for all three dimensions in one map."""
    return {
        "todo": ColumnStyle("A Fazer", "#6b7280"),
        "in_progress": ColumnStyle("Em Andamento", "#f59e0b"),
        "completed": ColumnStyle("Concluído", "#10b981"),
        "low": ColumnStyle("Baixa Prioridade", "#3b82f6"),
        "medium": ColumnStyle("Média Prioridade", "#f59e0b"),
        "high": ColumnStyle("Alta Prioridade", "#ef4444"),
        "instagram": ColumnStyle("Instagram", "#ec4899"),
        "music_project": ColumnStyle("Projetos Musicais", "#8b5cf6"),
        "set_release": ColumnStyle("Lançamentos", "#3b82f6"),
        "event": ColumnStyle("Eventos", "#10b981"),
        "personal": ColumnStyle("Pessoal", "#6b7280"),
    }


@dataclass
class KanbanSettings:
    """Board settings: the active grouping and the styles of every column key."""
    group_by: GroupBy = GroupBy.STATUS
    columns: Dict[str, ColumnStyle] = field(default_factory=default_columns)

    def active_keys(self) -> List[str]:
        return list(COLUMN_ORDER[self.group_by])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groupBy": self.group_by.value,
            "columns": {k: v.to_dict() for k, v in self.columns.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "KanbanSettings":
        """Deserialize, replacing any malformed part with its default."""
        if not isinstance(data, dict):
            return cls()

        group_by = GroupBy.from_str(data.get("groupBy", data.get("group_by", "status")))

        raw_columns = data.get("columns")
        if not isinstance(raw_columns, dict):
            return cls(group_by=group_by)

        columns: Dict[str, ColumnStyle] = {}
        for key, style in raw_columns.items():
            if not isinstance(style, dict):
                continue
            columns[key] = ColumnStyle(
                title=style.get("title") or key,
                color=style.get("color") or NEUTRAL_COLOR,
            )
        return cls(group_by=group_by, columns=columns)
