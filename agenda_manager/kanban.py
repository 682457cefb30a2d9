"""
Kanban projection: group a flat item collection into board columns.

Columns come from COLUMN_ORDER for the active dimension, never from the
settings map's iteration order. Items whose field matches no column are left
off the board but stay in the collection and in list views.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .schema import (
    AgendaItem,
    COLUMN_ORDER,
    GroupBy,
    ItemCategory,
    ItemPriority,
    ItemStatus,
    KanbanSettings,
    NEUTRAL_COLOR,
    ValidationError,
    enum_value,
)

GROUP_BY_TITLES = {
    GroupBy.STATUS: "Status",
    GroupBy.PRIORITY: "Prioridade",
    GroupBy.CATEGORY: "Categoria",
}

# Form defaults for a new content-plan item
QUICK_ADD_DEFAULTS = {
    "status": ItemStatus.TODO.value,
    "priority": ItemPriority.MEDIUM.value,
    "category": ItemCategory.INSTAGRAM.value,
}


@dataclass
class KanbanColumn:
    """One board column and the items in it."""
    id: str
    title: str
    color: str
    items: List[AgendaItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "color": self.color,
            "items": [item.to_dict() for item in self.items],
        }


def column_key(item: AgendaItem, group_by: GroupBy) -> str:
    """The item's value for the grouping dimension."""
    if group_by == GroupBy.STATUS:
        return enum_value(item.status)
    if group_by == GroupBy.PRIORITY:
        return enum_value(item.priority)
    return enum_value(item.category)


def project_columns(items: Iterable[AgendaItem], settings: KanbanSettings) -> List[KanbanColumn]:
    """Build the ordered columns for the current grouping."""
    columns: Dict[str, KanbanColumn] = {}
    for key in settings.active_keys():
        style = settings.columns.get(key)
        columns[key] = KanbanColumn(
            id=key,
            title=style.title if style else key,
            color=style.color if style else NEUTRAL_COLOR,
        )

    for item in items:
        column = columns.get(column_key(item, settings.group_by))
        if column is not None:
            column.items.append(item)

    return list(columns.values())


def quick_add_defaults(group_by: GroupBy, column_id: str) -> Dict[str, str]:
    """
    Pre-filled form values for a quick add from a column header.

    Raises ValidationError if column_id is not a column of group_by.
    """
    if column_id not in COLUMN_ORDER[group_by]:
        raise ValidationError(f"Unknown {group_by.value} column: {column_id}")
    defaults = dict(QUICK_ADD_DEFAULTS)
    defaults[group_by.value] = column_id
    return defaults


def group_by_title(group_by: GroupBy) -> str:
    return GROUP_BY_TITLES[group_by]


def column_counts(columns: List[KanbanColumn]) -> Dict[str, int]:
    return {c.id: len(c.items) for c in columns}
