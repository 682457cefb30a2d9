"""
Agenda controller: owns the personal agenda, the content plan and the
kanban settings, and funnels every change through a small set of commands.

Each command validates its input, mutates the in-memory state, writes the
affected slot(s), then posts a notification. Personal items and content items
are kept in separate collections split by category.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from .kanban import group_by_title
from .notifications import Notifier
from .schema import (
    AgendaItem,
    GroupBy,
    ItemNotFound,
    KanbanSettings,
    TITLE_REQUIRED,
    UPDATABLE_FIELDS,
    ValidationError,
    validate_fields,
)
from .storage import SlotStore, PERSONAL_SLOT, CONTENT_SLOT, KANBAN_SLOT

logger = logging.getLogger(__name__)


def _decode_items(raw: Any, slot: str) -> List[AgendaItem]:
    """Decode a persisted item list, dropping entries that are not objects."""
    if not isinstance(raw, list):
        logger.warning(f"Slot {slot} does not hold a list, starting empty")
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            logger.warning(f"Dropping malformed entry in slot {slot}: {entry!r}")
            continue
        items.append(AgendaItem.from_dict(entry))
    return items


class AgendaController:
    """Single owner of agenda state."""

    def __init__(self, store: SlotStore, notifier: Optional[Notifier] = None):
        self.store = store
        self.notifier = notifier or Notifier()

        personal = _decode_items(store.load(PERSONAL_SLOT, []), PERSONAL_SLOT)
        content = _decode_items(store.load(CONTENT_SLOT, []), CONTENT_SLOT)
        self._settings = KanbanSettings.from_dict(store.load(KANBAN_SLOT, None))

        # Re-home anything stored in the wrong collection
        self._personal = [i for i in personal if i.is_personal] + [i for i in content if i.is_personal]
        self._content = [i for i in content if not i.is_personal] + [i for i in personal if not i.is_personal]
        misplaced = any(not i.is_personal for i in personal) or any(i.is_personal for i in content)
        if misplaced:
            logger.warning("Moved misplaced items between personal and content collections")
            self._save_personal()
            self._save_content()

    # ── Reads ────────────────────────────────────────────────────────────────

    @property
    def personal_items(self) -> List[AgendaItem]:
        return list(self._personal)

    @property
    def content_items(self) -> List[AgendaItem]:
        return list(self._content)

    @property
    def settings(self) -> KanbanSettings:
        return self._settings

    def all_items(self) -> List[AgendaItem]:
        return self._personal + self._content

    def get(self, item_id: str) -> Optional[AgendaItem]:
        found = self._locate(item_id)
        return found[0][found[1]] if found else None

    # ── Commands ─────────────────────────────────────────────────────────────

    def create(self, payload: Dict[str, Any]) -> AgendaItem:
        """
        Create an item from a form payload (camelCase or snake_case keys).

        The item lands in the personal collection iff its category is
        "personal". Raises ValidationError before touching any state.
        """
        try:
            kwargs = {}
            for key, value in payload.items():
                if key == "id":
                    continue  # ids are always generated
                attr = UPDATABLE_FIELDS.get(key)
                if attr is None:
                    raise ValidationError(f"Unknown field: {key}")
                kwargs[attr] = value
            if "category" not in kwargs:
                raise ValidationError("category is required")
            kwargs.setdefault("title", "")
            kwargs.setdefault("date", "")
            item = AgendaItem.create(**kwargs)
        except ValidationError as e:
            self._reject(e)
            raise

        if item.is_personal:
            self._personal.append(item)
            self._save_personal()
            self.notifier.post("Compromisso adicionado", "A agenda pessoal foi atualizada.")
        else:
            self._content.append(item)
            self._save_content()
            self.notifier.post("Item criado", "O planejamento de conteúdo foi atualizado.")
        logger.info(f"Created item {item.id} ({item.category.value})")
        return item

    def update_status(self, item_id: str, status: str) -> AgendaItem:
        """Move an item to another status."""
        return self._update(item_id, {"status": status}, "Status atualizado", "O compromisso foi movido.")

    def update_fields(self, item_id: str, fields: Dict[str, Any]) -> AgendaItem:
        """Partial update. A category change across the personal boundary moves the item."""
        return self._update(item_id, fields, "Item atualizado", "")

    def delete(self, item_id: str) -> None:
        found = self._locate(item_id)
        if not found:
            raise ItemNotFound(item_id)
        collection, index = found
        collection.pop(index)
        self._save(collection)
        self.notifier.post("Item excluído")
        logger.info(f"Deleted item {item_id}")

    def change_group_by(self, group_by: str) -> KanbanSettings:
        try:
            new_group_by = GroupBy(group_by.value if isinstance(group_by, GroupBy) else group_by)
        except ValueError:
            e = ValidationError(f"Invalid groupBy: {group_by!r}")
            self._reject(e)
            raise e
        self._settings.group_by = new_group_by
        self.store.save(KANBAN_SLOT, self._settings.to_dict())
        self.notifier.post(
            "Visualização Kanban atualizada",
            f"Agrupado por: {group_by_title(new_group_by)}",
        )
        return self._settings

    # ── Internals ────────────────────────────────────────────────────────────

    def _update(self, item_id: str, fields: Dict[str, Any], title: str, description: str) -> AgendaItem:
        found = self._locate(item_id)
        if not found:
            raise ItemNotFound(item_id)
        try:
            clean = validate_fields(fields)
        except ValidationError as e:
            self._reject(e)
            raise

        collection, index = found
        item = collection[index]
        was_personal = item.is_personal
        for attr, value in clean.items():
            setattr(item, attr, value)

        if item.is_personal != was_personal:
            collection.pop(index)
            target = self._personal if item.is_personal else self._content
            target.append(item)
            self._save_personal()
            self._save_content()
        else:
            self._save(collection)

        self.notifier.post(title, description)
        return item

    def _locate(self, item_id: str) -> Optional[Tuple[List[AgendaItem], int]]:
        for collection in (self._personal, self._content):
            for index, item in enumerate(collection):
                if item.id == item_id:
                    return collection, index
        return None

    def _reject(self, error: Exception) -> None:
        message = str(error)
        if message == TITLE_REQUIRED:
            self.notifier.error("Informe um título")
        else:
            self.notifier.error("Dados inválidos", message)

    def _save(self, collection: List[AgendaItem]) -> None:
        if collection is self._personal:
            self._save_personal()
        else:
            self._save_content()

    def _save_personal(self) -> None:
        self.store.save(PERSONAL_SLOT, [i.to_dict() for i in self._personal])

    def _save_content(self) -> None:
        self.store.save(CONTENT_SLOT, [i.to_dict() for i in self._content])
