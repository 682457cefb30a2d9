"""
Tests for the agenda controller.

Covers:
    - create(): routing by category, notifications, validation
    - update_status() / update_fields(): in-place edits, moves across collections
    - delete(), unknown ids
    - change_group_by(): persisted, notification text
    - restart: state reloads from the slot store, misplaced items re-homed
    - non-string titles rejected, non-string stored times tolerated
"""

from datetime import date

import pytest

from agenda_manager.agenda import AgendaController
from agenda_manager.notifications import Notifier
from agenda_manager.schema import GroupBy, ItemNotFound, ItemStatus, ValidationError
from agenda_manager.storage import CONTENT_SLOT, KANBAN_SLOT, PERSONAL_SLOT, SlotStore
from agenda_manager.views import items_for_day, sort_for_list


def _payload(**overrides):
    data = {"title": "Gig", "date": "2024-03-05T12:00:00.000Z", "category": "personal"}
    data.update(overrides)
    return data


def _partition_holds(controller):
    assert all(i.is_personal for i in controller.personal_items)
    assert not any(i.is_personal for i in controller.content_items)
    ids = [i.id for i in controller.all_items()]
    assert len(ids) == len(set(ids))


def _last(controller):
    return controller.notifier.active()[-1]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# create
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestCreate:

    def test_personal_item_routed_to_personal(self, controller, store):
        item = controller.create(_payload())
        assert [i.id for i in controller.personal_items] == [item.id]
        assert controller.content_items == []
        assert store.load(PERSONAL_SLOT, []) == [item.to_dict()]
        assert _last(controller).title == "Compromisso adicionado"
        _partition_holds(controller)

    @pytest.mark.parametrize("category", ["instagram", "music_project", "set_release", "event"])
    def test_content_item_routed_to_content(self, controller, store, category):
        item = controller.create(_payload(category=category))
        assert [i.id for i in controller.content_items] == [item.id]
        assert controller.personal_items == []
        assert store.load(CONTENT_SLOT, []) == [item.to_dict()]
        note = _last(controller)
        assert note.title == "Item criado"
        assert note.description == "O planejamento de conteúdo foi atualizado."

    def test_camel_case_payload(self, controller):
        item = controller.create(_payload(category="event", djId="dj-1", sharedWithDjs=True, time="21:00"))
        assert item.dj_id == "dj-1"
        assert item.shared_with_djs is True
        assert item.time == "21:00"

    def test_supplied_id_is_ignored(self, controller):
        item = controller.create(_payload(id="chosen"))
        assert item.id != "chosen"
        assert item.id.startswith("personal-")

    def test_blank_title_rejected_with_notification(self, controller, store):
        with pytest.raises(ValidationError):
            controller.create(_payload(title="  "))
        assert controller.all_items() == []
        assert store.keys() == []
        note = _last(controller)
        assert note.title == "Informe um título"
        assert note.variant == "destructive"

    def test_missing_category_rejected(self, controller):
        with pytest.raises(ValidationError, match="category"):
            controller.create({"title": "Gig", "date": "2024-03-05"})
        assert _last(controller).title == "Dados inválidos"

    def test_unknown_field_rejected(self, controller):
        with pytest.raises(ValidationError, match="Unknown field"):
            controller.create(_payload(colour="red"))
        assert controller.all_items() == []

    def test_missing_title_rejected(self, controller):
        with pytest.raises(ValidationError):
            controller.create({"date": "2024-03-05", "category": "personal"})
        assert _last(controller).title == "Informe um título"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# update / delete
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestUpdate:

    def test_update_status(self, controller, store):
        item = controller.create(_payload(category="instagram"))
        updated = controller.update_status(item.id, "completed")
        assert updated.status == ItemStatus.COMPLETED
        assert store.load(CONTENT_SLOT, [])[0]["status"] == "completed"
        assert _last(controller).title == "Status atualizado"

    def test_invalid_status_rejected(self, controller):
        item = controller.create(_payload(category="instagram"))
        with pytest.raises(ValidationError):
            controller.update_status(item.id, "archived")
        assert controller.get(item.id).status == ItemStatus.TODO
        assert _last(controller).variant == "destructive"

    def test_update_fields_keeps_position(self, controller):
        first = controller.create(_payload(category="event"))
        second = controller.create(_payload(category="event"))
        controller.update_fields(first.id, {"title": "Renamed", "time": "10:00"})
        assert [i.id for i in controller.content_items] == [first.id, second.id]
        assert controller.get(first.id).title == "Renamed"
        assert controller.get(first.id).time == "10:00"

    def test_category_change_moves_to_personal(self, controller, store):
        item = controller.create(_payload(category="event"))
        controller.update_fields(item.id, {"category": "personal"})
        assert [i.id for i in controller.personal_items] == [item.id]
        assert controller.content_items == []
        assert store.load(CONTENT_SLOT, None) == []
        assert store.load(PERSONAL_SLOT, [])[0]["id"] == item.id
        _partition_holds(controller)

    def test_category_change_moves_to_content(self, controller):
        item = controller.create(_payload())
        controller.update_fields(item.id, {"category": "set_release"})
        assert controller.personal_items == []
        assert [i.id for i in controller.content_items] == [item.id]
        _partition_holds(controller)

    def test_category_change_within_content_stays(self, controller):
        item = controller.create(_payload(category="event"))
        controller.update_fields(item.id, {"category": "instagram"})
        assert [i.id for i in controller.content_items] == [item.id]

    def test_id_cannot_be_changed(self, controller):
        item = controller.create(_payload())
        with pytest.raises(ValidationError):
            controller.update_fields(item.id, {"id": "other"})
        assert controller.get(item.id) is not None

    def test_unknown_id(self, controller):
        with pytest.raises(ItemNotFound):
            controller.update_status("missing", "completed")
        with pytest.raises(ItemNotFound):
            controller.update_fields("missing", {"title": "x"})


class TestDelete:

    def test_delete(self, controller, store):
        keep = controller.create(_payload())
        gone = controller.create(_payload())
        controller.delete(gone.id)
        assert [i.id for i in controller.personal_items] == [keep.id]
        assert [d["id"] for d in store.load(PERSONAL_SLOT, [])] == [keep.id]
        assert _last(controller).title == "Item excluído"

    def test_delete_unknown(self, controller):
        with pytest.raises(ItemNotFound):
            controller.delete("missing")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Kanban settings
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestGroupBy:

    def test_change_group_by(self, controller, store):
        settings = controller.change_group_by("priority")
        assert settings.group_by == GroupBy.PRIORITY
        assert store.load(KANBAN_SLOT, {})["groupBy"] == "priority"
        note = _last(controller)
        assert note.title == "Visualização Kanban atualizada"
        assert note.description == "Agrupado por: Prioridade"

    def test_invalid_group_by(self, controller):
        with pytest.raises(ValidationError):
            controller.change_group_by("colour")
        assert controller.settings.group_by == GroupBy.STATUS


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Restart
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestRestart:

    def test_state_survives_restart(self, controller, db_path):
        personal = controller.create(_payload(time="08:00"))
        content = controller.create(_payload(category="music_project", priority="high"))
        controller.change_group_by("category")

        reloaded = AgendaController(SlotStore(db_path), Notifier())
        assert reloaded.personal_items == [personal]
        assert reloaded.content_items == [content]
        assert reloaded.settings.group_by == GroupBy.CATEGORY

    def test_empty_store_starts_with_defaults(self, store):
        controller = AgendaController(store)
        assert controller.all_items() == []
        assert controller.settings.group_by == GroupBy.STATUS

    def test_misplaced_items_are_rehomed(self, store, make_item):
        store.save(PERSONAL_SLOT, [make_item(category="event").to_dict(), make_item(category="personal").to_dict()])
        store.save(CONTENT_SLOT, [make_item(category="personal").to_dict()])

        controller = AgendaController(store)
        assert [i.id for i in controller.personal_items] == ["item-2", "item-3"]
        assert [i.id for i in controller.content_items] == ["item-1"]
        assert [d["id"] for d in store.load(CONTENT_SLOT, [])] == ["item-1"]
        _partition_holds(controller)

    def test_malformed_slot_entries_dropped(self, store, make_item):
        store.save(CONTENT_SLOT, [make_item().to_dict(), "junk", 3])
        store.save(PERSONAL_SLOT, {"not": "a list"})
        controller = AgendaController(store)
        assert [i.id for i in controller.content_items] == ["item-1"]
        assert controller.personal_items == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Non-string input and stored values
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestNonStringValues:

    def test_create_with_numeric_title_is_rejected(self, controller, store):
        with pytest.raises(ValidationError):
            controller.create(_payload(title=123))
        assert controller.all_items() == []
        assert store.keys() == []
        note = _last(controller)
        assert note.title == "Dados inválidos"
        assert note.variant == "destructive"

    def test_update_with_numeric_title_is_rejected(self, controller):
        item = controller.create(_payload())
        with pytest.raises(ValidationError):
            controller.update_fields(item.id, {"title": 42})
        assert controller.get(item.id).title == "Gig"
        assert _last(controller).variant == "destructive"

    def test_stored_numeric_time_does_not_break_views(self, store):
        store.save(PERSONAL_SLOT, [
            {"id": "a", "title": "x", "date": "2024-03-05", "time": 930, "category": "personal"},
            {"id": "b", "title": "y", "date": "2024-03-05", "time": "08:00", "category": "personal"},
        ])
        controller = AgendaController(store, Notifier())
        assert controller.get("a").time is None
        assert [i.id for i in sort_for_list(controller.personal_items)] == ["a", "b"]
        assert [i.id for i in items_for_day(controller.personal_items, date(2024, 3, 5))] == ["a", "b"]
