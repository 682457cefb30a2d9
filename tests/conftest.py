"""Shared test fixtures for agenda manager tests."""

import sys
from pathlib import Path

import pytest

# Ensure the repo root (agenda_server.py, agenda_manager/) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from agenda_manager.agenda import AgendaController
from agenda_manager.config import AgendaConfig
from agenda_manager.notifications import Notifier
from agenda_manager.schema import AgendaItem
from agenda_manager.services import init_schema
from agenda_manager.storage import SlotStore

API_KEY = "test-secret"


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "agenda.db")
    init_schema(path)
    return path


@pytest.fixture
def store(db_path):
    return SlotStore(db_path)


@pytest.fixture
def controller(store):
    return AgendaController(store, Notifier())


@pytest.fixture
def make_item():
    """Build an AgendaItem with sensible defaults (no validation)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": f"item-{counter['n']}",
            "title": f"Item {counter['n']}",
            "date": "2024-03-05T12:00:00.000Z",
            "category": "instagram",
        }
        data.update(overrides)
        return AgendaItem.from_dict(data)

    return _make


@pytest.fixture
def app(db_path, monkeypatch):
    from agenda_server import create_app

    monkeypatch.setenv("AGENDA_API_SECRET", API_KEY)
    config = AgendaConfig(db_path=db_path)
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth():
    return {"X-API-Key": API_KEY}
