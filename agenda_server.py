#!/usr/bin/env python3
"""
Agenda Manager Server
---------------------
Serves the agenda JSON API: personal agenda, content-plan kanban, DJ views
and notes, backed by one SQLite file.

Usage:
    python agenda_server.py --port 3000 --db ~/.local/share/agenda-manager/agenda.db

API:
    GET  /health
    GET  /api/agenda/personal            → { items }
    GET  /api/agenda/content             → { items }
    POST /api/agenda/items               → create (category routes the item)
    PUT  /api/agenda/items/<id>          → partial update
    POST /api/agenda/items/<id>/status   → { status }
    DELETE /api/agenda/items/<id>
    GET  /api/agenda/calendar?year=&month=   (month is zero-based)
    GET  /api/agenda/day?date=YYYY-MM-DD
    GET  /api/agenda/list?collection=personal|content
    GET  /api/agenda/kanban
    POST /api/agenda/kanban/group-by     → { groupBy }
    GET  /api/agenda/kanban/quick-add/<column>
    GET  /api/djs, /api/djs/<id>/events, /api/djs/<id>/content
    GET/POST /api/notes, PUT/DELETE /api/notes/<id>
    GET  /api/notifications

Mutating routes require an X-API-Key header matching $AGENDA_API_SECRET.
"""

import argparse
import hmac
import logging
import sys
from dataclasses import dataclass
from datetime import date
from functools import wraps
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request

from agenda_manager.agenda import AgendaController
from agenda_manager.calendar_grid import build_month_grid, month_label
from agenda_manager.config import AgendaConfig
from agenda_manager.kanban import column_counts, group_by_title, project_columns, quick_add_defaults
from agenda_manager.notifications import Notifier
from agenda_manager.schema import ItemNotFound, ValidationError
from agenda_manager.services import DjService, EventService, NotesService, event_display, init_schema
from agenda_manager.storage import SlotStore
from agenda_manager.views import items_by_day, items_for_day, items_for_dj, sort_for_list

logger = logging.getLogger("agenda_server")

api = Blueprint("agenda", __name__)


@dataclass
class AgendaContext:
    """Everything the routes need, built once per app."""
    config: AgendaConfig
    controller: AgendaController
    djs: DjService
    events: EventService
    notes: NotesService


def _ctx() -> AgendaContext:
    return current_app.extensions["agenda"]


def _items(items) -> list:
    return [item.to_dict() for item in items]


def _body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


# ── Auth ─────────────────────────────────────────────────────────────────────

def require_api_key(f):
    """Decorator: reject requests without a valid X-API-Key header."""
    @wraps(f)
    def decorated(*args, **kwargs):
        secret = _ctx().config.api_secret
        if not secret:
            return jsonify({"error": "API secret not set"}), 503
        provided = request.headers.get("X-API-Key", "").strip()
        if not hmac.compare_digest(provided, secret):
            code = 401 if not provided else 403
            return jsonify({"error": "Unauthorized"}), code
        return f(*args, **kwargs)
    return decorated


# ── Errors ───────────────────────────────────────────────────────────────────

@api.errorhandler(ValidationError)
def handle_validation(e):
    current_app.logger.warning(f"{request.method} {request.path} rejected: {e}")
    return jsonify({"error": str(e)}), 400


@api.errorhandler(ItemNotFound)
def handle_not_found(e):
    current_app.logger.warning(f"{request.method} {request.path}: no item {e}")
    return jsonify({"error": f"Item not found: {e}"}), 404


# ── Agenda ───────────────────────────────────────────────────────────────────

@api.route("/health")
def health():
    ctx = _ctx()
    return jsonify({
        "status": "ok",
        "db": ctx.config.db_path,
        "personal": len(ctx.controller.personal_items),
        "content": len(ctx.controller.content_items),
    })


@api.route("/api/agenda/personal")
def api_personal():
    return jsonify({"items": _items(_ctx().controller.personal_items)})


@api.route("/api/agenda/content")
def api_content():
    return jsonify({"items": _items(_ctx().controller.content_items)})


@api.route("/api/agenda/items", methods=["POST"])
@require_api_key
def api_create_item():
    item = _ctx().controller.create(_body())
    return jsonify({"item": item.to_dict(), "id": item.id}), 201


@api.route("/api/agenda/items/<item_id>", methods=["PUT"])
@require_api_key
def api_update_item(item_id):
    item = _ctx().controller.update_fields(item_id, _body())
    return jsonify({"item": item.to_dict()})


@api.route("/api/agenda/items/<item_id>/status", methods=["POST"])
@require_api_key
def api_update_status(item_id):
    status = str(_body().get("status", "")).strip().lower()
    if not status:
        return jsonify({"error": "status is required"}), 400
    item = _ctx().controller.update_status(item_id, status)
    return jsonify({"item": item.to_dict()})


@api.route("/api/agenda/items/<item_id>", methods=["DELETE"])
@require_api_key
def api_delete_item(item_id):
    _ctx().controller.delete(item_id)
    return jsonify({"deleted": item_id})


@api.route("/api/agenda/calendar")
def api_calendar():
    today = date.today()
    try:
        year = int(request.args.get("year", today.year))
        month = int(request.args.get("month", today.month - 1))
    except ValueError:
        return jsonify({"error": "year and month must be integers"}), 400

    try:
        cells = build_month_grid(year, month)
    except (ValueError, OverflowError):
        return jsonify({"error": f"Month out of range: {year}-{month}"}), 400
    by_day = items_by_day(_ctx().controller.personal_items, cells)
    return jsonify({
        "label": month_label(year, month),
        "cells": [
            dict(cell.to_dict(), items=_items(by_day[cell.date]))
            for cell in cells
        ],
    })


@api.route("/api/agenda/day")
def api_day():
    raw = request.args.get("date")
    try:
        day = date.fromisoformat(raw) if raw else date.today()
    except ValueError:
        return jsonify({"error": f"Invalid date: {raw}"}), 400
    items = items_for_day(_ctx().controller.personal_items, day)
    return jsonify({"date": day.isoformat(), "items": _items(items)})


@api.route("/api/agenda/list")
def api_list():
    collection = request.args.get("collection", "personal")
    controller = _ctx().controller
    if collection == "personal":
        items = controller.personal_items
    elif collection == "content":
        items = controller.content_items
    else:
        return jsonify({"error": "collection must be 'personal' or 'content'"}), 400
    return jsonify({"items": _items(sort_for_list(items)), "total": len(items)})


@api.route("/api/agenda/kanban")
def api_kanban():
    controller = _ctx().controller
    settings = controller.settings
    columns = project_columns(controller.content_items, settings)
    return jsonify({
        "groupBy": settings.group_by.value,
        "groupByTitle": group_by_title(settings.group_by),
        "columns": [c.to_dict() for c in columns],
        "counts": column_counts(columns),
    })


@api.route("/api/agenda/kanban/group-by", methods=["POST"])
@require_api_key
def api_group_by():
    group_by = str(_body().get("groupBy", "")).strip().lower()
    settings = _ctx().controller.change_group_by(group_by)
    return jsonify(settings.to_dict())


@api.route("/api/agenda/kanban/quick-add/<column_id>")
def api_quick_add(column_id):
    settings = _ctx().controller.settings
    return jsonify({"defaults": quick_add_defaults(settings.group_by, column_id)})


# ── DJs ──────────────────────────────────────────────────────────────────────

@api.route("/api/djs")
def api_djs():
    ctx = _ctx()
    content = ctx.controller.content_items
    djs = []
    for dj in ctx.djs.list_all():
        djs.append(dict(dj, content_count=len(items_for_dj(content, dj["id"]))))
    return jsonify({"djs": djs})


@api.route("/api/djs/<dj_id>/events")
def api_dj_events(dj_id):
    events = []
    for event in _ctx().events.get_by_dj(dj_id):
        title, date_text = event_display(event)
        events.append(dict(event, display_title=title, display_date=date_text))
    return jsonify({"events": events})


@api.route("/api/djs/<dj_id>/content")
def api_dj_content(dj_id):
    return jsonify({"items": _items(items_for_dj(_ctx().controller.content_items, dj_id))})


# ── Notes ────────────────────────────────────────────────────────────────────

@api.route("/api/notes", methods=["GET"])
def api_notes():
    user_id = request.args.get("user_id", "").strip()
    if not user_id:
        return jsonify({"error": "user_id is required"}), 400
    return jsonify({"notes": _ctx().notes.list_by_user(user_id)})


@api.route("/api/notes", methods=["POST"])
@require_api_key
def api_create_note():
    data = _body()
    note = _ctx().notes.create(
        str(data.get("user_id", "")).strip(),
        data.get("title", ""),
        data.get("content", ""),
    )
    return jsonify({"note": note}), 201


@api.route("/api/notes/<note_id>", methods=["PUT"])
@require_api_key
def api_update_note(note_id):
    data = _body()
    note = _ctx().notes.update(note_id, title=data.get("title"), content=data.get("content"))
    if note is None:
        return jsonify({"error": "Note not found"}), 404
    return jsonify({"note": note})


@api.route("/api/notes/<note_id>", methods=["DELETE"])
@require_api_key
def api_delete_note(note_id):
    if not _ctx().notes.remove(note_id):
        return jsonify({"error": "Note not found"}), 404
    return jsonify({"deleted": note_id})


@api.route("/api/notifications")
def api_notifications():
    notes = _ctx().controller.notifier.active()
    return jsonify({"notifications": [n.to_dict() for n in notes]})


# ── App factory ──────────────────────────────────────────────────────────────

def create_app(config: Optional[AgendaConfig] = None) -> Flask:
    """Build the Flask app around one SlotStore/controller and the backend services."""
    config = config or AgendaConfig.load()
    init_schema(config.db_path)

    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.extensions["agenda"] = AgendaContext(
        config=config,
        controller=AgendaController(SlotStore(config.db_path), Notifier(ttl=config.notification_ttl)),
        djs=DjService(config.db_path),
        events=EventService(config.db_path),
        notes=NotesService(config.db_path),
    )
    app.register_blueprint(api)
    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Agenda Manager Server")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to agenda.db (overrides AGENDA_DB env var)")
    parser.add_argument("--config", help="Path to agenda.yaml (overrides AGENDA_CONFIG env var)")
    args = parser.parse_args(argv)

    config = AgendaConfig.load(args.config)
    if args.db:
        config.db_path = args.db
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port

    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format="%(asctime)s [agenda] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if not config.api_secret:
        logger.warning(f"{config.api_secret_env} not set: mutating routes will answer 503")

    app = create_app(config)
    logger.info(f"Serving on http://{config.host}:{config.port} (db: {config.db_path})")
    # One controller owns the slots; requests are served one at a time
    app.run(host=config.host, port=config.port, debug=False, threaded=False)


if __name__ == "__main__":
    main()
