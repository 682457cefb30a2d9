"""
HTTP client for the agenda API.

Synchronous, so it can back a DataFetch directly (calls run in a worker
thread there).
"""
from typing import Any, Dict, List, Optional

import requests

from .schema import AgendaError


class AgendaClientError(AgendaError):
    """Non-2xx response or transport failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AgendaClient:
    """Thin wrapper over the JSON endpoints served by agenda_server."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 5.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        try:
            r = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise AgendaClientError(f"{method} {path} failed: {e}") from e

        if not r.ok:
            try:
                message = r.json().get("error", r.text)
            except ValueError:
                message = r.text
            raise AgendaClientError(f"{method} {path} → {r.status_code}: {message}", r.status_code)
        return r.json() if r.content else None

    # ── Agenda ───────────────────────────────────────────────────────────────

    def personal_items(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/agenda/personal")["items"]

    def content_items(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/agenda/content")["items"]

    def create_item(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/agenda/items", json=payload)["item"]

    def update_item(self, item_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/api/agenda/items/{item_id}", json=fields)["item"]

    def update_status(self, item_id: str, status: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/agenda/items/{item_id}/status", json={"status": status})["item"]

    def delete_item(self, item_id: str) -> None:
        self._request("DELETE", f"/api/agenda/items/{item_id}")

    def kanban(self) -> Dict[str, Any]:
        return self._request("GET", "/api/agenda/kanban")

    def set_group_by(self, group_by: str) -> Dict[str, Any]:
        return self._request("POST", "/api/agenda/kanban/group-by", json={"groupBy": group_by})

    # ── DJs ──────────────────────────────────────────────────────────────────

    def djs(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/djs")["djs"]

    def dj_events(self, dj_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/djs/{dj_id}/events")["events"]

    def dj_content(self, dj_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/djs/{dj_id}/content")["items"]

    # ── Notes ────────────────────────────────────────────────────────────────

    def notes(self, user_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/notes", params={"user_id": user_id})["notes"]

    def create_note(self, user_id: str, title: str, content: str = "") -> Dict[str, Any]:
        body = {"user_id": user_id, "title": title, "content": content}
        return self._request("POST", "/api/notes", json=body)["note"]

    def update_note(self, note_id: str, **fields) -> Dict[str, Any]:
        return self._request("PUT", f"/api/notes/{note_id}", json=fields)["note"]

    def delete_note(self, note_id: str) -> None:
        self._request("DELETE", f"/api/notes/{note_id}")
