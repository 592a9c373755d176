"""
HTTP stores: the TaskStore / CategoryStore contract served by board_server.

Lets a board controller run against a remote board instead of a local
SQLite file. Any transport error or non-2xx response raises StoreError.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from .errors import StoreError
from .schema import Task, Category, TaskStatus


class BoardClient:
    """Thin JSON client for the board server API."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers.update({"X-API-Key": api_key})

    def request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreError(f"{method} {path} failed: {e}") from e
        if not r.ok:
            raise StoreError(f"{method} {path} failed: {r.status_code} {_error_text(r)}")
        try:
            return r.json() if r.content else {}
        except ValueError as e:
            raise StoreError(f"{method} {path} returned invalid JSON") from e


def _error_text(r: requests.Response) -> str:
    try:
        return r.json().get("error") or r.text
    except (ValueError, AttributeError):
        return r.text


class RemoteTaskStore:
    """TaskStore contract over HTTP."""

    def __init__(self, client: BoardClient):
        self.client = client

    def list(self) -> List[Task]:
        data = self.client.request("GET", "/api/tasks")
        return [Task.from_dict(t) for t in data.get("tasks", [])]

    def create(self, task: Task) -> Task:
        data = self.client.request("POST", "/api/tasks", task.to_dict())
        return Task.from_dict(data["task"])

    def update(self, task_id: str, fields: Dict[str, Any]) -> Task:
        data = self.client.request("PUT", f"/api/tasks/{task_id}", _jsonable(fields))
        return Task.from_dict(data["task"])

    def update_status_and_position(self, task_id: str, status: TaskStatus, position: int) -> None:
        self.client.request(
            "POST", f"/api/tasks/{task_id}/position",
            {"status": TaskStatus(status).value, "position": position},
        )

    def delete(self, task_id: str) -> None:
        self.client.request("DELETE", f"/api/tasks/{task_id}")


class RemoteCategoryStore:
    """CategoryStore contract over HTTP."""

    def __init__(self, client: BoardClient):
        self.client = client

    def list(self) -> List[Category]:
        data = self.client.request("GET", "/api/categories")
        return [Category.from_dict(c) for c in data.get("categories", [])]

    def ensure_defaults(self, owner_id: Optional[str] = None) -> None:
        # The server scopes categories to its configured owner
        self.client.request("POST", "/api/categories/defaults")

    def create(self, name: str, color: str = "#D1D5DB", icon: str = "tag") -> Category:
        data = self.client.request("POST", "/api/categories", {"name": name, "color": color, "icon": icon})
        return Category.from_dict(data["category"])

    def update(self, category_id: str, fields: Dict[str, Any]) -> Category:
        data = self.client.request("PUT", f"/api/categories/{category_id}", fields)
        return Category.from_dict(data["category"])

    def delete(self, category_id: str) -> None:
        self.client.request("DELETE", f"/api/categories/{category_id}")


def _jsonable(fields: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in fields.items():
        if hasattr(value, "value"):
            value = value.value
        elif hasattr(value, "isoformat"):
            value = value.isoformat()
        out[key] = value
    return out
