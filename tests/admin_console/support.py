# This file provides shared fakes for admin console tests.
# It exists so gateway, controller, and client tests can run without a live admin API.
# The fake session mimics the parts of `requests` the client touches; the fake gateway is scriptable per call.
# Gates built on threading events let tests decide the order in which in-flight list calls complete.

from __future__ import annotations

import io
import json
import threading
from collections.abc import Callable
from typing import Any

from src.admin_console.errors import ServerError
from src.admin_console.gateway import ExportPayload
from src.admin_console.models import FilterCriteria, PaginationMeta, ResourcePage, User
from src.admin_console.normalizers import normalize_user
from src.admin_console.resources import USERS, ResourceSpec


class FakeResponse:
    def __init__(
        self,
        *,
        status_code: int,
        payload: Any | None = None,
        content: bytes | None = None,
        content_type: str = "application/json",
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        if content is None:
            content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        self.content = content
        self.headers = {"content-type": content_type}

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self.content.decode("utf-8"))
        return self._payload


class FakeSession:
    def __init__(
        self,
        responses: list[FakeResponse] | None = None,
        raise_error: Exception | None = None,
    ) -> None:
        self.responses = responses or []
        self.raise_error = raise_error
        self.calls: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.raise_error is not None:
            raise self.raise_error
        return self.responses.pop(0)


class CountingAuth:
    def __init__(self, token: str | None = "test-token") -> None:
        self.token = token
        self.unauthorized_calls = 0

    def get_credential(self) -> str | None:
        return self.token

    def on_unauthorized(self) -> None:
        self.unauthorized_calls += 1


class RecordingSink:
    def __init__(self) -> None:
        self.saved: list[tuple[str, bytes]] = []

    def save(self, stream: io.BufferedIOBase, filename: str) -> None:
        self.saved.append((filename, stream.read()))


def user_record(user_id: str | int, **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": user_id,
        "email": f"user{user_id}@example.com",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "isActive": True,
        "userPlanId": 1,
        "createdAt": "2025-01-02T03:04:05Z",
    }
    record.update(overrides)
    return record


def make_user(user_id: str | int, **overrides: Any) -> User:
    return normalize_user(user_record(user_id, **overrides))


def list_envelope(
    records: list[dict[str, Any]],
    *,
    page: int = 1,
    page_size: int = 10,
    total: int | None = None,
) -> dict[str, Any]:
    return {
        "success": True,
        "data": {
            "items": records,
            "page": page,
            "pageSize": page_size,
            "total": len(records) if total is None else total,
        },
    }


class ScriptedGateway:
    """In-memory stand-in for ResourceGateway with per-call failure and gating hooks."""

    def __init__(self, items: list[User] | None = None, spec: ResourceSpec[Any] = USERS) -> None:
        self.spec = spec
        self.items = list(items or [])
        self.list_calls: list[tuple[FilterCriteria, bool]] = []
        self.list_failures: list[Exception] = []
        self.list_handler: Callable[[FilterCriteria], ResourcePage[Any]] | None = None
        self.gates: dict[str, threading.Event] = {}
        self.remove_gates: dict[str, threading.Event] = {}
        self.action_gates: dict[str, threading.Event] = {}
        self.mutation_started = threading.Event()
        self.remove_failures: dict[str, Exception] = {}
        self.action_failures: dict[str, Exception] = {}
        self.removed: list[str] = []
        self.actions: list[tuple[str, str]] = []
        self.created: list[dict[str, Any]] = []
        self.updated: list[tuple[str, dict[str, Any]]] = []
        self.invalidations: list[str | None] = []
        self.exports: list[FilterCriteria] = []
        self.export_failure: Exception | None = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.spec.name

    def hold(self, search: str) -> threading.Event:
        gate = threading.Event()
        self.gates[search] = gate
        return gate

    def release_all(self) -> None:
        for gates in (self.gates, self.remove_gates, self.action_gates):
            for gate in gates.values():
                gate.set()

    def list(self, criteria: FilterCriteria, *, use_cache: bool = True) -> ResourcePage[Any]:
        with self._lock:
            self.list_calls.append((criteria, use_cache))
            failure = self.list_failures.pop(0) if self.list_failures else None
        gate = self.gates.get(str(criteria.get("search", "")))
        if gate is not None:
            gate.wait(timeout=5)
        if failure is not None:
            raise failure
        if self.list_handler is not None:
            return self.list_handler(criteria)
        start = (criteria.page - 1) * criteria.limit
        window = self.items[start : start + criteria.limit]
        return ResourcePage(
            items=tuple(window),
            pagination=PaginationMeta.from_totals(
                page=criteria.page,
                limit=criteria.limit,
                total=len(self.items),
            ),
        )

    def get_by_id(self, resource_id: str, *, use_cache: bool = True) -> User:
        for item in self.items:
            if item.id == resource_id:
                return item
        raise ServerError("User not found", status_code=404)

    def create(self, body: dict[str, Any]) -> User:
        self.created.append(body)
        user = make_user(f"new-{len(self.created)}", email=body.get("email", ""))
        self.items.append(user)
        return user

    def update(self, resource_id: str, body: dict[str, Any]) -> User:
        self.updated.append((resource_id, body))
        return self.get_by_id(resource_id)

    def remove(self, resource_id: str) -> None:
        self.mutation_started.set()
        gate = self.remove_gates.get(resource_id)
        if gate is not None:
            gate.wait(timeout=5)
        if resource_id in self.remove_failures:
            raise self.remove_failures[resource_id]
        self.removed.append(resource_id)
        self.items = [item for item in self.items if item.id != resource_id]

    def perform_action(self, resource_id: str, action: str) -> None:
        self.mutation_started.set()
        gate = self.action_gates.get(resource_id)
        if gate is not None:
            gate.wait(timeout=5)
        if resource_id in self.action_failures:
            raise self.action_failures[resource_id]
        self.actions.append((resource_id, action))
        if action == "delete":
            self.items = [item for item in self.items if item.id != resource_id]

    def export(self, criteria: FilterCriteria) -> ExportPayload:
        self.exports.append(criteria)
        if self.export_failure is not None:
            raise self.export_failure
        content = b"id,email\n1,user1@example.com\n"
        return ExportPayload(stream=io.BytesIO(content), content_type="text/csv", size=len(content))

    def summary(self) -> dict[str, Any]:
        return {"total": len(self.items)}

    def invalidate(self, resource_id: str | None = None) -> int:
        self.invalidations.append(resource_id)
        return 0
