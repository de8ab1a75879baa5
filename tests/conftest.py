"""
Pytest configuration.

This file adds the parent directory to the Python path so that tests
can import from the domain, repositories, services and api modules, sets
deterministic settings, and provides an in-memory stand-in for the subset of
the Supabase query builder used by the repositories.
"""

import os
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
from postgrest.exceptions import APIError

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["ADMIN_USERNAME"] = "admin@developerstore.dev"
os.environ["ADMIN_PASSWORD"] = "Admin@123"
os.environ["EVENT_PUBLISHER"] = "outbox"


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], error: Any = None) -> None:
        self.data = data
        self.error = error


class FakeQuery:
    """Chainable query over one in-memory table."""

    def __init__(self, client: "FakeSupabaseClient", name: str) -> None:
        self._client = client
        self._name = name
        self._rows: List[Dict[str, Any]] = client.tables[name]
        self._action = "select"
        self._payload: Any = None
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._order: List[tuple] = []
        self._range: Optional[tuple] = None
        self._limit: Optional[int] = None

    def select(self, *columns: str) -> "FakeQuery":
        self._action = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._action = "update"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        allowed = set(values)
        self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self._range = (start, end)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def execute(self) -> FakeResponse:
        self._client.calls.append((self._name, self._action))

        raised = self._client.raise_on.get((self._name, self._action))
        if raised:
            raise APIError({"message": raised, "code": "P0001", "details": None, "hint": None})

        error = self._client.fail_on.get((self._name, self._action))
        if error:
            return FakeResponse([], error=error)

        if self._action == "insert":
            rows = self._payload if isinstance(self._payload, list) else [self._payload]
            self._rows.extend(dict(r) for r in rows)
            return FakeResponse([dict(r) for r in rows])

        matched = [r for r in self._rows if all(f(r) for f in self._filters)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResponse([dict(r) for r in matched])

        if self._action == "delete":
            self._rows[:] = [r for r in self._rows if not any(r is m for m in matched)]
            return FakeResponse([dict(r) for r in matched])

        for column, desc in reversed(self._order):
            matched.sort(key=lambda r: r[column], reverse=desc)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse([dict(r) for r in matched])


class FakeSupabaseClient:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.calls: List[tuple] = []
        self.fail_on: Dict[tuple, str] = {}
        self.raise_on: Dict[tuple, str] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: List[Any] = []

    def publish(self, event: Any) -> None:
        self.events.append(event)


@pytest.fixture
def fake_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def repository(fake_client: FakeSupabaseClient):
    from repositories.sale_repository import SaleRepository

    return SaleRepository(fake_client)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def sale_service(repository, publisher):
    from services.sale_service import SaleService

    return SaleService(repository, publisher)


@pytest.fixture
def api_client(fake_client: FakeSupabaseClient):
    """TestClient wired to the in-memory client through the outbox publisher."""

    from fastapi.testclient import TestClient

    from api.dependencies import get_sale_service
    from api.main import app
    from repositories.sale_repository import SaleRepository
    from services.event_publisher import OutboxEventPublisher
    from services.sale_service import SaleService

    app.dependency_overrides[get_sale_service] = lambda: SaleService(
        SaleRepository(fake_client), OutboxEventPublisher(fake_client)
    )
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(api_client) -> Dict[str, str]:
    response = api_client.post(
        "/api/v1/auth/login",
        json={"username": "admin@developerstore.dev", "password": "Admin@123"},
    )
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}
