"""Shared fixtures: every store-level test runs against both implementations."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import create_engine
from sqlmodel.pool import StaticPool

from task_manager.main import create_app
from task_manager.store import InMemoryTaskStore, SqlTaskStore


def _sql_store() -> SqlTaskStore:
    """Create a store over a fresh in-memory database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return SqlTaskStore(engine)


@pytest.fixture(name="store", params=["memory", "sql"])
def store_fixture(request):
    """A fresh, empty task store of each kind."""
    if request.param == "memory":
        return InMemoryTaskStore()
    return _sql_store()


@pytest.fixture(name="client")
def client_fixture(store):
    """Create a test client bound to the parametrized store."""
    app = create_app(store)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
