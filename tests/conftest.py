"""
tests/conftest.py -- Shared test fixtures for task tracker integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for accounts + tasks
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient against the real app with isolated stores
  - register(): helper that registers an account and returns (account_id, token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any app import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any app import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import get_settings
from tasks.store import TaskStore

# Integration tests register far more accounts per minute than the
# per-IP limits allow; every TestClient request comes from "testclient".
# test_rate_limits.py switches the limiter back on for its own tests.
limiter.enabled = False


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores() -> tuple[AccountStore, TaskStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    A random name per call keeps test modules from seeing each other's rows.
    Both stores point at the same database, as they do in production.
    """
    url = f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    return AccountStore(url), TaskStore(url)


def _patch_lifespan(account_store: AccountStore, task_store: TaskStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = account_store
        app.state.task_store = task_store
        app.state.tokens = tokens
        yield

    return test_lifespan


def register(client: TestClient, name: str, email: str, password: str = "longpass1") -> tuple[int, str]:
    """Register an account through the API and return (account_id, token)."""
    resp = client.post("/api/users/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    data = resp.json()
    return data["_id"], data["token"]


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores. The
    token service and stores are reachable as client.app.state.* for tests
    that need to mint tokens or inspect rows directly.
    """
    account_store, task_store = _make_test_stores()
    tokens = TokenService(get_settings().secret_key)

    app.router.lifespan_context = _patch_lifespan(account_store, task_store, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    task_store.close()
    account_store.close()
