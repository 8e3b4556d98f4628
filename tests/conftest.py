"""
tests/conftest.py -- Shared test fixtures for AssetVault.

This module provides:
  - FakeClock: a settable clock injected into AuthService for TTL tests
  - engine: an isolated named shared-memory SQLite database per test
  - user_store / session_store / asset_store / auth_service: real stores
  - make_user: factory that inserts a user with a bcrypt-hashed password
  - api: TestClient over the real FastAPI app, with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process. A uuid in
the name keeps every test's database separate.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from assets.store import AssetStore
from auth.models import User
from auth.service import AuthService
from auth.store import SessionStore, UserStore
from auth.tokens import hash_password
from core.config import Settings
from core.database import create_db_engine

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable returning a fixed UTC instant until advanced."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


def _memory_db_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = create_db_engine(_memory_db_url("test_vault"))
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def session_store(engine: Engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture
def asset_store(engine: Engine) -> AssetStore:
    return AssetStore(engine)


@pytest.fixture
def auth_service(user_store: UserStore, session_store: SessionStore, clock: FakeClock) -> AuthService:
    return AuthService(user_store, session_store, clock=clock)


@pytest.fixture
def make_user(user_store: UserStore) -> Callable[[str, str], int]:
    """Return a factory: make_user(login, password) -> user id."""

    def _make(login: str, password: str) -> int:
        return user_store.create_user(User(login=login, password_hash=hash_password(password)))

    return _make


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    client: TestClient
    auth_service: AuthService
    session_store: SessionStore
    asset_store: AssetStore
    clock: FakeClock

    def login(self, login: str, password: str) -> str:
        resp = self.client.post("/api/auth", json={"login": login, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    @staticmethod
    def bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


TEST_MAX_UPLOAD_BYTES = 4096


def _patch_lifespan(auth_service: AuthService, asset_store: AssetStore, settings: Settings):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs. The sweep_task is a long-sleeping coroutine so shutdown
    can cancel a real asyncio.Task, exactly as the production lifespan does.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.auth_service = auth_service
        app.state.asset_store = asset_store
        app.state.sweep_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.sweep_task.cancel()

    return test_lifespan


@pytest.fixture
def api(
    auth_service: AuthService,
    session_store: SessionStore,
    asset_store: AssetStore,
    clock: FakeClock,
) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness around the real app with isolated stores and a fake clock."""
    settings = Settings(max_upload_bytes=TEST_MAX_UPLOAD_BYTES)
    original = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(auth_service, asset_store, settings)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield ApiHarness(
                client=client,
                auth_service=auth_service,
                session_store=session_store,
                asset_store=asset_store,
                clock=clock,
            )
    finally:
        app.router.lifespan_context = original
