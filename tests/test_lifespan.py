"""
tests/test_lifespan.py -- The production lifespan and the session sweep loop.

Unlike the other API tests these do not patch app.router.lifespan_context:
the real lifespan builds its engine from DATABASE_URL, which points at a
throwaway SQLite file under tmp_path.
"""

from __future__ import annotations

import asyncio
import logging
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from api.main import _sweep_loop, app
from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings
from core.database import create_db_engine
from core.errors import StoreFailure


@pytest.fixture
def file_db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'vault.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


def test_real_lifespan_wires_stores(file_db_url):
    """Startup builds the stores from settings; a full request cycle works."""
    engine = create_db_engine(file_db_url)
    UserStore(engine).create_user(User(login="alice", password_hash=hash_password("correct-pw")))
    engine.dispose()

    with TestClient(app) as client:
        assert app.state.settings.database_url == file_db_url
        token = client.post("/api/auth", json={"login": "alice", "password": "correct-pw"}).json()["token"]
        headers = {"Authorization": f"Bearer {token}"}
        assert client.post("/api/upload-asset/a.txt", content=b"abc", headers=headers).status_code == 200
        assert client.get("/api/asset/a.txt", headers=headers).content == b"abc"
        assert not app.state.sweep_task.done()


def test_data_survives_restart(file_db_url):
    engine = create_db_engine(file_db_url)
    UserStore(engine).create_user(User(login="alice", password_hash=hash_password("correct-pw")))
    engine.dispose()

    with TestClient(app) as client:
        token = client.post("/api/auth", json={"login": "alice", "password": "correct-pw"}).json()["token"]
        client.post("/api/upload-asset/keep.txt", content=b"kept", headers={"Authorization": f"Bearer {token}"})

    with TestClient(app) as client:
        resp = client.get("/api/asset/keep.txt", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.content == b"kept"


@pytest.mark.parametrize(
    "error",
    [StoreFailure("delete_expired_sessions"), RuntimeError("unexpected")],
    ids=["store-failure", "unexpected-error"],
)
def test_sweep_loop_survives_failed_run(error, caplog):
    """Any failed sweep is logged and the loop keeps running until cancelled."""
    calls: list[int] = []

    def purge() -> int:
        calls.append(1)
        if len(calls) == 1:
            raise error
        return 0

    fake_app = SimpleNamespace(state=SimpleNamespace(auth_service=SimpleNamespace(purge_expired_sessions=purge)))

    async def scenario() -> None:
        task = asyncio.create_task(_sweep_loop(fake_app, 0))
        for _ in range(200):
            if len(calls) >= 3:
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    with caplog.at_level(logging.ERROR, logger="assetvault.api"):
        asyncio.run(scenario())
    assert len(calls) >= 3
    assert any(r.getMessage() == "Session sweep failed" and r.exc_info for r in caplog.records)
