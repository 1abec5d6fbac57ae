import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from userportal.infra.user_store import UserStore


@pytest.fixture()
def store(tmp_path: Path) -> UserStore:
    """A fresh sqlite-backed store with the user table created."""
    s = UserStore.from_url(f"sqlite:///{tmp_path / 'store.db'}")
    s.init_schema()
    yield s
    s.dispose()


@pytest.fixture()
def broken_store(tmp_path: Path) -> UserStore:
    # No schema: every query fails with "no such table"
    s = UserStore.from_url(f"sqlite:///{tmp_path / 'empty.db'}")
    yield s
    s.dispose()


@pytest.fixture()
def app_module(tmp_path: Path, monkeypatch):
    """Reload the app against a temporary database and fixed secrets."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("SESSION_SECRET", "test-session-secret")
    monkeypatch.setenv("JWT_SECRET", "test-token-secret")
    monkeypatch.setenv("PASSWORD_HASH_COST", "1")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.delenv("NODE_ENV", raising=False)

    import userportal.app as app_module
    importlib.reload(app_module)
    yield app_module
    app_module.app.state.store.dispose()


@pytest.fixture()
def client(app_module) -> TestClient:
    return TestClient(app_module.app)


def register(client: TestClient, username="alice", email="alice@x.com", password="password123", **extra):
    data = {"username": username, "email": email, "password": password, **extra}
    return client.post("/register", data=data, follow_redirects=False)


def login(client: TestClient, username="alice", password="password123"):
    return client.post("/login", data={"username": username, "password": password}, follow_redirects=False)
