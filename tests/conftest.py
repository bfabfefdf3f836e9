import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

# The module-level app must not create a database file in the working directory.
os.environ.setdefault("TJ_DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tradejournal.app import create_app
from tradejournal.auth.session import SessionManager
from tradejournal.core.utils import utc_now
from tradejournal.infra.db import Database
from tradejournal.infra.session_repo import SqlSessionStore
from tradejournal.infra.user_repo import SqlUserStore


class FakeClock:
    """Controllable UTC clock. Starts at the real current time so cookies stay unexpired."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(utc_now())


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(f"sqlite:///{tmp_path / 'journal.db'}")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture()
def user_store(db) -> SqlUserStore:
    return SqlUserStore(db)


@pytest.fixture()
def session_store(db) -> SqlSessionStore:
    return SqlSessionStore(db)


@pytest.fixture()
def sessions(session_store, clock) -> SessionManager:
    return SessionManager(
        session_store,
        ttl=timedelta(seconds=3600),
        refresh_ratio=0.5,
        secure=False,
        clock=clock,
    )


@pytest.fixture()
def app(db, sessions):
    return create_app(db=db, sessions=sessions)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def logged_in(client) -> TestClient:
    r = client.post("/auth/signup", json={"username": "trader", "password": "s3cret-pass"})
    assert r.status_code == 200, r.text
    return client
