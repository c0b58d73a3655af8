import os

# Use in-memory sqlite for tests; must be set before crdo.db is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402

from crdo.core.auth import AuthUser  # noqa: E402
from crdo.core.exceptions import AuthenticationError  # noqa: E402
from crdo.services.metrics import HistoricalRun  # noqa: E402

ALICE = AuthUser(id="11111111-1111-4111-8111-111111111111", email="alice@example.com")
BOB = AuthUser(id="22222222-2222-4222-8222-222222222222", email="bob@example.com")

TOKENS = {"alice-token": ALICE, "bob-token": BOB}


class FakeResolver:
    def resolve(self, token: str) -> AuthUser:
        user = TOKENS.get(token)
        if not user:
            raise AuthenticationError()
        return user


def auth(token: str = "alice-token") -> dict:
    return {"Authorization": f"Bearer {token}"}


def history(speeds, start=datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)):
    """Historical runs for `speeds`, most recent first, one day apart."""
    return [
        HistoricalRun(
            average_speed_mph=s,
            finished_at=start - timedelta(days=i),
            distance_mi=3.0,
            duration_s=int(3.0 / s * 3600) if s else 1800,
        )
        for i, s in enumerate(speeds)
    ]


@pytest.fixture
def db_session():
    from crdo.db import Base, SessionLocal, engine
    from crdo.models import achievement, friend, run, streak, user  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from crdo.core.auth import get_identity_resolver
    from crdo.main import app

    app.dependency_overrides[get_identity_resolver] = lambda: FakeResolver()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
