"""
Shared pytest fixtures.

Uses an in-memory SQLite database so no Postgres is required for tests.
Outbound HTTP (grid intensity, IP geolocation) is replaced by a transport
that answers 503, so endpoint tests never reach the network.
"""
import os
from datetime import datetime

os.environ.setdefault("APP_ENV", "test")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from curbcarbon.core.deps import get_http_client
from curbcarbon.db.base import Base, get_db
from curbcarbon.main import app
from curbcarbon.services.store import MemoryEventStore, MemoryKeyValueStore

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def _offline(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"error": "offline"})


async def override_get_http_client():
    async with httpx.AsyncClient(transport=httpx.MockTransport(_offline)) as client:
        yield client


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def kv():
    return MemoryKeyValueStore()


@pytest.fixture()
def events():
    return MemoryEventStore()


class FakeClock:
    """Settable epoch-ms clock for services that take `clock=`."""

    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


@pytest.fixture()
def clock():
    # Wednesday 2026-03-11 12:00 local
    return FakeClock(int(datetime(2026, 3, 11, 12, 0).timestamp() * 1000))
