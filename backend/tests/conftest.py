from __future__ import annotations

import os
from uuid import uuid4

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ["ALLOWED_HOSTS"] = "testserver,localhost"
os.environ.setdefault("ENV", "dev")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import gymclub.models  # noqa: F401
from gymclub.db.base import Base
from gymclub.db.session import get_db
from gymclub.main import app
from gymclub.services.permission_cache import permission_cache
from tests.testkit import ApiClient, IdentityFactory


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def api(session_factory) -> ApiClient:
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as client:
        yield ApiClient(client)
    app.dependency_overrides.clear()


@pytest.fixture()
def identity_factory() -> IdentityFactory:
    return IdentityFactory(seed=uuid4().hex[:8])


@pytest.fixture(autouse=True)
def fake_redis():
    original = permission_cache.client
    client = fakeredis.FakeRedis(decode_responses=True)
    permission_cache.set_client(client)
    try:
        yield client
    finally:
        permission_cache.set_client(original)
        client.flushall()
