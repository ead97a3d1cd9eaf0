from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("ALLOWED_HOSTS", "testserver,localhost")

import pytest
from fastapi.testclient import TestClient

import matchday.models  # noqa: F401  registers every table on Base.metadata
from matchday.db.base import Base
from matchday.db.session import SessionLocal, engine
from matchday.main import app
from matchday.services import notifications
from tests.testkit import ApiClient


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def api() -> ApiClient:
    with TestClient(app) as client:
        yield ApiClient(client)


@pytest.fixture()
def notices():
    sent: list[notifications.Notice] = []
    previous = notifications.set_transport(sent.append)
    yield sent
    notifications.set_transport(previous)
