import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from eventhub.db.session import Base, SessionLocal, engine
from eventhub.main import create_app
from eventhub.models import event as _models  # noqa: F401


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def event_payload():
    return {
        "title": "Python Meetup",
        "description": "Lightning talks and pizza",
        "date": "2026-11-05T18:00:00Z",
        "location": "Community Hall",
        "category": "tech",
        "capacity": 2,
        "imageUrl": "https://example.com/meetup.png",
    }
