"""Shared fixtures: in-memory SQLite, fake cache, recording dispatcher and users."""

import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jevah-tests")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")
os.environ.setdefault("AI_SEARCH_URL", "")
os.environ.setdefault("MAPBOX_ACCESS_TOKEN", "")

import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine, get_db
from app import models  # noqa: F401
from app.main import app
from app.models.user import UserRole
from app.services.cache import CacheService, get_cache
from app.services.events import get_event_dispatcher
from app.tests.helpers import InMemoryRedis, RecordingDispatcher, make_media, make_user


@pytest.fixture(autouse=True)
def tables():
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
def cache():
    return CacheService(client=InMemoryRedis())


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def client(db, cache, dispatcher):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_event_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    return make_user(db, "listener@example.com")


@pytest.fixture
def other_user(db):
    return make_user(db, "creator@example.com", role=UserRole.CREATOR.value)


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role=UserRole.ADMIN.value, is_superuser=True)


@pytest.fixture
def media(db, other_user):
    return make_media(db, other_user)
