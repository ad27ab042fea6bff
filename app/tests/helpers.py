"""Test doubles and factories shared by the test modules."""

import fnmatch
import json

from app.models.media import Media
from app.models.user import User, UserRole
from app.utils.security import create_access_token, get_password_hash


class InMemoryRedis:
    """Dict-backed stand-in for RedisClient's cache methods, JSON-encoded like the real client"""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        value = self.store.get(key)
        return None if value is None else json.loads(value)

    async def set(self, key, value, expire=None):
        self.store[key] = json.dumps(value, default=str)
        return True

    async def delete(self, key):
        return self.store.pop(key, None) is not None

    async def delete_pattern(self, pattern):
        matched = [k for k in self.store if fnmatch.fnmatch(k, pattern)]
        for key in matched:
            del self.store[key]
        return len(matched)


class RecordingDispatcher:
    def __init__(self):
        self.events = []

    async def dispatch(self, event):
        self.events.append(event)
        return True

    def channels(self):
        return [e.channel for e in self.events]


def make_user(db, email, role=UserRole.USER.value, is_superuser=False, password="Password123"):
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=email.split("@")[0].title(),
        role=role,
        is_superuser=is_superuser,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_media(db, uploader, title="Grace Sermon", content_type="videos", duration=100.0, **extra):
    media = Media(
        title=title,
        description=extra.pop("description", "A message about grace"),
        content_type=content_type,
        duration=duration,
        uploaded_by=uploader.id if uploader else None,
        **extra,
    )
    db.add(media)
    db.commit()
    db.refresh(media)
    return media


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}


class FakeResponse:
    def __init__(self, body):
        self.body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def raise_for_status(self):
        pass

    async def json(self, content_type=None):
        return self.body


class FakeHTTPSession:
    """Replaces aiohttp.ClientSession: answers every request with body, or raises error"""

    def __init__(self, body=None, error=None):
        self.body = body
        self.error = error
        self.requests = []

    def __call__(self, **kwargs):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def _request(self, url, **kwargs):
        self.requests.append(url)
        if self.error is not None:
            raise self.error
        return FakeResponse(self.body)

    get = _request
    post = _request
