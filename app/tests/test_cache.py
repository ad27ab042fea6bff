import pytest

from app.services.cache import CacheService, make_key
from app.tests.helpers import InMemoryRedis


@pytest.fixture
def service():
    return CacheService(client=InMemoryRedis())


def test_make_key_sorts_params_and_drops_none():
    assert make_key("hymns:list", page=1, category=None, limit=20) == "cache:hymns:list:limit=20&page=1"
    assert make_key("bible:books") == "cache:bible:books"


def test_make_key_is_order_independent():
    assert make_key("search", q="x", page=2) == make_key("search", page=2, q="x")


@pytest.mark.asyncio
async def test_get_or_set_miss_then_hit(service):
    calls = []

    def produce():
        calls.append(1)
        return {"value": 42}

    first = await service.get_or_set("cache:k", produce, 60)
    second = await service.get_or_set("cache:k", produce, 60)

    assert first == second == {"value": 42}
    assert len(calls) == 1
    assert service.get_stats() == {"hits": 1, "misses": 1, "hit_rate": 0.5}


@pytest.mark.asyncio
async def test_get_or_set_awaits_async_producer(service):
    async def produce():
        return [1, 2, 3]

    assert await service.get_or_set("cache:async", produce, 60) == [1, 2, 3]
    assert await service.get("cache:async") == [1, 2, 3]


@pytest.mark.asyncio
async def test_none_is_not_cached(service):
    assert await service.get_or_set("cache:none", lambda: None, 60) is None
    assert await service.get("cache:none") is None
    assert service.misses == 1


@pytest.mark.asyncio
async def test_invalidate_namespace(service):
    await service.set(make_key("forums", page=1), ["a"], 60)
    await service.set(make_key("forums", page=2), ["b"], 60)
    await service.set(make_key("songs", page=1), ["c"], 60)

    removed = await service.invalidate_namespace("forums")

    assert removed == 2
    assert await service.get(make_key("songs", page=1)) == ["c"]
