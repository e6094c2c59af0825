import pytest

from cmsclient.domain.models.common import CacheKey
from cmsclient.infrastructure.cache.caching_service import CacheSettings, ResponseCache


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock):
    return ResponseCache(ttl_seconds=300, max_size=3, clock=clock)


def test_get_returns_stored_value(cache: ResponseCache):
    cache.set(CacheKey("GET articles?"), {"data": []})
    assert cache.get(CacheKey("GET articles?")) == {"data": []}


def test_get_missing_key_returns_none(cache: ResponseCache):
    assert cache.get(CacheKey("nope")) is None


def test_entry_expires_after_ttl(cache: ResponseCache, clock: FakeClock):
    cache.set(CacheKey("k"), "v")
    clock.advance(299.9)
    assert cache.get(CacheKey("k")) == "v"
    clock.advance(0.1)
    assert cache.get(CacheKey("k")) is None
    # Stale entry was removed on read
    assert CacheKey("k") not in cache
    assert len(cache) == 0


def test_expiry_is_not_sliding(cache: ResponseCache, clock: FakeClock):
    cache.set(CacheKey("k"), "v")
    clock.advance(200)
    assert cache.get(CacheKey("k")) == "v"
    clock.advance(200)
    assert cache.get(CacheKey("k")) is None


def test_overwrite_refreshes_timestamp(cache: ResponseCache, clock: FakeClock):
    cache.set(CacheKey("k"), "old")
    clock.advance(200)
    cache.set(CacheKey("k"), "new")
    clock.advance(200)
    assert cache.get(CacheKey("k")) == "new"


def test_inserting_past_max_size_evicts_first_inserted(cache: ResponseCache):
    for name in ("a", "b", "c"):
        cache.set(CacheKey(name), name)
    # Reading does not change eviction order
    assert cache.get(CacheKey("a")) == "a"
    cache.set(CacheKey("d"), "d")
    assert len(cache) == 3
    assert CacheKey("a") not in cache
    assert all(CacheKey(name) in cache for name in ("b", "c", "d"))


def test_overwriting_existing_key_does_not_evict(cache: ResponseCache):
    for name in ("a", "b", "c"):
        cache.set(CacheKey(name), name)
    cache.set(CacheKey("b"), "b2")
    assert len(cache) == 3
    assert cache.get(CacheKey("a")) == "a"
    assert cache.get(CacheKey("b")) == "b2"


def test_delete_and_clear(cache: ResponseCache):
    cache.set(CacheKey("a"), 1)
    cache.set(CacheKey("b"), 2)
    cache.delete(CacheKey("a"))
    cache.delete(CacheKey("missing"))
    assert CacheKey("a") not in cache
    cache.clear()
    assert len(cache) == 0


def test_disabled_cache_never_stores(clock: FakeClock):
    cache = ResponseCache(enabled=False, clock=clock)
    cache.set(CacheKey("k"), "v")
    assert cache.get(CacheKey("k")) is None
    assert len(cache) == 0


def test_from_settings(clock: FakeClock):
    cache = ResponseCache.from_settings(CacheSettings(enabled=True, ttl_seconds=10, max_size=2), clock=clock)
    assert cache.ttl_seconds == 10
    assert cache.max_size == 2
    cache.set(CacheKey("k"), "v")
    clock.advance(10)
    assert cache.get(CacheKey("k")) is None


@pytest.mark.parametrize("kwargs", [{"max_size": 0}, {"ttl_seconds": -1}])
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        ResponseCache(**kwargs)
