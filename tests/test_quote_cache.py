import pytest

from app.services.quote_cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("AAPL", {"current_price": 190.0})

    clock.now += 59
    assert cache.get("AAPL") == {"current_price": 190.0}

    clock.now += 1
    assert cache.get("AAPL") is None
    assert len(cache) == 0


def test_per_entry_ttl_override():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("short", 1, ttl_seconds=5)
    cache.set("long", 2)

    clock.now += 10
    assert "short" not in cache
    assert "long" in cache


def test_purge_expired_and_invalidate():
    clock = FakeClock()
    cache = TTLCache(30, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2, ttl_seconds=100)
    cache.set("c", 3)

    clock.now += 31
    assert cache.purge_expired() == 2
    assert len(cache) == 1

    cache.invalidate("b")
    assert cache.get("b") is None


def test_empty_cache_is_still_a_cache():
    cache = TTLCache(10)
    assert len(cache) == 0
    cache.clear()
    assert cache.get("missing") is None


def test_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        TTLCache(0)


def test_full_cache_purges_expired_entries_before_writing():
    clock = FakeClock()
    cache = TTLCache(30, clock=clock, max_entries=3)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3, ttl_seconds=100)

    clock.now += 31
    cache.set("d", 4)

    assert len(cache) == 2
    assert cache.get("c") == 3
    assert cache.get("d") == 4


def test_full_cache_evicts_entry_closest_to_expiry():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock, max_entries=2)
    cache.set("long", 1, ttl_seconds=120)
    cache.set("short", 2, ttl_seconds=10)
    cache.set("new", 3)

    assert len(cache) == 2
    assert "short" not in cache
    assert cache.get("long") == 1
    assert cache.get("new") == 3


def test_overwriting_a_key_in_full_cache_evicts_nothing():
    cache = TTLCache(60, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 3)

    assert cache.get("a") == 3
    assert cache.get("b") == 2


def test_rejects_non_positive_max_entries():
    with pytest.raises(ValueError):
        TTLCache(10, max_entries=0)
