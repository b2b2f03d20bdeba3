from datetime import UTC, datetime, timedelta

from summify_search.application.ports.clock_port import ClockPort
from summify_search.infrastructure.cache.in_memory_cache import InMemoryCache


class FakeClock(ClockPort):
    def __init__(self) -> None:
        self.current = datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


def test_get_put_and_access_counts():
    cache: InMemoryCache[list[float]] = InMemoryCache()
    assert cache.get("k") is None
    cache.put("k", [1.0])
    assert cache.get("k") == [1.0]
    assert cache.get("k") == [1.0]
    assert cache.access_count("k") == 2
    assert cache.access_count("other") == 0

    stats = cache.stats()
    assert (stats.entries, stats.hits, stats.misses) == (1, 2, 1)


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache: InMemoryCache[str] = InMemoryCache(ttl_s=60, clock=clock)
    cache.put("k", "v")
    clock.advance(59)
    assert cache.get("k") == "v"
    clock.advance(1)
    assert cache.get("k") is None
    assert cache.stats().entries == 0


def test_zero_ttl_never_expires():
    clock = FakeClock()
    cache: InMemoryCache[str] = InMemoryCache(ttl_s=0, clock=clock)
    cache.put("k", "v")
    clock.advance(10**9)
    assert cache.get("k") == "v"


def test_least_recently_used_entry_is_evicted():
    cache: InMemoryCache[int] = InMemoryCache(max_entries=2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.get("a")
    cache.put("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_clear_resets_everything():
    cache: InMemoryCache[int] = InMemoryCache()
    cache.put("a", 1)
    cache.get("a")
    cache.clear()
    assert cache.stats().entries == 0
    assert cache.access_count("a") == 0
