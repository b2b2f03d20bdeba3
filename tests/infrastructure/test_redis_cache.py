import pytest

from summify_search.domain.errors import CacheError
from summify_search.infrastructure.cache.redis_cache import RedisCache, RedisConfig


class FakeRedis:
    """Dict-backed stand-in for the handful of redis-py calls the cache makes."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.hashes: dict[str, dict[str, int]] = {}
        self.expiries: dict[str, int] = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value

    def setex(self, key, ttl, value):
        self.values[key] = value
        self.expiries[key] = ttl

    def hincrby(self, name, key, amount):
        h = self.hashes.setdefault(name, {})
        h[key] = h.get(key, 0) + amount
        return h[key]

    def hget(self, name, key):
        value = self.hashes.get(name, {}).get(key)
        return None if value is None else str(value)

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        keys = list(self.values) + list(self.hashes)
        return iter([k for k in keys if k.startswith(prefix)])


class DownRedis:
    def __getattr__(self, name):
        def fail(*_args, **_kwargs):
            raise ConnectionError("connection refused")

        return fail


def test_round_trips_json_under_namespace():
    client = FakeRedis()
    cache = RedisCache(RedisConfig(namespace="t"), client=client)

    cache.put("emb:leadership", [0.1, 0.2])

    assert "t:emb:leadership" in client.values
    assert cache.get("emb:leadership") == [0.1, 0.2]
    assert cache.get("emb:missing") is None
    assert cache.access_count("emb:leadership") == 1


def test_ttl_uses_setex():
    client = FakeRedis()
    cache = RedisCache(RedisConfig(namespace="t", ttl_s=30), client=client)
    cache.put("k", {"a": 1})
    assert client.expiries == {"t:k": 30}


def test_stats_exclude_access_hash():
    client = FakeRedis()
    cache = RedisCache(RedisConfig(namespace="t"), client=client)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.get("a")
    cache.get("zzz")

    stats = cache.stats()
    assert (stats.entries, stats.hits, stats.misses) == (2, 1, 1)


def test_backend_failures_surface_as_cache_error():
    cache = RedisCache(RedisConfig(), client=DownRedis())
    with pytest.raises(CacheError):
        cache.get("k")
    with pytest.raises(CacheError):
        cache.put("k", 1)
    with pytest.raises(CacheError):
        cache.access_count("k")


def test_unserialisable_value_is_cache_error():
    cache = RedisCache(RedisConfig(), client=FakeRedis())
    with pytest.raises(CacheError):
        cache.put("k", object())


def test_corrupt_entry_is_cache_error():
    client = FakeRedis()
    client.values["summify:k"] = "{not json"
    cache = RedisCache(RedisConfig(), client=client)
    with pytest.raises(CacheError):
        cache.get("k")
