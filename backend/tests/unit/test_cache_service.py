"""In-memory cache backend, key building and the Redis circuit breaker."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from planner.core.clock import FixedClock
from planner.services.cache_service import (
    CacheKeyBuilder,
    CacheService,
    CircuitBreaker,
    CircuitState,
)


@pytest.mark.unit
class TestMemoryBackend:
    def test_uses_memory_without_redis_url(self, cache):
        assert cache.backend == "memory"

    def test_set_then_get(self, cache):
        assert cache.set("k", {"a": 1}) is True
        assert cache.get("k") == {"a": 1}

    def test_values_are_copies(self, cache):
        value = {"items": [1, 2]}
        cache.set("k", value)
        value["items"].append(3)
        assert cache.get("k") == {"items": [1, 2]}

    def test_ttl_expiry_follows_the_clock(self, cache, clock):
        cache.set("k", "v", ttl=60)
        clock.advance(seconds=59)
        assert cache.get("k") == "v"
        clock.advance(seconds=1)
        assert cache.get("k") is None

    def test_delete(self, cache):
        cache.set("k", "v")
        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert cache.get("k") is None

    def test_delete_pattern(self, cache):
        cache.set("cal:,u1,u2,:x", 1)
        cache.set("cal:,u2,:y", 2)
        cache.set("calview:,u1,:week:2023-06-15", 3)
        assert cache.delete_pattern("cal:*,u1,*") == 1
        assert cache.get("cal:,u2,:y") == 2
        assert cache.get("calview:,u1,:week:2023-06-15") == 3

    def test_stats(self, cache):
        cache.set("k", "v")
        cache.get("k")
        cache.get("missing")
        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["hit_rate"] == "50.00%"
        cache.reset_stats()
        assert cache.get_stats()["total_requests"] == 0

    def test_clear_all(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.clear_all() == 2
        assert cache.get("a") is None

    def test_incr_starts_from_zero_and_never_expires(self, cache, clock):
        assert cache.incr("calgen:u1") == 1
        assert cache.incr("calgen:u1") == 2
        clock.advance(seconds=10_000)
        assert cache.get("calgen:u1") == 2


@pytest.mark.unit
class TestRedisBackend:
    def test_uses_injected_client(self):
        client = MagicMock()
        client.get.return_value = '{"a": 1}'
        cache = CacheService(redis_client=client)
        assert cache.backend == "redis"
        assert cache.get("k") == {"a": 1}

    def test_set_uses_setex(self):
        client = MagicMock()
        cache = CacheService(redis_client=client)
        assert cache.set("k", [1], ttl=30) is True
        client.setex.assert_called_once_with("k", 30, "[1]")

    def test_errors_degrade_to_miss(self):
        client = MagicMock()
        client.get.side_effect = RedisConnectionError("refused")
        cache = CacheService(redis_client=client)
        assert cache.get("k") is None
        assert cache.get_stats()["errors"] == 1

    def test_incr_uses_redis_incr(self):
        client = MagicMock()
        client.incr.return_value = 4
        cache = CacheService(redis_client=client)
        assert cache.incr("calgen:u1") == 4
        client.incr.assert_called_once_with("calgen:u1")

    def test_incr_error_returns_none(self):
        client = MagicMock()
        client.incr.side_effect = RedisConnectionError("refused")
        cache = CacheService(redis_client=client)
        assert cache.incr("calgen:u1") is None


@pytest.mark.unit
class TestCircuitBreaker:
    def test_opens_after_threshold_and_recovers(self):
        clock = FixedClock()
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60, clock=clock)
        failing = MagicMock(side_effect=RedisConnectionError("down"), __name__="failing")

        with pytest.raises(RedisConnectionError):
            breaker.call(failing)
        assert breaker.call(failing) is None
        assert breaker.state is CircuitState.OPEN

        clock.advance(seconds=60)
        assert breaker.state is CircuitState.HALF_OPEN
        assert breaker.call(lambda: "ok") == "ok"
        assert breaker.state is CircuitState.CLOSED


@pytest.mark.unit
class TestCacheKeyBuilder:
    def test_known_prefix_and_parts(self):
        key = CacheKeyBuilder.build("calendar", ",u1,", date(2023, 6, 11), None, 1)
        assert key == "cal:,u1,:2023-06-11:-:1"

    def test_unknown_prefix_kept(self):
        assert CacheKeyBuilder.build("other", "x") == "other:x"

    def test_hash_is_stable(self):
        assert CacheKeyBuilder.hash_complex_key({"b": 1, "a": 2}) == CacheKeyBuilder.hash_complex_key(
            {"a": 2, "b": 1}
        )
