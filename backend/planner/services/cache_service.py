# backend/planner/services/cache_service.py
"""
Key/value cache behind the calendar cache.

Redis is used when a URL is configured and answers a ping at startup;
otherwise values live in a process-local dictionary whose expiry is driven
by the injected clock. Both backends store JSON text, so a cached value is
never the same object as the one that was written.

The application builds one instance at startup (see planner.main) and hands
it to services through dependencies; tests build their own with a
FixedClock.

Cache failures never reach callers: a failed read is a miss and a failed
write or delete is a no-op, both logged.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
import fnmatch
import hashlib
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import redis
from redis import Redis
from redis.exceptions import RedisError

from ..core.clock import Clock, system_clock
from ..core.config import settings
from .base import BaseService

logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyPart = Union[str, int, date, datetime, time, None]


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Stops calling Redis after repeated failures.

    After ``failure_threshold`` consecutive errors the circuit opens and
    calls are skipped (returning None) until ``recovery_timeout`` seconds
    have passed on the clock. The next call is then a trial: success closes
    the circuit, failure opens it again.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: type[BaseException] = RedisError,
        clock: Clock = system_clock,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.clock = clock

        self._failures = 0
        self._opened_at: Optional[datetime] = None
        self._state = CircuitState.CLOSED
        self._lock = threading.Lock()

    @property
    def failure_count(self) -> int:
        return self._failures

    @property
    def state(self) -> CircuitState:
        with self._lock:
            if self._state is CircuitState.OPEN and self._opened_at is not None:
                waited = (self.clock.now() - self._opened_at).total_seconds()
                if waited >= self.recovery_timeout:
                    self._state = CircuitState.HALF_OPEN
            return self._state

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
        """
        Run ``func`` unless the circuit is open.

        Errors of ``expected_exception`` propagate while the circuit stays
        closed; the failure that opens it is swallowed and None returned.
        """
        if self.state is CircuitState.OPEN:
            logger.debug(f"Circuit open, skipping {getattr(func, '__name__', 'redis call')}")
            return None

        try:
            result = func(*args, **kwargs)
        except self.expected_exception:
            self._record_failure()
            if self.state is CircuitState.CLOSED:
                raise
            return None

        self._record_success()
        return result

    def _record_success(self) -> None:
        with self._lock:
            self._failures = 0
            if self._state is CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info("Redis recovered, circuit closed")

    def _record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            self._opened_at = self.clock.now()
            if self._failures >= self.failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(f"Redis circuit opened after {self._failures} consecutive failures")


class CacheKeyBuilder:
    """Colon-joined cache keys with short domain prefixes."""

    PREFIXES = {
        "calendar": "cal",
        "calendar_view": "calview",
        "calendar_generation": "calgen",
    }

    @staticmethod
    def build(*parts: KeyPart) -> str:
        """
        Join key parts with ':'.

        None becomes '-', dates and times use isoformat, and a known domain
        in first position is swapped for its prefix:

            build("calendar", ",u1,", date(2023, 6, 11)) -> "cal:,u1,:2023-06-11"
        """
        rendered: List[str] = []
        for index, part in enumerate(parts):
            if part is None:
                rendered.append("-")
            elif isinstance(part, (date, datetime, time)):
                rendered.append(part.isoformat())
            elif index == 0 and part in CacheKeyBuilder.PREFIXES:
                rendered.append(CacheKeyBuilder.PREFIXES[part])
            else:
                rendered.append(str(part))
        return ":".join(rendered)

    @staticmethod
    def hash_complex_key(data: Any) -> str:
        """12-character digest of a JSON-able structure, independent of dict order."""
        canonical = json.dumps(data, sort_keys=True, default=str)
        return hashlib.md5(canonical.encode()).hexdigest()[:12]


class CacheService:
    """JSON cache on Redis or process memory, with glob invalidation and hit/miss stats."""

    def __init__(
        self,
        redis_client: Optional[Redis] = None,
        clock: Clock = system_clock,
        redis_url: Optional[str] = None,
        default_ttl: Optional[int] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.clock = clock
        self.default_ttl = default_ttl or settings.calendar_cache_ttl_seconds
        self.circuit_breaker = CircuitBreaker(clock=clock)

        self._entries: Dict[str, str] = {}
        self._expires_at: Dict[str, datetime] = {}
        self._entries_lock = threading.Lock()

        self.redis: Optional[Redis] = redis_client
        if self.redis is None:
            self.redis = self._connect(redis_url if redis_url is not None else settings.redis_url)

        self._stats = self._empty_stats()

    @staticmethod
    def _connect(redis_url: Optional[str]) -> Optional[Redis]:
        if not redis_url:
            logger.info("REDIS_URL not set, calendar cache kept in memory")
            return None
        try:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            client.ping()
        except (RedisError, ConnectionError) as e:
            logger.warning(f"Redis unreachable at startup ({e}), calendar cache kept in memory")
            return None
        logger.info("Calendar cache connected to Redis")
        return client

    @property
    def backend(self) -> str:
        return "memory" if self.redis is None else "redis"

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return dict.fromkeys(("hits", "misses", "sets", "deletes", "errors"), 0)

    # Reads and writes

    @BaseService.measure_operation("cache_get")
    def get(self, key: str) -> Optional[Any]:
        """Decoded value for ``key``, or None on miss, expiry or backend error."""
        try:
            if self.redis is not None:
                client = self.redis
                raw = self.circuit_breaker.call(lambda: client.get(key))
            else:
                raw = self._memory_read(key)
        except Exception as e:
            self.logger.error(f"Cache read failed for {key}: {e}")
            self._stats["errors"] += 1
            return None

        if raw is None:
            self._stats["misses"] += 1
            return None
        self._stats["hits"] += 1
        return json.loads(raw)

    @BaseService.measure_operation("cache_set")
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store ``value`` as JSON for ``ttl`` seconds (default_ttl when omitted)."""
        ttl = ttl or self.default_ttl
        try:
            payload = json.dumps(value, default=str)
            if self.redis is not None:
                client = self.redis
                stored = self.circuit_breaker.call(lambda: client.setex(key, ttl, payload))
                if not stored:
                    return False
            else:
                with self._entries_lock:
                    self._entries[key] = payload
                    self._expires_at[key] = self.clock.now() + timedelta(seconds=ttl)
        except Exception as e:
            self.logger.error(f"Cache write failed for {key}: {e}")
            self._stats["errors"] += 1
            return False

        self._stats["sets"] += 1
        return True

    @BaseService.measure_operation("cache_delete")
    def delete(self, key: str) -> bool:
        try:
            if self.redis is not None:
                client = self.redis
                removed = bool(self.circuit_breaker.call(lambda: client.delete(key)))
            else:
                with self._entries_lock:
                    removed = self._entries.pop(key, None) is not None
                    self._expires_at.pop(key, None)
        except Exception as e:
            self.logger.error(f"Cache delete failed for {key}: {e}")
            self._stats["errors"] += 1
            return False

        if removed:
            self._stats["deletes"] += 1
        return removed

    @BaseService.measure_operation("cache_delete_pattern")
    def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching the glob ``pattern``; returns how many went."""
        try:
            if self.redis is not None:
                removed = self._redis_delete_matching(self.redis, pattern)
            else:
                removed = self._memory_delete_matching(pattern)
        except Exception as e:
            self.logger.error(f"Cache pattern delete failed for {pattern}: {e}")
            self._stats["errors"] += 1
            return 0

        self._stats["deletes"] += removed
        self.logger.debug(f"Removed {removed} cache keys matching {pattern}")
        return removed

    @BaseService.measure_operation("cache_incr")
    def incr(self, key: str) -> Optional[int]:
        """Atomically add one to the integer at ``key`` (missing counts as 0); None on error."""
        try:
            if self.redis is not None:
                client = self.redis
                value = self.circuit_breaker.call(lambda: client.incr(key))
                return None if value is None else int(value)
            with self._entries_lock:
                value = int(json.loads(self._entries.get(key, "0"))) + 1
                self._entries[key] = json.dumps(value)
                self._expires_at.pop(key, None)
            return value
        except Exception as e:
            self.logger.error(f"Cache increment failed for {key}: {e}")
            self._stats["errors"] += 1
            return None

    def clear_all(self) -> int:
        return self.delete_pattern("*")

    # Backend helpers

    def _memory_read(self, key: str) -> Optional[str]:
        with self._entries_lock:
            payload = self._entries.get(key)
            if payload is None:
                return None
            expires_at = self._expires_at.get(key)
            if expires_at is not None and self.clock.now() >= expires_at:
                del self._entries[key]
                self._expires_at.pop(key, None)
                return None
            return payload

    def _memory_delete_matching(self, pattern: str) -> int:
        with self._entries_lock:
            matched = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
            for key in matched:
                del self._entries[key]
                self._expires_at.pop(key, None)
        return len(matched)

    @staticmethod
    def _redis_delete_matching(client: Redis, pattern: str) -> int:
        # SCAN, never KEYS
        return sum(int(client.delete(key)) for key in client.scan_iter(match=pattern))

    # Monitoring

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._stats["hits"] + self._stats["misses"]
        hit_rate = self._stats["hits"] / lookups * 100 if lookups else 0.0
        return {
            **self._stats,
            "backend": self.backend,
            "total_requests": lookups,
            "hit_rate": f"{hit_rate:.2f}%",
            "circuit_breaker": {
                "state": self.circuit_breaker.state.value,
                "failures": self.circuit_breaker.failure_count,
                "threshold": self.circuit_breaker.failure_threshold,
            },
        }

    def reset_stats(self) -> None:
        self._stats = self._empty_stats()
