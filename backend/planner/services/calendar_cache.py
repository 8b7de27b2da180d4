# backend/planner/services/calendar_cache.py
"""
Keyed, TTL-bound cache for aggregated calendar responses.

Keys embed every owner of the cached result between commas, so one glob per
owner finds every entry that owner appears in, alone or as part of a team:

    cal:,<id1>,<id2>,:<start>:<end>:<page>:<limit>:<search hash>
    calview:,<id>,:<view>:<reference date>

Invalidation runs synchronously after every committed write for an owner and
bumps a per-owner generation counter (calgen:<id>). Readers snapshot the
generations before querying and only cache a result whose owners were not
invalidated in the meantime.
"""

from datetime import date, datetime
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from ..core.config import settings
from ..core.enums import CalendarView
from ..monitoring.prometheus_metrics import prometheus_metrics
from .cache_service import CacheKeyBuilder, CacheService

logger = logging.getLogger(__name__)

CALENDAR_PREFIX = "calendar"
CALENDAR_VIEW_PREFIX = "calendar_view"
GENERATION_PREFIX = "calendar_generation"


def _owners_segment(owner_ids: Iterable[str]) -> str:
    return "," + ",".join(sorted(set(owner_ids))) + ","


class CalendarCache:
    """Calendar-specific key scheme and invalidation on top of CacheService."""

    def __init__(self, cache: CacheService, ttl_seconds: Optional[int] = None):
        self.cache = cache
        self.ttl_seconds = ttl_seconds or settings.calendar_cache_ttl_seconds

    @staticmethod
    def calendar_key(
        owner_ids: Iterable[str],
        start: Optional[Union[date, datetime]],
        end: Optional[Union[date, datetime]],
        page: int,
        limit: int,
        search: Optional[str],
    ) -> str:
        search_part = CacheKeyBuilder.hash_complex_key({"search": (search or "").casefold()})
        return CacheKeyBuilder.build(
            CALENDAR_PREFIX, _owners_segment(owner_ids), start, end, page, limit, search_part
        )

    @staticmethod
    def calendar_view_key(owner_id: str, view: CalendarView, reference_date: date) -> str:
        return CacheKeyBuilder.build(
            CALENDAR_VIEW_PREFIX, _owners_segment([owner_id]), CalendarView(view).value, reference_date
        )

    def get(self, key: str) -> Optional[Any]:
        value = self.cache.get(key)
        prometheus_metrics.record_calendar_cache(hit=value is not None)
        return value

    @staticmethod
    def generation_key(owner_id: str) -> str:
        return CacheKeyBuilder.build(GENERATION_PREFIX, owner_id)

    def generations(self, owner_ids: Iterable[str]) -> Dict[str, int]:
        """Current invalidation generation per owner; 0 for owners never invalidated."""
        return {
            owner_id: int(self.cache.get(self.generation_key(owner_id)) or 0)
            for owner_id in sorted(set(owner_ids))
        }

    def set(self, key: str, value: Any, generations: Optional[Dict[str, int]] = None) -> bool:
        """
        Store ``value`` under ``key``.

        ``generations`` is the snapshot taken before the store was read. If any
        owner was invalidated since, the value may predate that write and is
        not kept: the set is skipped, or undone when the invalidation lands
        between the check and the write.
        """
        if generations is not None and self.generations(generations) != generations:
            logger.debug(f"Skipped caching {key}: owner invalidated during the read")
            return False
        stored = self.cache.set(key, value, ttl=self.ttl_seconds)
        if stored and generations is not None and self.generations(generations) != generations:
            self.cache.delete(key)
            logger.debug(f"Dropped {key}: owner invalidated while caching")
            return False
        return stored

    @staticmethod
    def owner_patterns(owner_id: str) -> List[str]:
        """Glob patterns matching every cached calendar that includes ``owner_id``."""
        return [
            CacheKeyBuilder.build(prefix, f"*,{owner_id},*")
            for prefix in (CALENDAR_PREFIX, CALENDAR_VIEW_PREFIX)
        ]

    def invalidate_owner(self, owner_id: str) -> int:
        """
        Drop every cached calendar that includes ``owner_id``.

        The generation is bumped before the delete so a read that started
        earlier can no longer store its result.
        """
        self.cache.incr(self.generation_key(owner_id))
        removed = 0
        for pattern in self.owner_patterns(owner_id):
            removed += self.cache.delete_pattern(pattern)
        logger.debug(f"Invalidated {removed} calendar cache entries for owner {owner_id}")
        return removed

    def clear_all(self) -> int:
        return self.cache.clear_all()
