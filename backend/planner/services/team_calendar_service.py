# backend/planner/services/team_calendar_service.py
"""
Team Calendar Service for the planner

Aggregates time blocks and availability for one or many users:

1. Every requested owner must exist; otherwise NotFound names the missing
   ids and nothing is returned.
2. The time block and availability range queries run concurrently, each on
   its own session in a worker thread, each under the retry wrapper
   (transient store failures only).
3. Time blocks go through the pagination engine; availability comes back
   whole, ascending by start time.

A failing query never cancels its sibling. Once both have settled, the
first error in query order (time blocks, then availability) is raised.
"""

import asyncio
from datetime import date, datetime, time, timezone
import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import OwnersNotFoundException, TransientStoreFailure, ValidationException
from ..database import SessionLocal
from ..models.types import ensure_utc
from ..repositories import RepositoryFactory
from ..schemas.availability import AvailabilityRead
from ..schemas.calendar import (
    PaginationOptions,
    TeamCalendarResponse,
    TimeBlockPage,
    UserCalendarResponse,
    UserSummary,
)
from ..schemas.time_block import TimeBlockRead
from ..utils.retry import with_retry_async
from .base import BaseService
from .calendar_cache import CalendarCache
from .pagination import clamp_limit, clamp_page, paginate, sort_items

if TYPE_CHECKING:
    from .cache_service import CacheService

logger = logging.getLogger(__name__)

R = TypeVar("R")

DateBound = Union[date, datetime]


def _lower_bound(value: Optional[DateBound]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _upper_bound(value: Optional[DateBound]) -> Optional[datetime]:
    """A bare date as the upper bound means the end of that day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


class TeamCalendarService(BaseService):
    """Multi-user calendar aggregation."""

    def __init__(
        self,
        db: Session,
        cache: Optional["CacheService"] = None,
        session_factory: Callable[[], Session] = SessionLocal,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
    ):
        """
        Args:
            db: Session for the user directory lookups
            cache: Optional cache for aggregated responses
            session_factory: Builds one session per concurrent range query
            max_retries: Attempts per query (defaults to settings)
            base_delay: Linear backoff step in seconds (defaults to settings)
        """
        super().__init__(db, cache)
        self.session_factory = session_factory
        self.max_retries = max_retries or settings.retry_max_attempts
        self.base_delay = settings.retry_base_delay_seconds if base_delay is None else base_delay
        self.calendar_cache = CalendarCache(cache) if cache else None

    @BaseService.measure_operation("get_team_calendar")
    async def get_calendar(
        self,
        owner_ids: Sequence[str],
        start_date: Optional[DateBound] = None,
        end_date: Optional[DateBound] = None,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> TeamCalendarResponse:
        """
        Paged time blocks and full availability for ``owner_ids``.

        Raises:
            ValidationException: No owner ids given
            OwnersNotFoundException: Any owner does not exist
            TransientStoreFailure: Retries exhausted on either query
        """
        ids = list(dict.fromkeys(owner_ids))
        if not ids:
            raise ValidationException("At least one user id is required", code="NO_USERS")

        await self._resolve_users(ids)
        return await self._aggregate(ids, start_date, end_date, page, limit, search)

    @BaseService.measure_operation("get_user_calendar")
    async def get_user_calendar(
        self,
        user_id: str,
        start_date: Optional[DateBound] = None,
        end_date: Optional[DateBound] = None,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> UserCalendarResponse:
        """Single-user variant; also returns the resolved user."""
        users = await self._resolve_users([user_id])
        calendar = await self._aggregate([user_id], start_date, end_date, page, limit, search)
        return UserCalendarResponse(
            user=users[user_id],
            time_blocks=calendar.time_blocks,
            availability=calendar.availability,
        )

    # Internals

    async def _resolve_users(self, ids: List[str]) -> Dict[str, UserSummary]:
        return await asyncio.to_thread(self._load_users, ids)

    def _load_users(self, ids: List[str]) -> Dict[str, UserSummary]:
        user_repository = RepositoryFactory.create_user_repository(self.db)
        missing = user_repository.find_missing(ids)
        if missing:
            self.logger.info(f"Calendar requested for unknown users: {missing}")
            raise OwnersNotFoundException(missing)
        return {
            user_id: UserSummary.model_validate(user_repository.get_by_id(user_id))
            for user_id in ids
        }

    async def _aggregate(
        self,
        ids: List[str],
        start_date: Optional[DateBound],
        end_date: Optional[DateBound],
        page: int,
        limit: int,
        search: Optional[str],
    ) -> TeamCalendarResponse:
        page, limit = clamp_page(page), clamp_limit(limit)

        cache_key = CalendarCache.calendar_key(ids, start_date, end_date, page, limit, search)
        generations = None
        if self.calendar_cache:
            cached = self.calendar_cache.get(cache_key)
            if cached is not None:
                return TeamCalendarResponse.model_validate(cached)
            generations = self.calendar_cache.generations(ids)

        start, end = _lower_bound(start_date), _upper_bound(end_date)
        results = await asyncio.gather(
            self._with_store_retry(self._query_time_blocks, ids, start, end),
            self._with_store_retry(self._query_availability, ids, start, end),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        time_blocks, availability = results

        block_page = paginate(time_blocks, PaginationOptions(page=page, limit=limit, search=search))
        response = TeamCalendarResponse(
            time_blocks=TimeBlockPage(**block_page.to_dict()),
            availability=sort_items(availability, "start_time"),
        )

        if self.calendar_cache:
            self.calendar_cache.set(cache_key, response.model_dump(mode="json"), generations)
        return response

    async def _with_store_retry(self, fn: Callable[..., R], *args: object) -> R:
        return await with_retry_async(
            lambda: asyncio.to_thread(fn, *args),
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            retry_on=(TransientStoreFailure,),
            op_name=fn.__name__,
        )

    def _query_time_blocks(
        self, ids: List[str], start: Optional[datetime], end: Optional[datetime]
    ) -> List[TimeBlockRead]:
        with self.session_factory() as session:
            rows = RepositoryFactory.create_time_block_repository(session).find_by_owners_in_range(
                ids, start, end
            )
            return [TimeBlockRead.model_validate(row) for row in rows]

    def _query_availability(
        self, ids: List[str], start: Optional[datetime], end: Optional[datetime]
    ) -> List[AvailabilityRead]:
        with self.session_factory() as session:
            rows = RepositoryFactory.create_availability_repository(session).find_by_owners_in_range(
                ids, start, end
            )
            return [AvailabilityRead.model_validate(row) for row in rows]

