# backend/planner/services/lazy_loading.py
"""
Progressive delivery of large interval collections.

Three read-only strategies over the same list of intervals:

- load_incrementally: viewport-first batches from a generator the client
  pulls at its own pace. Stopping early is just not asking for more.
- split_by_viewport: partition into what is visible now and the rest.
- with_level_of_detail: collapse zoomed-out month views into one summary
  per day.

None of them mutates the input or touches the store.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timezone
import logging
from typing import Dict, Generic, Iterator, List, Optional, Sequence, TypeVar, Union

from ..core.config import settings
from ..core.enums import CalendarView
from ..core.exceptions import ValidationException
from ..models.types import ensure_utc
from ..schemas.calendar import DaySummary
from ..utils.intervals import intersects_closed, overlaps

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SUMMARY_COLOR = "#007bff"


@dataclass
class ViewportSplit(Generic[T]):
    primary: List[T] = field(default_factory=list)
    secondary: List[T] = field(default_factory=list)


class LazyLoadingService:
    """Viewport-aware batching and level-of-detail projections."""

    def __init__(
        self,
        batch_size: Optional[int] = None,
        zoom_threshold: Optional[float] = None,
    ) -> None:
        self.batch_size = batch_size or settings.lazy_batch_size
        self.zoom_threshold = settings.lod_zoom_threshold if zoom_threshold is None else zoom_threshold
        self.logger = logging.getLogger(self.__class__.__name__)

    def load_incrementally(
        self,
        items: Sequence[T],
        viewport_start: datetime,
        viewport_end: datetime,
        batch_size: Optional[int] = None,
    ) -> Iterator[List[T]]:
        """
        Yield batches with viewport items first.

        Items touching the closed range [viewport_start, viewport_end] come
        before the rest; each group is ordered by start_time (ties keep
        input order). Every batch has at most ``batch_size`` items.

        Raises:
            ValidationException: If batch_size < 1 (raised on call, before
                the first batch)
        """
        size = self.batch_size if batch_size is None else batch_size
        if size < 1:
            raise ValidationException("batch_size must be at least 1", code="INVALID_BATCH_SIZE")

        start, end = ensure_utc(viewport_start), ensure_utc(viewport_end)
        # Materialised up front so batching never waits on I/O
        ordered = sorted(
            items,
            key=lambda item: (
                not intersects_closed(item.start_time, item.end_time, start, end),
                item.start_time,
            ),
        )
        return self._batches(ordered, size)

    @staticmethod
    def _batches(ordered: List[T], size: int) -> Iterator[List[T]]:
        for offset in range(0, len(ordered), size):
            yield ordered[offset : offset + size]

    def split_by_viewport(
        self,
        items: Sequence[T],
        viewport_start: datetime,
        viewport_end: datetime,
    ) -> ViewportSplit[T]:
        """Order-preserving partition on the half-open overlap test."""
        start, end = ensure_utc(viewport_start), ensure_utc(viewport_end)
        split: ViewportSplit[T] = ViewportSplit()
        for item in items:
            if overlaps(item.start_time, item.end_time, start, end):
                split.primary.append(item)
            else:
                split.secondary.append(item)
        return split

    def with_level_of_detail(
        self,
        items: Sequence[T],
        view: CalendarView,
        zoom_level: float,
    ) -> Union[Sequence[T], List[DaySummary]]:
        """
        Month view below the zoom threshold collapses to one DaySummary per
        non-empty day (by start_time date), ordered by day. Any other
        combination returns ``items`` itself.
        """
        if CalendarView(view) is not CalendarView.MONTH or zoom_level >= self.zoom_threshold:
            return items

        by_day: Dict[object, List[T]] = {}
        for item in items:
            by_day.setdefault(item.start_time.date(), []).append(item)

        summaries = []
        for day in sorted(by_day):
            day_items = by_day[day]
            midnight = datetime.combine(day, time.min, tzinfo=timezone.utc)
            summaries.append(
                DaySummary(
                    id=f"aggregated-{day.isoformat()}",
                    title=f"{len(day_items)} events",
                    start_time=midnight,
                    end_time=midnight,
                    count=len(day_items),
                    color=getattr(day_items[0], "color", None) or DEFAULT_SUMMARY_COLOR,
                )
            )
        self.logger.debug(f"Aggregated {len(items)} items into {len(summaries)} day summaries")
        return summaries
