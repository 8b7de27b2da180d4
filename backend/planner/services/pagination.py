# backend/planner/services/pagination.py
"""
Pagination & search engine ("virtual scrolling").

Turns an arbitrary collection of intervals into one stable, sorted, filtered
page plus counts. The order of operations is fixed: filter, then sort, then
slice. ``total`` always counts the filtered set, and walking pages 1 through
``total_pages`` yields every filtered item exactly once.

Works on anything with attributes (ORM rows, schemas, DaySummary); nothing
here touches the store.
"""

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from ..core.config import settings
from ..core.enums import SortField, SortOrder
from ..schemas.calendar import PaginationOptions

T = TypeVar("T")
U = TypeVar("U")

TIME_BLOCK_SEARCH_FIELDS: Tuple[str, ...] = ("title", "description")
AVAILABILITY_SEARCH_FIELDS: Tuple[str, ...] = ("status", "note")

_SORTABLE = {f.value for f in SortField}


@dataclass
class PageResult(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0

    def map(self, fn: Callable[[T], U]) -> "PageResult[U]":
        return PageResult(
            items=[fn(item) for item in self.items],
            total=self.total,
            page=self.page,
            limit=self.limit,
            total_pages=self.total_pages,
        )

    def to_dict(self) -> dict:
        return {
            "items": list(self.items),
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
        }


def clamp_page(page: Optional[int]) -> int:
    return max(1, int(page or 1))


def clamp_limit(limit: Optional[int], max_limit: Optional[int] = None) -> int:
    upper = max_limit or settings.pagination_max_limit
    if limit is None:
        limit = settings.pagination_default_limit
    return min(max(1, int(limit)), upper)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value)


def filter_items(items: Sequence[T], search: Optional[str], fields: Sequence[str]) -> List[T]:
    """
    Case-insensitive substring match over ``fields``.

    The needle is matched as given, surrounding spaces included; an empty
    search keeps everything.
    """
    needle = (search or "").casefold()
    if not needle:
        return list(items)
    return [
        item
        for item in items
        if any(needle in _text(getattr(item, name, None)).casefold() for name in fields)
    ]


def _sort_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.casefold()
    if isinstance(value, Enum):
        return value.value
    return value


def sort_items(items: Sequence[T], sort_by: str = "start_time", order: SortOrder = SortOrder.ASC) -> List[T]:
    """
    Stable sort on ``sort_by``; rows missing the value go last either way.

    Unknown sort fields fall back to start_time.
    """
    key = sort_by if sort_by in _SORTABLE else SortField.START_TIME.value
    present = [item for item in items if getattr(item, key, None) is not None]
    missing = [item for item in items if getattr(item, key, None) is None]
    ordered = sorted(
        present,
        key=lambda item: _sort_value(getattr(item, key)),
        reverse=SortOrder(order) is SortOrder.DESC,
    )
    return ordered + missing


def paginate(
    items: Sequence[T],
    options: Optional[PaginationOptions] = None,
    search_fields: Sequence[str] = TIME_BLOCK_SEARCH_FIELDS,
) -> PageResult[T]:
    """
    Filter, sort and slice ``items``.

    Args:
        items: Full candidate collection (not mutated)
        options: Page, limit, search and sort; defaults when omitted
        search_fields: Attributes matched by ``options.search``

    Returns:
        PageResult whose items are the requested page; pages past the end
        are empty
    """
    options = options or PaginationOptions()
    page = clamp_page(options.page)
    limit = clamp_limit(options.limit)

    filtered = filter_items(items, options.search, search_fields)
    ordered = sort_items(filtered, options.sort_by, options.sort_order)

    total = len(ordered)
    offset = (page - 1) * limit
    return PageResult(
        items=ordered[offset : offset + limit],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )
