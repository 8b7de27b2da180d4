# backend/planner/services/base.py
"""
Shared plumbing for planner services.

- ``transaction()``: commit on success, roll back on any error
- ``measure_operation``: timing, slow-call warnings and Prometheus export
"""

import asyncio
from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import DomainException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

if TYPE_CHECKING:
    from .cache_service import CacheService

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _new_stats() -> Dict[str, Any]:
    return {
        "count": 0,
        "total_time": 0.0,
        "success_count": 0,
        "failure_count": 0,
        "min_time": float("inf"),
        "max_time": 0.0,
    }


def _report(owner: Any, operation: str, started: float, error: Optional[BaseException]) -> None:
    elapsed = time.time() - started
    succeeded = error is None

    recorder = getattr(owner, "_record_metric", None)
    if recorder is not None:
        recorder(operation, elapsed, succeeded)

    if elapsed > settings.slow_operation_seconds:
        getattr(owner, "logger", logger).warning(
            f"Slow operation: {owner.__class__.__name__}.{operation} took {elapsed:.2f}s"
        )

    prometheus_metrics.record_service_operation(
        service=owner.__class__.__name__,
        operation=operation,
        duration=elapsed,
        status="success" if succeeded else "error",
        error_type=None if succeeded else type(error).__name__,
    )


class BaseService:
    """
    Base class for planner services.

    Holds the request's session and the optional cache, and keeps per-class
    timing statistics for every operation wrapped in ``measure_operation``.
    """

    # {service class name: {operation: stats}}
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, db: Session, cache: Optional["CacheService"] = None):
        self.db = db
        self.cache = cache
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Run the block in one unit of work.

        Usage:
            with self.transaction():
                self.repository.create(...)

        Domain errors roll back and propagate as they are, so callers can
        still dispatch on their kind. Raw SQLAlchemy errors that escaped the
        repositories are wrapped in ServiceException.
        """
        try:
            yield self.db
            self.db.commit()
        except DomainException:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Transaction rolled back: {e}")
            raise ServiceException(f"Database operation failed: {e}") from e
        except Exception:
            self.db.rollback()
            self.logger.exception("Transaction rolled back after unexpected error")
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method, sync or async.

        Usage:
            @BaseService.measure_operation("create_time_block")
            def create_time_block(self, owner_id, data):
                ...
        """

        def decorator(func: F) -> F:
            if asyncio.iscoroutinefunction(func):

                @wraps(func)
                async def async_measured(self: Any, *args: Any, **kwargs: Any) -> Any:
                    started = time.time()
                    error: Optional[BaseException] = None
                    try:
                        return await func(self, *args, **kwargs)
                    except Exception as e:
                        error = e
                        raise
                    finally:
                        _report(self, operation_name, started, error)

                return cast(F, async_measured)

            @wraps(func)
            def measured(self: Any, *args: Any, **kwargs: Any) -> Any:
                started = time.time()
                error: Optional[BaseException] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error = e
                    raise
                finally:
                    _report(self, operation_name, started, error)

            return cast(F, measured)

        return decorator

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        per_class = BaseService._class_metrics.setdefault(self.__class__.__name__, {})
        stats = per_class.setdefault(operation, _new_stats())
        stats["count"] += 1
        stats["total_time"] += elapsed
        stats["min_time"] = min(stats["min_time"], elapsed)
        stats["max_time"] = max(stats["max_time"], elapsed)
        stats["success_count" if success else "failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Per-operation timing summary for this service class."""
        summary: Dict[str, Any] = {}
        for operation, stats in BaseService._class_metrics.get(self.__class__.__name__, {}).items():
            count = stats["count"]
            if not count:
                continue
            summary[operation] = {
                **stats,
                "avg_time": stats["total_time"] / count,
                "success_rate": stats["success_count"] / count,
            }
        return summary

    def reset_metrics(self) -> None:
        BaseService._class_metrics.pop(self.__class__.__name__, None)
        self.logger.info(f"Metrics reset for {self.__class__.__name__}")
