# backend/planner/core/exceptions.py
"""
Errors raised by the scheduling engine.

Services raise these; routes turn them into HTTP responses through
``to_http_exception``. Each class carries an ``ErrorKind`` so callers can
branch on the outcome without isinstance chains:

    INVALID_RANGE, SCHEDULING_CONFLICT, NOT_FOUND,
    CONCURRENCY_CONFLICT, TRANSIENT_STORE_FAILURE

Only TRANSIENT_STORE_FAILURE is ever retried, and only by the resilience
wrapper in ``planner.utils.retry``.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    """Closed set of outcome kinds surfaced by the scheduling engine."""

    INVALID_RANGE = "invalid_range"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    NOT_FOUND = "not_found"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    TRANSIENT_STORE_FAILURE = "transient_store_failure"
    VALIDATION = "validation"
    INTERNAL = "internal"


class DomainException(Exception):
    """Root of the planner's error hierarchy; renders as a 500 unless overridden."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def _detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "kind": self.kind.value,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """HTTP response for this error; subclasses pick the status code."""
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=self._detail(),
        )


class ValidationException(DomainException):
    """Input that is well-formed but not acceptable (400)."""

    kind = ErrorKind.VALIDATION

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=self._detail())


class NotFoundException(DomainException):
    """Missing row or owner (404)."""

    kind = ErrorKind.NOT_FOUND

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=self._detail())


class ConflictException(DomainException):
    """Write refused because of the current state of the store (409)."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=self._detail())


class ServiceException(DomainException):
    """Unexpected store or service failure surfaced from a transaction (500)."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "Internal error",
                "code": self.code,
                "kind": self.kind.value,
                "details": self.details if self.details else {},
            },
        )


# Scheduling outcomes


class InvalidRangeException(ValidationException):
    """Raised when an interval does not satisfy start_time < end_time."""

    kind = ErrorKind.INVALID_RANGE

    def __init__(self, start_time: Any, end_time: Any, message: Optional[str] = None):
        super().__init__(
            message=message or "End time must be after start time",
            code="INVALID_RANGE",
            details={"start_time": str(start_time), "end_time": str(end_time)},
        )


class SchedulingConflictException(ConflictException):
    """Raised when a time block overlaps one or more of the owner's blocks."""

    kind = ErrorKind.SCHEDULING_CONFLICT

    def __init__(self, conflicts: Iterable[Any], message: Optional[str] = None):
        self.conflicts: List[Any] = list(conflicts)
        super().__init__(
            message=message or "This time range conflicts with an existing time block",
            code="SCHEDULING_CONFLICT",
            details={
                "conflicts": [
                    {
                        "id": c.id,
                        "title": getattr(c, "title", None),
                        "start_time": c.start_time.isoformat(),
                        "end_time": c.end_time.isoformat(),
                    }
                    for c in self.conflicts
                ]
            },
        )


class OwnersNotFoundException(NotFoundException):
    """Raised when one or more requested calendar owners do not exist."""

    def __init__(self, missing_ids: Iterable[str]):
        self.missing_ids: List[str] = list(missing_ids)
        super().__init__(
            message=f"Users not found: {', '.join(self.missing_ids)}",
            code="USERS_NOT_FOUND",
            details={"missing_ids": self.missing_ids},
        )


class ConcurrencyConflictException(ConflictException):
    """
    Raised when an optimistic version check fails on update/delete.

    The caller should re-read the record and resubmit; the engine never
    retries these itself.
    """

    kind = ErrorKind.CONCURRENCY_CONFLICT

    def __init__(
        self,
        entity: str,
        entity_id: str,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        super().__init__(
            message=f"{entity} {entity_id} was modified by another request; reload and retry",
            code="CONCURRENCY_CONFLICT",
            details={
                "entity": entity,
                "id": entity_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class RepositoryException(DomainException):
    """A query or flush failed for a non-transient reason, e.g. a constraint violation."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code or "REPOSITORY_ERROR", details=details)


class TransientStoreFailure(RepositoryException):
    """
    I/O-level store failure (timeout, dropped connection, pool exhaustion).

    The only error class the resilience wrapper retries automatically.
    """

    kind = ErrorKind.TRANSIENT_STORE_FAILURE

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="TRANSIENT_STORE_FAILURE", details=details)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Calendar store unavailable, retry shortly",
            headers={"Retry-After": "2"},
        )


def error_kind_of(exc: BaseException) -> ErrorKind:
    """Map any exception onto the closed ErrorKind set."""
    if isinstance(exc, DomainException):
        return exc.kind
    return ErrorKind.INTERNAL
