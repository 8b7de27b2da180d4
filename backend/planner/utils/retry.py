# backend/planner/utils/retry.py
"""
Retry with linear backoff for store I/O.

The wrapper is generic over the operation's result and does not decide what
is retriable on its own: callers wrap only I/O calls and pass the error
classes worth retrying (normally ``TransientStoreFailure``). Anything else
propagates on the first raise. On exhaustion the last error is re-raised
unchanged so the root cause survives.

Delay before attempt n+1 is ``base_delay * n`` seconds: with the defaults
(3 attempts, 1s) the waits are 1s then 2s.
"""

import asyncio
from functools import wraps
import logging
import time
from typing import Awaitable, Callable, Optional, ParamSpec, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

RetryOn = Tuple[Type[BaseException], ...]


def _backoff_delay(base_delay: float, attempt: int) -> float:
    return base_delay * attempt


def _op_name(op: Callable[..., object]) -> str:
    return getattr(op, "__name__", op.__class__.__name__)


def with_retry(
    op: Callable[[], R],
    max_retries: int = 3,
    base_delay: float = 1.0,
    retry_on: RetryOn = (Exception,),
    op_name: Optional[str] = None,
) -> R:
    """
    Call ``op`` up to ``max_retries`` times.

    Args:
        op: Zero-argument callable performing the I/O
        max_retries: Total attempts, including the first
        base_delay: Seconds; the wait before attempt n+1 is base_delay * n
        retry_on: Exception classes that trigger another attempt
        op_name: Name used in log lines (defaults to op.__name__)

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted, or any error outside
        ``retry_on`` immediately
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    name = op_name or _op_name(op)
    attempt = 1
    while True:
        try:
            return op()
        except retry_on as exc:
            if attempt >= max_retries:
                logger.error(f"All {max_retries} attempts failed for {name}: {exc}")
                raise
            delay = _backoff_delay(base_delay, attempt)
            logger.warning(
                f"Attempt {attempt}/{max_retries} failed for {name}: {exc}. Retrying in {delay}s...",
                extra={"event": "store_retry", "op": name, "attempt": attempt, "delay": delay},
            )
            time.sleep(delay)
            attempt += 1


async def with_retry_async(
    op: Callable[[], Awaitable[R]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    retry_on: RetryOn = (Exception,),
    op_name: Optional[str] = None,
) -> R:
    """Async variant of with_retry; ``op`` returns a fresh awaitable per attempt."""
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    name = op_name or _op_name(op)
    attempt = 1
    while True:
        try:
            return await op()
        except retry_on as exc:
            if attempt >= max_retries:
                logger.error(f"All {max_retries} attempts failed for {name}: {exc}")
                raise
            delay = _backoff_delay(base_delay, attempt)
            logger.warning(
                f"Attempt {attempt}/{max_retries} failed for {name}: {exc}. Retrying in {delay}s...",
                extra={"event": "store_retry", "op": name, "attempt": attempt, "delay": delay},
            )
            await asyncio.sleep(delay)
            attempt += 1


def retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retry_on: RetryOn = (Exception,),
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Decorator form of with_retry_async for coroutine functions.

    Usage:
        @retry(max_retries=3, base_delay=0.5, retry_on=(TransientStoreFailure,))
        async def load_blocks(...):
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return await with_retry_async(
                lambda: func(*args, **kwargs),
                max_retries=max_retries,
                base_delay=base_delay,
                retry_on=retry_on,
                op_name=func.__name__,
            )

        return wrapper

    return decorator
