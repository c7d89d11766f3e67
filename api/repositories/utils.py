"""Repository helpers."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from core import get_logger, set_wide_event_fields

logger = get_logger(__name__)

# Repository calls slower than this are flagged (milliseconds)
SLOW_QUERY_THRESHOLD_MS = 500

P = ParamSpec("P")
R = TypeVar("R")


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that times a repository call.

    Slow calls are logged and flagged on the request's wide event. Failures
    are recorded on the wide event and re-raised unchanged.

    Usage:
        @log_slow_query("series.get_by_id")
        async def get_by_id(self, owner_id: int, series_id: int): ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                set_wide_event_fields(
                    db_query_error=True,
                    db_operation=operation_name,
                    db_duration_ms=round((time.perf_counter() - start) * 1000, 2),
                    db_error_type=type(e).__name__,
                )
                raise

            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            if duration_ms > SLOW_QUERY_THRESHOLD_MS:
                logger.info(
                    "db.query.slow", operation=operation_name, duration_ms=duration_ms
                )
                set_wide_event_fields(
                    db_slow_query=True,
                    db_operation=operation_name,
                    db_duration_ms=duration_ms,
                )
            return result

        return wrapper

    return decorator
