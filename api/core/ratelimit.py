"""Request rate limits (slowapi).

Authenticated requests are counted per user, everything else per client
IP. Counters live in ``RATELIMIT_STORAGE_URI``; the default ``memory://``
is per process, so deployments running several workers should point it at
Redis.
"""

import logging

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings
from core.wide_event import set_wide_event_fields

logger = logging.getLogger(__name__)

# Register and login: slows password guessing per IP
AUTH_LIMIT = "10/minute"
READ_LIMIT = "60/minute"
WRITE_LIMIT = "30/minute"

DEFAULT_RETRY_AFTER_SECONDS = 60


def rate_limit_key(request: Request) -> str:
    """``user:<id>`` once require_auth has run, else the client address."""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


def _build_limiter() -> Limiter:
    storage_uri = get_settings().ratelimit_storage_uri
    shared_storage = storage_uri.startswith(("redis://", "rediss://"))
    if not shared_storage and not get_settings().debug:
        logger.warning("ratelimit.storage.per_process", extra={"storage": storage_uri})

    return Limiter(
        key_func=rate_limit_key,
        default_limits=["100/minute"],
        storage_uri=storage_uri,
        in_memory_fallback_enabled=shared_storage,
        key_prefix="series-tracker:",
    )


limiter = _build_limiter()


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    limit = exc.detail if isinstance(exc, RateLimitExceeded) else str(exc)
    set_wide_event_fields(rate_limited=True, rate_limit=limit)
    logger.warning(
        "ratelimit.exceeded",
        extra={"key": rate_limit_key(request), "limit": limit},
    )
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests", "limit": limit},
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER_SECONDS)},
    )
