"""Bearer token authentication dependencies for FastAPI routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.logger import get_logger
from core.security import decode_access_token
from core.wide_event import set_wide_event_fields

logger = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_user_id_from_credentials(
    credentials: HTTPAuthorizationCredentials | None,
) -> int | None:
    """Get authenticated user ID from a bearer token, or None."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        set_wide_event_fields(auth_error="invalid_token")
        return None

    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        set_wide_event_fields(auth_error="invalid_subject")
        return None

    return user_id if user_id > 0 else None


def require_auth(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> int:
    """Raises 401 if not authenticated. Sets request.state.user_id."""
    user_id = get_user_id_from_credentials(credentials)
    if user_id is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.user_id = user_id
    set_wide_event_fields(user_id=user_id)
    return user_id


UserId = Annotated[int, Depends(require_auth)]
