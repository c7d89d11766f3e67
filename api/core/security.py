"""Password hashing and bearer token helpers.

Passwords are hashed with bcrypt (salted, one-way). Hashing is CPU-bound,
so both helpers run in a worker thread to keep the event loop responsive.

Access tokens are HS256 JWTs signed with ``settings.jwt_secret``. The
subject (``sub``) carries the user id; routes never inspect other claims.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from core.config import get_settings
from core import get_logger

logger = get_logger(__name__)

BCRYPT_ROUNDS = 10
# bcrypt rejects longer inputs
BCRYPT_MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class AccessToken:
    """An issued bearer token and its expiry."""

    token: str
    expires_at: datetime
    expires_in: int


def _hash_password_sync(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password_sync(password: str, password_hash: str) -> bool:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("password.hash.malformed")
        return False


async def hash_password(password: str) -> str:
    return await asyncio.to_thread(_hash_password_sync, password)


async def verify_password(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(_verify_password_sync, password, password_hash)


def create_access_token(
    subject: int | str,
    *,
    email: str | None = None,
    expires_minutes: int | None = None,
) -> AccessToken:
    """Create a signed access token for ``subject``.

    Args:
        subject: The user id, stored as the ``sub`` claim.
        email: Optional informational claim.
        expires_minutes: Lifetime override; defaults to
            ``settings.access_token_expire_minutes``.
    """
    settings = get_settings()
    lifetime = timedelta(
        minutes=expires_minutes
        if expires_minutes is not None
        else settings.access_token_expire_minutes
    )
    issued_at = datetime.now(UTC).replace(microsecond=0)
    expires_at = issued_at + lifetime

    claims: dict[str, Any] = {
        "sub": str(subject),
        "iat": issued_at,
        "exp": expires_at,
    }
    if email is not None:
        claims["email"] = email

    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return AccessToken(
        token=token,
        expires_at=expires_at,
        expires_in=int(lifetime.total_seconds()),
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Verify signature and expiry. Returns the claims, or None if invalid."""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError as e:
        logger.debug("token.rejected", reason=type(e).__name__)
        return None
