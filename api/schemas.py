"""Pydantic schemas for API request/response validation.

Series request bodies are plain JSON objects checked by
``services.series_validation`` so the field rules live in one place;
the models here describe responses and the auth payloads.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.security import BCRYPT_MAX_PASSWORD_BYTES
from models import SeriesStatus

NAME_MIN_LENGTH = 2
PASSWORD_MIN_LENGTH = 8

_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^A-Za-z0-9\s]"), "a special character"),
)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for account registration."""

    name: str = Field(max_length=255)
    email: EmailStr
    password: str = Field(max_length=128)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < NAME_MIN_LENGTH:
            raise ValueError(f"Name must be at least {NAME_MIN_LENGTH} characters")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        # Accounts are keyed by the lowercased address
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            )
        if len(v.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(
                f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )
        missing = [label for pattern, label in _PASSWORD_RULES if not pattern.search(v)]
        if missing:
            raise ValueError(f"Password must contain {', '.join(missing)}")
        return v


class LoginRequest(BaseModel):
    """Request body for login."""

    email: str = Field(max_length=255)
    password: str = Field(max_length=128)


class UserResponse(BaseModel):
    """Public view of an account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class TokenResponse(BaseModel):
    """Issued bearer token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------


class SeriesResponse(BaseModel):
    """A series as returned to its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    rating: float
    total_seasons: int
    total_episodes: int
    watched_episodes: int
    status: SeriesStatus
    created_at: datetime
    updated_at: datetime


class SeriesListResponse(BaseModel):
    """Filtered series list."""

    count: int
    series: list[SeriesResponse]


class ValidationErrorResponse(BaseModel):
    """Body of a 422 raised by series validation."""

    detail: str
    field: str | None = None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    """Connection pool metrics."""

    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(BaseModel):
    """Detailed health check response with component status."""

    status: str
    service: str
    database: bool
    pool: PoolStatusResponse | None = None
