"""Account registration and login.

Handles:
- POST /api/auth/register: create an account
- POST /api/auth/login: exchange email + password for a bearer token
"""

from fastapi import APIRouter, HTTPException, Request

from core.database import DbSession
from core.ratelimit import AUTH_LIMIT, limiter
from schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from services.users_service import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    authenticate_user,
    create_user,
    issue_token,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=201,
    responses={409: {"description": "Email already registered"}},
)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request, body: RegisterRequest, db: DbSession
) -> UserResponse:
    """Create an account. The password is stored only as a bcrypt hash."""
    try:
        user = await create_user(db, body.name, body.email, body.password)
    except EmailAlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="Email already registered")
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials"}},
)
@limiter.limit(AUTH_LIMIT)
async def login(request: Request, body: LoginRequest, db: DbSession) -> TokenResponse:
    """Check credentials and issue a bearer token."""
    try:
        user = await authenticate_user(db, body.email, body.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = issue_token(user)
    return TokenResponse(
        access_token=token.token,
        expires_in=token.expires_in,
        expires_at=token.expires_at,
    )
