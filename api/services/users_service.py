"""User service: registration, credential checks and token issuance."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core.security import AccessToken, create_access_token, hash_password, verify_password
from repositories.gateway import StorageError
from repositories.user_repository import UserRecord, UserRepository

logger = logging.getLogger(__name__)


class EmailAlreadyRegisteredError(Exception):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already registered")


class InvalidCredentialsError(Exception):
    """Raised on login with an unknown email or a wrong password."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively, so store them lowercase."""
    return email.strip().lower()


async def find_user_by_email(db: AsyncSession, email: str) -> UserRecord | None:
    return await UserRepository(db).get_by_email(normalize_email(email))


async def create_user(
    db: AsyncSession, name: str, email: str, password: str
) -> UserRecord:
    """Register a new user with a bcrypt-hashed password.

    Raises:
        EmailAlreadyRegisteredError: The email is taken. Checked up front and
            again via the unique constraint for concurrent registrations.
    """
    email = normalize_email(email)
    repo = UserRepository(db)

    if await repo.get_by_email(email) is not None:
        raise EmailAlreadyRegisteredError(email)

    password_hash = await hash_password(password)
    try:
        user = await repo.create(
            name=name.strip(), email=email, password_hash=password_hash
        )
    except StorageError as e:
        if e.is_conflict:
            raise EmailAlreadyRegisteredError(email) from e
        raise

    logger.info("user.registered", extra={"user_id": user.id})
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> UserRecord:
    """Check credentials.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password. The two
            cases are not distinguished.
    """
    user = await find_user_by_email(db, email)
    if user is None or not await verify_password(password, user.password_hash):
        logger.info("user.login.rejected")
        raise InvalidCredentialsError()

    logger.info("user.login.succeeded", extra={"user_id": user.id})
    return user


def issue_token(user: UserRecord) -> AccessToken:
    return create_access_token(user.id, email=user.email)
