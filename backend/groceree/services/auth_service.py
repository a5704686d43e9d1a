"""
Groceree Backend - Auth Service
=================================

What:  Registration, login and username availability.
How:   Every username is normalized with `normalize_username` before it is
       stored or compared, which makes the unique index case-insensitive in
       effect. Successful register/login return a bearer token.
Who:   Called by the /api/auth routes.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from groceree.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    GrocereeError,
    ValidationError,
)
from groceree.models.user import DEFAULT_BIO, User
from groceree.schemas.auth import (
    AuthUser,
    LoginRequest,
    RegisterRequest,
    UsernameAvailability,
    is_registrable_username,
)
from groceree.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    """Strip surrounding whitespace and lowercase: "  Alice " becomes "alice"."""
    return username.strip().lower()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    """Look a user up by (normalized) username. Shared by the other services."""
    result = await db.execute(
        select(User).where(User.username == normalize_username(username))
    )
    return result.scalar_one_or_none()


class AuthService:
    """
    Business logic for /api/auth.

    Error Handling Strategy:
        Application errors propagate unchanged. SQLAlchemy errors are
        wrapped in DatabaseError with the SQLAlchemy exception as `cause`.
    """

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> str:
        """
        Create an account and return its token.

        Raises:
            ValidationError: normalized username already exists (400)
            ConflictError:   a concurrent registration won the insert (409)
            DatabaseError:   any other database failure (500)
        """
        username = normalize_username(payload.username)
        try:
            if await get_user_by_username(db, username) is not None:
                raise ValidationError(
                    message="Username already exists",
                    field="username",
                )

            user = User(
                first_name=payload.first_name,
                last_name=payload.last_name,
                username=username,
                password=hash_password(payload.password),
                image_url="",
                bio=DEFAULT_BIO,
            )
            db.add(user)
            await db.flush()  # Assigns id; surfaces unique violations now
            logger.info("User registered: %s (%s)", username, user.id)

            return create_access_token(AuthUser(id=user.id, username=user.username))

        except GrocereeError:
            raise
        except IntegrityError as e:
            raise ConflictError(
                message="Username already exists",
                context={"username": username},
                cause=e,
            )
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", username, str(e))
            raise DatabaseError(message="Failed to create user", cause=e)

    async def login(self, db: AsyncSession, payload: LoginRequest) -> str:
        """
        Check credentials and return a token.

        Unknown username and wrong password produce the same 401 so the
        response does not reveal which accounts exist.
        """
        try:
            user = await get_user_by_username(db, payload.username)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(message="Login failed", cause=e)

        if user is None or not verify_password(payload.password, user.password):
            logger.info("Failed login for username=%s", normalize_username(payload.username))
            raise AuthenticationError(message="Invalid credentials")

        return create_access_token(AuthUser(id=user.id, username=user.username))

    async def check_username(self, db: AsyncSession, username: str) -> UsernameAvailability:
        """A name register would reject is reported unavailable without a lookup."""
        normalized = normalize_username(username)
        if not is_registrable_username(normalized):
            return UsernameAvailability(available=False, username=normalized)
        try:
            existing = await get_user_by_username(db, normalized)
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to check username availability", cause=e)
        return UsernameAvailability(available=existing is None, username=normalized)


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
