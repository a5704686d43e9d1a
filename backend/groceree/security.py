"""
Groceree Backend - Password Hashing and Bearer Tokens
=======================================================

What:  Hash/verify passwords, issue/decode access tokens, and gate
       protected routes.
How:   passlib bcrypt_sha256 for passwords (the full password counts, not
       just its first 72 bytes); python-jose HS256 JWTs whose
       claims carry the user's `id` and `username`.
Who:   The auth service issues tokens; the users and recipes routers depend
       on `get_current_user`.

Token claims:
    {"id": "<uuid>", "username": "<normalized>", "iat": ..., "exp": ...}

Decoding is local (signature + expiry); no database lookup happens per
request.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

from groceree.config import settings
from groceree.exceptions import AuthenticationError
from groceree.schemas.auth import AuthUser

logger = logging.getLogger(__name__)

# bcrypt_sha256 hashes new passwords; plain bcrypt hashes still verify
pwd_context = CryptContext(schemes=["bcrypt_sha256", "bcrypt"], deprecated="auto")

# auto_error=False: a missing header reaches get_current_user, which raises
# our own 401 instead of FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password and for a stored value that is not a hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password is not a recognized hash")
        return False


# ── Tokens ────────────────────────────────────────────────────────────────

def create_access_token(user: AuthUser, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token encoding the user's id and username."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {
        "id": str(user.id),
        "username": user.username,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.token_algorithm)


def decode_access_token(token: str) -> AuthUser:
    """
    Decode a bearer token into an AuthUser.

    Raises:
        AuthenticationError("Invalid token") for bad signatures, expired
        tokens, garbage input, or claims missing id/username.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.token_algorithm])
        return AuthUser(id=payload.get("id"), username=payload.get("username"))
    except (JWTError, PydanticValidationError) as e:
        raise AuthenticationError(message="Invalid token", cause=e)


# ── Request Gate ──────────────────────────────────────────────────────────

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthUser:
    """
    FastAPI dependency: resolve the caller from `Authorization: Bearer ...`.

    Missing header or a non-Bearer scheme → 401 "Unauthorized".
    Anything wrong with the token itself → 401 "Invalid token".
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError(message="Unauthorized")
    return decode_access_token(credentials.credentials)
