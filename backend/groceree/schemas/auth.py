"""
Groceree Backend - Auth Schemas
=================================

Request and response bodies for /api/auth, plus `AuthUser`, the identity a
bearer token decodes to.
"""

import re
import uuid

from pydantic import Field, field_validator

from groceree.schemas.common import CamelModel


USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")
USERNAME_MAX_LENGTH = 50


def is_registrable_username(username: str) -> bool:
    """True if RegisterRequest would accept this username (after stripping)."""
    stripped = username.strip()
    return 0 < len(stripped) <= USERNAME_MAX_LENGTH and bool(USERNAME_PATTERN.match(stripped))


def _strip_required(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be blank")
    return stripped


class RegisterRequest(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("first_name", "last_name", "username")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("username")
    @classmethod
    def username_charset(cls, v: str) -> str:
        if not USERNAME_PATTERN.match(v):
            raise ValueError("may only contain letters, digits, '.', '_' and '-'")
        return v


class LoginRequest(CamelModel):
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(CamelModel):
    token: str = Field(description="Bearer token for the Authorization header")


class UsernameAvailability(CamelModel):
    available: bool
    username: str = Field(description="The normalized username that was checked")


class AuthUser(CamelModel):
    """Identity carried by a bearer token."""
    id: uuid.UUID
    username: str
