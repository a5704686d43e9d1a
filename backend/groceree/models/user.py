"""
Groceree Backend - User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table.
Who:   Used by the auth and user services; read by recipe queries for the
       author block of each recipe.

Username invariant:
    The column is UNIQUE, but uniqueness is meant case-insensitively. The
    auth service stores `username.strip().lower()` and every lookup
    normalizes the same way, so "Alice " and "alice" collide.

Password column:
    Holds a bcrypt hash produced by groceree.security.hash_password, never
    the plaintext.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from groceree.database import Base

DEFAULT_BIO = "Hi, I'm new here!"


class User(Base):
    """A registered account. Owns recipes and favorites."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Normalized (stripped, lowercased) login name",
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash",
    )

    # Public path of the profile image ("/images/users/..."), or "" if none
    image_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
        server_default=text("''"),
    )

    bio: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_BIO,
        server_default=text("''"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
