"""
Groceree Backend - UserFavorite Join Model
============================================

What:  Many-to-many join between users and the recipes they favorited.
How:   Composite primary key (user_id, recipe_id) makes each pair unique;
       both foreign keys cascade, so a favorite disappears with either
       parent.
"""

import uuid

from sqlalchemy import ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from groceree.database import Base


class UserFavorite(Base):
    __tablename__ = "user_favorites"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.id", ondelete="CASCADE"),
        primary_key=True,
    )

    def __repr__(self) -> str:
        return f"<UserFavorite(user_id={self.user_id}, recipe_id={self.recipe_id})>"
