"""
Groceree Backend - Recipe, Ingredient and Instruction Models
==============================================================

What:  ORM models for `recipes` and its two child tables.
How:   Children reference their recipe with ON DELETE CASCADE, so deleting
       a recipe row removes its ingredients and instructions in the
       database itself. No ORM relationships are declared: services query
       children explicitly, which keeps async sessions free of lazy loads.

Query Patterns:
    - List recipes: recipes JOIN users LEFT JOIN user_favorites (caller)
    - Recipe detail: one row + ingredients + instructions ORDER BY step
    - Update: UPDATE recipes, DELETE children, INSERT new children
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from groceree.database import Base


class MeasurementUnit(str, enum.Enum):
    """Units an ingredient amount may be expressed in."""

    GRAMS = "g"
    KILOGRAMS = "kg"
    MILLILITERS = "ml"
    LITERS = "l"
    PIECES = "pcs"
    TABLESPOONS = "tbsp"
    TEASPOONS = "tsp"
    CUPS = "cup"


class Recipe(Base):
    """A recipe owned by one user."""

    __tablename__ = "recipes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Public path of the recipe image ("/images/recipes/..."), or "" if none
    image_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
        server_default=text("''"),
    )

    # Minutes
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    servings: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_recipes_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, name='{self.name}')>"


class Ingredient(Base):
    __tablename__ = "ingredients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    # One of MeasurementUnit values; validated at the API boundary
    unit: Mapped[str] = mapped_column(String(10), nullable=False)


class Instruction(Base):
    __tablename__ = "instructions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step: Mapped[int] = mapped_column(Integer, nullable=False)
    instruction: Mapped[str] = mapped_column(Text, nullable=False)
