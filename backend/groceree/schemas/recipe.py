"""
Groceree Backend - Recipe Schemas
===================================

What:  API contract for recipes, their ingredients and instructions.

Shapes:
    RecipeListItem  compact card used by every list endpoint
    RecipeDetail    full recipe with author, ingredients, instructions
    RecipeIn        body of create and update; children are replaced
                    wholesale on update, so the payload is always complete
"""

import uuid
from typing import List, Optional

from pydantic import Field

from groceree.models.recipe import MeasurementUnit
from groceree.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class IngredientIn(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    amount: float = Field(ge=0)
    unit: MeasurementUnit


class InstructionIn(CamelModel):
    step: int = Field(ge=1)
    instruction: str = Field(min_length=1)


class RecipeIn(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    duration: int = Field(ge=0, description="Preparation time in minutes")
    servings: int = Field(ge=1)
    ingredients: List[IngredientIn] = Field(default_factory=list)
    instructions: List[InstructionIn] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class Author(CamelModel):
    """
    Recipe owner as shown on a recipe card.

    `id` is the author's username: the frontend links to profiles by
    username, never by the internal user UUID.
    """
    id: str
    first_name: str


class IngredientOut(CamelModel):
    id: uuid.UUID
    name: str
    amount: float
    unit: MeasurementUnit


class InstructionOut(CamelModel):
    id: uuid.UUID
    step: int
    instruction: str


class RecipeListItem(CamelModel):
    id: uuid.UUID
    name: str
    image_url: str
    duration: int
    is_favorite: bool = False
    author: Optional[Author] = None


class RecipeDetail(CamelModel):
    id: uuid.UUID
    author: Author
    name: str
    image_url: str
    duration: int
    servings: int
    ingredients: List[IngredientOut]
    instructions: List[InstructionOut]
    is_favorite: bool


class RecipeResponse(CamelModel):
    recipe: RecipeListItem


class RecipeDetailResponse(CamelModel):
    recipe: RecipeDetail


class RecipeListResponse(CamelModel):
    recipes: List[RecipeListItem]


class FavoriteToggleResponse(CamelModel):
    success: bool = True
    is_favorite: bool


class RecipeImageResponse(CamelModel):
    success: bool = True
    image_url: str
