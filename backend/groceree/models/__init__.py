"""
ORM models. Importing this package registers every table on Base.metadata,
which Alembic autogenerate and the test suite rely on.
"""

from groceree.models.favorite import UserFavorite
from groceree.models.recipe import Ingredient, Instruction, MeasurementUnit, Recipe
from groceree.models.user import DEFAULT_BIO, User

__all__ = [
    "DEFAULT_BIO",
    "Ingredient",
    "Instruction",
    "MeasurementUnit",
    "Recipe",
    "User",
    "UserFavorite",
]
