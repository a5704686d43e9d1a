"""
Groceree Backend - Recipe Service
===================================

What:  Recipe CRUD, owner and favorite listings, favorite toggling, and
       recipe images.
How:   Plain SQLAlchemy Core-style selects joined the same way for every
       listing; child rows are written and replaced explicitly.
Who:   Called by the /api/recipes routes.

Listing query (shared by every list endpoint):
    SELECT recipes.*, users.username, users.first_name, fav.user_id
    FROM recipes
    JOIN users ON recipes.user_id = users.id
    LEFT JOIN user_favorites fav
           ON fav.recipe_id = recipes.id AND fav.user_id = :viewer
    [WHERE ...]
    ORDER BY recipes.created_at DESC

    `isFavorite` is therefore always relative to the caller, whichever
    user's recipes or favorites are being listed.

Write semantics:
    - create: INSERT recipe, INSERT ingredients, INSERT instructions
    - update: UPDATE recipe, DELETE + INSERT ingredients, DELETE + INSERT
      instructions (wholesale replacement, never a diff)
    - delete: DELETE recipe; ON DELETE CASCADE removes children/favorites
    - toggle favorite: SELECT pair, then DELETE or INSERT

    All statements of one request share the request's transaction
    (see database.get_db_session), so none of these leave partial writes.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import Select, and_, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from groceree.exceptions import (
    ConflictError,
    DatabaseError,
    GrocereeError,
    NotFoundError,
)
from groceree.models.favorite import UserFavorite
from groceree.models.recipe import Ingredient, Instruction, Recipe
from groceree.models.user import User
from groceree.schemas.auth import AuthUser
from groceree.schemas.recipe import (
    Author,
    IngredientOut,
    InstructionOut,
    RecipeDetail,
    RecipeIn,
    RecipeListItem,
)
from groceree.services.auth_service import get_user_by_username
from groceree.services.blob_service import blob_store

logger = logging.getLogger(__name__)

NOT_FOUND_OR_FORBIDDEN = "Recipe not found or you do not have permission to {action} it"


def _listing_query(viewer_id: uuid.UUID) -> Select:
    """Base SELECT for recipe cards, with the viewer's favorite flag."""
    viewer_favorite = aliased(UserFavorite, name="viewer_favorite")
    return (
        select(
            Recipe.id,
            Recipe.name,
            Recipe.image_url,
            Recipe.duration,
            Recipe.servings,
            User.username.label("author_username"),
            User.first_name.label("author_first_name"),
            viewer_favorite.user_id.label("favorited_by_viewer"),
        )
        .join(User, Recipe.user_id == User.id)
        .outerjoin(
            viewer_favorite,
            and_(
                viewer_favorite.recipe_id == Recipe.id,
                viewer_favorite.user_id == viewer_id,
            ),
        )
    )


def _to_list_item(row) -> RecipeListItem:
    return RecipeListItem(
        id=row.id,
        name=row.name,
        image_url=row.image_url,
        duration=row.duration,
        is_favorite=row.favorited_by_viewer is not None,
        author=Author(id=row.author_username, first_name=row.author_first_name),
    )


class RecipeService:
    """
    Business logic layer for recipe operations.

    Error Handling Strategy:
        GrocereeError subclasses propagate unchanged. SQLAlchemy errors are
        wrapped in DatabaseError with a message naming the failed operation.
    """

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _run_listing(self, db: AsyncSession, query: Select) -> List[RecipeListItem]:
        result = await db.execute(query.order_by(Recipe.created_at.desc(), Recipe.id))
        return [_to_list_item(row) for row in result.all()]

    async def _list_item(
        self, db: AsyncSession, recipe_id: uuid.UUID, viewer_id: uuid.UUID
    ) -> RecipeListItem:
        result = await db.execute(_listing_query(viewer_id).where(Recipe.id == recipe_id))
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(message="Recipe not found", resource="recipe", resource_id=str(recipe_id))
        return _to_list_item(row)

    async def _load_owned(
        self, db: AsyncSession, recipe_id: uuid.UUID, owner_id: uuid.UUID, action: str
    ) -> Recipe:
        """The recipe if `owner_id` owns it; 404 when missing or not owned."""
        result = await db.execute(
            select(Recipe).where(Recipe.id == recipe_id, Recipe.user_id == owner_id)
        )
        recipe = result.scalar_one_or_none()
        if recipe is None:
            raise NotFoundError(
                message=NOT_FOUND_OR_FORBIDDEN.format(action=action),
                resource="recipe",
                resource_id=str(recipe_id),
            )
        return recipe

    @staticmethod
    def _add_children(db: AsyncSession, recipe_id: uuid.UUID, payload: RecipeIn) -> None:
        db.add_all(
            Ingredient(
                recipe_id=recipe_id,
                name=ing.name,
                amount=ing.amount,
                unit=ing.unit.value,
            )
            for ing in payload.ingredients
        )
        db.add_all(
            Instruction(
                recipe_id=recipe_id,
                step=inst.step,
                instruction=inst.instruction,
            )
            for inst in payload.instructions
        )

    # ── Create / Read ─────────────────────────────────────────────────────

    async def create_recipe(
        self, db: AsyncSession, payload: RecipeIn, current_user: AuthUser
    ) -> RecipeListItem:
        try:
            recipe = Recipe(
                user_id=current_user.id,
                name=payload.name,
                duration=payload.duration,
                servings=payload.servings,
                image_url="",
            )
            db.add(recipe)
            await db.flush()  # Assigns recipe.id for the child rows

            self._add_children(db, recipe.id, payload)
            await db.flush()

            logger.info(
                "Recipe created: %s by %s (%d ingredients, %d instructions)",
                recipe.id,
                current_user.username,
                len(payload.ingredients),
                len(payload.instructions),
            )
            return await self._list_item(db, recipe.id, current_user.id)

        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            logger.error("Create recipe error: %s", str(e))
            raise DatabaseError(message="Failed to create recipe", cause=e)

    async def list_recipes(
        self, db: AsyncSession, current_user: AuthUser, search: Optional[str] = None
    ) -> List[RecipeListItem]:
        """All recipes, optionally filtered by a case-insensitive name substring."""
        query = _listing_query(current_user.id)
        if search and search.strip():
            # autoescape: "%" and "_" in the search text match literally
            query = query.where(
                Recipe.name.icontains(search.strip(), autoescape=True)
            )
        try:
            return await self._run_listing(db, query)
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to fetch recipes", cause=e)

    async def list_by_owner(
        self, db: AsyncSession, current_user: AuthUser, username: Optional[str] = None
    ) -> List[RecipeListItem]:
        """
        Recipes owned by `username`, or by the caller when username is None.
        An unknown username yields an empty list.
        """
        try:
            if username is None:
                owner_id = current_user.id
            else:
                owner = await get_user_by_username(db, username)
                if owner is None:
                    return []
                owner_id = owner.id
            query = _listing_query(current_user.id).where(Recipe.user_id == owner_id)
            return await self._run_listing(db, query)
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to fetch user recipes", cause=e)

    async def list_favorites(
        self, db: AsyncSession, current_user: AuthUser, username: Optional[str] = None
    ) -> List[RecipeListItem]:
        """
        Recipes favorited by `username`, or by the caller when username is
        None. An unknown username yields an empty list.
        """
        try:
            if username is None:
                fan_id = current_user.id
            else:
                fan = await get_user_by_username(db, username)
                if fan is None:
                    return []
                fan_id = fan.id
            fan_favorite = aliased(UserFavorite, name="fan_favorite")
            query = (
                _listing_query(current_user.id)
                .join(fan_favorite, fan_favorite.recipe_id == Recipe.id)
                .where(fan_favorite.user_id == fan_id)
            )
            return await self._run_listing(db, query)
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to fetch favorite recipes", cause=e)

    async def get_recipe(
        self, db: AsyncSession, recipe_id: uuid.UUID, current_user: AuthUser
    ) -> RecipeDetail:
        """Full recipe with author, ingredients and step-ordered instructions."""
        try:
            result = await db.execute(
                _listing_query(current_user.id).where(Recipe.id == recipe_id)
            )
            row = result.one_or_none()
            if row is None:
                raise NotFoundError(
                    message="Recipe not found", resource="recipe", resource_id=str(recipe_id)
                )

            ingredients = (
                await db.execute(select(Ingredient).where(Ingredient.recipe_id == recipe_id))
            ).scalars().all()
            instructions = (
                await db.execute(
                    select(Instruction)
                    .where(Instruction.recipe_id == recipe_id)
                    .order_by(Instruction.step)
                )
            ).scalars().all()

            return RecipeDetail(
                id=row.id,
                author=Author(id=row.author_username, first_name=row.author_first_name),
                name=row.name,
                image_url=row.image_url,
                duration=row.duration,
                servings=row.servings,
                ingredients=[IngredientOut.model_validate(i) for i in ingredients],
                instructions=[InstructionOut.model_validate(i) for i in instructions],
                is_favorite=row.favorited_by_viewer is not None,
            )
        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to fetch recipe", cause=e)

    # ── Update / Delete ───────────────────────────────────────────────────

    async def update_recipe(
        self,
        db: AsyncSession,
        recipe_id: uuid.UUID,
        payload: RecipeIn,
        current_user: AuthUser,
    ) -> RecipeListItem:
        """
        Overwrite the recipe row and replace its children wholesale.

        After this call the recipe has exactly the payload's ingredients and
        instructions; previous child rows (and their ids) are gone.
        """
        try:
            recipe = await self._load_owned(db, recipe_id, current_user.id, "update")
            recipe.name = payload.name
            recipe.duration = payload.duration
            recipe.servings = payload.servings

            await db.execute(delete(Ingredient).where(Ingredient.recipe_id == recipe_id))
            await db.execute(delete(Instruction).where(Instruction.recipe_id == recipe_id))
            self._add_children(db, recipe_id, payload)
            await db.flush()

            logger.info("Recipe updated: %s by %s", recipe_id, current_user.username)
            return await self._list_item(db, recipe_id, current_user.id)

        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to update recipe", cause=e)

    async def delete_recipe(
        self, db: AsyncSession, recipe_id: uuid.UUID, current_user: AuthUser
    ) -> None:
        """Delete an owned recipe; children and favorites go by cascade."""
        try:
            recipe = await self._load_owned(db, recipe_id, current_user.id, "delete")
            image_url = recipe.image_url
            await db.delete(recipe)
            # Committed before the blob goes, so a failed commit keeps the image
            await db.commit()
        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to delete recipe", cause=e)

        logger.info("Recipe deleted: %s by %s", recipe_id, current_user.username)
        if image_url:
            await blob_store.delete_url(image_url)

    # ── Favorites ─────────────────────────────────────────────────────────

    async def toggle_favorite(
        self, db: AsyncSession, recipe_id: uuid.UUID, current_user: AuthUser
    ) -> bool:
        """
        Flip the caller's favorite on a recipe.

        Returns:
            The new state: True if the recipe is now a favorite.

        Raises:
            NotFoundError: the recipe does not exist (404)
            ConflictError: a concurrent toggle inserted the same pair (409)
        """
        try:
            if await db.get(Recipe, recipe_id) is None:
                raise NotFoundError(
                    message="Recipe not found", resource="recipe", resource_id=str(recipe_id)
                )

            result = await db.execute(
                select(UserFavorite).where(
                    UserFavorite.user_id == current_user.id,
                    UserFavorite.recipe_id == recipe_id,
                )
            )
            favorite = result.scalar_one_or_none()

            if favorite is not None:
                await db.delete(favorite)
                is_favorite = False
            else:
                db.add(UserFavorite(user_id=current_user.id, recipe_id=recipe_id))
                is_favorite = True
            await db.flush()

            logger.info(
                "Favorite %s: recipe=%s user=%s",
                "added" if is_favorite else "removed",
                recipe_id,
                current_user.username,
            )
            return is_favorite

        except GrocereeError:
            raise
        except IntegrityError as e:
            raise ConflictError(
                message="Favorite was changed concurrently",
                context={"recipe_id": str(recipe_id)},
                cause=e,
            )
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to toggle favorite", cause=e)

    # ── Images ────────────────────────────────────────────────────────────

    async def update_image(
        self,
        db: AsyncSession,
        recipe_id: uuid.UUID,
        content_type: str | None,
        content: bytes,
        current_user: AuthUser,
    ) -> str:
        """
        Store a new recipe image and return its public URL.

        Flow: ownership check → validate → put blob → UPDATE image_url and
        commit → delete previous blob. A failed UPDATE or commit removes the
        new blob again.
        """
        try:
            recipe = await self._load_owned(db, recipe_id, current_user.id, "update")
        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to upload image", cause=e)

        extension = blob_store.validate_image(content_type, content)
        key = blob_store.make_key("recipes", str(recipe_id), extension)
        await blob_store.put(key, content)

        previous_url = recipe.image_url
        try:
            recipe.image_url = blob_store.url_for(key)
            await db.commit()
        except SQLAlchemyError as e:
            await blob_store.delete(key)
            raise DatabaseError(message="Failed to update recipe with image URL", cause=e)

        if previous_url and previous_url != recipe.image_url:
            await blob_store.delete_url(previous_url)

        logger.info("Recipe image updated: %s -> %s", recipe_id, key)
        return recipe.image_url


# ── Singleton Instance ────────────────────────────────────────────────────
recipe_service = RecipeService()
