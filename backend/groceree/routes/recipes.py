"""
Groceree Backend - Recipe Routes
==================================

What:  /api/recipes: create, list, search, read, update, delete, favorite,
       and recipe images. All routes require a bearer token.

Route order matters: the literal paths (/user/me, /favorites/me) are
declared before their /{username} siblings, and all of them before
/{recipe_id}, so "me" is never read as a username or a recipe id.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from groceree.database import get_db_session
from groceree.schemas.auth import AuthUser
from groceree.schemas.common import ErrorResponse, SuccessResponse
from groceree.schemas.recipe import (
    FavoriteToggleResponse,
    RecipeDetailResponse,
    RecipeImageResponse,
    RecipeIn,
    RecipeListResponse,
    RecipeResponse,
)
from groceree.security import get_current_user
from groceree.services.blob_service import blob_store
from groceree.services.recipe_service import recipe_service

router = APIRouter(
    prefix="/api/recipes",
    tags=["Recipes"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)


# ── Create / List ─────────────────────────────────────────────────────────

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RecipeResponse,
    responses={400: {"description": "Invalid recipe body", "model": ErrorResponse}},
    summary="Create a recipe",
)
async def create_recipe(
    payload: RecipeIn,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    recipe = await recipe_service.create_recipe(db, payload, current_user)
    return RecipeResponse(recipe=recipe)


@router.get(
    "",
    response_model=RecipeListResponse,
    summary="List or search recipes",
    description="Newest first. `search` filters by a case-insensitive substring of the name.",
)
async def list_recipes(
    search: Optional[str] = Query(default=None, max_length=200),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeListResponse:
    recipes = await recipe_service.list_recipes(db, current_user, search=search)
    return RecipeListResponse(recipes=recipes)


@router.get("/user/me", response_model=RecipeListResponse, summary="List your recipes")
async def list_my_recipes(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeListResponse:
    recipes = await recipe_service.list_by_owner(db, current_user)
    return RecipeListResponse(recipes=recipes)


@router.get("/favorites/me", response_model=RecipeListResponse, summary="List your favorites")
async def list_my_favorites(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeListResponse:
    recipes = await recipe_service.list_favorites(db, current_user)
    return RecipeListResponse(recipes=recipes)


@router.get(
    "/favorites/{username}",
    response_model=RecipeListResponse,
    summary="List another user's favorites",
)
async def list_user_favorites(
    username: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeListResponse:
    recipes = await recipe_service.list_favorites(db, current_user, username=username)
    return RecipeListResponse(recipes=recipes)


@router.get(
    "/user/{username}",
    response_model=RecipeListResponse,
    summary="List another user's recipes",
)
async def list_user_recipes(
    username: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeListResponse:
    recipes = await recipe_service.list_by_owner(db, current_user, username=username)
    return RecipeListResponse(recipes=recipes)


# ── Single Recipe ─────────────────────────────────────────────────────────

@router.get(
    "/{recipe_id}",
    response_model=RecipeDetailResponse,
    responses={404: {"description": "Recipe not found", "model": ErrorResponse}},
    summary="Get a recipe with ingredients and instructions",
)
async def get_recipe(
    recipe_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeDetailResponse:
    recipe = await recipe_service.get_recipe(db, recipe_id, current_user)
    return RecipeDetailResponse(recipe=recipe)


@router.put(
    "/{recipe_id}",
    response_model=RecipeResponse,
    responses={404: {"description": "Not found or not yours", "model": ErrorResponse}},
    summary="Replace a recipe",
    description="Overwrites the recipe fields and replaces all ingredients and instructions.",
)
async def update_recipe(
    recipe_id: UUID,
    payload: RecipeIn,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeResponse:
    recipe = await recipe_service.update_recipe(db, recipe_id, payload, current_user)
    return RecipeResponse(recipe=recipe)


@router.delete(
    "/{recipe_id}",
    response_model=SuccessResponse,
    responses={404: {"description": "Not found or not yours", "model": ErrorResponse}},
    summary="Delete a recipe",
)
async def delete_recipe(
    recipe_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await recipe_service.delete_recipe(db, recipe_id, current_user)
    return SuccessResponse(success=True)


@router.post(
    "/{recipe_id}/favorite",
    response_model=FavoriteToggleResponse,
    responses={404: {"description": "Recipe not found", "model": ErrorResponse}},
    summary="Toggle a recipe in your favorites",
)
async def toggle_favorite(
    recipe_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteToggleResponse:
    is_favorite = await recipe_service.toggle_favorite(db, recipe_id, current_user)
    return FavoriteToggleResponse(success=True, is_favorite=is_favorite)


@router.post(
    "/{recipe_id}/image",
    response_model=RecipeImageResponse,
    responses={
        400: {"description": "Missing, oversized or non-image upload", "model": ErrorResponse},
        404: {"description": "Not found or not yours", "model": ErrorResponse},
        500: {"description": "Image could not be stored", "model": ErrorResponse},
    },
    summary="Upload a recipe image",
    description="Multipart upload in the `image` field. JPG, PNG or GIF, at most 5MB.",
)
async def upload_recipe_image(
    recipe_id: UUID,
    image: UploadFile = File(..., description="Recipe image (JPG, PNG, GIF)"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecipeImageResponse:
    try:
        # Oversized uploads are refused before the body is read into memory
        blob_store.check_reported_size(image.size)
        content = await image.read()
    finally:
        await image.close()

    image_url = await recipe_service.update_image(
        db, recipe_id, image.content_type, content, current_user
    )
    return RecipeImageResponse(success=True, image_url=image_url)
