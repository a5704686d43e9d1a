"""
Groceree Backend - User Profile Routes
========================================

Every route here requires a bearer token (router-level dependency). Reads
are open to any authenticated user; writes only to the profile's owner.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from groceree.database import get_db_session
from groceree.schemas.auth import AuthUser
from groceree.schemas.common import ErrorResponse
from groceree.schemas.user import (
    UpdateProfileRequest,
    UserImageResponse,
    UserProfileResponse,
)
from groceree.security import get_current_user
from groceree.services.blob_service import blob_store
from groceree.services.user_service import user_service

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(get_current_user)],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)


@router.get(
    "/{username}",
    response_model=UserProfileResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user's profile",
)
async def get_user(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    user = await user_service.get_profile(db, username)
    return UserProfileResponse(user=user)


@router.put(
    "/{username}",
    response_model=UserProfileResponse,
    responses={
        403: {"description": "Not your profile", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Update your profile",
)
async def update_user(
    username: str,
    payload: UpdateProfileRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    user = await user_service.update_profile(db, username, payload, current_user)
    return UserProfileResponse(user=user)


@router.post(
    "/{username}/image",
    response_model=UserImageResponse,
    responses={
        400: {"description": "Missing, oversized or non-image upload", "model": ErrorResponse},
        403: {"description": "Not your profile", "model": ErrorResponse},
        500: {"description": "Image could not be stored", "model": ErrorResponse},
    },
    summary="Upload a profile image",
    description="Multipart upload in the `image` field. JPG, PNG or GIF, at most 5MB.",
)
async def upload_user_image(
    username: str,
    image: UploadFile = File(..., description="Profile image (JPG, PNG, GIF)"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserImageResponse:
    try:
        # Oversized uploads are refused before the body is read into memory
        blob_store.check_reported_size(image.size)
        content = await image.read()
    finally:
        await image.close()

    user = await user_service.update_image(
        db, username, image.content_type, content, current_user
    )
    return UserImageResponse(success=True, user=user)
