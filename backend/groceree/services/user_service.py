"""
Groceree Backend - User Profile Service
=========================================

What:  Fetch and update profiles, replace profile images.
Who:   Called by the /api/users routes.

Ownership:
    Any authenticated user may read any profile. Only the token's own
    username may update a profile or its image (403 otherwise).

Image replacement flow:
    validate → put new blob → point users.image_url at it → delete the old
    blob best-effort. If the database update fails, the new blob is removed
    so no orphan is left behind.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from groceree.exceptions import DatabaseError, GrocereeError, NotFoundError, PermissionDeniedError
from groceree.models.user import User
from groceree.schemas.auth import AuthUser
from groceree.schemas.user import UpdateProfileRequest, UserProfile
from groceree.services.auth_service import get_user_by_username, normalize_username
from groceree.services.blob_service import blob_store

logger = logging.getLogger(__name__)


def _ensure_own_profile(username: str, current_user: AuthUser, message: str) -> None:
    if normalize_username(username) != normalize_username(current_user.username):
        raise PermissionDeniedError(message=message)


class UserService:

    async def _load(self, db: AsyncSession, username: str) -> User:
        user = await get_user_by_username(db, username)
        if user is None:
            raise NotFoundError(message="User not found", resource="user", resource_id=username)
        return user

    async def get_profile(self, db: AsyncSession, username: str) -> UserProfile:
        try:
            return UserProfile.model_validate(await self._load(db, username))
        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to fetch user details", cause=e)

    async def update_profile(
        self,
        db: AsyncSession,
        username: str,
        payload: UpdateProfileRequest,
        current_user: AuthUser,
    ) -> UserProfile:
        """
        Overwrite first name, last name and bio.

        Raises:
            PermissionDeniedError: not the caller's own profile (403)
            NotFoundError:         the user no longer exists (404)
        """
        _ensure_own_profile(username, current_user, "You can only update your own profile")
        try:
            user = await self._load(db, username)
            user.first_name = payload.first_name
            user.last_name = payload.last_name
            user.bio = payload.bio
            await db.flush()
            logger.info("Profile updated: %s", user.username)
            return UserProfile.model_validate(user)
        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to update user profile", cause=e)

    async def update_image(
        self,
        db: AsyncSession,
        username: str,
        content_type: str | None,
        content: bytes,
        current_user: AuthUser,
    ) -> UserProfile:
        """
        Store a new profile image and return the updated profile.

        The new image_url is committed before the previous blob is deleted.

        Raises:
            PermissionDeniedError: not the caller's own profile (403)
            ValidationError:       bad image type, empty, or too large (400)
            NotFoundError:         the user no longer exists (404)
            BlobStorageError:      the image could not be written (500)
        """
        _ensure_own_profile(username, current_user, "You can only update your own profile image")
        extension = blob_store.validate_image(content_type, content)

        try:
            user = await self._load(db, username)
        except GrocereeError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseError(message="Failed to update profile image", cause=e)

        key = blob_store.make_key("users", user.username, extension)
        await blob_store.put(key, content)

        previous_url = user.image_url
        try:
            user.image_url = blob_store.url_for(key)
            # Committed before the previous blob is deleted
            await db.commit()
        except SQLAlchemyError as e:
            await blob_store.delete(key)
            raise DatabaseError(message="Failed to update profile image", cause=e)

        if previous_url and previous_url != user.image_url:
            await blob_store.delete_url(previous_url)

        logger.info("Profile image updated: %s -> %s", user.username, key)
        return UserProfile.model_validate(user)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
