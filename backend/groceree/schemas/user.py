"""
Groceree Backend - User Profile Schemas
"""

import uuid

from pydantic import Field

from groceree.schemas.common import CamelModel


class UserProfile(CamelModel):
    """Public profile fields. The password hash is never part of it."""
    id: uuid.UUID
    first_name: str
    last_name: str
    username: str
    image_url: str
    bio: str


class UserProfileResponse(CamelModel):
    user: UserProfile


class UserImageResponse(CamelModel):
    success: bool = True
    user: UserProfile


class UpdateProfileRequest(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    bio: str = Field(default="", max_length=2000)
