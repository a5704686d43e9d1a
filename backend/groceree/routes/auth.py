"""
Groceree Backend - Auth Routes
================================

Public endpoints (no bearer token required) for account creation, login
and username availability.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from groceree.database import get_db_session
from groceree.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UsernameAvailability,
)
from groceree.schemas.common import ErrorResponse
from groceree.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    responses={
        400: {"description": "Invalid body or username taken", "model": ErrorResponse},
        409: {"description": "Concurrent registration of the same username", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create an account",
    description=(
        "Registers a user with a unique, case-insensitive username and returns "
        "a bearer token for the new account."
    ),
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token = await auth_service.register(db, payload)
    return TokenResponse(token=token)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token = await auth_service.login(db, payload)
    return TokenResponse(token=token)


@router.get(
    "/check-username/{username}",
    response_model=UsernameAvailability,
    summary="Check whether a username is free",
)
async def check_username(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> UsernameAvailability:
    return await auth_service.check_username(db, username)
