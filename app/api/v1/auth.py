"""
Authentication API Endpoints
============================

Handles user registration, login, logout, token refresh and account
updates.
"""

import logging

from fastapi import APIRouter, status

from app.dependencies import CurrentUser, DBSession
from app.schemas.auth import (
    AuthPayload,
    PasswordUpdate,
    RefreshTokenRequest,
    TokenResponse,
    UserDetailsUpdate,
    UserLogin,
    UserPublic,
    UserRegister,
)
from app.schemas.common import BaseResponse, ErrorResponse
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_payload(user, tokens: dict) -> AuthPayload:
    return AuthPayload(
        user=UserPublic.model_validate(user),
        tokens=TokenResponse(**tokens),
    )


@router.post(
    "/register",
    response_model=BaseResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        409: {"model": ErrorResponse, "description": "Email or username already registered"},
    },
)
async def register(user_data: UserRegister, db: DBSession):
    """Register a new user account and log it in."""
    user, tokens = await AuthService(db).register(user_data)

    return BaseResponse(
        data=_auth_payload(user, tokens),
        message="Account created successfully",
    )


@router.post(
    "/login",
    response_model=BaseResponse[AuthPayload],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(credentials: UserLogin, db: DBSession):
    """Authenticate user and return tokens."""
    user, tokens = await AuthService(db).login(
        email=credentials.email,
        password=credentials.password,
    )

    return BaseResponse(data=_auth_payload(user, tokens))


@router.post(
    "/refresh-token",
    response_model=BaseResponse[TokenResponse],
    responses={
        401: {"model": ErrorResponse, "description": "Session expired"},
    },
)
async def refresh_token(request: RefreshTokenRequest, db: DBSession):
    """Exchange a refresh token for a new token pair."""
    tokens = await AuthService(db).renew(request.refresh_token)

    return BaseResponse(
        data=TokenResponse(**tokens),
        message="Tokens refreshed successfully",
    )


@router.post("/logout", response_model=BaseResponse[dict])
async def logout(current_user: CurrentUser, db: DBSession):
    """Log out everywhere: every token issued so far stops working."""
    await AuthService(db).logout(current_user)

    return BaseResponse(data={}, message="Logged out successfully")


@router.get("/me", response_model=BaseResponse[UserPublic])
async def get_me(current_user: CurrentUser):
    """Get the authenticated user."""
    return BaseResponse(data=UserPublic.model_validate(current_user))


@router.put(
    "/updatedetails",
    response_model=BaseResponse[UserPublic],
    responses={
        409: {"model": ErrorResponse, "description": "Email or username already registered"},
    },
)
async def update_details(
    details: UserDetailsUpdate,
    current_user: CurrentUser,
    db: DBSession,
):
    """Update username, email, avatar or preferences."""
    user = await AuthService(db).update_details(current_user, details)

    return BaseResponse(data=UserPublic.model_validate(user))


@router.put(
    "/updatepassword",
    response_model=BaseResponse[AuthPayload],
    responses={
        401: {"model": ErrorResponse, "description": "Current password is incorrect"},
    },
)
async def update_password(
    passwords: PasswordUpdate,
    current_user: CurrentUser,
    db: DBSession,
):
    """Change the password; previously issued tokens are revoked."""
    tokens = await AuthService(db).update_password(
        current_user,
        current_password=passwords.current_password,
        new_password=passwords.new_password,
    )

    return BaseResponse(
        data=_auth_payload(current_user, tokens),
        message="Password updated successfully",
    )
