"""
Authentication Service
======================

Business logic for user authentication, registration, and token management.

Token validity is tracked per user through ``User.token_version``: every
token carries the version it was issued under as its ``ver`` claim, and
logout or a password change bumps the version so all earlier tokens stop
being accepted.
"""

import logging
from typing import Any, Optional
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    ConflictError,
    ErrorCodes,
    InvalidCredentialsError,
    SessionExpiredError,
    ValidationError,
)
from app.core.security import (
    REFRESH_TOKEN_TYPE,
    create_tokens_for_user,
    decode_token,
    hash_password,
    parse_subject,
    verify_password,
)
from app.models.user import User, UserRole
from app.schemas.auth import UserDetailsUpdate, UserRegister
from app.utils.helpers import utc_now

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_password(password: str, field: str = "password") -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field=field,
        )


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def issue_tokens(self, user: User) -> dict[str, Any]:
        """Access/refresh pair bound to the user's current token version."""
        return create_tokens_for_user(
            user_id=user.user_id,
            email=user.email,
            role=user.role.value,
            token_version=user.token_version,
        )

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive)."""
        stmt = select(User).where(func.lower(User.email) == _normalize_email(email))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        stmt = select(User).where(User.username == username)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID."""
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _ensure_unique(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None,
        exclude: Optional[uuid.UUID] = None,
    ) -> None:
        if email is not None:
            existing = await self.get_user_by_email(email)
            if existing is not None and existing.user_id != exclude:
                raise ConflictError(
                    code=ErrorCodes.AUTH_EMAIL_EXISTS,
                    message="Email already registered",
                    field="email",
                )

        if username is not None:
            existing = await self.get_user_by_username(username)
            if existing is not None and existing.user_id != exclude:
                raise ConflictError(
                    code=ErrorCodes.AUTH_USERNAME_EXISTS,
                    message="Username already taken",
                    field="username",
                )

    async def register(self, user_data: UserRegister) -> tuple[User, dict[str, Any]]:
        """
        Create a new user and issue its first token pair.

        Raises:
            ConflictError: email or username already in use
            ValidationError: password too short
        """
        _check_password(user_data.password)
        await self._ensure_unique(email=user_data.email, username=user_data.username)

        user = User(
            username=user_data.username,
            email=_normalize_email(user_data.email),
            password_hash=hash_password(user_data.password),
            role=UserRole.USER,
            token_version=0,
            preferences={},
            last_login=utc_now(),
        )
        self.db.add(user)
        await self.db.flush()

        logger.info("Registered user %s", user.user_id)
        return user, self.issue_tokens(user)

    async def login(self, email: str, password: str) -> tuple[User, dict[str, Any]]:
        """
        Authenticate by email and password.

        Unknown email and wrong password fail the same way.

        Raises:
            InvalidCredentialsError: on any mismatch
        """
        user = await self.get_user_by_email(email)

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        user.last_login = utc_now()
        await self.db.flush()

        return user, self.issue_tokens(user)

    async def renew(self, refresh_token: str) -> dict[str, Any]:
        """
        Exchange a refresh token for a new token pair.

        Raises:
            SessionExpiredError: token invalid, expired, not a refresh token,
                or issued before the user's last logout/password change
        """
        payload = decode_token(refresh_token)
        if payload is None:
            raise SessionExpiredError()

        user_id = parse_subject(payload, REFRESH_TOKEN_TYPE)
        if user_id is None:
            raise SessionExpiredError()

        user = await self.get_user_by_id(user_id)
        if user is None or payload.get("ver") != user.token_version:
            raise SessionExpiredError()

        return self.issue_tokens(user)

    async def update_details(self, user: User, details: UserDetailsUpdate) -> User:
        """
        Update username, email, avatar and preferences.

        Raises:
            ConflictError: new email or username belongs to another user
        """
        changes = details.model_dump(exclude_unset=True, exclude_none=True)

        await self._ensure_unique(
            email=changes.get("email"),
            username=changes.get("username"),
            exclude=user.user_id,
        )

        if "username" in changes:
            user.username = changes["username"]
        if "email" in changes:
            user.email = _normalize_email(changes["email"])
        if "avatar_url" in changes:
            user.avatar_url = changes["avatar_url"]
        if details.preferences is not None:
            user.preferences = details.preferences.model_dump()

        user.updated_at = utc_now()
        await self.db.flush()
        return user

    async def update_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
    ) -> dict[str, Any]:
        """
        Change the password and re-issue tokens.

        Every token issued before the change is invalidated.

        Raises:
            InvalidCredentialsError: ``current_password`` is wrong
            ValidationError: ``new_password`` too short
        """
        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError(message="Password is incorrect")
        _check_password(new_password, field="new_password")

        user.password_hash = hash_password(new_password)
        user.token_version += 1
        user.updated_at = utc_now()
        await self.db.flush()

        logger.info("Password changed for user %s", user.user_id)
        return self.issue_tokens(user)

    async def logout(self, user: User) -> None:
        """Invalidate every outstanding token of ``user``."""
        user.token_version += 1
        await self.db.flush()
