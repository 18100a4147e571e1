"""
Authentication Schemas
======================

Pydantic schemas for authentication and account endpoints.
"""

from datetime import datetime
from typing import Literal, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole
from app.schemas.common import utc_datetime

# Closed set of value types accepted in the free-form notification bucket
PreferenceValue = Union[bool, int, float, str]


class UserRegister(BaseModel):
    """Request schema for user registration."""

    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=100)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v


class UserLogin(BaseModel):
    """Request schema for user login."""

    email: EmailStr
    password: str = Field(min_length=1)


class RefreshTokenRequest(BaseModel):
    """Request schema for token refresh."""

    refresh_token: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Response schema for tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class NotificationPreferences(BaseModel):
    """Notification switches; unknown keys go to ``other``."""

    daily_checkin: bool = True
    mood_reminders: bool = True
    other: dict[str, PreferenceValue] = Field(default_factory=dict)


class UserPreferences(BaseModel):
    """User interface and notification preferences."""

    theme: Literal["light", "dark", "system"] = "system"
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)


class UserDetailsUpdate(BaseModel):
    """Request schema for PUT /auth/updatedetails."""

    username: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    avatar_url: Optional[str] = Field(None, max_length=500)
    preferences: Optional[UserPreferences] = None


class PasswordUpdate(BaseModel):
    """Request schema for PUT /auth/updatepassword."""

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=100)


class UserPublic(BaseModel):
    """User as returned to clients (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    username: str
    email: str
    role: UserRole
    avatar_url: Optional[str] = None
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    last_login: Optional[datetime] = None
    created_at: datetime

    @field_validator("preferences", mode="before")
    @classmethod
    def default_preferences(cls, v):
        return v or {}

    @field_validator("last_login", "created_at")
    @classmethod
    def ensure_utc(cls, v):
        return utc_datetime(v)


class AuthPayload(BaseModel):
    """``data`` of login/register/updatepassword responses."""

    user: UserPublic
    tokens: TokenResponse
