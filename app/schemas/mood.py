"""
Mood Schemas
============

Pydantic schemas for mood entry endpoints.
"""

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.mood import Activity, MoodType
from app.schemas.common import utc_datetime


class MoodEntryCreate(BaseModel):
    """Request schema for creating a mood entry. Owner fields are ignored."""

    mood: MoodType
    intensity: int = Field(ge=1, le=10)
    note: Optional[str] = Field(None, max_length=500)
    activities: list[Activity] = Field(default_factory=list)
    sleep_quality: Optional[int] = Field(None, ge=1, le=5)
    weather: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    tags: list[str] = Field(default_factory=list)
    is_shared: bool = False
    ai_insights: Optional[str] = None


class MoodEntryUpdate(BaseModel):
    """Request schema for updating a mood entry (partial)."""

    mood: Optional[MoodType] = None
    intensity: Optional[int] = Field(None, ge=1, le=10)
    note: Optional[str] = Field(None, max_length=500)
    activities: Optional[list[Activity]] = None
    sleep_quality: Optional[int] = Field(None, ge=1, le=5)
    weather: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    tags: Optional[list[str]] = None
    is_shared: Optional[bool] = None
    ai_insights: Optional[str] = None


class MoodEntryResponse(BaseModel):
    """Response schema for a mood entry."""

    model_config = ConfigDict(from_attributes=True)

    mood_id: uuid.UUID
    user_id: uuid.UUID
    mood: MoodType
    intensity: int
    note: Optional[str] = None
    activities: list[str] = Field(default_factory=list)
    sleep_quality: Optional[int] = None
    weather: Optional[str] = None
    location: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_shared: bool = False
    ai_insights: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v):
        return utc_datetime(v)
