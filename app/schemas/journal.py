"""
Journal Schemas
===============

Pydantic schemas for journal entry endpoints.
"""

from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.mood import Activity, MoodType
from app.schemas.common import utc_datetime


def _strip_content(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Journal content is required")
    return v


class JournalEntryCreate(BaseModel):
    """Request schema for creating a journal entry. Owner fields are ignored."""

    title: Optional[str] = Field(None, max_length=100)
    content: str
    emotion: MoodType = MoodType.NEUTRAL
    sentiment_score: Optional[float] = Field(None, ge=-1, le=1)
    mood: int = Field(ge=1, le=5, description="Mood rating (1-5)")
    tags: list[str] = Field(default_factory=list)
    is_private: bool = True
    activities: list[Activity] = Field(default_factory=list)
    location: Optional[str] = Field(None, max_length=255)
    weather: Optional[str] = Field(None, max_length=100)
    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    ai_insights: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _strip_content(v)


class JournalEntryUpdate(BaseModel):
    """Request schema for updating a journal entry (partial)."""

    title: Optional[str] = Field(None, max_length=100)
    content: Optional[str] = None
    emotion: Optional[MoodType] = None
    sentiment_score: Optional[float] = Field(None, ge=-1, le=1)
    mood: Optional[int] = Field(None, ge=1, le=5)
    tags: Optional[list[str]] = None
    is_private: Optional[bool] = None
    activities: Optional[list[Activity]] = None
    location: Optional[str] = Field(None, max_length=255)
    weather: Optional[str] = Field(None, max_length=100)
    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    ai_insights: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Optional[str]) -> Optional[str]:
        return _strip_content(v)


class JournalEntryResponse(BaseModel):
    """Response schema for a journal entry."""

    model_config = ConfigDict(from_attributes=True)

    entry_id: uuid.UUID
    user_id: uuid.UUID
    title: Optional[str] = None
    content: str
    emotion: MoodType
    sentiment_score: Optional[float] = None
    mood: int
    tags: list[str] = Field(default_factory=list)
    is_private: bool = True
    activities: list[str] = Field(default_factory=list)
    location: Optional[str] = None
    weather: Optional[str] = None
    sleep_hours: Optional[float] = None
    ai_insights: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v):
        return utc_datetime(v)
