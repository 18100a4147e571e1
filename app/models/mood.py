"""
Mood Models
===========

SQLAlchemy model for mood check-ins plus the enumerations shared with
journal entries.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import (
    Boolean,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin

if TYPE_CHECKING:
    from app.models.user import User


class MoodType(str, Enum):
    """Mood labels used by mood entries and journal emotions."""
    HAPPY = "happy"
    SAD = "sad"
    ANXIOUS = "anxious"
    ANGRY = "angry"
    CALM = "calm"
    EXCITED = "excited"
    GRATEFUL = "grateful"
    TIRED = "tired"
    NEUTRAL = "neutral"


class Activity(str, Enum):
    """Activities that can be attached to mood and journal entries."""
    WORK = "work"
    EXERCISE = "exercise"
    SOCIAL = "social"
    FAMILY = "family"
    HOBBY = "hobby"
    REST = "rest"
    MEDITATION = "meditation"
    OTHER = "other"


class MoodEntry(Base, TimestampMixin):
    """
    Mood check-in.

    ``intensity`` is on a 1-10 scale. ``activities`` and ``tags`` are
    stored as JSON arrays of strings.
    """

    __tablename__ = "mood_entries"

    # Primary Key
    mood_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Foreign Key
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )

    # Check-in
    mood: Mapped[MoodType] = mapped_column(
        SQLEnum(MoodType),
        nullable=False,
    )
    intensity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    note: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    activities: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    tags: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    # Context
    sleep_quality: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    weather: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    location: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    is_shared: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    ai_insights: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="mood_entries",
    )

    __table_args__ = (
        Index("idx_mood_user_created", "user_id", "created_at"),
        Index("idx_mood_user_mood", "user_id", "mood"),
    )

    def __repr__(self) -> str:
        return f"<MoodEntry(user_id={self.user_id}, mood={self.mood}, intensity={self.intensity})>"
