"""
Journal Models
==============

SQLAlchemy model for free-text journal entries.
"""

from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import (
    Boolean,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin
from app.models.mood import MoodType

if TYPE_CHECKING:
    from app.models.user import User


class JournalEntry(Base, TimestampMixin):
    """
    Journal entry model.

    ``mood`` is a 1-5 rating; ``sentiment_score`` is in [-1, 1] and is
    derived from ``content`` unless the client supplies it.
    """

    __tablename__ = "journal_entries"

    # Primary Key
    entry_id: Mapped[uuid.UUID] = mapped_column(
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

    # Entry details
    title: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Analysis fields
    emotion: Mapped[MoodType] = mapped_column(
        SQLEnum(MoodType),
        nullable=False,
        default=MoodType.NEUTRAL,
    )
    sentiment_score: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )
    mood: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    tags: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    activities: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    is_private: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    # Context
    location: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    weather: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    sleep_hours: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )
    ai_insights: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="journal_entries",
    )

    # Constraints and Indexes
    __table_args__ = (
        Index("idx_journal_user_created", "user_id", "created_at"),
        Index("idx_journal_emotion", "user_id", "emotion"),
    )

    def __repr__(self) -> str:
        return f"<JournalEntry(user_id={self.user_id}, emotion={self.emotion})>"
