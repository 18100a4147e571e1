"""
User Model
==========

SQLAlchemy model for user accounts.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import DateTime, Enum as SQLEnum, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin

if TYPE_CHECKING:
    from app.models.journal import JournalEntry
    from app.models.mood import MoodEntry


class UserRole(str, Enum):
    """Account roles."""
    USER = "user"
    ADMIN = "admin"
    THERAPIST = "therapist"


class User(Base, TimestampMixin):
    """
    User account model.

    Stores account, role and profile preferences. ``token_version`` is
    embedded in every issued JWT; incrementing it revokes all of them.
    """

    __tablename__ = "users"

    # Primary Key
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Account fields
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        nullable=False,
        default=UserRole.USER,
    )
    token_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # Profile
    avatar_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    preferences: Mapped[Optional[dict]] = mapped_column(
        JSONType,
        nullable=True,
        default=dict,
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    mood_entries: Mapped[list["MoodEntry"]] = relationship(
        "MoodEntry",
        back_populates="user",
        lazy="noload",
        passive_deletes=True,
    )
    journal_entries: Mapped[list["JournalEntry"]] = relationship(
        "JournalEntry",
        back_populates="user",
        lazy="noload",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User(user_id={self.user_id}, username={self.username})>"
