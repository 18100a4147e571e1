"""
Database Models
===============

SQLAlchemy ORM models for all database entities.

All models are imported here to ensure they are registered
with SQLAlchemy's metadata for migrations and relationships.
"""

from app.models.user import User, UserRole
from app.models.mood import Activity, MoodEntry, MoodType
from app.models.journal import JournalEntry

__all__ = [
    # User
    "User",
    "UserRole",
    # Mood
    "MoodEntry",
    "MoodType",
    "Activity",
    # Journal
    "JournalEntry",
]
