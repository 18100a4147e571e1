"""
Mood Service
============

Mood entry persistence and default filling.
"""

from datetime import datetime
from typing import Any, Optional
import uuid

from sqlalchemy import select

from app.core.errors import ErrorCodes
from app.models.mood import Activity, MoodEntry, MoodType
from app.services.entry_repository import EntryRepository
from app.utils.helpers import time_of_day, weekday_name


def fill_mood_defaults(values: dict[str, Any], created_at: datetime) -> dict[str, Any]:
    """
    Fill the generated fields of a new mood entry.

    A missing note becomes "Feeling {mood} with intensity {n}/10" and
    missing or empty tags become ``[weekday, time_of_day]`` of
    ``created_at`` in UTC. Supplied values are kept as-is.
    """
    values = dict(values)

    if not values.get("note"):
        mood = MoodType(values["mood"]).value
        values["note"] = f"Feeling {mood} with intensity {values['intensity']}/10"

    if not values.get("tags"):
        values["tags"] = [weekday_name(created_at), time_of_day(created_at)]

    return values


class MoodService(EntryRepository[MoodEntry]):
    """Repository for mood entries."""

    model = MoodEntry
    id_field = "mood_id"
    label = "Mood entry"
    not_found_code = ErrorCodes.MOOD_NOT_FOUND

    filter_fields = ("mood", "is_shared")

    required_fields = ("mood", "intensity")
    ranges = {"intensity": (1, 10), "sleep_quality": (1, 5)}
    enums = {"mood": MoodType}
    list_enums = {"activities": Activity}
    max_lengths = {"note": 500}
    not_null_fields = ("is_shared", "tags", "activities")

    def prepare_create(self, values: dict[str, Any], created_at: datetime) -> dict[str, Any]:
        return fill_mood_defaults(values, created_at)

    async def latest(self, owner_id: uuid.UUID) -> Optional[MoodEntry]:
        """Most recent mood entry of ``owner_id``, if any."""
        stmt = (
            select(MoodEntry)
            .where(MoodEntry.user_id == owner_id)
            .order_by(MoodEntry.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
