"""
Journal Service
===============

Journal entry persistence and sentiment pre-fill.
"""

from datetime import datetime
from typing import Any, Optional

from app.core.errors import ErrorCodes
from app.models.journal import JournalEntry
from app.models.mood import Activity, MoodType
from app.services.entry_repository import EntryRepository
from app.services.sentiment import keyword_score


def fill_journal_sentiment(
    values: dict[str, Any],
    previous_content: Optional[str] = None,
) -> dict[str, Any]:
    """
    Derive ``sentiment_score`` from ``content`` when not supplied.

    On updates (``previous_content`` given) the score is only recomputed
    when the content actually changed, so each content version is scored
    once.
    """
    values = dict(values)

    if values.get("sentiment_score") is not None:
        return values

    content = values.get("content")
    if content is None:
        return values

    if previous_content is not None and content == previous_content:
        values.pop("sentiment_score", None)
        return values

    values["sentiment_score"] = keyword_score(content)
    return values


class JournalService(EntryRepository[JournalEntry]):
    """Repository for journal entries."""

    model = JournalEntry
    id_field = "entry_id"
    label = "Journal entry"
    not_found_code = ErrorCodes.JOURNAL_NOT_FOUND

    filter_fields = ("emotion", "mood", "is_private")

    required_fields = ("content", "mood")
    ranges = {
        "mood": (1, 5),
        "sentiment_score": (-1, 1),
        "sleep_hours": (0, 24),
    }
    enums = {"emotion": MoodType}
    list_enums = {"activities": Activity}
    max_lengths = {"title": 100}
    not_null_fields = ("emotion", "is_private", "tags", "activities")

    def prepare_create(self, values: dict[str, Any], created_at: datetime) -> dict[str, Any]:
        values = fill_journal_sentiment(values)
        if values.get("emotion") is None:
            values["emotion"] = MoodType.NEUTRAL
        return values

    def prepare_update(self, entry: JournalEntry, changes: dict[str, Any]) -> dict[str, Any]:
        # An explicit null score means "derive it again" from the new or current content
        if "sentiment_score" in changes and changes["sentiment_score"] is None:
            content = changes.get("content", entry.content)
            return {**changes, "sentiment_score": keyword_score(content)}

        if "content" not in changes:
            return changes
        return fill_journal_sentiment(changes, previous_content=entry.content)
