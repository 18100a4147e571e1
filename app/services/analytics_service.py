"""
Analytics Service
=================

Per-user mood and journal statistics backed by the database, with
best-effort Redis caching of the computed payloads.

The mood distribution is a SQL ``GROUP BY``; the other breakdowns load
the owner's entries once (oldest first) and reuse the pure functions of
:mod:`app.services.analytics`.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.journal import JournalEntry
from app.models.mood import MoodEntry
from app.schemas.mood import MoodEntryResponse
from app.services import analytics
from app.services.analytics import AggregateStat, InsightThresholds
from app.services.cache import CacheKeys, CacheManager
from app.services.journal_service import JournalService
from app.services.mood_service import MoodService
from app.utils.helpers import utc_now

logger = logging.getLogger(__name__)


def _stats(stats: list[AggregateStat], average_label: Optional[str] = "avg_intensity") -> list[dict]:
    return [s.to_dict(average_label) for s in stats]


class AnalyticsService:
    """Builds the stats and insights payloads for one user."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
        use_cache: bool = True,
    ):
        self.db = db
        self.clock = clock
        self.use_cache = use_cache

    async def _cached(self, key: str, ttl: int, build) -> dict[str, Any]:
        if self.use_cache:
            cached = await CacheManager.get(key)
            if cached is not None:
                logger.debug("Cache hit %s", key)
                return cached

        data = await build()

        if self.use_cache:
            await CacheManager.set(key, data, ttl=ttl)
        return data

    # ------------------------------------------------------------------
    # Mood
    # ------------------------------------------------------------------

    async def mood_distribution(self, user_id: uuid.UUID) -> list[AggregateStat]:
        """
        Count and average intensity per mood.

        Ordered by count descending, then by the mood's earliest entry,
        then by mood.
        """
        first_seen = func.min(MoodEntry.created_at)
        count = func.count()
        stmt = (
            select(
                MoodEntry.mood,
                count.label("count"),
                func.avg(MoodEntry.intensity).label("avg_intensity"),
            )
            .where(MoodEntry.user_id == user_id)
            .group_by(MoodEntry.mood)
            .order_by(count.desc(), first_seen.asc(), MoodEntry.mood.asc())
        )
        rows = (await self.db.execute(stmt)).all()

        return [
            AggregateStat(
                key=row.mood.value,
                count=row.count,
                average=round(float(row.avg_intensity), 2),
            )
            for row in rows
        ]

    async def mood_stats(self, user_id: uuid.UUID) -> dict[str, Any]:
        """Distribution, 30-day timeline, weekday, hour and activity breakdowns."""

        async def build() -> dict[str, Any]:
            entries = await MoodService(self.db).entries_since(user_id)
            now = self.clock()
            return {
                "mood_distribution": _stats(await self.mood_distribution(user_id)),
                "mood_timeline": _stats(
                    analytics.timeline(entries, now=now, days=settings.STATS_TIMELINE_DAYS)
                ),
                "mood_by_day": _stats(analytics.by_weekday(entries)),
                "mood_by_hour": _stats(analytics.by_hour(entries)),
                "activities_correlation": _stats(analytics.correlation(entries, "activities")),
            }

        return await self._cached(
            CacheKeys.mood_stats(str(user_id)),
            CacheManager.TTL_MEDIUM,
            build,
        )

    async def mood_insights(self, user_id: uuid.UUID) -> dict[str, Any]:
        """Insights and suggestions over the trailing insight window."""

        async def build() -> dict[str, Any]:
            thresholds = InsightThresholds.from_settings()
            now = self.clock()
            since = now - timedelta(days=thresholds.window_days)
            entries = await MoodService(self.db).entries_since(user_id, since=since)

            data = analytics.build_insights(entries, now=now, thresholds=thresholds)
            if "recent_mood" in data:
                data["recent_mood"] = MoodEntryResponse.model_validate(
                    data["recent_mood"]
                ).model_dump(mode="json")
            return data

        return await self._cached(
            CacheKeys.mood_insights(str(user_id)),
            CacheManager.TTL_SHORT,
            build,
        )

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    async def journal_stats(self, user_id: uuid.UUID) -> dict[str, Any]:
        """Emotion distribution, 30-day timeline with average mood, top tags."""

        async def build() -> dict[str, Any]:
            entries = await JournalService(self.db).entries_since(user_id)
            now = self.clock()

            def mood(entry: JournalEntry) -> int:
                return entry.mood

            return {
                "emotion_distribution": _stats(
                    analytics.distribution(entries, key=lambda e: e.emotion, value=None),
                    average_label=None,
                ),
                "journal_timeline": _stats(
                    analytics.timeline(
                        entries,
                        now=now,
                        days=settings.STATS_TIMELINE_DAYS,
                        value=mood,
                        collect=None,
                    ),
                    average_label="avg_mood",
                ),
                "tag_stats": _stats(
                    analytics.correlation(entries, "tags", value=None, collect=None, limit=10),
                    average_label=None,
                ),
            }

        return await self._cached(
            CacheKeys.journal_stats(str(user_id)),
            CacheManager.TTL_MEDIUM,
            build,
        )
