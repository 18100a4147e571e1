"""
Entry Analytics
===============

Pure aggregation over mood and journal entries.

Every function takes already-loaded entries (anything exposing the used
attributes) and returns plain data, so the same code backs the API and
the unit tests. Timestamps are normalized to UTC before bucketing.

Grouping functions return :class:`AggregateStat` lists. Unless stated
otherwise groups are ordered by count descending with ties kept in order
of first appearance, so callers should pass entries oldest first.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from app.config import settings
from app.utils.helpers import WEEKDAYS, as_utc

KeyFn = Callable[[Any], Any]
ValueFn = Callable[[Any], Optional[float]]

NO_RECENT_ENTRIES = "No mood entries found in the last 7 days"
STARTER_SUGGESTION = (
    "Start by adding your first mood entry to track your emotional well-being."
)

ACTIVITY_SUGGESTIONS = {
    "exercise": (
        "Keep up with your exercise routine! Regular physical activity "
        "is great for mental health."
    ),
    "meditation": (
        "Your meditation practice is helping build mindfulness. "
        "Consider trying different techniques."
    ),
}

MOOD_SUGGESTIONS = {
    "anxious": (
        "Try deep breathing exercises to help manage anxiety.",
        "Consider journaling about what's causing your anxiety to better "
        "understand and process your feelings.",
    ),
    "sad": (
        "Reach out to a friend or loved one for support.",
        "Engage in activities you usually enjoy, even if you don't feel "
        "like it right now.",
    ),
    "happy": (
        "Share your positive energy with others!",
        "Take a moment to reflect on what's contributing to your happiness.",
    ),
}

HIGH_INTENSITY_SUGGESTION = (
    "Your high intensity moods suggest you might benefit from "
    "stress-reduction techniques."
)
LOW_INTENSITY_SUGGESTION = "Consider activities that energize you to help lift your mood."


def _label(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _mood(entry: Any) -> str:
    return _label(entry.mood)


def _intensity(entry: Any) -> float:
    return entry.intensity


@dataclass
class AggregateStat:
    """One group of an aggregation: its key, size, and average value."""

    key: Any
    count: int = 0
    average: Optional[float] = None
    moods: Optional[list[str]] = None

    def to_dict(self, average_label: Optional[str] = "avg_intensity") -> dict[str, Any]:
        data: dict[str, Any] = {"key": self.key, "count": self.count}
        if average_label is not None:
            data[average_label] = self.average
        if self.moods is not None:
            data["moods"] = self.moods
        return data


class _Group:
    __slots__ = ("key", "count", "total", "valued", "moods")

    def __init__(self, key: Any):
        self.key = key
        self.count = 0
        self.total = 0.0
        self.valued = 0
        self.moods: list[str] = []

    def add(self, entry: Any, value: Optional[ValueFn], collect: Optional[KeyFn]) -> None:
        self.count += 1
        if value is not None:
            v = value(entry)
            if v is not None:
                self.total += v
                self.valued += 1
        if collect is not None:
            self.moods.append(_label(collect(entry)))

    def stat(self, value: Optional[ValueFn], collect: Optional[KeyFn]) -> AggregateStat:
        average = None
        if value is not None and self.valued:
            average = round(self.total / self.valued, 2)
        return AggregateStat(
            key=self.key,
            count=self.count,
            average=average,
            moods=self.moods if collect is not None else None,
        )


def _group(
    entries: Iterable[Any],
    keys: Callable[[Any], Iterable[Any]],
    value: Optional[ValueFn],
    collect: Optional[KeyFn],
) -> list[AggregateStat]:
    groups: dict[Any, _Group] = {}
    for entry in entries:
        for key in keys(entry):
            key = _label(key)
            group = groups.get(key)
            if group is None:
                group = groups[key] = _Group(key)
            group.add(entry, value, collect)
    return [g.stat(value, collect) for g in groups.values()]


def _by_count(stats: list[AggregateStat]) -> list[AggregateStat]:
    # sorted() is stable, so equal counts keep first-appearance order
    return sorted(stats, key=lambda s: -s.count)


def distribution(
    entries: Iterable[Any],
    key: KeyFn = _mood,
    value: Optional[ValueFn] = _intensity,
    collect: Optional[KeyFn] = None,
) -> list[AggregateStat]:
    """Count (and average ``value``) per ``key``, most frequent first."""
    return _by_count(_group(entries, lambda e: (key(e),), value, collect))


def timeline(
    entries: Iterable[Any],
    now: datetime,
    days: Optional[int] = None,
    value: Optional[ValueFn] = _intensity,
    collect: Optional[KeyFn] = _mood,
    dense: bool = False,
) -> list[AggregateStat]:
    """
    Group by UTC calendar day (``YYYY-MM-DD``) over the trailing window.

    Days run oldest to newest. With ``dense`` every day of the window is
    present, empty days having a zero count.
    """
    if days is None:
        days = settings.STATS_TIMELINE_DAYS

    now = as_utc(now)
    start = now - timedelta(days=days)
    window = [e for e in entries if start <= as_utc(e.created_at) <= now]

    stats = _group(
        window,
        lambda e: (as_utc(e.created_at).date().isoformat(),),
        value,
        collect,
    )

    if dense:
        present = {s.key for s in stats}
        day = start.date()
        while day <= now.date():
            if day.isoformat() not in present:
                stats.append(
                    AggregateStat(
                        key=day.isoformat(),
                        moods=[] if collect is not None else None,
                    )
                )
            day += timedelta(days=1)

    return sorted(stats, key=lambda s: s.key)


def by_weekday(
    entries: Iterable[Any],
    value: Optional[ValueFn] = _intensity,
    collect: Optional[KeyFn] = _mood,
) -> list[AggregateStat]:
    """Group by UTC weekday, Monday through Sunday."""
    stats = _group(
        entries,
        lambda e: (as_utc(e.created_at).weekday(),),
        value,
        collect,
    )
    stats.sort(key=lambda s: s.key)
    for stat in stats:
        stat.key = WEEKDAYS[stat.key]
    return stats


def by_hour(
    entries: Iterable[Any],
    value: Optional[ValueFn] = _intensity,
    collect: Optional[KeyFn] = _mood,
) -> list[AggregateStat]:
    """Group by UTC hour of day, 0 through 23."""
    stats = _group(entries, lambda e: (as_utc(e.created_at).hour,), value, collect)
    return sorted(stats, key=lambda s: s.key)


def correlation(
    entries: Iterable[Any],
    field_name: str = "activities",
    value: Optional[ValueFn] = _intensity,
    collect: Optional[KeyFn] = _mood,
    limit: Optional[int] = None,
) -> list[AggregateStat]:
    """
    Explode the list attribute ``field_name`` and group by its items.

    An entry with the same item twice counts twice for it.
    """
    stats = _by_count(
        _group(entries, lambda e: getattr(e, field_name) or (), value, collect)
    )
    return stats[:limit] if limit is not None else stats


# =============================================================================
# Insights
# =============================================================================

@dataclass(frozen=True)
class InsightThresholds:
    window_days: int = 7
    mood_change: float = 2
    high_intensity: float = 7
    low_intensity: float = 4
    suggestion_limit: int = 3

    @classmethod
    def from_settings(cls) -> "InsightThresholds":
        return cls(
            window_days=settings.INSIGHT_WINDOW_DAYS,
            mood_change=settings.INSIGHT_MOOD_CHANGE_THRESHOLD,
            high_intensity=settings.INSIGHT_HIGH_INTENSITY,
            low_intensity=settings.INSIGHT_LOW_INTENSITY,
            suggestion_limit=settings.INSIGHT_SUGGESTION_LIMIT,
        )


def _most_common(items: Sequence[Any]) -> Any:
    counts: dict[Any, int] = {}
    for item in items:
        counts[item] = counts.get(item, 0) + 1
    return max(counts, key=lambda k: counts[k])


def _unique(items: Iterable[str], limit: int) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen[:limit]


def build_insights(
    entries: Iterable[Any],
    now: datetime,
    thresholds: Optional[InsightThresholds] = None,
) -> dict[str, Any]:
    """
    Summarize the mood entries of the trailing window.

    Returns ``recent_mood`` (the newest entry object, for the caller to
    serialize), ``mood_trend`` newest first, ``stats``, ``insights`` and
    at most ``suggestion_limit`` distinct ``suggestions``.
    """
    if thresholds is None:
        thresholds = InsightThresholds.from_settings()

    now = as_utc(now)
    since = now - timedelta(days=thresholds.window_days)
    recent = sorted(
        (e for e in entries if since <= as_utc(e.created_at) <= now),
        key=lambda e: as_utc(e.created_at),
        reverse=True,
    )

    if not recent:
        return {
            "message": NO_RECENT_ENTRIES,
            "insights": [],
            "suggestions": [STARTER_SUGGESTION],
        }

    average = sum(e.intensity for e in recent) / len(recent)

    mood_counts: dict[str, int] = {}
    for entry in recent:
        mood = _mood(entry)
        mood_counts[mood] = mood_counts.get(mood, 0) + 1
    most_common_mood = _most_common([_mood(e) for e in recent])

    insights: list[str] = []
    suggestions: list[str] = []

    change = recent[0].intensity - recent[-1].intensity
    if abs(change) > thresholds.mood_change:
        direction = "improved" if change > 0 else "declined"
        insights.append(f"Your mood has {direction} significantly over the past week.")

    activities = [_label(a) for e in recent for a in (e.activities or ())]
    if activities:
        top_activity = _most_common(activities)
        insights.append(f"You've been engaging in {top_activity} frequently.")
        if top_activity in ACTIVITY_SUGGESTIONS:
            suggestions.append(ACTIVITY_SUGGESTIONS[top_activity])

    suggestions.extend(MOOD_SUGGESTIONS.get(most_common_mood, ()))

    if average > thresholds.high_intensity:
        suggestions.append(HIGH_INTENSITY_SUGGESTION)
    elif average < thresholds.low_intensity:
        suggestions.append(LOW_INTENSITY_SUGGESTION)

    return {
        "recent_mood": recent[0],
        "mood_trend": [
            {
                "date": as_utc(e.created_at).isoformat(),
                "mood": _mood(e),
                "intensity": e.intensity,
            }
            for e in recent
        ],
        "stats": {
            "average_intensity": round(average, 2),
            "most_common_mood": most_common_mood,
            "mood_counts": mood_counts,
            "total_entries": len(recent),
        },
        "insights": insights,
        "suggestions": _unique(suggestions, thresholds.suggestion_limit),
    }
