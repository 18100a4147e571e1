"""
Keyword Sentiment
=================

Deterministic sentiment heuristic used when the LLM classifier is not
available, and to pre-fill journal ``sentiment_score``.

Each positive word found in the text adds ``step`` to the score and each
negative word subtracts it; the total is clamped to [-1, 1]. Words are
matched as substrings of the lower-cased text and each counts once.
"""

from dataclasses import dataclass

from app.config import settings

POSITIVE_WORDS = ("happy", "joy", "excited", "good", "great", "amazing", "wonderful")
NEGATIVE_WORDS = ("sad", "angry", "anxious", "bad", "terrible", "awful", "worst")

# |score| at or below this is reported as neutral
NEUTRAL_BAND = 0.1


@dataclass(frozen=True)
class KeywordSentiment:
    label: str
    score: float


def keyword_score(text: str, step: float | None = None) -> float:
    """Score ``text`` in [-1, 1] from the fixed word lists."""
    if step is None:
        step = settings.SENTIMENT_FALLBACK_STEP

    lowered = text.lower()
    hits = sum(1 for word in POSITIVE_WORDS if word in lowered)
    hits -= sum(1 for word in NEGATIVE_WORDS if word in lowered)

    # round() keeps 3 * 0.2 from printing as 0.6000000000000001
    return round(max(-1.0, min(1.0, hits * step)), 4)


def label_for_score(score: float) -> str:
    if score > NEUTRAL_BAND:
        return "positive"
    if score < -NEUTRAL_BAND:
        return "negative"
    return "neutral"


def keyword_sentiment(text: str, step: float | None = None) -> KeywordSentiment:
    """Classify ``text`` with the keyword heuristic."""
    score = keyword_score(text, step)
    return KeywordSentiment(label=label_for_score(score), score=score)
