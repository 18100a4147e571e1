"""
Chat API Endpoints
==================

AI companion chat and text sentiment analysis.
"""

import logging
from typing import Optional

from fastapi import APIRouter

from app.dependencies import CurrentUser, DBSession, LLMService
from app.models.mood import MoodEntry
from app.models.user import User
from app.schemas.chat import (
    AnalyzeTextRequest,
    ChatReply,
    ChatRequest,
    SentimentResult,
    SupportResource,
)
from app.schemas.common import BaseResponse, ErrorResponse
from app.services.mood_service import MoodService

logger = logging.getLogger(__name__)

router = APIRouter()

# Sentiment score below which support resources are offered
DISTRESS_THRESHOLD = -0.5

CRISIS_RESOURCES = (
    SupportResource(
        type="crisis",
        title="Crisis Support",
        description="If you're in crisis, please reach out to a crisis hotline.",
        url="https://www.mentalhealth.gov/get-help/immediate-help",
        icon="emergency",
    ),
    SupportResource(
        type="breathing",
        title="Breathing Exercise",
        description="Try this 4-7-8 breathing exercise to help calm your mind.",
        url="https://www.healthline.com/health/4-7-8-breathing",
        icon="breath",
    ),
)

MEDITATION_RESOURCE = SupportResource(
    type="meditation",
    title="Guided Meditation",
    description="A short guided meditation to help ease your mind.",
    url="https://www.headspace.com/meditation/meditation-for-beginners",
    icon="meditation",
)


def build_system_context(user: User, latest_mood: Optional[MoodEntry]) -> str:
    """System prompt naming the user and, if known, their latest mood."""
    lines = [
        "You are MindMate, a compassionate AI mental health companion. "
        f"You are talking to {user.username}.",
    ]
    if latest_mood is not None:
        lines.append(
            f"Their recent mood has been {latest_mood.mood.value} "
            f"with an intensity of {latest_mood.intensity}/10."
        )
    lines.append(
        "Be empathetic, supportive, and non-judgmental. "
        "Help them process their thoughts and feelings."
    )
    return "\n".join(lines)


def support_resources(sentiment: SentimentResult) -> list[SupportResource]:
    """Resources to attach to a reply; empty unless the message is distressed."""
    if sentiment.score >= DISTRESS_THRESHOLD:
        return []

    resources = list(CRISIS_RESOURCES)
    if sentiment.label == "negative":
        resources.append(MEDITATION_RESOURCE)
    return resources


@router.post(
    "",
    response_model=BaseResponse[ChatReply],
    responses={503: {"model": ErrorResponse, "description": "Completion service unavailable"}},
)
async def chat(
    request: ChatRequest,
    current_user: CurrentUser,
    db: DBSession,
    llm: LLMService,
):
    """Reply to the user's message in the context of the conversation so far."""
    latest = await MoodService(db).latest(current_user.user_id)

    reply = await llm.complete(
        system_context=build_system_context(current_user, latest),
        history=request.context,
        message=request.message,
    )
    sentiment = await llm.classify_sentiment(request.message)

    return BaseResponse(
        data=ChatReply(
            response=reply,
            sentiment=sentiment,
            resources=support_resources(sentiment),
        )
    )


@router.post("/analyze", response_model=BaseResponse[SentimentResult])
async def analyze_text(
    request: AnalyzeTextRequest,
    current_user: CurrentUser,
    llm: LLMService,
):
    """Classify the sentiment of a piece of text."""
    sentiment = await llm.classify_sentiment(request.text)
    return BaseResponse(data=sentiment)
