"""
Chat Schemas
============

Pydantic schemas for the AI companion chat endpoints.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

SentimentLabel = Literal["positive", "neutral", "negative"]


class ChatMessage(BaseModel):
    """One prior turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str = Field(min_length=1)


class ChatRequest(BaseModel):
    """Request for POST /chat."""

    message: str = Field(min_length=1, max_length=4000)
    context: list[ChatMessage] = Field(default_factory=list, max_length=50)

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide a message")
        return v


class AnalyzeTextRequest(BaseModel):
    """Request for POST /chat/analyze."""

    text: str = Field(min_length=1, max_length=10000)


class SentimentResult(BaseModel):
    """Sentiment classification of a piece of text."""

    label: SentimentLabel
    score: float = Field(ge=-1, le=1)
    source: Literal["llm", "keywords"] = "llm"


class SupportResource(BaseModel):
    """Help resource attached to strongly negative conversations."""

    type: str
    title: str
    description: str
    url: str
    icon: Optional[str] = None


class ChatReply(BaseModel):
    """``data`` of a POST /chat response."""

    response: str
    sentiment: SentimentResult
    resources: list[SupportResource] = Field(default_factory=list)
