"""
Gemini LLM Service
==================

Integration with Google Gemini via LangChain for:
- Companion chat completions
- Sentiment classification of user text
"""

import asyncio
import json
import logging
from typing import Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from app.config import settings
from app.core.errors import ServiceUnavailableError
from app.schemas.chat import ChatMessage, SentimentResult
from app.services.sentiment import keyword_sentiment, label_for_score

logger = logging.getLogger(__name__)

SENTIMENT_PROMPT = (
    "You are an AI that analyzes sentiment. Respond with a JSON object "
    'containing a "sentiment" field (positive, neutral, or negative) and a '
    '"score" field between -1 (very negative) and 1 (very positive).'
)


def _strip_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.split("```")[1]
        if content.startswith("json"):
            content = content[4:]
    return content.strip()


class GeminiLLMService:
    """
    Service for LLM operations using Google Gemini via LangChain.

    Features:
    - Chat completion with a system context and prior turns
    - Sentiment classification with a keyword fallback
    """

    def __init__(self):
        self.api_key = settings.GOOGLE_GEMINI_API_KEY
        self.model_name = settings.GEMINI_MODEL
        self.timeout = settings.LLM_TIMEOUT_SECONDS
        self._llm = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def llm(self):
        """Get or create LLM instance."""
        if self._llm is None:
            if not self.api_key:
                raise ValueError(
                    "Gemini API not configured. "
                    "Set GOOGLE_GEMINI_API_KEY environment variable."
                )

            from langchain_google_genai import ChatGoogleGenerativeAI

            self._llm = ChatGoogleGenerativeAI(
                model=self.model_name,
                google_api_key=self.api_key,
                temperature=0.7,
                max_tokens=300,
                timeout=self.timeout,
                max_retries=2,
            )

        return self._llm

    async def _invoke(self, messages: list[BaseMessage]) -> str:
        response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
        return response.content if isinstance(response.content, str) else str(response.content)

    async def complete(
        self,
        system_context: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> str:
        """
        Generate the assistant's reply to ``message``.

        Raises:
            ServiceUnavailableError: the model is not configured, timed
                out, or failed
        """
        messages: list[BaseMessage] = [SystemMessage(content=system_context)]
        for turn in history:
            if turn.role == "assistant":
                messages.append(AIMessage(content=turn.content))
            else:
                messages.append(HumanMessage(content=turn.content))
        messages.append(HumanMessage(content=message))

        try:
            reply = await self._invoke(messages)
        except Exception as e:
            logger.error("Chat completion error: %s", e)
            raise ServiceUnavailableError(message="Error processing your request")

        return reply.strip()

    async def classify_sentiment(self, text: str) -> SentimentResult:
        """
        Classify ``text`` as positive, neutral or negative with a score.

        Falls back to the keyword heuristic when the model is unavailable
        or returns something unusable.
        """
        if self.configured:
            try:
                content = await self._invoke([
                    SystemMessage(content=SENTIMENT_PROMPT),
                    HumanMessage(content=f'Analyze the sentiment of this text: "{text}"'),
                ])
                result = json.loads(_strip_fences(content))
                score = max(-1.0, min(1.0, float(result.get("score", 0))))
                label = result.get("sentiment")
                if label not in ("positive", "neutral", "negative"):
                    label = label_for_score(score)
                return SentimentResult(label=label, score=score, source="llm")
            except Exception as e:
                logger.warning("Sentiment analysis error, using keywords: %s", e)

        fallback = keyword_sentiment(text)
        return SentimentResult(label=fallback.label, score=fallback.score, source="keywords")


# Singleton instance
_gemini_service: Optional[GeminiLLMService] = None


def get_llm_service() -> GeminiLLMService:
    """Get or create Gemini service instance."""
    global _gemini_service

    if _gemini_service is None:
        _gemini_service = GeminiLLMService()

    return _gemini_service
