"""
Common Dependencies
===================

Shared dependencies used across the application.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationError
from app.core.security import ACCESS_TOKEN_TYPE, decode_token, parse_subject
from app.db.session import get_db
from app.models.user import User
from app.services.auth_service import AuthService
from app.services.gemini_llm import GeminiLLMService, get_llm_service

logger = logging.getLogger(__name__)

# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]

# Security scheme for JWT authentication
security = HTTPBearer(auto_error=False)


async def _resolve_user_from_token(token: str, db: AsyncSession) -> Optional[User]:
    """
    Decode an access token and load its user.

    Returns None when the token is invalid, expired, not an access token,
    or was issued under an older token version (logout, password change).
    """
    payload = decode_token(token)
    if payload is None:
        return None

    user_id = parse_subject(payload, ACCESS_TOKEN_TYPE)
    if user_id is None:
        return None

    user = await AuthService(db).get_user_by_id(user_id)
    if user is None or payload.get("ver") != user.token_version:
        return None

    return user


async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DBSession,
) -> User:
    """
    Get current authenticated user.

    Raises 401 if not authenticated or the token is invalid.
    """
    if credentials is None:
        raise AuthenticationError(message="Not authenticated")

    user = await _resolve_user_from_token(credentials.credentials, db)

    if user is None:
        raise AuthenticationError(message="Invalid or expired token")

    # Picked up by the New Relic middleware
    request.state.user_id = str(user.user_id)
    return user


# Type alias for authenticated user dependency
CurrentUser = Annotated[User, Depends(get_current_user)]

LLMService = Annotated[GeminiLLMService, Depends(get_llm_service)]
