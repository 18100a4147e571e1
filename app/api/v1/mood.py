"""
Mood API Endpoints
==================

Mood entry CRUD, listing, statistics and insights.

Mutations commit before dropping the owner's cached analytics, so a
stats read racing the write cannot re-cache the old rows.
"""

import logging
from datetime import date
from typing import Optional
import uuid

from fastapi import APIRouter, Query, status

from app.core.permissions import Action, authorize
from app.dependencies import CurrentUser, DBSession
from app.models.mood import MoodType
from app.schemas.common import BaseResponse, ErrorResponse, PaginatedResponse
from app.schemas.mood import MoodEntryCreate, MoodEntryResponse, MoodEntryUpdate
from app.services.analytics_service import AnalyticsService
from app.services.cache import CacheInvalidator
from app.services.mood_service import MoodService

logger = logging.getLogger(__name__)

router = APIRouter()

ENTRY_ERRORS = {
    403: {"model": ErrorResponse, "description": "Not the owner of this entry"},
    404: {"model": ErrorResponse, "description": "Mood entry not found"},
}


@router.get("", response_model=PaginatedResponse[MoodEntryResponse])
async def list_mood_entries(
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    mood: Optional[MoodType] = Query(None),
    is_shared: Optional[bool] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
):
    """List the caller's mood entries, newest first."""
    entries, pagination = await MoodService(db).list(
        current_user.user_id,
        filters={"mood": mood, "is_shared": is_shared},
        page=page,
        limit=limit,
        from_date=from_date,
        to_date=to_date,
    )

    return PaginatedResponse(
        data=[MoodEntryResponse.model_validate(e) for e in entries],
        pagination=pagination,
    )


@router.post(
    "",
    response_model=BaseResponse[MoodEntryResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid input"}},
)
async def create_mood_entry(
    entry_data: MoodEntryCreate,
    current_user: CurrentUser,
    db: DBSession,
):
    """Record a mood check-in for the caller."""
    entry = await MoodService(db).create(current_user.user_id, entry_data)
    await db.commit()
    await CacheInvalidator.on_mood_change(str(current_user.user_id))

    return BaseResponse(data=MoodEntryResponse.model_validate(entry))


@router.get("/stats", response_model=BaseResponse[dict])
async def get_mood_stats(current_user: CurrentUser, db: DBSession):
    """Mood distribution, 30-day timeline, weekday/hour and activity breakdowns."""
    stats = await AnalyticsService(db).mood_stats(current_user.user_id)
    return BaseResponse(data=stats)


@router.get("/insights", response_model=BaseResponse[dict])
async def get_mood_insights(current_user: CurrentUser, db: DBSession):
    """Insights and suggestions from the last week of check-ins."""
    insights = await AnalyticsService(db).mood_insights(current_user.user_id)
    return BaseResponse(data=insights)


@router.get(
    "/{mood_id}",
    response_model=BaseResponse[MoodEntryResponse],
    responses=ENTRY_ERRORS,
)
async def get_mood_entry(mood_id: uuid.UUID, current_user: CurrentUser, db: DBSession):
    """Get a single mood entry."""
    entry = await MoodService(db).get(mood_id)
    authorize(current_user, entry, Action.READ)

    return BaseResponse(data=MoodEntryResponse.model_validate(entry))


@router.put(
    "/{mood_id}",
    response_model=BaseResponse[MoodEntryResponse],
    responses=ENTRY_ERRORS,
)
async def update_mood_entry(
    mood_id: uuid.UUID,
    entry_data: MoodEntryUpdate,
    current_user: CurrentUser,
    db: DBSession,
):
    """Partially update a mood entry."""
    service = MoodService(db)
    entry = await service.get(mood_id)
    authorize(current_user, entry, Action.WRITE)

    entry = await service.update(entry, entry_data)
    await db.commit()
    await CacheInvalidator.on_mood_change(str(entry.user_id))

    return BaseResponse(data=MoodEntryResponse.model_validate(entry))


@router.delete(
    "/{mood_id}",
    response_model=BaseResponse[dict],
    responses=ENTRY_ERRORS,
)
async def delete_mood_entry(mood_id: uuid.UUID, current_user: CurrentUser, db: DBSession):
    """Delete a mood entry."""
    service = MoodService(db)
    entry = await service.get(mood_id)
    authorize(current_user, entry, Action.DELETE)

    owner_id = entry.user_id
    await service.delete(entry)
    await db.commit()
    await CacheInvalidator.on_mood_change(str(owner_id))

    return BaseResponse(data={})
