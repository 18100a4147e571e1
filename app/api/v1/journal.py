"""
Journal API Endpoints
=====================

Journal entry CRUD, listing and statistics.

Mutations commit before dropping the owner's cached statistics.
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
from app.schemas.journal import (
    JournalEntryCreate,
    JournalEntryResponse,
    JournalEntryUpdate,
)
from app.services.analytics_service import AnalyticsService
from app.services.cache import CacheInvalidator
from app.services.journal_service import JournalService

logger = logging.getLogger(__name__)

router = APIRouter()

ENTRY_ERRORS = {
    403: {"model": ErrorResponse, "description": "Not the owner of this entry"},
    404: {"model": ErrorResponse, "description": "Journal entry not found"},
}


@router.get("", response_model=PaginatedResponse[JournalEntryResponse])
async def list_journal_entries(
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    emotion: Optional[MoodType] = Query(None),
    mood: Optional[int] = Query(None, ge=1, le=5),
    is_private: Optional[bool] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
):
    """
    List the caller's journal entries, newest first.

    Supports filtering by emotion, mood rating, privacy and a date range.
    """
    entries, pagination = await JournalService(db).list(
        current_user.user_id,
        filters={"emotion": emotion, "mood": mood, "is_private": is_private},
        page=page,
        limit=limit,
        from_date=from_date,
        to_date=to_date,
    )

    return PaginatedResponse(
        data=[JournalEntryResponse.model_validate(e) for e in entries],
        pagination=pagination,
    )


@router.post(
    "",
    response_model=BaseResponse[JournalEntryResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid input"}},
)
async def create_journal_entry(
    entry_data: JournalEntryCreate,
    current_user: CurrentUser,
    db: DBSession,
):
    """Write a journal entry; the sentiment score is derived when omitted."""
    entry = await JournalService(db).create(current_user.user_id, entry_data)
    await db.commit()
    await CacheInvalidator.on_journal_change(str(current_user.user_id))

    return BaseResponse(data=JournalEntryResponse.model_validate(entry))


@router.get("/stats", response_model=BaseResponse[dict])
async def get_journal_stats(current_user: CurrentUser, db: DBSession):
    """Emotion distribution, 30-day timeline and most used tags."""
    stats = await AnalyticsService(db).journal_stats(current_user.user_id)
    return BaseResponse(data=stats)


@router.get(
    "/{entry_id}",
    response_model=BaseResponse[JournalEntryResponse],
    responses=ENTRY_ERRORS,
)
async def get_journal_entry(entry_id: uuid.UUID, current_user: CurrentUser, db: DBSession):
    entry = await JournalService(db).get(entry_id)
    authorize(current_user, entry, Action.READ)

    return BaseResponse(data=JournalEntryResponse.model_validate(entry))


@router.put(
    "/{entry_id}",
    response_model=BaseResponse[JournalEntryResponse],
    responses=ENTRY_ERRORS,
)
async def update_journal_entry(
    entry_id: uuid.UUID,
    entry_data: JournalEntryUpdate,
    current_user: CurrentUser,
    db: DBSession,
):
    """Partially update a journal entry."""
    service = JournalService(db)
    entry = await service.get(entry_id)
    authorize(current_user, entry, Action.WRITE)

    entry = await service.update(entry, entry_data)
    await db.commit()
    await CacheInvalidator.on_journal_change(str(entry.user_id))

    return BaseResponse(data=JournalEntryResponse.model_validate(entry))


@router.delete(
    "/{entry_id}",
    response_model=BaseResponse[dict],
    responses=ENTRY_ERRORS,
)
async def delete_journal_entry(entry_id: uuid.UUID, current_user: CurrentUser, db: DBSession):
    service = JournalService(db)
    entry = await service.get(entry_id)
    authorize(current_user, entry, Action.DELETE)

    owner_id = entry.user_id
    await service.delete(entry)
    await db.commit()
    await CacheInvalidator.on_journal_change(str(owner_id))

    return BaseResponse(data={})
