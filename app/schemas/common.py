"""
Common Schemas
==============

Shared Pydantic schemas used across the application.
"""

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from app.utils.helpers import as_utc

T = TypeVar("T")


class BaseResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str
    message: str
    field: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = False
    error: ErrorDetail


class PaginationMeta(BaseModel):
    """Pagination metadata for responses."""

    current_page: int
    total_pages: int
    total_items: int
    per_page: int
    has_next: bool
    has_previous: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = (total + limit - 1) // limit if total > 0 else 1
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            per_page=limit,
            has_next=page < total_pages,
            has_previous=page > 1,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""

    success: bool = True
    data: list[T]
    pagination: PaginationMeta


def utc_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Field validator helper: attach UTC to naive datetimes read from the DB."""
    if value is None:
        return None
    return as_utc(value)
