"""
Pydantic Schemas
================

Request/response schemas for API validation.
"""

from app.schemas.common import (
    BaseResponse,
    ErrorResponse,
    PaginationMeta,
    PaginatedResponse,
)

__all__ = [
    "BaseResponse",
    "ErrorResponse",
    "PaginationMeta",
    "PaginatedResponse",
]
