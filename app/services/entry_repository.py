"""
Entry Repository
================

Generic owner-scoped persistence for mood and journal entries.

Subclasses declare their model, primary key, filterable fields and
validation rules; type-specific default filling is done by pure
functions hooked in through :meth:`EntryRepository.prepare_create` and
:meth:`EntryRepository.prepare_update`.

Authorization is not decided here. Callers run the ownership check
(``app.core.permissions.authorize``) on the entry returned by
:meth:`get` before calling :meth:`update` or :meth:`delete`.
"""

from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Callable, ClassVar, Generic, Mapping, Optional, TypeVar, Union
import uuid

from pydantic import BaseModel
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ErrorCodes, NotFoundError, ValidationError
from app.db.base import Base
from app.schemas.common import PaginationMeta
from app.utils.helpers import utc_now

ModelT = TypeVar("ModelT", bound=Base)

Payload = Union[BaseModel, Mapping[str, Any]]


def _plain(value: Any) -> Any:
    """Enum members inside JSON list columns are stored by value."""
    if isinstance(value, list):
        return [item.value if isinstance(item, Enum) else item for item in value]
    return value


class EntryRepository(Generic[ModelT]):
    """Create/read/update/delete/list for one owned entry type."""

    model: ClassVar[type]
    id_field: ClassVar[str]
    label: ClassVar[str] = "Entry"
    not_found_code: ClassVar[str] = ErrorCodes.NOT_FOUND

    # Fields accepted by list() as equality filters
    filter_fields: ClassVar[tuple[str, ...]] = ()

    # Validation rules
    required_fields: ClassVar[tuple[str, ...]] = ()
    ranges: ClassVar[dict[str, tuple[float, float]]] = {}
    enums: ClassVar[dict[str, type[Enum]]] = {}
    list_enums: ClassVar[dict[str, type[Enum]]] = {}
    max_lengths: ClassVar[dict[str, int]] = {}

    # Columns with defaults; an explicit null in an update leaves them alone
    not_null_fields: ClassVar[tuple[str, ...]] = ()

    # Never taken from client payloads
    protected_fields: ClassVar[frozenset[str]] = frozenset(
        {"user_id", "created_at", "updated_at"}
    )

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def prepare_create(self, values: dict[str, Any], created_at: datetime) -> dict[str, Any]:
        """Fill type-specific defaults before insert."""
        return values

    def prepare_update(self, entry: ModelT, changes: dict[str, Any]) -> dict[str, Any]:
        """Derive dependent fields before an update is applied."""
        return changes

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, values: Mapping[str, Any], partial: bool = False) -> None:
        """
        Check required fields, enumerations and numeric ranges.

        With ``partial`` only the keys present in ``values`` are checked.

        Raises:
            ValidationError: on the first offending field
        """
        for field in self.required_fields:
            if field in values or not partial:
                value = values.get(field)
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise ValidationError(message=f"{field} is required", field=field)

        for field, enum_cls in self.enums.items():
            value = values.get(field)
            if value is None:
                continue
            try:
                enum_cls(value)
            except ValueError:
                raise ValidationError(message=f"Invalid {field}: {value}", field=field)

        for field, enum_cls in self.list_enums.items():
            for item in values.get(field) or []:
                try:
                    enum_cls(item)
                except ValueError:
                    raise ValidationError(message=f"Invalid {field} value: {item}", field=field)

        for field, (low, high) in self.ranges.items():
            value = values.get(field)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(message=f"{field} must be a number", field=field)
            if not low <= value <= high:
                raise ValidationError(
                    message=f"{field} must be between {low:g} and {high:g}",
                    field=field,
                )

        for field, limit in self.max_lengths.items():
            value = values.get(field)
            if isinstance(value, str) and len(value) > limit:
                raise ValidationError(
                    message=f"{field} must be at most {limit} characters",
                    field=field,
                )

    def _coerce(self, values: dict[str, Any]) -> dict[str, Any]:
        """Turn validated enum strings into members."""
        for field, enum_cls in self.enums.items():
            if values.get(field) is not None:
                values[field] = enum_cls(values[field])
        return values

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def _clean(self, payload: Payload, exclude_unset: bool = False) -> dict[str, Any]:
        if isinstance(payload, BaseModel):
            values = payload.model_dump(exclude_unset=exclude_unset)
        else:
            values = dict(payload)

        blocked = self.protected_fields | {self.id_field}
        return {
            key: _plain(value)
            for key, value in values.items()
            if key not in blocked
        }

    async def create(self, owner_id: uuid.UUID, payload: Payload) -> ModelT:
        """
        Persist a new entry owned by ``owner_id``.

        Any owner or id field in ``payload`` is discarded.
        """
        values = self._clean(payload)
        self.validate(values)
        values = self._coerce(values)

        now = self.clock()
        values = self.prepare_create(values, now)

        entry = self.model(
            **values,
            user_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(entry)
        await self.db.flush()

        return entry

    async def get(self, entry_id: uuid.UUID) -> ModelT:
        """
        Load an entry by id, regardless of owner.

        Raises:
            NotFoundError: if no such entry exists
        """
        stmt = select(self.model).where(getattr(self.model, self.id_field) == entry_id)
        result = await self.db.execute(stmt)
        entry = result.scalar_one_or_none()

        if entry is None:
            raise NotFoundError(
                code=self.not_found_code,
                message=f"{self.label} not found with id of {entry_id}",
            )
        return entry

    async def update(self, entry: ModelT, patch: Payload) -> ModelT:
        """Apply a partial update; the owner never changes."""
        changes = self._clean(patch, exclude_unset=True)
        changes = {
            key: value
            for key, value in changes.items()
            if not (value is None and key in self.not_null_fields)
        }
        self.validate(changes, partial=True)
        changes = self._coerce(changes)

        changes = self.prepare_update(entry, changes)
        for key, value in changes.items():
            setattr(entry, key, value)
        entry.updated_at = self.clock()

        await self.db.flush()
        return entry

    async def delete(self, entry: ModelT) -> None:
        """Hard-delete an entry."""
        await self.db.delete(entry)
        await self.db.flush()

    async def list(
        self,
        owner_id: uuid.UUID,
        filters: Optional[Mapping[str, Any]] = None,
        page: int = 1,
        limit: int = 10,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> tuple[list[ModelT], PaginationMeta]:
        """
        Page through ``owner_id``'s entries, newest first.

        ``filters`` keys outside ``filter_fields`` are ignored; ``None``
        values mean "no filter". Dates are UTC calendar days, inclusive.
        """
        conditions = [self.model.user_id == owner_id]

        for field, value in (filters or {}).items():
            if field in self.filter_fields and value is not None:
                conditions.append(getattr(self.model, field) == value)

        if from_date:
            start = datetime.combine(from_date, time.min, tzinfo=timezone.utc)
            conditions.append(self.model.created_at >= start)
        if to_date:
            end = datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
            conditions.append(self.model.created_at < end)

        count_stmt = select(func.count()).select_from(self.model).where(and_(*conditions))
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(self.model)
            .where(and_(*conditions))
            .order_by(self.model.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        entries = list((await self.db.execute(stmt)).scalars().all())

        return entries, PaginationMeta.build(page=page, limit=limit, total=total)

    async def entries_since(
        self,
        owner_id: uuid.UUID,
        since: Optional[datetime] = None,
    ) -> "list[ModelT]":
        """All of ``owner_id``'s entries (optionally from ``since``), oldest first."""
        conditions = [self.model.user_id == owner_id]
        if since is not None:
            conditions.append(self.model.created_at >= since)

        stmt = (
            select(self.model)
            .where(and_(*conditions))
            .order_by(self.model.created_at.asc())
        )
        return list((await self.db.execute(stmt)).scalars().all())
