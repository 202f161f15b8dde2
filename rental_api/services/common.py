"""Shared service helpers."""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Type, TypeVar

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query, Session

from rental_api.core.errors import NotFoundError, ValidationError
from rental_api.db.base_model import utcnow
from rental_api.schemas.common import Page, PageParams

M = TypeVar("M")

CENTS = Decimal("0.01")

# Columns that may never be used for ordering
UNSORTABLE = {"password"}


def to_naive_utc(value: datetime) -> datetime:
    """Store every timestamp as naive UTC; aware values are converted first."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def round_money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_or_404(db: Session, model: Type[M], entity_id: str, label: str) -> M:
    """Load a row by primary key or raise NotFoundError."""
    instance = db.get(model, entity_id) if entity_id else None
    if instance is None:
        raise NotFoundError(f"{label} not found")
    return instance


def sort_column(model, name: str):
    """Table column named ``name``, or ``created_at`` for anything else."""
    columns = model.__table__.columns
    if name in UNSORTABLE or name not in columns:
        return model.created_at
    return getattr(model, name)


def paginate(query: Query, model, params: PageParams) -> Page:
    """Apply sorting and offset/limit to ``query`` and count the full result."""
    total = query.order_by(None).count()
    column = sort_column(model, params.sort_by)
    order = asc(column) if params.sort_order == "asc" else desc(column)
    items = query.order_by(order).offset(params.offset).limit(params.limit).all()
    return Page(items=items, total=total, page=params.page, limit=params.limit)


def apply_changes(instance, changes: dict) -> list:
    """
    Copy ``changes`` onto ``instance``; returns the names of changed fields.
    Nothing is written if any value is null for a NOT NULL column.
    """
    columns = instance.__table__.columns
    required = sorted(
        field for field, value in changes.items()
        if value is None and field in columns and not columns[field].nullable
    )
    if required:
        raise ValidationError(
            f"Fields cannot be null: {', '.join(required)}",
            details={"fields": required},
        )

    changed = []
    for field, value in changes.items():
        if getattr(instance, field) != value:
            setattr(instance, field, value)
            changed.append(field)
    return changed
