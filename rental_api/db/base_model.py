import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, String


def new_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form every column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def uuid_column(**kwargs) -> Column:
    """String(36) uuid primary key, generated client side so it works on any backend."""
    return Column(String(36), primary_key=True, default=new_uuid, **kwargs)


class TimestampMixin:
    """Creation and update timestamps shared by every table."""

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
