from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Return an aware UTC datetime; naive values are taken as UTC.

    Precision is cut to milliseconds, the resolution MongoDB stores, so an
    instant compares equal before and after a round trip.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


class TimestampMixin(BaseModel):
    """Mixin for adding timestamp fields to records."""
    
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Record(TimestampMixin):
    """Base record with identity and an optimistic-concurrency version."""
    
    id: UUID = Field(default_factory=uuid4)
    version: int = 0
