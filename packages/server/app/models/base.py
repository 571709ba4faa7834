"""Base mixins for SQLModel tables."""

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(*, index: bool = False, touch_on_update: bool = False):
    column_kwargs = {"server_default": sa.func.now()}
    if touch_on_update:
        column_kwargs["onupdate"] = _utcnow
    return Field(
        default_factory=_utcnow,
        nullable=False,
        index=index,
        sa_column_kwargs=column_kwargs,
        sa_type=sa.DateTime(timezone=True),
    )


class UUIDMixin(SQLModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, nullable=False)


class CreatedAtMixin(SQLModel):
    created_at: datetime = _timestamp(index=True)


class TimestampMixin(CreatedAtMixin):
    updated_at: datetime = _timestamp(touch_on_update=True)
