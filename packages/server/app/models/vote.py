"""Vote model: at most one row per (user, project)."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Vote(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "votes"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "project_id", name="uq_votes_user_project"),
        sa.CheckConstraint("value IN (-1, 1)", name="ck_votes_value"),
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    value: int = Field(nullable=False)  # -1 | 1; "no vote" is the absence of a row
