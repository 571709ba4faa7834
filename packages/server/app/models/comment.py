"""Comment model (append-only)."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Comment(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "comments"

    content: str = Field(nullable=False, sa_type=sa.Text)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
