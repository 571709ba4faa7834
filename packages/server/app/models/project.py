"""Project model."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    title: str = Field(nullable=False)
    slug: str = Field(nullable=False, unique=True, index=True)
    description: str = Field(nullable=False, sa_type=sa.Text)
    github_url: str = Field(nullable=False)
    website_url: Optional[str] = None
    status: str = Field(default="pending", nullable=False, index=True)  # pending | approved | rejected
    author_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
