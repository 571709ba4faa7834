"""Category model and the project/category join table."""

import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Category(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "categories"

    name: str = Field(nullable=False, unique=True)
    color: str = Field(nullable=False)  # display token, e.g. tailwind classes


class ProjectCategory(SQLModel, table=True):
    __tablename__ = "project_categories"

    project_id: uuid.UUID = Field(foreign_key="projects.id", primary_key=True)
    category_id: uuid.UUID = Field(foreign_key="categories.id", primary_key=True, index=True)
