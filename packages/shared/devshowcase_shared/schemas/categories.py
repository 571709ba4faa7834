from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel


class CategoryForm(CamelModel):
    name: str
    color: str

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise PydanticCustomError(
                "too_short", "Category name must be at least 2 characters"
            )
        if len(v) > 30:
            raise PydanticCustomError(
                "too_long", "Category name must be at most 30 characters"
            )
        return v

    @field_validator("color")
    @classmethod
    def _validate_color(cls, v: str) -> str:
        if not v.strip():
            raise PydanticCustomError("missing", "Please select a color")
        return v.strip()


class CategoryRead(CamelModel):
    id: UUID
    name: str
    slug: str
    color: str
    project_count: int = 0
    created_at: datetime
