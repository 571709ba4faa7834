import math
import re
from enum import Enum
from typing import Any, Optional, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ProjectStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"

class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    ALPHABETICAL = "alphabetical"


class CamelModel(BaseModel):
    """Base for wire schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

class FieldError(CamelModel):
    field: str
    message: str

class Pagination(CamelModel):
    total_count: int
    total_pages: int
    current_page: int

    @classmethod
    def build(cls, total_count: int, page: int, page_size: int) -> "Pagination":
        return cls(
            total_count=total_count,
            total_pages=math.ceil(total_count / page_size),
            current_page=page,
        )

class CommentPagination(CamelModel):
    total_count: int
    has_more: bool


_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse every run of non [a-z0-9] chars into '-'."""
    return _NON_SLUG_CHARS.sub("-", text.lower()).strip("-")


def category_slug(name: str) -> str:
    """Like ``slugify`` but keeps leading and trailing dashes, so "C++" is "c-"."""
    return _NON_SLUG_CHARS.sub("-", name.lower())


# ---------------------------------------------------------------------------
# Action envelope: {success, data?, message?, pagination?} | {success, error}
# ---------------------------------------------------------------------------

def success(data: Any = None, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    for key, value in extra.items():
        if value is not None:
            body[to_camel(key)] = value
    return body


def failure(error: str, field_errors: Optional[List[FieldError]] = None) -> dict:
    body: dict[str, Any] = {"success": False, "error": error}
    if field_errors:
        body["fieldErrors"] = [fe.model_dump(by_alias=True) for fe in field_errors]
    return body
