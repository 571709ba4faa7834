import re
from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel, ProjectStatus, SortOrder
from .categories import CategoryRead

GITHUB_URL_PATTERN = re.compile(r"^https?://(www\.)?github\.com/.+")

MAX_CATEGORIES_PER_PROJECT = 3

_http_url = TypeAdapter(HttpUrl)


def _check_length(value: str, label: str, min_len: int, max_len: int) -> str:
    if len(value) < min_len:
        raise PydanticCustomError(
            "too_short", f"{label} must be at least {min_len} characters"
        )
    if len(value) > max_len:
        raise PydanticCustomError(
            "too_long", f"{label} must be at most {max_len} characters"
        )
    return value


def _check_url(value: str) -> str:
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise PydanticCustomError("url", "Please enter a valid URL")
    return value


class ProjectForm(CamelModel):
    """Submission / edit form for a project."""

    title: str
    description: str
    github_url: str
    website_url: Optional[str] = None
    category_ids: List[UUID] = Field(default_factory=list, validate_default=True)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v: str) -> str:
        return _check_length(v.strip(), "Title", 3, 100)

    @field_validator("description")
    @classmethod
    def _validate_description(cls, v: str) -> str:
        return _check_length(v.strip(), "Description", 20, 500)

    @field_validator("github_url")
    @classmethod
    def _validate_github_url(cls, v: str) -> str:
        v = _check_url(v.strip())
        if not GITHUB_URL_PATTERN.match(v):
            raise PydanticCustomError("github_url", "Must be a valid GitHub URL")
        return v

    @field_validator("website_url")
    @classmethod
    def _validate_website_url(cls, v: Optional[str]) -> Optional[str]:
        # Empty string means "no website"
        if v is None or not v.strip():
            return None
        return _check_url(v.strip())

    @field_validator("category_ids")
    @classmethod
    def _validate_category_ids(cls, v: List[UUID]) -> List[UUID]:
        unique = list(dict.fromkeys(v))
        if not unique:
            raise PydanticCustomError("too_short", "Select at least one category")
        if len(unique) > MAX_CATEGORIES_PER_PROJECT:
            raise PydanticCustomError(
                "too_long",
                f"You can select up to {MAX_CATEGORIES_PER_PROJECT} categories",
            )
        return unique


class ProjectQuery(CamelModel):
    """Filters, ordering and window for a project listing."""

    search: str = ""
    category_ids: List[UUID] = Field(default_factory=list)
    status: Optional[ProjectStatus] = None
    sort_by: SortOrder = SortOrder.NEWEST
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=6, ge=1, le=50)


class ProjectStatusUpdate(CamelModel):
    status: ProjectStatus


class ProjectStats(CamelModel):
    upvotes: int = 0
    downvotes: int = 0
    comment_count: int = 0


class ProjectRead(CamelModel):
    id: UUID
    title: str
    slug: str
    description: str
    github_url: str
    website_url: Optional[str] = None
    status: ProjectStatus
    author_id: UUID
    author_name: str
    author_email: str
    categories: List[CategoryRead] = Field(default_factory=list)
    stats: ProjectStats = Field(default_factory=ProjectStats)
    created_at: datetime
    updated_at: datetime


class StatusCounts(CamelModel):
    all: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


def validate_transition(current: ProjectStatus, target: ProjectStatus) -> tuple[bool, str]:
    """Validate an approval decision.

    Rules:
    - Only a pending project can be decided.
    - A decision is either approved or rejected.

    Returns (is_valid, error_message).
    """
    if current == target:
        return False, f"Project is already {current.value}"

    if current != ProjectStatus.PENDING:
        return False, f"Project has already been {current.value}"

    if target not in (ProjectStatus.APPROVED, ProjectStatus.REJECTED):
        return False, f"Cannot move a project to {target.value}"

    return True, ""
