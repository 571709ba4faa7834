"""
Public project endpoints: explore listing, detail, submission, categories.

Explore is approved-only. Submissions start as pending and stay invisible
here until an admin approves them.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Caller, get_optional_caller
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import ValidationFailed
from app.services import categories as category_service
from app.services import projects as project_service
from devshowcase_shared.schemas.common import ProjectStatus, SortOrder, success
from devshowcase_shared.schemas.projects import ProjectForm, ProjectQuery

settings = get_settings()
router = APIRouter()


def project_query(
    search: str = "",
    category_ids: List[uuid.UUID] = Query(default=[], alias="categoryIds"),
    status: Optional[str] = None,
    sort_by: SortOrder = Query(SortOrder.NEWEST, alias="sortBy"),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.default_page_size, ge=1, le=settings.max_page_size, alias="pageSize"
    ),
) -> ProjectQuery:
    """Listing query-string parameters. ``status=all`` means no status filter."""
    parsed_status: Optional[ProjectStatus] = None
    if status and status.lower() != "all":
        try:
            parsed_status = ProjectStatus(status.lower())
        except ValueError:
            raise ValidationFailed.for_field("status", f"Unknown status: {status}")

    return ProjectQuery(
        search=search,
        category_ids=category_ids,
        status=parsed_status,
        sort_by=sort_by,
        page=page,
        page_size=page_size,
    )


@router.get("/projects")
async def list_projects(
    query: ProjectQuery = Depends(project_query),
    session: AsyncSession = Depends(get_session),
):
    """List approved projects, optionally searched, filtered and sorted."""
    projects, pagination = await project_service.list_public_projects(session, query)
    return success(projects, pagination=pagination)


@router.post("/projects", status_code=201)
async def submit_project(
    form: ProjectForm,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.submit_project(session, caller, form)
    return success(
        project,
        message="Project submitted successfully! It will be visible after approval.",
    )


@router.get("/projects/{slug}")
async def get_project_by_slug(
    slug: str,
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project_by_slug(session, slug)
    return success(project)


@router.get("/categories")
async def list_categories(session: AsyncSession = Depends(get_session)):
    return success(await category_service.list_categories(session))
