"""
Admin endpoints: approval decisions, project moderation, category catalog.

Every service call below checks the ADMIN role itself.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.projects import project_query
from app.core.auth import Caller, get_optional_caller
from app.core.database import get_session
from app.services import approvals as approval_service
from app.services import categories as category_service
from app.services import projects as project_service
from devshowcase_shared.schemas.categories import CategoryForm
from devshowcase_shared.schemas.common import success
from devshowcase_shared.schemas.projects import ProjectForm, ProjectQuery, ProjectStatusUpdate

router = APIRouter()


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.get("/projects")
async def list_all_projects(
    query: ProjectQuery = Depends(project_query),
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    projects, pagination = await project_service.list_all_projects(session, caller, query)
    return success(projects, pagination=pagination)


@router.patch("/projects/{project_id}/status")
async def update_project_status(
    project_id: uuid.UUID,
    body: ProjectStatusUpdate,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    """Approve or reject a pending project."""
    project = await approval_service.update_project_status(
        session, caller, project_id, body.status
    )
    return success(project, message=f"Project {body.status.value} successfully")


@router.put("/projects/{project_id}")
async def update_project(
    project_id: uuid.UUID,
    form: ProjectForm,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.admin_update_project(session, caller, project_id, form)
    return success(project, message="Project updated successfully")


@router.delete("/projects/{project_id}")
async def delete_project(
    project_id: uuid.UUID,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    await project_service.admin_delete_project(session, caller, project_id)
    return success(message="Project deleted successfully")


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@router.get("/categories")
async def list_categories(
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    return success(await category_service.list_admin_categories(session, caller))


@router.post("/categories", status_code=201)
async def create_category(
    form: CategoryForm,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    category = await category_service.create_category(session, caller, form)
    return success(category, message="Category created successfully")


@router.put("/categories/{category_id}")
async def update_category(
    category_id: uuid.UUID,
    form: CategoryForm,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    category = await category_service.update_category(session, caller, category_id, form)
    return success(category, message="Category updated successfully")


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: uuid.UUID,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    await category_service.delete_category(session, caller, category_id)
    return success(message="Category deleted successfully")
