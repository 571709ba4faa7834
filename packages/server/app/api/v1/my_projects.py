"""
The signed-in user's own projects, in every status.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.projects import project_query
from app.core.auth import Caller, get_optional_caller
from app.core.database import get_session
from app.services import projects as project_service
from devshowcase_shared.schemas.common import success
from devshowcase_shared.schemas.projects import ProjectForm, ProjectQuery

router = APIRouter()


@router.get("")
async def list_my_projects(
    query: ProjectQuery = Depends(project_query),
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    projects, pagination, counts = await project_service.list_my_projects(
        session, caller, query
    )
    return success(projects, pagination=pagination, status_counts=counts)


@router.put("/{project_id}")
async def update_my_project(
    project_id: uuid.UUID,
    form: ProjectForm,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.update_project(session, caller, project_id, form)
    return success(project, message="Project updated successfully")


@router.delete("/{project_id}")
async def delete_my_project(
    project_id: uuid.UUID,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    await project_service.delete_project(session, caller, project_id)
    return success(message="Project deleted successfully")
