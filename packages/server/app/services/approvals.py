"""
Approval workflow: pending -> approved | rejected, admins only.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Caller, require_admin
from app.core.errors import NotFound, ValidationFailed, storage_failure
from app.models.project import Project
from app.services.projects import get_project
from devshowcase_shared.schemas.common import ProjectStatus
from devshowcase_shared.schemas.projects import ProjectRead, validate_transition

log = structlog.get_logger()


async def update_project_status(
    session: AsyncSession,
    caller: Optional[Caller],
    project_id: uuid.UUID,
    status: ProjectStatus,
) -> ProjectRead:
    caller = require_admin(caller)

    with storage_failure("Failed to update project status", project_id=str(project_id)):
        project = await session.get(Project, project_id)
        if not project:
            raise NotFound("Project not found")

        current = ProjectStatus(project.status)
        is_valid, error_msg = validate_transition(current, status)
        if not is_valid:
            raise ValidationFailed.for_field("status", error_msg)

        project.status = status.value
        session.add(project)
        await session.commit()

    log.info(
        "project.status_updated",
        project_id=str(project_id),
        from_status=current.value,
        to_status=status.value,
        admin_id=str(caller.user_id),
    )
    return await get_project(session, project_id)
