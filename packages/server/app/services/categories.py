"""
Category service: public catalog, admin CRUD, project/category links.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Caller, require_admin
from app.core.errors import NotFound, ValidationFailed, storage_failure
from app.models.category import Category, ProjectCategory
from app.models.project import Project
from devshowcase_shared.schemas.categories import CategoryForm, CategoryRead
from devshowcase_shared.schemas.common import ProjectStatus, category_slug

log = structlog.get_logger()


def to_category_read(category: Category, project_count: int = 0) -> CategoryRead:
    return CategoryRead(
        id=category.id,
        name=category.name,
        slug=category_slug(category.name),
        color=category.color,
        project_count=project_count,
        created_at=category.created_at,
    )


async def _project_counts(
    session: AsyncSession, status: Optional[ProjectStatus] = None
) -> dict[uuid.UUID, int]:
    stmt = select(ProjectCategory.category_id, func.count().label("cnt"))
    if status is not None:
        stmt = stmt.join(Project, Project.id == ProjectCategory.project_id).where(
            Project.status == status.value
        )
    stmt = stmt.group_by(ProjectCategory.category_id)
    result = await session.execute(stmt)
    return {row.category_id: row.cnt for row in result}


async def _get_category_or_404(session: AsyncSession, category_id: uuid.UUID) -> Category:
    category = await session.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


async def _ensure_unique_name(
    session: AsyncSession, name: str, exclude_id: Optional[uuid.UUID] = None
) -> None:
    stmt = select(Category.id).where(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if (await session.execute(stmt)).first():
        raise ValidationFailed.for_field("name", "A category with this name already exists")


# ---------------------------------------------------------------------------
# Public catalog
# ---------------------------------------------------------------------------


async def list_categories(session: AsyncSession) -> list[CategoryRead]:
    """All categories by name, counting approved projects only."""
    with storage_failure("Failed to fetch categories"):
        result = await session.execute(select(Category).order_by(Category.name))
        categories = result.scalars().all()
        counts = await _project_counts(session, ProjectStatus.APPROVED)
    return [to_category_read(c, counts.get(c.id, 0)) for c in categories]


async def ensure_categories_exist(
    session: AsyncSession, category_ids: Iterable[uuid.UUID]
) -> None:
    ids = set(category_ids)
    result = await session.execute(select(Category.id).where(Category.id.in_(list(ids))))
    if set(result.scalars().all()) != ids:
        raise ValidationFailed.for_field("categoryIds", "Unknown category selected")


async def categories_for_projects(
    session: AsyncSession, project_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, list[CategoryRead]]:
    """Categories of many projects in one query, keyed by project id."""
    ids = list(project_ids)
    if not ids:
        return {}
    stmt = (
        select(ProjectCategory.project_id, Category)
        .join(Category, Category.id == ProjectCategory.category_id)
        .where(ProjectCategory.project_id.in_(ids))
        .order_by(Category.name)
    )
    grouped: dict[uuid.UUID, list[CategoryRead]] = {pid: [] for pid in ids}
    for project_id, category in (await session.execute(stmt)).all():
        grouped[project_id].append(to_category_read(category))
    return grouped


async def replace_project_categories(
    session: AsyncSession, project_id: uuid.UUID, category_ids: Iterable[uuid.UUID]
) -> None:
    await session.execute(
        delete(ProjectCategory).where(ProjectCategory.project_id == project_id)
    )
    for category_id in category_ids:
        session.add(ProjectCategory(project_id=project_id, category_id=category_id))


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


async def list_admin_categories(
    session: AsyncSession, caller: Optional[Caller]
) -> list[CategoryRead]:
    require_admin(caller)
    with storage_failure("Failed to fetch categories"):
        result = await session.execute(select(Category).order_by(Category.name))
        categories = result.scalars().all()
        counts = await _project_counts(session)
    return [to_category_read(c, counts.get(c.id, 0)) for c in categories]


async def create_category(
    session: AsyncSession, caller: Optional[Caller], form: CategoryForm
) -> CategoryRead:
    require_admin(caller)
    with storage_failure("Failed to create category"):
        await _ensure_unique_name(session, form.name)
        category = Category(name=form.name, color=form.color)
        session.add(category)
        await session.commit()
        await session.refresh(category)

    log.info("category.created", category_id=str(category.id), name=category.name)
    return to_category_read(category)


async def update_category(
    session: AsyncSession,
    caller: Optional[Caller],
    category_id: uuid.UUID,
    form: CategoryForm,
) -> CategoryRead:
    require_admin(caller)
    with storage_failure("Failed to update category", category_id=str(category_id)):
        category = await _get_category_or_404(session, category_id)
        await _ensure_unique_name(session, form.name, exclude_id=category.id)
        category.name = form.name
        category.color = form.color
        session.add(category)
        await session.commit()
        await session.refresh(category)

    log.info("category.updated", category_id=str(category.id))
    return to_category_read(category)


async def delete_category(
    session: AsyncSession, caller: Optional[Caller], category_id: uuid.UUID
) -> None:
    """Delete a category. Projects keep existing, minus the link."""
    require_admin(caller)
    with storage_failure("Failed to delete category", category_id=str(category_id)):
        category = await _get_category_or_404(session, category_id)
        await session.execute(
            delete(ProjectCategory).where(ProjectCategory.category_id == category.id)
        )
        await session.delete(category)
        await session.commit()

    log.info("category.deleted", category_id=str(category_id))
