"""
Project directory service: submission, owner/admin edits and filtered listings.

Listings are enriched in batches: one grouped query each for votes,
comments and categories across the whole page, joined in memory.
"""

from __future__ import annotations

import secrets
import string
import uuid
from typing import Any, Optional

import structlog
from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Caller, require_admin, require_signed_in
from app.core.errors import NotFound, UnknownFailure, storage_failure
from app.models.category import ProjectCategory
from app.models.comment import Comment
from app.models.project import Project
from app.models.user import User
from app.models.vote import Vote
from app.services.categories import (
    categories_for_projects,
    ensure_categories_exist,
    replace_project_categories,
)
from app.services.comments import comment_counts
from app.services.votes import VoteTally, vote_counts
from devshowcase_shared.schemas.common import (
    Pagination,
    ProjectStatus,
    SortOrder,
    slugify,
)
from devshowcase_shared.schemas.projects import (
    ProjectForm,
    ProjectQuery,
    ProjectRead,
    ProjectStats,
    StatusCounts,
)

log = structlog.get_logger()

SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SLUG_SUFFIX_LENGTH = 5
SLUG_ATTEMPTS = 5

_ORDERINGS = {
    SortOrder.NEWEST: (Project.created_at.desc(), Project.id),
    SortOrder.OLDEST: (Project.created_at.asc(), Project.id),
    SortOrder.ALPHABETICAL: (Project.title.asc(), Project.id),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def generate_slug(title: str) -> str:
    """``slugify(title)`` plus a random 5-char [a-z0-9] suffix."""
    base = slugify(title) or "project"
    suffix = "".join(secrets.choice(SLUG_SUFFIX_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH))
    return f"{base}-{suffix}"


async def _unique_slug(session: AsyncSession, title: str) -> str:
    for _ in range(SLUG_ATTEMPTS):
        slug = generate_slug(title)
        taken = await session.execute(select(Project.id).where(Project.slug == slug))
        if taken.first() is None:
            return slug
    raise UnknownFailure("Could not generate a unique slug")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_filters(
    stmt: Any,
    query: ProjectQuery,
    *,
    status: Optional[ProjectStatus],
    author_id: Optional[uuid.UUID] = None,
) -> Any:
    if status is not None:
        stmt = stmt.where(Project.status == status.value)
    if author_id is not None:
        stmt = stmt.where(Project.author_id == author_id)

    search = query.search.strip()
    if search:
        pattern = f"%{_escape_like(search)}%"
        stmt = stmt.where(
            or_(
                Project.title.ilike(pattern, escape="\\"),
                Project.description.ilike(pattern, escape="\\"),
                User.full_name.ilike(pattern, escape="\\"),
            )
        )

    if query.category_ids:
        stmt = stmt.where(
            Project.id.in_(
                select(ProjectCategory.project_id).where(
                    ProjectCategory.category_id.in_(query.category_ids)
                )
            )
        )
    return stmt


def _project_rows():
    return select(Project, User.full_name, User.email).join(
        User, User.id == Project.author_id
    )


async def _enrich(session: AsyncSession, rows: list) -> list[ProjectRead]:
    """Attach categories, vote tallies and comment counts to (project, name, email) rows."""
    if not rows:
        return []

    project_ids = [project.id for project, _, _ in rows]
    tallies = await vote_counts(session, project_ids)
    comments = await comment_counts(session, project_ids)
    categories = await categories_for_projects(session, project_ids)

    results = []
    for project, author_name, author_email in rows:
        tally = tallies.get(project.id, VoteTally())
        results.append(
            ProjectRead(
                id=project.id,
                title=project.title,
                slug=project.slug,
                description=project.description,
                github_url=project.github_url,
                website_url=project.website_url,
                status=ProjectStatus(project.status),
                author_id=project.author_id,
                author_name=author_name,
                author_email=author_email,
                categories=categories.get(project.id, []),
                stats=ProjectStats(
                    upvotes=tally.upvotes,
                    downvotes=tally.downvotes,
                    comment_count=comments.get(project.id, 0),
                ),
                created_at=project.created_at,
                updated_at=project.updated_at,
            )
        )
    return results


async def _list_projects(
    session: AsyncSession,
    query: ProjectQuery,
    *,
    status: Optional[ProjectStatus],
    author_id: Optional[uuid.UUID] = None,
) -> tuple[list[ProjectRead], Pagination]:
    skip = (query.page - 1) * query.page_size

    stmt = (
        _apply_filters(_project_rows(), query, status=status, author_id=author_id)
        .order_by(*_ORDERINGS[query.sort_by])
        .offset(skip)
        .limit(query.page_size)
    )
    rows = (await session.execute(stmt)).all()

    count_stmt = _apply_filters(
        select(func.count())
        .select_from(Project)
        .join(User, User.id == Project.author_id),
        query,
        status=status,
        author_id=author_id,
    )
    total_count = (await session.execute(count_stmt)).scalar_one()

    projects = await _enrich(session, rows)
    return projects, Pagination.build(total_count, query.page, query.page_size)


async def _load_project(session: AsyncSession, *conditions) -> ProjectRead:
    rows = (await session.execute(_project_rows().where(*conditions))).all()
    if not rows:
        raise NotFound("Project not found")
    return (await _enrich(session, rows))[0]


async def _get_owned_project(
    session: AsyncSession, caller: Caller, project_id: uuid.UUID
) -> Project:
    """The project if the caller owns it (or is admin); NotFound otherwise."""
    project = await session.get(Project, project_id)
    if not project or (project.author_id != caller.user_id and not caller.is_admin):
        raise NotFound("Project not found or unauthorized")
    return project


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


async def list_public_projects(
    session: AsyncSession, query: ProjectQuery
) -> tuple[list[ProjectRead], Pagination]:
    """Explore listing. Always approved-only, whatever ``query.status`` says."""
    with storage_failure("Failed to fetch projects"):
        return await _list_projects(session, query, status=ProjectStatus.APPROVED)


async def list_my_projects(
    session: AsyncSession, caller: Optional[Caller], query: ProjectQuery
) -> tuple[list[ProjectRead], Pagination, StatusCounts]:
    """The caller's own projects in any status, plus per-status totals."""
    caller = require_signed_in(caller)
    with storage_failure("Failed to fetch projects", user_id=str(caller.user_id)):
        projects, pagination = await _list_projects(
            session, query, status=query.status, author_id=caller.user_id
        )
        result = await session.execute(
            select(Project.status, func.count().label("cnt"))
            .where(Project.author_id == caller.user_id)
            .group_by(Project.status)
        )
        by_status = {row.status: row.cnt for row in result}

    counts = StatusCounts(
        all=sum(by_status.values()),
        pending=by_status.get(ProjectStatus.PENDING.value, 0),
        approved=by_status.get(ProjectStatus.APPROVED.value, 0),
        rejected=by_status.get(ProjectStatus.REJECTED.value, 0),
    )
    return projects, pagination, counts


async def list_all_projects(
    session: AsyncSession, caller: Optional[Caller], query: ProjectQuery
) -> tuple[list[ProjectRead], Pagination]:
    """Admin listing across every status."""
    require_admin(caller)
    with storage_failure("Failed to fetch projects"):
        return await _list_projects(session, query, status=query.status)


async def get_project(session: AsyncSession, project_id: uuid.UUID) -> ProjectRead:
    with storage_failure("Failed to fetch project details", project_id=str(project_id)):
        return await _load_project(session, Project.id == project_id)


async def get_project_by_slug(session: AsyncSession, slug: str) -> ProjectRead:
    with storage_failure("Failed to fetch project details", slug=slug):
        return await _load_project(session, Project.slug == slug)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def submit_project(
    session: AsyncSession, caller: Optional[Caller], form: ProjectForm
) -> ProjectRead:
    """Create a pending project owned by the caller."""
    caller = require_signed_in(caller)
    with storage_failure("Something went wrong. Please try again."):
        await ensure_categories_exist(session, form.category_ids)
        project = Project(
            title=form.title,
            slug=await _unique_slug(session, form.title),
            description=form.description,
            github_url=form.github_url,
            website_url=form.website_url,
            status=ProjectStatus.PENDING.value,
            author_id=caller.user_id,
        )
        session.add(project)
        await session.flush()  # get project.id

        await replace_project_categories(session, project.id, form.category_ids)
        await session.commit()

    log.info(
        "project.submitted",
        project_id=str(project.id),
        slug=project.slug,
        author_id=str(caller.user_id),
    )
    return await get_project(session, project.id)


async def update_project(
    session: AsyncSession,
    caller: Optional[Caller],
    project_id: uuid.UUID,
    form: ProjectForm,
) -> ProjectRead:
    """Replace a project's content and categories. Status is left as is."""
    caller = require_signed_in(caller)
    with storage_failure("Failed to update project", project_id=str(project_id)):
        project = await _get_owned_project(session, caller, project_id)
        await ensure_categories_exist(session, form.category_ids)

        project.title = form.title
        project.description = form.description
        project.github_url = form.github_url
        project.website_url = form.website_url
        session.add(project)

        await replace_project_categories(session, project.id, form.category_ids)
        await session.commit()

    log.info("project.updated", project_id=str(project_id), actor_id=str(caller.user_id))
    return await get_project(session, project_id)


async def delete_project(
    session: AsyncSession, caller: Optional[Caller], project_id: uuid.UUID
) -> None:
    """Delete a project with its votes, comments and category links."""
    caller = require_signed_in(caller)
    with storage_failure("Failed to delete project", project_id=str(project_id)):
        project = await _get_owned_project(session, caller, project_id)

        await session.execute(delete(Vote).where(Vote.project_id == project.id))
        await session.execute(delete(Comment).where(Comment.project_id == project.id))
        await session.execute(
            delete(ProjectCategory).where(ProjectCategory.project_id == project.id)
        )
        await session.delete(project)
        await session.commit()

    log.info("project.deleted", project_id=str(project_id), actor_id=str(caller.user_id))


async def admin_update_project(
    session: AsyncSession,
    caller: Optional[Caller],
    project_id: uuid.UUID,
    form: ProjectForm,
) -> ProjectRead:
    return await update_project(session, require_admin(caller), project_id, form)


async def admin_delete_project(
    session: AsyncSession, caller: Optional[Caller], project_id: uuid.UUID
) -> None:
    await delete_project(session, require_admin(caller), project_id)
