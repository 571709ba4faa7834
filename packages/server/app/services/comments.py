"""
Comment service: append-only, newest-first, offset pagination.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Caller, require_signed_in
from app.core.errors import NotFound, ValidationFailed, storage_failure
from app.models.comment import Comment
from app.models.project import Project
from app.models.user import User
from devshowcase_shared.schemas.common import CommentPagination
from devshowcase_shared.schemas.social import CommentRead

log = structlog.get_logger()


async def add_comment(
    session: AsyncSession,
    caller: Optional[Caller],
    project_id: uuid.UUID,
    content: str,
) -> CommentRead:
    caller = require_signed_in(caller, "You must be signed in to comment")
    content = content.strip()
    if not content:
        raise ValidationFailed.for_field("content", "Comment cannot be empty")

    with storage_failure("Failed to add comment", project_id=str(project_id)):
        if await session.get(Project, project_id) is None:
            raise NotFound("Project not found")
        author = await session.get(User, caller.user_id)
        if author is None:
            raise NotFound("User not found")

        comment = Comment(content=content, project_id=project_id, user_id=caller.user_id)
        session.add(comment)
        await session.commit()
        await session.refresh(comment)

    log.info(
        "comment.added",
        comment_id=str(comment.id),
        project_id=str(project_id),
        user_id=str(caller.user_id),
    )
    return CommentRead(
        id=comment.id,
        content=comment.content,
        author_name=author.full_name,
        created_at=comment.created_at,
    )


async def list_comments(
    session: AsyncSession,
    project_id: uuid.UUID,
    page: int = 1,
    page_size: int = 5,
) -> tuple[list[CommentRead], CommentPagination]:
    """One page of a project's comments, newest first."""
    if page < 1 or page_size < 1:
        raise ValidationFailed.for_field("page", "Page and page size must be positive")
    skip = (page - 1) * page_size

    with storage_failure("Failed to fetch comments", project_id=str(project_id)):
        stmt = (
            select(Comment, User.full_name)
            .join(User, User.id == Comment.user_id)
            .where(Comment.project_id == project_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset(skip)
            .limit(page_size)
        )
        rows = (await session.execute(stmt)).all()

        total_count = (
            await session.execute(
                select(func.count())
                .select_from(Comment)
                .where(Comment.project_id == project_id)
            )
        ).scalar_one()

    items = [
        CommentRead(
            id=comment.id,
            content=comment.content,
            author_name=author_name,
            created_at=comment.created_at,
        )
        for comment, author_name in rows
    ]
    pagination = CommentPagination(
        total_count=total_count,
        has_more=total_count > skip + len(items),
    )
    return items, pagination


async def comment_counts(
    session: AsyncSession, project_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, int]:
    """Comment totals for many projects in one grouped query."""
    ids = list(project_ids)
    if not ids:
        return {}
    stmt = (
        select(Comment.project_id, func.count().label("cnt"))
        .where(Comment.project_id.in_(ids))
        .group_by(Comment.project_id)
    )
    result = await session.execute(stmt)
    return {row.project_id: row.cnt for row in result}
