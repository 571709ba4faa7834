"""
Vote service: one vote row per (user, project), tallies computed on read.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, NamedTuple, Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Caller, require_signed_in
from app.core.database import upsert_insert
from app.core.errors import NotFound, ValidationFailed, storage_failure
from app.models.project import Project
from app.models.vote import Vote

log = structlog.get_logger()

VALID_VOTE_VALUES = (-1, 0, 1)


class VoteTally(NamedTuple):
    upvotes: int = 0
    downvotes: int = 0


async def set_vote(
    session: AsyncSession,
    caller: Optional[Caller],
    project_id: uuid.UUID,
    value: int,
) -> int:
    """Record ``caller``'s vote on a project. 0 clears it. Returns the stored value."""
    caller = require_signed_in(caller, "You must be signed in to vote")
    if value not in VALID_VOTE_VALUES:
        raise ValidationFailed.for_field("value", "Invalid vote value")

    with storage_failure("Failed to process vote", project_id=str(project_id)):
        if await session.get(Project, project_id) is None:
            raise NotFound("Project not found")

        if value == 0:
            await session.execute(
                delete(Vote).where(
                    Vote.user_id == caller.user_id,
                    Vote.project_id == project_id,
                )
            )
        else:
            now = datetime.now(timezone.utc)
            stmt = upsert_insert(session, Vote.__table__).values(
                id=uuid.uuid4(),
                user_id=caller.user_id,
                project_id=project_id,
                value=value,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "project_id"],
                set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
            )
            await session.execute(stmt)
        await session.commit()

    log.info(
        "vote.set",
        user_id=str(caller.user_id),
        project_id=str(project_id),
        value=value,
    )
    return value


async def get_user_vote(
    session: AsyncSession, caller: Optional[Caller], project_id: uuid.UUID
) -> int:
    """The caller's current vote on a project; 0 for no vote or no session."""
    if caller is None:
        return 0
    with storage_failure("Failed to get user vote", project_id=str(project_id)):
        result = await session.execute(
            select(Vote.value).where(
                Vote.user_id == caller.user_id, Vote.project_id == project_id
            )
        )
        return result.scalar_one_or_none() or 0


async def vote_counts(
    session: AsyncSession, project_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, VoteTally]:
    """Up/down tallies for many projects in one grouped query."""
    ids = list(project_ids)
    if not ids:
        return {}

    stmt = (
        select(Vote.project_id, Vote.value, func.count().label("cnt"))
        .where(Vote.project_id.in_(ids))
        .group_by(Vote.project_id, Vote.value)
    )
    result = await session.execute(stmt)

    up: dict[uuid.UUID, int] = {}
    down: dict[uuid.UUID, int] = {}
    for row in result:
        if row.value == 1:
            up[row.project_id] = row.cnt
        elif row.value == -1:
            down[row.project_id] = row.cnt

    return {pid: VoteTally(up.get(pid, 0), down.get(pid, 0)) for pid in ids}
