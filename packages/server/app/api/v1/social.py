"""
Vote and comment endpoints for a single project.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Caller, get_optional_caller
from app.core.config import get_settings
from app.core.database import get_session
from app.services import comments as comment_service
from app.services import votes as vote_service
from devshowcase_shared.schemas.common import success
from devshowcase_shared.schemas.social import CommentCreate, VoteRead, VoteRequest

settings = get_settings()
router = APIRouter()


@router.put("/{project_id}/vote")
async def set_vote(
    project_id: uuid.UUID,
    body: VoteRequest,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    """Upvote (1), downvote (-1) or clear (0) the caller's vote."""
    value = await vote_service.set_vote(session, caller, project_id, body.value)
    return success(VoteRead(project_id=project_id, value=value))


@router.get("/{project_id}/vote")
async def get_user_vote(
    project_id: uuid.UUID,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    value = await vote_service.get_user_vote(session, caller, project_id)
    return success(VoteRead(project_id=project_id, value=value))


@router.get("/{project_id}/comments")
async def list_comments(
    project_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.comments_page_size, ge=1, le=settings.max_page_size, alias="pageSize"
    ),
    session: AsyncSession = Depends(get_session),
):
    """Newest-first page of comments."""
    comments, pagination = await comment_service.list_comments(
        session, project_id, page=page, page_size=page_size
    )
    return success(comments, pagination=pagination)


@router.post("/{project_id}/comments", status_code=201)
async def add_comment(
    project_id: uuid.UUID,
    body: CommentCreate,
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    comment = await comment_service.add_comment(session, caller, project_id, body.content)
    return success(comment)
