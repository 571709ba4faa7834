"""Vote and comment schemas."""

from datetime import datetime
from uuid import UUID

from .common import CamelModel


class VoteRequest(CamelModel):
    value: int  # -1 | 0 | 1; 0 clears the vote


class VoteRead(CamelModel):
    project_id: UUID
    value: int


class CommentCreate(CamelModel):
    content: str


class CommentRead(CamelModel):
    id: UUID
    content: str
    author_name: str
    created_at: datetime
