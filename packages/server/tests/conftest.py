"""
Shared fixtures: an in-memory SQLite database per test and row factories.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

import bcrypt
import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.auth import Caller
from app.core.database import build_engine, init_db
from app.models.category import Category, ProjectCategory
from app.models.comment import Comment
from app.models.project import Project
from app.models.user import User
from app.models.vote import Vote
from app.services.projects import generate_slug
from devshowcase_shared.schemas.common import ProjectStatus, Role

TEST_PASSWORD = "Passw0rd!"
# Low cost factor keeps the suite fast; verify_password accepts any cost.
TEST_PASSWORD_HASH = bcrypt.hashpw(TEST_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()

DEFAULT_DESCRIPTION = "Demo project used by the test-suite."


class Factory:
    """Creates committed rows directly, bypassing the service layer."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def user(
        self,
        full_name: str = "Ada Lovelace",
        *,
        email: Optional[str] = None,
        role: Role = Role.USER,
    ) -> User:
        return await self._save(
            User(
                full_name=full_name,
                email=email or f"{uuid.uuid4().hex[:10]}@example.com",
                password_hash=TEST_PASSWORD_HASH,
                role=role.value,
            )
        )

    async def admin(self, full_name: str = "Grace Admin") -> User:
        return await self.user(full_name, role=Role.ADMIN)

    async def category(self, name: Optional[str] = None, color: str = "bg-blue-500/15") -> Category:
        return await self._save(Category(name=name or f"Cat {uuid.uuid4().hex[:6]}", color=color))

    async def project(
        self,
        author: User,
        title: str = "Sample Project",
        *,
        status: ProjectStatus = ProjectStatus.APPROVED,
        description: str = DEFAULT_DESCRIPTION,
        categories: Iterable[Category] = (),
        created_at: Optional[datetime] = None,
    ) -> Project:
        kwargs = {}
        if created_at is not None:
            kwargs["created_at"] = created_at
            kwargs["updated_at"] = created_at
        project = await self._save(
            Project(
                title=title,
                slug=generate_slug(title),
                description=description,
                github_url="https://github.com/example/repo",
                status=status.value,
                author_id=author.id,
                **kwargs,
            )
        )
        for category in categories:
            self.session.add(ProjectCategory(project_id=project.id, category_id=category.id))
        await self.session.commit()
        return project

    async def vote(self, user: User, project: Project, value: int) -> Vote:
        return await self._save(Vote(user_id=user.id, project_id=project.id, value=value))

    async def comment(
        self,
        user: User,
        project: Project,
        content: str = "Nice work!",
        *,
        created_at: Optional[datetime] = None,
    ) -> Comment:
        return await self._save(
            Comment(
                content=content,
                user_id=user.id,
                project_id=project.id,
                created_at=created_at or datetime.now(timezone.utc),
            )
        )

    @staticmethod
    def caller(user: User) -> Caller:
        return Caller(user_id=user.id, role=Role(user.role))


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def factory(session) -> Factory:
    return Factory(session)
