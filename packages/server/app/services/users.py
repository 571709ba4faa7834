"""
Account service: sign-up, credential checks, user lookup.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password, verify_password
from app.core.errors import NotFound, Unauthorized, ValidationFailed, storage_failure
from app.models.user import User
from devshowcase_shared.schemas.common import Role
from devshowcase_shared.schemas.users import SignUpRequest, UserRead

log = structlog.get_logger()


def to_user_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        role=Role(user.role),
        created_at=user.created_at,
    )


async def sign_up(session: AsyncSession, req: SignUpRequest) -> UserRead:
    """Create a USER account. Emails are unique."""
    with storage_failure("An error occurred during sign up"):
        existing = await session.execute(select(User).where(User.email == req.email))
        if existing.scalar_one_or_none():
            raise ValidationFailed.for_field("email", "User with this email already exists")

        user = User(
            full_name=req.full_name,
            email=req.email,
            password_hash=hash_password(req.password),
            role=Role.USER.value,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)

    log.info("user.registered", user_id=str(user.id), email=user.email)
    return to_user_read(user)


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    """Return the user for valid credentials, else Unauthorized."""
    with storage_failure("An error occurred during sign in"):
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.password_hash):
        log.warning("auth.login_failure", email=email)
        raise Unauthorized("Invalid email or password")

    log.info("auth.login_success", user_id=str(user.id))
    return user


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> UserRead:
    with storage_failure("Failed to fetch user"):
        user = await session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return to_user_read(user)
