"""
Authentication endpoints.

- Email/Password sign-up & sign-in
- JWT session management (refresh, sign-out)
- Current user lookup
"""

from __future__ import annotations

import time
import uuid
from typing import Optional

import jwt
import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    Caller,
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    get_optional_caller,
    is_jwt_revoked,
    require_signed_in,
    revoke_jwt,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import NotFound, Unauthorized
from app.services import users as user_service
from devshowcase_shared.schemas.common import success
from devshowcase_shared.schemas.users import SignInRequest, SignUpRequest

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    response.set_cookie(
        key=CSRF_COOKIE,
        value=csrf,
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=settings.jwt_expire_minutes * 60,
    )


def _remaining_ttl(payload: dict) -> int:
    exp = payload.get("exp")
    if exp is None:
        return settings.jwt_expire_minutes * 60
    return max(int(exp - time.time()), 1)


# ---------------------------------------------------------------------------
# Email/Password
# ---------------------------------------------------------------------------

@router.post("/sign-up", status_code=201)
async def sign_up(
    body: SignUpRequest,
    session: AsyncSession = Depends(get_session),
):
    """Register a new USER account."""
    user = await user_service.sign_up(session, body)
    return success(user, message="Account created successfully")


@router.post("/sign-in")
async def sign_in(
    body: SignInRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    user = await user_service.authenticate(session, body.email, body.password)

    token, _jti = create_jwt(user_id=user.id, role=user.role)
    _set_session_cookies(response, token, generate_csrf_token())

    return success(user_service.to_user_read(user))


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------

@router.post("/refresh")
async def refresh_session(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Issue a new JWT carrying the user's current role, revoking the old one."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise Unauthorized("No active session")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise Unauthorized("Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise Unauthorized("Session has been revoked")

    try:
        user = await user_service.get_user(session, uuid.UUID(payload["sub"]))
    except (KeyError, ValueError, NotFound):
        raise Unauthorized("Invalid or expired session")

    new_token, _new_jti = create_jwt(user_id=user.id, role=user.role.value)
    if jti:
        await revoke_jwt(jti, ttl_seconds=_remaining_ttl(payload))

    _set_session_cookies(response, new_token, generate_csrf_token())
    return success(user, message="Session refreshed")


@router.post("/sign-out")
async def sign_out(request: Request, response: Response):
    """Invalidate the current session."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = None  # already invalid, just clear cookies
        if payload and payload.get("jti"):
            await revoke_jwt(payload["jti"], ttl_seconds=_remaining_ttl(payload))

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return success(message="Signed out")


@router.get("/me")
async def me(
    caller: Optional[Caller] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_session),
):
    caller = require_signed_in(caller)
    return success(await user_service.get_user(session, caller.user_id))
