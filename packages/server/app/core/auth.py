"""
Authentication and Authorization for DevShowcase.

Supports:
- Email/Password credentials (bcrypt)
- JWT sessions, from the ``ds_session`` cookie or a Bearer header
- JWT revocation list in Redis (sign-out); this module owns the Redis client
- Explicit ``Caller`` values passed into every service call
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import redis.asyncio as redis
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from app.core.config import get_settings
from app.core.errors import Unauthorized
from devshowcase_shared.schemas.common import Role

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "ds_session"
CSRF_COOKIE = "ds_csrf"

bearer_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt (cost factor from settings)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

REVOKED_KEY_PREFIX = "jwt:revoked:"

_revocation_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Lazily connect to the Redis instance holding revoked token ids."""
    global _revocation_client
    if _revocation_client is None:
        _revocation_client = redis.from_url(settings.redis_url, decode_responses=True)
    return _revocation_client


async def close_redis() -> None:
    global _revocation_client
    if _revocation_client is not None:
        await _revocation_client.aclose()
        _revocation_client = None


async def revoke_jwt(jti: str, ttl_seconds: int = 3600) -> None:
    """Remember a signed-out token id until the token would have expired anyway."""
    client = await get_redis()
    await client.setex(f"{REVOKED_KEY_PREFIX}{jti}", ttl_seconds, "1")


async def is_jwt_revoked(jti: str) -> bool:
    client = await get_redis()
    return await client.exists(f"{REVOKED_KEY_PREFIX}{jti}") > 0


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Caller
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Caller:
    """The authenticated principal of a request."""

    user_id: uuid.UUID
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_signed_in(caller: Optional[Caller], message: str = "Unauthorized") -> Caller:
    if caller is None:
        raise Unauthorized(message)
    return caller


def require_admin(caller: Optional[Caller]) -> Caller:
    if caller is None:
        raise Unauthorized()
    if not caller.is_admin:
        log.warning("auth.admin_required", user_id=str(caller.user_id))
        raise Unauthorized(status_code=403)
    return caller


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


async def get_optional_caller(
    request: Request,
    authorization: Optional[str] = Depends(bearer_header),
) -> Optional[Caller]:
    """Resolve the request's Caller, or None for anonymous / invalid sessions."""
    token = _extract_token(request, authorization)
    if not token:
        return None

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        log.info("auth.invalid_session")
        return None

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        log.info("auth.revoked_session", jti=jti)
        return None

    try:
        caller = Caller(user_id=uuid.UUID(payload["sub"]), role=Role(payload.get("role")))
    except (KeyError, ValueError):
        log.info("auth.malformed_session")
        return None

    request.state.caller = caller
    return caller
