"""Account schemas: sign-up, sign-in, current user."""

from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel, Role

PASSWORD_MIN_LENGTH = 8
PASSWORD_STRENGTH = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class SignUpRequest(CamelModel):
    full_name: str
    email: EmailStr
    password: str
    confirm_password: str
    agree_to_terms: bool = Field(default=False, validate_default=True)

    @field_validator("full_name")
    @classmethod
    def _validate_full_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise PydanticCustomError("too_short", "Name must be at least 2 characters")
        if len(v) > 50:
            raise PydanticCustomError("too_long", "Name must be at most 50 characters")
        return v

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "too_short",
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
            )
        if not PASSWORD_STRENGTH.match(v):
            raise PydanticCustomError(
                "weak_password", "Must contain uppercase, lowercase, and a number"
            )
        return v

    @field_validator("confirm_password")
    @classmethod
    def _validate_confirm_password(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise PydanticCustomError("missing", "Please confirm your password")
        # password is absent from info.data when it failed its own checks
        password = info.data.get("password")
        if password is not None and v != password:
            raise PydanticCustomError("mismatch", "Passwords do not match")
        return v

    @field_validator("agree_to_terms")
    @classmethod
    def _validate_agree_to_terms(cls, v: bool) -> bool:
        if v is not True:
            raise PydanticCustomError("terms", "You must agree to the terms")
        return v


class SignInRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        if not v:
            raise PydanticCustomError("missing", "Password is required")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserRead(CamelModel):
    id: UUID
    full_name: str
    email: str
    role: Role
    created_at: datetime
