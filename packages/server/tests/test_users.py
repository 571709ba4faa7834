"""
Tests for accounts: sign-up validation, registration and credential checks.
"""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from app.core.auth import verify_password
from app.core.errors import NotFound, Unauthorized, ValidationFailed, field_errors_from
from app.models.user import User
from app.services.users import authenticate, get_user, sign_up
from devshowcase_shared.schemas.common import Role
from devshowcase_shared.schemas.users import SignInRequest, SignUpRequest

from conftest import TEST_PASSWORD


def _sign_up(**overrides) -> SignUpRequest:
    data = {
        "fullName": "Ada Lovelace",
        "email": "ada@example.com",
        "password": "Secret123",
        "confirmPassword": "Secret123",
        "agreeToTerms": True,
    }
    data.update(overrides)
    return SignUpRequest.model_validate(data)


# ---------------------------------------------------------------------------
# Unit tests for request schemas
# ---------------------------------------------------------------------------


class TestSignUpValidation:
    def _errors(self, **overrides) -> dict[str, str]:
        with pytest.raises(ValidationError) as exc_info:
            _sign_up(**overrides)
        return {fe.field: fe.message for fe in field_errors_from(exc_info.value.errors())}

    def test_valid(self):
        req = _sign_up(fullName="  Ada  ")
        assert req.full_name == "Ada"

    def test_short_name(self):
        assert self._errors(fullName="A")["fullName"] == "Name must be at least 2 characters"

    def test_invalid_email(self):
        assert "email" in self._errors(email="not-an-email")

    def test_short_password(self):
        errors = self._errors(password="Ab1", confirmPassword="Ab1")
        assert errors["password"] == "Password must be at least 8 characters"

    def test_weak_password(self):
        errors = self._errors(password="alllowercase1", confirmPassword="alllowercase1")
        assert errors["password"] == "Must contain uppercase, lowercase, and a number"

    def test_password_mismatch(self):
        errors = self._errors(confirmPassword="Secret124")
        assert errors == {"confirmPassword": "Passwords do not match"}

    def test_terms_required(self):
        assert self._errors(agreeToTerms=False)["agreeToTerms"] == "You must agree to the terms"

    def test_terms_missing(self):
        data = {
            "fullName": "Ada Lovelace",
            "email": "ada@example.com",
            "password": "Secret123",
            "confirmPassword": "Secret123",
        }
        with pytest.raises(ValidationError, match="You must agree to the terms"):
            SignUpRequest.model_validate(data)

    def test_sign_in_requires_password(self):
        with pytest.raises(ValidationError, match="Password is required"):
            SignInRequest(email="ada@example.com", password="")


# ---------------------------------------------------------------------------
# Service tests
# ---------------------------------------------------------------------------


class TestSignUp:
    async def test_creates_user_role(self, session):
        user = await sign_up(session, _sign_up())
        assert user.role == Role.USER
        assert user.email == "ada@example.com"

        stored = await session.get(User, user.id)
        assert stored.password_hash != "Secret123"
        assert verify_password("Secret123", stored.password_hash)

    async def test_duplicate_email(self, session, factory):
        await factory.user(email="ada@example.com")

        with pytest.raises(ValidationFailed) as exc_info:
            await sign_up(session, _sign_up())
        assert exc_info.value.field_errors[0].field == "email"
        assert exc_info.value.message == "User with this email already exists"


class TestAuthenticate:
    async def test_valid_credentials(self, session, factory):
        user = await factory.user(email="grace@example.com")
        found = await authenticate(session, "grace@example.com", TEST_PASSWORD)
        assert found.id == user.id

    async def test_wrong_password(self, session, factory):
        await factory.user(email="grace@example.com")
        with pytest.raises(Unauthorized, match="Invalid email or password"):
            await authenticate(session, "grace@example.com", "Wrong1234")

    async def test_unknown_email(self, session):
        with pytest.raises(Unauthorized, match="Invalid email or password"):
            await authenticate(session, "nobody@example.com", TEST_PASSWORD)


class TestGetUser:
    async def test_found(self, session, factory):
        user = await factory.admin("Root")
        read = await get_user(session, user.id)
        assert read.role == Role.ADMIN
        assert read.full_name == "Root"

    async def test_missing(self, session):
        with pytest.raises(NotFound):
            await get_user(session, uuid.uuid4())
