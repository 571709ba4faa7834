"""
Domain errors raised by the service layer.

Each maps onto the failure envelope ``{"success": false, "error": ...}``
at the HTTP boundary (see ``app.main``). Services never raise HTTPException.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from devshowcase_shared.schemas.common import FieldError

log = structlog.get_logger()

_LOCATION_PREFIXES = {"body", "query", "path"}


class DomainError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.field_errors: list[FieldError] = []


class Unauthorized(DomainError):
    """No session, or the session lacks the required role."""

    def __init__(self, message: str = "Unauthorized", *, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class NotFound(DomainError):
    """Missing entity, or one the caller may not touch."""

    status_code = 404


class ValidationFailed(DomainError):
    status_code = 422

    def __init__(self, message: str = "Invalid data", field_errors: Optional[Iterable[FieldError]] = None):
        super().__init__(message)
        self.field_errors = list(field_errors or [])

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls(message, [FieldError(field=field, message=message)])


class UnknownFailure(DomainError):
    status_code = 500


def field_errors_from(errors: Iterable[dict]) -> list[FieldError]:
    """Collapse pydantic error dicts into ordered (field, message) pairs.

    Only the first error reported for a field is kept.
    """
    first: dict[str, str] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in _LOCATION_PREFIXES]
        field = loc[0] if loc else "__root__"
        first.setdefault(field, err.get("msg", "Invalid value"))
    return [FieldError(field=field, message=message) for field, message in first.items()]


@contextmanager
def storage_failure(message: str, **context) -> Iterator[None]:
    """Turn storage-layer exceptions into ``UnknownFailure(message)``."""
    try:
        yield
    except SQLAlchemyError as exc:
        log.exception("storage.failure", error_message=message, **context)
        raise UnknownFailure(message) from exc
