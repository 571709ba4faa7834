"""
Security middleware: CSRF protection, security headers.
"""

from __future__ import annotations

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.auth import CSRF_COOKIE, SESSION_COOKIE
from app.core.config import get_settings
from devshowcase_shared.schemas.common import failure

log = structlog.get_logger()
settings = get_settings()

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
CSRF_HEADER = "X-CSRF-Token"

# Credential endpoints reissue the CSRF cookie.
CSRF_EXEMPT_PATHS = {"/auth/sign-in", "/auth/sign-up"}

# ---------------------------------------------------------------------------
# Security Headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    # /docs pulls Swagger UI from jsDelivr
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https://fastapi.tiangolo.com; "
        "frame-ancestors 'none';"
    ),
}

HSTS_HEADER = ("Strict-Transport-Security", "max-age=63072000; includeSubDomains")


def response_security_headers(debug: bool) -> dict[str, str]:
    headers = dict(SECURITY_HEADERS)
    if not debug:
        headers[HSTS_HEADER[0]] = HSTS_HEADER[1]
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response. HSTS is skipped in debug (plain-HTTP dev)."""

    def __init__(self, app, debug: bool | None = None):
        super().__init__(app)
        self.headers = response_security_headers(settings.debug if debug is None else debug)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in self.headers.items():
            response.headers.setdefault(header, value)
        return response


# ---------------------------------------------------------------------------
# CSRF Protection (Double-Submit Cookie)
# ---------------------------------------------------------------------------

class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie CSRF protection for cookie-authenticated writes.

    The ``ds_csrf`` cookie set at sign-in must be echoed in ``X-CSRF-Token``.
    Skipped for safe methods, bearer-token requests, requests without a
    session cookie and the credential endpoints.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if (
            request.method in SAFE_METHODS
            or request.url.path in CSRF_EXEMPT_PATHS
            or request.headers.get("Authorization")
            or SESSION_COOKIE not in request.cookies
        ):
            return await call_next(request)

        cookie_token = request.cookies.get(CSRF_COOKIE)
        header_token = request.headers.get(CSRF_HEADER)
        if cookie_token and header_token and cookie_token == header_token:
            return await call_next(request)

        log.warning(
            "csrf.rejected",
            path=request.url.path,
            method=request.method,
            has_cookie=bool(cookie_token),
            has_header=bool(header_token),
        )
        return JSONResponse(status_code=403, content=failure("Invalid or missing CSRF token."))
