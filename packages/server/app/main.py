"""
DevShowcase API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import DomainError, field_errors_from
from app.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware
from app.core.auth import close_redis
from app.api.v1 import router as api_v1_router
from app.api.v1.auth import router as auth_router
from devshowcase_shared.schemas.common import failure

settings = get_settings()
log = structlog.get_logger()


def _failure_response(status_code: int, error: str, field_errors=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(failure(error, field_errors)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Every failure leaves the API as ``{"success": false, "error": ...}``."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        return _failure_response(exc.status_code, exc.message, exc.field_errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _failure_response(422, "Invalid data", field_errors_from(exc.errors()))

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        log.exception("storage.unhandled", path=request.url.path)
        return _failure_response(500, "Something went wrong. Please try again.")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="DevShowcase",
        description="Community showcase: submit projects, get approved, collect votes and comments.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (last added runs first)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
    )

    register_exception_handlers(app)

    # Auth routes
    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(session: AsyncSession = Depends(get_session)):
        """Readiness check endpoint: the database answers a trivial query."""
        await session.execute(text("SELECT 1"))
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("DevShowcase starting", debug=settings.debug)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("DevShowcase shutting down")
        await close_redis()

    return app


app = create_app()
