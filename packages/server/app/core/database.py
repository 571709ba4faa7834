"""
Database connection and session management.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()

# Dialects with INSERT ... ON CONFLICT support
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Async engine for ``url``. In-memory SQLite shares one connection."""
    if url.startswith("sqlite") and (url.endswith("://") or ":memory:" in url):
        return create_async_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(settings.database_url, echo=settings.debug)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables (development and tests)."""
    import app.models  # noqa: F401  (register tables on the metadata)

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def upsert_insert(session: AsyncSession, table):
    """Return a dialect-specific INSERT that supports ``on_conflict_do_update``."""
    dialect = session.get_bind().dialect.name
    try:
        return _UPSERT_INSERTS[dialect](table)
    except KeyError:
        raise ValueError(f"Upsert is not supported on {dialect}") from None


@asynccontextmanager
async def get_session_context():
    """Session that commits on success and rolls back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with get_session_context() as session:
        yield session
