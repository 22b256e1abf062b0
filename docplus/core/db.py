from collections.abc import AsyncGenerator
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from docplus.core.config import settings


def to_async_url(database_url: str) -> str:
    """Map a sync database URL onto its async driver.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so those are
    stripped; SSL is enabled via connect_args instead. sqlite URLs go to aiosqlite.
    """
    if database_url.startswith("sqlite"):
        # sqlite URLs have no netloc; urlunparse would drop the "//"
        if database_url.startswith("sqlite://"):
            return "sqlite+aiosqlite://" + database_url[len("sqlite://"):]
        return database_url
    parsed = urlparse(database_url)
    scheme = "postgresql+asyncpg" if parsed.scheme in ("postgresql", "postgres") else parsed.scheme
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse((scheme, parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))


def _engine_kwargs(async_url: str) -> dict[str, Any]:
    if async_url.startswith("sqlite"):
        # Single shared connection so an in-memory database survives across sessions
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "connect_args": {"ssl": settings.env == "production"},
    }


async_database_url = to_async_url(settings.database_url)

engine = create_async_engine(
    async_database_url,
    echo=settings.env == "development",
    **_engine_kwargs(async_database_url),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One transaction per request: commit on success, roll back on any error."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
