"""Database configuration and session management for the MVC layout."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from memoria.config.settings import settings

# Import models so they are attached to Base.metadata before table creation
from memoria.models import Base  # noqa: F401 - ensures metadata is registered
from memoria.models import chat_message  # noqa: F401
from memoria.models import log  # noqa: F401
from memoria.models import recording  # noqa: F401

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _ensure_sqlite_directory(url: str) -> None:
    """Create the parent folder of a file-backed SQLite database."""

    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def _create_engine() -> AsyncEngine:
    """Create an async engine with backend-appropriate pooling."""

    url = settings.database.url
    engine_options: dict[str, Any] = {
        "echo": settings.debug,
        "future": True,
    }

    if _is_sqlite(url):
        _ensure_sqlite_directory(url)
        engine_options["connect_args"] = {"check_same_thread": False}
        engine_options["poolclass"] = NullPool
    else:
        engine_options["pool_pre_ping"] = True

    return create_async_engine(url, **engine_options)


engine: AsyncEngine = _create_engine()

SessionFactory = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Async context manager that yields a configured SQLAlchemy session."""

    async with SessionFactory() as session:
        yield session


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency-compatible generator yielding a configured session."""

    async with session_scope() as session:
        yield session


async def init_models() -> None:
    """Create database tables if they do not exist."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Ensured database tables at %s", engine.url.render_as_string(hide_password=True))


async def dispose_engine() -> None:
    """Dispose of the engine and release pooled connections."""

    await engine.dispose()
