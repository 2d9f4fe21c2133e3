"""Database connection provider.

The backend is chosen once from settings at process start: the managed
database in production (when configured), otherwise the local URL.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from atlas.config import Settings, get_settings
from atlas.errors import ConfigurationError
from atlas.storage.models import Base

logger = logging.getLogger(__name__)


def resolve_database_url(settings: Settings) -> str:
    """Pick the managed URL in production, the local URL otherwise."""
    db = settings.database
    if db.environment == "production" and db.managed_url:
        return db.managed_url
    if not db.url:
        raise ConfigurationError("Database URL is not set")
    return db.url


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.endswith("://"))


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Async engine plus session factory for one resolved URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {"echo": echo}
        if _is_memory_sqlite(url):
            # One shared connection, otherwise every session sees a fresh empty database
            kwargs["poolclass"] = StaticPool
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        url = resolve_database_url(settings)
        logger.info("Using %s database backend", url.split(":", 1)[0])
        return cls(url, echo=settings.database.echo)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


# Module-level singleton used by the CLI
_database: Optional[Database] = None


def get_database() -> Database:
    global _database
    if _database is None:
        _database = Database.from_settings(get_settings())
    return _database


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_database().session() as session:
        yield session


async def init_db() -> None:
    await get_database().create_all()


async def close_db() -> None:
    global _database
    if _database is not None:
        await _database.dispose()
        _database = None
