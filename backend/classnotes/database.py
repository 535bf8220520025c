"""
ClassNotes Backend - Database Handle & Session Management
==========================================================

What:  Declarative base, the `Database` handle (async engine + session
       factory) and the per-request session dependency.
How:   create_app() constructs one Database from Settings and stores it on
       `app.state.database`. Route handlers receive sessions through
       get_db_session(), which commits on success and rolls back on error.
Who:   Routes (via Depends), the seed command, Alembic and tests.

Connection Pooling:
    pool_size / max_overflow come from Settings. SQLite URLs (used by the
    test suite) skip pool arguments since aiosqlite manages its own pool.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from classnotes.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic uses for
    migrations and Database.create_all() uses in tests.
    """
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Lifecycle:
        1. Built by create_app() (or the seed command) from Settings
        2. Hands out sessions via session()
        3. dispose() closes pooled connections at shutdown
    """

    def __init__(self, settings: Settings):
        engine_kwargs = {
            # Echo SQL only when debugging
            "echo": settings.log_level == "DEBUG",
        }
        if not settings.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(settings.database_url, **engine_kwargs)
        if settings.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: objects stay readable after the
        # dependency commits, outside of any lazy-load context
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Transactional session scope.

        Commits when the block exits normally, rolls back and re-raises
        on any exception, and always closes the session.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_all(self) -> None:
        """Create every table known to Base.metadata (tests and first-run seeding)."""
        # Imported for its side effect of registering the models
        import classnotes.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Gracefully close all pooled connections."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/classes")
        async def list_classes(db: AsyncSession = Depends(get_db_session)):
            ...

    Raises:
        Any database exceptions propagate to the global error handlers.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
