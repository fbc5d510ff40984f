"""
Postbox Backend — Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   A `Database` object owns the engine and session factory. The app
       factory constructs one, stores it on `app.state.db`, and the lifespan
       disposes it at shutdown. Handlers receive a per-request session that
       rolls back on error.
Who:   Route handlers via `Depends(get_db_session)`; tests build their own
       `Database` against in-memory SQLite.

Transaction Boundary:
    One request = one transaction. Creating a message and prepending it to
    its author's list are two writes in the same session, committed together
    by the service before the route builds its response. A failure in either
    write, or in the commit itself, raises out of the handler and the session
    below rolls both back. Dependency teardown may run after the response is
    sent, so it never carries the only commit of a write.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from postbox.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object, which Alembic reads for migrations and
    `Database.create_all()` uses to bootstrap test databases.
    """
    pass


class Database:
    """
    Explicitly constructed store client with a defined lifecycle.

    Lifecycle:
        Database(settings)  → engine + session factory created (lazy connect)
        await db.ping()     → optional connectivity check (health checks)
        await db.dispose()  → all pooled connections closed (shutdown)
    """

    def __init__(self, settings: Settings):
        self.url = settings.database_url
        self.engine: AsyncEngine = self._create_engine(settings)

        # expire_on_commit=False: attributes stay readable after commit,
        # which the response serialization relies on
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @staticmethod
    def _create_engine(settings: Settings) -> AsyncEngine:
        echo = settings.log_level == "DEBUG"
        if settings.is_sqlite:
            # A single shared connection so in-memory databases survive
            # across sessions; SQLite has no server-side pool to size
            return create_async_engine(
                settings.database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=echo,
            )
        return create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
            echo=echo,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yields a session and owns its transaction.

        On success: commit whatever is still pending (nothing, for the
        message and user services). On any exception: rollback and re-raise
        so the global error handler can respond. Always: close.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                # Any error, DB or not, undoes every write of this request
                await session.rollback()
                raise
            finally:
                await session.close()

    async def ping(self) -> None:
        """Runs SELECT 1; raises whatever the driver raises when unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Creates every table known to `Base.metadata` (tests and local dev)."""
        # Models register themselves on import
        from postbox.models import message, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Gracefully closes all connections in the pool."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


# ── Dependencies ──────────────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """FastAPI dependency returning the app-owned `Database`."""
    return request.app.state.db


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/messages")
        async def list_messages(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.db
    async with database.session() as session:
        yield session
