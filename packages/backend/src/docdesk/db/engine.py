"""Data-access handle — the shared async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode. create_async_engine owns a connection pool,
and async_sessionmaker hands out one AsyncSession per request. The engine is
safe to share between concurrent requests; sessions are not.

One handle per process:
- The app context builds its handle lazily on first use, through
  acquire_handle().
- Outside production, acquire_handle() keeps the handle in a registry keyed
  by database URL, so an app that gets rebuilt in the same process (reload,
  tests creating several apps) reuses the same pool instead of leaking a new
  one each time.
- In production nothing is retained; the process's single app context owns
  its handle for its whole lifetime.
- Contexts share a retained handle. Each acquire_handle() takes a reference
  and release_handle() gives it back; the last release disposes it.
- dispose() closes pooled connections and drops the handle from the
  registry, whoever else still holds it.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from docdesk.config import Settings
from docdesk.db.models import Base

logger = structlog.get_logger()

# Handles retained across app rebuilds (non-production only).
_retained: dict[str, "DataAccessHandle"] = {}


def _apply_log_levels(log_levels: tuple[str, ...]) -> None:
    """Point SQLAlchemy's stdlib loggers at the requested detail.

    "query" is handled by engine echo; this sets the floor for the rest.
    """
    engine_level = logging.WARNING if "warn" in log_levels else logging.ERROR
    if "query" not in log_levels:
        logging.getLogger("sqlalchemy.engine").setLevel(engine_level)
    logging.getLogger("sqlalchemy.pool").setLevel(engine_level)


class DataAccessHandle:
    """One engine + session factory, shared by every request handler."""

    def __init__(self, settings: Settings):
        self.url = settings.database_url
        self.log_levels = settings.db_log_levels
        _apply_log_levels(self.log_levels)

        engine_kwargs = {"echo": "query" in self.log_levels}
        # SQLite uses a single-connection pool; sizing args don't apply.
        if make_url(self.url).get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=True,
            )

        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.disposed = False
        self.refs = 0

        logger.info(
            "db.handle_created",
            backend=make_url(self.url).get_backend_name(),
            log_levels=list(self.log_levels),
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; roll back on error, always close."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create every table in the model metadata (idempotent)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close pooled connections and forget this handle."""
        if _retained.get(self.url) is self:
            del _retained[self.url]
        if not self.disposed:
            await self.engine.dispose()
            self.disposed = True
            logger.info("db.handle_disposed")


def acquire_handle(settings: Settings) -> DataAccessHandle:
    """Return the handle for these settings, constructing it if needed.

    Outside production a live handle for the same database URL is reused.
    Every call takes a reference; pair it with release_handle().
    Construction errors (bad URL, missing driver) propagate to the caller.
    """
    if settings.is_production:
        handle = DataAccessHandle(settings)
    else:
        handle = _retained.get(settings.database_url)
        if handle is None or handle.disposed:
            handle = DataAccessHandle(settings)
            _retained[settings.database_url] = handle
    handle.refs += 1
    return handle


async def release_handle(handle: DataAccessHandle) -> None:
    """Give back a reference from acquire_handle(); dispose on the last one."""
    handle.refs = max(0, handle.refs - 1)
    if handle.refs == 0:
        await handle.dispose()


def retained_handles() -> dict[str, DataAccessHandle]:
    """Snapshot of the reuse registry (for diagnostics and tests)."""
    return dict(_retained)
