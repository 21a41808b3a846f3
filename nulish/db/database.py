from __future__ import annotations

"""Database setup for SQLAlchemy with async drivers (aiosqlite / psycopg)."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Dict

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import CreateColumn

from nulish.core.settings import get_settings

settings = get_settings()
DATABASE_URL = settings.database_uri


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def make_engine(url: str) -> AsyncEngine:
    """Create an async engine; server databases get a resilient pool.

    - pool_pre_ping: validate connections before using
    - pool_recycle: proactively recycle connections to avoid server-side timeouts
    """
    kwargs: Dict[str, Any] = {"echo": False}
    if not url.startswith("sqlite"):
        kwargs.update(pool_pre_ping=True, pool_recycle=1800)
    return create_async_engine(url, **kwargs)


engine: AsyncEngine = make_engine(DATABASE_URL)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


@asynccontextmanager
async def get_session(
    sessionmaker: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Provide a transactional scope around a series of operations."""

    async with (sessionmaker or SessionLocal)() as session:  # pragma: no cover - simple wrapper
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(target: AsyncEngine | None = None, *, max_attempts: int = 5, delay: int = 5) -> None:
    """Create tables and add missing columns if necessary.

    Attempts to connect to the database multiple times with a delay
    between attempts. If all attempts fail, the last exception is propagated.
    """

    # Import models to ensure Base.metadata is populated
    from . import models  # noqa: F401

    def sync_init(sync_conn):  # type: ignore[override]
        Base.metadata.create_all(sync_conn)
        inspector = inspect(sync_conn)
        for table in Base.metadata.tables.values():
            existing = {col["name"] for col in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name not in existing:
                    col_ddl = CreateColumn(column.copy()).compile(
                        dialect=sync_conn.dialect
                    )
                    sync_conn.execute(
                        text(f"ALTER TABLE {table.name} ADD COLUMN {col_ddl}")
                    )

    target = target or engine
    logger = logging.getLogger(__name__)
    last_exc: SQLAlchemyError | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            async with target.begin() as conn:
                await conn.run_sync(sync_init)
            logger.info("DB schema ensured (attempt %d)", attempt)
            return
        except SQLAlchemyError as exc:  # pragma: no cover - best effort
            last_exc = exc
            if attempt == max_attempts:
                break
            logger.warning(
                "DB init attempt %d failed: %s. Retrying in %ds", attempt, exc, delay
            )
            await asyncio.sleep(delay)

    logger.error("DB init failed after %d attempts", max_attempts)
    if last_exc is not None:
        raise last_exc


__all__ = ["Base", "engine", "SessionLocal", "make_engine", "get_session", "init_db"]
