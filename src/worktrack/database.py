"""Primary database engine, session dependency, and declarative base.

Key exports:
- Base                 — declarative base for all ORM models
- TimestampedModel     — mixin adding a UUID id plus created_at / updated_at
- JSONType             — JSON column type, JSONB on PostgreSQL
- init_database(...)   — call at startup to initialize the engine
- close_database()     — call at shutdown to dispose the engine
- get_db_session()     — FastAPI dependency yielding one session per request
"""

import logging
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

logger = logging.getLogger(__name__)

JSONType = JSON().with_variant(JSONB(), "postgresql")

# Module-level engine and session factory, set by init_database()
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def utc_now() -> datetime:
    """Return the current timezone-aware UTC timestamp."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base shared by every worktrack ORM model."""


class TimestampedModel:
    """Mixin providing a UUID primary key and audit timestamps."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


async def init_database(
    database_url: str,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    create_schema: bool = False,
) -> None:
    """Initialize the primary database engine and session factory.

    Must be called once at application startup (in the lifespan handler)
    before any request opens a session.

    Args:
        database_url: SQLAlchemy async connection URL.
        pool_size: Optional connection pool size.
        max_overflow: Optional max overflow connections above pool_size.
        create_schema: Create missing tables after connecting.
    """
    global _engine, _session_factory  # noqa: PLW0603

    engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if pool_size is not None:
        engine_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        engine_kwargs["max_overflow"] = max_overflow

    logger.info("Initializing database engine", extra=engine_kwargs)
    _engine = create_async_engine(database_url, **engine_kwargs)
    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    if create_schema:
        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema created")


async def close_database() -> None:
    """Dispose the primary database engine."""
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        logger.info("Disposing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a primary database session.

    The session commits when the request handler returns and rolls back
    if it raises, so every request runs in a single transaction.

    Yields:
        AsyncSession: A session bound to the primary database.

    Raises:
        RuntimeError: If init_database() has not been called yet.
    """
    if _session_factory is None:
        raise RuntimeError(
            "Database has not been initialized. "
            "Call init_database() in the application lifespan handler."
        )

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
