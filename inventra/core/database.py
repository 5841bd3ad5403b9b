"""
Async database setup with SQLAlchemy 2.0.
Provides connection pooling, session management, the atomic unit of work
and the base model.
"""
import asyncio
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine
)
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import MetaData, DateTime, Uuid, func, text
from sqlalchemy.pool import NullPool

from inventra.core.config import settings
from inventra.logging_config import get_logger

logger = get_logger("database")

T = TypeVar("T")


# Naming convention for constraints
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""
    metadata = metadata

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False
    )


class UUIDMixin:
    """UUID primary key for entities without a meaningful sequence."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """Tracks the last modification time of mutable rows."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False
    )


# Global engine and session factory
engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the database engine."""
    global engine

    if engine is None:
        if "sqlite" in settings.database_url:
            # SQLite doesn't support connection pooling
            engine = create_async_engine(
                settings.database_url,
                echo=settings.db_echo,
                poolclass=NullPool,
                connect_args={"check_same_thread": False}
            )
        else:
            engine = create_async_engine(
                settings.database_url,
                echo=settings.db_echo,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=3600,   # Recycle connections after 1 hour
            )

    return engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global AsyncSessionLocal

    if AsyncSessionLocal is None:
        AsyncSessionLocal = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    return AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI endpoints.

    The session is handed out without an open transaction; ledger operations
    open their own unit of work with ``run_in_transaction``.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        yield session


# deadlock_detected, serialization_failure, lock_not_available
RETRYABLE_SQLSTATES = frozenset({"40P01", "40001", "55P03"})


def sqlstate_of(exc: DBAPIError) -> str | None:
    """SQLSTATE of the driver error (``sqlstate`` on asyncpg, ``pgcode`` on psycopg2)."""
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, OperationalError):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    # asyncpg lock failures arrive as plain DBAPIError
    return exc.connection_invalidated or sqlstate_of(exc) in RETRYABLE_SQLSTATES


async def run_in_transaction(
    session: AsyncSession,
    operation: Callable[[AsyncSession], Awaitable[T]],
    *,
    attempts: int | None = None,
    backoff_base: float | None = None,
) -> T:
    """
    Execute ``operation`` as one atomic unit of work.

    Commits when the operation returns, rolls back on any exception. Store
    lock failures (SQLite "database is locked", PostgreSQL deadlocks,
    serialization failures and lock timeouts by SQLSTATE) and invalidated
    connections are retried from scratch with exponential backoff; all other
    errors propagate on the first attempt.
    """
    attempts = attempts or settings.txn_retry_attempts
    backoff_base = settings.txn_retry_backoff if backoff_base is None else backoff_base

    for attempt in range(attempts):
        try:
            async with session.begin():
                return await operation(session)
        except (OperationalError, DBAPIError) as exc:
            if not _is_retryable(exc) or attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(
                f"Unit of work aborted by the store, retrying in {delay:.2f}s "
                f"(attempt {attempt + 1}/{attempts}): {type(exc).__name__}"
            )
            await asyncio.sleep(delay)

    raise RuntimeError("run_in_transaction called with attempts < 1")


async def init_db() -> None:
    """Initialize database tables. Use Alembic in production."""
    engine = get_engine()
    async with engine.begin() as conn:
        # Import all models to ensure they're registered
        from inventra.models import user, branch, product, stock, invoice  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
        engine = None

    AsyncSessionLocal = None


async def check_db_connection() -> bool:
    """Health check for database connection."""
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database health check failed")
        return False
