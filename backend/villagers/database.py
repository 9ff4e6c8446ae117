"""
The Villagers Backend — Database Session Management
=====================================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency and the
       dialect-aware "insert, skip on conflict" helper.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by services that need atomic find-or-create.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size / max_overflow / pool_pre_ping come from settings.
    SQLite (tests, local hacking) uses SQLAlchemy's default pool, which does
    not accept those arguments.
"""

import functools
import logging
from typing import Any, AsyncGenerator, Dict, Iterable, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from villagers.config import settings
from villagers.exceptions import DatabaseError

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine, passing pool options only where supported."""
    options: Dict[str, Any] = {
        # Echo SQL queries in DEBUG mode for development visibility
        "echo": settings.log_level == "DEBUG",
    }
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(database_url, **options)


engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: response shaping reads attributes after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with the shared metadata, which Alembic reads
    for migrations and tests use for `create_all`.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)

    Every write a request makes (area + villages, user + story, ...) lands in
    this one transaction, so a failure halfway leaves nothing behind.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Atomic Insert-Or-Skip ─────────────────────────────────────────────────
def _insert_for(session: AsyncSession, table):
    """Pick the dialect-specific INSERT construct that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported for dialect '{dialect}'")


async def insert_ignore_conflicts(
    session: AsyncSession,
    model,
    rows: Iterable[Dict[str, Any]],
    conflict_columns: Sequence[str],
) -> None:
    """
    Insert rows, silently skipping any that collide on `conflict_columns`.

    What:  INSERT ... ON CONFLICT (<conflict_columns>) DO NOTHING.
    Who:   PincodeService (areas, villages) and ContentService (users).

    Replaces "SELECT, then INSERT if missing": two concurrent requests for the
    same key both succeed and the database keeps exactly one row. Callers
    select the row back afterwards.
    """
    rows = list(rows)
    if not rows:
        return
    stmt = _insert_for(session, model.__table__).on_conflict_do_nothing(
        index_elements=list(conflict_columns)
    )
    # executemany form: column defaults (id, created_at) run once per row
    await session.execute(stmt, rows)


# ── Error Translation ─────────────────────────────────────────────────────
def translate_database_errors(operation: str):
    """
    Wrap a service coroutine so SQLAlchemy failures surface as DatabaseError.

    Application exceptions (NotFoundError, ConflictError, ...) pass through
    untouched. The original exception is logged with its traceback and kept
    as __cause__; the client only sees the generic 500.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
                raise DatabaseError(
                    context={"operation": operation, "original_error": type(e).__name__},
                ) from e

        return wrapper

    return decorator


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close all pooled connections; called from the lifespan on shutdown."""
    await engine.dispose()
