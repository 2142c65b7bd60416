"""
Database Connection Management
One async engine per process, one session per request
Source: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from claimportal.api.config import settings
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def _engine_options() -> dict[str, Any]:
    # NullPool rejects the sizing arguments
    if settings.is_testing:
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }


def get_engine() -> AsyncEngine:
    """Lazily create the process-wide engine."""
    global _engine
    if _engine is None:
        host = settings.database_url.rsplit("@", 1)[-1]
        _engine = create_async_engine(settings.database_url, echo=settings.DEBUG, **_engine_options())
        logger.info(f"Database engine ready for {host}")
    return _engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the app and by the test suite."""
    # Objects stay readable after commit so responses can be built from them
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        _session_maker = build_session_maker(get_engine())
    return _session_maker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency.

    The transaction commits after the handler returns; any exception rolls it
    back and propagates.

    Example:
        >>> @router.get("/claims")
        >>> async def list_claims(session: AsyncSession = Depends(get_session)):
        >>>     ...
    """
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Rolled back request transaction: {e}")
            raise


async def close_db_connection() -> None:
    global _engine, _session_maker
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_maker = None
    logger.info("Database engine disposed")


async def check_db_connection() -> bool:
    """Run `SELECT 1`; False when the database cannot be reached."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database ping failed: {e}")
        return False
    return True
