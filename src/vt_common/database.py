"""Async engine, session factory and the unit-of-work helper.

Every balance- or position-mutating operation runs inside `atomic(db)`: the
statements either all commit or all roll back. Storage failures surface as
PersistenceError so callers can render a generic failure.
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings
from src.vt_common.errors import PersistenceError

logger = logging.getLogger(__name__)

# Anything callable that yields a session in an `async with` block.
SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any error.

    SQLAlchemy errors are re-raised as PersistenceError; AppErrors raised by
    business checks inside the block propagate unchanged.
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Storage operation failed, rolled back: %s", exc)
        raise PersistenceError() from exc
    except BaseException:
        await db.rollback()
        raise
