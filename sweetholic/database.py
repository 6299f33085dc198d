"""
Async SQLAlchemy engine + session factory.

The engine is created once at import time and reused across all requests.
Two ways of getting a session:

  get_db()       — request-scoped session for single-statement writes and
                   reads; commits when the request succeeds.
  transaction()  — dedicated session for multi-row writes; commits on
                   success, rolls back on any exception, always released.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from sweetholic.config import settings
from sweetholic.errors import TransactionError
from sweetholic.telemetry import TRANSACTION_ROLLBACKS_TOTAL

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    options = {"pool_pre_ping": True, "echo": False}
    if url.startswith("sqlite"):
        # Local/test databases: one short-lived connection per session
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    return options


engine = create_async_engine(settings.db_url, **_engine_options(settings.db_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def init_db() -> None:
    """Create all tables if they don't exist (idempotent)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def transaction(name: str) -> AsyncIterator[AsyncSession]:
    """
    Open a dedicated session for an all-or-nothing write.

    Every statement issued inside the block belongs to one transaction.
    Domain errors raised mid-way propagate unchanged after the rollback;
    storage failures are surfaced as TransactionError.
    """
    async with AsyncSessionLocal() as session:
        try:
            async with session.begin():
                yield session
        except SQLAlchemyError as exc:
            TRANSACTION_ROLLBACKS_TOTAL.labels(operation=name).inc()
            logger.exception("Transaction %s rolled back", name)
            raise TransactionError(f"Server error during {name}") from exc
        except Exception:
            TRANSACTION_ROLLBACKS_TOTAL.labels(operation=name).inc()
            logger.warning("Transaction %s rolled back", name)
            raise
