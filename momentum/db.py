"""
Momentum Database Layer
Async SQLite engine and session factory shared by the API and services.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from momentum.config import settings

logger = logging.getLogger("momentum")


def _get_engine_kwargs(db_url: str) -> dict:
    """Get database-specific engine arguments."""
    if "sqlite" not in db_url:
        # non-SQLite URLs need no special connect_args
        return {"pool_pre_ping": True}
    kwargs = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in db_url or db_url.rstrip("/").endswith("sqlite+aiosqlite:"):
        # One shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    return kwargs


def make_engine(db_url: str, echo: bool = False):
    return create_async_engine(db_url, echo=echo, future=True, **_get_engine_kwargs(db_url))


def make_session_factory(bind) -> sessionmaker:
    return sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = make_engine(settings.db_url, echo=settings.env == "dev")
async_session = make_session_factory(engine)


async def create_db_and_tables(bind=None):
    """Initialize database schema."""
    import momentum.models  # noqa: F401  register tables on SQLModel.metadata

    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("database_tables_created", extra={"db_url": str(bind.url)})


async def verify_database_connection() -> bool:
    try:
        async with async_session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("database_unreachable", extra={"error": str(e)})
        return False
