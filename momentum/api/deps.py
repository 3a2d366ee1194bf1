"""
Shared FastAPI dependencies. Tests override these to swap in an isolated
database and a fake narrative generator.
"""

from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from momentum.db import async_session
from momentum.services.event_ledger import EventLedger
from momentum.services.openai_client import NarrativeGenerator
from momentum.services.store import DataStore


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


async def get_store(db: AsyncSession = Depends(get_db)) -> DataStore:
    return DataStore(db)


def get_ledger() -> EventLedger:
    return EventLedger(async_session)


@lru_cache()
def get_narrator() -> NarrativeGenerator:
    return NarrativeGenerator()
