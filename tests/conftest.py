import os

# must be set before momentum is imported so the module engine never touches disk
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENV", "test")

import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from momentum.api.deps import get_ledger, get_narrator, get_store
from momentum.db import create_db_and_tables, make_engine, make_session_factory
from momentum.main import app
from momentum.models import Goal, GoalStatus, Habit
from momentum.services.event_ledger import EventLedger
from momentum.services.store import DataStore

from fixtures import USER_ID, FakeNarrator

# in-memory test db, fresh per test
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    engine = make_engine(TEST_DB_URL)
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db: AsyncSession) -> DataStore:
    return DataStore(db)


@pytest.fixture
def ledger(session_factory) -> EventLedger:
    return EventLedger(session_factory)


@pytest.fixture
def narrator() -> FakeNarrator:
    return FakeNarrator()


@pytest.fixture
async def client(store, ledger, narrator) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_narrator] = lambda: narrator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def goal(db: AsyncSession) -> Goal:
    g = Goal(user_id=USER_ID, title="Run a half marathon", status=GoalStatus.active, progress=10)
    db.add(g)
    await db.commit()
    return g


@pytest.fixture
async def habit(db: AsyncSession, goal: Goal) -> Habit:
    h = Habit(user_id=USER_ID, goal_id=goal.id, name="Morning run")
    db.add(h)
    await db.commit()
    return h
