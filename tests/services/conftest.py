"""Service test fixtures — async SQLite store, in-memory store, engine, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database and a fresh in-memory store
    - `store` is parametrized: engine tests run against both CodeStore implementations
    - The route clock is pinned through the get_now dependency override
    - app.state.lifecycle_engine is set directly (ASGITransport does not run lifespan)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, exercises ON CONFLICT / RETURNING paths
    - file_db_manager: file-backed SQLite so gathered calls run on separate connections
    - DatabaseSessionManager built via __new__: reuses the test engine without a second pool
    - YieldingCodeStore forces an await between every read and write, so gathered tasks
      interleave deterministically and the compare-and-set is the only thing deciding winners
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from entrypass.api.dependencies import get_now
from entrypass.db.base import Base
from entrypass.infrastructure.database import DatabaseSessionManager
from entrypass.infrastructure.memory_code_store import InMemoryCodeStore
from entrypass.infrastructure.sql_code_store import SqlCodeStore
from entrypass.main import app
from entrypass.services.lifecycle_engine import LifecycleEngine
import entrypass.models  # noqa: F401

from tests.services.fakes import FrozenClock, YieldingCodeStore


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_db_manager(test_engine):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    return manager


@pytest.fixture
async def sql_store(test_db_manager):
    return SqlCodeStore(test_db_manager, batch_size=2)


@pytest.fixture
def memory_store():
    return InMemoryCodeStore()


@pytest.fixture
def yielding_store():
    return YieldingCodeStore()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Each engine/store test runs once per CodeStore implementation."""
    if request.param == "memory":
        return InMemoryCodeStore()
    return request.getfixturevalue("sql_store")


@pytest.fixture
def lifecycle(store):
    return LifecycleEngine(store)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
async def client(memory_store, clock):
    """FastAPI test client backed by an in-memory store and a pinned clock."""
    app.state.lifecycle_engine = LifecycleEngine(memory_store)
    app.dependency_overrides[get_now] = lambda: clock.now

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    app.state.lifecycle_engine = None


@pytest.fixture
async def file_db_manager(tmp_path):
    """File-backed SQLite: each session gets its own pooled connection."""
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path}/entrypass.db")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()
