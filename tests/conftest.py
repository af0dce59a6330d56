from datetime import timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carpool.db.base import Base
import carpool.models  # noqa: F401
from carpool.services.carpool_store import MemoryCarpoolStore, SqlCarpoolStore
from carpool.services.carpools import CarpoolService


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed SQLite so concurrent sessions get their own connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'carpool.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def memory_store():
    return MemoryCarpoolStore()


@pytest_asyncio.fixture
async def sql_store(session_factory):
    return SqlCarpoolStore(session_factory)


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, session_factory):
    if request.param == "memory":
        return MemoryCarpoolStore()
    return SqlCarpoolStore(session_factory)


@pytest.fixture
def service(memory_store):
    return CarpoolService(memory_store, tz=timezone.utc)
