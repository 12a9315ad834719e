from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from annotations.application.significance import SignificanceGate
from main import app
from shared.config import Settings
from shared.dependencies import get_db, get_redis, get_significance_gate
from shared.infrastructure.database import Base

import annotations.infrastructure.models  # noqa: F401

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 1, 1, 12, 5, tzinfo=timezone.utc)
T2 = datetime(2026, 1, 1, 12, 10, tzinfo=timezone.utc)


class FakeRedis:
    """Records published messages instead of talking to a server."""

    def __init__(self):
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, data: str) -> int:
        self.published.append((channel, data))
        return 0


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'linetrace.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db(test_engine):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def gate():
    gate = SignificanceGate(Settings(SIGNIFICANCE_ACTION_WINDOW_SECONDS=60))
    gate.init()
    yield gate
    gate.dispose()


@pytest.fixture(autouse=True)
async def override_dependencies(test_engine, fake_redis, gate):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_significance_gate] = lambda: gate
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
