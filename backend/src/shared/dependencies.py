from collections.abc import AsyncGenerator

from fastapi import Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from annotations.application.significance import SignificanceGate
from shared.infrastructure.database import async_session
from shared.infrastructure.redis import get_redis_pool


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


def get_redis() -> Redis:
    return get_redis_pool()


def get_significance_gate(request: Request) -> SignificanceGate:
    return request.app.state.significance_gate
