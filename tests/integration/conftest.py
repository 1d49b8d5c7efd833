"""Shared fixtures for integration tests.

These fixtures connect to the Postgres and Redis instances named by
DATABASE_URL and REDIS_URL. Run with: pytest -m integration
"""

from collections.abc import AsyncIterator
from uuid import uuid4

import pytest
from redis.asyncio import Redis

from insider_signals.config import get_settings
from insider_signals.storage.database import Database


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
async def database() -> AsyncIterator[Database]:
    """Connected database with the schema in place."""
    db = Database(get_settings().database_url, min_size=1, max_size=2)
    await db.connect()
    await db.ensure_schema()
    try:
        yield db
    finally:
        await db.disconnect()


@pytest.fixture
async def redis_client() -> AsyncIterator[Redis]:
    client = Redis.from_url(get_settings().redis_url, decode_responses=False)
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def stream_key() -> str:
    """A throwaway stream per test."""
    return f"insider_signals:test:{uuid4().hex}"
