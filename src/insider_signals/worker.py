"""Wiring for a hosting worker: Postgres store plus the Redis alert stream."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from insider_signals.core.events import EventBus
from insider_signals.core.logging import get_logger
from insider_signals.pipeline import FilingProcessor
from insider_signals.signals.models import Tier
from insider_signals.storage.database import (
    Database,
    PostgresFilingStore,
    close_database,
    init_database,
)
from insider_signals.storage.redis import close_redis, init_redis

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from insider_signals.config import Settings

logger = get_logger(__name__)


@asynccontextmanager
async def processor_lifespan(settings: Settings) -> AsyncIterator[FilingProcessor]:
    """Connect Redis and Postgres, yield a FilingProcessor, then disconnect.

    High/Medium signals go to ``settings.alert_stream_key`` through an
    EventBus capped at ``settings.alert_stream_maxlen`` entries.
    """
    redis: Redis | None = None
    db: Database | None = None
    try:
        # 1. Redis (also sets the module-level global for get_redis())
        logger.debug("Connecting to Redis")
        redis = await init_redis(settings.redis_url)
        bus = EventBus(redis, settings.alert_stream_key, settings.alert_stream_maxlen)
        await bus.ensure_stream()

        # 2. Postgres
        logger.debug("Connecting to database")
        db = await init_database(settings.database_url)

        processor = FilingProcessor(
            store=PostgresFilingStore(db),
            publisher=bus,
            min_alert_tier=Tier(settings.alert_min_tier),
            max_concurrency=settings.processing_workers,
        )
        logger.info(
            "Processor ready",
            stream_key=settings.alert_stream_key,
            min_alert_tier=settings.alert_min_tier,
        )
        yield processor
    finally:
        if db is not None:
            await close_database()
        if redis is not None:
            await close_redis()
