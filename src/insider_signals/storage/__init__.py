"""Storage layer: persistence adapter boundary, PostgreSQL (asyncpg), Redis."""

from insider_signals.storage.base import FilingStore, UpsertResult, transaction_fingerprint
from insider_signals.storage.database import (
    Database,
    PostgresFilingStore,
    close_database,
    get_database,
    init_database,
)
from insider_signals.storage.memory import InMemoryFilingStore
from insider_signals.storage.redis import close_redis, get_redis, init_redis

__all__ = [
    "Database",
    "FilingStore",
    "InMemoryFilingStore",
    "PostgresFilingStore",
    "UpsertResult",
    "close_database",
    "close_redis",
    "get_database",
    "get_redis",
    "init_database",
    "init_redis",
    "transaction_fingerprint",
]
