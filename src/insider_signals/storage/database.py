"""PostgreSQL persistence using raw asyncpg."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast

import asyncpg
import orjson

from insider_signals.core.exceptions import DatabaseConnectionError
from insider_signals.core.logging import get_logger
from insider_signals.storage.base import UpsertResult, transaction_fingerprint

if TYPE_CHECKING:
    from insider_signals.form4.models import Filing, ReportingOwner, Transaction

logger = get_logger(__name__)

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS processed_filings (
    accession_number TEXT PRIMARY KEY,
    status TEXT NOT NULL,
    error TEXT,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    completed_at TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS issuers (
    cik TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    trading_symbol TEXT
);

CREATE TABLE IF NOT EXISTS persons (
    cik TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS filings (
    accession_number TEXT PRIMARY KEY,
    issuer_cik TEXT NOT NULL REFERENCES issuers (cik),
    schema_version TEXT,
    document_type TEXT,
    period_of_report DATE,
    aff_10b5_one BOOLEAN,
    remarks TEXT,
    payload JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS person_relationships (
    accession_number TEXT NOT NULL REFERENCES filings (accession_number),
    person_cik TEXT NOT NULL REFERENCES persons (cik),
    is_director BOOLEAN NOT NULL,
    is_officer BOOLEAN NOT NULL,
    is_ten_percent_owner BOOLEAN NOT NULL,
    is_other BOOLEAN NOT NULL,
    officer_title TEXT,
    PRIMARY KEY (accession_number, person_cik)
);

CREATE TABLE IF NOT EXISTS insider_transactions (
    fingerprint TEXT PRIMARY KEY,
    accession_number TEXT NOT NULL REFERENCES filings (accession_number),
    owner_cik TEXT NOT NULL,
    line_no INTEGER NOT NULL,
    is_derivative BOOLEAN NOT NULL,
    security_title TEXT NOT NULL,
    transaction_date DATE NOT NULL,
    transaction_code TEXT NOT NULL,
    shares NUMERIC,
    price_per_share NUMERIC,
    acquired_disposed TEXT NOT NULL,
    shares_owned_following NUMERIC,
    direct_or_indirect TEXT,
    nature_of_ownership TEXT,
    is_10b5_1_plan BOOLEAN NOT NULL DEFAULT FALSE,
    tier TEXT NOT NULL,
    category TEXT NOT NULL,
    footnote_ids TEXT[] NOT NULL DEFAULT '{}'
);

CREATE INDEX IF NOT EXISTS idx_insider_transactions_accession
    ON insider_transactions (accession_number, line_no);

CREATE TABLE IF NOT EXISTS footnotes (
    accession_number TEXT NOT NULL REFERENCES filings (accession_number),
    footnote_id TEXT NOT NULL,
    footnote_text TEXT NOT NULL,
    PRIMARY KEY (accession_number, footnote_id)
);

CREATE TABLE IF NOT EXISTS signatures (
    accession_number TEXT NOT NULL REFERENCES filings (accession_number),
    position INTEGER NOT NULL,
    signature_name TEXT NOT NULL,
    signature_date DATE,
    PRIMARY KEY (accession_number, position)
);
"""


class Database:
    """Async PostgreSQL database wrapper using asyncpg."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool: asyncpg.Pool[asyncpg.Record] | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        # Convert SQLAlchemy-style DSN to asyncpg format
        dsn = self._dsn.replace("postgresql+asyncpg://", "postgresql://")
        try:
            self._pool = await asyncpg.create_pool(
                dsn,
                min_size=self._min_size,
                max_size=self._max_size,
            )
        except (OSError, asyncpg.PostgresError) as e:
            raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e
        logger.debug("Database pool created", min_size=self._min_size, max_size=self._max_size)

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.debug("Database pool closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool."""
        if not self._pool:
            raise RuntimeError("Database not connected. Call connect() first.")
        async with self._pool.acquire() as conn:
            yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query and return status."""
        async with self.acquire() as conn:
            result = await conn.execute(query, *args)
            return cast(str, result)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """Fetch multiple rows."""
        async with self.acquire() as conn:
            result = await conn.fetch(query, *args)
            return list(result)

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Fetch a single value."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def ensure_schema(self) -> None:
        """Create tables and indexes if missing."""
        await self.execute(SCHEMA_DDL)
        logger.info("Database schema ensured")


class PostgresFilingStore:
    """FilingStore backed by Postgres.

    One database transaction per filing. Transactions are keyed by
    fingerprint and inserted with ON CONFLICT DO NOTHING, so a repeated
    upsert inserts nothing and reports every line as a duplicate.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def upsert_filing(self, filing: Filing) -> UpsertResult:
        inserted: list[str] = []
        duplicates = 0
        issuer = filing.issuer

        async with self._db.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO issuers (cik, name, trading_symbol)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (cik) DO UPDATE SET
                        name = EXCLUDED.name,
                        trading_symbol = COALESCE(EXCLUDED.trading_symbol, issuers.trading_symbol)
                    """,
                    issuer.cik,
                    issuer.name,
                    issuer.trading_symbol,
                )
                await conn.execute(
                    """
                    INSERT INTO filings (
                        accession_number, issuer_cik, schema_version, document_type,
                        period_of_report, aff_10b5_one, remarks, payload
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    ON CONFLICT (accession_number) DO NOTHING
                    """,
                    filing.accession_number,
                    issuer.cik,
                    filing.schema_version,
                    filing.document_type,
                    filing.period_of_report,
                    filing.aff_10b5_one,
                    filing.remarks,
                    orjson.dumps(filing.to_record()).decode("utf-8"),
                )
                for owner in filing.reporting_owners:
                    await self._upsert_owner(conn, filing.accession_number, owner)

                for line_no, txn in enumerate(filing.transactions):
                    fingerprint = transaction_fingerprint(filing.accession_number, txn)
                    if await self._insert_transaction(
                        conn, filing.accession_number, fingerprint, line_no, txn
                    ):
                        inserted.append(fingerprint)
                    else:
                        duplicates += 1

                await conn.executemany(
                    """
                    INSERT INTO footnotes (accession_number, footnote_id, footnote_text)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (accession_number, footnote_id) DO NOTHING
                    """,
                    [(filing.accession_number, f.id, f.text) for f in filing.footnotes],
                )
                await conn.executemany(
                    """
                    INSERT INTO signatures (
                        accession_number, position, signature_name, signature_date
                    )
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (accession_number, position) DO NOTHING
                    """,
                    [
                        (filing.accession_number, i, s.name, s.signature_date)
                        for i, s in enumerate(filing.signatures)
                    ],
                )

        logger.debug(
            "Filing upserted",
            accession=filing.accession_number,
            inserted=len(inserted),
            duplicates=duplicates,
        )
        return UpsertResult(
            inserted=len(inserted),
            duplicates=duplicates,
            inserted_fingerprints=tuple(inserted),
        )

    @staticmethod
    async def _upsert_owner(
        conn: asyncpg.Connection[asyncpg.Record],
        accession_number: str,
        owner: ReportingOwner,
    ) -> None:
        await conn.execute(
            """
            INSERT INTO persons (cik, name) VALUES ($1, $2)
            ON CONFLICT (cik) DO UPDATE SET name = EXCLUDED.name
            """,
            owner.cik,
            owner.name,
        )
        await conn.execute(
            """
            INSERT INTO person_relationships (
                accession_number, person_cik, is_director, is_officer,
                is_ten_percent_owner, is_other, officer_title
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (accession_number, person_cik) DO NOTHING
            """,
            accession_number,
            owner.cik,
            owner.is_director,
            owner.is_officer,
            owner.is_ten_percent_owner,
            owner.is_other,
            owner.officer_title,
        )

    @staticmethod
    async def _insert_transaction(
        conn: asyncpg.Connection[asyncpg.Record],
        accession_number: str,
        fingerprint: str,
        line_no: int,
        txn: Transaction,
    ) -> bool:
        """Insert one line. Returns False when the fingerprint already exists."""
        classification = txn.classification
        result = await conn.fetchval(
            """
            INSERT INTO insider_transactions (
                fingerprint, accession_number, owner_cik, line_no, is_derivative,
                security_title, transaction_date, transaction_code, shares,
                price_per_share, acquired_disposed, shares_owned_following,
                direct_or_indirect, nature_of_ownership, is_10b5_1_plan,
                tier, category, footnote_ids
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, $17, $18)
            ON CONFLICT (fingerprint) DO NOTHING
            RETURNING fingerprint
            """,
            fingerprint,
            accession_number,
            txn.owner_cik,
            line_no,
            txn.is_derivative,
            txn.security_title,
            txn.transaction_date,
            txn.transaction_code,
            txn.shares,
            txn.price_per_share,
            txn.acquired_disposed,
            txn.shares_owned_following,
            txn.direct_or_indirect,
            txn.nature_of_ownership,
            txn.is_10b5_1_plan,
            classification.tier.value,
            classification.category.value,
            list(txn.footnote_ids),
        )
        return result is not None

    async def mark_filing_status(
        self,
        accession_number: str,
        status: str,
        error: str | None = None,
    ) -> None:
        await self._db.execute(
            """
            INSERT INTO processed_filings (accession_number, status, error)
            VALUES ($1, $2, $3)
            ON CONFLICT (accession_number) DO UPDATE SET
                status = EXCLUDED.status,
                error = EXCLUDED.error,
                updated_at = NOW(),
                completed_at = CASE
                    WHEN EXCLUDED.status = 'completed' THEN NOW()
                    ELSE processed_filings.completed_at
                END
            """,
            accession_number,
            status,
            error,
        )
        logger.debug("Filing status updated", accession=accession_number, status=status)


# Global database instance (initialized by the hosting worker)
_db: Database | None = None


def get_database() -> Database:
    """Get the global database instance."""
    if _db is None:
        raise RuntimeError("Database not initialized")
    return _db


async def init_database(dsn: str) -> Database:
    """Initialize the global database instance."""
    global _db
    _db = Database(dsn)
    await _db.connect()
    return _db


async def close_database() -> None:
    """Close the global database instance."""
    global _db
    if _db:
        await _db.disconnect()
        _db = None
