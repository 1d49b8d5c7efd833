"""In-memory FilingStore.

Reference implementation of the persistence contract, used by tests and
the CLI. Safe for concurrent use within one event loop.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from insider_signals.core.logging import get_logger
from insider_signals.storage.base import UpsertResult, transaction_fingerprint

if TYPE_CHECKING:
    from insider_signals.form4.models import Filing, Transaction

logger = get_logger(__name__)


class InMemoryFilingStore:
    """Dict-backed store keyed by accession number and transaction fingerprint."""

    def __init__(self) -> None:
        self._filings: dict[str, Filing] = {}
        self._transactions: dict[str, Transaction] = {}
        self._status: dict[str, tuple[str, str | None]] = {}
        self._lock = asyncio.Lock()

    @property
    def filings(self) -> dict[str, Filing]:
        return dict(self._filings)

    @property
    def transactions(self) -> dict[str, Transaction]:
        return dict(self._transactions)

    def status(self, accession_number: str) -> str | None:
        entry = self._status.get(accession_number)
        return entry[0] if entry else None

    async def upsert_filing(self, filing: Filing) -> UpsertResult:
        inserted = 0
        duplicates = 0
        async with self._lock:
            # Stage the batch first so a filing is never half-written
            staged: dict[str, Transaction] = {}
            for txn in filing.transactions:
                key = transaction_fingerprint(filing.accession_number, txn)
                if key in self._transactions or key in staged:
                    duplicates += 1
                    continue
                staged[key] = txn
                inserted += 1

            self._filings.setdefault(filing.accession_number, filing)
            self._transactions.update(staged)

        logger.debug(
            "Filing upserted",
            accession=filing.accession_number,
            inserted=inserted,
            duplicates=duplicates,
        )
        return UpsertResult(
            inserted=inserted,
            duplicates=duplicates,
            inserted_fingerprints=tuple(staged),
        )

    async def mark_filing_status(
        self,
        accession_number: str,
        status: str,
        error: str | None = None,
    ) -> None:
        self._status[accession_number] = (status, error)
