"""Persistence adapter boundary.

The pipeline hands each extracted Filing to a FilingStore as one unit.
Stores deduplicate transactions by fingerprint, so reprocessing the same
filing never creates duplicate rows.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from insider_signals.form4.models import Filing, Transaction


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of one upsert_filing call."""

    inserted: int
    duplicates: int
    # Fingerprints of the newly inserted lines, in filing order
    inserted_fingerprints: tuple[str, ...] = ()


def _decimal_key(value: Decimal | None) -> str:
    if value is None:
        return ""
    # 26.686 and 26.6860 must collide
    return format(value.normalize(), "f")


def transaction_fingerprint(accession_number: str, transaction: Transaction) -> str:
    """Stable dedup key for one line item.

    Built only from filing content (accession, owner CIK, security title,
    transaction date, code, shares, derivative flag), never from row ids.
    """
    parts = [
        accession_number,
        transaction.owner_cik,
        transaction.security_title,
        transaction.transaction_date.isoformat(),
        transaction.transaction_code,
        _decimal_key(transaction.shares),
        "1" if transaction.is_derivative else "0",
    ]
    return hashlib.sha256("\x1f".join(parts).encode()).hexdigest()


@runtime_checkable
class FilingStore(Protocol):
    """Storage collaborator consumed by the pipeline."""

    async def upsert_filing(self, filing: Filing) -> UpsertResult:
        """Idempotently store one filing and its transactions.

        Returns:
            Counts of newly inserted and duplicate transactions, plus the
            fingerprints of the inserted ones
        """
        ...

    async def mark_filing_status(
        self,
        accession_number: str,
        status: str,
        error: str | None = None,
    ) -> None:
        """Record processing status ("processing", "completed", "failed")."""
        ...
