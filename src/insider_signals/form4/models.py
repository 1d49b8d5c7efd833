"""Pydantic models for Form 4 entities.

These models are the canonical output of the entity extractor:
- Issuer, ReportingOwner (with address), Transaction, Footnote, Signature
- Filing, the aggregate handed to the persistence adapter as one unit

All models are frozen. A Transaction's tier and category are derived from
its code, acquired/disposed flag and derivative status on every access.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from insider_signals.signals.models import Classification


class _Entity(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Parties
# =============================================================================


class Issuer(_Entity):
    """The public company whose securities were traded."""

    cik: str  # zero-padded to 10 digits
    name: str
    trading_symbol: str | None = None
    footnote_ids: tuple[str, ...] = ()


class OwnerAddress(_Entity):
    """Reporting owner mailing address. Every field may be empty."""

    street1: str | None = None
    street2: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    state_description: str | None = None


class ReportingOwner(_Entity):
    """The insider filing the report."""

    cik: str
    name: str
    address: OwnerAddress = Field(default_factory=OwnerAddress)
    is_director: bool = False
    is_officer: bool = False
    is_ten_percent_owner: bool = False
    is_other: bool = False
    officer_title: str | None = None  # only kept when is_officer
    other_text: str | None = None

    @property
    def relationship(self) -> str:
        """Human-readable relationship label, e.g. "Director, Officer"."""
        roles = []
        if self.is_director:
            roles.append("Director")
        if self.is_officer:
            roles.append("Officer")
        if self.is_ten_percent_owner:
            roles.append("10% Owner")
        if self.is_other:
            roles.append("Other")
        return ", ".join(roles)


# =============================================================================
# Transactions
# =============================================================================


class Transaction(_Entity):
    """One line item from the derivative or non-derivative table."""

    owner_cik: str
    is_derivative: bool

    security_title: str
    transaction_date: date
    transaction_code: str  # P=purchase, S=sale, A=award, M=exercise ...
    form_type: str | None = None
    equity_swap_involved: bool | None = None

    shares: Decimal | None = None
    price_per_share: Decimal | None = None  # None means absent, not zero
    acquired_disposed: Literal["A", "D"]
    shares_owned_following: Decimal | None = None

    direct_or_indirect: Literal["D", "I"] | None = None
    nature_of_ownership: str | None = None

    # Derivative-only
    conversion_or_exercise_price: Decimal | None = None
    exercise_date: date | None = None
    expiration_date: date | None = None
    underlying_security_title: str | None = None
    underlying_security_shares: Decimal | None = None

    footnote_ids: tuple[str, ...] = ()
    is_10b5_1_plan: bool = False

    @property
    def value(self) -> Decimal | None:
        """Shares times price, or None when either is absent."""
        if self.shares is None or self.price_per_share is None:
            return None
        return self.shares * self.price_per_share

    @property
    def classification(self) -> Classification:
        from insider_signals.signals.classifier import classify

        return classify(self)


# =============================================================================
# Filing-level records
# =============================================================================


class Footnote(_Entity):
    id: str
    text: str


class Signature(_Entity):
    name: str
    signature_date: date | None = None


class Filing(_Entity):
    """One Form 4 submission, produced by a single successful extraction pass."""

    accession_number: str
    schema_version: str | None = None
    document_type: str | None = None
    period_of_report: date | None = None
    not_subject_to_section16: bool | None = None
    aff_10b5_one: bool | None = None  # filing-level 10b5-1 checkbox
    remarks: str | None = None

    issuers: tuple[Issuer, ...]
    reporting_owners: tuple[ReportingOwner, ...]
    transactions: tuple[Transaction, ...] = ()
    footnotes: tuple[Footnote, ...] = ()
    signatures: tuple[Signature, ...]

    @property
    def issuer(self) -> Issuer:
        """The primary (first) issuer."""
        return self.issuers[0]

    def owner(self, cik: str) -> ReportingOwner | None:
        for owner in self.reporting_owners:
            if owner.cik == cik:
                return owner
        return None

    def footnote_map(self) -> dict[str, str]:
        return {f.id: f.text for f in self.footnotes}

    def to_record(self) -> dict[str, Any]:
        """Canonical JSON-ready record.

        Dates render as ISO strings and decimals as their exact string form,
        so fractional share counts survive serialization unchanged.
        """
        record = self.model_dump(mode="json")
        for txn_record, txn in zip(record["transactions"], self.transactions, strict=True):
            classification = txn.classification
            txn_record["tier"] = classification.tier.value
            txn_record["category"] = classification.category.value
        return record
