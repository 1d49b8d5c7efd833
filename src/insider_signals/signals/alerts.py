"""Alert selection and publishing.

High and Medium transactions go to the alerting consumer; Low ones are
persisted only.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from insider_signals.form4.models import Issuer, ReportingOwner, Transaction
from insider_signals.signals.models import Classification, Tier
from insider_signals.storage.base import transaction_fingerprint

if TYPE_CHECKING:
    from insider_signals.form4.models import Filing


class SignalAlert(BaseModel):
    """A High/Medium transaction pushed to the alerting consumer."""

    model_config = ConfigDict(frozen=True)

    accession_number: str
    issuer: Issuer
    owner: ReportingOwner
    transaction: Transaction
    classification: Classification


@runtime_checkable
class AlertPublisher(Protocol):
    async def publish_alert(self, alert: SignalAlert) -> str:
        """Push one alert downstream. Returns the publisher's message id."""
        ...


class CollectingPublisher:
    """Keeps alerts in memory, in publish order."""

    def __init__(self) -> None:
        self.alerts: list[SignalAlert] = []

    async def publish_alert(self, alert: SignalAlert) -> str:
        self.alerts.append(alert)
        return str(len(self.alerts))


def build_alerts(
    filing: Filing,
    min_tier: Tier = Tier.medium,
    fingerprints: Collection[str] | None = None,
) -> list[SignalAlert]:
    """SignalAlert for every transaction at or above ``min_tier``, in filing order.

    Args:
        filing: Extracted filing
        min_tier: Lowest tier that alerts
        fingerprints: When given, only lines with one of these fingerprints
            alert, each fingerprint once. Pass ``UpsertResult.inserted_fingerprints``
            so lines a store already held are never announced again.

    A joint filing carries one copy of each line per reporting owner, so a
    purchase reported by three owners yields three alerts, one per owner,
    in owner-major order. Each copy has its own fingerprint and storage row.
    """
    pending = None if fingerprints is None else set(fingerprints)
    alerts: list[SignalAlert] = []
    for txn in filing.transactions:
        if pending is not None:
            key = transaction_fingerprint(filing.accession_number, txn)
            if key not in pending:
                continue
            pending.discard(key)
        classification = txn.classification
        if not classification.tier.at_least(min_tier):
            continue
        owner = filing.owner(txn.owner_cik)
        if owner is None:
            # extract_filing always attributes lines to a known owner
            continue
        alerts.append(
            SignalAlert(
                accession_number=filing.accession_number,
                issuer=filing.issuer,
                owner=owner,
                transaction=txn,
                classification=classification,
            )
        )
    return alerts
