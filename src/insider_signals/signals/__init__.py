"""Transaction signal classification and alerting."""

from insider_signals.signals.alerts import (
    AlertPublisher,
    CollectingPublisher,
    SignalAlert,
    build_alerts,
)
from insider_signals.signals.classifier import TransactionCode, classify, classify_code
from insider_signals.signals.models import Category, Classification, Tier

__all__ = [
    "AlertPublisher",
    "Category",
    "Classification",
    "CollectingPublisher",
    "SignalAlert",
    "Tier",
    "TransactionCode",
    "build_alerts",
    "classify",
    "classify_code",
]
