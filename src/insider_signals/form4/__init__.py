"""Form 4 ownershipDocument normalization and entity extraction."""

from insider_signals.form4.extractor import (
    ExtractionResult,
    extract_derivative_transactions,
    extract_filing,
    extract_footnotes,
    extract_issuer,
    extract_non_derivative_transactions,
    extract_reporting_owners,
    extract_signatures,
)
from insider_signals.form4.models import (
    Filing,
    Footnote,
    Issuer,
    OwnerAddress,
    ReportingOwner,
    Signature,
    Transaction,
)
from insider_signals.form4.normalizer import normalize, normalize_tree

__all__ = [
    "ExtractionResult",
    "Filing",
    "Footnote",
    "Issuer",
    "OwnerAddress",
    "ReportingOwner",
    "Signature",
    "Transaction",
    "extract_derivative_transactions",
    "extract_filing",
    "extract_footnotes",
    "extract_issuer",
    "extract_non_derivative_transactions",
    "extract_reporting_owners",
    "extract_signatures",
    "normalize",
    "normalize_tree",
]
