"""Non-fatal extraction diagnostics.

Problems that do not abort a filing (duplicate footnote ids, unknown
transaction codes, unparsable optional numbers) are collected as
Diagnostic records during extraction and logged as structured warnings
carrying the accession number and field path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from insider_signals.core.exceptions import DataIntegrityError
from insider_signals.core.logging import get_logger

logger = get_logger(__name__)


class DiagnosticKind(str, Enum):
    duplicate_footnote_id = "duplicate_footnote_id"
    unknown_footnote_reference = "unknown_footnote_reference"
    unknown_transaction_code = "unknown_transaction_code"
    invalid_number = "invalid_number"
    invalid_date = "invalid_date"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    field_path: str
    accession_number: str | None = None
    error: DataIntegrityError | None = field(default=None, compare=False, repr=False)


class DiagnosticCollector:
    """Per-extraction accumulator. One instance per filing, never shared."""

    def __init__(self, accession_number: str | None = None, *, log: bool = True) -> None:
        self._accession_number = accession_number
        self._log = log
        self._items: list[Diagnostic] = []

    @property
    def items(self) -> tuple[Diagnostic, ...]:
        return tuple(self._items)

    def warn(self, kind: DiagnosticKind, message: str, field_path: str) -> None:
        error = DataIntegrityError(message, field_path=field_path)
        diagnostic = Diagnostic(
            kind=kind,
            message=message,
            field_path=field_path,
            accession_number=self._accession_number,
            error=error,
        )
        self._items.append(diagnostic)
        if not self._log:
            return
        logger.warning(
            message,
            kind=kind.value,
            error_type=type(error).__name__,
            accession=self._accession_number,
            field_path=field_path,
        )
