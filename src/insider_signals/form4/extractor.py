"""Form 4 entity extractor.

Walks a normalized ownershipDocument tree (see normalizer.py) and builds
canonical entities. Every function is pure: same tree in, same entities
out, no shared state. Required fields that are absent or empty raise
MissingRequiredField naming the field path; optional substructures may be
missing entirely.

Most SEC leaf values are wrapped as ``<foo><value>X</value></foo>`` and may
carry ``<footnoteId id="F1"/>`` references instead of, or next to, a value.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from insider_signals.core.exceptions import MissingRequiredField
from insider_signals.form4.diagnostics import Diagnostic, DiagnosticCollector, DiagnosticKind
from insider_signals.form4.models import (
    Filing,
    Footnote,
    Issuer,
    OwnerAddress,
    ReportingOwner,
    Signature,
    Transaction,
)
from insider_signals.signals.classifier import is_recognized_code

Tree = Mapping[str, Any]

_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})")
_TRUE = {"1", "true", "y", "yes"}
_PLAN_MARKER = "10b5-1"


@dataclass(frozen=True)
class ExtractionResult:
    filing: Filing
    diagnostics: tuple[Diagnostic, ...] = ()


# ─────────────────────────────────────────────────────────────
# Tree helpers
# ─────────────────────────────────────────────────────────────


def _child(parent: Any, key: str) -> Tree:
    """Child mapping, or {} when absent, empty, or a bare string."""
    if not isinstance(parent, Mapping):
        return {}
    node = parent.get(key)
    return node if isinstance(node, Mapping) else {}


def _items(parent: Any, key: str) -> list[Tree]:
    if not isinstance(parent, Mapping):
        return []
    return [item if isinstance(item, Mapping) else {} for item in parent.get(key) or []]


def _text(node: Any) -> str | None:
    if isinstance(node, Mapping):
        node = node.get("#text")
    if node is None:
        return None
    s = str(node).strip()
    return s or None


def _field(parent: Any, key: str) -> str | None:
    """Plain leaf text, e.g. <issuerCik>0000320193</issuerCik>."""
    if not isinstance(parent, Mapping):
        return None
    return _text(parent.get(key))


def _value(parent: Any, key: str) -> str | None:
    """Wrapped leaf text, e.g. <transactionDate><value>...</value></transactionDate>.

    A footnote-only field yields None. Some generators drop the wrapper, so a
    bare leaf is accepted too.
    """
    if not isinstance(parent, Mapping):
        return None
    node = parent.get(key)
    if isinstance(node, Mapping):
        return _text(node.get("value"))
    return _text(node)


def _flag(raw: str | None) -> bool:
    return raw is not None and raw.strip().lower() in _TRUE


def _optional_flag(raw: str | None) -> bool | None:
    if raw is None:
        return None
    return _flag(raw)


def _footnote_refs(node: Any) -> list[str]:
    """All footnoteId references in a subtree, in document order, de-duplicated."""
    found: list[str] = []

    def walk(n: Any) -> None:
        if isinstance(n, Mapping):
            for key, value in n.items():
                if key == "footnoteId":
                    for ref in value if isinstance(value, list) else [value]:
                        fid = _text(ref.get("@id")) if isinstance(ref, Mapping) else None
                        if fid and fid not in found:
                            found.append(fid)
                else:
                    walk(value)
        elif isinstance(n, list):
            for item in n:
                walk(item)

    walk(node)
    return found


def _cik(raw: str | None) -> str | None:
    if raw is None:
        return None
    digits = "".join(ch for ch in raw if ch.isdigit())
    return digits.zfill(10) if digits else None


def _require(value: str | None, path: str, accession_number: str | None) -> str:
    if value is None:
        raise MissingRequiredField(path, accession_number)
    return value


def _decimal(raw: str | None, path: str, diagnostics: DiagnosticCollector) -> Decimal | None:
    if raw is None:
        return None
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        diagnostics.warn(DiagnosticKind.invalid_number, f"Unparsable number {raw!r}", path)
        return None
    return value


def _date(raw: str | None, path: str, diagnostics: DiagnosticCollector) -> date | None:
    """Parse an ISO date, ignoring a trailing timezone offset (2025-09-15-05:00)."""
    if raw is None:
        return None
    m = _DATE.match(raw)
    if m:
        try:
            return date.fromisoformat(m.group(1))
        except ValueError:
            pass
    diagnostics.warn(DiagnosticKind.invalid_date, f"Unparsable date {raw!r}", path)
    return None


# ─────────────────────────────────────────────────────────────
# Entities
# ─────────────────────────────────────────────────────────────


def extract_issuer(doc: Tree, accession_number: str | None = None) -> Issuer:
    """Issuer block. CIK and name are required."""
    node = _child(doc, "issuer")
    cik = _cik(_field(node, "issuerCik"))
    return Issuer(
        cik=_require(cik, "issuer.issuerCik", accession_number),
        name=_require(_field(node, "issuerName"), "issuer.issuerName", accession_number),
        trading_symbol=_field(node, "issuerTradingSymbol"),
        footnote_ids=tuple(_footnote_refs(node)),
    )


def extract_reporting_owners(
    doc: Tree,
    accession_number: str | None = None,
) -> list[ReportingOwner]:
    """One ReportingOwner per reportingOwner block, in document order."""
    blocks = _items(doc, "reportingOwner")
    if not blocks:
        raise MissingRequiredField("reportingOwner", accession_number)

    owners: list[ReportingOwner] = []
    for i, block in enumerate(blocks):
        path = f"reportingOwner[{i}]"
        owner_id = _child(block, "reportingOwnerId")
        address = _child(block, "reportingOwnerAddress")
        rel = _child(block, "reportingOwnerRelationship")

        cik = _cik(_field(owner_id, "rptOwnerCik"))
        is_officer = _flag(_field(rel, "isOfficer"))
        owners.append(
            ReportingOwner(
                cik=_require(cik, f"{path}.reportingOwnerId.rptOwnerCik", accession_number),
                name=_require(
                    _field(owner_id, "rptOwnerName"),
                    f"{path}.reportingOwnerId.rptOwnerName",
                    accession_number,
                ),
                address=OwnerAddress(
                    street1=_field(address, "rptOwnerStreet1"),
                    street2=_field(address, "rptOwnerStreet2"),
                    city=_field(address, "rptOwnerCity"),
                    state=_field(address, "rptOwnerState"),
                    zip_code=_field(address, "rptOwnerZipCode"),
                    state_description=_field(address, "rptOwnerStateDescription"),
                ),
                is_director=_flag(_field(rel, "isDirector")),
                is_officer=is_officer,
                is_ten_percent_owner=_flag(_field(rel, "isTenPercentOwner")),
                is_other=_flag(_field(rel, "isOther")),
                officer_title=_field(rel, "officerTitle") if is_officer else None,
                other_text=_field(rel, "otherText"),
            )
        )
    return owners


def extract_footnotes(
    doc: Tree,
    diagnostics: DiagnosticCollector | None = None,
) -> dict[str, str]:
    """Footnote id -> text. Duplicate ids: last wins, with a warning."""
    if diagnostics is None:
        diagnostics = DiagnosticCollector()
    out: dict[str, str] = {}
    for i, node in enumerate(_items(_child(doc, "footnotes"), "footnote")):
        fid = _text(node.get("@id"))
        text = _text(node)
        if fid is None or text is None:
            continue
        if fid in out:
            diagnostics.warn(
                DiagnosticKind.duplicate_footnote_id,
                f"Duplicate footnote id {fid}",
                f"footnotes.footnote[{i}]@id",
            )
        out[fid] = text
    return out


def extract_signatures(
    doc: Tree,
    accession_number: str | None = None,
    diagnostics: DiagnosticCollector | None = None,
) -> list[Signature]:
    """Ordered signer name/date pairs. At least one is required."""
    if diagnostics is None:
        diagnostics = DiagnosticCollector(accession_number)
    signatures: list[Signature] = []
    for i, node in enumerate(_items(doc, "ownerSignature")):
        name = _field(node, "signatureName")
        raw_date = _field(node, "signatureDate")
        if name is None and raw_date is None:
            continue
        signatures.append(
            Signature(
                name=_require(name, f"ownerSignature[{i}].signatureName", accession_number),
                signature_date=_date(raw_date, f"ownerSignature[{i}].signatureDate", diagnostics),
            )
        )
    if not signatures:
        raise MissingRequiredField("ownerSignature.signatureName", accession_number)
    return signatures


def _is_plan_trade(
    footnote_ids: list[str],
    footnotes: Mapping[str, str],
    filing_flag: bool,
) -> bool:
    if filing_flag:
        return True
    return any(_PLAN_MARKER in footnotes.get(fid, "").lower() for fid in footnote_ids)


def _extract_transactions(
    doc: Tree,
    owner: ReportingOwner,
    *,
    is_derivative: bool,
    footnotes: Mapping[str, str] | None,
    diagnostics: DiagnosticCollector | None,
    accession_number: str | None,
) -> list[Transaction]:
    table, row = (
        ("derivativeTable", "derivativeTransaction")
        if is_derivative
        else ("nonDerivativeTable", "nonDerivativeTransaction")
    )
    diagnostics = diagnostics or DiagnosticCollector(accession_number)
    if footnotes is None:
        footnotes = extract_footnotes(doc, DiagnosticCollector(log=False))
    filing_plan_flag = _flag(_field(doc, "aff10b5One"))

    transactions: list[Transaction] = []
    for i, node in enumerate(_items(_child(doc, table), row)):
        path = f"{table}.{row}[{i}]"
        coding = _child(node, "transactionCoding")
        amounts = _child(node, "transactionAmounts")
        post = _child(node, "postTransactionAmounts")
        nature = _child(node, "ownershipNature")
        underlying = _child(node, "underlyingSecurity")

        title = _require(_value(node, "securityTitle"), f"{path}.securityTitle", accession_number)
        txn_date = _date(
            _require(_value(node, "transactionDate"), f"{path}.transactionDate", accession_number),
            f"{path}.transactionDate",
            diagnostics,
        )
        if txn_date is None:
            raise MissingRequiredField(f"{path}.transactionDate", accession_number)

        code_path = f"{path}.transactionCoding.transactionCode"
        code = _require(_field(coding, "transactionCode"), code_path, accession_number).upper()
        if not is_recognized_code(code):
            diagnostics.warn(
                DiagnosticKind.unknown_transaction_code,
                f"Unrecognized transaction code {code!r}",
                code_path,
            )

        ad_path = f"{path}.transactionAmounts.transactionAcquiredDisposedCode"
        acquired_disposed = _require(
            _value(amounts, "transactionAcquiredDisposedCode"), ad_path, accession_number
        ).upper()
        if acquired_disposed not in ("A", "D"):
            raise MissingRequiredField(ad_path, accession_number)

        direct = _value(nature, "directOrIndirectOwnership")
        direct = direct.upper() if direct else None

        refs = _footnote_refs(node)
        for fid in refs:
            if fid not in footnotes:
                diagnostics.warn(
                    DiagnosticKind.unknown_footnote_reference,
                    f"Reference to undefined footnote {fid}",
                    path,
                )

        transactions.append(
            Transaction(
                owner_cik=owner.cik,
                is_derivative=is_derivative,
                security_title=title,
                transaction_date=txn_date,
                transaction_code=code,
                form_type=_field(coding, "transactionFormType"),
                equity_swap_involved=_optional_flag(_field(coding, "equitySwapInvolved")),
                shares=_decimal(
                    _value(amounts, "transactionShares"),
                    f"{path}.transactionAmounts.transactionShares",
                    diagnostics,
                ),
                price_per_share=_decimal(
                    _value(amounts, "transactionPricePerShare"),
                    f"{path}.transactionAmounts.transactionPricePerShare",
                    diagnostics,
                ),
                acquired_disposed=acquired_disposed,
                shares_owned_following=_decimal(
                    _value(post, "sharesOwnedFollowingTransaction"),
                    f"{path}.postTransactionAmounts.sharesOwnedFollowingTransaction",
                    diagnostics,
                ),
                direct_or_indirect=direct if direct in ("D", "I") else None,
                nature_of_ownership=_value(nature, "natureOfOwnership"),
                conversion_or_exercise_price=_decimal(
                    _value(node, "conversionOrExercisePrice"),
                    f"{path}.conversionOrExercisePrice",
                    diagnostics,
                ),
                exercise_date=_date(
                    _value(node, "exerciseDate"), f"{path}.exerciseDate", diagnostics
                ),
                expiration_date=_date(
                    _value(node, "expirationDate"), f"{path}.expirationDate", diagnostics
                ),
                underlying_security_title=_value(underlying, "underlyingSecurityTitle"),
                underlying_security_shares=_decimal(
                    _value(underlying, "underlyingSecurityShares"),
                    f"{path}.underlyingSecurity.underlyingSecurityShares",
                    diagnostics,
                ),
                footnote_ids=tuple(refs),
                is_10b5_1_plan=_is_plan_trade(refs, footnotes, filing_plan_flag),
            )
        )
    return transactions


def extract_non_derivative_transactions(
    doc: Tree,
    owner: ReportingOwner,
    *,
    footnotes: Mapping[str, str] | None = None,
    diagnostics: DiagnosticCollector | None = None,
    accession_number: str | None = None,
) -> list[Transaction]:
    """Non-derivative table lines attributed to ``owner``, in source order."""
    return _extract_transactions(
        doc,
        owner,
        is_derivative=False,
        footnotes=footnotes,
        diagnostics=diagnostics,
        accession_number=accession_number,
    )


def extract_derivative_transactions(
    doc: Tree,
    owner: ReportingOwner,
    *,
    footnotes: Mapping[str, str] | None = None,
    diagnostics: DiagnosticCollector | None = None,
    accession_number: str | None = None,
) -> list[Transaction]:
    """Derivative table lines attributed to ``owner``, in source order."""
    return _extract_transactions(
        doc,
        owner,
        is_derivative=True,
        footnotes=footnotes,
        diagnostics=diagnostics,
        accession_number=accession_number,
    )


def extract_filing(doc: Tree, accession_number: str) -> ExtractionResult:
    """Assemble a complete Filing from a normalized tree.

    All-or-nothing: the first missing required field aborts the whole
    filing. Joint filings attribute every line to every reporting owner,
    owner-major, preserving table order within each owner.

    Raises:
        MissingRequiredField: A required field is absent
    """
    accession_number = (accession_number or "").strip()
    if not accession_number:
        raise MissingRequiredField("accessionNumber")

    diagnostics = DiagnosticCollector(accession_number)
    issuer = extract_issuer(doc, accession_number)
    owners = extract_reporting_owners(doc, accession_number)
    footnotes = extract_footnotes(doc, diagnostics)
    for fid in issuer.footnote_ids:
        if fid not in footnotes:
            diagnostics.warn(
                DiagnosticKind.unknown_footnote_reference,
                f"Reference to undefined footnote {fid}",
                "issuer",
            )

    # Lines are parsed once, then attributed to each owner in turn
    tables = [
        _extract_transactions(
            doc,
            owners[0],
            is_derivative=is_derivative,
            footnotes=footnotes,
            diagnostics=diagnostics,
            accession_number=accession_number,
        )
        for is_derivative in (False, True)
    ]
    transactions: list[Transaction] = []
    for owner in owners:
        for lines in tables:
            transactions.extend(
                line
                if line.owner_cik == owner.cik
                else line.model_copy(update={"owner_cik": owner.cik})
                for line in lines
            )

    signatures = extract_signatures(doc, accession_number, diagnostics)

    filing = Filing(
        accession_number=accession_number,
        schema_version=_field(doc, "schemaVersion"),
        document_type=_field(doc, "documentType"),
        period_of_report=_date(_field(doc, "periodOfReport"), "periodOfReport", diagnostics),
        not_subject_to_section16=_optional_flag(_field(doc, "notSubjectToSection16")),
        aff_10b5_one=_optional_flag(_field(doc, "aff10b5One")),
        remarks=_field(doc, "remarks"),
        issuers=(issuer,),
        reporting_owners=tuple(owners),
        transactions=tuple(transactions),
        footnotes=tuple(Footnote(id=fid, text=text) for fid, text in footnotes.items()),
        signatures=tuple(signatures),
    )
    return ExtractionResult(filing=filing, diagnostics=diagnostics.items)
