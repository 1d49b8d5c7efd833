"""Transaction signal classifier.

Maps a transaction to an importance tier and a semantic category. The
decision is a lookup over the closed set of SEC transaction codes; each
code owns one rule taking (acquired_disposed, is_derivative). Codes outside
the table fall through to the default rule and are flagged for review.

Open-market purchases and sales are the High signals. Grants, gifts and
tax withholding are routine compensation mechanics and rank Low. Everything
else ranks Medium.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from insider_signals.signals.models import Category, Classification, Tier

if TYPE_CHECKING:
    from insider_signals.form4.models import Transaction


class TransactionCode(str, Enum):
    """SEC Form 4 transaction codes (General Instructions, item 8)."""

    P = "P"  # open market or private purchase
    S = "S"  # open market or private sale
    V = "V"  # voluntarily reported earlier than required
    A = "A"  # grant, award or other acquisition from the issuer
    D = "D"  # disposition to the issuer
    F = "F"  # payment of exercise price or tax by delivering securities
    I = "I"  # discretionary transaction  # noqa: E741
    M = "M"  # exercise or conversion of exempt derivative
    C = "C"  # conversion of derivative security
    E = "E"  # expiration of short derivative position
    H = "H"  # expiration or cancellation of long derivative position
    O = "O"  # exercise of out-of-the-money derivative  # noqa: E741
    X = "X"  # exercise of in-the-money or at-the-money derivative
    G = "G"  # bona fide gift
    L = "L"  # small acquisition
    W = "W"  # acquisition or disposition by will or laws of descent
    Z = "Z"  # deposit into or withdrawal from voting trust
    J = "J"  # other acquisition or disposition
    K = "K"  # equity swap or similar instrument
    U = "U"  # disposition due to tender of shares in change of control

    @classmethod
    def parse(cls, code: str | None) -> TransactionCode | None:
        if not code:
            return None
        try:
            return cls(code.strip().upper())
        except ValueError:
            return None


Rule = Callable[[str | None, bool], Classification]

OTHER = Classification(tier=Tier.medium, category=Category.other)
UNRECOGNIZED = Classification(tier=Tier.medium, category=Category.other, needs_review=True)


def _fixed(tier: Tier, category: Category) -> Rule:
    result = Classification(tier=tier, category=category)
    return lambda acquired_disposed, is_derivative: result


def _purchase(acquired_disposed: str | None, is_derivative: bool) -> Classification:
    if acquired_disposed == "A" and not is_derivative:
        return Classification(tier=Tier.high, category=Category.open_market_purchase)
    return Classification(tier=Tier.medium, category=Category.open_market_purchase)


def _sale(acquired_disposed: str | None, is_derivative: bool) -> Classification:
    if acquired_disposed == "D" and not is_derivative:
        return Classification(tier=Tier.high, category=Category.open_market_sale)
    return Classification(tier=Tier.medium, category=Category.open_market_sale)


def _grant(acquired_disposed: str | None, is_derivative: bool) -> Classification:
    # Derivative status wins over the A/D flag: an "A" on an option or
    # phantom stock line is a grant of the derivative.
    if is_derivative or acquired_disposed == "A":
        return Classification(tier=Tier.low, category=Category.grant_award)
    return UNRECOGNIZED


_RULES: dict[TransactionCode, Rule] = {
    TransactionCode.P: _purchase,
    TransactionCode.S: _sale,
    TransactionCode.A: _grant,
    TransactionCode.M: _fixed(Tier.medium, Category.option_exercise),
    TransactionCode.C: _fixed(Tier.medium, Category.conversion),
    TransactionCode.G: _fixed(Tier.low, Category.gift),
    TransactionCode.F: _fixed(Tier.low, Category.tax_withholding),
}


def classify_code(
    code: str | None,
    acquired_disposed: str | None,
    is_derivative: bool,
) -> Classification:
    """Classify by raw transaction code. Never raises."""
    parsed = TransactionCode.parse(code)
    if parsed is None:
        return UNRECOGNIZED
    rule = _RULES.get(parsed)
    if rule is None:
        return OTHER
    return rule(acquired_disposed, is_derivative)


def classify(transaction: Transaction) -> Classification:
    """Assign (tier, category) to a finalized transaction."""
    return classify_code(
        transaction.transaction_code,
        transaction.acquired_disposed,
        transaction.is_derivative,
    )


def is_recognized_code(code: str | None) -> bool:
    return TransactionCode.parse(code) is not None
