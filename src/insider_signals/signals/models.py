"""Signal models: importance tiers and categories."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Tier(str, Enum):
    """Importance tier used for alerting and ranking."""

    high = "high"
    medium = "medium"
    low = "low"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    def at_least(self, other: Tier) -> bool:
        return self.rank >= other.rank


_TIER_RANK = {Tier.low: 0, Tier.medium: 1, Tier.high: 2}


class Category(str, Enum):
    """Semantic category of a transaction."""

    open_market_purchase = "open_market_purchase"
    open_market_sale = "open_market_sale"
    option_exercise = "option_exercise"
    conversion = "conversion"
    grant_award = "grant_award"
    gift = "gift"
    tax_withholding = "tax_withholding"
    other = "other"


class Classification(BaseModel):
    """Classifier output for one transaction."""

    model_config = ConfigDict(frozen=True)

    tier: Tier
    category: Category
    needs_review: bool = False  # unrecognized code, routed to manual review
