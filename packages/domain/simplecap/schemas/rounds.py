"""Priced round models.

These describe the inputs and outcome of converting SAFEs and new money into
equity at a priced round. They hold results; the arithmetic lives in
``simplecap.conversion``.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional
from pydantic import Field, field_validator

from .base import DomainModel, Number, to_decimal
from .safe import Safe
from .shareholder import Shareholder


# =============================================================================
# Conversion Policy
# =============================================================================

class ConversionPolicy(str, Enum):
    """How a SAFE's effective price is chosen from its candidate prices.

    Candidates for a SAFE at base price P:
        cap price      = cap / pre-existing shares (only when 0 < cap < pre-money)
        discount price = P * (1 - discount)        (only when discount > 0)

    BEST_OF:
        min(P, discount price, cap price). The investor gets whichever term
        buys the most shares.

    DISCOUNT_OVERRIDES_CAP:
        When a discount is present it is applied to P and the cap is ignored;
        otherwise the cap price is used.

    BEST_OF_STACKED:
        BEST_OF, plus the discount applied on top of the cap price as a
        fourth candidate.
    """

    BEST_OF = "best_of"
    DISCOUNT_OVERRIDES_CAP = "discount_overrides_cap"
    BEST_OF_STACKED = "best_of_stacked"


# =============================================================================
# Round Terms
# =============================================================================

class PricedRoundTerms(DomainModel):
    """New money and valuation for a priced round.

    Example:
        PricedRoundTerms(
            investors_to_paid_amounts={"Cormorant Ventures": 4_000_000},
            pre_money_valuation=15_000_000,
        )
    """

    investors_to_paid_amounts: Dict[str, Decimal] = Field(
        default_factory=dict,
        description="New investor name -> amount paid"
    )

    pre_money_valuation: Decimal = Field(
        description="Company valuation before this round"
    )

    share_class: Optional[str] = Field(
        default=None,
        description="Class issued to new investors (None = settings default)"
    )

    @field_validator("investors_to_paid_amounts", mode="before")
    @classmethod
    def coerce_amounts(cls, v: Dict[str, Number]) -> Dict[str, Decimal]:
        try:
            return {name: to_decimal(amount) for name, amount in v.items()}
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_validator("pre_money_valuation", mode="before")
    @classmethod
    def coerce_valuation(cls, v: Number) -> Decimal:
        try:
            return to_decimal(v)
        except TypeError as e:
            raise ValueError(str(e)) from e


# =============================================================================
# Conversion Results
# =============================================================================

class SafeConversion(DomainModel):
    """How one SAFE was priced in a round.

    ``applied_term`` names the candidate that set the effective price:
    "cap", "discount", "discount_on_cap" or "none" (converted at base price).
    """

    safe_name: str
    paid_amount: Decimal
    base_price: Decimal
    cap_price: Decimal
    discount_price: Decimal
    effective_price: Decimal
    applied_term: str
    shares: Decimal
    share_class: str


class PricedRoundResult(DomainModel):
    """Outcome of a priced round computed against copies of a cap table.

    ``shareholders`` and ``safes`` are the pro forma collections; nothing here
    aliases the live cap table's records.
    """

    pre_money_valuation: Decimal
    base_price: Decimal
    total_pre_existing_shares: Decimal
    total_post_money_shares: Decimal
    post_money_valuation: Decimal
    new_money: Decimal = Field(
        description="SAFE paid amounts converted this round plus new investor money"
    )
    conversions: List[SafeConversion] = Field(default_factory=list)
    shareholders: List[Shareholder] = Field(default_factory=list)
    safes: List[Safe] = Field(default_factory=list)

    @property
    def founder_percent(self) -> Decimal:
        return sum((s.percent for s in self.shareholders if s.is_founder), Decimal("0"))

    def preferred_percent(self, common_share_class: str) -> Decimal:
        """Sum of percents held outside the common class."""
        return sum(
            (s.percent for s in self.shareholders if s.share_class != common_share_class),
            Decimal("0"),
        )
