"""The CapTable aggregate.

A CapTable owns one company's shareholders and SAFEs. It is created once from
founder equity splits, records SAFEs as they are signed, and converts them
(with any new money) at priced rounds.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import Field

from .base import DomainModel, Number, round_to, to_decimal
from .rounds import ConversionPolicy, PricedRoundResult, PricedRoundTerms
from .safe import Safe
from .shareholder import Shareholder
from ..conversion import check_invariants, run_priced_round
from ..errors import (
    InvalidEquityAllocationError,
    InvalidInvestmentError,
    InvalidSafeTermsError,
    InvalidValuationError,
)
from ..settings import settings

logger = logging.getLogger(__name__)


class CapTable(DomainModel):
    """Capitalization table for one company.

    Lifecycle:
        1. ``CapTable.create()``      founders + options pool
        2. ``add_safes()``            record SAFEs (no shares yet)
        3. ``add_priced_round()``     convert pending SAFEs and new money

    Every mutating operation validates first and commits last: on error the
    shareholders and safes are left exactly as they were.

    Example:
        cap_table = CapTable.create({"Jill": 0.48, "Jack": 0.32}, 10_000_000, 0.001)
        cap_table.add_safes({"BlackBox Capital": [1_000_000, 0.0, 10_000_000]})
        post_money = cap_table.add_priced_round({"Cormorant Ventures": 4_000_000}, 15_000_000)
    """

    shareholders: List[Shareholder] = Field(
        default_factory=list,
        description="Founders, then the options pool, then round conversions in order"
    )

    safes: List[Safe] = Field(
        default_factory=list,
        description="Recorded SAFEs (append-only; converted ones are marked, not removed)"
    )

    conversion_policy: ConversionPolicy = Field(
        default_factory=lambda: ConversionPolicy(settings.conversion_policy),
        description="How SAFE discount and cap terms are combined"
    )

    # -------------------------------------------------------------------------
    # Founding
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        founders_to_equity_percent: Mapping[str, Number],
        total_shares: int,
        price_per_share: Number = 0,
        conversion_policy: Optional[ConversionPolicy] = None,
    ) -> "CapTable":
        """Create the initial cap table at incorporation.

        Each founder gets ``total_shares * fraction`` Common shares; whatever
        is left over is reserved as the options pool.

        Args:
            founders_to_equity_percent: Founder name -> equity fraction,
                e.g. {"Maria": 0.50, "Rajkumar": 0.35}
            total_shares: Shares issued on incorporation, e.g. 10_000_000
            price_per_share: Price of each share (0 for par-value shares)
            conversion_policy: SAFE price selection (None = settings default)

        Returns:
            A new CapTable.

        Raises:
            InvalidEquityAllocationError: If a fraction is not a finite number
                or is outside (0, 1), the fractions sum to 1 or more,
                total_shares is not positive, or the price is negative.
        """
        try:
            fractions = {name: to_decimal(pct) for name, pct in founders_to_equity_percent.items()}
            price = to_decimal(price_per_share)
        except (TypeError, ValueError) as e:
            raise InvalidEquityAllocationError(f"Founder equity and price must be finite numbers: {e}") from e
        _validate_founding(fractions, total_shares, price)

        total = Decimal(total_shares)
        common = settings.common_share_class
        places = settings.founder_share_precision

        shareholders = [
            Shareholder(
                name=name,
                share_class=common,
                num_shares=round_to(total * fraction, places),
                percent=fraction,
                price=price,
                is_founder=True,
            )
            for name, fraction in fractions.items()
        ]

        pool_percent = round_to(1 - sum(fractions.values(), Decimal("0")), settings.percent_precision)
        shareholders.append(
            Shareholder(
                name=settings.options_pool_name,
                share_class=common,
                num_shares=round_to(total * pool_percent, places),
                percent=pool_percent,
                price=price,
                is_founder=False,
            )
        )

        # Pool percent rounding moves the pool by up to half a percent unit of
        # total shares; each line also rounds to whole shares independently
        half_unit = Decimal(1).scaleb(-settings.percent_precision) / 2
        share_tolerance = total * half_unit + Decimal(len(shareholders)) / 2
        check_invariants(shareholders, total, share_tolerance=share_tolerance)

        kwargs = {"shareholders": shareholders}
        if conversion_policy is not None:
            kwargs["conversion_policy"] = conversion_policy
        cap_table = cls(**kwargs)

        logger.info(
            f"Cap table created: {len(fractions)} founders, {total_shares} shares, "
            f"options pool {pool_percent}"
        )
        return cap_table

    # -------------------------------------------------------------------------
    # SAFEs
    # -------------------------------------------------------------------------

    def add_safes(self, investors_to_terms: Mapping[str, Sequence]) -> List[Safe]:
        """Record SAFEs to convert at the next priced round.

        Args:
            investors_to_terms: Investor name -> terms, shaped
                [paid_amount, discount, valuation_cap, future_share_class]
                where everything after paid_amount is optional, e.g.
                {"100X Ventures": [1_500_000.0, 0.20, 12_000_000.0]}

        Returns:
            The Safe records added, in input order.

        Raises:
            InvalidSafeTermsError: If a terms sequence has the wrong shape or
                holds something other than finite numbers.
        """
        new_safes = [_safe_from_terms(name, terms) for name, terms in investors_to_terms.items()]
        self.safes = self.safes + new_safes
        logger.info(f"Recorded {len(new_safes)} SAFEs ({len(self.pending_safes)} pending)")
        return new_safes

    # -------------------------------------------------------------------------
    # Priced rounds
    # -------------------------------------------------------------------------

    def preview_priced_round(
        self,
        investors_to_paid_amounts: Mapping[str, Number],
        pre_money_valuation: Number,
        share_class: Optional[str] = None,
    ) -> PricedRoundResult:
        """Compute a priced round without changing this cap table.

        Returns:
            PricedRoundResult with pro forma shareholders, safes and the
            per-SAFE conversion breakdown.

        Raises:
            InvalidValuationError: If pre_money_valuation is not a finite number.
            InvalidInvestmentError: If a paid amount is not a finite number.
        """
        try:
            valuation = to_decimal(pre_money_valuation)
        except (TypeError, ValueError) as e:
            raise InvalidValuationError(f"Pre-money valuation must be a finite number: {e}") from e

        amounts = {}
        for name, amount in investors_to_paid_amounts.items():
            try:
                amounts[name] = to_decimal(amount)
            except (TypeError, ValueError) as e:
                raise InvalidInvestmentError(f"Investor '{name}' paid amount must be a finite number: {e}") from e

        terms = PricedRoundTerms(
            investors_to_paid_amounts=amounts,
            pre_money_valuation=valuation,
            share_class=share_class,
        )
        return run_priced_round(self.shareholders, self.safes, terms, self.conversion_policy)

    def add_priced_round(
        self,
        investors_to_paid_amounts: Mapping[str, Number],
        pre_money_valuation: Number,
        share_class: Optional[str] = None,
    ) -> Decimal:
        """Convert pending SAFEs and new money at a priced round.

        Args:
            investors_to_paid_amounts: New investor name -> amount paid,
                e.g. {"Next Stage VC": 4_500_000.0}
            pre_money_valuation: Company valuation before the round
            share_class: Class issued to new investors
                (default "Series A Preferred")

        Returns:
            Post-money valuation (sum of every holder's value).

        Raises:
            InvalidValuationError, ZeroSharesOutstandingError,
            InvalidInvestmentError: Nothing is changed when raised.
        """
        result = self.preview_priced_round(investors_to_paid_amounts, pre_money_valuation, share_class)

        self.shareholders = result.shareholders
        self.safes = result.safes

        logger.info(
            f"Priced round closed at {result.base_price}/share: {len(result.conversions)} SAFEs converted, "
            f"{len(investors_to_paid_amounts)} new investors, post-money {result.post_money_valuation}"
        )
        return result.post_money_valuation

    def is_priced_round_founder_friendly(
        self,
        investors_to_paid_amounts: Mapping[str, Number],
        pre_money_valuation: Number,
    ) -> bool:
        """Would founders still out-own preferred holders after this round?

        Runs the round on copies; this cap table is not changed.

        Returns:
            True if the founders' combined percent exceeds the combined
            percent of every non-common holder.
        """
        result = self.preview_priced_round(investors_to_paid_amounts, pre_money_valuation)
        return result.founder_percent > result.preferred_percent(settings.common_share_class)

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def pending_safes(self) -> List[Safe]:
        return [s for s in self.safes if not s.is_converted]

    @property
    def total_shares_outstanding(self) -> Decimal:
        return sum((s.num_shares for s in self.shareholders), Decimal("0"))

    @property
    def post_money_valuation(self) -> Decimal:
        """Sum of every holder's value at the current price."""
        return sum((s.value for s in self.shareholders), Decimal("0"))

    @property
    def founder_percent(self) -> Decimal:
        return sum((s.percent for s in self.shareholders if s.is_founder), Decimal("0"))

    @property
    def preferred_percent(self) -> Decimal:
        common = settings.common_share_class
        return sum((s.percent for s in self.shareholders if s.share_class != common), Decimal("0"))

    def get_shareholder(self, name: str) -> List[Shareholder]:
        """All lines held under ``name`` (a SAFE investor can also buy in the round)."""
        return [s for s in self.shareholders if s.name == name]

    def __str__(self) -> str:
        lines = [str(s) for s in self.shareholders]
        lines.extend(str(s) for s in self.safes)
        return "\n".join(lines)


def create_cap_table(
    founders_to_equity_percent: Mapping[str, Number],
    total_shares: int,
    price_per_share: Number = 0,
    conversion_policy: Optional[ConversionPolicy] = None,
) -> CapTable:
    """Create a cap table from founder splits. See ``CapTable.create``."""
    return CapTable.create(founders_to_equity_percent, total_shares, price_per_share, conversion_policy)


# =============================================================================
# Helpers
# =============================================================================

def _validate_founding(fractions: Dict[str, Decimal], total_shares: int, price: Decimal) -> None:
    if isinstance(total_shares, bool) or not isinstance(total_shares, int) or total_shares <= 0:
        raise InvalidEquityAllocationError(
            f"total_shares must be a positive integer, got {total_shares!r}"
        )
    if price < 0:
        raise InvalidEquityAllocationError(f"price_per_share must be non-negative, got {price}")

    for name, fraction in fractions.items():
        if not 0 < fraction < 1:
            raise InvalidEquityAllocationError(
                f"Founder '{name}' equity must be between 0 and 1 (exclusive), got {fraction}"
            )

    allocated = sum(fractions.values(), Decimal("0"))
    if allocated >= 1:
        raise InvalidEquityAllocationError(
            f"Founder equity sums to {allocated}; must be below 1 to leave room for the options pool"
        )


def _safe_from_terms(name: str, terms: Sequence) -> Safe:
    if isinstance(terms, (str, bytes)) or not isinstance(terms, Sequence):
        raise InvalidSafeTermsError(
            f"SAFE terms for '{name}' must be a sequence, got {type(terms).__name__}"
        )
    if not 1 <= len(terms) <= 4:
        raise InvalidSafeTermsError(
            f"SAFE terms for '{name}' must be [paid_amount, discount, valuation_cap, share_class], "
            f"got {len(terms)} values"
        )

    paid_amount, discount, valuation_cap, future_share_class = (
        list(terms) + [0, 0, settings.safe_share_class][len(terms) - 1:]
    )
    try:
        amounts = [to_decimal(paid_amount), to_decimal(discount), to_decimal(valuation_cap)]
    except (TypeError, ValueError) as e:
        raise InvalidSafeTermsError(f"SAFE terms for '{name}' must be finite numbers: {e}") from e

    return Safe(
        name=name,
        paid_amount=amounts[0],
        discount=amounts[1],
        valuation_cap=amounts[2],
        future_share_class=future_share_class,
    )
