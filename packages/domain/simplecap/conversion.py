"""Priced round conversion.

Turns pending SAFEs and new investor money into shareholders at a priced
round, then reprices every line of the cap table.

Steps:
    1. Base price   = round(pre-money / pre-existing shares, 2)
    2. SAFEs        = paid / effective price, where the effective price is
                      chosen from the base, discount and cap prices by the
                      ConversionPolicy
    3. New money    = paid / base price
    4. Reprice      every holder at the base price; percent = shares / total
    5. Post-money   = sum(value) = total post-money shares x base price

Everything here works on copies: ``run_priced_round`` never touches the
lists it is given.

Example:
    10M shares outstanding, $15M pre-money -> base price $1.50
    SAFE $1M, $10M cap      -> cap price $1.00    -> 1,000,000 shares
    SAFE $500K, 20% discount -> price $1.20        -> 416,666.67 shares
    New investor $4M         -> price $1.50        -> 2,666,666.67 shares
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import (
    DoubleConversionError,
    InvalidInvestmentError,
    InvalidValuationError,
    InvariantViolationError,
    ZeroSharesOutstandingError,
)
from .schemas.base import round_to
from .schemas.rounds import (
    ConversionPolicy,
    PricedRoundResult,
    PricedRoundTerms,
    SafeConversion,
)
from .schemas.safe import Safe
from .schemas.shareholder import Shareholder
from .settings import settings

logger = logging.getLogger(__name__)


# =============================================================================
# Totals and invariants
# =============================================================================

def total_shares(shareholders: Iterable[Shareholder]) -> Decimal:
    return sum((s.num_shares for s in shareholders), Decimal("0"))


def percent_tolerance(holder_count: int) -> Decimal:
    """Allowed drift of sum(percent) from 1.0.

    Each percent is rounded independently, so the drift can grow by half a
    unit of the last place per holder.
    """
    half_unit = Decimal(1).scaleb(-settings.percent_precision) / 2
    return max(settings.percent_tolerance, half_unit * holder_count)


def check_invariants(
    shareholders: Sequence[Shareholder],
    expected_total_shares: Decimal,
    share_tolerance: Decimal = Decimal("0"),
) -> None:
    """Verify shares reconcile to the expected total and percents sum to 1.

    Raises:
        InvariantViolationError: If either check fails.
    """
    actual_shares = total_shares(shareholders)
    if abs(actual_shares - expected_total_shares) > share_tolerance:
        raise InvariantViolationError(
            f"Shares do not reconcile: holders sum to {actual_shares}, "
            f"expected {expected_total_shares} (tolerance {share_tolerance})"
        )

    percent_sum = sum((s.percent for s in shareholders), Decimal("0"))
    tolerance = percent_tolerance(len(shareholders))
    if abs(percent_sum - 1) > tolerance:
        raise InvariantViolationError(
            f"Ownership percentages sum to {percent_sum}, expected 1.0 (tolerance {tolerance})"
        )


# =============================================================================
# Pricing
# =============================================================================

def compute_base_price(pre_money_valuation: Decimal, total_pre_existing_shares: Decimal) -> Decimal:
    """Price per share for the round: pre-money / pre-existing shares.

    Raises:
        InvalidValuationError: If the valuation is not positive or the price
            rounds to zero.
        ZeroSharesOutstandingError: If there are no shares to divide by.
    """
    if pre_money_valuation <= 0:
        raise InvalidValuationError(
            f"Pre-money valuation must be positive, got {pre_money_valuation}"
        )
    if total_pre_existing_shares <= 0:
        raise ZeroSharesOutstandingError(
            "Cannot price a round: cap table has no shares outstanding"
        )

    base_price = round_to(pre_money_valuation / total_pre_existing_shares, settings.price_precision)
    if base_price <= 0:
        raise InvalidValuationError(
            f"Pre-money valuation {pre_money_valuation} over {total_pre_existing_shares} shares "
            f"rounds to a price of {base_price}"
        )
    return base_price


def cap_applies(safe: Safe, pre_money_valuation: Decimal) -> bool:
    """A cap only helps the investor when it sits below the round's valuation."""
    return safe.has_cap and safe.valuation_cap < pre_money_valuation


def candidate_prices(
    safe: Safe,
    base_price: Decimal,
    pre_money_valuation: Decimal,
    total_pre_existing_shares: Decimal,
) -> Tuple[Decimal, Decimal]:
    """Compute (cap price, discount price) for a SAFE.

    Each falls back to the base price when its term does not apply.
    """
    if cap_applies(safe, pre_money_valuation):
        cap_price = round_to(safe.valuation_cap / total_pre_existing_shares, settings.price_precision)
    else:
        if safe.has_cap:
            logger.warning(
                f"SAFE '{safe.name}' cap {safe.valuation_cap} is not below pre-money "
                f"{pre_money_valuation}; cap ignored"
            )
        cap_price = base_price

    if safe.has_discount:
        discount_price = base_price * (1 - safe.discount)
    else:
        discount_price = base_price

    return cap_price, discount_price


def select_effective_price(
    safe: Safe,
    base_price: Decimal,
    cap_price: Decimal,
    discount_price: Decimal,
    pre_money_valuation: Decimal,
    policy: ConversionPolicy,
) -> Tuple[Decimal, str]:
    """Pick the price a SAFE converts at.

    Returns:
        (effective price, applied term) where the term is one of
        "none", "discount", "cap", "discount_on_cap".
    """
    policy = ConversionPolicy(policy)
    has_cap = cap_applies(safe, pre_money_valuation)

    if policy == ConversionPolicy.DISCOUNT_OVERRIDES_CAP:
        if safe.has_discount:
            return discount_price, "discount"
        if has_cap:
            return cap_price, "cap"
        return base_price, "none"

    # Ties keep the earlier candidate
    candidates = [("none", base_price)]
    if safe.has_discount:
        candidates.append(("discount", discount_price))
    if has_cap:
        candidates.append(("cap", cap_price))
    if policy == ConversionPolicy.BEST_OF_STACKED and has_cap and safe.has_discount:
        candidates.append(("discount_on_cap", cap_price * (1 - safe.discount)))

    term, price = min(candidates, key=lambda candidate: candidate[1])
    return price, term


# =============================================================================
# Conversions
# =============================================================================

def convert_safe(
    safe: Safe,
    base_price: Decimal,
    pre_money_valuation: Decimal,
    total_pre_existing_shares: Decimal,
    policy: ConversionPolicy = ConversionPolicy.BEST_OF,
) -> Tuple[Shareholder, SafeConversion]:
    """Convert one pending SAFE into a shareholder.

    The new holder's ``price`` is the round's base price: discount and cap
    change how many shares the investor gets, not the price on record.

    Raises:
        DoubleConversionError: If the SAFE already converted.
        InvalidInvestmentError: If the paid amount is negative or the terms
            produce a non-positive price.
    """
    if safe.is_converted:
        raise DoubleConversionError(f"SAFE '{safe.name}' has already converted")
    if safe.paid_amount < 0:
        raise InvalidInvestmentError(
            f"SAFE '{safe.name}' has a negative paid amount: {safe.paid_amount}"
        )

    cap_price, discount_price = candidate_prices(
        safe, base_price, pre_money_valuation, total_pre_existing_shares
    )
    effective_price, term = select_effective_price(
        safe, base_price, cap_price, discount_price, pre_money_valuation, policy
    )
    if effective_price <= 0:
        raise InvalidInvestmentError(
            f"SAFE '{safe.name}' converts at a non-positive price {effective_price} "
            f"(discount {safe.discount}, cap {safe.valuation_cap})"
        )

    shares = round_to(safe.paid_amount / effective_price, settings.share_precision)
    logger.debug(
        f"SAFE '{safe.name}': base {base_price}, cap {cap_price}, discount {discount_price} "
        f"-> {effective_price} ({term}), {shares} shares"
    )

    holder = Shareholder(
        name=safe.name,
        share_class=safe.future_share_class,
        num_shares=shares,
        percent=Decimal("0"),
        price=base_price,
    )
    conversion = SafeConversion(
        safe_name=safe.name,
        paid_amount=safe.paid_amount,
        base_price=base_price,
        cap_price=cap_price,
        discount_price=discount_price,
        effective_price=effective_price,
        applied_term=term,
        shares=shares,
        share_class=safe.future_share_class,
    )
    return holder, conversion


def convert_investor(name: str, paid_amount: Decimal, base_price: Decimal, share_class: str) -> Shareholder:
    """Issue shares to a new priced-round investor at the base price.

    Raises:
        InvalidInvestmentError: If the paid amount is negative.
    """
    if paid_amount < 0:
        raise InvalidInvestmentError(
            f"Investor '{name}' has a negative paid amount: {paid_amount}"
        )
    return Shareholder(
        name=name,
        share_class=share_class,
        num_shares=round_to(paid_amount / base_price, settings.share_precision),
        percent=Decimal("0"),
        price=base_price,
    )


def reprice(shareholders: Sequence[Shareholder], price: Decimal) -> Decimal:
    """Set every holder to ``price`` and recompute percent and value.

    Returns:
        Total shares outstanding.
    """
    total = total_shares(shareholders)
    for holder in shareholders:
        holder.price = price
        holder.percent = round_to(holder.num_shares / total, settings.percent_precision)
        holder.recalculate_value()
    return total


def run_priced_round(
    shareholders: Sequence[Shareholder],
    safes: Sequence[Safe],
    terms: PricedRoundTerms,
    policy: Optional[ConversionPolicy] = None,
) -> PricedRoundResult:
    """Compute a priced round against copies of the given collections.

    Only pending SAFEs convert; converted ones are carried over unchanged.

    Args:
        shareholders: Current shareholders (not modified)
        safes: Recorded SAFEs (not modified)
        terms: New investors, pre-money valuation and share class
        policy: SAFE price selection (None = settings default)

    Returns:
        PricedRoundResult holding the pro forma shareholders and safes.

    Raises:
        CapTableError subclasses for any invalid input; nothing is returned
        partially computed.
    """
    policy = ConversionPolicy(policy or settings.conversion_policy)
    share_class = terms.share_class or settings.priced_round_share_class

    holders: List[Shareholder] = [s.model_copy(deep=True) for s in shareholders]
    total_pre_existing = total_shares(holders)
    base_price = compute_base_price(terms.pre_money_valuation, total_pre_existing)

    new_safes: List[Safe] = []
    conversions: List[SafeConversion] = []
    new_money = Decimal("0")
    for safe in safes:
        if safe.is_converted:
            new_safes.append(safe.model_copy())
            continue
        holder, conversion = convert_safe(
            safe, base_price, terms.pre_money_valuation, total_pre_existing, policy
        )
        holders.append(holder)
        conversions.append(conversion)
        new_safes.append(safe.mark_converted())
        new_money += safe.paid_amount

    for name, paid_amount in terms.investors_to_paid_amounts.items():
        holders.append(convert_investor(name, paid_amount, base_price, share_class))
        new_money += paid_amount

    total_post_money = reprice(holders, base_price)
    check_invariants(holders, total_post_money)

    post_money = sum((h.value for h in holders), Decimal("0"))
    return PricedRoundResult(
        pre_money_valuation=terms.pre_money_valuation,
        base_price=base_price,
        total_pre_existing_shares=total_pre_existing,
        total_post_money_shares=total_post_money,
        post_money_valuation=post_money,
        new_money=new_money,
        conversions=conversions,
        shareholders=holders,
        safes=new_safes,
    )
