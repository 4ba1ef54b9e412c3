"""Tests for SAFE pricing and share issuance.

Tests cover:
- Base price computation and its failure modes
- Cap and discount candidate prices
- Effective price under each ConversionPolicy
- Single SAFE and new investor conversion
- Invariant checks
"""

import logging
import pytest
from decimal import Decimal

from simplecap.conversion import (
    candidate_prices,
    check_invariants,
    compute_base_price,
    convert_investor,
    convert_safe,
    percent_tolerance,
    select_effective_price,
)
from simplecap.errors import (
    DoubleConversionError,
    InvalidInvestmentError,
    InvalidValuationError,
    InvariantViolationError,
    ZeroSharesOutstandingError,
)
from simplecap.schemas import ConversionPolicy, Safe, Shareholder

PRE_MONEY = Decimal("15000000")
SHARES = Decimal("10000000")
BASE = Decimal("1.50")


def make_safe(paid, discount=0, cap=0, **kwargs):
    return Safe(
        name=kwargs.pop("name", "Investor"),
        paid_amount=Decimal(str(paid)),
        discount=Decimal(str(discount)),
        valuation_cap=Decimal(str(cap)),
        **kwargs,
    )


def effective(safe, policy=ConversionPolicy.BEST_OF):
    cap_price, discount_price = candidate_prices(safe, BASE, PRE_MONEY, SHARES)
    return select_effective_price(safe, BASE, cap_price, discount_price, PRE_MONEY, policy)


# =============================================================================
# Base price
# =============================================================================

def test_base_price():
    assert compute_base_price(PRE_MONEY, SHARES) == Decimal("1.50")


def test_base_price_rounded_to_cents():
    assert compute_base_price(Decimal("20000000"), Decimal("17259803.93")) == Decimal("1.16")


@pytest.mark.parametrize("valuation", [Decimal("0"), Decimal("-1")])
def test_base_price_rejects_non_positive_valuation(valuation):
    with pytest.raises(InvalidValuationError, match="must be positive"):
        compute_base_price(valuation, SHARES)


def test_base_price_rejects_zero_shares():
    with pytest.raises(ZeroSharesOutstandingError):
        compute_base_price(PRE_MONEY, Decimal("0"))


def test_base_price_rejects_price_rounding_to_zero():
    with pytest.raises(InvalidValuationError, match="rounds to a price"):
        compute_base_price(Decimal("1000"), SHARES)


# =============================================================================
# Candidate prices
# =============================================================================

def test_cap_price_when_cap_below_valuation():
    cap_price, discount_price = candidate_prices(make_safe(1_000_000, cap=10_000_000), BASE, PRE_MONEY, SHARES)
    assert cap_price == Decimal("1.00")
    assert discount_price == BASE


def test_cap_ignored_when_not_below_valuation(caplog):
    caplog.set_level(logging.WARNING, logger="simplecap")
    for cap in (15_000_000, 20_000_000):
        cap_price, _ = candidate_prices(make_safe(1_000_000, cap=cap), BASE, PRE_MONEY, SHARES)
        assert cap_price == BASE
    assert "cap ignored" in caplog.text


def test_discount_price():
    _, discount_price = candidate_prices(make_safe(500_000, discount=0.2), BASE, PRE_MONEY, SHARES)
    assert discount_price == Decimal("1.20")


# =============================================================================
# Effective price by policy
# =============================================================================

def test_cap_dominance_without_discount():
    """Effective price is round(cap / shares, 2) regardless of base price."""
    price, term = effective(make_safe(1_000_000, cap=10_000_000))
    assert price == Decimal("1.00")
    assert term == "cap"


def test_cap_inapplicable_uses_base_price():
    price, term = effective(make_safe(1_000_000, cap=20_000_000))
    assert price == BASE
    assert term == "none"


def test_no_terms_uses_base_price():
    assert effective(make_safe(100_000)) == (BASE, "none")


def test_discount_only():
    price, term = effective(make_safe(500_000, discount=0.2))
    assert price == Decimal("1.20")
    assert term == "discount"


@pytest.mark.parametrize(
    "policy, expected_price, expected_term",
    [
        (ConversionPolicy.BEST_OF, Decimal("1.00"), "cap"),
        (ConversionPolicy.DISCOUNT_OVERRIDES_CAP, Decimal("1.20"), "discount"),
        (ConversionPolicy.BEST_OF_STACKED, Decimal("0.80"), "discount_on_cap"),
    ],
)
def test_discount_and_cap_by_policy(policy, expected_price, expected_term):
    """20% discount and $10M cap at $15M pre-money: cap $1.00, discount $1.20."""
    price, term = effective(make_safe(1_000_000, discount=0.2, cap=10_000_000), policy)
    assert price == expected_price
    assert term == expected_term


def test_best_of_picks_discount_when_cheaper_than_cap():
    """50% discount ($0.75) beats a $12M cap ($1.20)."""
    price, term = effective(make_safe(1_000_000, discount=0.5, cap=12_000_000))
    assert price == Decimal("0.75")
    assert term == "discount"


def test_discount_overrides_cap_falls_back_to_cap_without_discount():
    price, term = effective(make_safe(1_000_000, cap=10_000_000), ConversionPolicy.DISCOUNT_OVERRIDES_CAP)
    assert price == Decimal("1.00")
    assert term == "cap"


def test_policy_accepts_string_value():
    price, _ = effective(make_safe(1_000_000, discount=0.2, cap=10_000_000), "best_of_stacked")
    assert price == Decimal("0.80")


# =============================================================================
# Conversions
# =============================================================================

def test_convert_safe_with_cap():
    holder, conversion = convert_safe(
        make_safe(1_000_000, cap=10_000_000, name="BlackBox Capital"), BASE, PRE_MONEY, SHARES
    )
    assert holder.name == "BlackBox Capital"
    assert holder.num_shares == Decimal("1000000")
    assert holder.price == BASE
    assert holder.percent == 0
    assert holder.share_class == "Seed Preferred"
    assert not holder.is_founder
    assert conversion.effective_price == Decimal("1.00")
    assert conversion.applied_term == "cap"


def test_convert_safe_with_discount_rounds_shares():
    holder, conversion = convert_safe(make_safe(500_000, discount=0.2), BASE, PRE_MONEY, SHARES)
    assert holder.num_shares == Decimal("416666.67")
    assert holder.price == BASE  # discount affects share count only
    assert conversion.discount_price == Decimal("1.20")


def test_convert_safe_uses_future_share_class():
    holder, _ = convert_safe(
        make_safe(100_000, discount=0.1, future_share_class="Seed-2 Preferred"), BASE, PRE_MONEY, SHARES
    )
    assert holder.share_class == "Seed-2 Preferred"


def test_convert_safe_rejects_converted_safe():
    safe = make_safe(1_000_000, cap=10_000_000).mark_converted()
    with pytest.raises(DoubleConversionError, match="already converted"):
        convert_safe(safe, BASE, PRE_MONEY, SHARES)


def test_convert_safe_rejects_negative_paid_amount():
    with pytest.raises(InvalidInvestmentError, match="negative paid amount"):
        convert_safe(make_safe(-1), BASE, PRE_MONEY, SHARES)


@pytest.mark.parametrize("discount", [1, 1.5])
def test_convert_safe_rejects_non_positive_price(discount):
    with pytest.raises(InvalidInvestmentError, match="non-positive price"):
        convert_safe(make_safe(100_000, discount=discount), BASE, PRE_MONEY, SHARES)


def test_convert_investor():
    holder = convert_investor("Cormorant Ventures", Decimal("4000000"), BASE, "Series A Preferred")
    assert holder.num_shares == Decimal("2666666.67")
    assert holder.share_class == "Series A Preferred"
    assert holder.price == BASE
    assert holder.value == Decimal("2666666.67") * BASE


def test_convert_investor_zero_amount():
    holder = convert_investor("Tire Kicker", Decimal("0"), BASE, "Series A Preferred")
    assert holder.num_shares == 0


def test_convert_investor_rejects_negative_amount():
    with pytest.raises(InvalidInvestmentError):
        convert_investor("Refund", Decimal("-100"), BASE, "Series A Preferred")


# =============================================================================
# Invariants
# =============================================================================

def holder(name, shares, percent):
    return Shareholder(name=name, share_class="Common", num_shares=Decimal(shares), percent=Decimal(percent))


def test_check_invariants_passes():
    check_invariants([holder("A", "600", "0.6"), holder("B", "400", "0.4")], Decimal("1000"))


def test_check_invariants_share_mismatch():
    with pytest.raises(InvariantViolationError, match="Shares do not reconcile"):
        check_invariants([holder("A", "600", "0.6"), holder("B", "400", "0.4")], Decimal("1001"))


def test_check_invariants_percent_mismatch():
    with pytest.raises(InvariantViolationError, match="Ownership percentages"):
        check_invariants([holder("A", "600", "0.6"), holder("B", "400", "0.3")], Decimal("1000"))


def test_percent_tolerance_grows_with_holders():
    assert percent_tolerance(1) == Decimal("0.0001")
    assert percent_tolerance(10) == Decimal("0.0005")
