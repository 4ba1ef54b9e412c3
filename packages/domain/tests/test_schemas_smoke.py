"""Smoke tests for schema validation.

These tests verify that:
1. All schemas can be imported
2. Derived fields are computed on construction and on demand
3. Immutable fields and records reject assignment
4. Decimal coercion keeps float inputs exact
"""

import numpy as np
import pytest
from decimal import Decimal
from pydantic import ValidationError

from simplecap.schemas import (
    Shareholder,
    Safe,
    SafeStatus,
    ConversionPolicy,
    PricedRoundTerms,
    to_decimal,
    round_to,
)
from simplecap.settings import SimpleCapSettings, settings


class TestShareholder:
    """Shareholder value entity."""

    def test_value_computed_on_construction(self):
        holder = Shareholder(
            name="Jill",
            share_class="Common",
            num_shares=Decimal("4800000"),
            percent=Decimal("0.48"),
            price=Decimal("0.001"),
            is_founder=True,
        )
        assert holder.value == Decimal("4800")

    def test_recalculate_value_after_price_change(self):
        holder = Shareholder(name="Jack", share_class="Common", num_shares=Decimal("3200000"))
        assert holder.value == Decimal("0")

        holder.price = Decimal("1.50")
        assert holder.value == Decimal("0")  # stale until recalculated
        assert holder.recalculate_value() == Decimal("4800000")
        assert holder.value == Decimal("4800000")

    def test_is_founder_is_immutable(self):
        holder = Shareholder(name="Jill", share_class="Common", num_shares=Decimal("1"), is_founder=True)
        with pytest.raises(ValidationError):
            holder.is_founder = False

    def test_negative_shares_rejected(self):
        with pytest.raises(ValidationError):
            Shareholder(name="Bad", share_class="Common", num_shares=Decimal("-1"))

    def test_percent_above_one_rejected(self):
        with pytest.raises(ValidationError):
            Shareholder(name="Bad", share_class="Common", num_shares=Decimal("1"), percent=Decimal("1.5"))

    def test_str(self):
        holder = Shareholder(
            name="Jill",
            share_class="Common",
            num_shares=Decimal("4800000"),
            percent=Decimal("0.48"),
            price=Decimal("0.001"),
        )
        assert str(holder).startswith("Jill => num_shares: 4800000, percent: 0.48, price: 0.001")


class TestSafe:
    """Safe records."""

    def test_defaults(self):
        safe = Safe(name="Opaque Ventures", paid_amount=Decimal("500000"))
        assert safe.discount == Decimal("0")
        assert safe.valuation_cap == Decimal("0")
        assert safe.future_share_class == "Seed Preferred"
        assert safe.status == SafeStatus.PENDING
        assert not safe.has_discount
        assert not safe.has_cap
        assert not safe.is_converted

    def test_safe_is_frozen(self):
        safe = Safe(name="Opaque Ventures", paid_amount=Decimal("500000"))
        with pytest.raises(ValidationError):
            safe.paid_amount = Decimal("1")

    def test_mark_converted_returns_copy(self):
        safe = Safe(name="BlackBox Capital", paid_amount=Decimal("1000000"), valuation_cap=Decimal("10000000"))
        converted = safe.mark_converted()

        assert converted.is_converted
        assert converted.valuation_cap == safe.valuation_cap
        assert not safe.is_converted

    def test_nonsensical_terms_accepted_as_is(self):
        safe = Safe(name="Odd", paid_amount=Decimal("-5"), discount=Decimal("1.5"))
        assert safe.paid_amount == Decimal("-5")
        assert safe.discount == Decimal("1.5")

    def test_str(self):
        safe = Safe(name="Opaque Ventures", paid_amount=Decimal("500000"), discount=Decimal("0.2"))
        assert str(safe) == (
            "[SAFE] Opaque Ventures => paid_amount: 500000, discount: 0.2, cap: 0, status: pending"
        )


class TestPricedRoundTerms:
    """Priced round terms coercion."""

    def test_floats_coerced_to_exact_decimals(self):
        terms = PricedRoundTerms(
            investors_to_paid_amounts={"Cormorant Ventures": 4_000_000.0, "Provident Capital": 0.1},
            pre_money_valuation=15_000_000,
        )
        assert terms.investors_to_paid_amounts["Provident Capital"] == Decimal("0.1")
        assert terms.pre_money_valuation == Decimal("15000000")
        assert terms.share_class is None

    def test_malformed_numbers_rejected(self):
        with pytest.raises(ValidationError):
            PricedRoundTerms(investors_to_paid_amounts={}, pre_money_valuation="15000000")
        with pytest.raises(ValidationError):
            PricedRoundTerms(investors_to_paid_amounts={"Fund": float("nan")}, pre_money_valuation=15_000_000)

    def test_conversion_policy_values(self):
        assert ConversionPolicy("best_of") == ConversionPolicy.BEST_OF
        assert ConversionPolicy("discount_overrides_cap") == ConversionPolicy.DISCOUNT_OVERRIDES_CAP
        assert ConversionPolicy("best_of_stacked") == ConversionPolicy.BEST_OF_STACKED


class TestDecimalHelpers:
    """to_decimal and round_to."""

    def test_to_decimal_float_uses_repr(self):
        assert to_decimal(0.48) == Decimal("0.48")
        assert to_decimal(10_000_000) == Decimal("10000000")
        assert to_decimal(Decimal("1.5")) == Decimal("1.5")

    def test_to_decimal_rejects_bool(self):
        with pytest.raises(TypeError):
            to_decimal(True)

    def test_to_decimal_numpy_scalars(self):
        assert to_decimal(np.float64(0.48)) == Decimal("0.48")
        assert to_decimal(np.float64(4_000_000.0)) == Decimal("4000000")
        assert to_decimal(np.int64(10_000_000)) == Decimal("10000000")

    @pytest.mark.parametrize("value", ["abc", "1e6", "0.48", None])
    def test_to_decimal_rejects_non_numbers(self, value):
        with pytest.raises(TypeError, match="Expected a number"):
            to_decimal(value)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), Decimal("NaN"), np.float64("-inf")])
    def test_to_decimal_rejects_non_finite(self, value):
        with pytest.raises(ValueError, match="finite"):
            to_decimal(value)

    def test_round_to_half_up(self):
        assert round_to(Decimal("416666.666666"), 2) == Decimal("416666.67")
        assert round_to(Decimal("0.00005"), 4) == Decimal("0.0001")
        assert round_to(Decimal("1.5"), 0) == Decimal("2")
        assert round_to(Decimal("2.5"), 0) == Decimal("3")


class TestSettings:
    """Environment-driven settings."""

    def test_defaults(self):
        cfg = SimpleCapSettings()
        assert cfg.price_precision == 2
        assert cfg.percent_precision == 4
        assert cfg.options_pool_name == "Options pool"
        assert cfg.priced_round_share_class == "Series A Preferred"
        assert cfg.conversion_policy == "best_of"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SIMPLECAP_SAFE_SHARE_CLASS", "Seed-2 Preferred")
        monkeypatch.setenv("SIMPLECAP_SHARE_PRECISION", "0")
        cfg = SimpleCapSettings()
        assert cfg.safe_share_class == "Seed-2 Preferred"
        assert cfg.share_precision == 0

    def test_safe_share_class_follows_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "safe_share_class", "Seed-2 Preferred")
        safe = Safe(name="Angel", paid_amount=Decimal("25000"))
        assert safe.future_share_class == "Seed-2 Preferred"
