"""
simplecap.settings
==================

Rounding precisions, default share class labels and the SAFE conversion
policy. Defaults can be overridden with ``SIMPLECAP_*`` environment variables
or a ``.env`` file.
"""

from __future__ import annotations

from decimal import Decimal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SimpleCapSettings(BaseSettings):
    """Pydantic model for cap table settings, loaded from environment variables."""

    # Rounding (decimal places)
    price_precision: int = Field(2, ge=0, description="Decimal places for price per share")
    share_precision: int = Field(2, ge=0, description="Decimal places for shares issued in a round")
    founder_share_precision: int = Field(0, ge=0, description="Decimal places for founder and pool shares")
    percent_precision: int = Field(4, ge=0, description="Decimal places for ownership percentages")
    percent_tolerance: Decimal = Field(
        Decimal("0.0001"),
        ge=0,
        description="Minimum allowed drift of sum(percent) from 1.0",
    )

    # Labels
    common_share_class: str = Field("Common", description="Share class for founders and the options pool")
    options_pool_name: str = Field("Options pool", description="Shareholder name of the options pool")
    safe_share_class: str = Field("Seed Preferred", description="Default class a SAFE converts into")
    priced_round_share_class: str = Field(
        "Series A Preferred",
        description="Default class issued to new priced-round investors",
    )

    conversion_policy: str = Field(
        "best_of",
        description="SAFE price selection: best_of, discount_overrides_cap or best_of_stacked",
    )

    model_config = SettingsConfigDict(
        env_prefix="SIMPLECAP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = SimpleCapSettings()
