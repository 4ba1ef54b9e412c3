"""Shareholder positions.

A Shareholder is one line of the cap table: who holds how many shares of
which class, what fraction of the company that is, and what it is worth at
the current price per share.
"""

from decimal import Decimal
from pydantic import Field

from .base import DomainModel, ShareCount, MoneyAmount, Percentage


class Shareholder(DomainModel):
    """One equity holder's position.

    ``percent`` and ``value`` are derived. The owning CapTable sets
    ``percent`` after every structural change; ``value`` is recomputed by
    ``recalculate_value()`` whenever shares or price change.

    Examples:
        Founder at incorporation:
            name="Jill", share_class="Common", num_shares=4_800_000,
            percent=0.48, price=0.001, is_founder=True

        SAFE holder after a priced round:
            name="BlackBox Capital", share_class="Seed Preferred",
            num_shares=1_000_000, price=1.50
    """

    name: str = Field(
        description="Holder name (assumed unique, not enforced)"
    )

    share_class: str = Field(
        description="Share class label, e.g. 'Common', 'Seed Preferred', 'Series A Preferred'"
    )

    num_shares: ShareCount = Field(
        description="Number of shares held"
    )

    percent: Percentage = Field(
        default=Decimal("0"),
        description="Fraction of total shares outstanding"
    )

    price: MoneyAmount = Field(
        default=Decimal("0"),
        description="Current price per share"
    )

    value: Decimal = Field(
        default=Decimal("0"),
        description="num_shares * price"
    )

    is_founder: bool = Field(
        default=False,
        frozen=True,
        description="Set at creation, immutable"
    )

    def model_post_init(self, __context) -> None:
        self.recalculate_value()

    def recalculate_value(self) -> Decimal:
        """Recompute ``value`` from shares and price.

        Returns:
            The new value.
        """
        self.value = self.num_shares * self.price
        return self.value

    def __str__(self) -> str:
        return (
            f"{self.name} => num_shares: {self.num_shares}, percent: {self.percent}, "
            f"price: {self.price}, value: {self.value}"
        )
