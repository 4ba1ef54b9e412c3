"""SAFE (Simple Agreement for Future Equity) records.

A SAFE is money paid now for shares issued at the next priced round. The
investor's terms decide how cheaply those shares are bought:

    - Discount: buy at (1 - discount) x the round's price per share
    - Valuation cap: buy at cap / pre-existing shares, when the cap sits
      below the round's pre-money valuation

A value of 0 for either term means "no discount" / "no cap".
"""

from decimal import Decimal
from enum import Enum
from pydantic import ConfigDict, Field

from .base import DomainModel
from ..settings import settings


class SafeStatus(str, Enum):
    """Conversion state of a SAFE."""

    PENDING = "pending"
    CONVERTED = "converted"


class Safe(DomainModel):
    """A recorded SAFE investment.

    Safes are immutable. Converting one never edits it in place: the cap
    table swaps in the copy returned by ``mark_converted()`` in the same step
    that adds the investor's Shareholder line.

    Terms are stored as given; a nonsensical combination (e.g. a 100%
    discount) is rejected when the SAFE is priced, not when it is recorded.

    Example:
        Safe(name="Opaque Ventures", paid_amount=500_000, discount=0.2)
        Safe(name="BlackBox Capital", paid_amount=1_000_000, valuation_cap=10_000_000)
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    name: str = Field(
        description="Investor name"
    )

    paid_amount: Decimal = Field(
        description="Amount invested"
    )

    discount: Decimal = Field(
        default=Decimal("0"),
        description="Discount on the round price (0.20 = 20%); 0 = no discount"
    )

    valuation_cap: Decimal = Field(
        default=Decimal("0"),
        description="Valuation cap for conversion; 0 = no cap"
    )

    future_share_class: str = Field(
        default_factory=lambda: settings.safe_share_class,
        description="Share class issued on conversion"
    )

    status: SafeStatus = Field(
        default=SafeStatus.PENDING,
        description="pending until converted in a priced round"
    )

    @property
    def has_discount(self) -> bool:
        return self.discount > 0

    @property
    def has_cap(self) -> bool:
        return self.valuation_cap > 0

    @property
    def is_converted(self) -> bool:
        return self.status == SafeStatus.CONVERTED

    def mark_converted(self) -> "Safe":
        """Return a converted copy of this SAFE."""
        return self.model_copy(update={"status": SafeStatus.CONVERTED})

    def __str__(self) -> str:
        return (
            f"[SAFE] {self.name} => paid_amount: {self.paid_amount}, discount: {self.discount}, "
            f"cap: {self.valuation_cap}, status: {self.status.value}"
        )
