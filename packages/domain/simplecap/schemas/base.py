"""Base classes and numeric helpers for SimpleCap domain models.

All money, share and percentage quantities are carried as ``Decimal`` so that
the post-money valuation reconciles exactly with shares x price.
"""

import numbers
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Union
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    - Validation on assignment (derived fields are recomputed in place)
    - Decimal support
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

ShareCount = Annotated[
    Decimal,
    Field(ge=0, description="Number of shares (non-negative)")
]

MoneyAmount = Annotated[
    Decimal,
    Field(ge=0, description="Currency amount (non-negative)")
]

Percentage = Annotated[
    Decimal,
    Field(ge=0, le=1, description="Percentage as decimal (0.0 to 1.0)")
]

Number = Union[int, float, Decimal]


# =============================================================================
# Decimal helpers
# =============================================================================

def to_decimal(value: Number) -> Decimal:
    """Coerce an int/float/Decimal (or a NumPy scalar of one) to a finite Decimal.

    Floats go through their shortest round-trip form, so ``0.48`` becomes
    ``Decimal("0.48")`` rather than the binary expansion. NumPy scalars are
    unwrapped to a plain float first; they repr as ``np.float64(0.48)``.

    Raises:
        TypeError: If value is not a number (strings and bools included).
        ValueError: If value is NaN or infinite.
    """
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        raise TypeError(f"Expected a number, got {type(value).__name__}: {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, numbers.Integral):
        result = Decimal(int(value))
    else:
        result = Decimal(repr(float(value)))

    if not result.is_finite():
        raise ValueError(f"Expected a finite number, got {value!r}")
    return result


def round_to(value: Decimal, places: int) -> Decimal:
    """Round half away from zero to a fixed number of decimal places.

    Example:
        round_to(Decimal("416666.666666"), 2) -> Decimal("416666.67")
    """
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
