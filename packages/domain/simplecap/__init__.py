"""SimpleCap - startup cap tables from incorporation to the first priced rounds.

This package provides:
- Founding cap tables (founder splits + options pool)
- SAFE recording with discount and valuation cap terms
- Priced round conversion with repricing of every holder
- pandas ownership and dilution views (``simplecap.blocks``)

All arithmetic is Decimal; inputs may be int, float or Decimal.
"""

from .schemas import *  # noqa: F403, F401
from .errors import (  # noqa: F401
    CapTableError,
    InvalidEquityAllocationError,
    ZeroSharesOutstandingError,
    InvalidValuationError,
    InvalidInvestmentError,
    InvalidSafeTermsError,
    DoubleConversionError,
    InvariantViolationError,
)

__version__ = "0.1.0"
