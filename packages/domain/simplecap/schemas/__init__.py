"""Cap table domain schemas.

Pydantic models for the cap table:
- Base types and Decimal helpers
- Shareholders and SAFEs
- Priced round terms and results
- The CapTable aggregate

Usage:
    from simplecap.schemas import CapTable, Safe, Shareholder, ConversionPolicy
"""

# Base types
from .base import (
    DomainModel,
    ShareCount,
    MoneyAmount,
    Percentage,
    Number,
    to_decimal,
    round_to,
)

# Entities
from .shareholder import Shareholder
from .safe import Safe, SafeStatus

# Rounds
from .rounds import (
    ConversionPolicy,
    PricedRoundTerms,
    SafeConversion,
    PricedRoundResult,
)

# Cap table
from .cap_table import CapTable, create_cap_table

__all__ = [
    # Base types
    "DomainModel",
    "ShareCount",
    "MoneyAmount",
    "Percentage",
    "Number",
    "to_decimal",
    "round_to",
    # Entities
    "Shareholder",
    "Safe",
    "SafeStatus",
    # Rounds
    "ConversionPolicy",
    "PricedRoundTerms",
    "SafeConversion",
    "PricedRoundResult",
    # Cap table
    "CapTable",
    "create_cap_table",
]
