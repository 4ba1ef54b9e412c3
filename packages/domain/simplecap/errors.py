"""Named errors raised by cap table operations.

Every operation validates its inputs before touching the shareholder
collection, so any of these errors leaves the cap table exactly as it was.
"""


class CapTableError(ValueError):
    """Base class for cap table domain errors."""
    pass


class InvalidEquityAllocationError(CapTableError):
    """Founder equity fractions leave no room for the options pool."""
    pass


class ZeroSharesOutstandingError(CapTableError):
    """No shares outstanding to price a round against."""
    pass


class InvalidValuationError(CapTableError):
    """Pre-money valuation is not positive, or prices a share at zero."""
    pass


class InvalidInvestmentError(CapTableError):
    """Paid amount or conversion price cannot produce a share count."""
    pass


class InvalidSafeTermsError(CapTableError):
    """SAFE terms are not shaped (paid_amount, discount, valuation_cap, share_class)."""
    pass


class DoubleConversionError(CapTableError):
    """A SAFE that already converted was submitted for conversion again."""
    pass


class InvariantViolationError(CapTableError):
    """Shares or ownership percentages no longer reconcile."""
    pass
