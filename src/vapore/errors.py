"""
Error types for the Vanguard portfolio rebalancer.

Fatal errors abort a run with no partial output. InsufficientDataError is the
one non-fatal condition: the engine collects instances as warnings instead of
raising them.
"""


class VaporeError(Exception):
    """Base class for all rebalancer errors."""
    pass


class UnknownSymbolError(VaporeError):
    """Raised when a holding, price or override references a symbol not in the catalog."""

    def __init__(self, symbol: str, source: str = ""):
        self.symbol = symbol
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(f"Unknown symbol {symbol!r}{where}: not in the fund catalog")


class InvalidSplitError(VaporeError):
    """Raised when a stock/bond split is negative or does not sum to 1."""
    pass


class NegativeCashError(VaporeError):
    """Raised when a supplied cash addition is negative."""

    def __init__(self, account: str, amount):
        self.account = account
        self.amount = amount
        super().__init__(f"Cash addition for {account} must not be negative, got {amount}")


class InsufficientDataError(VaporeError):
    """Reported when a symbol that received an allocation has no current price."""

    def __init__(self, account: str, symbol: str):
        self.account = account
        self.symbol = symbol
        super().__init__(
            f"No current price for {symbol} in {account}; order is in dollars only"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InsufficientDataError):
            return NotImplemented
        return (self.account, self.symbol) == (other.account, other.symbol)

    def __hash__(self) -> int:
        return hash((self.account, self.symbol))


class ConfigurationError(VaporeError):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


class DataLoadError(VaporeError):
    """Raised when data cannot be loaded or is invalid."""
    pass
