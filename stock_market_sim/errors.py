from enum import Enum


class ErrorKind(str, Enum):
    """Reasons a trade or instrument lookup can be rejected."""

    INVALID_QUANTITY = "InvalidQuantity"
    INVALID_PRICE = "InvalidPrice"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    NO_POSITION = "NoPosition"
    INSUFFICIENT_SHARES = "InsufficientShares"
    UNKNOWN_SYMBOL = "UnknownSymbol"
    DATA_SOURCE_UNAVAILABLE = "DataSourceUnavailable"


class DataSourceUnavailable(Exception):
    """Raised by a quote provider when a seed quote cannot be obtained."""

    kind = ErrorKind.DATA_SOURCE_UNAVAILABLE

    def __init__(self, symbol: str, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Quote for {symbol} unavailable: {reason}")
