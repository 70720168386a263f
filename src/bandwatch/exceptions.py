"""Exception hierarchy for the scanner and its quote source."""

from typing import Any, Dict, Optional


class BandwatchError(Exception):
    """Base exception for Bandwatch."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(BandwatchError):
    """Exception for invalid configuration (settings or symbol list)."""

    def __init__(self, setting: str, message: str):
        super().__init__(
            message=f"Configuration error for '{setting}': {message}",
            details={"setting": setting},
        )


class UpstreamError(BandwatchError):
    """Failure retrieving a series from the quote provider."""

    def __init__(
        self,
        message: str,
        symbol_key: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            details={"symbol_key": symbol_key, "status_code": status_code},
        )
        self.symbol_key = symbol_key
        self.status_code = status_code


class TransportError(UpstreamError):
    """Network failure, non-success HTTP status or timeout."""


class ProviderError(UpstreamError):
    """The provider answered with an error envelope instead of data."""

    def __init__(
        self,
        code: Optional[str],
        description: Optional[str],
        symbol_key: Optional[str] = None,
    ):
        super().__init__(
            message=description or code or "Provider error",
            symbol_key=symbol_key,
        )
        self.code = code
        self.description = description


class ParseError(UpstreamError):
    """The payload could not be decoded into a chart series."""


class InsufficientHistoryError(BandwatchError):
    """Too few usable closing prices to compute bands."""

    def __init__(self, count: int, required: int):
        super().__init__(
            message=f"Only {count} candles (need {required})",
            details={"count": count, "required": required},
        )
        self.count = count
        self.required = required
