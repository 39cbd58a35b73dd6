"""
Rumo exception hierarchy.

All rumo exceptions inherit from RumoError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""


class RumoError(Exception):
    """Base exception class for all rumo errors."""


class ConfigurationError(RumoError):
    """Raised for configuration errors (missing keys, invalid values)."""


class ValidationError(RumoError, ValueError):
    """Raised when user input is missing a required field or holds an invalid value."""


class InsufficientQuantityError(RumoError):
    """Raised when a sale asks for more units than the holding has available."""

    def __init__(self, ticker: str, requested: float, available: float):
        self.ticker = ticker
        self.requested = requested
        self.available = available
        super().__init__(f"Cannot sell {requested:g} of {ticker}: only {available:g} available")


class ReferenceNotFoundError(RumoError, LookupError):
    """Raised when a ticker or record id does not resolve to an existing record."""


class PersistenceCorruptError(RumoError):
    """Raised when a stored blob cannot be decoded."""


class ImportFormatError(RumoError):
    """Raised when an import document does not have the expected shape."""
