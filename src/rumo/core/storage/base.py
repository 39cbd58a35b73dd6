"""
Abstract base class for key-value persistence.

The tracker persists a handful of independently addressable string blobs
(holdings snapshot, trade ledger, ledger settings). Backends only need to
get, set and delete whole values; there is no partial update.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from ..exceptions import RumoError


class KeyValueStore(ABC):
    """Abstract base class for blob stores."""

    def __init__(self, **config):
        self.config = config

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the value stored under *key*."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a value. Returns True if deleted, False if it didn't exist."""

    @abstractmethod
    def keys(self, prefix: str = "") -> Iterator[str]:
        """Iterate stored keys with optional prefix filter."""

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def load(self, key: str) -> str:
        """Return the stored value. Raises StorageKeyError if not found."""
        value = self.get(key)
        if value is None:
            raise StorageKeyError(f"Key not found: {key}")
        return value


class StorageError(RumoError):
    """Base exception for storage errors."""


class StorageKeyError(StorageError, KeyError):
    """Raised when a storage key doesn't exist."""


class StoragePermissionError(StorageError):
    """Raised when storage operation is not permitted."""
