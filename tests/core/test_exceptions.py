"""Tests for rumo.core.exceptions."""

import pytest

from rumo.core.exceptions import (
    ConfigurationError,
    ImportFormatError,
    InsufficientQuantityError,
    PersistenceCorruptError,
    ReferenceNotFoundError,
    RumoError,
    ValidationError,
)
from rumo.core.storage import StorageError, StorageKeyError


def test_hierarchy():
    """All exceptions should inherit from RumoError."""
    for exc_cls in [
        ConfigurationError,
        ValidationError,
        InsufficientQuantityError,
        ReferenceNotFoundError,
        PersistenceCorruptError,
        ImportFormatError,
        StorageError,
        StorageKeyError,
    ]:
        assert issubclass(exc_cls, RumoError)


def test_builtin_bases():
    assert issubclass(ValidationError, ValueError)
    assert issubclass(ReferenceNotFoundError, LookupError)
    assert issubclass(StorageKeyError, KeyError)


def test_insufficient_quantity_carries_amounts():
    err = InsufficientQuantityError("AAPL", requested=15, available=10)
    assert err.ticker == "AAPL"
    assert err.requested == 15
    assert err.available == 10
    assert "only 10 available" in str(err)


def test_catch_base():
    with pytest.raises(RumoError):
        raise ReferenceNotFoundError("Trade 't_1' not found")
