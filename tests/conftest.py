"""Shared test fixtures for rumo."""

import os
import tempfile

import pytest

from rumo.core.events import EventBus
from rumo.core.storage import MemoryKeyValueStore
from rumo.financial import HoldingsStore, PortfolioSyncEngine, TradeLedger


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {"data_dir": os.path.join(tmp_dir, "data")},
        "ledger": {"tax_rate_pct": 21, "show_tax": False},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def holdings(kv, bus):
    return HoldingsStore(kv, bus=bus)


@pytest.fixture
def ledger(kv):
    return TradeLedger(kv)


@pytest.fixture
def engine(holdings, ledger, bus):
    return PortfolioSyncEngine(holdings, ledger, bus=bus)


@pytest.fixture
def seeded(holdings):
    """Portfolio with one stock (AAPL, 10 @ 50) and one coin (BTC, 2 for 20000)."""
    holdings.upsert_stock("aapl", qty=10, avg_buy_price=50, current_price=60)
    holdings.upsert_crypto("btc", invested_amount=20_000, qty=2, current_price=15_000)
    return holdings
