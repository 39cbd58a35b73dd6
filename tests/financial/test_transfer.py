"""Tests for rumo.financial.transfer: backup export and import."""

import json
import os

import pytest

from rumo.core.events import DATA_CHANGED
from rumo.core.exceptions import ImportFormatError
from rumo.financial.models import LedgerSettings
from rumo.financial.transfer import (
    BACKUP_SCHEMA,
    export_document,
    export_to_file,
    import_document,
    import_from_file,
    load_demo,
)


@pytest.fixture
def with_sale(engine, seeded, ledger):
    engine.upsert(
        {"date": "2025-02-01", "asset_class": "stocks", "ticker": "AAPL", "qty": 4, "avg_buy_price": 50, "sell_price": 70}
    )
    ledger.update_settings(tax_rate_pct=21)
    return seeded


class TestExport:
    def test_document_shape(self, with_sale, ledger):
        doc = export_document(with_sale, ledger)
        assert doc["schema"] == BACKUP_SCHEMA
        assert doc["holdings"]["stocks"][0]["qty"] == 6
        assert len(doc["trades"]) == 1
        assert doc["settings"]["tax_rate_pct"] == 21

    def test_file_round_trip(self, with_sale, ledger, tmp_dir):
        from rumo.core.storage import MemoryKeyValueStore
        from rumo.financial import HoldingsStore, TradeLedger

        path = export_to_file(os.path.join(tmp_dir, "out", "backup.json"), with_sale, ledger)
        other_holdings = HoldingsStore(MemoryKeyValueStore())
        other_ledger = TradeLedger(other_holdings.kv)

        result = import_from_file(path, other_holdings, other_ledger)

        assert result.holdings.find_stock("AAPL").qty == 6
        assert [t.ticker for t in other_ledger.load_trades()] == ["AAPL"]
        assert other_ledger.load_settings().tax_rate_pct == 21


class TestImport:
    def test_replaces_not_merges(self, with_sale, ledger):
        doc = {
            "schema": BACKUP_SCHEMA,
            "holdings": {"stocks": [{"id": "k", "ticker": "KO", "qty": 1, "avg_buy_price": 1, "current_price": 1}]},
            "trades": [],
        }
        result = import_document(doc, with_sale, ledger)

        p = with_sale.load()
        assert [s.ticker for s in p.stocks] == ["KO"]
        assert p.crypto == []
        assert ledger.load_trades() == []
        assert result.settings is None
        assert ledger.load_settings().tax_rate_pct == 21

    def test_bare_holdings_document(self, with_sale, ledger):
        doc = {"patrimonio": {"bancoCodeconnect": 99}, "crypto": [{"coin": "eth", "invest": 100, "qty": 1, "price": 150}]}
        result = import_document(doc, with_sale, ledger)

        assert result.trades is None
        p = with_sale.load()
        assert p.cash_balance == 99
        assert p.find_crypto("ETH").invested_amount == 100
        assert len(ledger.load_trades()) == 1

    def test_settings_replaced(self, holdings, ledger):
        doc = {"schema": BACKUP_SCHEMA, "holdings": {}, "trades": [], "settings": {"show_tax": False}}
        result = import_document(doc, holdings, ledger)
        assert result.settings == LedgerSettings(show_tax=False)
        assert ledger.load_settings().show_tax is False

    @pytest.mark.parametrize(
        "doc",
        [
            [],
            {"schema": "other.v2", "holdings": {}},
            {"schema": BACKUP_SCHEMA},
            {"schema": BACKUP_SCHEMA, "holdings": {"stocks": "AAPL"}},
            {"schema": BACKUP_SCHEMA, "holdings": {}, "trades": {"id": 1}},
            {"schema": BACKUP_SCHEMA, "holdings": {}, "trades": [{"asset_class": "bonds"}]},
            {"stocks": [1, 2]},
            {"schema": BACKUP_SCHEMA, "holdings": {"meta": 5}},
            {"patrimonio": 5, "stocks": []},
            {"schema": BACKUP_SCHEMA, "holdings": {}, "trades": [{"date": "31/12/2024", "asset_class": "other"}]},
        ],
    )
    def test_rejects_bad_shapes(self, holdings, ledger, doc):
        with pytest.raises(ImportFormatError):
            import_document(doc, holdings, ledger)

    def test_rejected_import_changes_nothing(self, with_sale, ledger):
        before = export_document(with_sale, ledger)
        with pytest.raises(ImportFormatError):
            import_document({"schema": BACKUP_SCHEMA, "holdings": {}, "trades": "x"}, with_sale, ledger)
        after = export_document(with_sale, ledger)
        assert after["holdings"]["stocks"] == before["holdings"]["stocks"]
        assert after["trades"] == before["trades"]

    def test_notifies(self, holdings, ledger, bus):
        seen = []
        bus.on(DATA_CHANGED, seen.append)
        import_document({"schema": BACKUP_SCHEMA, "holdings": {}}, holdings, ledger, bus)
        assert [e.source for e in seen] == ["import"]

    def test_invalid_json_file(self, holdings, ledger, tmp_dir):
        path = os.path.join(tmp_dir, "broken.json")
        with open(path, "w") as f:
            f.write("{nope")
        with pytest.raises(ImportFormatError):
            import_from_file(path, holdings, ledger)


def test_load_demo(holdings, ledger, tmp_dir):
    path = os.path.join(tmp_dir, "demo.json")
    with open(path, "w") as f:
        json.dump({"stocks": [{"ticker": "VWCE", "qty": 5, "avg": 100, "cur": 110}]}, f)

    load_demo(path, holdings, ledger)

    assert holdings.load().find_stock("VWCE").current_price == 110
