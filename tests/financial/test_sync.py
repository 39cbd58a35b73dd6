"""Tests for rumo.financial.sync: the ledger / holdings transaction engine."""

from datetime import date

import pytest

from rumo.core.events import DATA_CHANGED
from rumo.core.exceptions import InsufficientQuantityError, ReferenceNotFoundError, ValidationError
from rumo.financial import EditorSession, apply_trade, check_availability, rollback_trade, validate_trade
from rumo.financial.models import AssetClass, Portfolio, RealizedTrade

pytestmark = pytest.mark.smoke


def sale(ticker="AAPL", qty=4, asset_class="stocks", avg_buy_price=50, sell_price=70, **extra):
    return {
        "date": "2025-03-10",
        "asset_class": asset_class,
        "ticker": ticker,
        "qty": qty,
        "avg_buy_price": avg_buy_price,
        "sell_price": sell_price,
        **extra,
    }


def aapl_qty(holdings) -> float:
    return holdings.load().find_stock("AAPL").qty


def btc(holdings):
    return holdings.load().find_crypto("BTC")


class TestValidation:
    def test_builds_trade(self, seeded):
        trade = validate_trade(sale(ticker="aapl", fees="1,5"), seeded.load())
        assert trade.ticker == "AAPL"
        assert trade.asset_class is AssetClass.STOCKS
        assert trade.fees == 1.5

    def test_legacy_keys(self, seeded):
        data = {"date": "2025-01-01", "classe": "acoes", "ticker": "AAPL", "qty": 1, "avgBuy": 5, "sellPrice": 6}
        trade = validate_trade(data, seeded.load())
        assert trade.avg_buy_price == 5
        assert trade.sell_price == 6

    @pytest.mark.parametrize(
        "override",
        [
            {"date": ""},
            {"date": "10/03/2025"},
            {"asset_class": ""},
            {"ticker": " "},
            {"qty": 0},
            {"avg_buy_price": -1},
            {"sell_price": "abc"},
            {"fees": -1},
        ],
    )
    def test_rejects_bad_input(self, seeded, override):
        with pytest.raises(ValidationError):
            validate_trade({**sale(), **override}, seeded.load())

    def test_tracked_ticker_must_be_held(self, seeded):
        with pytest.raises(ValidationError, match="not in your stocks"):
            validate_trade(sale(ticker="MSFT"), seeded.load())

    def test_other_class_needs_no_holding(self, seeded):
        trade = validate_trade(sale(ticker="GOLD", asset_class="other"), seeded.load())
        assert trade.asset_class is AssetClass.OTHER


class TestApplyRollback:
    def test_mirror(self, seeded):
        portfolio = seeded.load()
        trade = validate_trade(sale(qty=4), portfolio)
        apply_trade(portfolio, trade)
        assert portfolio.find_stock("AAPL").qty == 6
        rollback_trade(portfolio, trade)
        assert portfolio.find_stock("AAPL").qty == 10

    def test_crypto_moves_cost_basis(self, seeded):
        portfolio = seeded.load()
        trade = validate_trade(sale("BTC", qty=0.5, asset_class="crypto", avg_buy_price=10_000), portfolio)
        apply_trade(portfolio, trade)
        coin = portfolio.find_crypto("BTC")
        assert coin.qty == pytest.approx(1.5)
        assert coin.invested_amount == pytest.approx(15_000)

    def test_crypto_basis_restore_uses_trade_avg(self, seeded):
        # Restored basis is qty * avg_buy of the trade, not what apply actually removed.
        portfolio = seeded.load()
        trade = validate_trade(sale("BTC", qty=1, asset_class="crypto", avg_buy_price=30_000), portfolio)
        apply_trade(portfolio, trade)
        assert portfolio.find_crypto("BTC").invested_amount == 0  # floored
        rollback_trade(portfolio, trade)
        assert portfolio.find_crypto("BTC").invested_amount == 30_000

    def test_stock_qty_floor_then_plain_increment(self, seeded):
        # Apply clamps at 0; rollback adds the full trade qty back on top of the floor.
        portfolio = seeded.load()
        trade = RealizedTrade("t", "2025-01-01", AssetClass.STOCKS, "AAPL", qty=15, avg_buy_price=50, sell_price=70)

        apply_trade(portfolio, trade)
        assert portfolio.find_stock("AAPL").qty == 0
        rollback_trade(portfolio, trade)
        assert portfolio.find_stock("AAPL").qty == 15

    def test_apply_rollback_round_trip_without_floor(self, seeded):
        portfolio = seeded.load()
        trade = RealizedTrade("t", "2025-01-01", AssetClass.STOCKS, "AAPL", qty=10, avg_buy_price=50, sell_price=70)

        for _ in range(3):
            apply_trade(portfolio, trade)
            rollback_trade(portfolio, trade)

        assert portfolio.find_stock("AAPL").qty == 10

    def test_other_is_noop(self, seeded):
        portfolio = seeded.load()
        before = portfolio.to_dict()
        trade = validate_trade(sale("GOLD", asset_class="other"), portfolio)
        apply_trade(portfolio, trade)
        rollback_trade(portfolio, trade)
        assert portfolio.to_dict() == before

    def test_apply_missing_holding(self):
        trade = RealizedTrade("t", "2025-01-01", AssetClass.STOCKS, "KO", qty=1, avg_buy_price=1, sell_price=1)
        with pytest.raises(ReferenceNotFoundError):
            apply_trade(Portfolio(), trade)

    def test_rollback_missing_holding_is_skipped(self):
        trade = RealizedTrade("t", "2025-01-01", AssetClass.STOCKS, "KO", qty=1, avg_buy_price=1, sell_price=1)
        portfolio = Portfolio()
        rollback_trade(portfolio, trade)
        assert portfolio.stocks == []


class TestAvailability:
    def test_over_sell_rejected(self, seeded):
        portfolio = seeded.load()
        candidate = validate_trade(sale(qty=15), portfolio)
        with pytest.raises(InsufficientQuantityError) as exc:
            check_availability(candidate, portfolio, [])
        assert exc.value.available == 10

    def test_other_unbounded(self, seeded):
        candidate = validate_trade(sale("GOLD", qty=1e9, asset_class="other"), seeded.load())
        assert check_availability(candidate, seeded.load(), []) == float("inf")

    def test_edit_adds_back_prior_qty(self, engine, seeded):
        recorded = engine.upsert(sale(qty=8))
        portfolio = seeded.load()
        candidate = validate_trade(sale(qty=10), portfolio)
        assert check_availability(candidate, portfolio, engine.ledger.load_trades(), recorded.id) == 10

    def test_edit_to_other_ticker_gets_no_add_back(self, engine, seeded):
        seeded.upsert_stock("KO", 1, 1, 1)
        recorded = engine.upsert(sale(qty=8))
        candidate = validate_trade(sale("KO", qty=2), seeded.load())
        with pytest.raises(InsufficientQuantityError):
            check_availability(candidate, seeded.load(), engine.ledger.load_trades(), recorded.id)


class TestUpsert:
    def test_create_reduces_holding(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        assert trade.id.startswith("t_")
        assert trade.created_at is not None
        assert aapl_qty(seeded) == 6
        assert engine.ledger.load_trades() == [trade]

    def test_over_sell_changes_nothing(self, engine, seeded):
        with pytest.raises(InsufficientQuantityError):
            engine.upsert(sale(qty=15))
        assert aapl_qty(seeded) == 10
        assert engine.ledger.load_trades() == []

    def test_sell_everything(self, engine, seeded):
        engine.upsert(sale(qty=10))
        assert aapl_qty(seeded) == 0

    def test_edit_same_values_is_neutral(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        session = EditorSession()
        engine.begin_edit(session, trade.id)
        edited = engine.upsert(sale(qty=4), session)

        assert aapl_qty(seeded) == 6
        assert edited.id == trade.id
        assert edited.created_at == trade.created_at
        assert edited.updated_at is not None
        assert not session.is_editing

    def test_edit_changes_qty(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        session = EditorSession()
        engine.begin_edit(session, trade.id)
        engine.upsert(sale(qty=10), session)
        assert aapl_qty(seeded) == 0
        assert len(engine.ledger.load_trades()) == 1

    def test_edit_moves_between_holdings(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        session = EditorSession()
        engine.begin_edit(session, trade.id)
        engine.upsert(sale("BTC", qty=1, asset_class="crypto", avg_buy_price=10_000), session)

        assert aapl_qty(seeded) == 10
        assert btc(seeded).qty == 1
        assert btc(seeded).invested_amount == 10_000

    def test_failed_edit_keeps_session(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        session = EditorSession()
        engine.begin_edit(session, trade.id)
        with pytest.raises(InsufficientQuantityError):
            engine.upsert(sale(qty=11), session)
        assert session.editing_id == trade.id
        assert aapl_qty(seeded) == 6

    def test_stale_edit_clears_session(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        session = EditorSession()
        engine.begin_edit(session, trade.id)
        engine.remove(trade.id)
        session.editing_id = trade.id

        with pytest.raises(ReferenceNotFoundError):
            engine.upsert(sale(qty=1), session)
        assert not session.is_editing
        assert aapl_qty(seeded) == 10

    def test_begin_edit_unknown(self, engine):
        with pytest.raises(ReferenceNotFoundError):
            engine.begin_edit(EditorSession(), "nope")

    def test_cancel_edit(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        session = EditorSession()
        engine.begin_edit(session, trade.id)
        engine.cancel_edit(session)
        engine.upsert(sale(qty=1), session)
        assert len(engine.ledger.load_trades()) == 2

    def test_fires_data_changed(self, engine, seeded, bus):
        seen = []
        bus.on(DATA_CHANGED, seen.append)
        engine.upsert(sale(qty=1))
        assert [e.source for e in seen] == ["trades"]


class TestRemove:
    def test_restores_holding(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        assert engine.remove(trade.id) is True
        assert aapl_qty(seeded) == 10
        assert engine.ledger.load_trades() == []

    def test_unknown_id(self, engine, seeded):
        asked = []
        with pytest.raises(ReferenceNotFoundError):
            engine.remove("nope", confirm=lambda msg: asked.append(msg) or True)
        assert asked == []

    def test_declined(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        assert engine.remove(trade.id, confirm=lambda _: False) is False
        assert aapl_qty(seeded) == 6
        assert len(engine.ledger.load_trades()) == 1

    def test_clears_matching_session(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        session = EditorSession()
        engine.begin_edit(session, trade.id)
        engine.remove(trade.id, session=session)
        assert not session.is_editing

    def test_holding_deleted_after_sale(self, engine, seeded):
        trade = engine.upsert(sale(qty=4))
        seeded.delete_stock(seeded.load().find_stock("AAPL").id)
        assert engine.remove(trade.id) is True
        assert seeded.load().stocks == []


class TestClearAll:
    def test_restores_everything(self, engine, seeded):
        engine.upsert(sale(qty=3))
        engine.upsert(sale(qty=2))
        engine.upsert(sale("BTC", qty=0.5, asset_class="crypto", avg_buy_price=10_000))
        engine.upsert(sale("GOLD", qty=7, asset_class="other"))

        assert engine.clear_all() == 4
        assert aapl_qty(seeded) == 10
        assert btc(seeded).qty == pytest.approx(2)
        assert btc(seeded).invested_amount == pytest.approx(20_000)
        assert engine.ledger.load_trades() == []

    def test_declined(self, engine, seeded):
        engine.upsert(sale(qty=3))
        assert engine.clear_all(confirm=lambda _: False) == 0
        assert aapl_qty(seeded) == 7

    def test_engine_default_confirm(self, holdings, ledger, seeded):
        from rumo.financial import PortfolioSyncEngine

        engine = PortfolioSyncEngine(holdings, ledger, confirm=lambda _: False)
        engine.upsert(sale(qty=3))
        assert engine.clear_all() == 0


def test_holdings_plus_ledger_is_conserved(engine, seeded):
    """Held qty plus recorded sold qty stays at the starting quantity."""
    session = EditorSession()
    a = engine.upsert(sale(qty=2))
    b = engine.upsert(sale(qty=3))
    engine.begin_edit(session, a.id)
    engine.upsert(sale(qty=5), session)
    engine.remove(b.id)
    engine.upsert(sale(qty=1, date=date(2025, 4, 1)))

    sold = sum(t.qty for t in engine.ledger.load_trades() if t.ticker == "AAPL")
    assert aapl_qty(seeded) + sold == 10
