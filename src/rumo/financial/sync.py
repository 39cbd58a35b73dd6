"""Portfolio sync engine: keeps the trade ledger and the holdings in step.

Recording a sale of stocks or crypto takes the sold quantity out of the
matching holding; deleting or editing the sale puts it back first. Apply
and rollback are exact mirrors of each other:

==========  =====================================  ==========================================
class       apply                                  rollback
==========  =====================================  ==========================================
stocks      qty -= trade.qty (floor 0)             qty += trade.qty
crypto      qty -= trade.qty, invested -=          qty += trade.qty, invested +=
            trade.qty * avg_buy (both floor 0)     trade.qty * avg_buy
other       nothing                                nothing
==========  =====================================  ==========================================

Crypto cost basis is restored with ``qty * avg_buy`` of the trade, not
with the amount actually removed, so manual edits to ``invested_amount``
between apply and rollback are not undone exactly.

Every transaction validates and checks availability before touching
anything, then writes the holdings blob and the ledger blob, in that
order. The two writes are not atomic: a crash between them leaves the
holdings adjusted for a ledger change that was never saved.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..core.events import SOURCE_TRADES, EventBus, data_changed
from ..core.exceptions import InsufficientQuantityError, ReferenceNotFoundError, ValidationError
from ..core.utils.numeric import safe_num
from .holdings import HoldingsStore
from .ledger import TradeLedger
from .models import AssetClass, Portfolio, RealizedTrade, new_id, normalize_date, now_iso

Confirm = Callable[[str], bool]


@dataclass
class EditorSession:
    """Editing state of one ledger form.

    Only one trade can be mid-edit at a time; ``editing_id`` is set by
    :meth:`PortfolioSyncEngine.begin_edit` and cleared on commit, cancel,
    or when the trade being edited is deleted.
    """

    editing_id: str | None = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None


# ---------------------------------------------------------------------------
# Apply / rollback
# ---------------------------------------------------------------------------


def apply_trade(portfolio: Portfolio, trade: RealizedTrade) -> None:
    """Take a sale's quantity (and, for crypto, its cost basis) out of the holding."""
    if trade.asset_class is AssetClass.STOCKS:
        stock = portfolio.adjust_stock_qty(trade.ticker, -trade.qty)
        if stock is None:
            raise ReferenceNotFoundError(f"Ticker {trade.ticker} is not in stocks")
        logger.debug(f"Applied {trade.id}: {trade.ticker} qty -> {stock.qty:g}")
    elif trade.asset_class is AssetClass.CRYPTO:
        holding = portfolio.adjust_crypto_qty_and_invested(
            trade.ticker, -trade.qty, -(trade.qty * trade.avg_buy_price)
        )
        if holding is None:
            raise ReferenceNotFoundError(f"Coin {trade.ticker} is not in crypto")
        logger.debug(f"Applied {trade.id}: {trade.ticker} qty -> {holding.qty:g}, invested -> {holding.invested_amount:g}")


def rollback_trade(portfolio: Portfolio, trade: RealizedTrade) -> None:
    """Put a sale's quantity (and, for crypto, its cost basis) back into the holding.

    If the holding was deleted after the sale was recorded there is nothing
    to restore; the rollback is skipped with a warning.
    """
    if trade.asset_class is AssetClass.STOCKS:
        stock = portfolio.adjust_stock_qty(trade.ticker, trade.qty)
        if stock is None:
            logger.warning(f"Rollback of {trade.id}: stock {trade.ticker} no longer held, nothing restored")
            return
        logger.debug(f"Rolled back {trade.id}: {trade.ticker} qty -> {stock.qty:g}")
    elif trade.asset_class is AssetClass.CRYPTO:
        holding = portfolio.adjust_crypto_qty_and_invested(trade.ticker, trade.qty, trade.qty * trade.avg_buy_price)
        if holding is None:
            logger.warning(f"Rollback of {trade.id}: coin {trade.ticker} no longer held, nothing restored")
            return
        logger.debug(
            f"Rolled back {trade.id}: {trade.ticker} qty -> {holding.qty:g}, invested -> {holding.invested_amount:g}"
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_trade(data: Mapping[str, Any], portfolio: Portfolio) -> RealizedTrade:
    """Check raw form input and build an unsaved trade from it.

    Raises:
        ValidationError: Missing date/class/ticker, non-positive qty or
            prices, negative fees, or a stocks/crypto ticker that is not
            in the portfolio.
    """
    trade_date = normalize_date(data.get("date"))

    raw_class = data.get("asset_class", data.get("classe"))
    if raw_class is None or not str(raw_class).strip():
        raise ValidationError("Asset class is required")
    asset_class = AssetClass.parse(raw_class)

    ticker = str(data.get("ticker") or "").strip().upper()
    if not ticker:
        raise ValidationError("Ticker is required")

    qty = safe_num(data.get("qty"))
    if not qty > 0:
        raise ValidationError("Quantity sold must be > 0")
    avg_buy_price = safe_num(data.get("avg_buy_price", data.get("avgBuy")))
    if not avg_buy_price > 0:
        raise ValidationError("Average buy price must be > 0")
    sell_price = safe_num(data.get("sell_price", data.get("sellPrice")))
    if not sell_price > 0:
        raise ValidationError("Sell price must be > 0")
    fees = safe_num(data.get("fees"))
    if fees < 0:
        raise ValidationError("Fees cannot be negative")

    if asset_class.tracked and not portfolio.has_holding(asset_class, ticker):
        raise ValidationError(f"{ticker} is not in your {asset_class.value} holdings")

    return RealizedTrade(
        id="",
        date=trade_date,
        asset_class=asset_class,
        ticker=ticker,
        qty=qty,
        avg_buy_price=avg_buy_price,
        sell_price=sell_price,
        fees=fees,
        notes=str(data.get("notes") or "").strip(),
    )


def check_availability(
    candidate: RealizedTrade,
    portfolio: Portfolio,
    trades: list[RealizedTrade],
    editing_id: str | None = None,
) -> float:
    """Return the quantity available to *candidate*, or raise.

    When *editing_id* names a recorded trade on the same ticker and class,
    that trade's quantity counts as available, because it is rolled back
    before the edited version is applied.

    Raises:
        InsufficientQuantityError: ``candidate.qty`` exceeds what is available.
    """
    if not candidate.asset_class.tracked:
        return float("inf")

    available = portfolio.holding_qty(candidate.asset_class, candidate.ticker)
    if editing_id:
        prior = next((t for t in trades if t.id == editing_id), None)
        if prior is not None and prior.ticker == candidate.ticker and prior.asset_class is candidate.asset_class:
            available += prior.qty

    if candidate.qty > available:
        raise InsufficientQuantityError(candidate.ticker, candidate.qty, available)
    return available


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class PortfolioSyncEngine:
    """Transactional create / edit / delete / clear of realized trades."""

    def __init__(
        self,
        holdings: HoldingsStore,
        ledger: TradeLedger,
        bus: EventBus | None = None,
        confirm: Confirm | None = None,
    ) -> None:
        """
        Args:
            holdings: Store owning the portfolio blob.
            ledger: Store owning the trades blob.
            bus: Receives ``DATA_CHANGED`` after every committed mutation.
            confirm: Default yes/no prompt for destructive operations.
                None means no confirmation is asked.
        """
        self.holdings = holdings
        self.ledger = ledger
        self.bus = bus
        self.confirm = confirm

    # -- building blocks ----------------------------------------------------

    def validate(self, data: Mapping[str, Any], portfolio: Portfolio | None = None) -> RealizedTrade:
        return validate_trade(data, portfolio if portfolio is not None else self.holdings.load())

    def check_availability(self, candidate: RealizedTrade, editing_id: str | None = None) -> float:
        return check_availability(candidate, self.holdings.load(), self.ledger.load_trades(), editing_id)

    apply = staticmethod(apply_trade)
    rollback = staticmethod(rollback_trade)

    # -- editor session -----------------------------------------------------

    def begin_edit(self, session: EditorSession, trade_id: str) -> RealizedTrade:
        """Point *session* at a recorded trade. Nothing is mutated until commit."""
        trade = self.ledger.require(trade_id)
        session.editing_id = trade.id
        return trade

    def cancel_edit(self, session: EditorSession) -> None:
        session.editing_id = None

    # -- transactions -------------------------------------------------------

    def upsert(self, data: Mapping[str, Any], session: EditorSession | None = None) -> RealizedTrade:
        """Record a new sale, or commit the edit *session* points at.

        Raises:
            ValidationError: Input rejected; nothing changed.
            InsufficientQuantityError: Not enough units held; nothing changed.
            ReferenceNotFoundError: The trade being edited no longer exists;
                the session is cleared and nothing changed.
        """
        editing_id = session.editing_id if session is not None else None
        trades = self.ledger.load_trades()
        portfolio = self.holdings.load()

        old_index: int | None = None
        if editing_id:
            old_index = next((i for i, t in enumerate(trades) if t.id == editing_id), None)
            if old_index is None:
                if session is not None:
                    session.editing_id = None
                raise ReferenceNotFoundError(f"Trade {editing_id!r} being edited no longer exists")

        candidate = validate_trade(data, portfolio)
        check_availability(candidate, portfolio, trades, editing_id)

        if old_index is not None:
            old = trades[old_index]
            rollback_trade(portfolio, old)
            apply_trade(portfolio, candidate)
            candidate.id = old.id
            candidate.created_at = old.created_at
            candidate.updated_at = now_iso()
            trades[old_index] = candidate
        else:
            apply_trade(portfolio, candidate)
            candidate.id = new_id("t_")
            candidate.created_at = now_iso()
            trades.append(candidate)

        self.holdings.save(portfolio)
        self.ledger.save_trades(trades)
        if session is not None:
            session.editing_id = None

        logger.info(
            f"{'Updated' if old_index is not None else 'Recorded'} sale {candidate.id}: "
            f"{candidate.qty:g} {candidate.ticker} ({candidate.asset_class.value})"
        )
        self._notify()
        return candidate

    def remove(
        self,
        trade_id: str,
        confirm: Confirm | None = None,
        session: EditorSession | None = None,
    ) -> bool:
        """Delete a sale, putting its quantity back into holdings.

        Returns:
            False if the confirmation prompt was declined, True otherwise.

        Raises:
            ReferenceNotFoundError: No trade with *trade_id*.
        """
        trades = self.ledger.load_trades()
        index = next((i for i, t in enumerate(trades) if t.id == trade_id), None)
        if index is None:
            raise ReferenceNotFoundError(f"Trade {trade_id!r} not found")
        trade = trades[index]

        prompt = confirm or self.confirm
        if prompt is not None and not prompt(f"Delete the sale of {trade.ticker} ({trade.date})?"):
            return False

        portfolio = self.holdings.load()
        rollback_trade(portfolio, trade)
        self.holdings.save(portfolio)
        del trades[index]
        self.ledger.save_trades(trades)
        if session is not None and session.editing_id == trade_id:
            session.editing_id = None

        logger.info(f"Deleted sale {trade_id}")
        self._notify()
        return True

    def clear_all(self, confirm: Confirm | None = None, session: EditorSession | None = None) -> int:
        """Roll back every sale, in ledger order, then empty the ledger.

        Returns:
            Number of trades removed; 0 if the confirmation was declined.
        """
        prompt = confirm or self.confirm
        if prompt is not None and not prompt("Delete ALL recorded sales? This cannot be undone."):
            return 0

        trades = self.ledger.load_trades()
        portfolio = self.holdings.load()
        for trade in trades:
            rollback_trade(portfolio, trade)
        self.holdings.save(portfolio)
        self.ledger.save_trades([])
        if session is not None:
            session.editing_id = None

        logger.info(f"Cleared {len(trades)} sales")
        self._notify()
        return len(trades)

    def _notify(self) -> None:
        if self.bus is not None:
            self.bus.emit_sync(data_changed(SOURCE_TRADES))
