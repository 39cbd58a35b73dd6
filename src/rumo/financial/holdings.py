"""Holdings store: the persisted portfolio snapshot.

The whole portfolio is one blob. Every operation reads the full snapshot,
mutates it in memory and writes it back, stamping ``last_updated``. A
missing or undecodable blob is replaced by an empty portfolio.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from ..core.events import SOURCE_HOLDINGS, EventBus, data_changed
from ..core.exceptions import PersistenceCorruptError, ReferenceNotFoundError, ValidationError
from ..core.storage import KeyValueStore, decode_blob, encode_blob
from ..core.utils.numeric import safe_num
from .calculators import portfolio as calc
from .models import (
    DIVIDEND_PAYMENT_FREQUENCIES,
    DividendRecord,
    Frequency,
    HoldingCrypto,
    HoldingStock,
    P2PLoan,
    ParkedFund,
    Portfolio,
    new_id,
    now_iso,
)

DEFAULT_HOLDINGS_KEY = "rumo_data_v1"


def _require_positive(value: Any, label: str) -> float:
    number = safe_num(value)
    if number <= 0:
        raise ValidationError(f"{label} must be > 0")
    return number


def _require_text(value: Any, label: str, upper: bool = False) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required")
    return text.upper() if upper else text


def _index_of(items: list, record_id: str, kind: str) -> int:
    for idx, item in enumerate(items):
        if item.id == record_id:
            return idx
    raise ReferenceNotFoundError(f"{kind} {record_id!r} not found")


class HoldingsStore:
    """Read/write access to the portfolio blob plus its calculators."""

    def __init__(
        self,
        kv: KeyValueStore,
        key: str = DEFAULT_HOLDINGS_KEY,
        bus: EventBus | None = None,
    ) -> None:
        self.kv = kv
        self.key = key
        self.bus = bus

    # -- snapshot I/O -------------------------------------------------------

    def load(self) -> Portfolio:
        """Return the stored portfolio, or an empty one if missing/corrupt."""
        raw = self.kv.get(self.key)
        if raw is None:
            return Portfolio()
        try:
            data = decode_blob(raw)
            if not isinstance(data, dict):
                raise PersistenceCorruptError(f"Expected an object, got {type(data).__name__}")
            return Portfolio.from_dict(data)
        except (PersistenceCorruptError, ValidationError) as e:
            logger.warning(f"Holdings blob '{self.key}' unreadable, using empty portfolio: {e}")
            return Portfolio()

    def save(self, portfolio: Portfolio) -> Portfolio:
        portfolio.last_updated = now_iso()
        self.kv.set(self.key, encode_blob(portfolio.to_dict()))
        return portfolio

    def replace(self, portfolio: Portfolio, source: str = SOURCE_HOLDINGS) -> Portfolio:
        """Overwrite the whole snapshot and notify listeners."""
        self.save(portfolio)
        self._notify(source)
        return portfolio

    def _mutate(self, change: Callable[[Portfolio], Any]) -> Any:
        portfolio = self.load()
        result = change(portfolio)
        self.save(portfolio)
        self._notify(SOURCE_HOLDINGS)
        return result

    def _notify(self, source: str) -> None:
        if self.bus is not None:
            self.bus.emit_sync(data_changed(source))

    # -- calculators --------------------------------------------------------

    def stocks_summary(self) -> calc.AssetSummary:
        return calc.stocks_summary(self.load())

    def crypto_summary(self) -> calc.AssetSummary:
        return calc.crypto_summary(self.load())

    def p2p_summary(self) -> calc.P2PSummary:
        return calc.p2p_summary(self.load())

    def funds_summary(self) -> calc.FundsSummary:
        return calc.funds_summary(self.load())

    def dividends_summary(self) -> calc.RunRate:
        return calc.dividends_summary(self.load())

    def net_worth(self) -> calc.NetWorth:
        return calc.net_worth(self.load())

    # -- cash ---------------------------------------------------------------

    def set_cash_balance(self, amount: float) -> float:
        def change(p: Portfolio) -> float:
            p.cash_balance = safe_num(amount)
            return p.cash_balance

        return self._mutate(change)

    # -- stocks -------------------------------------------------------------

    def upsert_stock(
        self,
        ticker: str,
        qty: float,
        avg_buy_price: float,
        current_price: float,
        stock_id: str | None = None,
    ) -> HoldingStock:
        """Add a stock, or update the one with *stock_id*.

        Raises:
            ValidationError: Empty ticker, non-positive numbers, or a ticker
                already held by another record.
            ReferenceNotFoundError: *stock_id* does not exist.
        """
        ticker = _require_text(ticker, "Ticker", upper=True)
        qty = _require_positive(qty, "Quantity")
        avg_buy_price = _require_positive(avg_buy_price, "Average buy price")
        current_price = _require_positive(current_price, "Current price")

        def change(p: Portfolio) -> HoldingStock:
            clash = p.find_stock(ticker)
            if clash is not None and clash.id != stock_id:
                raise ValidationError(f"Ticker {ticker} already exists")
            if stock_id:
                idx = _index_of(p.stocks, stock_id, "Stock")
                old_ticker = p.stocks[idx].ticker
                stock = HoldingStock(stock_id, ticker, qty, avg_buy_price, current_price)
                p.stocks[idx] = stock
                if old_ticker != ticker:
                    for dividend in p.dividends:
                        if dividend.ticker == old_ticker:
                            dividend.ticker = ticker
                return stock
            stock = HoldingStock(new_id(), ticker, qty, avg_buy_price, current_price)
            p.stocks.append(stock)
            return stock

        return self._mutate(change)

    def delete_stock(self, stock_id: str) -> HoldingStock:
        """Remove a stock and every dividend record on its ticker."""

        def change(p: Portfolio) -> HoldingStock:
            removed = p.stocks.pop(_index_of(p.stocks, stock_id, "Stock"))
            p.dividends = [d for d in p.dividends if d.ticker != removed.ticker]
            return removed

        return self._mutate(change)

    def wipe_stocks(self) -> None:
        """Remove all stocks and, with them, all dividends."""

        def change(p: Portfolio) -> None:
            p.stocks = []
            p.dividends = []

        self._mutate(change)

    # -- dividends ----------------------------------------------------------

    def upsert_dividend(
        self,
        ticker: str,
        per_share_annual: float,
        payments_per_year: int = 12,
        dividend_id: str | None = None,
    ) -> DividendRecord:
        """Add or update a dividend record.

        A new record for a ticker that already has one updates that record
        in place, so there is at most one dividend per ticker.
        """
        ticker = _require_text(ticker, "Ticker", upper=True)
        per_share_annual = _require_positive(per_share_annual, "Dividend per share")
        payments = int(safe_num(payments_per_year))
        if payments not in DIVIDEND_PAYMENT_FREQUENCIES:
            raise ValidationError(f"Payments per year must be one of {DIVIDEND_PAYMENT_FREQUENCIES}")

        def change(p: Portfolio) -> DividendRecord:
            if p.find_stock(ticker) is None:
                raise ReferenceNotFoundError(f"Ticker {ticker} is not in stocks")
            if dividend_id:
                idx = _index_of(p.dividends, dividend_id, "Dividend")
                record = DividendRecord(dividend_id, ticker, per_share_annual, payments)
                p.dividends[idx] = record
                return record
            existing = next((d for d in p.dividends if d.ticker == ticker), None)
            if existing is not None:
                existing.per_share_annual = per_share_annual
                existing.payments_per_year = payments
                return existing
            record = DividendRecord(new_id(), ticker, per_share_annual, payments)
            p.dividends.append(record)
            return record

        return self._mutate(change)

    def delete_dividend(self, dividend_id: str) -> DividendRecord:
        return self._mutate(lambda p: p.dividends.pop(_index_of(p.dividends, dividend_id, "Dividend")))

    def wipe_dividends(self) -> None:
        def change(p: Portfolio) -> None:
            p.dividends = []

        self._mutate(change)

    # -- crypto -------------------------------------------------------------

    def upsert_crypto(
        self,
        coin: str,
        invested_amount: float,
        qty: float,
        current_price: float,
        crypto_id: str | None = None,
    ) -> HoldingCrypto:
        coin = _require_text(coin, "Coin", upper=True)
        invested_amount = _require_positive(invested_amount, "Invested amount")
        qty = _require_positive(qty, "Quantity")
        current_price = _require_positive(current_price, "Current price")

        def change(p: Portfolio) -> HoldingCrypto:
            clash = p.find_crypto(coin)
            if clash is not None and clash.id != crypto_id:
                raise ValidationError(f"Coin {coin} already exists")
            if crypto_id:
                idx = _index_of(p.crypto, crypto_id, "Crypto holding")
                holding = HoldingCrypto(crypto_id, coin, invested_amount, qty, current_price)
                p.crypto[idx] = holding
                return holding
            holding = HoldingCrypto(new_id(), coin, invested_amount, qty, current_price)
            p.crypto.append(holding)
            return holding

        return self._mutate(change)

    def delete_crypto(self, crypto_id: str) -> HoldingCrypto:
        return self._mutate(lambda p: p.crypto.pop(_index_of(p.crypto, crypto_id, "Crypto holding")))

    def wipe_crypto(self) -> None:
        def change(p: Portfolio) -> None:
            p.crypto = []

        self._mutate(change)

    # -- P2P ----------------------------------------------------------------

    def upsert_p2p(
        self,
        platform: str,
        project: str,
        amount: float,
        annual_rate_pct: float,
        years: float | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        loan_id: str | None = None,
    ) -> P2PLoan:
        platform = _require_text(platform, "Platform")
        project = _require_text(project, "Project")
        amount = _require_positive(amount, "Amount")
        annual_rate_pct = _require_positive(annual_rate_pct, "Annual rate")
        loan = P2PLoan(
            id=loan_id or new_id(),
            platform=platform,
            project=project,
            amount=amount,
            annual_rate_pct=annual_rate_pct,
            start_date=(start_date or "").strip() or None,
            end_date=(end_date or "").strip() or None,
            years=safe_num(years) if years not in (None, "") else None,
        )

        def change(p: Portfolio) -> P2PLoan:
            if loan_id:
                p.p2p[_index_of(p.p2p, loan_id, "P2P loan")] = loan
            else:
                p.p2p.append(loan)
            return loan

        return self._mutate(change)

    def delete_p2p(self, loan_id: str) -> P2PLoan:
        return self._mutate(lambda p: p.p2p.pop(_index_of(p.p2p, loan_id, "P2P loan")))

    def wipe_p2p(self) -> None:
        def change(p: Portfolio) -> None:
            p.p2p = []

        self._mutate(change)

    # -- parked funds -------------------------------------------------------

    def upsert_fund(
        self,
        platform: str,
        amount: float,
        rate_pct: float,
        frequency: Frequency | str = Frequency.ANNUAL,
        fund_id: str | None = None,
    ) -> ParkedFund:
        fund = ParkedFund(
            id=fund_id or new_id(),
            platform=_require_text(platform, "Platform"),
            amount=_require_positive(amount, "Amount"),
            rate_pct=_require_positive(rate_pct, "Rate"),
            frequency=Frequency.parse(frequency),
        )

        def change(p: Portfolio) -> ParkedFund:
            if fund_id:
                p.funds[_index_of(p.funds, fund_id, "Fund")] = fund
            else:
                p.funds.append(fund)
            return fund

        return self._mutate(change)

    def delete_fund(self, fund_id: str) -> ParkedFund:
        return self._mutate(lambda p: p.funds.pop(_index_of(p.funds, fund_id, "Fund")))

    def wipe_funds(self) -> None:
        def change(p: Portfolio) -> None:
            p.funds = []

        self._mutate(change)

    # -- everything ---------------------------------------------------------

    def wipe_all(self) -> Portfolio:
        """Reset to the empty default portfolio."""
        return self.replace(Portfolio())
