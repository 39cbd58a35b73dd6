"""Core data models for the tracker.

Holdings (stocks, crypto, P2P loans, parked funds, dividends), the
portfolio snapshot that groups them, realized trades and ledger settings.

Every model round-trips through ``to_dict`` / ``from_dict``. ``from_dict``
is lenient: numbers go through :func:`safe_num`, and the field names used
by older backups (``avg``, ``cur``, ``invest``, ``rate``, ``freq``,
``yearPerShare``, ``payN``, ``classe``...) are accepted as aliases.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any

from ..core.exceptions import PersistenceCorruptError, ValidationError
from ..core.utils.numeric import safe_num


def new_id(prefix: str = "") -> str:
    """Fresh record identifier."""
    return f"{prefix}{uuid.uuid4().hex[:16]}"


def now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


def _pick(data: dict[str, Any], *names: str, default: Any = None) -> Any:
    """First present key among *names* (current name first, then legacy aliases)."""
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def _opt_str(value: Any) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


def _mapping(data: Any, kind: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise PersistenceCorruptError(f"{kind} record must be an object, got {type(data).__name__}")
    return data


def _records(data: dict[str, Any], name: str) -> list[Any]:
    items = data.get(name)
    if items is None:
        return []
    if not isinstance(items, list):
        raise PersistenceCorruptError(f"'{name}' must be a list, got {type(items).__name__}")
    return items


def normalize_date(value: Any) -> str:
    """ISO ``YYYY-MM-DD`` form of a trade date.

    Raises:
        ValidationError: Missing date or one that is not ISO formatted.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value or "").strip()
    if not text:
        raise ValidationError("Date is required")
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        raise ValidationError(f"Date must be YYYY-MM-DD, got {text!r}") from None


class AssetClass(StrEnum):
    STOCKS = "stocks"
    CRYPTO = "crypto"
    OTHER = "other"

    @property
    def tracked(self) -> bool:
        """Whether trades of this class move quantities in the holdings portfolio."""
        return self is not AssetClass.OTHER

    @classmethod
    def parse(cls, value: Any) -> AssetClass:
        text = str(value or "").strip().lower()
        text = _ASSET_CLASS_ALIASES.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise ValidationError(f"Unknown asset class: {value!r}") from None


_ASSET_CLASS_ALIASES = {
    "acoes": "stocks",
    "ações": "stocks",
    "stock": "stocks",
    "etf": "stocks",
    "cripto": "crypto",
    "outros": "other",
    "others": "other",
}


class Frequency(StrEnum):
    ANNUAL = "annual"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Any) -> Frequency:
        text = str(value or "").strip().lower()
        if text in ("", "year", "yearly", "anual"):
            return cls.ANNUAL
        if text in ("month", "mensal"):
            return cls.MONTHLY
        try:
            return cls(text)
        except ValueError:
            raise ValidationError(f"Unknown interest frequency: {value!r}") from None


DIVIDEND_PAYMENT_FREQUENCIES = (1, 2, 4, 12)


# ---------------------------------------------------------------------------
# Holdings
# ---------------------------------------------------------------------------


@dataclass
class HoldingStock:
    """Stock or ETF position.

    Attributes:
        id: Record identifier.
        ticker: Upper-case symbol, unique within the portfolio.
        qty: Shares held (never negative).
        avg_buy_price: Average purchase price per share.
        current_price: Latest price per share.
    """

    id: str
    ticker: str
    qty: float
    avg_buy_price: float
    current_price: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ticker": self.ticker,
            "qty": self.qty,
            "avg_buy_price": self.avg_buy_price,
            "current_price": self.current_price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HoldingStock:
        data = _mapping(data, "Stock")
        return cls(
            id=str(_pick(data, "id", default="") or new_id()),
            ticker=str(_pick(data, "ticker", default="")).strip().upper(),
            qty=safe_num(_pick(data, "qty")),
            avg_buy_price=safe_num(_pick(data, "avg_buy_price", "avg")),
            current_price=safe_num(_pick(data, "current_price", "cur")),
        )


@dataclass
class HoldingCrypto:
    """Crypto position. Cost basis is tracked as a lump ``invested_amount``."""

    id: str
    coin: str
    invested_amount: float
    qty: float
    current_price: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "coin": self.coin,
            "invested_amount": self.invested_amount,
            "qty": self.qty,
            "current_price": self.current_price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HoldingCrypto:
        data = _mapping(data, "Crypto")
        return cls(
            id=str(_pick(data, "id", default="") or new_id()),
            coin=str(_pick(data, "coin", default="")).strip().upper(),
            invested_amount=safe_num(_pick(data, "invested_amount", "invest")),
            qty=safe_num(_pick(data, "qty")),
            current_price=safe_num(_pick(data, "current_price", "price")),
        )


@dataclass
class P2PLoan:
    """Peer-to-peer lending position (simple interest).

    The term is the span between ``start_date`` and ``end_date`` when both
    are present and ordered, else ``years``, else one year.
    """

    id: str
    platform: str
    project: str
    amount: float
    annual_rate_pct: float
    start_date: str | None = None
    end_date: str | None = None
    years: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform,
            "project": self.project,
            "amount": self.amount,
            "annual_rate_pct": self.annual_rate_pct,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "years": self.years,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> P2PLoan:
        data = _mapping(data, "P2P loan")
        years = _pick(data, "years")
        return cls(
            id=str(_pick(data, "id", default="") or new_id()),
            platform=str(_pick(data, "platform", default="")).strip(),
            project=str(_pick(data, "project", default="")).strip(),
            amount=safe_num(_pick(data, "amount")),
            annual_rate_pct=safe_num(_pick(data, "annual_rate_pct", "rate")),
            start_date=_opt_str(_pick(data, "start_date", "start")),
            end_date=_opt_str(_pick(data, "end_date", "end")),
            years=safe_num(years) if years not in (None, "") else None,
        )


@dataclass
class ParkedFund:
    """Cash parked in an interest-bearing account (compound interest)."""

    id: str
    platform: str
    amount: float
    rate_pct: float
    frequency: Frequency = Frequency.ANNUAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform,
            "amount": self.amount,
            "rate_pct": self.rate_pct,
            "frequency": self.frequency.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParkedFund:
        data = _mapping(data, "Fund")
        return cls(
            id=str(_pick(data, "id", default="") or new_id()),
            platform=str(_pick(data, "platform", default="")).strip(),
            amount=safe_num(_pick(data, "amount")),
            rate_pct=safe_num(_pick(data, "rate_pct", "rate")),
            frequency=Frequency.parse(_pick(data, "frequency", "freq")),
        )


@dataclass
class DividendRecord:
    """Dividend declared for a stock ticker.

    The amount received is not stored; it is derived from the referenced
    stock's quantity whenever it is needed.
    """

    id: str
    ticker: str
    per_share_annual: float
    payments_per_year: int = 12

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ticker": self.ticker,
            "per_share_annual": self.per_share_annual,
            "payments_per_year": self.payments_per_year,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DividendRecord:
        data = _mapping(data, "Dividend")
        return cls(
            id=str(_pick(data, "id", default="") or new_id()),
            ticker=str(_pick(data, "ticker", default="")).strip().upper(),
            per_share_annual=safe_num(_pick(data, "per_share_annual", "yearPerShare")),
            payments_per_year=int(safe_num(_pick(data, "payments_per_year", "payN", default=12))),
        )


@dataclass
class Portfolio:
    """Full holdings snapshot, persisted as one blob."""

    cash_balance: float = 0.0
    stocks: list[HoldingStock] = field(default_factory=list)
    dividends: list[DividendRecord] = field(default_factory=list)
    crypto: list[HoldingCrypto] = field(default_factory=list)
    p2p: list[P2PLoan] = field(default_factory=list)
    funds: list[ParkedFund] = field(default_factory=list)
    last_updated: str | None = None

    # -- lookups ------------------------------------------------------------

    def find_stock(self, ticker: str) -> HoldingStock | None:
        ticker = ticker.strip().upper()
        return next((s for s in self.stocks if s.ticker == ticker), None)

    def find_crypto(self, coin: str) -> HoldingCrypto | None:
        coin = coin.strip().upper()
        return next((c for c in self.crypto if c.coin == coin), None)

    def has_holding(self, asset_class: AssetClass, ticker: str) -> bool:
        if asset_class is AssetClass.STOCKS:
            return self.find_stock(ticker) is not None
        if asset_class is AssetClass.CRYPTO:
            return self.find_crypto(ticker) is not None
        return False

    def holding_qty(self, asset_class: AssetClass, ticker: str) -> float:
        """Quantity currently held, 0 for untracked classes or unknown tickers."""
        if asset_class is AssetClass.STOCKS:
            stock = self.find_stock(ticker)
            return stock.qty if stock else 0.0
        if asset_class is AssetClass.CRYPTO:
            coin = self.find_crypto(ticker)
            return coin.qty if coin else 0.0
        return 0.0

    # -- clamped mutations --------------------------------------------------

    def set_stock_qty(self, ticker: str, qty: float) -> HoldingStock | None:
        stock = self.find_stock(ticker)
        if stock is not None:
            stock.qty = max(0.0, qty)
        return stock

    def adjust_stock_qty(self, ticker: str, delta: float) -> HoldingStock | None:
        stock = self.find_stock(ticker)
        if stock is not None:
            stock.qty = max(0.0, stock.qty + delta)
        return stock

    def adjust_crypto_qty_and_invested(
        self, coin: str, qty_delta: float, invested_delta: float
    ) -> HoldingCrypto | None:
        holding = self.find_crypto(coin)
        if holding is not None:
            holding.qty = max(0.0, holding.qty + qty_delta)
            holding.invested_amount = max(0.0, holding.invested_amount + invested_delta)
        return holding

    # -- serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "meta": {"last_updated": self.last_updated},
            "cash_balance": self.cash_balance,
            "stocks": [s.to_dict() for s in self.stocks],
            "dividends": [d.to_dict() for d in self.dividends],
            "crypto": [c.to_dict() for c in self.crypto],
            "p2p": [p.to_dict() for p in self.p2p],
            "funds": [f.to_dict() for f in self.funds],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Portfolio:
        data = _mapping(data, "Holdings")
        meta = _mapping(data.get("meta") or {}, "meta")
        legacy = _mapping(data.get("patrimonio") or {}, "patrimonio")
        return cls(
            cash_balance=safe_num(_pick(data, "cash_balance", default=legacy.get("bancoCodeconnect"))),
            stocks=[HoldingStock.from_dict(x) for x in _records(data, "stocks")],
            dividends=[DividendRecord.from_dict(x) for x in _records(data, "dividends")],
            crypto=[HoldingCrypto.from_dict(x) for x in _records(data, "crypto")],
            p2p=[P2PLoan.from_dict(x) for x in _records(data, "p2p")],
            funds=[ParkedFund.from_dict(x) for x in _records(data, "funds")],
            last_updated=_pick(meta, "last_updated", "lastUpdated"),
        )


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


@dataclass
class RealizedTrade:
    """A recorded sale."""

    id: str
    date: str
    asset_class: AssetClass
    ticker: str
    qty: float
    avg_buy_price: float
    sell_price: float
    fees: float = 0.0
    notes: str = ""
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def year(self) -> str:
        return self.date[:4] if len(self.date) >= 4 else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "asset_class": self.asset_class.value,
            "ticker": self.ticker,
            "qty": self.qty,
            "avg_buy_price": self.avg_buy_price,
            "sell_price": self.sell_price,
            "fees": self.fees,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RealizedTrade:
        data = _mapping(data, "Trade")
        return cls(
            id=str(_pick(data, "id", default="") or new_id("t_")),
            date=str(_pick(data, "date", default="")).strip(),
            asset_class=AssetClass.parse(_pick(data, "asset_class", "classe", default="other")),
            ticker=str(_pick(data, "ticker", default="")).strip().upper(),
            qty=safe_num(_pick(data, "qty")),
            avg_buy_price=safe_num(_pick(data, "avg_buy_price", "avgBuy")),
            sell_price=safe_num(_pick(data, "sell_price", "sellPrice")),
            fees=safe_num(_pick(data, "fees")),
            notes=str(_pick(data, "notes", default="")),
            created_at=_pick(data, "created_at", "createdAt"),
            updated_at=_pick(data, "updated_at", "updatedAt"),
        )


ALL = "all"


@dataclass
class LedgerSettings:
    """Display settings saved next to the ledger.

    Attributes:
        show_tax: Whether the tax estimate is shown.
        tax_rate_pct: Flat rate applied to positive profit.
        year: Year filter ("all" or a four-digit year).
        asset_class: Class filter ("all" or an AssetClass value).
    """

    show_tax: bool = True
    tax_rate_pct: float = 28.0
    year: str = ALL
    asset_class: str = ALL

    def to_dict(self) -> dict[str, Any]:
        return {
            "show_tax": self.show_tax,
            "tax_rate_pct": self.tax_rate_pct,
            "year": self.year,
            "asset_class": self.asset_class,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], defaults: LedgerSettings | None = None) -> LedgerSettings:
        data = _mapping(data, "Ledger settings")
        base = defaults or cls()
        asset_class = str(_pick(data, "asset_class", "classe", default=base.asset_class)).strip().lower()
        if asset_class != ALL:
            try:
                asset_class = AssetClass.parse(asset_class).value
            except ValidationError:
                asset_class = ALL
        return cls(
            show_tax=bool(_pick(data, "show_tax", "showTax", default=base.show_tax)),
            tax_rate_pct=safe_num(_pick(data, "tax_rate_pct", "taxRate", default=base.tax_rate_pct)),
            year=str(_pick(data, "year", default=base.year)).strip() or ALL,
            asset_class=asset_class,
        )
