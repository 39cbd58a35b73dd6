"""Trade ledger: the persisted list of realized sales and its settings.

Two blobs: the trades list and the display settings (tax toggle, flat
tax rate, active year/class filters). Both fall back to their empty
defaults when missing or undecodable.

The ledger never touches holdings; keeping the two in step is the job of
:class:`rumo.financial.sync.PortfolioSyncEngine`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from loguru import logger

from ..core.exceptions import PersistenceCorruptError, ReferenceNotFoundError, ValidationError
from ..core.storage import KeyValueStore, decode_blob, encode_blob
from ..core.utils.numeric import safe_num
from .calculators import trades as calc
from .models import ALL, AssetClass, LedgerSettings, RealizedTrade

DEFAULT_TRADES_KEY = "rumo_trades_v1"
DEFAULT_SETTINGS_KEY = "rumo_trades_settings_v1"


@dataclass
class TradeRow:
    trade: RealizedTrade
    derived: calc.TradeDerived


@dataclass
class LedgerView:
    """Everything a ledger screen shows, computed from the stored blobs."""

    settings: LedgerSettings
    rows: list[TradeRow]
    totals: calc.TradeTotals
    years: list[str]
    realized: calc.RealizedProfit


class TradeLedger:
    """Read/write access to the trades and settings blobs."""

    def __init__(
        self,
        kv: KeyValueStore,
        trades_key: str = DEFAULT_TRADES_KEY,
        settings_key: str = DEFAULT_SETTINGS_KEY,
        default_settings: LedgerSettings | None = None,
    ) -> None:
        self.kv = kv
        self.trades_key = trades_key
        self.settings_key = settings_key
        self.default_settings = default_settings or LedgerSettings()

    # -- trades -------------------------------------------------------------

    def load_trades(self) -> list[RealizedTrade]:
        raw = self.kv.get(self.trades_key)
        if raw is None:
            return []
        try:
            data = decode_blob(raw)
            if data is None:
                return []
            if not isinstance(data, list):
                raise PersistenceCorruptError(f"Expected a list, got {type(data).__name__}")
            return [RealizedTrade.from_dict(item) for item in data]
        except (PersistenceCorruptError, ValidationError) as e:
            logger.warning(f"Trades blob '{self.trades_key}' unreadable, using empty ledger: {e}")
            return []

    def save_trades(self, trades: list[RealizedTrade]) -> None:
        self.kv.set(self.trades_key, encode_blob([t.to_dict() for t in trades]))

    def get(self, trade_id: str) -> RealizedTrade | None:
        return next((t for t in self.load_trades() if t.id == trade_id), None)

    def require(self, trade_id: str) -> RealizedTrade:
        trade = self.get(trade_id)
        if trade is None:
            raise ReferenceNotFoundError(f"Trade {trade_id!r} not found")
        return trade

    # -- settings -----------------------------------------------------------

    def load_settings(self) -> LedgerSettings:
        """Stored settings merged over the defaults."""
        raw = self.kv.get(self.settings_key)
        if raw is None:
            return replace(self.default_settings)
        try:
            data = decode_blob(raw)
        except PersistenceCorruptError as e:
            logger.warning(f"Settings blob '{self.settings_key}' unreadable, using defaults: {e}")
            return replace(self.default_settings)
        if not isinstance(data, dict):
            return replace(self.default_settings)
        return LedgerSettings.from_dict(data, defaults=self.default_settings)

    def save_settings(self, settings: LedgerSettings) -> None:
        self.kv.set(self.settings_key, encode_blob(settings.to_dict()))

    def update_settings(self, **changes: Any) -> LedgerSettings:
        """Change some settings and persist them.

        Raises:
            ValidationError: Unknown setting, negative tax rate, or an
                unknown class filter.
        """
        settings = self.load_settings()
        for name, value in changes.items():
            if value is None:
                continue
            if name == "show_tax":
                settings.show_tax = bool(value)
            elif name == "tax_rate_pct":
                rate = safe_num(value)
                if rate < 0:
                    raise ValidationError("Tax rate cannot be negative")
                settings.tax_rate_pct = rate
            elif name == "year":
                settings.year = str(value).strip() or ALL
            elif name == "asset_class":
                text = str(value).strip().lower()
                settings.asset_class = ALL if text in ("", ALL) else AssetClass.parse(text).value
            else:
                raise ValidationError(f"Unknown ledger setting: {name}")
        self.save_settings(settings)
        return settings

    # -- derived views ------------------------------------------------------

    def view(self, settings: LedgerSettings | None = None, today: date | None = None) -> LedgerView:
        """Filtered, sorted rows with totals for the active settings.

        A year filter that matches no recorded year falls back to "all".
        """
        settings = settings or self.load_settings()
        trades = self.load_trades()
        years = calc.available_years(trades)
        year = settings.year if settings.year in years else ALL
        selected = calc.sort_for_display(calc.filter_trades(trades, year, settings.asset_class))
        return LedgerView(
            settings=replace(settings, year=year),
            rows=[TradeRow(t, calc.compute_trade_derived(t, settings.tax_rate_pct)) for t in selected],
            totals=calc.aggregate(selected, settings.tax_rate_pct),
            years=years,
            realized=calc.realized_profit(trades, today),
        )
