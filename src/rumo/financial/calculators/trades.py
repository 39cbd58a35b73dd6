"""Realized-trade P&L, flat-rate tax estimate and ledger filters.

Aggregate ``profit_pct`` is total profit over total invested. It is not
the mean of per-trade percentages.
"""

from dataclasses import dataclass
from datetime import date

from ...core.utils.numeric import safe_num, safe_pct
from ..models import ALL, RealizedTrade


@dataclass
class TradeDerived:
    invested: float
    received: float
    profit: float
    profit_pct: float
    tax: float
    net: float


@dataclass
class TradeTotals:
    """Sums over a set of trades.

    Attributes:
        count: Number of trades included.
        tax: Sum of per-trade tax (losses do not offset gains).
        net_result_tax: Flat rate applied to the positive part of total profit.
    """

    count: int
    invested: float
    received: float
    profit: float
    profit_pct: float
    tax: float
    net: float
    net_result_tax: float


@dataclass
class RealizedProfit:
    total: float
    ytd: float


def flat_tax(profit: float, tax_rate_pct: float) -> float:
    return max(0.0, profit) * safe_num(tax_rate_pct) / 100


def compute_trade_derived(trade: RealizedTrade, tax_rate_pct: float = 0.0) -> TradeDerived:
    """Invested, received, profit, tax and net for one trade."""
    qty = safe_num(trade.qty)
    invested = qty * safe_num(trade.avg_buy_price) + safe_num(trade.fees)
    received = qty * safe_num(trade.sell_price)
    profit = received - invested
    tax = flat_tax(profit, tax_rate_pct)
    return TradeDerived(
        invested=invested,
        received=received,
        profit=profit,
        profit_pct=safe_pct(profit, invested),
        tax=tax,
        net=profit - tax,
    )


def aggregate(trades: list[RealizedTrade], tax_rate_pct: float = 0.0) -> TradeTotals:
    rows = [compute_trade_derived(t, tax_rate_pct) for t in trades]
    invested = sum(r.invested for r in rows)
    profit = sum(r.profit for r in rows)
    return TradeTotals(
        count=len(rows),
        invested=invested,
        received=sum(r.received for r in rows),
        profit=profit,
        profit_pct=safe_pct(profit, invested),
        tax=sum(r.tax for r in rows),
        net=sum(r.net for r in rows),
        net_result_tax=flat_tax(profit, tax_rate_pct),
    )


def filter_trades(trades: list[RealizedTrade], year: str = ALL, asset_class: str = ALL) -> list[RealizedTrade]:
    """Trades matching a year (``date[:4]``) and asset class; "all" disables a dimension."""
    year = str(year or ALL)
    asset_class = str(asset_class or ALL).lower()
    return [
        t
        for t in trades
        if (year == ALL or t.year == year) and (asset_class == ALL or t.asset_class.value == asset_class)
    ]


def available_years(trades: list[RealizedTrade]) -> list[str]:
    """Distinct trade years, newest first. Dates without a numeric year are left out."""
    return sorted({t.year for t in trades if t.year.isdigit()}, key=int, reverse=True)


def sort_for_display(trades: list[RealizedTrade]) -> list[RealizedTrade]:
    return sorted(trades, key=lambda t: t.date, reverse=True)


def realized_profit(trades: list[RealizedTrade], today: date | None = None) -> RealizedProfit:
    """Total realized profit and the part realized in the current calendar year."""
    this_year = str((today or date.today()).year)
    total = 0.0
    ytd = 0.0
    for trade in trades:
        profit = compute_trade_derived(trade).profit
        total += profit
        if trade.year == this_year:
            ytd += profit
    return RealizedProfit(total=total, ytd=ytd)
