"""Financial calculators: interest, dividends, portfolio summaries, trade P&L."""

from .dividends import RunRate, dividend_run_rate, per_payment, run_rate
from .interest import (
    SimpleInterestProjection,
    compound_annual_rate,
    resolve_term_years,
    simple_interest_projection,
    years_between,
)
from .portfolio import (
    AssetSummary,
    FundsSummary,
    NetWorth,
    P2PSummary,
    crypto_summary,
    dividends_summary,
    funds_summary,
    net_worth,
    p2p_summary,
    stocks_summary,
)
from .trades import (
    RealizedProfit,
    TradeDerived,
    TradeTotals,
    aggregate,
    available_years,
    compute_trade_derived,
    filter_trades,
    realized_profit,
    sort_for_display,
)

__all__ = [
    "AssetSummary",
    "FundsSummary",
    "NetWorth",
    "P2PSummary",
    "RealizedProfit",
    "RunRate",
    "SimpleInterestProjection",
    "TradeDerived",
    "TradeTotals",
    "aggregate",
    "available_years",
    "compound_annual_rate",
    "compute_trade_derived",
    "crypto_summary",
    "dividend_run_rate",
    "dividends_summary",
    "filter_trades",
    "funds_summary",
    "net_worth",
    "p2p_summary",
    "per_payment",
    "realized_profit",
    "resolve_term_years",
    "run_rate",
    "simple_interest_projection",
    "sort_for_display",
    "stocks_summary",
    "years_between",
]
