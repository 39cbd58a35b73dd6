"""Aggregate calculators over a holdings snapshot.

Each summary is a pure function of a :class:`Portfolio`. Note the two
different averaging rules: P2P ``avg_pct`` is a plain mean of per-loan
percentages, while the funds ``avg_rate`` is weighted by amount.
"""

from dataclasses import dataclass

from ...core.utils.numeric import safe_num, safe_pct
from ..models import DividendRecord, HoldingCrypto, HoldingStock, P2PLoan, ParkedFund, Portfolio
from .dividends import RunRate, dividend_run_rate, per_payment, run_rate
from .interest import SimpleInterestProjection, compound_annual_rate, resolve_term_years, simple_interest_projection


@dataclass
class AssetSummary:
    """Invested vs. current value for a market-priced asset class."""

    invested: float
    current: float
    profit: float
    pct: float


@dataclass
class P2PSummary:
    invested: float
    final_value: float
    profit: float
    avg_pct: float
    profit_per_year: float


@dataclass
class FundsSummary:
    total: float
    year_profit: float
    month_profit: float
    day_profit: float
    avg_rate: float


@dataclass
class FundRow:
    effective_annual_pct: float
    income: RunRate


@dataclass
class DividendRow:
    qty: float
    income: RunRate
    per_payment: float


@dataclass
class NetWorth:
    """Net worth breakdown.

    Attributes:
        total_invested: Stocks + crypto + P2P invested.
        current_assets: Stocks + crypto current value + P2P final value.
        total_profit: Sum of per-asset (current - invested).
        total_profit_pct: total_profit over total_invested, in percent.
        funds_total: Amount parked in funds.
        cash_balance: Bank cash.
        net_worth: current_assets + funds_total + cash_balance.
        recurring: Dividends + P2P + funds yearly income, with month/day.
    """

    total_invested: float
    current_assets: float
    total_profit: float
    total_profit_pct: float
    funds_total: float
    cash_balance: float
    net_worth: float
    recurring: RunRate
    dividends: RunRate
    p2p: RunRate
    funds: RunRate


# ---------------------------------------------------------------------------
# Per-row derivations
# ---------------------------------------------------------------------------


def stock_row(stock: HoldingStock) -> AssetSummary:
    invested = safe_num(stock.qty) * safe_num(stock.avg_buy_price)
    current = safe_num(stock.qty) * safe_num(stock.current_price)
    return AssetSummary(invested, current, current - invested, safe_pct(current - invested, invested))


def crypto_row(holding: HoldingCrypto) -> AssetSummary:
    invested = safe_num(holding.invested_amount)
    current = safe_num(holding.qty) * safe_num(holding.current_price)
    return AssetSummary(invested, current, current - invested, safe_pct(current - invested, invested))


def p2p_row(loan: P2PLoan) -> SimpleInterestProjection:
    years = resolve_term_years(loan.start_date, loan.end_date, loan.years)
    return simple_interest_projection(loan.amount, loan.annual_rate_pct, years)


def fund_row(fund: ParkedFund) -> FundRow:
    effective = compound_annual_rate(fund.rate_pct, fund.frequency)
    return FundRow(effective_annual_pct=effective, income=run_rate(safe_num(fund.amount) * effective / 100))


def dividend_row(record: DividendRecord, portfolio: Portfolio) -> DividendRow:
    """Live join of a dividend record with its stock's current quantity."""
    stock = portfolio.find_stock(record.ticker)
    qty = safe_num(stock.qty) if stock else 0.0
    income = dividend_run_rate(qty, record.per_share_annual)
    return DividendRow(qty=qty, income=income, per_payment=per_payment(income.year, record.payments_per_year))


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def _summarize(rows: list[AssetSummary]) -> AssetSummary:
    invested = sum(r.invested for r in rows)
    current = sum(r.current for r in rows)
    profit = current - invested
    return AssetSummary(invested, current, profit, safe_pct(profit, invested))


def stocks_summary(portfolio: Portfolio) -> AssetSummary:
    return _summarize([stock_row(s) for s in portfolio.stocks])


def crypto_summary(portfolio: Portfolio) -> AssetSummary:
    return _summarize([crypto_row(c) for c in portfolio.crypto])


def p2p_summary(portfolio: Portfolio) -> P2PSummary:
    rows = [p2p_row(loan) for loan in portfolio.p2p]
    invested = sum(safe_num(loan.amount) for loan in portfolio.p2p)
    final_value = sum(r.final_value for r in rows)
    avg_pct = sum(r.profit_pct for r in rows) / len(rows) if rows else 0.0
    return P2PSummary(
        invested=invested,
        final_value=final_value,
        profit=final_value - invested,
        avg_pct=avg_pct,
        profit_per_year=sum(r.profit_per_year for r in rows),
    )


def funds_summary(portfolio: Portfolio) -> FundsSummary:
    total = sum(safe_num(f.amount) for f in portfolio.funds)
    income = run_rate(sum(fund_row(f).income.year for f in portfolio.funds))
    return FundsSummary(
        total=total,
        year_profit=income.year,
        month_profit=income.month,
        day_profit=income.day,
        avg_rate=safe_pct(income.year, total),
    )


def dividends_summary(portfolio: Portfolio) -> RunRate:
    return run_rate(sum(dividend_row(d, portfolio).income.year for d in portfolio.dividends))


def net_worth(portfolio: Portfolio) -> NetWorth:
    st = stocks_summary(portfolio)
    cr = crypto_summary(portfolio)
    p2 = p2p_summary(portfolio)
    fd = funds_summary(portfolio)
    dv = dividends_summary(portfolio)

    total_invested = st.invested + cr.invested + p2.invested
    current_assets = st.current + cr.current + p2.final_value
    total_profit = (st.current - st.invested) + (cr.current - cr.invested) + (p2.final_value - p2.invested)
    cash = safe_num(portfolio.cash_balance)

    return NetWorth(
        total_invested=total_invested,
        current_assets=current_assets,
        total_profit=total_profit,
        total_profit_pct=safe_pct(total_profit, total_invested),
        funds_total=fd.total,
        cash_balance=cash,
        net_worth=current_assets + fd.total + cash,
        recurring=run_rate(dv.year + p2.profit_per_year + fd.year_profit),
        dividends=dv,
        p2p=run_rate(p2.profit_per_year),
        funds=run_rate(fd.year_profit),
    )
