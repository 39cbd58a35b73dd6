"""Dividend run-rate projections.

The received amount is always derived from the stock's current quantity;
nothing here is cached, so a quantity change is reflected on the next call.
"""

from dataclasses import dataclass

from ...core.utils.numeric import safe_num
from .interest import DAYS_PER_YEAR


@dataclass
class RunRate:
    """Annualized amount with its month and day equivalents."""

    year: float
    month: float
    day: float


def run_rate(year_amount: float) -> RunRate:
    """Split a yearly amount into month (/12) and day (/365.25) figures."""
    return RunRate(year=year_amount, month=year_amount / 12, day=year_amount / DAYS_PER_YEAR)


def dividend_run_rate(qty: float, per_share_annual: float) -> RunRate:
    return run_rate(safe_num(qty) * safe_num(per_share_annual))


def per_payment(year_amount: float, payments_per_year: int) -> float:
    """Amount of each individual payment; the yearly amount when frequency is unknown."""
    n = safe_num(payments_per_year)
    return year_amount / n if n > 0 else year_amount
