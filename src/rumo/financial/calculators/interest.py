"""Interest projections for P2P loans (simple) and parked funds (compound).

P2P loans accrue simple interest over their term; parked funds quote a
rate that, when monthly, is compounded to an effective annual rate.

Pure math, no external dependencies.
"""

import math
from dataclasses import dataclass
from datetime import datetime

from ...core.utils.numeric import safe_num, safe_pct
from ..models import Frequency

DAYS_PER_YEAR = 365.25


@dataclass
class SimpleInterestProjection:
    """Outcome of holding a simple-interest position to term."""

    years: float
    profit: float
    final_value: float
    profit_pct: float
    profit_per_year: float  # Run-rate, independent of the term


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def years_between(start: str | None, end: str | None) -> float | None:
    """Calendar span in years (days / 365.25), or None if unusable.

    None when either date is missing or unparseable, or when end is not
    after start.
    """
    s = _parse_date(start)
    e = _parse_date(end)
    if s is None or e is None:
        return None
    if s.tzinfo is None and e.tzinfo is not None:
        e = e.replace(tzinfo=None)
    elif e.tzinfo is None and s.tzinfo is not None:
        s = s.replace(tzinfo=None)
    seconds = (e - s).total_seconds()
    if seconds <= 0:
        return None
    return seconds / (60 * 60 * 24 * DAYS_PER_YEAR)


def resolve_term_years(start: str | None = None, end: str | None = None, years: float | None = None) -> float:
    """Term of a loan: date span, else explicit years, else 1."""
    span = years_between(start, end)
    if span is not None:
        return span
    explicit = safe_num(years)
    if explicit > 0:
        return explicit
    return 1.0


def simple_interest_projection(principal: float, annual_rate_pct: float, years: float) -> SimpleInterestProjection:
    """Project a simple-interest position.

    Args:
        principal: Amount invested.
        annual_rate_pct: Annual rate in percent (e.g., 10 for 10%).
        years: Term in years. Non-positive or non-finite values mean one year.

    Returns:
        SimpleInterestProjection with profit = principal * rate * years.
    """
    principal = safe_num(principal)
    rate = safe_num(annual_rate_pct) / 100
    years = safe_num(years)
    if not math.isfinite(years) or years <= 0:
        years = 1.0

    profit = principal * rate * years
    return SimpleInterestProjection(
        years=years,
        profit=profit,
        final_value=principal + profit,
        profit_pct=safe_pct(profit, principal),
        profit_per_year=principal * rate,
    )


def compound_annual_rate(rate_pct: float, frequency: Frequency | str = Frequency.ANNUAL) -> float:
    """Effective annual rate in percent.

    A monthly rate r compounds to ``(1 + r) ** 12 - 1``; an annual rate is
    returned unchanged.
    """
    r = safe_num(rate_pct) / 100
    if Frequency.parse(frequency) is Frequency.MONTHLY:
        return ((1 + r) ** 12 - 1) * 100
    return r * 100
