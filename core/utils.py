from __future__ import annotations

import math
from datetime import date
from typing import List, Tuple

import numpy as np
from dateutil.relativedelta import relativedelta

DAYS_PER_YEAR = 365.25


def round_money(x, decimals: int = 2) -> float:
    """Excel-style rounding, half away from zero; non-finite maps to 0.0."""
    x = float(x)
    if not math.isfinite(x):
        return 0.0
    m = 10 ** decimals
    return float(np.sign(x) * (np.floor(abs(x) * m + 0.5) / m))


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Ratio guard: a zero or non-finite denominator yields ``default``, never NaN/Inf."""
    if denominator == 0 or not math.isfinite(denominator) or not math.isfinite(numerator):
        return default
    result = numerator / denominator
    return result if math.isfinite(result) else default


def years_between(start: date, end: date) -> float:
    """Fractional years from start to end (days / 365.25), never truncated."""
    return (end - start).days / DAYS_PER_YEAR


def step_windows(start: date, end: date) -> List[Tuple[date, date, float]]:
    """
    Split [start, end) into calendar-month simulation steps.

    Returns (window_start, window_end, period_fraction) tuples. The first
    window runs from ``start`` to the next month start, the last one is
    clipped at ``end``. A full month has period_fraction 1/12; a partial one
    is scaled by the share of its month's days it covers.
    """
    windows: List[Tuple[date, date, float]] = []
    cursor = start
    while cursor < end:
        month_first = cursor.replace(day=1)
        next_first = month_first + relativedelta(months=1)
        window_end = min(next_first, end)
        days_in_month = (next_first - month_first).days
        fraction = (window_end - cursor).days / days_in_month / 12.0
        windows.append((cursor, window_end, fraction))
        cursor = window_end
    return windows


def closes_tax_year(window_start: date, window_end: date, start_month: int = 1) -> bool:
    """True when the tax year beginning in ``start_month`` rolls over inside (start, end]."""
    boundary = date(window_start.year, start_month, 1)
    if boundary <= window_start:
        boundary = boundary + relativedelta(years=1)
    return window_start < boundary <= window_end


def tax_year_of(day: date, start_month: int = 1) -> int:
    """Tax year label: the calendar year in which the tax year ends."""
    if start_month == 1:
        return day.year
    return day.year + 1 if day.month >= start_month else day.year
