"""
Cash-Flow Expander: turns one recurring definition into dated CashFlowEvents.

Key rules:
  1. Occurrences are anchored at the definition's start_date and step by the
     frequency's period (calendar months/years via relativedelta, fixed 7/14
     day steps for WEEKLY/BIWEEKLY).
  2. Only occurrences inside [max(start, horizon_start), min(end, horizon_end))
     are emitted; the window is half-open on both definition and horizon.
  3. ONE_TIME emits exactly one event at start_date, or nothing.
  4. Growth is applied per occurrence on a fractional year count since
     start_date (days / 365.25), never truncated.

expand() is pure: the same inputs always produce the same tuple, so the
projector can re-run it for every Monte Carlo trial.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from core.errors import InvalidDefinition
from core.schema import ANNUAL_OCCURRENCES, Frequency, GrowthRule
from core.types import RecurringDefinition
from core.utils import round_money, years_between

from .events import CashFlowEvent


def annual_occurrences(frequency: Frequency) -> int:
    return ANNUAL_OCCURRENCES[Frequency(frequency)]


def normalize_to_monthly(amount: float, frequency: Frequency) -> float:
    """Monthly-equivalent amount; ONE_TIME amounts are returned unchanged."""
    frequency = Frequency(frequency)
    if frequency is Frequency.ONE_TIME:
        return amount
    return round_money(amount * annual_occurrences(frequency) / 12.0)


def check_definition(definition: RecurringDefinition) -> None:
    """Raise InvalidDefinition for anything expand() cannot honor."""
    path = f"definition[{definition.source_id}]"
    if definition.amount < 0:
        raise InvalidDefinition(f"negative amount {definition.amount}", path=path)
    if definition.end_date is not None and definition.end_date < definition.start_date:
        raise InvalidDefinition(
            f"end_date {definition.end_date} is before start_date {definition.start_date}", path=path
        )
    if definition.growth_rule is GrowthRule.CUSTOM_PERCENT and definition.growth_pct is None:
        raise InvalidDefinition("CUSTOM_PERCENT growth requires growth_pct", path=path)
    if definition.growth_pct is not None and definition.growth_pct <= -1.0:
        raise InvalidDefinition(f"growth_pct must be above -100%, got {definition.growth_pct:.2%}", path=path)


def growth_factor(definition: RecurringDefinition, on: date, inflation_rate: float = 0.0) -> float:
    rule = definition.growth_rule
    if rule is GrowthRule.NONE:
        return 1.0
    years = max(years_between(definition.start_date, on), 0.0)
    rate = inflation_rate if rule is GrowthRule.TRACK_INFLATION else float(definition.growth_pct)
    return (1.0 + rate) ** years


def _occurrence(start: date, frequency: Frequency, k: int) -> date:
    if frequency is Frequency.MONTHLY:
        return start + relativedelta(months=k)
    if frequency is Frequency.ANNUAL:
        return start + relativedelta(years=k)
    if frequency is Frequency.BIWEEKLY:
        return start + timedelta(days=14 * k)
    if frequency is Frequency.WEEKLY:
        return start + timedelta(days=7 * k)
    raise InvalidDefinition(f"unsupported periodic frequency {frequency!r}")


def _first_index(start: date, frequency: Frequency, lower: date) -> int:
    """Smallest k with occurrence(k) >= lower, jumping close before stepping."""
    if lower <= start:
        return 0
    if frequency is Frequency.MONTHLY:
        k = max((lower.year - start.year) * 12 + (lower.month - start.month) - 1, 0)
    elif frequency is Frequency.ANNUAL:
        k = max(lower.year - start.year - 1, 0)
    else:
        step = 14 if frequency is Frequency.BIWEEKLY else 7
        k = max((lower - start).days // step - 1, 0)
    while _occurrence(start, frequency, k) < lower:
        k += 1
    return k


def expand(
    definition: RecurringDefinition,
    horizon_start: date,
    horizon_end: date,
    inflation_rate: float = 0.0,
) -> Tuple[CashFlowEvent, ...]:
    """
    Expand a recurring definition into its ordered CashFlowEvents.

    Parameters
    ----------
    definition : RecurringDefinition
        Income, expense or contribution rule.
    horizon_start, horizon_end : date
        Half-open window [horizon_start, horizon_end) to emit events for.
    inflation_rate : float
        Annual decimal rate used by TRACK_INFLATION growth.

    Returns
    -------
    Tuple of CashFlowEvent strictly ordered by date.
    """
    check_definition(definition)
    start = definition.start_date
    upper = horizon_end if definition.end_date is None else min(definition.end_date, horizon_end)

    def _event(on: date) -> CashFlowEvent:
        amount = definition.amount * growth_factor(definition, on, inflation_rate)
        return CashFlowEvent(
            date=on,
            amount=round_money(amount),
            source_id=definition.source_id,
            kind=definition.kind,
            account_id=definition.account_id,
        )

    if definition.frequency is Frequency.ONE_TIME:
        if horizon_start <= start < horizon_end:
            return (_event(start),)
        return ()

    lower = max(start, horizon_start)
    events: List[CashFlowEvent] = []
    k = _first_index(start, definition.frequency, lower)
    on = _occurrence(start, definition.frequency, k)
    while on < upper:
        events.append(_event(on))
        k += 1
        on = _occurrence(start, definition.frequency, k)
    return tuple(events)


def expand_all(
    definitions: Iterable[RecurringDefinition],
    horizon_start: date,
    horizon_end: date,
    inflation_rate: float = 0.0,
) -> Tuple[CashFlowEvent, ...]:
    """All events of all definitions inside the window, ordered by (date, source_id)."""
    events: List[CashFlowEvent] = []
    for definition in definitions:
        events.extend(expand(definition, horizon_start, horizon_end, inflation_rate))
    events.sort(key=lambda e: (e.date, e.source_id))
    return tuple(events)


def net_cash_delta(events: Iterable[CashFlowEvent], account_id: Optional[str] = None) -> float:
    """Sum of signed amounts, optionally restricted to events tagged with account_id."""
    return sum(e.signed_amount for e in events if account_id is None or e.account_id == account_id)
