"""
Loan Amortizer: per-period interest/principal split and payoff detection.

Balances are carried at full precision; only the scheduled payment is
rounded to cents. The last payment is truncated so it retires the loan
exactly, which keeps the principal portions summing to the original
principal.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import List, Optional, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta

from core.errors import NegativeQuantityError
from core.schema import CashFlowKind, LoanStatus
from core.types import LoanState
from core.utils import round_money

from .events import CashFlowEvent

MONTH_FRACTION = 1.0 / 12.0
PAYOFF_EPSILON = 1e-9


def level_payment(balance: float, monthly_rate: float, n_months: int) -> float:
    """Standard fully-amortizing level payment (PMT) with near-zero rate guard."""
    if n_months <= 0:
        return float(balance)
    if abs(monthly_rate) < 1e-12:
        return float(balance) / n_months
    return float(balance) * (monthly_rate * (1 + monthly_rate) ** n_months) / (
        (1 + monthly_rate) ** n_months - 1
    )


def standard_payment(
    principal: float,
    apr: float,
    term_months: int,
    payment_override: Optional[float] = None,
) -> float:
    """Scheduled monthly payment in cents; an override replaces the PMT."""
    if payment_override is not None:
        return round_money(payment_override)
    return round_money(level_payment(principal, apr / 12.0, term_months))


def split_payment(loan: LoanState, period_fraction: float = MONTH_FRACTION) -> Tuple[float, float, float]:
    """
    (interest, principal, payment) for the next period of ``loan``.

    Interest accrues on the remaining balance at apr over the period
    fraction (apr/12 for a full month). Principal is whatever the payment
    plus extra leaves after interest, clamped to [0, remaining].
    """
    remaining = loan.remaining_balance
    interest = remaining * loan.apr * period_fraction
    scheduled = loan.monthly_payment + loan.extra_payment_monthly
    principal = min(max(scheduled - interest, 0.0), remaining)
    if principal >= remaining:
        payment = remaining + interest
    else:
        payment = scheduled
    return interest, principal, payment


def amortize_step(
    loan: LoanState,
    step_date: date,
    period_fraction: float = MONTH_FRACTION,
) -> Tuple[LoanState, Optional[CashFlowEvent]]:
    """
    Advance ``loan`` by one payment.

    Returns the new state and the LOAN_PAYMENT event for the payment made.
    A PAID_OFF loan, or one that has not started by ``step_date``, comes back
    unchanged with no event.
    """
    if loan.is_paid_off:
        return loan, None
    if loan.start_date is not None and loan.start_date > step_date:
        return loan, None
    if loan.remaining_balance <= PAYOFF_EPSILON:
        return replace(loan, remaining_balance=0.0, status=LoanStatus.PAID_OFF), None

    _, principal, payment = split_payment(loan, period_fraction)
    remaining = max(loan.remaining_balance - principal, 0.0)
    status = LoanStatus.ACTIVE
    if remaining <= PAYOFF_EPSILON:
        remaining = 0.0
        status = LoanStatus.PAID_OFF

    new_state = replace(
        loan,
        remaining_balance=remaining,
        status=status,
        payments_made=loan.payments_made + 1,
    )
    event = CashFlowEvent(
        date=step_date,
        amount=round_money(payment),
        source_id=loan.loan_id,
        kind=CashFlowKind.LOAN_PAYMENT,
    )
    return new_state, event


def amortization_schedule(loan: LoanState, max_periods: Optional[int] = None) -> pd.DataFrame:
    """
    Full payment-by-payment schedule from the loan's current state.

    Parameters
    ----------
    loan : LoanState
        Starting state; remaining_balance is the opening balance.
    max_periods : int, optional
        Hard stop for payments that never retire the balance
        (default four times the term).

    Returns
    -------
    pd.DataFrame with columns period, date, payment, interest, principal, balance.
    """
    limit = max_periods if max_periods is not None else max(loan.term_months, 1) * 4
    # dormancy does not apply inside a schedule
    state = replace(loan, start_date=None)
    rows: List[dict] = []
    period = 0
    while not state.is_paid_off and state.remaining_balance > PAYOFF_EPSILON and period < limit:
        interest, principal, payment = split_payment(state)
        on = loan.start_date + relativedelta(months=period) if loan.start_date else None
        state, _ = amortize_step(state, on or date.min)
        period += 1
        rows.append(
            {
                "period": period,
                "date": on,
                "payment": payment,
                "interest": interest,
                "principal": principal,
                "balance": state.remaining_balance,
            }
        )
    return pd.DataFrame(rows, columns=["period", "date", "payment", "interest", "principal", "balance"])


def fast_forward(loan: LoanState, as_of: date) -> LoanState:
    """
    Bring a loan that originated before ``as_of`` to its balance on ``as_of``.

    One payment is applied for every month start in [start_date, first day
    of as_of's month). A loan with no start date, or one starting on or after
    as_of, is returned unchanged.
    """
    if loan.remaining_balance < 0:
        raise NegativeQuantityError(f"negative balance {loan.remaining_balance}", path=f"loan[{loan.loan_id}]")
    if loan.start_date is None or loan.start_date >= as_of:
        return loan

    first = loan.start_date.replace(day=1)
    if first < loan.start_date:
        first = first + relativedelta(months=1)
    cutoff = as_of.replace(day=1)

    state = loan
    on = first
    while on < cutoff and not state.is_paid_off:
        state, _ = amortize_step(state, on)
        on = on + relativedelta(months=1)
    return state


def loan_from_terms(
    loan_id: str,
    principal: float,
    apr: float,
    term_months: int,
    start_date: Optional[date] = None,
    extra_payment_monthly: float = 0.0,
    payment_override: Optional[float] = None,
    name: str = "",
) -> LoanState:
    """A fresh loan at origination: remaining balance equals principal."""
    if principal < 0:
        raise NegativeQuantityError(f"negative principal {principal}", path=f"loan[{loan_id}]")
    return LoanState(
        loan_id=loan_id,
        principal=float(principal),
        apr=float(apr),
        term_months=int(term_months),
        remaining_balance=float(principal),
        monthly_payment=standard_payment(principal, apr, term_months, payment_override),
        extra_payment_monthly=float(extra_payment_monthly or 0.0),
        start_date=start_date,
        status=LoanStatus.PAID_OFF if principal <= PAYOFF_EPSILON else LoanStatus.ACTIVE,
        name=name,
    )
