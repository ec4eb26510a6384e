"""
Home-purchase sizing on top of the Loan Amortizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import pandas as pd

from core.errors import NegativeQuantityError
from core.types import LoanState
from core.utils import round_money
from engine.loans import amortization_schedule, loan_from_terms


@dataclass(frozen=True)
class HomePurchase:
    home_price: float
    down_payment: float
    loan: LoanState
    schedule: pd.DataFrame = field(repr=False, compare=False)

    @property
    def principal(self) -> float:
        return self.loan.principal

    @property
    def monthly_payment(self) -> float:
        return self.loan.monthly_payment

    @property
    def total_interest(self) -> float:
        return round_money(self.schedule["interest"].sum())

    @property
    def loan_to_value(self) -> float:
        return self.principal / self.home_price if self.home_price else 0.0


def home_purchase(
    home_price: float,
    down_payment: float,
    apr_pct: float,
    term_years: int,
    start_date: Optional[date] = None,
    extra_payment_monthly: float = 0.0,
) -> HomePurchase:
    """
    Mortgage a home purchase: principal = price - down payment, level payment over the term.

    >>> round(home_purchase(400_000, 80_000, 6.5, 30).monthly_payment, 2)
    2022.62
    """
    if home_price < 0 or down_payment < 0:
        raise NegativeQuantityError("home price and down payment must be non-negative")
    principal = max(home_price - down_payment, 0.0)
    loan = loan_from_terms(
        loan_id="mortgage",
        principal=principal,
        apr=apr_pct / 100.0,
        term_months=int(term_years * 12),
        start_date=start_date,
        extra_payment_monthly=extra_payment_monthly,
        name="Mortgage",
    )
    return HomePurchase(
        home_price=home_price,
        down_payment=down_payment,
        loan=loan,
        schedule=amortization_schedule(loan),
    )
