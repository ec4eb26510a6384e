"""
Growth Model: one step of compounding for an account.

Cash compounds pro-rata at the expected return, or by the sampled period
return a Monte Carlo trial supplies. Holdings are revalued from injected
prices; shares never change here.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping, Optional

from core.types import AccountState


def growth_multiplier(annual_return: float, period_fraction: float) -> float:
    return (1.0 + annual_return) ** period_fraction


def apply_growth(
    account: AccountState,
    period_fraction: float,
    period_return: Optional[float] = None,
    prices: Optional[Mapping[str, float]] = None,
) -> AccountState:
    """
    Return a new AccountState grown by one step; ``account`` is untouched.

    Parameters
    ----------
    account : AccountState
        State before growth (cash deltas already applied).
    period_fraction : float
        Share of a year this step covers (1/12 for a full month).
    period_return : float, optional
        Sampled return for the whole step. Replaces the expected-return
        compounding when given.
    prices : Mapping[str, float], optional
        Ticker -> latest price. Tickers not present keep their last price.
    """
    if period_return is None:
        factor = growth_multiplier(account.expected_return, period_fraction)
    else:
        factor = 1.0 + float(period_return)
    cash = max(account.cash_balance * factor, 0.0)

    holdings = account.holdings
    if prices:
        holdings = tuple(
            replace(h, last_price=float(prices[h.ticker.upper()]))
            if h.ticker.upper() in prices
            else h
            for h in account.holdings
        )
    return replace(account, cash_balance=cash, holdings=holdings)


def credit_cash(account: AccountState, amount: float) -> AccountState:
    """Add (or with a negative amount, withdraw) cash; the balance floors at zero."""
    return replace(account, cash_balance=max(account.cash_balance + amount, 0.0))
