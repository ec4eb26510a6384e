"""
Price sources: the capability the projector asks for holding prices.

A price source is constructed per run and handed to the Projector. Nothing
is cached at module level, so concurrent trials never contend for it.

  StaticPriceSource          fixed quotes (or none: holdings keep their price)
  SampledPriceSource         prices compounded by a trial's sampled returns
  ExpectedReturnPriceSource  prices compounded at each account's expected return
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

import numpy as np

from core.types import AccountState


class PriceSource:
    """Interface: ticker -> price for one account at one step (0-based)."""

    def prices_for(self, account_id: str, step: int) -> Mapping[str, float]:
        raise NotImplementedError


class StaticPriceSource(PriceSource):
    """
    The same quotes at every step. With no quotes every holding keeps its
    last known price, which is the deterministic default.
    """

    def __init__(self, quotes: Optional[Mapping[str, float]] = None):
        self._quotes: Dict[str, float] = {str(t).upper(): float(p) for t, p in (quotes or {}).items()}

    def prices_for(self, account_id: str, step: int) -> Mapping[str, float]:
        return self._quotes


class SampledPriceSource(PriceSource):
    """
    Holding prices driven by a (n_steps x n_accounts) matrix of period returns.

    Every holding of account j moves by the cumulative gross return of
    column j, starting from its price at the beginning of the horizon.
    """

    def __init__(self, accounts: Sequence[AccountState], returns: np.ndarray):
        returns = np.asarray(returns, dtype=float)
        if returns.ndim != 2 or returns.shape[1] != len(accounts):
            raise ValueError(
                f"returns must be (n_steps, {len(accounts)}), got shape {returns.shape}"
            )
        self._column = {a.account_id: j for j, a in enumerate(accounts)}
        self._base = {
            a.account_id: {h.ticker.upper(): h.price for h in a.holdings} for a in accounts
        }
        self._cumulative = np.cumprod(1.0 + returns, axis=0)

    @property
    def n_steps(self) -> int:
        return self._cumulative.shape[0]

    def prices_for(self, account_id: str, step: int) -> Mapping[str, float]:
        j = self._column.get(account_id)
        if j is None:
            return {}
        factor = float(self._cumulative[step, j])
        return {ticker: price * factor for ticker, price in self._base[account_id].items()}


class ExpectedReturnPriceSource(SampledPriceSource):
    """Holdings drift at their account's expected return, step fractions applied."""

    def __init__(self, accounts: Sequence[AccountState], fractions: Sequence[float]):
        means = np.array([a.expected_return for a in accounts], dtype=float)
        f = np.asarray(fractions, dtype=float)[:, None]
        super().__init__(accounts, (1.0 + means) ** f - 1.0)
