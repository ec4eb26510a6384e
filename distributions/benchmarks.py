"""
Benchmark return volatilities by account type.

An account's own volatility always wins. Otherwise an explicit
ProjectionOptions.default_volatility_pct applies to every account, and when
that is unset the benchmark for the account type is used. Figures are
long-run annual standard deviations of a typical allocation for each
wrapper: taxable brokerage accounts lean equity-heavy, tax-deferred
retirement accounts hold more bonds as a target-date glide path does.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from core.schema import AccountType
from core.types import AccountState


@dataclass(frozen=True)
class BenchmarkVolatility:
    account_type: AccountType
    volatility: float  # annual, decimal
    source: str


ACCOUNT_BENCHMARKS: Dict[AccountType, BenchmarkVolatility] = {
    AccountType.TAXABLE: BenchmarkVolatility(
        account_type=AccountType.TAXABLE,
        volatility=0.16,
        source="80/20 equity/bond blend, 1970-2023 annual returns",
    ),
    AccountType.TRADITIONAL: BenchmarkVolatility(
        account_type=AccountType.TRADITIONAL,
        volatility=0.12,
        source="60/40 target-date blend, 1970-2023 annual returns",
    ),
    AccountType.ROTH: BenchmarkVolatility(
        account_type=AccountType.ROTH,
        volatility=0.17,
        source="90/10 equity/bond blend, 1970-2023 annual returns",
    ),
}


def get_benchmark_volatility(account_type: AccountType) -> float:
    return ACCOUNT_BENCHMARKS[AccountType(account_type)].volatility


def resolve_volatility(account: AccountState, default_volatility: Optional[float] = None) -> float:
    """
    Volatility used to sample an account's returns.

    Parameters
    ----------
    account : AccountState
        Its own ``volatility`` wins when set (0.0 included, e.g. a cash account).
    default_volatility : float, optional
        Decimal override for every account without its own figure.
    """
    if account.volatility is not None:
        return float(account.volatility)
    if default_volatility is not None:
        return float(default_volatility)
    return get_benchmark_volatility(account.account_type)
