"""
Engine-side data model.

These are the normalized, immutable shapes the simulation works on. The
pydantic DTOs in data_prep.dto describe the wire input; data_prep.loader
turns a DTO into a Scenario built from these types. Rates here are decimals
(0.065), not the percentages the DTO carries (6.5).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional, Tuple

from .errors import InvalidDefinition
from .schema import (
    AccountType,
    CashFlowKind,
    FilingStatus,
    Frequency,
    GoalType,
    GrowthRule,
    LoanStatus,
)


def _coerce_enum(enum_cls, value, path: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidDefinition(f"unsupported value {value!r} (expected one of: {allowed})", path=path)


@dataclass(frozen=True)
class RecurringDefinition:
    """One income, expense or contribution rule, as the expander consumes it."""

    source_id: str
    kind: CashFlowKind
    amount: float
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    growth_rule: GrowthRule = GrowthRule.NONE
    growth_pct: Optional[float] = None  # decimal, CUSTOM_PERCENT only
    account_id: Optional[str] = None  # CONTRIBUTION target
    is_wage: bool = True  # INCOME subject to payroll tax

    def __post_init__(self):
        path = f"definition[{self.source_id}]"
        object.__setattr__(self, "kind", _coerce_enum(CashFlowKind, self.kind, f"{path}.kind"))
        object.__setattr__(self, "frequency", _coerce_enum(Frequency, self.frequency, f"{path}.frequency"))
        object.__setattr__(
            self, "growth_rule", _coerce_enum(GrowthRule, self.growth_rule, f"{path}.growth_rule")
        )


@dataclass(frozen=True)
class Holding:
    ticker: str
    shares: float
    avg_price: float
    last_price: Optional[float] = None

    @property
    def price(self) -> float:
        return self.last_price if self.last_price is not None else self.avg_price

    @property
    def market_value(self) -> float:
        return self.shares * self.price


@dataclass(frozen=True)
class AccountState:
    account_id: str
    cash_balance: float
    holdings: Tuple[Holding, ...] = ()
    expected_return: float = 0.0
    account_type: AccountType = AccountType.TAXABLE
    volatility: Optional[float] = None
    name: str = ""

    @property
    def holdings_value(self) -> float:
        return sum(h.market_value for h in self.holdings)

    @property
    def balance(self) -> float:
        return self.cash_balance + self.holdings_value


@dataclass(frozen=True)
class LoanState:
    loan_id: str
    principal: float
    apr: float
    term_months: int
    remaining_balance: float
    monthly_payment: float
    extra_payment_monthly: float = 0.0
    start_date: Optional[date] = None
    status: LoanStatus = LoanStatus.ACTIVE
    payments_made: int = 0
    name: str = ""

    @property
    def is_paid_off(self) -> bool:
        return self.status is LoanStatus.PAID_OFF


@dataclass(frozen=True)
class TaxProfile:
    state_code: str
    filing_status: FilingStatus
    tax_year: int
    include_payroll_taxes: bool = True

    def __post_init__(self):
        object.__setattr__(
            self,
            "filing_status",
            _coerce_enum(FilingStatus, self.filing_status, "tax_profile.filing_status"),
        )
        object.__setattr__(self, "state_code", str(self.state_code).upper())


@dataclass(frozen=True)
class Assumptions:
    inflation_rate: float = 0.0
    taxable_interest_yield: float = 0.0
    taxable_dividend_yield: float = 0.0
    realized_st_gain: float = 0.0
    realized_lt_gain: float = 0.0


@dataclass(frozen=True)
class Goal:
    goal_id: str
    name: str
    target_amount_real: float
    target_date: date
    goal_type: GoalType = GoalType.OTHER
    priority: int = 2
    funding_account_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Scenario:
    """Everything one projection run needs, already normalized and validated."""

    scenario_id: str
    anchor_date: date
    start_date: date
    end_date: date
    assumptions: Assumptions
    tax_profile: TaxProfile
    definitions: Tuple[RecurringDefinition, ...]
    accounts: Tuple[AccountState, ...]
    loans: Tuple[LoanState, ...]
    goals: Tuple[Goal, ...]
    sweep_account_id: str


@dataclass(frozen=True)
class ProjectionSnapshot:
    date: date
    net_worth: float
    total_assets: float
    total_liabilities: float
    per_account_balances: Dict[str, float] = field(default_factory=dict)
    per_loan_balances: Dict[str, float] = field(default_factory=dict)
    # unfunded expenses, loan payments and taxes carried until cash repays them
    arrears: float = 0.0
