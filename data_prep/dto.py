"""
ScenarioInputDTO: the wire shape the external mapping layer produces.

Field names are snake_case in Python and accept the camelCase keys of the
JSON payload (``startDate``, ``aprPct``...). Rates are percentages here
(6.5 means 6.5%); data_prep.loader converts them to decimals. Enumerated
fields are closed: an unknown frequency or growth rule fails at parse time.
Numeric sign and cross-reference checks live in data_prep.validators so
they surface as typed engine errors.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.schema import (
    AccountType,
    FilingStatus,
    Frequency,
    GoalType,
    GrowthRule,
    LoanType,
)


class _DTO(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class HouseholdDTO(_DTO):
    currency: str = "USD"
    anchor_date: date
    start_date: date
    end_date: date
    cash_account_id: Optional[str] = Field(None, description="Account that absorbs net cash flow")
    starting_cash: float = 0.0


class AssumptionsDTO(_DTO):
    inflation_rate_pct: float = 0.0
    taxable_interest_yield_pct: float = 0.0
    taxable_dividend_yield_pct: float = 0.0
    realized_st_gain_pct: float = 0.0
    realized_lt_gain_pct: float = 0.0


class TaxProfileDTO(_DTO):
    state_code: str
    filing_status: FilingStatus
    tax_year: int
    include_payroll_taxes: bool = True
    advanced_overrides_enabled: bool = False


class IncomeDTO(_DTO):
    id: str
    name: str = ""
    member_name: Optional[str] = None
    amount: float
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    growth_rule: GrowthRule = GrowthRule.NONE
    growth_pct: Optional[float] = None
    is_wage: bool = Field(True, description="Subject to payroll tax")


class ExpenseDTO(_DTO):
    id: str
    category: str = ""
    name: Optional[str] = None
    amount: float
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    growth_rule: GrowthRule = GrowthRule.NONE
    growth_pct: Optional[float] = None
    is_essential: bool = True


class HoldingDTO(_DTO):
    ticker: str
    shares: float
    avg_price: float
    last_price: Optional[float] = None
    as_of_date: Optional[date] = None


class AccountDTO(_DTO):
    id: str
    name: str = ""
    type: AccountType = AccountType.TAXABLE
    expected_return_pct: float = 0.0
    volatility_pct: Optional[float] = None
    cash_balance: float = 0.0
    holdings: List[HoldingDTO] = Field(default_factory=list)


class ContributionDTO(_DTO):
    account_id: str
    amount_monthly: float
    start_date: date
    end_date: Optional[date] = None
    escalation_pct: Optional[float] = None


class LoanDTO(_DTO):
    id: str
    type: LoanType = LoanType.OTHER
    name: str = ""
    principal: float
    apr_pct: float
    term_months: int
    start_date: date
    current_balance: Optional[float] = Field(None, description="Balance at the horizon start, if known")
    payment_override_monthly: Optional[float] = None
    extra_payment_monthly: Optional[float] = None


class GoalDTO(_DTO):
    id: str
    type: GoalType = GoalType.OTHER
    name: str
    target_amount_real: float
    target_date: date
    priority: int = Field(2, ge=1, le=3)
    funding_account_ids: List[str] = Field(default_factory=list)


class ScenarioInputDTO(_DTO):
    scenario_id: str
    household: HouseholdDTO
    assumptions: AssumptionsDTO = Field(default_factory=AssumptionsDTO)
    tax_profile: TaxProfileDTO
    incomes: List[IncomeDTO] = Field(default_factory=list)
    expenses: List[ExpenseDTO] = Field(default_factory=list)
    accounts: List[AccountDTO] = Field(default_factory=list)
    contributions: List[ContributionDTO] = Field(default_factory=list)
    loans: List[LoanDTO] = Field(default_factory=list)
    goals: List[GoalDTO] = Field(default_factory=list)
