"""
Turn a ScenarioInputDTO into the engine's Scenario.

Percentages become decimals, incomes/expenses/contributions become
RecurringDefinitions, loans are brought to their balance at the horizon
start, and the cash sweep account is resolved (or created).
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import replace
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from core.errors import InvalidDefinition
from core.schema import AccountType, CashFlowKind, Frequency, GrowthRule, LoanStatus
from core.types import (
    AccountState,
    Assumptions,
    Goal,
    Holding,
    LoanState,
    RecurringDefinition,
    Scenario,
    TaxProfile,
)
from engine.loans import PAYOFF_EPSILON, fast_forward, loan_from_terms

from .dto import AccountDTO, LoanDTO, ScenarioInputDTO

logger = logging.getLogger(__name__)

IMPLICIT_CASH_ACCOUNT_ID = "household-cash"


def _pct(value: Optional[float]) -> Optional[float]:
    return None if value is None else float(value) / 100.0


def parse_input(data: Union[ScenarioInputDTO, Mapping[str, Any]]) -> ScenarioInputDTO:
    """Validate a raw mapping into a ScenarioInputDTO; pydantic errors become InvalidDefinition."""
    if isinstance(data, ScenarioInputDTO):
        return data
    try:
        return ScenarioInputDTO.model_validate(data)
    except ValidationError as err:
        first = err.errors()[0]
        path = ".".join(str(p) for p in first.get("loc", ()))
        raise InvalidDefinition(
            f"{first.get('msg', 'invalid value')} ({err.error_count()} error(s) in input)", path=path or None
        ) from err


def input_hash(dto: ScenarioInputDTO) -> str:
    """SHA-256 of the canonical JSON form; identical inputs hash identically."""
    payload = json.dumps(dto.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

def build_definitions(dto: ScenarioInputDTO) -> List[RecurringDefinition]:
    defs: List[RecurringDefinition] = []
    for inc in dto.incomes:
        defs.append(
            RecurringDefinition(
                source_id=f"income:{inc.id}",
                kind=CashFlowKind.INCOME,
                amount=inc.amount,
                frequency=inc.frequency,
                start_date=inc.start_date,
                end_date=inc.end_date,
                growth_rule=inc.growth_rule,
                growth_pct=_pct(inc.growth_pct),
                is_wage=inc.is_wage,
            )
        )
    for exp in dto.expenses:
        defs.append(
            RecurringDefinition(
                source_id=f"expense:{exp.id}",
                kind=CashFlowKind.EXPENSE,
                amount=exp.amount,
                frequency=exp.frequency,
                start_date=exp.start_date,
                end_date=exp.end_date,
                growth_rule=exp.growth_rule,
                growth_pct=_pct(exp.growth_pct),
            )
        )
    for i, rule in enumerate(dto.contributions):
        escalates = bool(rule.escalation_pct)
        defs.append(
            RecurringDefinition(
                source_id=f"contribution:{rule.account_id}:{i}",
                kind=CashFlowKind.CONTRIBUTION,
                amount=rule.amount_monthly,
                frequency=Frequency.MONTHLY,
                start_date=rule.start_date,
                end_date=rule.end_date,
                growth_rule=GrowthRule.CUSTOM_PERCENT if escalates else GrowthRule.NONE,
                growth_pct=_pct(rule.escalation_pct) if escalates else None,
                account_id=rule.account_id,
            )
        )
    return defs


# ---------------------------------------------------------------------------
# Accounts and loans
# ---------------------------------------------------------------------------

def build_account(acc: AccountDTO) -> AccountState:
    return AccountState(
        account_id=acc.id,
        cash_balance=float(acc.cash_balance),
        holdings=tuple(
            Holding(ticker=h.ticker.upper(), shares=h.shares, avg_price=h.avg_price, last_price=h.last_price)
            for h in acc.holdings
        ),
        expected_return=_pct(acc.expected_return_pct),
        account_type=acc.type,
        volatility=_pct(acc.volatility_pct),
        name=acc.name,
    )


def build_accounts(dto: ScenarioInputDTO) -> tuple:
    """(accounts, sweep_account_id). The implicit cash account, when created, comes first."""
    accounts = [build_account(a) for a in dto.accounts]
    hh = dto.household
    if hh.cash_account_id:
        accounts = [
            replace(a, cash_balance=a.cash_balance + hh.starting_cash) if a.account_id == hh.cash_account_id else a
            for a in accounts
        ]
        return tuple(accounts), hh.cash_account_id

    cash = AccountState(
        account_id=IMPLICIT_CASH_ACCOUNT_ID,
        cash_balance=float(hh.starting_cash),
        expected_return=_pct(dto.assumptions.taxable_interest_yield_pct),
        account_type=AccountType.TAXABLE,
        volatility=0.0,
        name="Household cash",
    )
    return (cash, *accounts), IMPLICIT_CASH_ACCOUNT_ID


def build_loan(loan: LoanDTO, horizon_start) -> LoanState:
    state = loan_from_terms(
        loan_id=loan.id,
        principal=loan.principal,
        apr=_pct(loan.apr_pct),
        term_months=loan.term_months,
        start_date=loan.start_date,
        extra_payment_monthly=loan.extra_payment_monthly or 0.0,
        payment_override=loan.payment_override_monthly,
        name=loan.name,
    )
    if loan.current_balance is not None:
        balance = float(loan.current_balance)
        return replace(
            state,
            remaining_balance=balance,
            status=LoanStatus.PAID_OFF if balance <= PAYOFF_EPSILON else LoanStatus.ACTIVE,
        )
    return fast_forward(state, horizon_start)


# ---------------------------------------------------------------------------
# Scenario
# ---------------------------------------------------------------------------

def build_scenario(dto: ScenarioInputDTO) -> Scenario:
    """Normalize a validated DTO. Run data_prep.validators first."""
    hh = dto.household
    a = dto.assumptions
    accounts, sweep_id = build_accounts(dto)
    scenario = Scenario(
        scenario_id=dto.scenario_id,
        anchor_date=hh.anchor_date,
        start_date=hh.start_date,
        end_date=hh.end_date,
        assumptions=Assumptions(
            inflation_rate=_pct(a.inflation_rate_pct),
            taxable_interest_yield=_pct(a.taxable_interest_yield_pct),
            taxable_dividend_yield=_pct(a.taxable_dividend_yield_pct),
            realized_st_gain=_pct(a.realized_st_gain_pct),
            realized_lt_gain=_pct(a.realized_lt_gain_pct),
        ),
        tax_profile=TaxProfile(
            state_code=dto.tax_profile.state_code,
            filing_status=dto.tax_profile.filing_status,
            tax_year=dto.tax_profile.tax_year,
            include_payroll_taxes=dto.tax_profile.include_payroll_taxes,
        ),
        definitions=tuple(build_definitions(dto)),
        accounts=accounts,
        loans=tuple(build_loan(loan, hh.start_date) for loan in dto.loans),
        goals=tuple(
            Goal(
                goal_id=g.id,
                name=g.name,
                target_amount_real=g.target_amount_real,
                target_date=g.target_date,
                goal_type=g.type,
                priority=g.priority,
                funding_account_ids=tuple(g.funding_account_ids),
            )
            for g in dto.goals
        ),
        sweep_account_id=sweep_id,
    )
    logger.debug(
        "Built scenario %s: %d definitions, %d accounts, %d loans, %d goals",
        scenario.scenario_id, len(scenario.definitions), len(scenario.accounts),
        len(scenario.loans), len(scenario.goals),
    )
    return scenario
