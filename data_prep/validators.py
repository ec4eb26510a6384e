"""
Upfront validation of a scenario before it enters the engine.

Catches problems early, before a single step is simulated:
- Zero-length or inverted horizon
- Negative amounts, shares, prices, principals and balances
- Inverted definition windows and incomplete growth rules
- References to accounts that do not exist
- Tax jurisdictions the rule table cannot settle
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from core.errors import (
    EngineError,
    HorizonError,
    InvalidDefinition,
    NegativeQuantityError,
    ScenarioValidationError,
    UnsupportedTaxJurisdiction,
)
from core.schema import FilingStatus, GrowthRule
from core.tax_tables import DEFAULT_TAX_TABLE, TaxRuleTable

from .dto import ScenarioInputDTO


@dataclass
class ValidationResult:
    """Collects all validation errors (blocking) and warnings (informational) for a scenario."""
    errors: List[EngineError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ [{type(e).__name__}] {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def _check_window(result: ValidationResult, path: str, start, end) -> None:
    if end is not None and end < start:
        result.errors.append(InvalidDefinition(f"end_date {end} is before start_date {start}", path=path))


def _check_recurring(result: ValidationResult, path: str, item) -> None:
    if item.amount < 0:
        result.errors.append(InvalidDefinition(f"negative amount {item.amount}", path=path))
    _check_window(result, path, item.start_date, item.end_date)
    if item.growth_rule is GrowthRule.CUSTOM_PERCENT and item.growth_pct is None:
        result.errors.append(InvalidDefinition("CUSTOM_PERCENT growth requires growth_pct", path=path))
    _check_rate(result, path, growth_pct=item.growth_pct)


def _check_negative(result: ValidationResult, path: str, **values: Optional[float]) -> None:
    for name, value in values.items():
        if value is not None and value < 0:
            result.errors.append(NegativeQuantityError(f"negative {name} {value}", path=path))


def _check_rate(result: ValidationResult, path: str, **values: Optional[float]) -> None:
    """Percent rates at or below -100 would wipe out or flip the sign of a balance."""
    for name, value in values.items():
        if value is not None and value <= -100:
            result.errors.append(InvalidDefinition(f"{name} must be above -100, got {value}", path=path))


def _duplicates(ids: Iterable[str]) -> List[str]:
    return [k for k, n in Counter(ids).items() if n > 1]


def validate_scenario(dto: ScenarioInputDTO, tables: TaxRuleTable = DEFAULT_TAX_TABLE) -> ValidationResult:
    """
    Run all validation checks on a scenario input.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    result = ValidationResult()
    hh = dto.household

    # --- Horizon ---
    if hh.end_date <= hh.start_date:
        result.errors.append(
            HorizonError(f"end_date {hh.end_date} must be after start_date {hh.start_date}", path="household")
        )
    if hh.anchor_date > hh.start_date:
        result.warnings.append(f"anchor_date {hh.anchor_date} is after start_date {hh.start_date}.")
    _check_negative(result, "household", starting_cash=hh.starting_cash)
    _check_rate(result, "assumptions", inflation_rate_pct=dto.assumptions.inflation_rate_pct)

    # --- Accounts ---
    account_ids = {a.id for a in dto.accounts}
    for dup in _duplicates(a.id for a in dto.accounts):
        result.errors.append(InvalidDefinition(f"duplicate account id {dup!r}", path="accounts"))
    for acc in dto.accounts:
        path = f"accounts[{acc.id}]"
        _check_negative(result, path, cash_balance=acc.cash_balance, volatility_pct=acc.volatility_pct)
        _check_rate(result, path, expected_return_pct=acc.expected_return_pct)
        for h in acc.holdings:
            _check_negative(
                result, f"{path}.holdings[{h.ticker}]",
                shares=h.shares, avg_price=h.avg_price, last_price=h.last_price,
            )
    if hh.cash_account_id and hh.cash_account_id not in account_ids:
        result.errors.append(
            InvalidDefinition(f"unknown cash account {hh.cash_account_id!r}", path="household.cash_account_id")
        )

    # --- Recurring definitions ---
    for inc in dto.incomes:
        _check_recurring(result, f"incomes[{inc.id}]", inc)
    for exp in dto.expenses:
        _check_recurring(result, f"expenses[{exp.id}]", exp)
    for dup in _duplicates(i.id for i in dto.incomes):
        result.warnings.append(f"Duplicate income id {dup!r}.")
    for dup in _duplicates(e.id for e in dto.expenses):
        result.warnings.append(f"Duplicate expense id {dup!r}.")

    for i, rule in enumerate(dto.contributions):
        path = f"contributions[{i}]"
        if rule.amount_monthly < 0:
            result.errors.append(InvalidDefinition(f"negative amount {rule.amount_monthly}", path=path))
        _check_rate(result, path, escalation_pct=rule.escalation_pct)
        _check_window(result, path, rule.start_date, rule.end_date)
        if rule.account_id not in account_ids:
            result.errors.append(InvalidDefinition(f"unknown account {rule.account_id!r}", path=path))

    # --- Loans ---
    for loan in dto.loans:
        path = f"loans[{loan.id}]"
        _check_negative(
            result, path,
            principal=loan.principal,
            current_balance=loan.current_balance,
            payment_override_monthly=loan.payment_override_monthly,
            extra_payment_monthly=loan.extra_payment_monthly,
        )
        if loan.term_months <= 0:
            result.errors.append(InvalidDefinition(f"term_months must be positive, got {loan.term_months}", path=path))
        if loan.apr_pct < 0:
            result.errors.append(InvalidDefinition(f"negative apr_pct {loan.apr_pct}", path=path))
        if loan.current_balance is not None and loan.current_balance > loan.principal:
            result.warnings.append(f"{path}: current_balance exceeds original principal.")
        if loan.start_date > hh.end_date:
            result.warnings.append(f"{path}: starts after the projection ends.")

    # --- Goals ---
    for goal in dto.goals:
        path = f"goals[{goal.id}]"
        _check_negative(result, path, target_amount_real=goal.target_amount_real)
        for acc_id in goal.funding_account_ids:
            if acc_id not in account_ids:
                result.errors.append(InvalidDefinition(f"unknown funding account {acc_id!r}", path=path))
        if not hh.start_date <= goal.target_date <= hh.end_date:
            result.warnings.append(f"{path}: target_date {goal.target_date} is outside the projection horizon.")

    # --- Tax jurisdiction ---
    tp = dto.tax_profile
    state = tp.state_code.upper()
    if state not in tables.state_rules:
        result.errors.append(
            UnsupportedTaxJurisdiction(f"no state tax rule for {state!r}", path="tax_profile.state_code")
        )
    status = FilingStatus(tp.filing_status)
    if status not in tables.federal_brackets or status not in tables.standard_deductions:
        result.errors.append(
            UnsupportedTaxJurisdiction(
                f"no federal table for filing status {status.value!r}", path="tax_profile.filing_status"
            )
        )
    if tp.tax_year != tables.year:
        result.warnings.append(f"Tax year {tp.tax_year} settled with {tables.year} tables.")

    return result


def raise_if_invalid(result: ValidationResult, *, collect_all: bool = False) -> None:
    """Fail fast with the first violation, or with every violation when ``collect_all``."""
    if result.is_valid:
        return
    if collect_all:
        raise ScenarioValidationError(result.errors)
    raise result.errors[0]
