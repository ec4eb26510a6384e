"""
Tax Settler: annual liability from a tax year's taxable events.

Income is split into an ordinary base (wages, other income, interest and
short-term gains) and a preferential base (qualified dividends and
long-term gains). Federal tax runs the ordinary base, net of the standard
deduction, through the filing status's brackets; the preferential base
stacks on top on the long-term-gains brackets. State tax applies the state
rule to the same taxable base. Payroll tax applies to wages only.

All rules come from a TaxRuleTable; a jurisdiction missing from the table
raises UnsupportedTaxJurisdiction instead of defaulting to zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

from core.errors import UnsupportedTaxJurisdiction
from core.schema import CashFlowKind, FilingStatus
from core.tax_tables import Brackets, StateTaxRule, TaxRuleTable
from core.types import TaxProfile
from core.utils import round_money, safe_divide

from .events import (
    ORDINARY_CATEGORIES,
    PREFERENTIAL_CATEGORIES,
    CashFlowEvent,
    TaxableCategory,
    TaxableEvent,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxLiability:
    tax_year: int
    federal: float
    state: float
    payroll: float
    total: float
    gross_income: float
    effective_rate: float
    ordinary_income: float = 0.0
    preferential_income: float = 0.0

    def to_dict(self) -> dict:
        return {
            "tax_year": self.tax_year,
            "federal": self.federal,
            "state": self.state,
            "payroll": self.payroll,
            "total": self.total,
            "gross_income": self.gross_income,
            "effective_rate": self.effective_rate,
            "ordinary_income": self.ordinary_income,
            "preferential_income": self.preferential_income,
        }


# ---------------------------------------------------------------------------
# Table lookups
# ---------------------------------------------------------------------------

def federal_brackets(tables: TaxRuleTable, filing_status: FilingStatus) -> Brackets:
    try:
        return tables.federal_brackets[FilingStatus(filing_status)]
    except (KeyError, ValueError):
        raise UnsupportedTaxJurisdiction(
            f"no federal bracket table for filing status {filing_status!r} in {tables.year} tables",
            path="tax_profile.filing_status",
        )


def state_rule(tables: TaxRuleTable, state_code: str) -> StateTaxRule:
    code = str(state_code).upper()
    if code not in tables.state_rules:
        raise UnsupportedTaxJurisdiction(
            f"no state tax rule for {code!r} in {tables.year} tables", path="tax_profile.state_code"
        )
    return tables.state_rules[code]


def standard_deduction(tables: TaxRuleTable, filing_status: FilingStatus) -> float:
    try:
        return float(tables.standard_deductions[FilingStatus(filing_status)])
    except (KeyError, ValueError):
        raise UnsupportedTaxJurisdiction(
            f"no standard deduction for filing status {filing_status!r}", path="tax_profile.filing_status"
        )


def check_jurisdiction(profile: TaxProfile, tables: TaxRuleTable) -> None:
    """Raise UnsupportedTaxJurisdiction if ``tables`` cannot settle ``profile``."""
    federal_brackets(tables, profile.filing_status)
    standard_deduction(tables, profile.filing_status)
    state_rule(tables, profile.state_code)


# ---------------------------------------------------------------------------
# Component taxes
# ---------------------------------------------------------------------------

def bracket_tax(amount: float, brackets: Brackets, offset: float = 0.0) -> float:
    """
    Progressive tax on ``amount`` whose first dollar sits at ``offset``.

    The offset lets preferential income stack on top of ordinary income
    without being taxed at the ordinary rates.
    """
    if amount <= 0:
        return 0.0
    lo_edge, hi_edge = offset, offset + amount
    tax = 0.0
    for b in brackets:
        if hi_edge <= b.lower:
            break
        taxed = min(hi_edge, b.upper) - max(lo_edge, b.lower)
        if taxed > 0:
            tax += taxed * b.rate
    return tax


def federal_income_tax(
    ordinary: float,
    preferential: float,
    filing_status: FilingStatus,
    tables: TaxRuleTable,
) -> float:
    brackets = federal_brackets(tables, filing_status)
    deduction = standard_deduction(tables, filing_status)
    ordinary_taxable = max(0.0, ordinary - deduction)
    # unused deduction shelters preferential income next
    pref_taxable = max(0.0, preferential - max(0.0, deduction - ordinary))
    tax = bracket_tax(ordinary_taxable, brackets)
    if pref_taxable > 0:
        ltcg = (tables.ltcg_brackets or {}).get(FilingStatus(filing_status))
        tax += bracket_tax(pref_taxable, ltcg or brackets, offset=ordinary_taxable)
    return round_money(tax)


def state_tax(taxable_income: float, state_code: str, filing_status: FilingStatus, tables: TaxRuleTable) -> float:
    rule = state_rule(tables, state_code)
    if taxable_income <= 0:
        return 0.0
    if rule.brackets:
        brackets = rule.brackets.get(FilingStatus(filing_status))
        if brackets is None:
            raise UnsupportedTaxJurisdiction(
                f"state {state_code!r} has no brackets for filing status {filing_status!r}",
                path="tax_profile.filing_status",
            )
        return round_money(bracket_tax(taxable_income, brackets))
    return round_money(taxable_income * rule.flat_rate)


def payroll_tax(wages: float, filing_status: FilingStatus, tables: TaxRuleTable) -> Dict[str, float]:
    """Social Security up to the wage cap plus Medicare (and additional Medicare)."""
    rule = tables.payroll
    wages = max(wages, 0.0)
    social_security = round_money(min(wages, rule.social_security_wage_cap) * rule.social_security_rate)
    medicare = wages * rule.medicare_rate
    threshold = rule.additional_medicare_threshold.get(FilingStatus(filing_status))
    if threshold is not None and wages > threshold:
        medicare += (wages - threshold) * rule.additional_medicare_rate
    medicare = round_money(medicare)
    return {
        "social_security": social_security,
        "medicare": medicare,
        "total": round_money(social_security + medicare),
    }


def marginal_rate(taxable_income: float, filing_status: FilingStatus, state_code: str, tables: TaxRuleTable) -> float:
    """Combined federal + state marginal rate at ``taxable_income``."""
    federal = 0.0
    for b in federal_brackets(tables, filing_status):
        if taxable_income > b.lower:
            federal = b.rate
    rule = state_rule(tables, state_code)
    state = rule.flat_rate
    if rule.brackets:
        for b in rule.brackets.get(FilingStatus(filing_status), ()):
            if taxable_income > b.lower:
                state = b.rate
    return round(federal + state, 4)


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------

TaxInput = Union[TaxableEvent, CashFlowEvent]


def aggregate_taxable(events: Iterable[TaxInput]) -> Dict[TaxableCategory, float]:
    """
    Sum event amounts per category.

    INCOME CashFlowEvents count as wages; other cash-flow kinds are not
    taxable and are skipped.
    """
    totals: Dict[TaxableCategory, float] = {c: 0.0 for c in TaxableCategory}
    for ev in events:
        if isinstance(ev, TaxableEvent):
            totals[ev.category] += ev.amount
        elif ev.kind is CashFlowKind.INCOME:
            totals[TaxableCategory.WAGES] += ev.amount
    return totals


def settle_year(
    taxable_events: Iterable[TaxInput],
    profile: TaxProfile,
    tables: TaxRuleTable,
    tax_year: Optional[int] = None,
) -> TaxLiability:
    """
    Compute one tax year's liability.

    Parameters
    ----------
    taxable_events : iterable of TaxableEvent or CashFlowEvent
        Everything taxable that accrued during the year.
    profile : TaxProfile
        State, filing status and payroll switch.
    tables : TaxRuleTable
        Bracket tables to apply.
    tax_year : int, optional
        Label for the result (defaults to profile.tax_year).

    Returns
    -------
    TaxLiability
    """
    check_jurisdiction(profile, tables)
    totals = aggregate_taxable(taxable_events)

    ordinary = sum(totals[c] for c in ORDINARY_CATEGORIES)
    preferential = sum(totals[c] for c in PREFERENTIAL_CATEGORIES)
    gross = ordinary + preferential
    wages = totals[TaxableCategory.WAGES]

    federal = federal_income_tax(ordinary, preferential, profile.filing_status, tables)
    taxable_base = max(0.0, gross - standard_deduction(tables, profile.filing_status))
    state = state_tax(taxable_base, profile.state_code, profile.filing_status, tables)
    payroll = payroll_tax(wages, profile.filing_status, tables)["total"] if profile.include_payroll_taxes else 0.0

    total = round_money(federal + state + payroll)
    year = tax_year if tax_year is not None else profile.tax_year
    logger.debug(
        "Tax year %s settled: gross=%.2f federal=%.2f state=%.2f payroll=%.2f",
        year, gross, federal, state, payroll,
    )
    return TaxLiability(
        tax_year=year,
        federal=federal,
        state=state,
        payroll=payroll,
        total=total,
        gross_income=round_money(gross),
        effective_rate=round(safe_divide(total, gross), 4),
        ordinary_income=round_money(ordinary),
        preferential_income=round_money(preferential),
    )

