"""
Insurance-needs sizing: life (income replacement method) and disability.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from core.utils import safe_divide

# Share of gross income a long-term disability policy should replace.
DISABILITY_REPLACEMENT_RATIO = 0.65
MIN_TERM_YEARS = 20


@dataclass(frozen=True)
class LifeInsuranceNeed:
    income_replacement: float
    debt_coverage: float
    education_fund: float
    final_expenses: float
    total_recommended: float
    existing_coverage: float
    coverage_gap: float  # positive = gap, negative = over-insured
    suggested_term_years: int

    @property
    def breakdown(self) -> List[Tuple[str, float]]:
        return [
            ("Income Replacement", self.income_replacement),
            ("Debt Coverage", self.debt_coverage),
            ("Education Fund", self.education_fund),
            ("Final Expenses", self.final_expenses),
        ]


@dataclass(frozen=True)
class DisabilityInsuranceNeed:
    gross_monthly_income: float
    recommended_monthly_benefit: float
    current_monthly_benefit: float
    coverage_gap: float
    essential_monthly_expenses: float
    coverage_ratio: float  # percent of essential expenses covered


def life_insurance_need(
    annual_income: float,
    years_to_replace: int,
    outstanding_debts: float,
    education_per_child: float,
    number_of_children: int,
    final_expenses: float,
    existing_coverage: float,
    current_age: int = 35,
    retirement_age: int = 65,
) -> LifeInsuranceNeed:
    income_replacement = annual_income * years_to_replace
    education_fund = education_per_child * number_of_children
    total = income_replacement + outstanding_debts + education_fund + final_expenses
    return LifeInsuranceNeed(
        income_replacement=income_replacement,
        debt_coverage=outstanding_debts,
        education_fund=education_fund,
        final_expenses=final_expenses,
        total_recommended=total,
        existing_coverage=existing_coverage,
        coverage_gap=total - existing_coverage,
        suggested_term_years=max(retirement_age - current_age, MIN_TERM_YEARS),
    )


def disability_insurance_need(
    annual_income: float,
    monthly_essential_expenses: float,
    employer_coverage_pct: float,
    existing_disability_coverage: float = 0.0,
) -> DisabilityInsuranceNeed:
    """
    Parameters
    ----------
    annual_income : float
        Gross annual income.
    monthly_essential_expenses : float
        Spending that must continue during a disability.
    employer_coverage_pct : float
        Employer group LTD benefit as a percent of gross income (40 = 40%).
    existing_disability_coverage : float
        Monthly benefit of individually owned policies.
    """
    gross_monthly = annual_income / 12.0
    recommended = gross_monthly * DISABILITY_REPLACEMENT_RATIO
    current = gross_monthly * employer_coverage_pct / 100.0 + existing_disability_coverage
    return DisabilityInsuranceNeed(
        gross_monthly_income=gross_monthly,
        recommended_monthly_benefit=recommended,
        current_monthly_benefit=current,
        coverage_gap=recommended - current,
        essential_monthly_expenses=monthly_essential_expenses,
        coverage_ratio=safe_divide(current, monthly_essential_expenses) * 100.0,
    )
