"""
Household financial ratios and a 0-100 health score.

Every ratio with a zero denominator (no income, no expenses) reports 0.0
rather than NaN or infinity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from core.utils import safe_divide

GOOD, FAIR, POOR = "good", "fair", "poor"


@dataclass(frozen=True)
class RatioInput:
    monthly_gross_income: float
    monthly_expenses: float
    total_monthly_debt: float
    housing_expenses: float
    liquid_assets: float
    annual_income: float
    net_worth: float


@dataclass(frozen=True)
class RatioDetail:
    value: float
    rating: str
    benchmark: str


def _rating(value: float, good: float, fair: float, higher_is_better: bool) -> str:
    if higher_is_better:
        return GOOD if value >= good else FAIR if value >= fair else POOR
    return GOOD if value <= good else FAIR if value <= fair else POOR


def calculate_ratios(inp: RatioInput) -> Dict[str, RatioDetail]:
    income = inp.monthly_gross_income
    dti = safe_divide(inp.total_monthly_debt, income)
    savings = max(0.0, safe_divide(income - inp.monthly_expenses, income))
    liquidity = safe_divide(inp.liquid_assets, inp.monthly_expenses)
    housing = safe_divide(inp.housing_expenses, income)
    nw_to_income = safe_divide(inp.net_worth, inp.annual_income)
    return {
        "debt_to_income": RatioDetail(dti, _rating(dti, 0.36, 0.43, False), "Under 36%"),
        "savings_rate": RatioDetail(savings, _rating(savings, 0.20, 0.10, True), "Over 20%"),
        "liquidity_ratio": RatioDetail(liquidity, _rating(liquidity, 6, 3, True), "6+ months"),
        "housing_ratio": RatioDetail(housing, _rating(housing, 0.28, 0.36, False), "Under 28%"),
        "net_worth_to_income": RatioDetail(nw_to_income, _rating(nw_to_income, 2, 1, True), "2x+ income"),
    }


def health_score(ratios: Dict[str, RatioDetail]) -> float:
    """Two points per good ratio, one per fair, scaled to 0-100."""
    points = sum(2 if r.rating == GOOD else 1 if r.rating == FAIR else 0 for r in ratios.values())
    return safe_divide(points, 2 * len(ratios)) * 100.0


def overall_rating(score: float) -> str:
    return GOOD if score >= 70 else FAIR if score >= 40 else POOR
