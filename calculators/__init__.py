"""
Household planning calculators that sit beside the projection engine.
"""

from .insurance import (
    DisabilityInsuranceNeed,
    LifeInsuranceNeed,
    disability_insurance_need,
    life_insurance_need,
)
from .irmaa import IrmaaBracket, IrmaaResult, calculate_irmaa
from .mortgage import HomePurchase, home_purchase
from .ratios import RatioDetail, RatioInput, calculate_ratios, health_score, overall_rating

__all__ = [
    "DisabilityInsuranceNeed",
    "LifeInsuranceNeed",
    "disability_insurance_need",
    "life_insurance_need",
    "IrmaaBracket",
    "IrmaaResult",
    "calculate_irmaa",
    "HomePurchase",
    "home_purchase",
    "RatioDetail",
    "RatioInput",
    "calculate_ratios",
    "health_score",
    "overall_rating",
]
