"""
Core package: enums, data model, errors, configuration, and shared utilities.
No simulation logic lives here.
"""

from .config import ProjectionOptions
from .errors import (
    EngineError,
    HorizonError,
    InvalidDefinition,
    NegativeQuantityError,
    ScenarioValidationError,
    UnsupportedTaxJurisdiction,
)
from .schema import (
    AccountType,
    CashFlowKind,
    FilingStatus,
    Frequency,
    GrowthRule,
    LoanStatus,
    ProjectionMode,
)
from .utils import round_money, safe_divide, step_windows

__all__ = [
    "ProjectionOptions",
    "EngineError",
    "HorizonError",
    "InvalidDefinition",
    "NegativeQuantityError",
    "ScenarioValidationError",
    "UnsupportedTaxJurisdiction",
    "AccountType",
    "CashFlowKind",
    "FilingStatus",
    "Frequency",
    "GrowthRule",
    "LoanStatus",
    "ProjectionMode",
    "round_money",
    "safe_divide",
    "step_windows",
]
