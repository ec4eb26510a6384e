"""
Projection engine: expander, growth, amortizer, tax settler, projector, Monte Carlo runner.
"""

from .cashflow import annual_occurrences, expand, expand_all, normalize_to_monthly
from .events import CashFlowEvent, EngineWarning, TaxableCategory, TaxableEvent
from .growth import apply_growth
from .loans import amortization_schedule, amortize_step, fast_forward, level_payment, standard_payment
from .projector import Projector, ProjectorState
from .result import ProjectionResult, ProjectionRun, Trial
from .runner import ENGINE_VERSION, project, run_trials
from .taxes import TaxLiability, marginal_rate, payroll_tax, settle_year, standard_deduction

__all__ = [
    "annual_occurrences",
    "expand",
    "expand_all",
    "normalize_to_monthly",
    "CashFlowEvent",
    "EngineWarning",
    "TaxableCategory",
    "TaxableEvent",
    "apply_growth",
    "amortization_schedule",
    "amortize_step",
    "fast_forward",
    "level_payment",
    "standard_payment",
    "Projector",
    "ProjectorState",
    "ProjectionResult",
    "ProjectionRun",
    "Trial",
    "ENGINE_VERSION",
    "project",
    "run_trials",
    "TaxLiability",
    "marginal_rate",
    "payroll_tax",
    "settle_year",
    "standard_deduction",
]
