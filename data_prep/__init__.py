"""
Data preparation: input DTOs, DTO -> Scenario loading, upfront validation.
"""

from .dto import ScenarioInputDTO
from .loader import (
    IMPLICIT_CASH_ACCOUNT_ID,
    build_scenario,
    input_hash,
    parse_input,
)
from .validators import ValidationResult, raise_if_invalid, validate_scenario

__all__ = [
    "ScenarioInputDTO",
    "IMPLICIT_CASH_ACCOUNT_ID",
    "build_scenario",
    "input_hash",
    "parse_input",
    "ValidationResult",
    "raise_if_invalid",
    "validate_scenario",
]
