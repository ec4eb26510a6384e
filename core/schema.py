"""
Closed enumerations shared by the DTO layer and the engine.

Values match the strings produced by the external mapping layer, so a
ScenarioInputDTO built from JSON validates straight into these types.
Anything outside the listed members is rejected at construction.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


class Frequency(str, Enum):
    MONTHLY = "MONTHLY"
    BIWEEKLY = "BIWEEKLY"
    WEEKLY = "WEEKLY"
    ANNUAL = "ANNUAL"
    ONE_TIME = "ONE_TIME"


class GrowthRule(str, Enum):
    NONE = "NONE"
    TRACK_INFLATION = "TRACK_INFLATION"
    CUSTOM_PERCENT = "CUSTOM_PERCENT"


class CashFlowKind(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    CONTRIBUTION = "CONTRIBUTION"
    LOAN_PAYMENT = "LOAN_PAYMENT"


class FilingStatus(str, Enum):
    SINGLE = "SINGLE"
    MFJ = "MFJ"
    HOH = "HOH"


class AccountType(str, Enum):
    TAXABLE = "TAXABLE"
    TRADITIONAL = "TRADITIONAL"
    ROTH = "ROTH"


class LoanType(str, Enum):
    MORTGAGE = "MORTGAGE"
    AUTO = "AUTO"
    STUDENT = "STUDENT"
    PERSONAL = "PERSONAL"
    OTHER = "OTHER"


class LoanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAID_OFF = "PAID_OFF"


class GoalType(str, Enum):
    COLLEGE = "COLLEGE"
    HOME_PURCHASE = "HOME_PURCHASE"
    RETIREMENT = "RETIREMENT"
    OTHER = "OTHER"


class ProjectionMode(str, Enum):
    DETERMINISTIC = "DETERMINISTIC"
    MONTE_CARLO = "MONTE_CARLO"


class WarningCode(str, Enum):
    DEFICIT_MONTH = "DEFICIT_MONTH"
    GOAL_SHORTFALL = "GOAL_SHORTFALL"
    HIGH_TAX_DRAG = "HIGH_TAX_DRAG"
    LOAN_PAID_OFF = "LOAN_PAID_OFF"


# Occurrences per year. ONE_TIME is a single event, not a rate.
ANNUAL_OCCURRENCES: Dict[Frequency, int] = {
    Frequency.ANNUAL: 1,
    Frequency.MONTHLY: 12,
    Frequency.BIWEEKLY: 26,
    Frequency.WEEKLY: 52,
    Frequency.ONE_TIME: 0,
}

# Column order of the snapshot frame (ProjectionResult.to_frame()).
SNAPSHOT_COLUMNS: Tuple[str, ...] = (
    "date",
    "net_worth",
    "total_assets",
    "total_liabilities",
    "arrears",
)

# Column order of the monthly breakdown frame.
MONTHLY_COLUMNS: Tuple[str, ...] = (
    "date",
    "income",
    "expenses",
    "taxes",
    "loan_payments",
    "contributions",
    "unfunded_contributions",
    "shortfall",
    "investment_returns",
    "net_cashflow",
    "assets_end",
    "liabilities_end",
)
