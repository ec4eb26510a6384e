"""
Event records that flow between engine components.

CashFlowEvent is what the expander and the amortizer emit; it is derived
and never persisted, regenerated from definitions on every run (and on every
Monte Carlo trial). TaxableEvent is what the Tax Settler aggregates: wage
and other income plus the interest, dividend and realized-gain yields the
projector accrues on taxable accounts. EngineWarning is the advisory
channel attached to a ProjectionResult.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from core.schema import CashFlowKind, WarningCode


@dataclass(frozen=True)
class CashFlowEvent:
    date: date
    amount: float  # always >= 0; the kind decides the sign
    source_id: str
    kind: CashFlowKind
    account_id: Optional[str] = None

    @property
    def signed_amount(self) -> float:
        """Effect on household cash: income in, everything else out."""
        if self.kind is CashFlowKind.INCOME:
            return self.amount
        return -self.amount


class TaxableCategory(str, Enum):
    WAGES = "WAGES"
    OTHER_INCOME = "OTHER_INCOME"
    INTEREST = "INTEREST"
    DIVIDEND = "DIVIDEND"
    ST_GAIN = "ST_GAIN"
    LT_GAIN = "LT_GAIN"


ORDINARY_CATEGORIES = frozenset(
    {TaxableCategory.WAGES, TaxableCategory.OTHER_INCOME, TaxableCategory.INTEREST, TaxableCategory.ST_GAIN}
)
PREFERENTIAL_CATEGORIES = frozenset({TaxableCategory.DIVIDEND, TaxableCategory.LT_GAIN})


@dataclass(frozen=True)
class TaxableEvent:
    date: date
    amount: float
    category: TaxableCategory
    source_id: str = ""


@dataclass(frozen=True)
class EngineWarning:
    code: WarningCode
    severity: str  # "info" | "warn" | "error"
    message: str
    at: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "severity": self.severity,
            "message": self.message,
            "at": self.at.isoformat() if self.at else None,
        }
