"""
IRMAA (Income-Related Monthly Adjustment Amount) lookup.

Medicare beneficiaries with higher MAGI pay monthly surcharges on Part B
and Part D premiums. Brackets are 2024 figures; MAGI is the figure from two
years prior.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from core.errors import UnsupportedTaxJurisdiction
from core.schema import FilingStatus

PART_B_BASE_PREMIUM = 174.70


@dataclass(frozen=True)
class IrmaaBracket:
    income_min: float
    income_max: Optional[float]  # None = no upper bound
    part_b_surcharge: float
    part_d_surcharge: float

    def contains(self, magi: float) -> bool:
        return magi >= self.income_min and (self.income_max is None or magi < self.income_max)


def _brackets(*rows) -> Tuple[IrmaaBracket, ...]:
    return tuple(IrmaaBracket(*row) for row in rows)


IRMAA_BRACKETS_2024: Dict[FilingStatus, Tuple[IrmaaBracket, ...]] = {
    FilingStatus.SINGLE: _brackets(
        (0, 103_000, 0.0, 0.0),
        (103_000, 129_000, 69.90, 12.90),
        (129_000, 161_000, 174.70, 33.30),
        (161_000, 193_000, 279.50, 53.80),
        (193_000, 500_000, 384.30, 74.20),
        (500_000, None, 419.30, 81.00),
    ),
    FilingStatus.MFJ: _brackets(
        (0, 206_000, 0.0, 0.0),
        (206_000, 258_000, 69.90, 12.90),
        (258_000, 322_000, 174.70, 33.30),
        (322_000, 386_000, 279.50, 53.80),
        (386_000, 750_000, 384.30, 74.20),
        (750_000, None, 419.30, 81.00),
    ),
}


@dataclass(frozen=True)
class IrmaaResult:
    bracket: IrmaaBracket
    part_b_surcharge: float
    part_d_surcharge: float
    total_monthly_surcharge: float
    total_annual_surcharge: float
    total_part_b_monthly: float

    @property
    def description(self) -> str:
        b = self.bracket
        if b.income_max is None:
            return f"Income over {_format_income(b.income_min)}"
        if b.income_min > 0:
            return f"Income {_format_income(b.income_min)} - {_format_income(b.income_max)}"
        return "Standard premium"


def _format_income(amount: float) -> str:
    if amount >= 1_000_000:
        return f"${amount / 1_000_000:.1f}M"
    return f"${amount / 1000:.0f}K"


def calculate_irmaa(magi: float, filing_status: FilingStatus) -> IrmaaResult:
    status = FilingStatus(filing_status)
    if status not in IRMAA_BRACKETS_2024:
        raise UnsupportedTaxJurisdiction(f"no IRMAA brackets for filing status {status.value!r}")
    bracket = next(b for b in IRMAA_BRACKETS_2024[status] if b.contains(max(magi, 0.0)))
    monthly = round(bracket.part_b_surcharge + bracket.part_d_surcharge, 2)
    return IrmaaResult(
        bracket=bracket,
        part_b_surcharge=bracket.part_b_surcharge,
        part_d_surcharge=bracket.part_d_surcharge,
        total_monthly_surcharge=monthly,
        total_annual_surcharge=round(monthly * 12, 2),
        total_part_b_monthly=round(PART_B_BASE_PREMIUM + bracket.part_b_surcharge, 2),
    )
