"""
Pluggable tax rule tables.

The Tax Settler never hardcodes law: it reads a TaxRuleTable. DEFAULT_TAX_TABLE
carries 2024 federal brackets, standard deductions, long-term capital gains
brackets, FICA parameters, and a flat/effective rate per state (progressive
states are approximated by an effective rate). Callers can pass their own
table through ProjectionOptions.tax_tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .schema import FilingStatus

INF = float("inf")


@dataclass(frozen=True)
class TaxBracket:
    lower: float
    upper: float
    rate: float


Brackets = Tuple[TaxBracket, ...]


def _brackets(*rows: Tuple[float, float, float]) -> Brackets:
    return tuple(TaxBracket(lower=lo, upper=hi, rate=r) for lo, hi, r in rows)


@dataclass(frozen=True)
class StateTaxRule:
    """A state's income tax: either a flat rate or its own bracket schedule."""

    flat_rate: float = 0.0
    brackets: Optional[Mapping[FilingStatus, Brackets]] = None


@dataclass(frozen=True)
class PayrollTaxRule:
    social_security_rate: float = 0.062
    social_security_wage_cap: float = 168_600.0
    medicare_rate: float = 0.0145
    additional_medicare_rate: float = 0.009
    additional_medicare_threshold: Mapping[FilingStatus, float] = field(
        default_factory=lambda: {
            FilingStatus.SINGLE: 200_000.0,
            FilingStatus.MFJ: 250_000.0,
            FilingStatus.HOH: 200_000.0,
        }
    )


@dataclass(frozen=True)
class TaxRuleTable:
    year: int
    federal_brackets: Mapping[FilingStatus, Brackets]
    standard_deductions: Mapping[FilingStatus, float]
    state_rules: Mapping[str, StateTaxRule]
    payroll: PayrollTaxRule = field(default_factory=PayrollTaxRule)
    ltcg_brackets: Optional[Mapping[FilingStatus, Brackets]] = None


FEDERAL_BRACKETS_2024: Dict[FilingStatus, Brackets] = {
    FilingStatus.SINGLE: _brackets(
        (0, 11_600, 0.10),
        (11_600, 47_150, 0.12),
        (47_150, 100_525, 0.22),
        (100_525, 191_950, 0.24),
        (191_950, 243_725, 0.32),
        (243_725, 609_350, 0.35),
        (609_350, INF, 0.37),
    ),
    FilingStatus.MFJ: _brackets(
        (0, 23_200, 0.10),
        (23_200, 94_300, 0.12),
        (94_300, 201_050, 0.22),
        (201_050, 383_900, 0.24),
        (383_900, 487_450, 0.32),
        (487_450, 731_200, 0.35),
        (731_200, INF, 0.37),
    ),
    FilingStatus.HOH: _brackets(
        (0, 16_550, 0.10),
        (16_550, 63_100, 0.12),
        (63_100, 100_500, 0.22),
        (100_500, 191_950, 0.24),
        (191_950, 243_700, 0.32),
        (243_700, 609_350, 0.35),
        (609_350, INF, 0.37),
    ),
}

LTCG_BRACKETS_2024: Dict[FilingStatus, Brackets] = {
    FilingStatus.SINGLE: _brackets((0, 47_025, 0.0), (47_025, 518_900, 0.15), (518_900, INF, 0.20)),
    FilingStatus.MFJ: _brackets((0, 94_050, 0.0), (94_050, 583_750, 0.15), (583_750, INF, 0.20)),
    FilingStatus.HOH: _brackets((0, 63_000, 0.0), (63_000, 551_350, 0.15), (551_350, INF, 0.20)),
}

STANDARD_DEDUCTIONS_2024: Dict[FilingStatus, float] = {
    FilingStatus.SINGLE: 14_600.0,
    FilingStatus.MFJ: 29_200.0,
    FilingStatus.HOH: 21_900.0,
}

# No-income-tax states, flat-tax states, then effective-rate approximations
# for progressive states.
STATE_RATES_2024: Dict[str, float] = {
    "AK": 0.0, "FL": 0.0, "NV": 0.0, "SD": 0.0, "TN": 0.0,
    "TX": 0.0, "WA": 0.0, "WY": 0.0, "NH": 0.0,
    "AZ": 0.025, "CO": 0.044, "ID": 0.058, "IL": 0.0495, "IN": 0.0305,
    "KY": 0.04, "MA": 0.05, "MI": 0.0405, "NC": 0.0525, "ND": 0.0195,
    "PA": 0.0307, "UT": 0.0465,
    "AL": 0.05, "AR": 0.047, "CA": 0.093, "CT": 0.0699, "DE": 0.066,
    "GA": 0.055, "HI": 0.0825, "IA": 0.06, "KS": 0.057, "LA": 0.0425,
    "ME": 0.0715, "MD": 0.0575, "MN": 0.0985, "MO": 0.048, "MS": 0.05,
    "MT": 0.059, "NE": 0.0664, "NJ": 0.0637, "NM": 0.059, "NY": 0.0685,
    "OH": 0.0399, "OK": 0.0475, "OR": 0.099, "RI": 0.0599, "SC": 0.064,
    "VT": 0.0875, "VA": 0.0575, "WV": 0.055, "WI": 0.0765, "DC": 0.105,
}

DEFAULT_TAX_TABLE = TaxRuleTable(
    year=2024,
    federal_brackets=FEDERAL_BRACKETS_2024,
    standard_deductions=STANDARD_DEDUCTIONS_2024,
    state_rules={code: StateTaxRule(flat_rate=rate) for code, rate in STATE_RATES_2024.items()},
    ltcg_brackets=LTCG_BRACKETS_2024,
)
