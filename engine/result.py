"""
Output artifacts.

ProjectionRun   one pass of the Deterministic Projector (snapshots, monthly
                breakdown rows, settled tax years, warnings)
Trial           one Monte Carlo run: its seed, sampled returns and snapshots
ProjectionResult  the final, immutable artifact handed to callers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from core.schema import MONTHLY_COLUMNS, SNAPSHOT_COLUMNS, ProjectionMode
from core.types import ProjectionSnapshot
from core.utils import round_money

from .events import EngineWarning
from .taxes import TaxLiability


def snapshots_to_frame(snapshots: Tuple[ProjectionSnapshot, ...]) -> pd.DataFrame:
    rows = []
    for s in snapshots:
        row = {
            "date": s.date,
            "net_worth": s.net_worth,
            "total_assets": s.total_assets,
            "total_liabilities": s.total_liabilities,
            "arrears": s.arrears,
        }
        row.update({f"account:{k}": v for k, v in s.per_account_balances.items()})
        row.update({f"loan:{k}": v for k, v in s.per_loan_balances.items()})
        rows.append(row)
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=list(SNAPSHOT_COLUMNS))
    return df


@dataclass(frozen=True)
class ProjectionRun:
    snapshots: Tuple[ProjectionSnapshot, ...]
    monthly: Tuple[dict, ...] = ()
    taxes: Tuple[TaxLiability, ...] = ()
    warnings: Tuple[EngineWarning, ...] = ()

    @property
    def dates(self) -> List[date]:
        return [s.date for s in self.snapshots]

    @property
    def net_worth(self) -> np.ndarray:
        return np.array([s.net_worth for s in self.snapshots], dtype=float)

    def monthly_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.monthly), columns=list(MONTHLY_COLUMNS))

    def annual_frame(self) -> pd.DataFrame:
        """Calendar-year roll-up of the monthly breakdown."""
        monthly = self.monthly_frame()
        cols = ["year", "income", "expenses", "taxes", "net_savings", "end_net_worth"]
        if monthly.empty:
            return pd.DataFrame(columns=cols)
        # rows are dated at the window end; the day before is inside the step
        monthly["year"] = (pd.to_datetime(monthly["date"]) - pd.Timedelta(days=1)).dt.year
        monthly["net_worth"] = monthly["assets_end"] - monthly["liabilities_end"]
        grouped = monthly.groupby("year", as_index=False).agg(
            income=("income", "sum"),
            expenses=("expenses", "sum"),
            taxes=("taxes", "sum"),
            net_savings=("net_cashflow", "sum"),
            end_net_worth=("net_worth", "last"),
        )
        for c in cols[1:]:
            grouped[c] = grouped[c].map(round_money)
        return grouped[cols].sort_values("year").reset_index(drop=True)

    def tax_frame(self) -> pd.DataFrame:
        cols = ["tax_year", "federal", "state", "payroll", "total", "gross_income", "effective_rate"]
        return pd.DataFrame([t.to_dict() for t in self.taxes], columns=cols)


@dataclass(frozen=True)
class Trial:
    index: int
    seed: int
    snapshots: Tuple[ProjectionSnapshot, ...]
    sampled_returns: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def net_worth(self) -> np.ndarray:
        return np.array([s.net_worth for s in self.snapshots], dtype=float)


@dataclass(frozen=True)
class ProjectionResult:
    mode: ProjectionMode
    deterministic: ProjectionRun
    percentile_bands: Optional[pd.DataFrame]
    goal_success_probabilities: Dict[str, float]
    success_rate: Optional[float] = None
    trials_requested: int = 0
    trials_completed: int = 0
    is_partial: bool = False
    input_hash: str = ""
    engine_version: str = ""

    @property
    def deterministic_series(self) -> Tuple[ProjectionSnapshot, ...]:
        return self.deterministic.snapshots

    @property
    def warnings(self) -> Tuple[EngineWarning, ...]:
        return self.deterministic.warnings

    @property
    def monthly(self) -> pd.DataFrame:
        return self.deterministic.monthly_frame()

    @property
    def annual(self) -> pd.DataFrame:
        return self.deterministic.annual_frame()

    @property
    def tax_annual(self) -> pd.DataFrame:
        return self.deterministic.tax_frame()

    def to_frame(self) -> pd.DataFrame:
        return snapshots_to_frame(self.deterministic.snapshots)

    def to_dict(self) -> dict:
        """JSON-serializable view for API and report layers."""
        bands = None
        if self.percentile_bands is not None:
            frame = self.percentile_bands.copy()
            frame["date"] = frame["date"].map(lambda d: d.isoformat())
            bands = frame.to_dict(orient="records")
        return {
            "mode": self.mode.value,
            "deterministic_series": [
                {
                    "date": s.date.isoformat(),
                    "net_worth": s.net_worth,
                    "total_assets": s.total_assets,
                    "total_liabilities": s.total_liabilities,
                    "per_account_balances": dict(s.per_account_balances),
                    "per_loan_balances": dict(s.per_loan_balances),
                    "arrears": s.arrears,
                }
                for s in self.deterministic.snapshots
            ],
            "percentile_bands": bands,
            "goal_success_probabilities": dict(self.goal_success_probabilities),
            "success_rate": self.success_rate,
            "trials_requested": self.trials_requested,
            "trials_completed": self.trials_completed,
            "is_partial": self.is_partial,
            "taxes": [t.to_dict() for t in self.deterministic.taxes],
            "warnings": [w.to_dict() for w in self.deterministic.warnings],
            "input_hash": self.input_hash,
            "engine_version": self.engine_version,
        }
