"""
Projection configuration.
Process-wide defaults live in core/settings.py (EngineSettings); a caller
builds one ProjectionOptions per project() call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Tuple

from .schema import ProjectionMode
from .tax_tables import DEFAULT_TAX_TABLE, TaxRuleTable

if TYPE_CHECKING:
    from distributions.sampler import ReturnSampler

    from .settings import EngineSettings


@dataclass(frozen=True)
class ProjectionOptions:
    mode: ProjectionMode = ProjectionMode.DETERMINISTIC

    # Monte Carlo
    trial_count: int = 500
    seed_base: int = 42
    default_volatility_pct: Optional[float] = None  # None -> per-account-type benchmark
    sampler: Optional["ReturnSampler"] = None  # None -> LognormalReturnSampler
    percentiles: Tuple[float, ...] = (0.10, 0.25, 0.50, 0.75, 0.90)

    # worker pool; None -> os.cpu_count(), 1 -> run trials in-process
    max_workers: Optional[int] = 1
    timeout_seconds: Optional[float] = None

    # taxes
    tax_tables: TaxRuleTable = field(default=DEFAULT_TAX_TABLE, repr=False)
    tax_year_start_month: int = 1  # 1 = calendar year
    settle_partial_tax_year: bool = True

    # warnings
    high_tax_drag_threshold: float = 0.35

    def __post_init__(self):
        object.__setattr__(self, "mode", ProjectionMode(self.mode))
        if self.trial_count < 1:
            raise ValueError(f"trial_count must be >= 1, got {self.trial_count}")
        if not 1 <= self.tax_year_start_month <= 12:
            raise ValueError(f"tax_year_start_month must be 1..12, got {self.tax_year_start_month}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if any(not 0.0 <= p <= 1.0 for p in self.percentiles):
            raise ValueError(f"percentiles must lie in [0, 1], got {self.percentiles}")

    @property
    def worker_count(self) -> int:
        """Pool size bounded by the available cores."""
        cores = os.cpu_count() or 1
        if self.max_workers is None:
            return cores
        return max(1, min(self.max_workers, cores))

    @classmethod
    def from_settings(cls, settings: "EngineSettings", **overrides) -> "ProjectionOptions":
        values = dict(
            trial_count=settings.mc_trial_count,
            seed_base=settings.mc_seed_base,
            default_volatility_pct=settings.mc_default_volatility_pct,
            max_workers=settings.mc_max_workers,
            timeout_seconds=settings.mc_timeout_seconds,
            tax_year_start_month=settings.tax_year_start_month,
            high_tax_drag_threshold=settings.high_tax_drag_threshold,
        )
        values.update(overrides)
        return cls(**values)
