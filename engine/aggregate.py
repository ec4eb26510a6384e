"""
Aggregate Monte Carlo trials into percentile bands and goal success rates.

Instead of: "net worth in 2045 = $1.2M" (one path, no context)
The caller gets: "p10 = $0.7M, p50 = $1.1M, p90 = $1.8M" per date, plus
the share of trials in which each goal is funded on its target date.

The reduction is order-independent: trials are sorted by index before any
statistic is taken, so the completion order of a worker pool never changes
the result.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from core.types import Goal, ProjectionSnapshot
from core.utils import round_money, safe_divide, years_between

from .result import Trial


def band_label(p: float) -> str:
    return f"p{int(round(p * 100)):02d}"


def net_worth_matrix(trials: Iterable[Trial]) -> Tuple[List[date], np.ndarray]:
    """(dates, n_trials x n_dates matrix) with rows in trial-index order."""
    ordered = sorted(trials, key=lambda t: t.index)
    if not ordered:
        return [], np.empty((0, 0))
    dates = [s.date for s in ordered[0].snapshots]
    matrix = np.vstack([t.net_worth for t in ordered])
    return dates, matrix


def percentile_bands(
    trials: Iterable[Trial],
    percentiles: Sequence[float] = (0.10, 0.25, 0.50, 0.75, 0.90),
) -> pd.DataFrame:
    """
    Per-date net worth percentiles across trials.

    Returns
    -------
    pd.DataFrame with a ``date`` column, one ``pNN`` column per percentile,
    and ``mean``. Empty (columns only) when no trial completed.
    """
    levels = sorted(percentiles)
    labels = [band_label(p) for p in levels]
    dates, matrix = net_worth_matrix(trials)
    if matrix.size == 0:
        return pd.DataFrame(columns=["date", *labels, "mean"])

    values = np.percentile(matrix, [p * 100 for p in levels], axis=0)
    df = pd.DataFrame({"date": dates})
    for label, row in zip(labels, values):
        df[label] = [round_money(v) for v in row]
    df["mean"] = [round_money(v) for v in matrix.mean(axis=0)]
    return df


def goal_target_nominal(goal: Goal, start_date: date, inflation_rate: float) -> float:
    """Real target inflated from the horizon start to the goal's target date."""
    years = max(years_between(start_date, goal.target_date), 0.0)
    return goal.target_amount_real * (1.0 + inflation_rate) ** years


def snapshot_at(snapshots: Sequence[ProjectionSnapshot], on: date) -> Optional[ProjectionSnapshot]:
    """First snapshot dated on or after ``on``; the final one if the date is past the horizon."""
    if not snapshots:
        return None
    for s in snapshots:
        if s.date >= on:
            return s
    return snapshots[-1]


def funded_balance(snapshot: ProjectionSnapshot, goal: Goal) -> float:
    if not goal.funding_account_ids:
        return snapshot.net_worth
    return sum(snapshot.per_account_balances.get(a, 0.0) for a in goal.funding_account_ids)


def goal_met(
    snapshots: Sequence[ProjectionSnapshot],
    goal: Goal,
    start_date: date,
    inflation_rate: float,
) -> bool:
    snap = snapshot_at(snapshots, goal.target_date)
    if snap is None:
        return False
    return funded_balance(snap, goal) >= goal_target_nominal(goal, start_date, inflation_rate)


def goal_success_probabilities(
    trials: Iterable[Trial],
    goals: Sequence[Goal],
    start_date: date,
    inflation_rate: float,
) -> Dict[str, float]:
    """Fraction of trials meeting each goal; 0.0 for every goal when no trial completed."""
    ordered = sorted(trials, key=lambda t: t.index)
    n = len(ordered)
    out: Dict[str, float] = {}
    for goal in goals:
        hits = sum(1 for t in ordered if goal_met(t.snapshots, goal, start_date, inflation_rate))
        out[goal.goal_id] = round(safe_divide(hits, n), 4)
    return out


def ends_solvent(snapshots: Sequence[ProjectionSnapshot]) -> bool:
    return bool(snapshots) and snapshots[-1].net_worth > 0


def success_rate(trials: Iterable[Trial]) -> float:
    """Fraction of trials that end the horizon with positive net worth; 0.0 when none completed."""
    ordered = sorted(trials, key=lambda t: t.index)
    hits = sum(1 for t in ordered if ends_solvent(t.snapshots))
    return round(safe_divide(hits, len(ordered)), 4)
