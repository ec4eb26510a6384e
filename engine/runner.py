"""
Monte Carlo Runner and the engine entry point.

Trial i draws its return path from np.random.default_rng(seed_base + i),
so a (seed_base, trial_count) pair always reproduces the same bands. Trials
are independent: each worker builds its own sampler draw, price source and
Projector, and only the finished snapshots come back. The reduction sorts
trials by index first, so neither pool size nor completion order changes
the output.

A deadline (ProjectionOptions.timeout_seconds) is not an error: the runner
returns what completed, labeled with trials_completed and is_partial. Pool
workers still busy at the deadline are terminated, so no trial outlives the
call.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Tuple, Union

import numpy as np

from core.config import ProjectionOptions
from core.schema import ProjectionMode
from core.types import Scenario
from core.utils import step_windows
from distributions.benchmarks import resolve_volatility
from distributions.prices import SampledPriceSource
from distributions.sampler import LognormalReturnSampler, ReturnSampler

from .aggregate import ends_solvent, goal_met, goal_success_probabilities, percentile_bands, success_rate
from .projector import Projector
from .result import ProjectionResult, ProjectionRun, Trial

if TYPE_CHECKING:
    from data_prep.dto import ScenarioInputDTO

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"


def _sampler(options: ProjectionOptions) -> ReturnSampler:
    return options.sampler or LognormalReturnSampler()


def sample_returns(scenario: Scenario, options: ProjectionOptions, seed: int) -> np.ndarray:
    """(n_steps x n_accounts) period returns for one trial."""
    fractions = [f for _, _, f in step_windows(scenario.start_date, scenario.end_date)]
    default_vol = None if options.default_volatility_pct is None else options.default_volatility_pct / 100.0
    means = [a.expected_return for a in scenario.accounts]
    vols = [resolve_volatility(a, default_vol) for a in scenario.accounts]
    rng = np.random.default_rng(seed)
    return _sampler(options).sample(rng, means, vols, fractions)


def run_trial(scenario: Scenario, options: ProjectionOptions, index: int, seed: int) -> Trial:
    """Picklable worker for ProcessPoolExecutor: one full trial."""
    returns = sample_returns(scenario, options, seed)
    price_source = SampledPriceSource(scenario.accounts, returns)
    run = Projector(scenario, options, price_source=price_source, return_path=returns).run()
    return Trial(index=index, seed=seed, snapshots=run.snapshots, sampled_returns=returns)


def _run_in_process(
    scenario: Scenario, options: ProjectionOptions, trial_count: int, seed_base: int, deadline: Optional[float]
) -> List[Trial]:
    trials: List[Trial] = []
    for i in range(trial_count):
        if deadline is not None and time.monotonic() >= deadline:
            break
        trials.append(run_trial(scenario, options, i, seed_base + i))
    return trials


def _run_in_pool(
    scenario: Scenario,
    options: ProjectionOptions,
    trial_count: int,
    seed_base: int,
    deadline: Optional[float],
    max_workers: int,
) -> List[Trial]:
    trials: List[Trial] = []
    timed_out = False
    executor = ProcessPoolExecutor(max_workers=max_workers)
    try:
        pending = {executor.submit(run_trial, scenario, options, i, seed_base + i) for i in range(trial_count)}
        while pending:
            timeout = None if deadline is None else max(deadline - time.monotonic(), 0.0)
            done, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
            for future in done:
                trials.append(future.result())
            if pending and deadline is not None and time.monotonic() >= deadline:
                timed_out = True
                break
    finally:
        # shutdown() only cancels queued trials; running ones need their worker stopped
        workers = list((executor._processes or {}).values()) if timed_out else []
        executor.shutdown(wait=not timed_out, cancel_futures=True)
        for process in workers:
            process.terminate()
    return trials



def collect_trials(
    scenario: Scenario,
    trial_count: int,
    rng_seed_base: int,
    options: Optional[ProjectionOptions] = None,
) -> List[Trial]:
    """Run up to ``trial_count`` trials; fewer come back only when the deadline hits."""
    options = options or ProjectionOptions()
    deadline = None
    if options.timeout_seconds is not None:
        deadline = time.monotonic() + options.timeout_seconds

    workers = min(options.worker_count, trial_count)
    if workers <= 1:
        trials = _run_in_process(scenario, options, trial_count, rng_seed_base, deadline)
    else:
        logger.info("Running %d trials with %d workers", trial_count, workers)
        trials = _run_in_pool(scenario, options, trial_count, rng_seed_base, deadline, workers)

    trials.sort(key=lambda t: t.index)
    if len(trials) < trial_count:
        logger.warning(
            "Monte Carlo deadline reached: %d of %d trials completed", len(trials), trial_count
        )
    return trials


def run_trials(
    scenario: Scenario,
    trial_count: int,
    rng_seed_base: int,
    options: Optional[ProjectionOptions] = None,
    *,
    deterministic: Optional[ProjectionRun] = None,
    input_hash: str = "",
) -> ProjectionResult:
    """
    Run the Monte Carlo projection of a validated scenario.

    Parameters
    ----------
    scenario : Scenario
        Normalized input (see data_prep.loader.build_scenario).
    trial_count : int
        Trials requested.
    rng_seed_base : int
        Trial i is seeded with rng_seed_base + i.
    options : ProjectionOptions, optional
        Sampler, volatility, pool size, deadline, percentiles.
    deterministic : ProjectionRun, optional
        Already-computed expected path; projected here when omitted.

    Returns
    -------
    ProjectionResult with percentile bands, goal success probabilities and
    the share of trials ending with positive net worth.
    """
    options = options or ProjectionOptions()
    if trial_count < 1:
        raise ValueError(f"trial_count must be >= 1, got {trial_count}")
    if deterministic is None:
        deterministic = Projector(scenario, options).run()

    started = time.monotonic()
    trials = collect_trials(scenario, trial_count, rng_seed_base, options)
    completed = len(trials)

    bands = percentile_bands(trials, options.percentiles)
    goals = goal_success_probabilities(
        trials, scenario.goals, scenario.start_date, scenario.assumptions.inflation_rate
    )
    logger.info(
        "Monte Carlo for %s complete: %d/%d trials in %.2fs",
        scenario.scenario_id, completed, trial_count, time.monotonic() - started,
    )
    return ProjectionResult(
        mode=ProjectionMode.MONTE_CARLO,
        deterministic=deterministic,
        percentile_bands=bands,
        goal_success_probabilities=goals,
        success_rate=success_rate(trials),
        trials_requested=trial_count,
        trials_completed=completed,
        is_partial=completed < trial_count,
        input_hash=input_hash,
        engine_version=ENGINE_VERSION,
    )


def project(
    scenario_input: Union["ScenarioInputDTO", Mapping[str, Any]],
    mode: Optional[Union[ProjectionMode, str]] = None,
    options: Optional[ProjectionOptions] = None,
    *,
    collect_all_errors: bool = False,
) -> ProjectionResult:
    """
    Validate, normalize and project a scenario.

    Parameters
    ----------
    scenario_input : ScenarioInputDTO or mapping
        Raw mappings are validated through pydantic (camelCase keys accepted).
    mode : ProjectionMode or str, optional
        DETERMINISTIC or MONTE_CARLO; defaults to ``options.mode``.
    options : ProjectionOptions, optional
    collect_all_errors : bool
        Raise a ScenarioValidationError listing every violation instead of
        the first one.

    Raises
    ------
    EngineError
        Any validation failure, before a single step is simulated.
    """
    from data_prep.loader import build_scenario, input_hash, parse_input
    from data_prep.validators import raise_if_invalid, validate_scenario

    options = options or ProjectionOptions()
    mode = ProjectionMode(mode) if mode is not None else options.mode

    dto = parse_input(scenario_input)
    validation = validate_scenario(dto, options.tax_tables)
    for w in validation.warnings:
        logger.warning("Scenario %s: %s", dto.scenario_id, w)
    raise_if_invalid(validation, collect_all=collect_all_errors)

    scenario = build_scenario(dto)
    digest = input_hash(dto)
    logger.info("Projecting scenario %s (%s)", scenario.scenario_id, mode.value)
    deterministic = Projector(scenario, options).run()

    if mode is ProjectionMode.MONTE_CARLO:
        return run_trials(
            scenario, options.trial_count, options.seed_base, options,
            deterministic=deterministic, input_hash=digest,
        )

    inflation = scenario.assumptions.inflation_rate
    goals = {
        g.goal_id: 1.0 if goal_met(deterministic.snapshots, g, scenario.start_date, inflation) else 0.0
        for g in scenario.goals
    }
    return ProjectionResult(
        mode=ProjectionMode.DETERMINISTIC,
        deterministic=deterministic,
        percentile_bands=None,
        goal_success_probabilities=goals,
        success_rate=1.0 if ends_solvent(deterministic.snapshots) else 0.0,
        input_hash=digest,
        engine_version=ENGINE_VERSION,
    )


def summarize_bands(result: ProjectionResult) -> Tuple[float, float, float]:
    """(p10, p50, p90) of final net worth; zeros when no band is available."""
    bands = result.percentile_bands
    if bands is None or bands.empty:
        return 0.0, 0.0, 0.0
    last = bands.iloc[-1]
    return float(last.get("p10", 0.0)), float(last.get("p50", 0.0)), float(last.get("p90", 0.0))
