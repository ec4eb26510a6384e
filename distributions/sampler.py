"""
Return samplers: per-period market returns for Monte Carlo trials.

Input:  annual expected return and volatility per account, plus the period
        fraction of every simulation step
Output: (n_steps x n_accounts) matrix of period returns, one row per step

Each trial gets its own matrix drawn from its own seeded generator, so
trials never share random state. The projector consumes row k as the
growth of every account during step k.

Method (lognormal, the default):
  Gross return G = 1 + R is lognormal. For an annual arithmetic mean m and
  volatility s, solve for the log-space parameters the same way the
  moment-matching is done for any lognormal marginal:
      sigma_ln = sqrt(log(1 + s^2 / (1+m)^2))
      mu_ln    = log(1+m) - 0.5 * sigma_ln^2
  A step of fraction f draws log G ~ N(mu_ln * f, sigma_ln^2 * f), which
  keeps E[G] = (1+m)^f, the deterministic growth factor.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

# A period return can never wipe out more than the whole balance.
MIN_PERIOD_RETURN = -0.99


class ReturnSampler:
    """
    Strategy interface. Subclasses implement ``sample``.

    Usage:
        sampler = LognormalReturnSampler()
        rng = np.random.default_rng(42)
        returns = sampler.sample(rng, means, vols, fractions)
        # returns[k, j] -> return of account j during step k
    """

    name = "base"

    def sample(
        self,
        rng: np.random.Generator,
        means: Sequence[float],
        volatilities: Sequence[float],
        fractions: Sequence[float],
    ) -> np.ndarray:
        raise NotImplementedError

    @staticmethod
    def _shape(means, volatilities, fractions):
        m = np.asarray(means, dtype=float)
        s = np.asarray(volatilities, dtype=float)
        f = np.asarray(fractions, dtype=float)[:, None]
        if m.shape != s.shape:
            raise ValueError(f"means and volatilities differ in shape: {m.shape} vs {s.shape}")
        return m, s, f

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LognormalReturnSampler(ReturnSampler):
    name = "lognormal"

    def sample(self, rng, means, volatilities, fractions) -> np.ndarray:
        m, s, f = self._shape(means, volatilities, fractions)
        gross_mean = np.maximum(1.0 + m, 1e-9)
        sigma_ln = np.sqrt(np.log1p(s ** 2 / gross_mean ** 2))
        mu_ln = np.log(gross_mean) - 0.5 * sigma_ln ** 2
        z = rng.standard_normal(size=(f.shape[0], m.shape[0]))
        log_gross = mu_ln * f + sigma_ln * np.sqrt(f) * z
        return np.expm1(log_gross)


class NormalReturnSampler(ReturnSampler):
    """Symmetric returns around the compounded mean, clipped at MIN_PERIOD_RETURN."""

    name = "normal"

    def sample(self, rng, means, volatilities, fractions) -> np.ndarray:
        m, s, f = self._shape(means, volatilities, fractions)
        z = rng.standard_normal(size=(f.shape[0], m.shape[0]))
        period_mean = (1.0 + m) ** f - 1.0
        returns = period_mean + s * np.sqrt(f) * z
        return np.clip(returns, MIN_PERIOD_RETURN, None)


class ConstantReturnSampler(ReturnSampler):
    """No randomness: every trial gets the expected-return path."""

    name = "constant"

    def sample(self, rng, means, volatilities, fractions) -> np.ndarray:
        m, _, f = self._shape(means, volatilities, fractions)
        return (1.0 + m) ** f - 1.0


SAMPLERS = {
    cls.name: cls for cls in (LognormalReturnSampler, NormalReturnSampler, ConstantReturnSampler)
}


def get_sampler(name: str) -> ReturnSampler:
    if name.lower() not in SAMPLERS:
        raise KeyError(f"Unknown sampler '{name}'. Available: {list(SAMPLERS.keys())}")
    return SAMPLERS[name.lower()]()
