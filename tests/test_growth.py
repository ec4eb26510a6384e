"""Tests for account growth, return samplers, volatility resolution and price sources."""

from dataclasses import replace

import numpy as np
import pytest

from core.schema import AccountType
from core.types import AccountState, Holding
from distributions.benchmarks import get_benchmark_volatility, resolve_volatility
from distributions.prices import ExpectedReturnPriceSource, SampledPriceSource, StaticPriceSource
from distributions.sampler import (
    MIN_PERIOD_RETURN,
    ConstantReturnSampler,
    LognormalReturnSampler,
    NormalReturnSampler,
    get_sampler,
)
from engine.growth import apply_growth, credit_cash


@pytest.fixture
def account():
    return AccountState(
        account_id="brokerage",
        cash_balance=1200.0,
        holdings=(Holding(ticker="VTI", shares=10, avg_price=200.0),),
        expected_return=0.06,
    )


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


# ---------------------------------------------------------------------------
# Growth Model
# ---------------------------------------------------------------------------

class TestApplyGrowth:
    def test_cash_compounds_pro_rata(self, account):
        grown = apply_growth(account, 1 / 12)
        assert grown.cash_balance == pytest.approx(1200.0 * 1.06 ** (1 / 12))
        assert account.cash_balance == 1200.0

    def test_sampled_return_replaces_expected(self, account):
        assert apply_growth(account, 1 / 12, period_return=-0.10).cash_balance == pytest.approx(1080.0)

    def test_holdings_revalued_from_prices(self, account):
        grown = apply_growth(account, 1 / 12, prices={"VTI": 250.0})
        assert grown.holdings[0].shares == 10
        assert grown.holdings_value == pytest.approx(2500.0)

    def test_missing_ticker_keeps_price(self, account):
        assert apply_growth(account, 1 / 12, prices={"BND": 70.0}).holdings_value == pytest.approx(2000.0)

    def test_cash_floors_at_zero(self, account):
        assert credit_cash(account, -5000.0).cash_balance == 0.0


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------

FRACTIONS = [1 / 12] * 24


class TestSamplers:
    def test_shape(self, rng):
        returns = LognormalReturnSampler().sample(rng, [0.06, 0.07], [0.15, 0.18], FRACTIONS)
        assert returns.shape == (24, 2)

    def test_lognormal_mean_matches_expected_growth(self, rng):
        returns = LognormalReturnSampler().sample(rng, [0.07], [0.16], [1 / 12] * 200_000)
        assert np.mean(1.0 + returns) == pytest.approx(1.07 ** (1 / 12), rel=1e-3)

    def test_zero_volatility_is_deterministic(self, rng):
        returns = LognormalReturnSampler().sample(rng, [0.06], [0.0], FRACTIONS)
        assert np.allclose(returns, 1.06 ** (1 / 12) - 1.0)

    def test_lognormal_never_below_minus_one(self, rng):
        returns = LognormalReturnSampler().sample(rng, [0.0], [0.9], FRACTIONS)
        assert (returns > -1.0).all()

    def test_normal_is_clipped(self, rng):
        returns = NormalReturnSampler().sample(rng, [0.0], [5.0], FRACTIONS)
        assert returns.min() >= MIN_PERIOD_RETURN

    def test_constant_sampler(self, rng):
        returns = ConstantReturnSampler().sample(rng, [0.12], [0.3], [1.0])
        assert returns[0, 0] == pytest.approx(0.12)

    def test_same_seed_same_draws(self):
        a = LognormalReturnSampler().sample(np.random.default_rng(3), [0.06], [0.15], FRACTIONS)
        b = LognormalReturnSampler().sample(np.random.default_rng(3), [0.06], [0.15], FRACTIONS)
        np.testing.assert_array_equal(a, b)

    def test_get_sampler(self):
        assert isinstance(get_sampler("Normal"), NormalReturnSampler)
        with pytest.raises(KeyError):
            get_sampler("student-t")


# ---------------------------------------------------------------------------
# Volatility resolution
# ---------------------------------------------------------------------------

class TestVolatility:
    def test_account_volatility_wins(self, account):
        assert resolve_volatility(replace(account, volatility=0.0), 0.2) == 0.0

    def test_explicit_default_next(self, account):
        assert resolve_volatility(account, 0.2) == 0.2

    def test_benchmark_by_account_type(self, account):
        assert resolve_volatility(account) == get_benchmark_volatility(AccountType.TAXABLE)
        assert get_benchmark_volatility("TRADITIONAL") < get_benchmark_volatility("ROTH")


# ---------------------------------------------------------------------------
# Price sources
# ---------------------------------------------------------------------------

class TestPriceSources:
    def test_static_upper_cases_tickers(self):
        assert StaticPriceSource({"vti": 10}).prices_for("any", 3) == {"VTI": 10.0}

    def test_sampled_compounds_per_account(self, account):
        source = SampledPriceSource([account], np.array([[0.10], [0.10]]))
        assert source.n_steps == 2
        assert source.prices_for("brokerage", 1)["VTI"] == pytest.approx(242.0)
        assert source.prices_for("unknown", 0) == {}

    def test_sampled_shape_checked(self, account):
        with pytest.raises(ValueError):
            SampledPriceSource([account], np.zeros((3, 2)))

    def test_expected_return_drift(self, account):
        source = ExpectedReturnPriceSource([account], [1 / 12] * 12)
        assert source.prices_for("brokerage", 11)["VTI"] == pytest.approx(212.0)
