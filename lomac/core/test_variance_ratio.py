"""
Test the Lo-MacKinlay variance ratio estimator

Checks the estimator against a direct transcription of the formulas, the
random-walk null (homoskedastic and heteroskedastic), autocorrelated
alternatives, and the error taxonomy at the boundaries.
"""

import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd
import pytest

from lomac.core.variance_ratio import VarianceRatioEstimator, estimate, results_to_frame
from lomac.utils.data_structures import WeeklySeries
from lomac.utils.exceptions import (
    DegenerateHorizonError,
    DegenerateVarianceError,
    InvalidHorizonError,
)


def weekly_from_levels(levels, start='2000-01-05'):
    """Wednesday-dated WeeklySeries (2000-01-05 is a Wednesday)"""
    dates = pd.date_range(start, periods=len(levels), freq='7D')
    return WeeklySeries(dates=[ts.date() for ts in dates], levels=list(levels), anchor_weekday=2)


def weekly_from_returns(returns, start_level=100.0):
    log_levels = np.concatenate([[0.0], np.cumsum(returns)])
    return weekly_from_levels(start_level * np.exp(log_levels))


def ar1_returns(phi, n, seed, sigma=0.02):
    rng = np.random.default_rng(seed)
    shocks = rng.normal(0.0, sigma, n)
    returns = np.empty(n)
    returns[0] = shocks[0]
    for t in range(1, n):
        returns[t] = phi * returns[t - 1] + shocks[t]
    return returns


def reference_variance_ratio(levels, q):
    """Direct transcription of the textbook formulas with plain loops"""
    p = [math.log(x) for x in levels]
    ret = [p[k] - p[k - 1] for k in range(1, len(p))]
    n = len(ret)
    mu = sum(ret) / n
    sigma_a = sum((r - mu) ** 2 for r in ret) / (n - 1)
    m = q * (n - q + 1) * (1 - q / n)
    sigma_q = sum((p[k] - p[k - q] - q * mu) ** 2 for k in range(q, len(p))) / m
    vr = sigma_q / sigma_a

    dev2 = [(r - mu) ** 2 for r in ret]
    denominator = sum(dev2) ** 2
    theta = 0.0
    for j in range(1, q):
        delta = n * sum(dev2[k] * dev2[k - j] for k in range(j, n)) / denominator
        theta += (2 * (q - j) / q) ** 2 * delta

    z = math.sqrt(n) * (vr - 1) / math.sqrt(theta)
    return vr, theta, z


@pytest.mark.parametrize("q", [2, 3, 4, 7])
def test_matches_reference_formulas(q):
    levels = [100.0, 102.0, 101.0, 105.0, 104.0, 108.0, 107.5, 110.0, 109.0, 113.0, 111.0, 115.0]
    series = weekly_from_levels(levels)

    result = estimate(series, q)
    vr, theta, z = reference_variance_ratio(levels, q)

    assert result.q == q
    assert result.n == len(levels) - 1
    assert result.variance_ratio == pytest.approx(vr, rel=1e-9)
    assert result.theta == pytest.approx(theta, rel=1e-9)
    assert result.z_statistic == pytest.approx(z, rel=1e-8)


def test_random_walk_null_variance_ratio_near_one():
    """i.i.d. returns: VR(q) close to 1, |z*| within ordinary sampling bounds"""
    rng = np.random.default_rng(12345)
    series = weekly_from_returns(rng.normal(0.001, 0.02, 20000))

    for result in VarianceRatioEstimator().estimate_many(series, [2, 4, 8, 16]):
        assert abs(result.variance_ratio - 1.0) < 0.15
        assert abs(result.z_statistic) < 4.0
        assert abs(result.z_homoskedastic) < 4.0


def test_null_converges_as_sample_grows():
    rng = np.random.default_rng(2024)
    returns = rng.normal(0.0, 0.02, 40000)
    small = estimate(weekly_from_returns(returns[:200]), 4)
    large = estimate(weekly_from_returns(returns), 4)

    # sampling standard deviation of VR(4) shrinks like 1/sqrt(n)
    assert abs(large.variance_ratio - 1.0) < 0.05
    assert abs(large.variance_ratio - 1.0) < abs(small.variance_ratio - 1.0) + 0.05


def test_theta_matches_homoskedastic_variance_for_gaussian_returns():
    """For i.i.d. normal returns theta estimates 2(2q-1)(q-1)/(3q)"""
    rng = np.random.default_rng(99)
    series = weekly_from_returns(rng.normal(0.0, 0.02, 20000))

    for q in (2, 4, 8):
        phi = 2 * (2 * q - 1) * (q - 1) / (3 * q)
        assert estimate(series, q).theta == pytest.approx(phi, rel=0.1)


def test_heteroskedastic_null_not_rejected():
    """Uncorrelated returns with volatility regimes: robust z stays moderate"""
    rng = np.random.default_rng(31)
    n = 20000
    vol = np.where((np.arange(n) // 500) % 2 == 0, 0.01, 0.04)
    series = weekly_from_returns(vol * rng.standard_normal(n))

    for q in (2, 4, 8):
        result = estimate(series, q)
        assert abs(result.z_statistic) < 4.0
        # robust variance exceeds the i.i.d. one under volatility clustering
        assert result.theta > 2 * (2 * q - 1) * (q - 1) / (3 * q)


def test_positive_autocorrelation_grows_with_horizon():
    series = weekly_from_returns(ar1_returns(0.5, 5000, seed=1))

    vr2 = estimate(series, 2)
    vr4 = estimate(series, 4)

    assert vr2.variance_ratio > 1.0
    assert vr4.variance_ratio - 1.0 > vr2.variance_ratio - 1.0
    assert vr2.z_statistic > 4.0
    assert vr2.rejects_random_walk(0.01)


def test_negative_autocorrelation_gives_ratio_below_one():
    series = weekly_from_returns(ar1_returns(-0.4, 5000, seed=2))
    result = estimate(series, 2)

    assert result.variance_ratio < 1.0
    assert result.z_statistic < -4.0


def test_repeat_calls_are_bit_identical():
    rng = np.random.default_rng(5)
    series = weekly_from_returns(rng.normal(0.0, 0.02, 1500))
    estimator = VarianceRatioEstimator()

    first = estimator.estimate(series, 8)
    second = estimator.estimate(series, 8)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_concurrent_estimates_match_sequential():
    rng = np.random.default_rng(8)
    series = weekly_from_returns(rng.normal(0.0, 0.02, 2000))
    estimator = VarianceRatioEstimator()
    horizons = [2, 4, 8, 16, 32]

    with ThreadPoolExecutor(max_workers=4) as pool:
        parallel = list(pool.map(lambda q: estimator.estimate(series, q), horizons))

    assert parallel == estimator.estimate_many(series, horizons)


@pytest.mark.parametrize("q", [10, 11, 1, 0, -3])
def test_horizon_out_of_range(q):
    series = weekly_from_levels([100, 101, 99, 102, 103, 101, 104, 106, 105, 107])
    with pytest.raises(InvalidHorizonError):
        estimate(series, q)


@pytest.mark.parametrize("q", [2.0, '2', True])
def test_horizon_must_be_integer(q):
    series = weekly_from_levels([100, 101, 99, 102, 103, 101])
    with pytest.raises(InvalidHorizonError):
        estimate(series, q)


def test_numpy_integer_horizon_accepted():
    series = weekly_from_levels([100, 101, 99, 102, 103, 101])
    assert estimate(series, np.int64(2)).q == 2


def test_two_point_series():
    series = weekly_from_levels([100.0, 101.0])
    with pytest.raises((InvalidHorizonError, DegenerateHorizonError)):
        estimate(series, 2)


def test_horizon_equal_to_return_count_is_degenerate():
    """n_raw=3, q=2: two returns, m = q(n-q+1)(1-q/n) = 0"""
    series = weekly_from_levels([100.0, 101.0, 103.0])
    with pytest.raises(DegenerateHorizonError):
        estimate(series, 2)


def test_constant_compounding_is_degenerate_variance():
    """Constant 5% growth: log returns are constant up to rounding"""
    series = weekly_from_levels([100.0, 105.0, 110.25, 115.7625])
    with pytest.raises(DegenerateVarianceError):
        estimate(series, 2)


def test_longer_compounding_series_is_degenerate_variance():
    series = weekly_from_levels([100.0 * 1.05 ** k for k in range(60)])
    for q in (2, 4, 8):
        with pytest.raises(DegenerateVarianceError):
            estimate(series, q)


def test_isolated_moves_give_zero_theta():
    """Nonzero sigma_a^2, but no two adjacent returns deviate from the mean"""
    series = weekly_from_returns([0.0, 0.0, 0.1, 0.0, 0.0, -0.1])
    with pytest.raises(DegenerateVarianceError, match='theta'):
        estimate(series, 2)


def test_constant_series_is_degenerate_variance():
    series = weekly_from_levels([250.0] * 20)
    with pytest.raises(DegenerateVarianceError):
        estimate(series, 4)


def test_result_carries_diagnostics():
    rng = np.random.default_rng(17)
    returns = rng.normal(0.002, 0.02, 800)
    result = estimate(weekly_from_returns(returns), 4)

    assert result.mean_return == pytest.approx(np.mean(returns), rel=1e-9)
    assert result.variance_one_period == pytest.approx(np.var(returns, ddof=1), rel=1e-9)
    assert result.variance_ratio == pytest.approx(result.variance_q_period / result.variance_one_period)
    assert 0.0 <= result.p_value <= 1.0
    assert 0.0 <= result.p_value_homoskedastic <= 1.0
    assert np.sign(result.z_homoskedastic) == np.sign(result.z_statistic)


def test_results_to_frame_indexed_by_horizon():
    rng = np.random.default_rng(3)
    series = weekly_from_returns(rng.normal(0.0, 0.02, 500))
    frame = results_to_frame(VarianceRatioEstimator().estimate_many(series, [2, 4, 8]))

    assert list(frame.index) == [2, 4, 8]
    assert {'n', 'variance_ratio', 'theta', 'z_statistic', 'p_value'} <= set(frame.columns)
    assert (frame['n'] == 500).all()


def test_estimate_many_propagates_failure():
    series = weekly_from_levels([100, 101, 99, 102, 103, 101])
    with pytest.raises(InvalidHorizonError):
        VarianceRatioEstimator().estimate_many(series, [2, 4, 8])


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        VarianceRatioEstimator(variance_rtol=-1.0)
