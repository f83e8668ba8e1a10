"""
Lo-MacKinlay Variance Ratio Test

This module implements the Lo and MacKinlay (1988) variance-ratio test of the
random-walk hypothesis on a weekly log-price series, using the overlapping
q-period variance estimator and the heteroskedasticity-robust asymptotic
variance theta.
"""

import logging
import math
from typing import Iterable, List

import numpy as np
import pandas as pd
from scipy import stats

from ..utils.data_structures import VarianceRatioResult, WeeklySeries
from ..utils.exceptions import (
    DegenerateHorizonError,
    DegenerateVarianceError,
    InvalidHorizonError,
)


class VarianceRatioEstimator:
    """
    Estimator for the Lo-MacKinlay variance ratio VR(q).

    Provides methods for:
    - VR(q) with the overlapping-sample q-period variance
    - Heteroskedasticity-robust z*(q) and the homoskedastic z(q)
    - Running several horizons against the same series
    """

    def __init__(self, variance_rtol: float = 1e-10):
        """
        Initialize variance ratio estimator.

        Args:
            variance_rtol: One-period returns count as constant when their
                           standard deviation is below variance_rtol times the
                           largest absolute return
        """
        if variance_rtol < 0:
            raise ValueError(f"variance_rtol must be non-negative, got {variance_rtol}")
        self.variance_rtol = variance_rtol
        self.logger = logging.getLogger(__name__)

    def estimate(self, series: WeeklySeries, q: int) -> VarianceRatioResult:
        """
        Compute VR(q) and its robust z-statistic.

        Args:
            series: Weekly level series with at least q + 1 entries
            q: Aggregation horizon in weeks (2 <= q < len(series))

        Returns:
            VarianceRatioResult for (series, q)

        Raises:
            InvalidHorizonError: If q is not an integer in [2, len(series))
            DegenerateHorizonError: If the q-period normalizer is non-positive
            DegenerateVarianceError: If one-period returns have zero variance
        """
        n_raw = len(series)
        if isinstance(q, bool) or not isinstance(q, (int, np.integer)):
            raise InvalidHorizonError(f"q must be an integer, got {q!r}")
        q = int(q)
        if q < 2 or q >= n_raw:
            raise InvalidHorizonError(f"q must satisfy 2 <= q < {n_raw} (series length), got {q}")

        # Log prices p_1..p_{n_raw}
        log_prices = series.log_levels()

        # One-period returns, defined from the second entry on
        returns = log_prices[1:] - log_prices[:-1]
        n = returns.size
        if n <= 1:
            raise DegenerateHorizonError(f"Need at least two returns, got {n}")

        # Overlapping q-period returns, defined for k = q+1..n_raw
        returns_q = log_prices[q:] - log_prices[:-q]

        mu = float(np.sum(returns)) / n

        deviations = returns - mu
        squared_dev = deviations * deviations
        sum_squared_dev = float(np.sum(squared_dev))
        variance_one = sum_squared_dev / (n - 1)

        m = q * (n - q + 1) * (1.0 - q / n)
        if m <= 0:
            raise DegenerateHorizonError(f"Normalizer m={m} is non-positive for q={q}, n={n}")

        deviations_q = returns_q - q * mu
        variance_q = float(np.sum(deviations_q * deviations_q)) / m

        scale = float(np.max(np.abs(returns)))
        if variance_one == 0.0 or math.sqrt(variance_one) <= self.variance_rtol * scale:
            raise DegenerateVarianceError(
                f"One-period returns have zero variance (sigma_a^2={variance_one:.3e})"
            )

        vr = variance_q / variance_one

        theta = self._robust_theta(squared_dev, sum_squared_dev, q)
        if not theta > 0:
            raise DegenerateVarianceError(f"Robust variance theta={theta} is non-positive for q={q}")

        z_robust = math.sqrt(n) * (vr - 1.0) / math.sqrt(theta)

        phi = 2.0 * (2 * q - 1) * (q - 1) / (3.0 * q)
        z_homo = math.sqrt(n) * (vr - 1.0) / math.sqrt(phi)

        for label, value in (('variance_ratio', vr), ('theta', theta), ('z_statistic', z_robust)):
            if not math.isfinite(value):
                raise DegenerateVarianceError(f"{label} is not finite for q={q}: {value}")

        result = VarianceRatioResult(
            q=q,
            n=n,
            variance_ratio=vr,
            theta=theta,
            z_statistic=z_robust,
            mean_return=mu,
            variance_one_period=variance_one,
            variance_q_period=variance_q,
            p_value=float(2.0 * stats.norm.sf(abs(z_robust))),
            z_homoskedastic=z_homo,
            p_value_homoskedastic=float(2.0 * stats.norm.sf(abs(z_homo))),
        )

        self.logger.debug(f"VR({q}) = {vr:.4f}, z* = {z_robust:.3f} on {n} returns")
        return result

    @staticmethod
    def _robust_theta(squared_dev: np.ndarray, sum_squared_dev: float, q: int) -> float:
        """
        theta(q) = sum_{j=1}^{q-1} (2(q-j)/q)^2 * delta(j)

        delta(j) = n * sum_{k=j+1}^{n} d_k^2 d_{k-j}^2 / (sum_k d_k^2)^2
        """
        n = squared_dev.size
        denominator = sum_squared_dev * sum_squared_dev

        theta = 0.0
        for j in range(1, q):
            # Only k > j has a lag-j partner
            numerator = float(np.sum(squared_dev[j:] * squared_dev[:-j]))
            delta = n * numerator / denominator
            weight = 2.0 * (q - j) / q
            theta += weight * weight * delta
        return theta

    def estimate_many(self, series: WeeklySeries, horizons: Iterable[int]) -> List[VarianceRatioResult]:
        """Estimate every horizon in order; the first failure propagates"""
        results = [self.estimate(series, q) for q in horizons]
        self.logger.info(
            f"Variance ratios for q={[r.q for r in results]} on {len(series)} weekly observations"
        )
        return results


def results_to_frame(results: List[VarianceRatioResult]) -> pd.DataFrame:
    """Tabulate results, one row per horizon"""
    frame = pd.DataFrame([r.to_dict() for r in results])
    if frame.empty:
        return frame
    return frame.set_index('q')


def estimate(series: WeeklySeries, q: int) -> VarianceRatioResult:
    """Module-level shortcut for ``VarianceRatioEstimator().estimate``"""
    return VarianceRatioEstimator().estimate(series, q)
