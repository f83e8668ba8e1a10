"""
Ljung-Box portmanteau test on weekly log returns.

Complements the variance-ratio test: VR(q) aggregates autocorrelations with
declining weights, while Q(m) sums the first m squared autocorrelations.
"""

import logging
from typing import Iterable

import numpy as np
import pandas as pd
from statsmodels.stats.diagnostic import acorr_ljungbox

from ..utils.data_structures import WeeklySeries
from ..utils.exceptions import InvalidHorizonError

logger = logging.getLogger(__name__)


def weekly_log_returns(series: WeeklySeries) -> np.ndarray:
    """One-period log returns, n_raw - 1 of them"""
    return np.diff(series.log_levels())


def ljung_box_test(series: WeeklySeries, lags: Iterable[int]) -> pd.DataFrame:
    """
    Ljung-Box Q statistics for the given lags

    Args:
        series: Weekly level series
        lags: Lags at which to report Q(m)

    Returns:
        DataFrame with columns 'lb_stat' and 'lb_pvalue', indexed by lag
    """
    lags = sorted({int(lag) for lag in lags})
    returns = weekly_log_returns(series)

    if not lags:
        raise InvalidHorizonError("At least one Ljung-Box lag is required")
    if lags[0] < 1 or lags[-1] >= returns.size:
        raise InvalidHorizonError(
            f"Ljung-Box lags must lie in [1, {returns.size - 1}], got {lags}"
        )

    result = acorr_ljungbox(returns, lags=lags, return_df=True)
    result.index.name = 'lag'
    logger.info(f"Ljung-Box on {returns.size} weekly returns at lags {lags}")
    return result[['lb_stat', 'lb_pvalue']]
