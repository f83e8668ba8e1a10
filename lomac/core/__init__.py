"""
Core statistical tests for weekly random-walk analysis.
"""

from .variance_ratio import VarianceRatioEstimator, estimate, results_to_frame
from .serial_dependence import ljung_box_test, weekly_log_returns

__all__ = [
    "VarianceRatioEstimator",
    "estimate",
    "results_to_frame",
    "ljung_box_test",
    "weekly_log_returns",
]
