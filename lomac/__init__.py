"""
LOMAC: Lo-MacKinlay Variance Ratio Framework

Rebuilds a weekly index series from gappy daily levels and tests it for
serial dependence with the heteroskedasticity-robust variance-ratio test.
"""

__version__ = "1.0.0"
__author__ = "LOMAC Research Team"

# Core imports
from .core.variance_ratio import VarianceRatioEstimator, estimate, results_to_frame
from .core.serial_dependence import ljung_box_test

# Data imports
from .data.price_sources import PriceSource, SeriesPriceSource, SqlitePriceSource, load_csv_price_source

# Utility imports
from .utils.calendar_alignment import CalendarAligner, build_weekly_series, parse_weekday
from .utils.data_structures import DailyObservation, WeeklySeries, VarianceRatioResult
from .utils.exceptions import (
    VarianceRatioError,
    InvalidRangeError,
    EmptySeriesError,
    InvalidLevelError,
    InvalidHorizonError,
    DegenerateVarianceError,
    DegenerateHorizonError,
)

# Pipeline imports
from .analysis.efficiency_analyzer import RandomWalkAnalyzer, EfficiencyTestResults
from .config import VarianceRatioConfig

__all__ = [
    # Core
    "VarianceRatioEstimator",
    "estimate",
    "results_to_frame",
    "ljung_box_test",

    # Data
    "PriceSource",
    "SeriesPriceSource",
    "SqlitePriceSource",
    "load_csv_price_source",

    # Alignment and records
    "CalendarAligner",
    "build_weekly_series",
    "parse_weekday",
    "DailyObservation",
    "WeeklySeries",
    "VarianceRatioResult",

    # Errors
    "VarianceRatioError",
    "InvalidRangeError",
    "EmptySeriesError",
    "InvalidLevelError",
    "InvalidHorizonError",
    "DegenerateVarianceError",
    "DegenerateHorizonError",

    # Pipeline
    "RandomWalkAnalyzer",
    "EfficiencyTestResults",
    "VarianceRatioConfig",
]
