"""
Random Walk Analyzer - Main Integration Class

This module provides the RandomWalkAnalyzer class that chains calendar
alignment, the variance-ratio test across horizons and the Ljung-Box check
into one run over a daily price source.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from ..config import VarianceRatioConfig
from ..core.serial_dependence import ljung_box_test
from ..core.variance_ratio import VarianceRatioEstimator, results_to_frame
from ..data.price_sources import PriceSource
from ..utils.calendar_alignment import CalendarAligner
from ..utils.data_structures import VarianceRatioResult, WeeklySeries


@dataclass
class EfficiencyTestResults:
    """Results of one random-walk analysis run"""

    weekly_series: WeeklySeries
    variance_ratios: List[VarianceRatioResult] = field(default_factory=list)
    ljung_box: Optional[pd.DataFrame] = None

    # Metadata
    alignment_info: Dict[str, Any] = field(default_factory=dict)
    data_period: Dict[str, str] = field(default_factory=dict)
    test_timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    config_used: Optional[VarianceRatioConfig] = None

    def summary_frame(self) -> pd.DataFrame:
        """Variance-ratio results, one row per horizon"""
        return results_to_frame(self.variance_ratios)

    def to_dict(self) -> Dict[str, Any]:
        ljung_box = None
        if self.ljung_box is not None:
            ljung_box = {
                int(lag): {'lb_stat': float(row['lb_stat']), 'lb_pvalue': float(row['lb_pvalue'])}
                for lag, row in self.ljung_box.iterrows()
            }
        return {
            'data_period': self.data_period,
            'weekly_observations': len(self.weekly_series),
            'anchor_weekday': self.weekly_series.anchor_weekday,
            'alignment_info': self.alignment_info,
            'variance_ratios': [r.to_dict() for r in self.variance_ratios],
            'ljung_box': ljung_box,
            'test_timestamp': self.test_timestamp,
            'config_used': self.config_used.to_dict() if self.config_used else None,
        }


class RandomWalkAnalyzer:
    """
    Main integration class for the weekly random-walk test pipeline.

    Source levels flow one way: daily levels -> weekly series -> results.
    """

    def __init__(self, config: Optional[VarianceRatioConfig] = None):
        """
        Initialize the analyzer.

        Args:
            config: Run configuration (defaults to the Lo-MacKinlay design)
        """
        self.config = config or VarianceRatioConfig()
        self.logger = logging.getLogger(__name__)

        self.aligner = CalendarAligner()
        self.estimator = VarianceRatioEstimator(variance_rtol=self.config.variance_rtol)

    def run(self, source: PriceSource) -> EfficiencyTestResults:
        """
        Execute alignment and every configured test.

        Args:
            source: Daily price-level source

        Returns:
            EfficiencyTestResults for the configured window
        """
        cfg = self.config
        self.logger.info(f"Starting random-walk analysis {cfg.first_date} to {cfg.last_date}")

        # Step 1: Weekly series
        self.logger.info("Step 1: Aligning daily levels to weekly observations")
        required = max([cfg.min_observations] + [q + 1 for q in cfg.horizons])
        weekly = self.aligner.build_weekly_series(
            source, cfg.first_date, cfg.last_date, cfg.anchor_weekday,
            min_observations=required,
        )

        # Step 2: Variance ratios
        self.logger.info(f"Step 2: Variance ratios for horizons {cfg.horizons}")
        variance_ratios = self.estimator.estimate_many(weekly, cfg.horizons)

        # Step 3: Ljung-Box
        ljung_box = None
        if cfg.ljung_box_lags:
            self.logger.info(f"Step 3: Ljung-Box at lags {cfg.ljung_box_lags}")
            ljung_box = ljung_box_test(weekly, cfg.ljung_box_lags)

        for result in variance_ratios:
            if result.rejects_random_walk(cfg.significance_level):
                self.logger.info(
                    f"q={result.q}: random walk rejected at {cfg.significance_level:.0%} "
                    f"(VR={result.variance_ratio:.3f}, z*={result.z_statistic:.2f})"
                )

        return EfficiencyTestResults(
            weekly_series=weekly,
            variance_ratios=variance_ratios,
            ljung_box=ljung_box,
            alignment_info=dict(self.aligner.last_alignment_info),
            data_period={
                'start': weekly.first_date.isoformat(),
                'end': weekly.last_date.isoformat(),
            },
            config_used=cfg,
        )


def save_results(results: EfficiencyTestResults, file_path: Path) -> None:
    """Write results as JSON"""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, 'w') as f:
        json.dump(results.to_dict(), f, indent=2, default=str)
