"""
Data structures for weekly variance-ratio testing

This module contains the records passed between the calendar aligner and the
variance-ratio estimator. All of them are immutable once constructed.

Author: LOMAC Research Team
Date: 2025
Version: 1.0
"""

import math
from dataclasses import dataclass, asdict
from datetime import date
from typing import Dict, Optional, Any, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidLevelError


@dataclass(frozen=True)
class DailyObservation:
    """One calendar day and the index level observed on it (None if closed)"""

    date: date
    level: Optional[float] = None

    @property
    def is_missing(self) -> bool:
        return self.level is None or math.isnan(self.level)


@dataclass(frozen=True)
class WeeklySeries:
    """
    Evenly spaced weekly index levels sampled on a single weekday.

    Attributes:
        dates: Strictly increasing dates, all on ``anchor_weekday``
        levels: Strictly positive index levels, one per date
        anchor_weekday: Sampled weekday (Monday=0 ... Sunday=6)
    """

    dates: Tuple[date, ...]
    levels: Tuple[float, ...]
    anchor_weekday: int

    def __post_init__(self):
        # Freeze whatever sequence type the caller handed in
        object.__setattr__(self, 'dates', tuple(self.dates))
        object.__setattr__(self, 'levels', tuple(float(x) for x in self.levels))

        if len(self.dates) != len(self.levels):
            raise ValueError(
                f"dates and levels differ in length: {len(self.dates)} != {len(self.levels)}"
            )
        if not 0 <= self.anchor_weekday <= 6:
            raise ValueError(f"anchor_weekday must be in 0..6, got {self.anchor_weekday}")

        for i, day in enumerate(self.dates):
            if day.weekday() != self.anchor_weekday:
                raise ValueError(f"{day} is not on weekday {self.anchor_weekday}")
            if i > 0:
                gap = (day - self.dates[i - 1]).days
                if gap <= 0:
                    raise ValueError(f"Dates must be strictly increasing: {self.dates[i - 1]} -> {day}")
                if gap % 7 != 0:
                    raise ValueError(f"Dates must be whole weeks apart: {self.dates[i - 1]} -> {day}")

        for day, level in zip(self.dates, self.levels):
            if not math.isfinite(level) or level <= 0:
                raise InvalidLevelError(f"Level on {day} must be finite and positive, got {level}")

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def first_date(self) -> Optional[date]:
        return self.dates[0] if self.dates else None

    @property
    def last_date(self) -> Optional[date]:
        return self.dates[-1] if self.dates else None

    def log_levels(self) -> np.ndarray:
        """Natural log of the levels as a fresh float64 array"""
        return np.log(np.asarray(self.levels, dtype=np.float64))

    def to_series(self, name: str = 'level') -> pd.Series:
        """Levels as a pandas Series indexed by a DatetimeIndex"""
        return pd.Series(list(self.levels), index=pd.DatetimeIndex(self.dates), name=name)

    @classmethod
    def from_series(cls, series: pd.Series, anchor_weekday: int) -> 'WeeklySeries':
        """Build from a pandas Series indexed by dates (NaN rows are rejected)"""
        if series.isna().any():
            raise InvalidLevelError("WeeklySeries levels may not contain missing values")
        index = pd.DatetimeIndex(series.index)
        return cls(
            dates=tuple(ts.date() for ts in index),
            levels=tuple(series.astype(float).tolist()),
            anchor_weekday=anchor_weekday,
        )


@dataclass(frozen=True)
class VarianceRatioResult:
    """Lo-MacKinlay variance-ratio test outcome for one (series, q) pair"""

    q: int
    n: int                                   # number of one-period returns
    variance_ratio: float
    theta: float                             # heteroskedasticity-robust variance of VR
    z_statistic: float                       # robust z*(q)

    # Supporting diagnostics
    mean_return: float = 0.0
    variance_one_period: float = 0.0         # sigma_a^2
    variance_q_period: float = 0.0           # sigma_q^2 (per q periods)
    p_value: float = 1.0
    z_homoskedastic: float = 0.0             # z(q) under i.i.d. returns
    p_value_homoskedastic: float = 1.0

    def rejects_random_walk(self, significance_level: float = 0.05) -> bool:
        """True when the robust test rejects the random-walk null"""
        return self.p_value < significance_level

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
