"""
Calendar alignment utilities for weekly variance-ratio testing

This module rebuilds an evenly spaced weekly index series from a daily
level table with missing trading days. Missing days borrow the level of the
next day that has one, so a Wednesday exchange closure still produces a
Wednesday row (priced at Thursday's close, or later if the closure runs on).

Author: LOMAC Research Team
Date: 2025
"""

import logging
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ..data.price_sources import DateLike, PriceSource, to_date
from .data_structures import DailyObservation, WeeklySeries
from .exceptions import EmptySeriesError, InvalidLevelError, InvalidRangeError

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']


def parse_weekday(value: Union[int, str]) -> int:
    """
    Resolve a weekday to its number (Monday=0 ... Sunday=6)

    Args:
        value: Weekday number, full name or three-letter abbreviation

    Returns:
        Weekday number
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid weekday: {value!r}")
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValueError(f"Weekday number must be in 0..6, got {value}")

    key = str(value).strip().lower()
    if key.isdigit():
        return parse_weekday(int(key))
    for number, name in enumerate(WEEKDAY_NAMES):
        if key == name or (len(key) >= 3 and name.startswith(key)):
            return number
    raise ValueError(f"Unknown weekday: {value!r}")


def build_calendar_backbone(first_date: DateLike, last_date: DateLike) -> pd.DatetimeIndex:
    """
    Every calendar day from first_date to last_date inclusive

    Raises:
        InvalidRangeError: If first_date is after last_date
    """
    first, last = to_date(first_date), to_date(last_date)
    if first > last:
        raise InvalidRangeError(f"first_date {first} is after last_date {last}")
    return pd.date_range(first, last, freq='D')


def join_calendar(source: PriceSource, backbone: pd.DatetimeIndex) -> List[DailyObservation]:
    """Attach the source's level (or None) to every backbone date"""
    days = [ts.date() for ts in backbone]
    levels = source.levels_for(days)
    return [DailyObservation(date=day, level=levels.get(day)) for day in days]


def fill_gaps_forward_substitution(observations: List[DailyObservation]) -> pd.Series:
    """
    Replace each missing level with the next available future level

    Runs of consecutive missing days all take the level of the first observed
    day after the run. Days after the last observation stay NaN.

    Args:
        observations: Daily observations in ascending date order

    Returns:
        Daily levels indexed by date, NaN only on trailing gaps
    """
    daily = pd.Series(
        [obs.level for obs in observations],
        index=pd.DatetimeIndex([obs.date for obs in observations]),
        dtype='float64',
    )
    return daily.bfill()


def sample_anchor_weekday(daily: pd.Series, anchor_weekday: int,
                          first_date: DateLike) -> pd.Series:
    """Keep only anchor-weekday rows on or after first_date"""
    first = pd.Timestamp(to_date(first_date))
    mask = (daily.index.dayofweek == anchor_weekday) & (daily.index >= first)
    return daily[mask]


class CalendarAligner:
    """
    Builds a gap-free weekly series from an irregular daily price source.

    Attributes:
        last_alignment_info: Counts from the most recent successful alignment,
            empty after a run that raised
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.last_alignment_info: Dict[str, Any] = {}

    def build_weekly_series(self, source: PriceSource,
                            first_date: DateLike,
                            last_date: DateLike,
                            anchor_weekday: Union[int, str],
                            min_observations: int = 2) -> WeeklySeries:
        """
        Align a daily price source to one observation per week

        Args:
            source: Daily price-level source
            first_date: First calendar day of the window
            last_date: Last calendar day of the window
            anchor_weekday: Weekday to sample (number or name)
            min_observations: Fewest weekly rows the caller can use (at least 2)

        Returns:
            WeeklySeries dated on the anchor weekday

        Raises:
            InvalidRangeError: If first_date is after last_date
            InvalidLevelError: If the source reports a non-positive level
            EmptySeriesError: If fewer than min_observations weekly rows remain
        """
        self.last_alignment_info = {}
        weekday = parse_weekday(anchor_weekday)

        # Step 1: complete daily calendar
        backbone = build_calendar_backbone(first_date, last_date)

        # Step 2: join against the source
        observations = join_calendar(source, backbone)
        observed = sum(1 for obs in observations if not obs.is_missing)

        for obs in observations:
            if not obs.is_missing and obs.level <= 0:
                raise InvalidLevelError(f"Non-positive level {obs.level} on {obs.date}")

        # Step 3: next-available gap fill
        filled = fill_gaps_forward_substitution(observations)
        trailing = int(filled.isna().sum())

        # Step 4: one row per week on the anchor weekday
        weekly = sample_anchor_weekday(filled, weekday, first_date)

        # Step 5: drop rows with no later observation to borrow from
        dropped = int(weekly.isna().sum())
        weekly = weekly.dropna()

        info = {
            'first_date': backbone[0].date(),
            'last_date': backbone[-1].date(),
            'anchor_weekday': WEEKDAY_NAMES[weekday],
            'calendar_days': len(backbone),
            'observed_days': observed,
            'filled_days': len(backbone) - observed - trailing,
            'trailing_missing_days': trailing,
            'weekly_rows_dropped': dropped,
            'weekly_observations': len(weekly),
        }

        self.logger.info(
            f"Aligned {observed} observed days over {len(backbone)} calendar days "
            f"-> {len(weekly)} weekly ({WEEKDAY_NAMES[weekday]}) observations"
        )
        if dropped:
            self.logger.warning(
                f"Dropped {dropped} trailing {WEEKDAY_NAMES[weekday]} rows with no later observation"
            )

        required = max(2, min_observations)
        if len(weekly) < required:
            raise EmptySeriesError(
                f"Only {len(weekly)} weekly observations between {backbone[0].date()} and "
                f"{backbone[-1].date()}; need at least {required}"
            )

        self.last_alignment_info = info
        return WeeklySeries.from_series(weekly, anchor_weekday=weekday)


def build_weekly_series(source: PriceSource,
                        first_date: DateLike,
                        last_date: DateLike,
                        anchor_weekday: Union[int, str] = 'wednesday',
                        min_observations: int = 2) -> WeeklySeries:
    """Module-level shortcut for ``CalendarAligner().build_weekly_series``"""
    return CalendarAligner().build_weekly_series(
        source, first_date, last_date, anchor_weekday, min_observations
    )
