"""
Utility modules for calendar alignment and shared records.
"""

from .calendar_alignment import CalendarAligner, build_weekly_series, parse_weekday
from .data_structures import DailyObservation, WeeklySeries, VarianceRatioResult

__all__ = [
    "CalendarAligner",
    "build_weekly_series",
    "parse_weekday",
    "DailyObservation",
    "WeeklySeries",
    "VarianceRatioResult",
]
