"""
Configuration settings for the LOMAC variance-ratio framework.
"""

import json
import os
from dataclasses import dataclass, field, asdict, fields
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional

from dotenv import load_dotenv

SOURCE_TYPES = ["csv", "sqlite", "fred"]


@dataclass
class VarianceRatioConfig:
    """
    Configuration for a weekly variance-ratio run.

    Defaults reproduce the Lo and MacKinlay (1988) weekly design: Wednesday
    observations from September 1962 through 1985, horizons 2, 4, 8 and 16.

    Attributes:
        # Calendar window
        first_date: First calendar day of the window (YYYY-MM-DD)
        last_date: Last calendar day of the window (YYYY-MM-DD)
        anchor_weekday: Weekday sampled once per week (name or 0..6, Monday=0)

        # Estimation
        horizons: Aggregation horizons q to evaluate
        ljung_box_lags: Lags for the companion Ljung-Box test (empty to skip)
        significance_level: Level used when reporting rejections
        min_observations: Fewest weekly observations accepted after alignment
        variance_rtol: Relative tolerance below which return variance is zero

        # Price source
        source_type: 'csv', 'sqlite' or 'fred'
        csv_path: CSV file with daily levels
        date_column: Date column name (CSV and SQLite)
        level_column: Level column name (CSV and SQLite)
        sqlite_path: SQLite database file
        sqlite_table: Table holding daily levels
        fred_series_id: FRED series id for daily index levels

        # Output
        output_dir: Directory for saved results
    """

    # Calendar window
    first_date: str = "1962-09-05"
    last_date: str = "1985-12-31"
    anchor_weekday: str = "wednesday"

    # Estimation
    horizons: List[int] = field(default_factory=lambda: [2, 4, 8, 16])
    ljung_box_lags: List[int] = field(default_factory=lambda: [4])
    significance_level: float = 0.05
    min_observations: int = 2
    variance_rtol: float = 1e-10

    # Price source
    source_type: str = "csv"
    csv_path: Optional[str] = None
    date_column: str = "date"
    level_column: str = "level"
    sqlite_path: Optional[str] = None
    sqlite_table: str = "index_levels"
    fred_series_id: str = "SP500"

    # Output
    output_dir: str = "vr_results"

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'VarianceRatioConfig':
        """Create configuration from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")
        return cls(**config_dict)

    def validate(self) -> List[str]:
        """
        Validate configuration parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        from .utils.calendar_alignment import parse_weekday

        errors = []

        # Validate dates
        parsed = {}
        for name in ("first_date", "last_date"):
            try:
                parsed[name] = datetime.strptime(getattr(self, name), "%Y-%m-%d")
            except (TypeError, ValueError):
                errors.append(f"Invalid {name} format: {getattr(self, name)}")
        if len(parsed) == 2 and parsed["first_date"] > parsed["last_date"]:
            errors.append(f"first_date {self.first_date} is after last_date {self.last_date}")

        try:
            parse_weekday(self.anchor_weekday)
        except ValueError:
            errors.append(f"Invalid anchor_weekday: {self.anchor_weekday}")

        # Validate horizons
        if not self.horizons:
            errors.append("At least one horizon is required")
        for q in self.horizons:
            if isinstance(q, bool) or not isinstance(q, int) or q < 2:
                errors.append(f"Horizons must be integers >= 2, got {q!r}")

        for lag in self.ljung_box_lags:
            if isinstance(lag, bool) or not isinstance(lag, int) or lag < 1:
                errors.append(f"Ljung-Box lags must be integers >= 1, got {lag!r}")

        # Validate numeric ranges
        if self.significance_level <= 0 or self.significance_level >= 1:
            errors.append(f"significance_level must be in (0, 1), got {self.significance_level}")

        if self.min_observations < 2:
            errors.append(f"min_observations must be at least 2, got {self.min_observations}")

        if self.variance_rtol < 0:
            errors.append(f"variance_rtol must be non-negative, got {self.variance_rtol}")

        # Validate source settings
        if self.source_type not in SOURCE_TYPES:
            errors.append(f"Invalid source_type: {self.source_type}. Must be one of {SOURCE_TYPES}")
        elif self.source_type == "csv" and not self.csv_path:
            errors.append("csv_path is required when source_type is 'csv'")
        elif self.source_type == "sqlite" and not self.sqlite_path:
            errors.append("sqlite_path is required when source_type is 'sqlite'")

        return errors


def load_config_from_file(config_path: str) -> VarianceRatioConfig:
    """Load configuration from file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config_dict = json.load(f)

    return VarianceRatioConfig.from_dict(config_dict)


def save_config_to_file(config_obj: VarianceRatioConfig, config_path: str) -> None:
    """Save configuration to file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config_obj.to_dict(), f, indent=2)


def get_fred_api_key() -> str:
    """
    Get FRED API key from environment with validation.

    Returns:
        str: FRED API key

    Raises:
        ValueError: If API key is not found or invalid
    """
    load_dotenv()
    fred_api_key = os.getenv('FRED_API_KEY')
    if not fred_api_key:
        raise ValueError(
            "FRED_API_KEY environment variable is required. "
            "Please set it in your .env file. "
            "You can get a free API key from: https://fred.stlouisfed.org/docs/api/api_key.html"
        )

    if fred_api_key == "YOUR_FRED_API_KEY_HERE":
        raise ValueError("Please replace the placeholder FRED API key with your actual key")

    return fred_api_key
