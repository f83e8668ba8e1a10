"""
Daily price-level sources

A price source answers ``date -> level`` lookups for a single index and can
list the distinct dates it has observations for. The calendar aligner only
depends on the ``PriceSource`` interface; opening and closing whatever store
sits behind it is the caller's business.
"""

import logging
import math
import re
import sqlite3
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, pd.Timestamp, str]

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def to_date(value: DateLike) -> date:
    """Normalize a date-like value to ``datetime.date``"""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def _clean_level(value) -> Optional[float]:
    # NULL / NaN mean "no observation", not a level
    if value is None:
        return None
    level = float(value)
    if math.isnan(level):
        return None
    return level


class PriceSource(ABC):
    """Interface for a daily index-level table keyed by calendar date"""

    @abstractmethod
    def lookup(self, day: date) -> Optional[float]:
        """Level observed on ``day``, or None if there is no observation"""

    @abstractmethod
    def dates_between(self, first_date: date, last_date: date) -> List[date]:
        """Distinct observed dates in [first_date, last_date], ascending"""

    def levels_for(self, days: Iterable[date]) -> Dict[date, Optional[float]]:
        """
        Look up many dates in one logical pass.

        Subclasses backed by a query engine override this with a single
        range query.
        """
        return {day: self.lookup(day) for day in days}


class SeriesPriceSource(PriceSource):
    """
    In-memory price source backed by a pandas Series.

    Args:
        levels: Index levels indexed by anything ``pd.to_datetime`` accepts.
                Missing (NaN) rows are treated as non-trading days.
    """

    def __init__(self, levels: pd.Series):
        index = pd.to_datetime(levels.index).normalize()
        series = pd.Series(levels.to_numpy(dtype=float), index=index).dropna()

        if series.index.has_duplicates:
            duplicated = series.index[series.index.duplicated()].unique()
            raise ValueError(
                f"Price source has duplicate dates: {[ts.date().isoformat() for ts in duplicated[:5]]}"
            )

        self._levels = series.sort_index()
        self._by_date = {ts.date(): float(v) for ts, v in self._levels.items()}

    def __len__(self) -> int:
        return len(self._by_date)

    def lookup(self, day: date) -> Optional[float]:
        return self._by_date.get(to_date(day))

    def dates_between(self, first_date: date, last_date: date) -> List[date]:
        first, last = pd.Timestamp(to_date(first_date)), pd.Timestamp(to_date(last_date))
        window = self._levels.loc[(self._levels.index >= first) & (self._levels.index <= last)]
        return [ts.date() for ts in window.index]


def load_csv_price_source(path: Union[str, Path],
                          date_column: str = 'date',
                          level_column: str = 'level') -> SeriesPriceSource:
    """
    Load a daily level table from CSV

    Args:
        path: CSV file with one row per observed date
        date_column: Name of the date column
        level_column: Name of the index-level column

    Returns:
        SeriesPriceSource over the file's observations
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Price file not found: {path}")

    frame = pd.read_csv(path)
    missing = [c for c in (date_column, level_column) if c not in frame.columns]
    if missing:
        raise ValueError(f"Columns {missing} not found in {path}; available: {list(frame.columns)}")

    levels = pd.Series(
        pd.to_numeric(frame[level_column], errors='coerce').to_numpy(),
        index=pd.to_datetime(frame[date_column]),
    )
    logger.info(f"Loaded {levels.notna().sum()} daily levels from {path}")
    return SeriesPriceSource(levels)


class SqlitePriceSource(PriceSource):
    """
    Price source over a SQLite table with ISO-formatted dates.

    Dates are matched on their calendar day, so both ``YYYY-MM-DD`` and the
    ``YYYY-MM-DD HH:MM:SS`` text written by ``DataFrame.to_sql`` work.
    The connection is borrowed: this class never opens or closes it.
    """

    def __init__(self, connection: sqlite3.Connection, table: str,
                 date_column: str = 'date', level_column: str = 'level'):
        for identifier in (table, date_column, level_column):
            if not _IDENTIFIER.match(identifier):
                raise ValueError(f"Invalid SQL identifier: {identifier!r}")

        self.connection = connection
        self.table = table
        self.date_column = date_column
        self.level_column = level_column

    def lookup(self, day: date) -> Optional[float]:
        row = self.connection.execute(
            f"SELECT {self.level_column} FROM {self.table} WHERE date({self.date_column}) = ?",
            (to_date(day).isoformat(),),
        ).fetchone()
        return _clean_level(row[0]) if row else None

    def dates_between(self, first_date: date, last_date: date) -> List[date]:
        rows = self.connection.execute(
            f"SELECT DISTINCT date({self.date_column}) AS day FROM {self.table} "
            f"WHERE date({self.date_column}) BETWEEN ? AND ? AND {self.level_column} IS NOT NULL "
            f"ORDER BY day",
            (to_date(first_date).isoformat(), to_date(last_date).isoformat()),
        ).fetchall()
        return [to_date(r[0]) for r in rows]

    def levels_for(self, days: Iterable[date]) -> Dict[date, Optional[float]]:
        days = [to_date(d) for d in days]
        if not days:
            return {}

        rows = self.connection.execute(
            f"SELECT date({self.date_column}), {self.level_column} FROM {self.table} "
            f"WHERE date({self.date_column}) BETWEEN ? AND ?",
            (min(days).isoformat(), max(days).isoformat()),
        ).fetchall()

        found = {to_date(d): _clean_level(v) for d, v in rows}
        return {day: found.get(day) for day in days}
