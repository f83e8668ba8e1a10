"""FRED Data Collector - daily index levels"""

import logging
from typing import Optional

import pandas as pd
from fredapi import Fred

from ...config import get_fred_api_key
from ..price_sources import DateLike, SeriesPriceSource, to_date

logger = logging.getLogger(__name__)

# Daily equity index levels published on FRED
INDEX_SERIES = {
    'SP500': 'S&P 500',
    'DJIA': 'Dow Jones Industrial Average',
    'NASDAQCOM': 'NASDAQ Composite Index',
    'WILL5000IND': 'Wilshire 5000 Total Market Index',
}


class FREDCollector:
    """Collect daily index levels from the FRED API"""

    def __init__(self, api_key: Optional[str] = None, fred: Optional[Fred] = None):
        if fred is not None:
            self.fred = fred
        else:
            self.api_key = api_key or get_fred_api_key()
            self.fred = Fred(api_key=self.api_key)
        logger.info("FRED API initialized")

    def fetch_series(self, series_id: str, first_date: DateLike, last_date: DateLike) -> pd.Series:
        """Fetch single series from FRED"""
        start, end = to_date(first_date).isoformat(), to_date(last_date).isoformat()
        try:
            return self.fred.get_series(series_id, observation_start=start, observation_end=end)
        except Exception as e:
            logger.error(f"Failed to fetch {series_id}: {e}")
            raise

    def fetch_price_source(self, series_id: str, first_date: DateLike,
                           last_date: DateLike) -> SeriesPriceSource:
        """Fetch a daily index series and wrap it as a price source"""
        description = INDEX_SERIES.get(series_id, series_id)
        logger.info(f"Fetching {series_id}: {description}")
        series = self.fetch_series(series_id, first_date, last_date)
        logger.info(f"Fetched {series.notna().sum()} observations for {series_id}")
        return SeriesPriceSource(series)
