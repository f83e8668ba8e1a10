"""
Daily price-level sources.
"""

from .price_sources import PriceSource, SeriesPriceSource, SqlitePriceSource, load_csv_price_source

__all__ = ['PriceSource', 'SeriesPriceSource', 'SqlitePriceSource', 'load_csv_price_source']
