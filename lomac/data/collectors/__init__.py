"""
Remote collectors for daily index levels.
"""

from .fred_collector import FREDCollector, INDEX_SERIES

__all__ = ['FREDCollector', 'INDEX_SERIES']
