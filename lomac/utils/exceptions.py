"""
Error taxonomy for weekly alignment and variance-ratio estimation.

Every error is a ``ValueError`` so existing ``except ValueError`` handlers
keep working; catch ``VarianceRatioError`` to handle the whole family.
"""


class VarianceRatioError(ValueError):
    """Base class for alignment and estimation failures"""


class InvalidRangeError(VarianceRatioError):
    """Calendar window is malformed (first_date after last_date)"""


class EmptySeriesError(VarianceRatioError):
    """Too few usable weekly observations after gap filling"""


class InvalidLevelError(VarianceRatioError):
    """A price source reported a level whose logarithm is undefined"""


class InvalidHorizonError(VarianceRatioError):
    """Aggregation horizon q is outside [2, n_raw)"""


class DegenerateVarianceError(VarianceRatioError):
    """Return variance is zero, so the ratio or its z-score is undefined"""


class DegenerateHorizonError(VarianceRatioError):
    """Overlapping-sample normalizer m is non-positive"""
