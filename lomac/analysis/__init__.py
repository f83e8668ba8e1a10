"""
End-to-end random-walk analysis.
"""

from .efficiency_analyzer import RandomWalkAnalyzer, EfficiencyTestResults, save_results

__all__ = [
    "RandomWalkAnalyzer",
    "EfficiencyTestResults",
    "save_results",
]
