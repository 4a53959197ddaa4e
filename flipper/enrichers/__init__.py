"""
Streaming enrichers.

Fixed-capacity rolling statistics fed one value per tick.
"""

from .rolling_stats import RollingStatisticsBuffer, deviation_pct

__all__ = [
    "RollingStatisticsBuffer",
    "deviation_pct",
]
