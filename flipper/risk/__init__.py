"""
Risk management components.

Provides the shared pre-trade filters and position sizing.
"""

from .filter_pipeline import FilterAndSizingPipeline, SizingResult

__all__ = [
    "FilterAndSizingPipeline",
    "SizingResult",
]
