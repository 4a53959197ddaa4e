"""
Core interfaces for the strategy engines.

Data model types, the feed protocol the engines consume, and the record
shapes they publish.
"""

from .instrument import (
    Instrument,
    Quote,
    IntervalStat,
    IntervalWindow,
    PairKey,
    InvalidPairError,
)
from .data_feed import MarketDataFeed
from .candidates import (
    BaselineMode,
    SpreadCandidate,
    MeanReversionCandidate,
    PairSignal,
    PairCandidate,
)

__all__ = [
    # Data model
    'Instrument',
    'Quote',
    'IntervalStat',
    'IntervalWindow',
    'PairKey',
    'InvalidPairError',
    # Feed protocol
    'MarketDataFeed',
    # Published records
    'BaselineMode',
    'SpreadCandidate',
    'MeanReversionCandidate',
    'PairSignal',
    'PairCandidate',
]
