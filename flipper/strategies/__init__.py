"""
Tick-driven strategy engines.

Each engine owns its rolling buffers and publishes an immutable, ranked
tuple of candidate records after every tick.
"""

from .base_engine import StrategyEngine, rank
from .mean_reversion_engine import MeanReversionEngine
from .pair_discovery_engine import PairDiscoveryEngine
from .pair_trading_engine import PairState, PairTradingEngine
from .spread_engine import SpreadStrategyEngine

__all__ = [
    'StrategyEngine',
    'rank',
    'SpreadStrategyEngine',
    'MeanReversionEngine',
    'PairTradingEngine',
    'PairState',
    'PairDiscoveryEngine',
]
