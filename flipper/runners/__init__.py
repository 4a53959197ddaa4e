"""
Tick runner framework.

Provides engine-agnostic orchestration:
- MarketDataFeed → pinned MarketSnapshot → StrategyEngines

"""

from .tick_runner import (
    RunResult,
    TickResult,
    TickRunner,
    create_runner,
)

__all__ = [
    "TickRunner",
    "TickResult",
    "RunResult",
    "create_runner",
]
