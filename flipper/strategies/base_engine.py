"""
Base class for tick-driven strategy engines.

Lifecycle per tick (on_tick):
1. Skip if the engine is disabled (publishes an empty snapshot)
2. Skip if the market feed is not ready (snapshot unchanged)
3. update(): push this tick's values into the engine-owned buffers
4. evaluate(): run the gate sequence and rank, without mutating buffers
5. Publish the ranked tuple with a single reference swap

Any exception inside steps 3-4 is caught here, logged once, and the
previously published snapshot stays in place.

"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, Optional, Tuple, TypeVar

import pandas as pd

from flipper.config_schemas import FlipperConfig
from flipper.interfaces.data_feed import MarketDataFeed
from flipper.logging_config import TickLogger
from flipper.risk.filter_pipeline import FilterAndSizingPipeline

R = TypeVar("R")


def rank(rows: Iterable[R], key: Callable[[R], float], limit: int) -> Tuple[R, ...]:
    """
    Sort descending by key and keep the first limit rows.

    The sort is stable, so rows with equal keys keep their evaluation order.
    """
    return tuple(sorted(rows, key=key, reverse=True)[:max(0, limit)])


class StrategyEngine(ABC, Generic[R]):
    """
    Abstract tick-driven engine publishing an immutable ranked snapshot.

    Subclasses implement update() and evaluate(). Both receive the market
    snapshot pinned for this tick.

    Attributes
    ----------
    name : str
        Engine name used in logs
    config : FlipperConfig
        Shared configuration, re-read every tick
    failed_ticks : int
        Number of ticks that raised inside the engine
    last_error : Exception, optional
        Most recent failure
    """

    name = "engine"

    def __init__(self, config: Optional[FlipperConfig] = None):
        self.config = config or FlipperConfig()
        self._snapshot: Tuple[R, ...] = ()
        self._tick = 0
        self.failed_ticks = 0
        self.last_error: Optional[BaseException] = None
        self._log = TickLogger(__name__, self.name)

    @property
    def tick_count(self) -> int:
        return self._tick

    @property
    def pipeline(self) -> FilterAndSizingPipeline:
        """Filter/sizing pipeline reflecting the current configuration."""
        return FilterAndSizingPipeline.from_config(self.config)

    def snapshot(self) -> Tuple[R, ...]:
        """Last published ranked records."""
        return self._snapshot

    def to_frame(self) -> pd.DataFrame:
        """Last published records as a presentation DataFrame."""
        rows = [r.to_row() for r in self._snapshot]
        return pd.DataFrame(rows)

    def is_enabled(self) -> bool:
        return True

    @abstractmethod
    def update(self, market: MarketDataFeed) -> None:
        """Push this tick's observations into the engine's rolling buffers."""

    @abstractmethod
    def evaluate(self, market: MarketDataFeed) -> Tuple[R, ...]:
        """Gate and rank using current buffers; must not mutate them."""

    def _compute(self, market: MarketDataFeed) -> Optional[Tuple[R, ...]]:
        """Full recomputation. Returning None leaves the snapshot as is."""
        self.update(market)
        return self.evaluate(market)

    def _publish(self, rows: Tuple[R, ...]) -> None:
        self._snapshot = rows

    def on_tick(self, market: MarketDataFeed) -> bool:
        """
        Process one tick.

        Returns
        -------
        bool
            True if the tick completed (whether or not it published)
        """
        self._tick += 1
        if not self.is_enabled():
            self._publish(())
            return True
        if not market.is_ready():
            return True

        start = time.perf_counter()
        try:
            rows = self._compute(market)
        except Exception as exc:
            self.failed_ticks += 1
            self.last_error = exc
            self._log.log_tick_failure(self._tick, exc, retained=len(self._snapshot))
            return False

        if rows is not None:
            self._publish(rows)
            self._log.log_tick(self._tick, rows, (time.perf_counter() - start) * 1000.0)
        return True
