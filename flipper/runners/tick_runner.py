"""
Tick Runner.

Orchestrates: MarketDataFeed → pinned MarketSnapshot → StrategyEngines

Design principles:
- One snapshot per tick: every engine sees the same market data
- Engines are independent: optional thread pool evaluation
- Failures stay inside the engine boundary; the runner only counts them
- Published snapshots are read back through each engine's snapshot()

"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from flipper.config_schemas import FlipperConfig
from flipper.data_feeds.market_snapshot import LiveMarketFeed, MarketSnapshot
from flipper.interfaces.data_feed import MarketDataFeed
from flipper.strategies import (
    MeanReversionEngine,
    PairDiscoveryEngine,
    PairTradingEngine,
    SpreadStrategyEngine,
    StrategyEngine,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Result Containers
# =============================================================================


@dataclass
class TickResult:
    """Outcome of one driver tick."""
    tick: int
    evaluated: bool
    failed_engines: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    stale_quotes: int = 0
    elapsed_ms: float = 0.0


@dataclass
class RunResult:
    """
    Summary of a replay or live run.

    Attributes
    ----------
    ticks : int
        Driver ticks delivered
    evaluated_ticks : int
        Ticks on which engines ran (after throttling)
    failed_ticks : Dict[str, int]
        Engine name -> ticks that raised
    final_snapshots : Dict[str, pd.DataFrame]
        Engine name -> last published records
    runtime_seconds : float
    """
    ticks: int
    evaluated_ticks: int
    failed_ticks: Dict[str, int]
    final_snapshots: Dict[str, pd.DataFrame]
    runtime_seconds: float


# =============================================================================
# Tick Runner
# =============================================================================


@dataclass
class TickRunner:
    """
    Drives a set of engines from a market feed.

    Parameters
    ----------
    engines : list[StrategyEngine]
        Engines evaluated on each tick
    config : FlipperConfig
        Shared configuration (tick_throttle, parallel_engines)

    Examples
    --------
    >>> runner = create_runner(FlipperConfig())
    >>> runner.run_tick(snapshot)
    >>> runner.engine("spread").snapshot()
    """

    engines: List[StrategyEngine]
    config: FlipperConfig = field(default_factory=FlipperConfig)
    _tick: int = field(default=0, init=False)
    _evaluated: int = field(default=0, init=False)

    def engine(self, name: str) -> StrategyEngine:
        for engine in self.engines:
            if engine.name == name:
                return engine
        raise KeyError(f"No engine named {name!r}")

    def _pin(self, source: Union[MarketDataFeed, MarketSnapshot]) -> MarketDataFeed:
        if isinstance(source, LiveMarketFeed):
            return source.current()
        return source

    def _due(self) -> bool:
        return (self._tick - 1) % self.config.advanced.tick_throttle == 0

    def run_tick(self, source: Union[MarketDataFeed, MarketSnapshot]) -> TickResult:
        """
        Deliver one tick to every engine.

        Parameters
        ----------
        source : MarketDataFeed or MarketSnapshot
            A LiveMarketFeed is pinned to its current snapshot first
        """
        self._tick += 1
        if not self._due():
            return TickResult(tick=self._tick, evaluated=False)

        market = self._pin(source)
        start = time.perf_counter()

        if self.config.advanced.parallel_engines and len(self.engines) > 1:
            with ThreadPoolExecutor(max_workers=len(self.engines)) as pool:
                outcomes = list(pool.map(lambda e: e.on_tick(market), self.engines))
        else:
            outcomes = [engine.on_tick(market) for engine in self.engines]

        self._evaluated += 1
        stale = 0
        if isinstance(market, MarketSnapshot):
            stale = len(market.stale_ids(now=market.created_at, stale_seconds=self.config.advanced.stale_seconds))
        return TickResult(
            tick=self._tick,
            evaluated=True,
            failed_engines=[e.name for e, ok in zip(self.engines, outcomes) if not ok],
            counts={e.name: len(e.snapshot()) for e in self.engines},
            stale_quotes=stale,
            elapsed_ms=(time.perf_counter() - start) * 1000.0,
        )

    def run(
        self,
        ticks: Iterable[Union[MarketSnapshot, Tuple[int, MarketSnapshot]]],
        verbose: bool = False,
        on_tick: Optional[Callable[[TickResult], None]] = None,
    ) -> RunResult:
        """
        Drive the engines over a sequence of snapshots.

        Parameters
        ----------
        ticks : iterable
            Snapshots, or (tick, snapshot) pairs as yielded by
            FrameReplayFeed.iter_ticks()
        verbose : bool
            Log progress every 1000 ticks
        on_tick : callable, optional
            Hook called with each TickResult
        """
        start_time = time.time()
        n_ticks = 0

        for item in ticks:
            snapshot = item[1] if isinstance(item, tuple) else item
            result = self.run_tick(snapshot)
            n_ticks += 1

            if on_tick:
                on_tick(result)
            if result.failed_engines:
                logger.warning("Tick %d: engines failed: %s", result.tick, ", ".join(result.failed_engines))
            if verbose and n_ticks % 1000 == 0:
                logger.info(f"Processed {n_ticks} ticks")

        runtime = time.time() - start_time
        if verbose:
            logger.info(f"Run complete: {n_ticks} ticks in {runtime:.1f}s")

        return RunResult(
            ticks=n_ticks,
            evaluated_ticks=self._evaluated,
            failed_ticks={e.name: e.failed_ticks for e in self.engines},
            final_snapshots={e.name: e.to_frame() for e in self.engines},
            runtime_seconds=runtime,
        )


# =============================================================================
# Factory Functions
# =============================================================================


def create_runner(
    config: Optional[FlipperConfig] = None,
    pairs: Iterable[Tuple[int, int]] = (),
) -> TickRunner:
    """
    Create a TickRunner with all four engines sharing one configuration.

    Parameters
    ----------
    config : FlipperConfig, optional
        Shared configuration (defaults if omitted)
    pairs : iterable of (int, int)
        Pairs to register with the pair trading engine

    Returns
    -------
    TickRunner
        Configured runner
    """
    config = config or FlipperConfig()
    pair_engine = PairTradingEngine(config)
    for a, b in pairs:
        pair_engine.register_pair(a, b)

    return TickRunner(
        engines=[
            SpreadStrategyEngine(config),
            MeanReversionEngine(config),
            pair_engine,
            PairDiscoveryEngine(config),
        ],
        config=config,
    )
