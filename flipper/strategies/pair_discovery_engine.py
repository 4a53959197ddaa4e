"""
Pair discovery.

Tracks every liquid instrument's deviation below its 24h average low and,
on a coarse cadence, correlates all pairs inside the top-volume universe.
Highly correlated pairs are published as candidates for registration with
the pair trading engine.

Cost is bounded by the universe cap (top_n_by_volume) and the scan cadence
(scan_every_ticks): each scan is O(k^2 * window).

"""

import logging
import time
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Optional, Tuple

from flipper.constants import (
    DISCOVERY_SPREAD_MIN_CAPACITY,
    DISCOVERY_Z_MIN_SAMPLES,
    discovery_min_samples,
)
from flipper.enrichers.rolling_stats import RollingStatisticsBuffer, deviation_pct
from flipper.interfaces.candidates import PairCandidate
from flipper.interfaces.data_feed import MarketDataFeed
from flipper.interfaces.instrument import IntervalWindow, PairKey

from .base_engine import StrategyEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ScannedPair:
    key: PairKey
    correlation: float
    samples: int
    spread: float


def discovery_rank_key(candidate: PairCandidate):
    """Correlation desc, then |z| desc (missing z = 0), then combined volume desc."""
    return (-candidate.correlation, -candidate.abs_z, -candidate.combined_volume_24h)


class PairDiscoveryEngine(StrategyEngine[PairCandidate]):
    """
    Periodic all-pairs correlation scan.

    Attributes
    ----------
    deviations : Dict[int, RollingStatisticsBuffer]
        Per-instrument deviation history, updated every tick
    spreads : Dict[PairKey, RollingStatisticsBuffer]
        Spread history for pairs that have passed the correlation screen
    last_scan_pair_count : int
        Number of pairs examined by the most recent scan
    """

    name = "pair_discovery"

    def __init__(self, config=None):
        super().__init__(config)
        self.deviations: Dict[int, RollingStatisticsBuffer] = {}
        self.spreads: Dict[PairKey, RollingStatisticsBuffer] = {}
        self.last_scan_pair_count = 0
        self.last_universe_size = 0
        self.scans = 0
        self._window = self.config.strategies.pairs_trading.correlation_window

    def is_enabled(self) -> bool:
        return self.config.strategies.discovery.enable

    @property
    def spread_capacity(self) -> int:
        return max(DISCOVERY_SPREAD_MIN_CAPACITY, self._window)

    def _sync_window(self) -> None:
        window = self.config.strategies.pairs_trading.correlation_window
        if window != self._window:
            logger.info("Discovery window changed (%d -> %d), resetting history", self._window, window)
            self.deviations.clear()
            self.spreads.clear()
            self._window = window

    def update(self, market: MarketDataFeed) -> None:
        self._sync_window()
        pipeline = self.pipeline
        metadata = market.instrument_metadata()
        quotes = market.latest_quotes()
        volumes = market.daily_volumes()
        stats_24h = market.interval_stats(IntervalWindow.ONE_DAY)

        for item_id in market.instrument_ids():
            instrument = metadata.get(item_id)
            quote = quotes.get(item_id)
            volume = volumes.get(item_id)
            stat = stats_24h.get(item_id)
            if instrument is None or quote is None or volume is None or stat is None:
                continue
            if quote.low <= 0 or not stat.has_valid_low:
                continue
            if not pipeline.passes_filters(instrument, volume, quote.low):
                continue

            buf = self.deviations.get(item_id)
            if buf is None:
                buf = RollingStatisticsBuffer(self._window)
                self.deviations[item_id] = buf
            buf.add(deviation_pct(stat.avg_low_price, quote.low))

    def universe(self, market: MarketDataFeed) -> List[int]:
        """
        Instruments eligible for the scan.

        Ranked by descending daily volume (ties by id), truncated to
        top_n_by_volume, then limited to instruments with enough history.
        """
        cfg = self.config.strategies.discovery
        volumes = market.daily_volumes()
        ranked = sorted(
            (item_id for item_id in market.instrument_ids() if item_id in volumes),
            key=lambda item_id: (-volumes[item_id], item_id),
        )[:cfg.top_n_by_volume]

        min_samples = discovery_min_samples(self._window, cfg.min_samples_for_corr)
        return [
            item_id for item_id in ranked
            if item_id in self.deviations and self.deviations[item_id].size() >= min_samples
        ]

    def _scan(self, market: MarketDataFeed) -> List[_ScannedPair]:
        min_correlation = self.config.strategies.pairs_trading.min_correlation
        ids = self.universe(market)

        scanned = 0
        accepted = []
        for a, b in combinations(ids, 2):
            scanned += 1
            buf_a, buf_b = self.deviations[a], self.deviations[b]
            correlation = buf_a.correlation(buf_b)
            if correlation < min_correlation:
                continue
            key = PairKey(a, b)
            accepted.append(_ScannedPair(
                key=key,
                correlation=correlation,
                samples=min(buf_a.size(), buf_b.size()),
                spread=self.deviations[key.a].last() - self.deviations[key.b].last(),
            ))

        self.last_scan_pair_count = scanned
        self.last_universe_size = len(ids)
        return accepted

    def _build(self, market: MarketDataFeed, pairs: List[_ScannedPair]) -> Tuple[PairCandidate, ...]:
        cfg = self.config.strategies.discovery
        metadata = market.instrument_metadata()
        volumes = market.daily_volumes()

        rows = []
        for pair in pairs:
            key = pair.key
            history = self.spreads.get(key)
            z: Optional[float] = None
            if history is not None and history.size() >= DISCOVERY_Z_MIN_SAMPLES:
                z = history.zscore(pair.spread)

            inst_a, inst_b = metadata.get(key.a), metadata.get(key.b)
            rows.append(PairCandidate(
                key=key,
                name_a=inst_a.name if inst_a is not None else str(key.a),
                name_b=inst_b.name if inst_b is not None else str(key.b),
                correlation=pair.correlation,
                samples=pair.samples,
                dev_a=self.deviations[key.a].last(),
                dev_b=self.deviations[key.b].last(),
                spread=pair.spread,
                spread_z=z,
                combined_volume_24h=volumes.get(key.a, 0) + volumes.get(key.b, 0),
            ))

        rows.sort(key=discovery_rank_key)
        return tuple(rows[:cfg.max_output_candidates])

    def _record_spreads(self, pairs: List[_ScannedPair]) -> None:
        for pair in pairs:
            history = self.spreads.get(pair.key)
            if history is None:
                history = RollingStatisticsBuffer(self.spread_capacity)
                self.spreads[pair.key] = history
            history.add(pair.spread)

    def scan_due(self) -> bool:
        return self._tick % self.config.strategies.discovery.scan_every_ticks == 0

    def evaluate(self, market: MarketDataFeed) -> Tuple[PairCandidate, ...]:
        """Scan and rank against current history without recording spreads."""
        return self._build(market, self._scan(market))

    def _compute(self, market: MarketDataFeed) -> Optional[Tuple[PairCandidate, ...]]:
        self.update(market)
        if not self.scan_due():
            return None

        start = time.perf_counter()
        pairs = self._scan(market)
        self._record_spreads(pairs)
        rows = self._build(market, pairs)
        self.scans += 1
        self._log.log_scan(
            self._tick,
            universe=self.last_universe_size,
            pairs_scanned=self.last_scan_pair_count,
            accepted=len(rows),
            elapsed_ms=(time.perf_counter() - start) * 1000.0,
        )
        return rows
