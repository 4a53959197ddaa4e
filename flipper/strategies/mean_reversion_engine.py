"""
Mean reversion strategy.

Keeps a rolling buffer of insta-sell (low) prices per instrument and flags
instruments trading below their baseline.

Baseline resolution, first match wins:
1. Bollinger: enabled and >= 5 samples. Entry threshold is
   max(sma - k * std, sma * (1 - entry%/100)); a low above it rejects the
   instrument outright (no fall-through to the other baselines).
2. Simple average over the plain lookback (>= 5 samples).
3. 24h interval average low price.

"""

import logging
import math
from typing import Dict, Optional, Tuple

from flipper.constants import MIN_BASELINE_SAMPLES
from flipper.enrichers.rolling_stats import RollingStatisticsBuffer, deviation_pct
from flipper.interfaces.candidates import BaselineMode, MeanReversionCandidate
from flipper.interfaces.data_feed import MarketDataFeed
from flipper.interfaces.instrument import IntervalStat, IntervalWindow

from .base_engine import StrategyEngine, rank

logger = logging.getLogger(__name__)


class MeanReversionEngine(StrategyEngine[MeanReversionCandidate]):
    """
    Deviation-below-baseline screener.

    Attributes
    ----------
    buffers : Dict[int, RollingStatisticsBuffer]
        Low-price history per instrument, owned by this engine
    """

    name = "mean_reversion"

    def __init__(self, config=None):
        super().__init__(config)
        self.buffers: Dict[int, RollingStatisticsBuffer] = {}
        self._capacity = self.config.strategies.mean_reversion.buffer_capacity

    def is_enabled(self) -> bool:
        return self.config.strategies.mean_reversion.enable

    def _sync_capacity(self) -> None:
        capacity = self.config.strategies.mean_reversion.buffer_capacity
        if capacity != self._capacity:
            logger.info(
                "Mean reversion lookback changed (%d -> %d), resetting %d buffers",
                self._capacity, capacity, len(self.buffers),
            )
            self.buffers.clear()
            self._capacity = capacity

    def update(self, market: MarketDataFeed) -> None:
        self._sync_capacity()
        quotes = market.latest_quotes()
        for item_id in market.instrument_ids():
            quote = quotes.get(item_id)
            if quote is None or quote.low <= 0:
                continue
            buf = self.buffers.get(item_id)
            if buf is None:
                buf = RollingStatisticsBuffer(self._capacity)
                self.buffers[item_id] = buf
            buf.add(quote.low)

    def resolve_baseline(self, item_id: int, current_low: int,
                         stat_24h: Optional[IntervalStat]) -> Optional[Tuple[float, BaselineMode]]:
        """
        Pick the baseline for one instrument.

        Returns
        -------
        (baseline, mode) or None
            None when the Bollinger threshold rejects or no baseline exists
        """
        cfg = self.config.strategies.mean_reversion
        buf = self.buffers.get(item_id)
        size = buf.size() if buf is not None else 0

        if cfg.use_bollinger and size >= MIN_BASELINE_SAMPLES:
            n = min(cfg.bb_lookback_ticks, size)
            sma = buf.mean(n)
            lower_band = sma - cfg.bb_std_devs * buf.std(n)
            threshold = max(lower_band, sma * (1.0 - cfg.entry_deviation_percent / 100.0))
            if current_low > threshold:
                return None
            return sma, BaselineMode.BOLLINGER

        if size >= MIN_BASELINE_SAMPLES:
            return buf.mean(min(cfg.lookback_ticks, size)), BaselineMode.SIMPLE_AVERAGE

        if stat_24h is None or not stat_24h.has_valid_low:
            return None
        return float(stat_24h.avg_low_price), BaselineMode.INTERVAL_24H

    def evaluate(self, market: MarketDataFeed) -> Tuple[MeanReversionCandidate, ...]:
        cfg = self.config.strategies.mean_reversion
        pipeline = self.pipeline
        metadata = market.instrument_metadata()
        quotes = market.latest_quotes()
        volumes = market.daily_volumes()
        stats_24h = market.interval_stats(IntervalWindow.ONE_DAY)

        rows = []
        for item_id in sorted(market.instrument_ids()):
            instrument = metadata.get(item_id)
            quote = quotes.get(item_id)
            volume = volumes.get(item_id)
            if instrument is None or quote is None or volume is None:
                continue
            current_low = quote.low
            if current_low <= 0:
                continue

            resolved = self.resolve_baseline(item_id, current_low, stats_24h.get(item_id))
            if resolved is None:
                continue
            baseline, mode = resolved
            if baseline <= 0:
                continue

            deviation = deviation_pct(baseline, current_low)
            if deviation < cfg.entry_deviation_percent:
                continue

            exit_target = int(math.floor(baseline * (1.0 - cfg.exit_deviation_percent / 100.0)))
            expected_profit = exit_target - current_low
            if expected_profit < cfg.min_net_profit_gp:
                continue

            sizing = pipeline.evaluate(instrument, volume, current_low)
            if not sizing.approved:
                continue

            rows.append(MeanReversionCandidate(
                instrument_id=item_id,
                name=instrument.name,
                current_low=current_low,
                baseline=baseline,
                baseline_mode=mode,
                deviation_pct=deviation,
                exit_target=exit_target,
                expected_profit_per_unit=expected_profit,
                planned_quantity=sizing.quantity,
            ))

        return rank(rows, key=lambda c: c.deviation_pct, limit=2 * cfg.max_positions)
