"""
Pair trading strategy.

Works over an explicit registry of instrument pairs. Each leg's deviation
below its 24h average low is tracked, together with the spread between
the two deviations. A signal fires when the legs are correlated, the
spread is wide enough, and the spread sits far from its own rolling mean.

Only the cheap leg is ever bought; the rich leg is relative-value
bookkeeping.

"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from flipper.enrichers.rolling_stats import RollingStatisticsBuffer, deviation_pct
from flipper.execution.cost_models import PercentFrictionModel
from flipper.interfaces.candidates import PairSignal
from flipper.interfaces.data_feed import MarketDataFeed
from flipper.interfaces.instrument import Instrument, IntervalWindow, PairKey

from .base_engine import StrategyEngine, rank

logger = logging.getLogger(__name__)


@dataclass
class PairState:
    """
    Rolling history for one registered pair.

    Attributes
    ----------
    window : int
        Buffer capacity and warm-up threshold
    spread, dev_a, dev_b : RollingStatisticsBuffer
        Spread and per-leg deviation histories
    """
    window: int
    spread: RollingStatisticsBuffer = field(init=False)
    dev_a: RollingStatisticsBuffer = field(init=False)
    dev_b: RollingStatisticsBuffer = field(init=False)

    def __post_init__(self):
        self.spread = RollingStatisticsBuffer(self.window)
        self.dev_a = RollingStatisticsBuffer(self.window)
        self.dev_b = RollingStatisticsBuffer(self.window)

    @property
    def is_warm(self) -> bool:
        return (
            self.spread.size() >= self.window
            and self.dev_a.size() >= self.window
            and self.dev_b.size() >= self.window
        )

    def add(self, dev_a: float, dev_b: float) -> None:
        self.dev_a.add(dev_a)
        self.dev_b.add(dev_b)
        self.spread.add(dev_a - dev_b)


@dataclass(frozen=True)
class _LegView:
    """One leg's data for the current tick."""
    instrument: Instrument
    low: int
    avg_low_24h: int
    volume: Optional[int]

    @property
    def deviation(self) -> float:
        return deviation_pct(self.avg_low_24h, self.low)


class PairTradingEngine(StrategyEngine[PairSignal]):
    """
    Relative-value signals over registered pairs.

    Examples
    --------
    >>> engine = PairTradingEngine()
    >>> engine.register_pair(561, 554)
    PairKey(a=554, b=561)
    """

    name = "pair_trading"

    def __init__(self, config=None):
        super().__init__(config)
        self._pairs: Dict[PairKey, Optional[PairState]] = {}

    def is_enabled(self) -> bool:
        return self.config.strategies.pairs_trading.enable

    # Registry

    def register_pair(self, a: int, b: int) -> PairKey:
        """Start tracking a pair. Re-registering keeps existing history."""
        key = PairKey(a, b)
        self._pairs.setdefault(key, None)
        return key

    def unregister_pair(self, a: int, b: int) -> bool:
        """Stop tracking a pair and drop its history."""
        return self._pairs.pop(PairKey(a, b), False) is not False

    def registered_pairs(self) -> FrozenSet[PairKey]:
        return frozenset(self._pairs)

    def pair_state(self, key: PairKey) -> Optional[PairState]:
        return self._pairs.get(key)

    # Tick

    def _leg(self, market: MarketDataFeed, item_id: int) -> Optional[_LegView]:
        instrument = market.instrument_metadata().get(item_id)
        quote = market.latest_quotes().get(item_id)
        stat = market.interval_stats(IntervalWindow.ONE_DAY).get(item_id)
        if instrument is None or quote is None or stat is None:
            return None
        if quote.low <= 0 or not stat.has_valid_low:
            return None
        return _LegView(instrument, quote.low, stat.avg_low_price, market.daily_volumes().get(item_id))

    def _state_for(self, key: PairKey, window: int) -> PairState:
        state = self._pairs.get(key)
        if state is None or state.window != window:
            if state is not None:
                logger.info("Correlation window changed for %s (%d -> %d), resetting", key, state.window, window)
            state = PairState(window)
            self._pairs[key] = state
        return state

    def update(self, market: MarketDataFeed) -> None:
        window = self.config.strategies.pairs_trading.correlation_window
        for key in list(self._pairs):
            leg_a = self._leg(market, key.a)
            leg_b = self._leg(market, key.b)
            if leg_a is None or leg_b is None:
                continue
            self._state_for(key, window).add(leg_a.deviation, leg_b.deviation)

    def evaluate(self, market: MarketDataFeed) -> Tuple[PairSignal, ...]:
        cfg = self.config.strategies.pairs_trading
        if not self._pairs:
            return ()

        friction = PercentFrictionModel(self.config.risk.fee_slippage_percent)
        pipeline = self.pipeline

        rows = []
        for key in sorted(self._pairs):
            state = self._pairs[key]
            if state is None or state.window != cfg.correlation_window or not state.is_warm:
                continue
            leg_a = self._leg(market, key.a)
            leg_b = self._leg(market, key.b)
            if leg_a is None or leg_b is None:
                continue

            correlation = state.dev_a.correlation(state.dev_b)
            if correlation < cfg.min_correlation:
                continue

            dev_a, dev_b = leg_a.deviation, leg_b.deviation
            spread = dev_a - dev_b
            if abs(spread) < cfg.min_net_edge_percent:
                continue

            z = state.spread.zscore(spread)
            if z is None or abs(z) < cfg.entry_z_score:
                continue

            long_a = z > 0
            cheap, other = (leg_a, leg_b) if long_a else (leg_b, leg_a)
            if cheap.volume is None:
                continue
            sizing = pipeline.evaluate(cheap.instrument, cheap.volume, cheap.low)
            if not sizing.approved:
                continue
            if cfg.require_both_legs_pass_filters:
                if other.volume is None or not pipeline.passes_filters(other.instrument, other.volume, other.low):
                    continue

            expected_profit = friction.net_sell_price(other.avg_low_24h) - cheap.low
            if expected_profit < cfg.min_net_profit_gp:
                continue

            rows.append(PairSignal(
                key=key,
                name_a=leg_a.instrument.name,
                name_b=leg_b.instrument.name,
                dev_a=dev_a,
                dev_b=dev_b,
                spread=spread,
                z_score=z,
                correlation=correlation,
                long_a_short_b=long_a,
                cheap_leg=cheap.instrument.id,
                expected_profit_per_unit=expected_profit,
                planned_quantity=sizing.quantity,
            ))

        return rank(rows, key=lambda s: abs(s.z_score), limit=cfg.max_active_pairs)
