"""
Bid/ask spread strategy.

Buys at the insta-sell price and sells at the insta-buy price within a
single tick. Friction is applied to the sell side only.

Gate sequence per instrument:
1. Filter pipeline (members, volume, buy limit, unit price)
2. high > low and positive net profit
3. Gross spread, net spread, net profit and net ROI thresholds
4. Sizing yields quantity > 0

"""

from typing import Optional, Tuple

from flipper.execution.cost_models import PercentFrictionModel, SellFrictionModel, pct_of
from flipper.interfaces.candidates import SpreadCandidate
from flipper.interfaces.data_feed import MarketDataFeed
from flipper.interfaces.instrument import Instrument, Quote

from .base_engine import StrategyEngine, rank


class SpreadStrategyEngine(StrategyEngine[SpreadCandidate]):
    """
    Stateless spread screener.

    Ranking: descending by net_profit_per_unit * planned_quantity, keeping
    2 * max_open_positions as a buffer above the execution layer's cap.
    """

    name = "spread"

    def update(self, market: MarketDataFeed) -> None:
        pass

    def evaluate(self, market: MarketDataFeed) -> Tuple[SpreadCandidate, ...]:
        cfg = self.config.strategies.spread
        friction = PercentFrictionModel(self.config.risk.fee_slippage_percent)
        pipeline = self.pipeline
        metadata = market.instrument_metadata()
        quotes = market.latest_quotes()
        volumes = market.daily_volumes()

        rows = []
        for item_id in sorted(market.instrument_ids()):
            instrument = metadata.get(item_id)
            quote = quotes.get(item_id)
            volume = volumes.get(item_id)
            if instrument is None or quote is None or volume is None:
                continue
            if not quote.is_usable:
                continue

            candidate = self.evaluate_instrument(instrument, quote, volume, friction, pipeline)
            if candidate is not None:
                rows.append(candidate)

        return rank(rows, key=lambda c: c.expected_profit, limit=2 * cfg.max_open_positions)

    def evaluate_instrument(self, instrument: Instrument, quote: Quote, volume: int,
                            friction: SellFrictionModel, pipeline) -> Optional[SpreadCandidate]:
        """Run one instrument through the gate sequence."""
        cfg = self.config.strategies.spread
        low, high = quote.low, quote.high

        if not pipeline.passes_filters(instrument, volume, low):
            return None
        if high <= low:
            return None

        net_sell = friction.net_sell_price(high)
        net_profit = net_sell - low
        if net_profit <= 0:
            return None

        spread_pct = pct_of(high - low, low)
        net_spread_pct = pct_of(net_sell - low, low)
        net_roi_pct = pct_of(net_profit, low)

        if spread_pct < cfg.min_spread_percent:
            return None
        if net_spread_pct < cfg.min_net_spread_percent:
            return None
        if net_profit < cfg.min_net_profit_gp:
            return None
        if net_roi_pct < cfg.min_net_roi_percent:
            return None

        quantity = pipeline.planned_quantity(low, instrument.buy_limit)
        if quantity <= 0:
            return None

        return SpreadCandidate(
            instrument_id=instrument.id,
            name=instrument.name,
            low=low,
            high=high,
            volume_24h=volume,
            spread_pct=spread_pct,
            net_spread_pct=net_spread_pct,
            net_profit_per_unit=net_profit,
            net_roi_pct=net_roi_pct,
            planned_quantity=quantity,
        )
