"""
Filter and Sizing Pipeline.

Shared pre-trade screen and quantity sizing used identically by the
spread, mean reversion and pair trading engines:
- Members-only screen
- Minimum daily volume
- Minimum buy limit (absent limit = unlimited)
- Maximum unit price
- Quantity bounded by capital per item and buy-limit utilization

"""

import math
from dataclasses import dataclass
from typing import Optional

from flipper.config_schemas import FlipperConfig
from flipper.interfaces.instrument import Instrument


@dataclass(frozen=True)
class SizingResult:
    """
    Outcome of running an instrument through the pipeline.

    Attributes
    ----------
    approved : bool
        True if all filters passed and quantity > 0
    quantity : int
        Planned order quantity (0 when rejected)
    reason : str
        Human-readable rejection reason ("" when approved)
    """
    approved: bool
    quantity: int = 0
    reason: str = ""


def approve(quantity: int) -> SizingResult:
    return SizingResult(approved=True, quantity=quantity)


def reject(reason: str) -> SizingResult:
    return SizingResult(approved=False, quantity=0, reason=reason)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class FilterAndSizingPipeline:
    """
    Stateless screening and sizing.

    Parameters
    ----------
    members_only : bool
        Reject non-members instruments (default False)
    min_volume : int
        Minimum daily volume (default 5,000)
    min_buy_limit : int
        Minimum exchange buy limit; None limit counts as unlimited (default 50)
    max_unit_price : int
        Maximum unit price (default 5,000,000)
    max_capital_per_item : int
        Capital committed per candidate (default 10,000,000)
    buy_limit_utilization_percent : float
        Share of the buy limit to use, clamped to [1, 100] (default 80)

    Examples
    --------
    >>> pipeline = FilterAndSizingPipeline(max_capital_per_item=1_000)
    >>> item = Instrument(1, "Feather", buy_limit=100)
    >>> pipeline.evaluate(item, volume_24h=10_000, unit_price=30).quantity
    33
    """

    members_only: bool = False
    min_volume: int = 5_000
    min_buy_limit: int = 50
    max_unit_price: int = 5_000_000
    max_capital_per_item: int = 10_000_000
    buy_limit_utilization_percent: float = 80.0

    @classmethod
    def from_config(cls, config: FlipperConfig) -> "FilterAndSizingPipeline":
        """Assemble the pipeline from the filters and risk sections."""
        return cls(
            members_only=config.filters.members_only,
            min_volume=config.filters.min_volume,
            min_buy_limit=config.filters.min_buy_limit,
            max_unit_price=config.risk.max_price_per_unit,
            max_capital_per_item=config.risk.max_capital_per_item,
            buy_limit_utilization_percent=config.risk.buy_limit_utilization_percent,
        )

    def check_filters(self, instrument: Instrument, volume_24h: int, unit_price: int) -> Optional[str]:
        """
        Apply the screens in order.

        Returns
        -------
        str or None
            Rejection reason, or None if every screen passed
        """
        if self.members_only and not instrument.members:
            return "members-only item"
        if volume_24h < self.min_volume:
            return f"volume {volume_24h} < {self.min_volume}"
        if instrument.buy_limit is not None and instrument.buy_limit < self.min_buy_limit:
            return f"buy limit {instrument.buy_limit} < {self.min_buy_limit}"
        if unit_price <= 0:
            return f"non-positive unit price {unit_price}"
        if unit_price > self.max_unit_price:
            return f"unit price {unit_price} > {self.max_unit_price}"
        return None

    def passes_filters(self, instrument: Instrument, volume_24h: int, unit_price: int) -> bool:
        return self.check_filters(instrument, volume_24h, unit_price) is None

    def planned_quantity(self, unit_price: int, buy_limit: Optional[int]) -> int:
        """
        Quantity bounded by capital and by buy-limit utilization.

        min(floor(max_capital / price), floor(limit * util / 100)); an
        unlimited buy limit bounds by capital only.
        """
        if unit_price <= 0:
            return 0
        by_capital = max(0, self.max_capital_per_item // unit_price)
        if buy_limit is None:
            return by_capital
        util = clamp(self.buy_limit_utilization_percent, 1.0, 100.0)
        by_limit = int(math.floor(buy_limit * (util / 100.0)))
        return min(by_capital, by_limit)

    def evaluate(self, instrument: Instrument, volume_24h: int, unit_price: int) -> SizingResult:
        """
        Screen and size an instrument at a candidate unit price.

        Checks are applied in order:
        1. Members / volume / buy limit / unit price screens
        2. Sizing must yield quantity > 0
        """
        reason = self.check_filters(instrument, volume_24h, unit_price)
        if reason is not None:
            return reject(reason)

        quantity = self.planned_quantity(unit_price, instrument.buy_limit)
        if quantity <= 0:
            return reject(f"sized to {quantity} at unit price {unit_price}")
        return approve(quantity)
