"""
Market data feed interface consumed by the strategy engines.

Every map is a read-only snapshot. A missing key means "unknown / not yet
available", never an error. Fetching, retrying and parsing the upstream
price API happen behind this interface.
"""
from typing import AbstractSet, Mapping, Protocol, runtime_checkable

from .instrument import Instrument, IntervalStat, IntervalWindow, Quote


@runtime_checkable
class MarketDataFeed(Protocol):
    """
    Minimal interface the engines read on each tick.

    Can be implemented by:
    - An immutable MarketSnapshot (what the tick runner hands to engines)
    - A live feed that swaps snapshots as the upstream API refreshes
    - A replay feed built from recorded data
    """

    def is_ready(self) -> bool:
        """True once metadata, quotes, volumes and 24h stats are populated."""
        ...

    def instrument_ids(self) -> AbstractSet[int]:
        """Ids of all known instruments."""
        ...

    def instrument_metadata(self) -> Mapping[int, Instrument]:
        """Instrument metadata keyed by id."""
        ...

    def latest_quotes(self) -> Mapping[int, Quote]:
        """Latest quotes keyed by id."""
        ...

    def daily_volumes(self) -> Mapping[int, int]:
        """Traded volume over the last day keyed by id."""
        ...

    def interval_stats(self, window: IntervalWindow) -> Mapping[int, IntervalStat]:
        """
        Interval aggregates for a window.

        Args:
            window: IntervalWindow.ONE_HOUR or IntervalWindow.ONE_DAY

        Returns:
            Aggregates keyed by id (empty mapping if the window is unknown)
        """
        ...
