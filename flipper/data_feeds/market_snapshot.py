"""
In-memory market snapshots.

MarketSnapshot is an immutable view of one feed refresh: instrument
metadata, latest quotes, daily volumes and interval aggregates. It
implements MarketDataFeed, so engines can be handed a snapshot directly.

LiveMarketFeed holds the current snapshot and swaps it atomically when the
upstream refresher publishes a new one. Readers always see either the old
complete snapshot or the new one.

"""

import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import AbstractSet, Mapping, Optional

from flipper.constants import DEFAULT_STALE_SECONDS
from flipper.interfaces.instrument import Instrument, IntervalStat, IntervalWindow, Quote

logger = logging.getLogger(__name__)


_EMPTY: Mapping = MappingProxyType({})


def _frozen(mapping: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(mapping)) if mapping else _EMPTY


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Immutable market data for a single refresh.

    Attributes
    ----------
    instruments : Mapping[int, Instrument]
    quotes : Mapping[int, Quote]
    volumes : Mapping[int, int]
    stats_1h : Mapping[int, IntervalStat]
    stats_24h : Mapping[int, IntervalStat]
    created_at : float
        Epoch seconds when the snapshot was assembled

    Examples
    --------
    >>> snap = MarketSnapshot.build(
    ...     instruments=[Instrument(1, "Feather", buy_limit=1000)],
    ...     quotes={1: Quote(low=3, high=5)},
    ...     volumes={1: 1_000_000},
    ...     stats_24h={1: IntervalStat(avg_high_price=5, avg_low_price=4)},
    ... )
    >>> snap.is_ready()
    True
    """
    instruments: Mapping[int, Instrument] = field(default_factory=lambda: _EMPTY)
    quotes: Mapping[int, Quote] = field(default_factory=lambda: _EMPTY)
    volumes: Mapping[int, int] = field(default_factory=lambda: _EMPTY)
    stats_1h: Mapping[int, IntervalStat] = field(default_factory=lambda: _EMPTY)
    stats_24h: Mapping[int, IntervalStat] = field(default_factory=lambda: _EMPTY)
    created_at: float = 0.0

    @classmethod
    def build(
        cls,
        instruments=(),
        quotes: Optional[Mapping[int, Quote]] = None,
        volumes: Optional[Mapping[int, int]] = None,
        stats_24h: Optional[Mapping[int, IntervalStat]] = None,
        stats_1h: Optional[Mapping[int, IntervalStat]] = None,
        created_at: Optional[float] = None,
    ) -> "MarketSnapshot":
        """
        Build a snapshot, copying every input into read-only mappings.

        Args:
            instruments: Iterable of Instrument or mapping id -> Instrument
            quotes: id -> Quote
            volumes: id -> daily volume
            stats_24h: id -> 24h IntervalStat
            stats_1h: id -> 1h IntervalStat
            created_at: Epoch seconds (default: now)
        """
        if isinstance(instruments, Mapping):
            by_id = dict(instruments)
        else:
            by_id = {inst.id: inst for inst in instruments}
        return cls(
            instruments=_frozen(by_id),
            quotes=_frozen(quotes),
            volumes=_frozen(volumes),
            stats_1h=_frozen(stats_1h),
            stats_24h=_frozen(stats_24h),
            created_at=time.time() if created_at is None else created_at,
        )

    # MarketDataFeed implementation

    def is_ready(self) -> bool:
        return bool(self.instruments) and bool(self.quotes) and bool(self.volumes) and bool(self.stats_24h)

    def instrument_ids(self) -> AbstractSet[int]:
        return self.instruments.keys()

    def instrument_metadata(self) -> Mapping[int, Instrument]:
        return self.instruments

    def latest_quotes(self) -> Mapping[int, Quote]:
        return self.quotes

    def daily_volumes(self) -> Mapping[int, int]:
        return self.volumes

    def interval_stats(self, window: IntervalWindow) -> Mapping[int, IntervalStat]:
        if window is IntervalWindow.ONE_DAY:
            return self.stats_24h
        if window is IntervalWindow.ONE_HOUR:
            return self.stats_1h
        return _EMPTY

    # Freshness helpers

    def is_stale(self, quote: Quote, now: Optional[float] = None,
                 stale_seconds: int = DEFAULT_STALE_SECONDS) -> bool:
        """
        True if neither side of the quote traded within stale_seconds.

        A quote with no known trade time is always stale.
        """
        newest = quote.newest_time
        if newest <= 0:
            return True
        now = time.time() if now is None else now
        return now - newest > stale_seconds

    def stale_ids(self, now: Optional[float] = None,
                  stale_seconds: int = DEFAULT_STALE_SECONDS) -> AbstractSet[int]:
        """Ids whose latest quote is stale."""
        return frozenset(
            item_id for item_id, quote in self.quotes.items()
            if self.is_stale(quote, now, stale_seconds)
        )


EMPTY_SNAPSHOT = MarketSnapshot()


class LiveMarketFeed:
    """
    Holder for the current MarketSnapshot.

    The refresher calls publish(); engines and the tick runner call
    current(). Publication replaces a single reference, so readers never
    observe a half-written snapshot. Also implements MarketDataFeed by
    delegating to the current snapshot; callers that read several maps in
    one computation should pin current() first.
    """

    def __init__(self, initial: Optional[MarketSnapshot] = None):
        self._snapshot = initial or EMPTY_SNAPSHOT
        self._lock = threading.Lock()
        self._version = 0

    @property
    def version(self) -> int:
        """Number of snapshots published so far."""
        return self._version

    def publish(self, snapshot: MarketSnapshot) -> None:
        """Atomically replace the current snapshot."""
        with self._lock:
            self._snapshot = snapshot
            self._version += 1
        logger.debug(
            "Published market snapshot v%d (%d instruments, %d quotes)",
            self._version, len(snapshot.instruments), len(snapshot.quotes),
        )

    def current(self) -> MarketSnapshot:
        return self._snapshot

    def is_ready(self) -> bool:
        return self._snapshot.is_ready()

    def instrument_ids(self) -> AbstractSet[int]:
        return self._snapshot.instrument_ids()

    def instrument_metadata(self) -> Mapping[int, Instrument]:
        return self._snapshot.instrument_metadata()

    def latest_quotes(self) -> Mapping[int, Quote]:
        return self._snapshot.latest_quotes()

    def daily_volumes(self) -> Mapping[int, int]:
        return self._snapshot.daily_volumes()

    def interval_stats(self, window: IntervalWindow) -> Mapping[int, IntervalStat]:
        return self._snapshot.interval_stats(window)
