"""
Core Instrument and Market Data Types.

Design principles:
- Instrument = pure identity and exchange metadata (WHAT it is)
- Quote = latest insta-buy/insta-sell prices (WHERE it trades now)
- IntervalStat = averaged prices and volumes over a window (WHERE it traded)
- PairKey = canonical identity of an unordered instrument pair

All types are immutable; the feed refreshes them wholesale.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class IntervalWindow(Enum):
    """Aggregation windows published by the feed."""
    ONE_HOUR = "1h"
    ONE_DAY = "24h"


class InvalidPairError(ValueError):
    """Raised when a pair is built from the same instrument twice."""

    def __init__(self, instrument_id: int):
        self.instrument_id = instrument_id
        super().__init__(f"Pair cannot use the same instrument twice: {instrument_id}")


@dataclass(frozen=True)
class Instrument:
    """
    Tradeable item identity plus exchange metadata.

    Attributes
    ----------
    id : int
        Unique item identifier
    name : str
        Display name
    members : bool
        True if only members may trade it
    buy_limit : int, optional
        Exchange buy limit per window. None = unlimited
    low_alch, high_alch : int
        Alchemy values (informational only)
    examine : str
        Examine text (informational only)

    Examples
    --------
    >>> Instrument(4151, "Abyssal whip", members=True, buy_limit=70)
    """
    id: int
    name: str
    members: bool = False
    buy_limit: Optional[int] = None
    low_alch: int = 0
    high_alch: int = 0
    examine: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


@dataclass(frozen=True)
class Quote:
    """
    Latest prices for one instrument.

    Attributes
    ----------
    low : int
        Insta-sell price (what a buyer pays when bidding low)
    high : int
        Insta-buy price (what a seller receives when asking high)
    low_time, high_time : int
        Epoch seconds of the last trade on each side (0 = unknown)
    """
    low: int
    high: int
    low_time: int = 0
    high_time: int = 0

    @property
    def is_usable(self) -> bool:
        """Both sides must be positive."""
        return self.low > 0 and self.high > 0

    @property
    def newest_time(self) -> int:
        """Most recent trade time on either side."""
        return max(self.low_time, self.high_time)


@dataclass(frozen=True)
class IntervalStat:
    """
    Averaged prices and traded volumes over an interval window.

    A non-positive average invalidates the instrument for that window.
    """
    avg_high_price: int
    avg_low_price: int
    high_price_volume: int = 0
    low_price_volume: int = 0

    @property
    def has_valid_low(self) -> bool:
        return self.avg_low_price > 0


@dataclass(frozen=True, order=True)
class PairKey:
    """
    Unordered instrument pair with the smaller id always first.

    Equality and hashing are order-independent because both orderings
    canonicalize to the same (a, b).

    Examples
    --------
    >>> PairKey(7, 3) == PairKey(3, 7)
    True
    >>> PairKey(3, 7).a
    3
    >>> PairKey(5, 5)
    Traceback (most recent call last):
    ...
    InvalidPairError: Pair cannot use the same instrument twice: 5
    """
    a: int
    b: int

    def __post_init__(self):
        if self.a == self.b:
            raise InvalidPairError(self.a)
        if self.a > self.b:
            first, second = self.b, self.a
            object.__setattr__(self, "a", first)
            object.__setattr__(self, "b", second)

    def __str__(self) -> str:
        return f"{self.a}-{self.b}"
