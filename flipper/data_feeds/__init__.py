"""
Market data feeds.

MarketSnapshot is the immutable view engines read each tick.
LiveMarketFeed swaps snapshots atomically as the refresher publishes them.
FrameReplayFeed replays a tick-indexed capture from a DataFrame or CSV.

"""

from .frame_feed import FrameReplayFeed
from .market_snapshot import EMPTY_SNAPSHOT, LiveMarketFeed, MarketSnapshot

__all__ = [
    "MarketSnapshot",
    "EMPTY_SNAPSHOT",
    "LiveMarketFeed",
    "FrameReplayFeed",
]
