"""
Tests for immutable market snapshots and the live feed holder.
"""

import pytest

from flipper.data_feeds.market_snapshot import EMPTY_SNAPSHOT, LiveMarketFeed, MarketSnapshot
from flipper.interfaces.data_feed import MarketDataFeed
from flipper.interfaces.instrument import Instrument, IntervalStat, IntervalWindow, Quote


@pytest.fixture
def snapshot():
    return MarketSnapshot.build(
        instruments=[Instrument(1, "Feather", buy_limit=1000), Instrument(2, "Bones")],
        quotes={1: Quote(3, 5, low_time=1_000, high_time=1_200)},
        volumes={1: 1_000_000},
        stats_24h={1: IntervalStat(avg_high_price=5, avg_low_price=4)},
        stats_1h={1: IntervalStat(avg_high_price=6, avg_low_price=3)},
        created_at=1_500.0,
    )


class TestMarketSnapshot:

    def test_implements_feed_protocol(self, snapshot):
        assert isinstance(snapshot, MarketDataFeed)
        assert isinstance(LiveMarketFeed(), MarketDataFeed)

    def test_readiness(self, snapshot):
        assert snapshot.is_ready()
        assert not EMPTY_SNAPSHOT.is_ready()
        no_stats = MarketSnapshot.build(
            instruments=[Instrument(1, "Feather")], quotes={1: Quote(3, 5)}, volumes={1: 10},
        )
        assert not no_stats.is_ready()

    def test_accessors(self, snapshot):
        assert set(snapshot.instrument_ids()) == {1, 2}
        assert snapshot.instrument_metadata()[2].name == "Bones"
        assert snapshot.latest_quotes()[1].high == 5
        assert snapshot.daily_volumes().get(2) is None
        assert snapshot.interval_stats(IntervalWindow.ONE_DAY)[1].avg_low_price == 4
        assert snapshot.interval_stats(IntervalWindow.ONE_HOUR)[1].avg_low_price == 3

    def test_maps_are_read_only_copies(self):
        quotes = {1: Quote(3, 5)}
        snap = MarketSnapshot.build(instruments={1: Instrument(1, "Feather")}, quotes=quotes)
        quotes[2] = Quote(1, 2)
        assert 2 not in snap.latest_quotes()
        with pytest.raises(TypeError):
            snap.latest_quotes()[3] = Quote(1, 2)

    def test_staleness(self, snapshot):
        quote = snapshot.latest_quotes()[1]
        assert not snapshot.is_stale(quote, now=1_700, stale_seconds=600)
        assert snapshot.is_stale(quote, now=1_801, stale_seconds=600)
        assert snapshot.is_stale(Quote(3, 5), now=0)
        assert snapshot.stale_ids(now=10_000) == {1}


class TestLiveMarketFeed:

    def test_publish_swaps_snapshot(self, snapshot):
        feed = LiveMarketFeed()
        assert not feed.is_ready()
        assert feed.version == 0

        feed.publish(snapshot)
        assert feed.current() is snapshot
        assert feed.version == 1
        assert feed.is_ready()
        assert feed.latest_quotes() is snapshot.latest_quotes()

    def test_pinned_snapshot_survives_publish(self, snapshot):
        feed = LiveMarketFeed(snapshot)
        pinned = feed.current()
        feed.publish(EMPTY_SNAPSHOT)
        assert pinned.is_ready()
        assert not feed.is_ready()
