"""
Shared fixtures: market snapshot and configuration factories.
"""

import pytest

from flipper.config_schemas import validate_config
from flipper.data_feeds.market_snapshot import MarketSnapshot
from flipper.interfaces.instrument import Instrument, IntervalStat, Quote


def build_market(rows, created_at=0.0):
    """
    Build a MarketSnapshot from compact row dicts.

    Each row: id, and optionally name, members, buy_limit (default 1000),
    low, high (default low), volume (default 100,000), avg_low (24h),
    avg_high (default avg_low).
    """
    instruments, quotes, volumes, stats = [], {}, {}, {}
    for row in rows:
        item_id = row["id"]
        instruments.append(Instrument(
            item_id,
            row.get("name", f"item-{item_id}"),
            members=row.get("members", False),
            buy_limit=row.get("buy_limit", 1000),
        ))
        if "low" in row:
            quotes[item_id] = Quote(row["low"], row.get("high", row["low"]))
        if row.get("volume", 100_000) is not None:
            volumes[item_id] = row.get("volume", 100_000)
        if row.get("avg_low"):
            stats[item_id] = IntervalStat(row.get("avg_high", row["avg_low"]), row["avg_low"])
    return MarketSnapshot.build(
        instruments=instruments, quotes=quotes, volumes=volumes, stats_24h=stats, created_at=created_at,
    )


@pytest.fixture
def market():
    """Factory: market(rows) -> MarketSnapshot."""
    return build_market


@pytest.fixture
def make_config():
    """Factory: make_config(**sections) -> FlipperConfig from nested dicts."""
    def _make(**sections):
        return validate_config(sections)
    return _make
