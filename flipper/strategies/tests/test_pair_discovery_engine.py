"""
Tests for the pair discovery scan.
"""

import pytest

from flipper.interfaces.candidates import PairCandidate
from flipper.interfaces.instrument import PairKey
from flipper.strategies.pair_discovery_engine import PairDiscoveryEngine, discovery_rank_key

BASE = [950, 900, 970, 880, 990, 920, 940, 960]


def lows_at(t):
    """Lows for instruments 1..5 at tick t (0-based)."""
    base = BASE[t % len(BASE)]
    return {
        1: base,
        2: base,
        3: 1900 - base,
        4: base + (3 if t % 3 == 0 else -2),
        5: 950,
    }


def snapshot_at(market, t, ids=(1, 2, 3, 4, 5), extra=()):
    lows = lows_at(t)
    rows = [{"id": i, "low": lows[i], "avg_low": 1000, "volume": 100_000 + i * 1_000} for i in ids]
    return market(rows + list(extra))


@pytest.fixture
def config(make_config):
    return make_config(strategies={
        "pairs_trading": {"correlation_window": 10, "min_correlation": 0.9},
        "discovery": {"scan_every_ticks": 2, "min_samples_for_corr": 2},
    })


def drive(engine, market, n, **kwargs):
    for t in range(n):
        engine.on_tick(snapshot_at(market, t, **kwargs))
    return engine.snapshot()


class TestPairDiscoveryEngine:

    def test_scans_every_unordered_pair(self, config, market):
        engine = PairDiscoveryEngine(config)
        drive(engine, market, 6)
        k = 5
        assert engine.last_universe_size == k
        assert engine.last_scan_pair_count == k * (k - 1) // 2

    def test_universe_requires_history(self, config, market):
        engine = PairDiscoveryEngine(config)
        drive(engine, market, 4)
        # 4 samples < max(2, min(60, 10 // 2)) = 5
        assert engine.scans == 2
        assert engine.last_scan_pair_count == 0
        assert engine.snapshot() == ()

    def test_universe_truncated_to_top_volume(self, config, market):
        config.strategies.discovery.top_n_by_volume = 3
        engine = PairDiscoveryEngine(config)
        drive(engine, market, 6)
        assert engine.universe(snapshot_at(market, 6)) == [5, 4, 3]
        assert engine.last_scan_pair_count == 3

    def test_filtered_instruments_are_not_tracked(self, config, market):
        engine = PairDiscoveryEngine(config)
        illiquid = {"id": 6, "low": 900, "avg_low": 1000, "volume": 10}
        drive(engine, market, 6, extra=[illiquid])
        assert 6 not in engine.deviations
        assert engine.last_scan_pair_count == 10

    def test_correlated_pairs_ranked(self, config, market):
        engine = PairDiscoveryEngine(config)
        rows = drive(engine, market, 6)

        keys = [c.key for c in rows]
        assert keys[0] == PairKey(1, 2)
        assert set(keys) == {PairKey(1, 2), PairKey(1, 4), PairKey(2, 4)}
        correlations = [c.correlation for c in rows]
        assert correlations == sorted(correlations, reverse=True)
        assert rows[0].correlation == pytest.approx(1.0)
        assert rows[0].spread == 0.0
        assert rows[0].combined_volume_24h == 203_000

    def test_snapshot_only_changes_on_scan_ticks(self, config, market):
        engine = PairDiscoveryEngine(config)
        drive(engine, market, 6)
        published = engine.snapshot()
        engine.on_tick(snapshot_at(market, 6))
        assert engine.snapshot() is published
        assert engine.scans == 3
        assert engine.deviations[1].size() == 7

    def test_z_score_after_enough_spread_history(self, config, market):
        engine = PairDiscoveryEngine(config)
        rows = drive(engine, market, 6)
        assert all(c.spread_z is None for c in rows)

        # Scans at ticks 6, 8, ..., 24 give ten spread samples
        for t in range(6, 24):
            engine.on_tick(snapshot_at(market, t))
        assert engine.spreads[PairKey(1, 4)].size() == 10

        by_key = {c.key: c for c in engine.snapshot()}
        assert by_key[PairKey(1, 4)].spread_z is not None
        # Identical legs: constant zero spread, no z-score
        assert by_key[PairKey(1, 2)].spread_z is None

    def test_max_output(self, config, market):
        config.strategies.discovery.max_output_candidates = 1
        engine = PairDiscoveryEngine(config)
        assert [c.key for c in drive(engine, market, 6)] == [PairKey(1, 2)]

    def test_window_change_resets_history(self, config, market):
        engine = PairDiscoveryEngine(config)
        drive(engine, market, 6)
        config.strategies.pairs_trading.correlation_window = 20
        engine.on_tick(snapshot_at(market, 6))
        assert engine.deviations[1].capacity() == 20
        assert engine.deviations[1].size() == 1
        assert engine.spreads == {}

    def test_disabled_publishes_empty(self, config, market):
        engine = PairDiscoveryEngine(config)
        drive(engine, market, 6)
        assert engine.snapshot() != ()
        config.strategies.discovery.enable = False
        engine.on_tick(snapshot_at(market, 6))
        assert engine.snapshot() == ()

    def test_evaluate_is_idempotent(self, config, market):
        engine = PairDiscoveryEngine(config)
        drive(engine, market, 7)
        snapshot = snapshot_at(market, 6)
        first = engine.evaluate(snapshot)
        assert len(first) == 3
        assert engine.evaluate(snapshot) == first
        assert engine.spreads[PairKey(1, 2)].size() == 1


def _candidate(a, b, correlation, z, volume):
    return PairCandidate(
        key=PairKey(a, b), name_a=str(a), name_b=str(b), correlation=correlation, samples=30,
        dev_a=0.0, dev_b=0.0, spread=0.0, spread_z=z, combined_volume_24h=volume,
    )


def test_rank_key_tie_breaks():
    rows = [
        _candidate(1, 2, 0.95, None, 9_000),
        _candidate(3, 4, 0.95, -2.5, 1_000),
        _candidate(5, 6, 0.99, 0.1, 1_000),
        _candidate(7, 8, 0.95, 0.0, 5_000),
        _candidate(9, 10, 0.95, 2.0, 1_000),
    ]
    ranked = sorted(rows, key=discovery_rank_key)
    assert [str(c.key) for c in ranked] == ["5-6", "3-4", "9-10", "1-2", "7-8"]
