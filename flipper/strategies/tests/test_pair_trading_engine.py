"""
Tests for the pair trading engine: registry, warm-up, gates and direction.
"""

import pytest

from flipper.interfaces.instrument import InvalidPairError, PairKey
from flipper.strategies.pair_trading_engine import PairTradingEngine

A, B = 10, 20

# Leg B's deviation cycles 1..5%; leg A tracks it within +/-0.1% and then
# breaks away to a 10% deviation on the final tick.
B_LOWS = [990, 980, 970, 960, 950] * 2
A_LOWS = [low - 1 if i % 2 == 0 else low + 1 for i, low in enumerate(B_LOWS[:-1])] + [900]


@pytest.fixture
def config(make_config):
    return make_config(
        risk={"fee_slippage_percent": 0.0},
        strategies={"pairs_trading": {
            "correlation_window": 10,
            "min_correlation": 0.8,
            "entry_z_score": 2.0,
            "min_net_edge_percent": 1.0,
            "min_net_profit_gp": 50,
        }},
    )


def tick(engine, market, low_a, low_b, b_row=None):
    b = {"id": B, "low": low_b, "avg_low": 1000}
    b.update(b_row or {})
    engine.on_tick(market([{"id": A, "low": low_a, "avg_low": 1000}, b]))
    return engine.snapshot()


def replay(engine, market, a_lows=A_LOWS, b_lows=B_LOWS, b_row=None):
    results = []
    for low_a, low_b in zip(a_lows, b_lows):
        results.append(tick(engine, market, low_a, low_b, b_row))
    return results


class TestRegistry:

    def test_register_canonicalizes(self):
        engine = PairTradingEngine()
        assert engine.register_pair(561, 554) == PairKey(554, 561)
        assert engine.registered_pairs() == {PairKey(554, 561)}

    def test_same_instrument_twice_fails(self):
        with pytest.raises(InvalidPairError):
            PairTradingEngine().register_pair(5, 5)

    def test_unregister(self):
        engine = PairTradingEngine()
        engine.register_pair(1, 2)
        assert engine.unregister_pair(2, 1) is True
        assert engine.unregister_pair(2, 1) is False
        assert engine.registered_pairs() == frozenset()


class TestPairTradingEngine:

    def test_signal_after_warm_up(self, config, market):
        engine = PairTradingEngine(config)
        engine.register_pair(B, A)
        results = replay(engine, market)

        assert all(r == () for r in results[:-1])
        (signal,) = results[-1]
        assert signal.key == PairKey(A, B)
        assert signal.dev_a == pytest.approx(10.0)
        assert signal.dev_b == pytest.approx(5.0)
        assert signal.spread == pytest.approx(5.0)
        assert signal.z_score == pytest.approx(2.84, abs=0.01)
        assert signal.correlation == pytest.approx(0.851, abs=0.001)
        assert signal.long_a_short_b is True
        assert signal.cheap_leg == A
        # net_sell(1000) - 900 with no friction
        assert signal.expected_profit_per_unit == 100
        assert signal.planned_quantity == 800

    def test_identical_histories_never_signal(self, config, market):
        config.strategies.pairs_trading.min_correlation = -1.0
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        lows = [990, 950, 970, 900, 980, 960, 940, 990, 910, 930] * 3
        results = replay(engine, market, lows, lows)
        assert all(r == () for r in results)
        state = engine.pair_state(PairKey(A, B))
        assert state.is_warm
        assert state.dev_a.correlation(state.dev_b) == pytest.approx(1.0)

    def test_correlation_gate(self, config, market):
        config.strategies.pairs_trading.min_correlation = 0.9
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        assert replay(engine, market)[-1] == ()

    def test_edge_gate(self, config, market):
        config.strategies.pairs_trading.min_net_edge_percent = 5.5
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        assert replay(engine, market)[-1] == ()

    def test_z_gate(self, config, market):
        config.strategies.pairs_trading.entry_z_score = 3.0
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        assert replay(engine, market)[-1] == ()

    def test_profit_floor(self, config, market):
        config.strategies.pairs_trading.min_net_profit_gp = 101
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        assert replay(engine, market)[-1] == ()

    def test_cheap_leg_b_when_z_negative(self, config, market):
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        # Swap the legs' roles: B breaks away instead of A
        results = replay(engine, market, a_lows=B_LOWS, b_lows=A_LOWS)
        (signal,) = results[-1]
        assert signal.z_score < 0
        assert signal.long_a_short_b is False
        assert signal.cheap_leg == B

    def test_rich_leg_filter_switch(self, config, market):
        rich_leg_illiquid = {"buy_limit": 10}

        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        assert len(replay(engine, market, b_row=rich_leg_illiquid)[-1]) == 1

        config.strategies.pairs_trading.require_both_legs_pass_filters = True
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        assert replay(engine, market, b_row=rich_leg_illiquid)[-1] == ()

    def test_missing_leg_data_skips_update(self, config, market):
        engine = PairTradingEngine(config)
        key = engine.register_pair(A, B)
        engine.on_tick(market([{"id": A, "low": 900, "avg_low": 1000}, {"id": B, "low": 900}]))
        assert engine.pair_state(key) is None
        tick(engine, market, 900, 900)
        assert engine.pair_state(key).spread.size() == 1

    def test_no_pairs_publishes_empty(self, config, market):
        engine = PairTradingEngine(config)
        assert engine.on_tick(market([{"id": A, "low": 900, "avg_low": 1000}])) is True
        assert engine.snapshot() == ()

    def test_window_change_resets_state(self, config, market):
        engine = PairTradingEngine(config)
        key = engine.register_pair(A, B)
        replay(engine, market)
        assert engine.pair_state(key).spread.size() == 10

        config.strategies.pairs_trading.correlation_window = 20
        tick(engine, market, 900, 900)
        state = engine.pair_state(key)
        assert state.window == 20
        assert state.spread.size() == 1
        assert engine.snapshot() == ()

    def test_disabled_publishes_empty(self, config, market):
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        replay(engine, market)
        assert len(engine.snapshot()) == 1

        config.strategies.pairs_trading.enable = False
        assert tick(engine, market, 900, 950) == ()

    def test_evaluate_is_idempotent(self, config, market):
        engine = PairTradingEngine(config)
        engine.register_pair(A, B)
        replay(engine, market)
        last = market([{"id": A, "low": A_LOWS[-1], "avg_low": 1000}, {"id": B, "low": B_LOWS[-1], "avg_low": 1000}])
        first = engine.evaluate(last)
        assert len(first) == 1
        assert engine.evaluate(last) == first
