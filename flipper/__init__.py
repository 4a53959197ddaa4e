"""
Flipper - Strategy Engines for Exchange Flipping

Tick-driven engines that read an immutable market snapshot and publish
ranked trade candidates.

Package Structure:
- interfaces/: Data model (Instrument, Quote, IntervalStat, PairKey),
  feed protocol and candidate records
- enrichers/: Rolling statistics buffer
- risk/: Shared filter and sizing pipeline
- execution/: Friction (fee + slippage) model
- strategies/: Spread, mean reversion, pair trading and pair discovery engines
- data_feeds/: In-memory snapshot feed and DataFrame replay feed
- runners/: Tick driver
"""

__version__ = '0.1.0'
