"""
Central constants for the strategy engines.

Single source of truth for warm-up minimums, discovery defaults and
presentation precision. User-tunable thresholds live in config_schemas.py.
"""

# Rolling-statistics warm-up
MIN_BASELINE_SAMPLES = 5          # Minimum ticks before a rolling SMA/Bollinger baseline is trusted
MIN_CORRELATION_WINDOW = 10       # Smallest correlation window accepted by the pair engines

# Pair discovery defaults (overridable through DiscoveryConfig)
DISCOVERY_TOP_N_BY_VOLUME = 300   # Scan the top-N most liquid instruments
DISCOVERY_SCAN_EVERY_TICKS = 30   # Run the O(k^2) scan every N ticks
DISCOVERY_MIN_SAMPLES = 30        # Aligned samples required before correlating two legs
DISCOVERY_MAX_OUTPUT = 100        # Maximum discovered pairs published per scan
DISCOVERY_SAMPLE_CAP = 60         # Upper bound on the half-window sample requirement
DISCOVERY_SPREAD_MIN_CAPACITY = 30  # Floor for per-pair spread history capacity
DISCOVERY_Z_MIN_SAMPLES = 10      # Spread history length before a z-score is reported

# Quote freshness
DEFAULT_STALE_SECONDS = 600       # Quotes older than this are considered stale

# Presentation precision (never used for gating)
PRICE_DECIMALS = 2
CORRELATION_DECIMALS = 4


def discovery_min_samples(correlation_window: int, min_samples: int = DISCOVERY_MIN_SAMPLES) -> int:
    """
    Minimum buffer length an instrument needs to enter the discovery universe.

    Args:
        correlation_window: Configured correlation window (ticks)
        min_samples: Absolute floor on aligned samples

    Returns:
        max(min_samples, min(60, correlation_window // 2))
    """
    return max(min_samples, min(DISCOVERY_SAMPLE_CAP, correlation_window // 2))
