"""
Configuration schema validation using Pydantic.

Provides validated configuration models for every engine and the shared
filter/risk sections. Models are mutable on purpose: engines re-read their
section each tick, so a changed correlation window or lookback takes effect
on the next tick (buffers are replaced when their capacity changes).
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flipper import constants


class _Section(BaseModel):
    """Shared pydantic settings for all sections."""
    model_config = ConfigDict(extra='forbid', validate_assignment=True)


class FilterConfig(_Section):
    """Item-universe pre-screens (no PnL/risk here)."""
    members_only: bool = Field(False, description="Members items only")
    min_volume: int = Field(5_000, ge=0, description="Minimum 24h volume")
    min_buy_limit: int = Field(50, ge=0, description="Minimum exchange buy limit (per 4h)")


class RiskLimits(_Section):
    """Capital guards, buy-limit utilization and friction."""
    max_price_per_unit: int = Field(5_000_000, ge=1, description="Maximum unit price (gp)")
    max_capital_per_item: int = Field(10_000_000, ge=1, description="Maximum capital per item (gp)")
    buy_limit_utilization_percent: float = Field(
        80.0, description="Share of the buy limit committed per candidate (clamped to 1-100)"
    )
    fee_slippage_percent: float = Field(1.2, ge=0, lt=100, description="Fee + slippage applied to sells (%)")


class SpreadStrategyConfig(_Section):
    """Bid/ask spread capture thresholds."""
    min_spread_percent: float = Field(2.0, ge=0, description="Minimum gross spread (%)")
    min_net_spread_percent: float = Field(1.2, ge=0, description="Minimum net spread (%)")
    min_net_profit_gp: int = Field(1_500, ge=0, description="Minimum net profit per unit (gp)")
    min_net_roi_percent: float = Field(2.5, ge=0, description="Minimum net ROI (%)")
    max_open_positions: int = Field(4, ge=1, description="Position cap; 2x is kept as buffer")


class MeanReversionConfig(_Section):
    """Mean reversion against a rolling or interval baseline."""
    enable: bool = Field(True, description="Enable mean reversion")
    lookback_ticks: int = Field(240, ge=constants.MIN_BASELINE_SAMPLES, description="SMA lookback (ticks)")
    entry_deviation_percent: float = Field(2.0, ge=0, description="Entry deviation below baseline (%)")
    exit_deviation_percent: float = Field(0.8, ge=0, description="Exit target below baseline (%)")
    use_bollinger: bool = Field(True, description="Use Bollinger band entry")
    bb_lookback_ticks: int = Field(120, ge=constants.MIN_BASELINE_SAMPLES, description="Bollinger lookback (ticks)")
    bb_std_devs: float = Field(2.0, ge=0.5, description="Bollinger band width (std devs)")
    min_net_profit_gp: int = Field(2_000, ge=0, description="Minimum expected profit per unit (gp)")
    max_positions: int = Field(3, ge=1, description="Position cap; 2x is kept as buffer")

    @model_validator(mode='after')
    def validate_deviations(self):
        """Ensure the exit target sits closer to the baseline than the entry."""
        if self.exit_deviation_percent > self.entry_deviation_percent:
            raise ValueError(
                f"Exit deviation {self.exit_deviation_percent} must not exceed "
                f"entry deviation {self.entry_deviation_percent}"
            )
        return self

    @property
    def buffer_capacity(self) -> int:
        """Capacity of the per-item low-price buffer."""
        return max(self.lookback_ticks, self.bb_lookback_ticks)


class PairsTradingConfig(_Section):
    """Relative-value pair trading over registered pairs."""
    enable: bool = Field(True, description="Enable pairs trading")
    correlation_window: int = Field(
        240, ge=constants.MIN_CORRELATION_WINDOW, description="Correlation / warm-up window (ticks)"
    )
    min_correlation: float = Field(0.90, ge=-1.0, le=1.0, description="Minimum leg correlation")
    entry_z_score: float = Field(2.0, gt=0, description="Spread entry z-score")
    exit_z_score: float = Field(0.7, ge=0, description="Spread exit z-score (execution layer)")
    max_active_pairs: int = Field(2, ge=1, description="Maximum published pair signals")
    require_both_legs_pass_filters: bool = Field(
        False, description="Require the rich leg to pass filters too (cheap leg always must)"
    )
    min_net_edge_percent: float = Field(1.0, ge=0, description="Minimum |spread| (%)")
    min_net_profit_gp: int = Field(1_500, ge=0, description="Minimum cheap-leg reversion profit (gp)")

    @model_validator(mode='after')
    def validate_z_scores(self):
        """Ensure exit z-score is below entry z-score."""
        if self.exit_z_score >= self.entry_z_score:
            raise ValueError(
                f"Exit z-score {self.exit_z_score} must be less than entry z-score {self.entry_z_score}"
            )
        return self


class DiscoveryConfig(_Section):
    """Knobs for the unsupervised pair scan."""
    enable: bool = Field(True, description="Enable pair discovery")
    top_n_by_volume: int = Field(constants.DISCOVERY_TOP_N_BY_VOLUME, ge=2)
    scan_every_ticks: int = Field(
        constants.DISCOVERY_SCAN_EVERY_TICKS, ge=2, description="Scan cadence; must be coarser than per-tick"
    )
    min_samples_for_corr: int = Field(constants.DISCOVERY_MIN_SAMPLES, ge=2)
    max_output_candidates: int = Field(constants.DISCOVERY_MAX_OUTPUT, ge=1)


class StrategiesConfig(_Section):
    """Per-strategy sections."""
    spread: SpreadStrategyConfig = Field(default_factory=SpreadStrategyConfig)
    mean_reversion: MeanReversionConfig = Field(default_factory=MeanReversionConfig)
    pairs_trading: PairsTradingConfig = Field(default_factory=PairsTradingConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)


class AdvancedConfig(_Section):
    """Driver-level settings."""
    tick_throttle: int = Field(1, ge=1, description="Evaluate engines every N driver ticks")
    parallel_engines: bool = Field(False, description="Evaluate engines on a thread pool")
    stale_seconds: int = Field(constants.DEFAULT_STALE_SECONDS, ge=1, description="Quote staleness horizon")
    log_level: str = Field("INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is a known stdlib level name."""
        if v.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class FlipperConfig(_Section):
    """Complete configuration for all engines."""
    filters: FilterConfig = Field(default_factory=FilterConfig)
    strategies: StrategiesConfig = Field(default_factory=StrategiesConfig)
    risk: RiskLimits = Field(default_factory=RiskLimits)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

    def to_yaml(self) -> str:
        """Dump configuration as YAML."""
        return yaml.safe_dump(self.model_dump(), default_flow_style=False, sort_keys=False)


def validate_config(config_dict: Dict[str, Any]) -> FlipperConfig:
    """
    Validate a raw configuration dictionary.

    Args:
        config_dict: Raw configuration dictionary (may be empty)

    Returns:
        Validated FlipperConfig

    Raises:
        ValidationError: If configuration is invalid
    """
    return FlipperConfig.model_validate(config_dict or {})


def load_config(path: Union[str, Path]) -> FlipperConfig:
    """
    Load and validate configuration from a YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Validated FlipperConfig
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f)
    return validate_config(raw)
