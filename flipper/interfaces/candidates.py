"""
Candidate and Signal Records.

Design principles:
- One immutable record shape per engine, built fresh every tick
- Fields hold full-precision values; gating and ranking use them directly
- to_row() is the presentation view (2 dp prices/percents, 4 dp correlation)
- Records are outputs only; engines never keep references to them as state

"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from flipper.utils.rounding import round2, round2_optional, round4

from .instrument import PairKey


class BaselineMode(Enum):
    """Which baseline a mean reversion candidate was measured against."""
    BOLLINGER = "bollinger"
    SIMPLE_AVERAGE = "sma"
    INTERVAL_24H = "avg_24h"


@dataclass(frozen=True)
class SpreadCandidate:
    """
    Instantaneous bid/ask spread opportunity.

    Attributes
    ----------
    instrument_id, name : identity
    low, high : int
        Quote that justified inclusion
    volume_24h : int
        Daily traded volume
    spread_pct : float
        Gross spread (high - low) / low * 100
    net_spread_pct : float
        Spread after friction on the sell side
    net_profit_per_unit : int
        net_sell - low
    net_roi_pct : float
        net_profit_per_unit / low * 100
    planned_quantity : int
        Quantity from the sizing pipeline
    """
    instrument_id: int
    name: str
    low: int
    high: int
    volume_24h: int
    spread_pct: float
    net_spread_pct: float
    net_profit_per_unit: int
    net_roi_pct: float
    planned_quantity: int

    @property
    def expected_profit(self) -> int:
        """Ranking key: per-unit profit times planned quantity."""
        return self.net_profit_per_unit * self.planned_quantity

    def to_row(self) -> Dict[str, Any]:
        return {
            "instrument_id": self.instrument_id,
            "name": self.name,
            "low": self.low,
            "high": self.high,
            "volume_24h": self.volume_24h,
            "spread_pct": round2(self.spread_pct),
            "net_spread_pct": round2(self.net_spread_pct),
            "net_profit_per_unit": self.net_profit_per_unit,
            "net_roi_pct": round2(self.net_roi_pct),
            "planned_quantity": self.planned_quantity,
            "expected_profit": self.expected_profit,
        }


@dataclass(frozen=True)
class MeanReversionCandidate:
    """Instrument trading below its baseline by at least the entry deviation."""
    instrument_id: int
    name: str
    current_low: int
    baseline: float
    baseline_mode: BaselineMode
    deviation_pct: float
    exit_target: int
    expected_profit_per_unit: int
    planned_quantity: int

    def to_row(self) -> Dict[str, Any]:
        return {
            "instrument_id": self.instrument_id,
            "name": self.name,
            "current_low": self.current_low,
            "baseline": round2(self.baseline),
            "baseline_mode": self.baseline_mode.value,
            "deviation_pct": round2(self.deviation_pct),
            "exit_target": self.exit_target,
            "expected_profit_per_unit": self.expected_profit_per_unit,
            "planned_quantity": self.planned_quantity,
        }


@dataclass(frozen=True)
class PairSignal:
    """
    Relative-value entry on a registered pair.

    The cheap leg is the one to buy. The rich leg is bookkeeping only;
    no short position is ever taken.

    Attributes
    ----------
    long_a_short_b : bool
        True when z > 0, i.e. leg A is the cheap leg
    cheap_leg : int
        Instrument id to buy
    """
    key: PairKey
    name_a: str
    name_b: str
    dev_a: float
    dev_b: float
    spread: float
    z_score: float
    correlation: float
    long_a_short_b: bool
    cheap_leg: int
    expected_profit_per_unit: int
    planned_quantity: int

    def to_row(self) -> Dict[str, Any]:
        return {
            "pair": str(self.key),
            "name_a": self.name_a,
            "name_b": self.name_b,
            "dev_a": round2(self.dev_a),
            "dev_b": round2(self.dev_b),
            "spread": round2(self.spread),
            "z_score": round2(self.z_score),
            "correlation": round2(self.correlation),
            "long_a_short_b": self.long_a_short_b,
            "cheap_leg": self.cheap_leg,
            "expected_profit_per_unit": self.expected_profit_per_unit,
            "planned_quantity": self.planned_quantity,
        }


@dataclass(frozen=True)
class PairCandidate:
    """Highly correlated pair surfaced by the discovery scan."""
    key: PairKey
    name_a: str
    name_b: str
    correlation: float
    samples: int
    dev_a: float
    dev_b: float
    spread: float
    spread_z: Optional[float]
    combined_volume_24h: int

    @property
    def abs_z(self) -> float:
        """|spread_z|, with a missing z-score treated as 0."""
        return 0.0 if self.spread_z is None else abs(self.spread_z)

    def to_row(self) -> Dict[str, Any]:
        return {
            "pair": str(self.key),
            "name_a": self.name_a,
            "name_b": self.name_b,
            "correlation": round4(self.correlation),
            "samples": self.samples,
            "dev_a": round2(self.dev_a),
            "dev_b": round2(self.dev_b),
            "spread": round2(self.spread),
            "spread_z": round2_optional(self.spread_z),
            "combined_volume_24h": self.combined_volume_24h,
        }
