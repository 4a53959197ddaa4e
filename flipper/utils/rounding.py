"""
Presentation rounding.

Half-up rounding for display columns. Gating and ranking always use the
unrounded values.
"""

import math
from typing import Optional

from flipper.constants import CORRELATION_DECIMALS, PRICE_DECIMALS


def round_half_up(value: float, decimals: int) -> float:
    """Round half away from negative infinity, matching exchange-style display."""
    scale = 10.0 ** decimals
    return math.floor(value * scale + 0.5) / scale


def round2(value: float) -> float:
    return round_half_up(value, PRICE_DECIMALS)


def round4(value: float) -> float:
    return round_half_up(value, CORRELATION_DECIMALS)


def round2_optional(value: Optional[float]) -> Optional[float]:
    return None if value is None else round2(value)
