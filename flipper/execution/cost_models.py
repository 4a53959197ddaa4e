"""
Friction Model for Sell-Side Costs.

Transaction fee plus slippage is modeled as a flat percentage haircut on
the sell price, floored to a whole coin. Spread and pair engines share this
so their profit figures agree.

"""

import math
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class SellFrictionModel(Protocol):
    """
    Protocol for sell-side friction.

    Takes a gross sell price and returns the net amount received.
    """

    def net_sell_price(self, gross_price: float) -> int:
        ...


@dataclass(frozen=True)
class PercentFrictionModel:
    """
    Percentage haircut on the sell side.

    Formula:
        net_sell = floor(gross * (1 - fee_slippage_pct / 100))

    Attributes
    ----------
    fee_slippage_pct : float
        Combined fee and slippage in percent (negative values count as 0)

    Examples
    --------
    >>> PercentFrictionModel(2.0).net_sell_price(120)
    117
    """
    fee_slippage_pct: float = 1.2

    def net_sell_price(self, gross_price: float) -> int:
        pct = max(0.0, self.fee_slippage_pct)
        return int(math.floor(gross_price * (1.0 - pct / 100.0)))


def pct_of(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0.0 for a non-positive denominator."""
    if denominator <= 0:
        return 0.0
    return numerator * 100.0 / denominator
