"""
Execution cost modeling.

Order placement is handled downstream; this package only models the
friction (fee + slippage) the engines subtract before computing net profit.

Usage
-----
>>> from flipper.execution import PercentFrictionModel
>>> PercentFrictionModel(1.2).net_sell_price(10_000)
9880
"""

from flipper.execution.cost_models import (
    SellFrictionModel,
    PercentFrictionModel,
    pct_of,
)

__all__ = [
    "SellFrictionModel",
    "PercentFrictionModel",
    "pct_of",
]
