"""Small numeric helpers."""

from .rounding import round2, round4, round_half_up

__all__ = ["round2", "round4", "round_half_up"]
