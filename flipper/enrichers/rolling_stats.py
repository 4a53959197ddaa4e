"""
Rolling statistics over fixed-capacity windows.

RollingStatisticsBuffer is a circular buffer of floats with streaming
mean, sample standard deviation, Pearson correlation and last value. The
engines keep one per instrument (or per pair) and feed it one value per
tick.

"""

from typing import Optional

import numpy as np


def deviation_pct(reference: float, current: float) -> float:
    """
    Percentage that current sits below reference.

    Positive = cheaper than the reference. Returns 0.0 for a non-positive
    reference.
    """
    if reference <= 0:
        return 0.0
    return (reference - current) * 100.0 / reference


def _is_flat(values: np.ndarray) -> bool:
    """True when every value in the window is identical (zero variance)."""
    return values.size == 0 or bool(np.all(values == values[0]))


class RollingStatisticsBuffer:
    """
    Fixed-capacity circular buffer with windowed statistics.

    Values are stored as given: no NaN or sign validation. Once full, each
    add() overwrites the oldest value.

    Parameters
    ----------
    capacity : int
        Maximum number of values held (must be > 0)

    Examples
    --------
    >>> buf = RollingStatisticsBuffer(3)
    >>> for v in (1.0, 2.0, 3.0, 4.0):
    ...     buf.add(v)
    >>> buf.size(), buf.mean(), buf.last()
    (3, 3.0, 4.0)
    >>> buf.mean(2)
    3.5
    """

    __slots__ = ("_values", "_head", "_size")

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")
        self._values = np.zeros(int(capacity), dtype=np.float64)
        self._head = 0
        self._size = 0

    def capacity(self) -> int:
        return self._values.shape[0]

    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def add(self, value: float) -> None:
        """Append a value, overwriting the oldest one when full."""
        self._values[self._head] = value
        self._head = (self._head + 1) % self._values.shape[0]
        if self._size < self._values.shape[0]:
            self._size += 1

    def _tail(self, n: Optional[int]) -> np.ndarray:
        """The n most recent values in insertion order, n clamped to [0, size]."""
        n = self._size if n is None else max(0, min(int(n), self._size))
        idx = (self._head - n + np.arange(n)) % self._values.shape[0]
        return self._values[idx]

    def values(self) -> np.ndarray:
        """Copy of all held values, oldest first."""
        return self._tail(None).copy()

    def mean(self, n: Optional[int] = None) -> float:
        """
        Mean of the n most recent values (default: all).

        Returns 0.0 when the window is empty; callers must treat that as
        "no data" when size() == 0.
        """
        window = self._tail(n)
        if window.size == 0:
            return 0.0
        return float(window.mean())

    def std(self, n: Optional[int] = None) -> float:
        """
        Sample standard deviation (n-1 denominator) of the n most recent values.

        Returns 0.0 for fewer than 2 values or a constant window.
        """
        window = self._tail(n)
        if window.size < 2 or _is_flat(window):
            return 0.0
        return float(np.std(window, ddof=1))

    def zscore(self, value: float, n: Optional[int] = None) -> Optional[float]:
        """
        Standard score of value against the window, or None if std is 0.
        """
        sd = self.std(n)
        if sd <= 0:
            return None
        return (value - self.mean(n)) / sd

    def correlation(self, other: "RollingStatisticsBuffer") -> float:
        """
        Pearson correlation with another buffer.

        Pairs samples most-recent-first over min(self.size(), other.size())
        values. Returns 0.0 with fewer than 2 aligned samples or when either
        leg has zero variance.
        """
        n = min(self._size, other._size)
        if n < 2:
            return 0.0

        x = self._tail(n)
        y = other._tail(n)
        if _is_flat(x) or _is_flat(y):
            return 0.0

        dx = x - x.mean()
        dy = y - y.mean()
        denom_x = float(np.dot(dx, dx))
        denom_y = float(np.dot(dy, dy))
        if denom_x == 0.0 or denom_y == 0.0:
            return 0.0
        return float(np.dot(dx, dy)) / float(np.sqrt(denom_x * denom_y))

    def last(self) -> float:
        """Most recently added value, or 0.0 when empty."""
        if self._size == 0:
            return 0.0
        return float(self._values[self._head - 1])

    def __repr__(self) -> str:
        return f"RollingStatisticsBuffer(capacity={self.capacity()}, size={self._size})"
