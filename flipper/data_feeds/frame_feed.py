"""
Replay feed over a tick-indexed DataFrame.

Each row is one instrument at one tick. Rows are grouped by tick and
turned into MarketSnapshots, so the engines can be driven offline from a
CSV capture exactly as they are driven live.

Required columns: tick, item_id, low, high, volume, avg_low_24h
Optional columns: name, members, buy_limit, avg_high_24h, avg_low_1h,
avg_high_1h, low_time, high_time

"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from flipper.interfaces.instrument import Instrument, IntervalStat, Quote

from .market_snapshot import MarketSnapshot

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("tick", "item_id", "low", "high", "volume", "avg_low_24h")

_OPTIONAL_DEFAULTS = {
    "name": None,
    "members": False,
    "buy_limit": np.nan,
    "avg_high_24h": 0,
    "avg_low_1h": 0,
    "avg_high_1h": 0,
    "low_time": 0,
    "high_time": 0,
}


def _as_int(value, default: int = 0) -> int:
    if value is None or pd.isna(value):
        return default
    return int(value)


class FrameReplayFeed:
    """
    Offline market feed built from a DataFrame.

    Parameters
    ----------
    frame : pd.DataFrame
        Tick-indexed rows (see module docstring for columns)

    Raises
    ------
    ValueError
        If a required column is missing

    Examples
    --------
    >>> feed = FrameReplayFeed.from_csv("capture.csv")
    >>> for tick, snapshot in feed.iter_ticks():
    ...     runner.run_tick(snapshot)
    """

    def __init__(self, frame: pd.DataFrame):
        missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            raise ValueError(f"Replay frame missing columns: {missing}")

        data = frame.copy()
        for column, default in _OPTIONAL_DEFAULTS.items():
            if column not in data.columns:
                data[column] = default
        data = data.sort_values(["tick", "item_id"], kind="mergesort").reset_index(drop=True)

        self._data = data
        self._ticks: List[int] = [int(t) for t in data["tick"].unique()]
        logger.info("Replay feed ready: %d rows, %d ticks, %d instruments",
                    len(data), len(self._ticks), data["item_id"].nunique())

    @classmethod
    def from_csv(cls, path: Union[str, Path], **read_kwargs) -> "FrameReplayFeed":
        """Load a replay capture from CSV."""
        return cls(pd.read_csv(path, **read_kwargs))

    @property
    def ticks(self) -> List[int]:
        return list(self._ticks)

    def __len__(self) -> int:
        return len(self._ticks)

    def _build_snapshot(self, rows: pd.DataFrame, tick: int) -> MarketSnapshot:
        instruments: List[Instrument] = []
        quotes: Dict[int, Quote] = {}
        volumes: Dict[int, int] = {}
        stats_24h: Dict[int, IntervalStat] = {}
        stats_1h: Dict[int, IntervalStat] = {}

        for row in rows.itertuples(index=False):
            item_id = int(row.item_id)
            name = row.name if isinstance(row.name, str) else str(item_id)
            buy_limit = None if pd.isna(row.buy_limit) else int(row.buy_limit)
            members = False if pd.isna(row.members) else bool(row.members)
            instruments.append(Instrument(item_id, name, members=members, buy_limit=buy_limit))

            low, high = _as_int(row.low), _as_int(row.high)
            if low > 0 or high > 0:
                quotes[item_id] = Quote(low, high, _as_int(row.low_time), _as_int(row.high_time))
            if not pd.isna(row.volume):
                volumes[item_id] = int(row.volume)

            avg_low_24h = _as_int(row.avg_low_24h)
            if avg_low_24h > 0:
                stats_24h[item_id] = IntervalStat(_as_int(row.avg_high_24h), avg_low_24h)
            avg_low_1h = _as_int(row.avg_low_1h)
            if avg_low_1h > 0:
                stats_1h[item_id] = IntervalStat(_as_int(row.avg_high_1h), avg_low_1h)

        return MarketSnapshot.build(
            instruments=instruments,
            quotes=quotes,
            volumes=volumes,
            stats_24h=stats_24h,
            stats_1h=stats_1h,
            created_at=float(tick),
        )

    def snapshot_at(self, tick: int) -> Optional[MarketSnapshot]:
        """Snapshot for one tick, or None if the tick is not in the capture."""
        rows = self._data[self._data["tick"] == tick]
        if rows.empty:
            return None
        return self._build_snapshot(rows, tick)

    def iter_ticks(self) -> Iterator[Tuple[int, MarketSnapshot]]:
        """Yield (tick, snapshot) in tick order."""
        for tick, rows in self._data.groupby("tick", sort=True):
            yield int(tick), self._build_snapshot(rows, int(tick))
