"""
Cumulative Deviation Tracker
============================

Bounded random-walk history addressed by absolute tick number.

Each series is a ring buffer whose slot for tick t is ``t % capacity``.
Dropping the oldest entry never renumbers anything: ``at(t)`` means the same
tick before and after a trim, and asking for a tick that has been trimmed
away (or not produced yet) is an error rather than a silent shift.

License: BSL 1.1
"""

from dataclasses import dataclass
from typing import Dict, Iterable

import numpy as np

from .aggregate import TickAggregate


class CumulativeSeries:
    """Running total of one per-tick contribution."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._buf = np.zeros(capacity, dtype=np.float64)
        self.end_tick = 0
        self.length = 1           # Tick 0 holds the reseed value 0

    @classmethod
    def from_values(cls, values: Iterable[float], capacity: int = None) -> 'CumulativeSeries':
        """Series whose tick 0 is values[0], tick i is values[i]."""
        vals = np.asarray(list(values), dtype=np.float64)
        if vals.size == 0:
            raise ValueError("from_values needs at least one value")
        series = cls(capacity or vals.size)
        series._buf[0] = vals[0]
        for v in vals[1:]:
            series._push(v)
        return series

    @property
    def base_tick(self) -> int:
        """Oldest tick still held."""
        return self.end_tick - self.length + 1

    @property
    def last(self) -> float:
        return float(self._buf[self.end_tick % self.capacity])

    def __len__(self) -> int:
        return self.length

    def contains(self, tick: int) -> bool:
        return self.base_tick <= tick <= self.end_tick

    def append(self, contribution: float) -> float:
        """Add contribution on top of the latest total. Returns the new total."""
        return self._push(self.last + contribution)

    def _push(self, value: float) -> float:
        self.end_tick += 1
        self._buf[self.end_tick % self.capacity] = value
        self.length = min(self.length + 1, self.capacity)
        return value

    def at(self, tick: int) -> float:
        if not self.contains(tick):
            raise IndexError(f"tick {tick} outside [{self.base_tick}, {self.end_tick}]")
        return float(self._buf[tick % self.capacity])

    def take(self, ticks: np.ndarray) -> np.ndarray:
        """Vectorized at() for an array of ticks already known to be held."""
        ticks = np.asarray(ticks, dtype=np.int64)
        if ticks.size and (ticks.min() < self.base_tick or ticks.max() > self.end_tick):
            raise IndexError(f"ticks outside [{self.base_tick}, {self.end_tick}]")
        return self._buf[ticks % self.capacity]

    def values(self) -> np.ndarray:
        """Held totals, oldest first."""
        return self.take(np.arange(self.base_tick, self.end_tick + 1))

    def resize(self, capacity: int):
        """Change capacity, keeping the newest entries and their tick numbers."""
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        keep = min(self.length, capacity)
        ticks = np.arange(self.end_tick - keep + 1, self.end_tick + 1)
        kept = self.take(ticks)

        self.capacity = capacity
        self._buf = np.zeros(capacity, dtype=np.float64)
        self._buf[ticks % capacity] = kept
        self.length = keep


# =============================================================================
# TRACKER
# =============================================================================

@dataclass
class DeviationSeries:
    """The four walks the searches read from."""
    a: CumulativeSeries          # Sum of +/-1 over stream A
    b: CumulativeSeries          # Sum of +/-1 over stream B
    agreement: CumulativeSeries  # Agreements minus N/2
    xy: CumulativeSeries         # Sum of x*y

    @classmethod
    def fresh(cls, capacity: int) -> 'DeviationSeries':
        return cls(
            a=CumulativeSeries(capacity),
            b=CumulativeSeries(capacity),
            agreement=CumulativeSeries(capacity),
            xy=CumulativeSeries(capacity),
        )

    @property
    def current_tick(self) -> int:
        return self.a.end_tick

    def append(self, agg: TickAggregate) -> int:
        """Record one tick. Returns its tick index."""
        self.a.append(agg.sum_x)
        self.b.append(agg.sum_y)
        self.agreement.append(agg.agreement_deviation)
        self.xy.append(agg.sum_xy)
        return self.current_tick

    def resize(self, capacity: int):
        for series in self.as_dict().values():
            series.resize(capacity)

    def as_dict(self) -> Dict[str, CumulativeSeries]:
        return {'a': self.a, 'b': self.b, 'agreement': self.agreement, 'xy': self.xy}
