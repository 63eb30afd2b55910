"""
Starting-Point Search
=====================

Retrospective change-point detection over a cumulative series.

For the current tick ``cur`` every candidate start ``s`` in
``[max(base, cur - lookback), cur - min_len]`` is scored by the z of the
segment ``(s, cur]``; the best-scoring start wins. Scoring is vectorized over
all candidates, which is O(lookback) per call. ``np.argmax`` returns the first
maximum, so ties resolve to the earliest start exactly as an ascending scan
with a strict ``>`` comparison would.

A search with no candidate, or whose best score is 0, reports ``z = 0`` and
``start = cur`` ("no signal").

Variance per bit is 1 for the +/-1 streams and 1/4 for an agreement count
(binomial with p = 1/2).

License: BSL 1.1
"""

from dataclasses import dataclass

import numpy as np

from .series import CumulativeSeries
from .stats import VARIANCE_FLOOR, fisher_z

AGREEMENT_VARIANCE = 0.25


@dataclass
class SegmentResult:
    start: int
    z: float


@dataclass
class PearsonResult:
    start: int
    z: float
    r: float


@dataclass
class PairResult:
    """Best segment per two-stream pattern. z values are non-negative."""
    high: SegmentResult          # Both streams toward 1s
    low: SegmentResult           # Both streams toward 0s
    ab: SegmentResult            # A toward 1s, B toward 0s
    ba: SegmentResult            # B toward 1s, A toward 0s


def candidate_starts(series: CumulativeSeries, cur: int,
                     lookback: int, min_len: int) -> np.ndarray:
    """Candidate start ticks, ascending. Empty when none is valid."""
    lo = max(series.base_tick, cur - lookback)
    hi = cur - min_len
    if hi < lo:
        return np.empty(0, dtype=np.int64)
    return np.arange(lo, hi + 1, dtype=np.int64)


def _span_sigma(starts: np.ndarray, cur: int, bits_per_tick: int,
                variance_per_bit: float) -> np.ndarray:
    return np.sqrt((cur - starts) * bits_per_tick * variance_per_bit)


def _best(starts: np.ndarray, scores: np.ndarray, z: np.ndarray, cur: int) -> SegmentResult:
    if starts.size == 0:
        return SegmentResult(start=cur, z=0.0)
    i = int(np.argmax(scores))
    if not scores[i] > 0:
        return SegmentResult(start=cur, z=0.0)
    return SegmentResult(start=int(starts[i]), z=float(z[i]))


def segment_z(series: CumulativeSeries, start: int, cur: int, bits_per_tick: int,
              variance_per_bit: float = 1.0) -> float:
    """z of the fixed segment (start, cur]. Zero for an empty segment."""
    span = cur - start
    if span <= 0:
        return 0.0
    delta = series.at(cur) - series.at(start)
    return float(delta / np.sqrt(span * bits_per_tick * variance_per_bit))


def find_starting_point(series: CumulativeSeries, cur: int, bits_per_tick: int,
                        lookback: int, min_len: int,
                        variance_per_bit: float = 1.0) -> SegmentResult:
    """Start maximizing |z| over the window; z keeps its sign."""
    starts = candidate_starts(series, cur, lookback, min_len)
    if starts.size == 0:
        return SegmentResult(start=cur, z=0.0)

    delta = series.at(cur) - series.take(starts)
    z = delta / _span_sigma(starts, cur, bits_per_tick, variance_per_bit)
    return _best(starts, np.abs(z), z, cur)


def find_starting_point_agreement(series: CumulativeSeries, cur: int, bits_per_tick: int,
                                  lookback: int, min_len: int) -> SegmentResult:
    """One-sided search: only excess agreement counts, z is never negative."""
    starts = candidate_starts(series, cur, lookback, min_len)
    if starts.size == 0:
        return SegmentResult(start=cur, z=0.0)

    delta = series.at(cur) - series.take(starts)
    z = delta / _span_sigma(starts, cur, bits_per_tick, AGREEMENT_VARIANCE)
    return _best(starts, z, z, cur)


def find_starting_point_pearson(xy: CumulativeSeries, a: CumulativeSeries, b: CumulativeSeries,
                                cur: int, bits_per_tick: int,
                                lookback: int, min_len: int) -> PearsonResult:
    """Start maximizing the Fisher z of the windowed Pearson correlation."""
    starts = candidate_starts(xy, cur, lookback, min_len)
    # Only starts every walk still holds
    starts = starts[(starts >= a.base_tick) & (starts >= b.base_tick)]
    if starts.size == 0:
        return PearsonResult(start=cur, z=0.0, r=0.0)

    n_bits = (cur - starts) * bits_per_tick
    sum_xy = xy.at(cur) - xy.take(starts)
    sum_x = a.at(cur) - a.take(starts)
    sum_y = b.at(cur) - b.take(starts)

    mean_x = sum_x / n_bits
    mean_y = sum_y / n_bits
    cov = sum_xy / n_bits - mean_x * mean_y
    # x^2 = y^2 = 1, so E[X^2] = 1
    var_x = np.maximum(VARIANCE_FLOOR, 1.0 - mean_x * mean_x)
    var_y = np.maximum(VARIANCE_FLOOR, 1.0 - mean_y * mean_y)
    r = np.clip(cov / np.sqrt(var_x * var_y), -1.0, 1.0)
    z = fisher_z(r, n_bits)

    scores = np.abs(z)
    i = int(np.argmax(scores))
    if not scores[i] > 0:
        return PearsonResult(start=cur, z=0.0, r=0.0)
    return PearsonResult(start=int(starts[i]), z=float(z[i]), r=float(r[i]))


def find_joint_starting_points(a: CumulativeSeries, b: CumulativeSeries, cur: int,
                               bits_per_tick: int, lookback: int, min_len: int) -> PairResult:
    """Score each start for the four two-stream patterns in a single scan.

    A pattern's score at s is the weaker of the two stream |z| when both
    signs match the pattern, else 0.
    """
    starts = candidate_starts(a, cur, lookback, min_len)
    starts = starts[starts >= b.base_tick]
    if starts.size == 0:
        none = SegmentResult(start=cur, z=0.0)
        return PairResult(high=none, low=none, ab=none, ba=none)

    sigma = _span_sigma(starts, cur, bits_per_tick, 1.0)
    za = (a.at(cur) - a.take(starts)) / sigma
    zb = (b.at(cur) - b.take(starts)) / sigma

    high = np.where((za > 0) & (zb > 0), np.minimum(za, zb), 0.0)
    low = np.where((za < 0) & (zb < 0), np.minimum(-za, -zb), 0.0)
    ab = np.where((za > 0) & (zb < 0), np.minimum(za, -zb), 0.0)
    ba = np.where((za < 0) & (zb > 0), np.minimum(-za, zb), 0.0)

    return PairResult(
        high=_best(starts, high, high, cur),
        low=_best(starts, low, low, cur),
        ab=_best(starts, ab, ab, cur),
        ba=_best(starts, ba, ba, cur),
    )
