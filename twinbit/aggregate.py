"""
Per-tick summary counts of a pair of bit samples.

License: BSL 1.1
"""

from dataclasses import dataclass, asdict

import numpy as np


@dataclass
class TickAggregate:
    """Counts for one tick. X and Y are the bits mapped to +/-1."""
    n_bits: int
    ones_a: int
    ones_b: int
    agree_count: int
    sum_x: int
    sum_y: int
    sum_xy: int

    @property
    def agreement_deviation(self) -> float:
        """Agreements above the N/2 expected by chance."""
        return self.agree_count - self.n_bits / 2.0

    def to_dict(self) -> dict:
        return asdict(self)


def aggregate(bits_a, bits_b) -> TickAggregate:
    """Summarize two bit sequences. Any nonzero value counts as a 1.

    Sequences of unequal length are truncated to the shorter one. An empty
    stream raises ValueError: a zero-bit tick has no z and would poison the
    cumulative walks. Callers keep N positive instead, as
    EngineConfig.validated() does by replacing a sample_bits below 1.
    """
    a = np.asarray(bits_a).ravel() != 0
    b = np.asarray(bits_b).ravel() != 0
    n = min(a.size, b.size)
    if n < 1:
        raise ValueError("aggregate needs at least one bit per stream")
    a = a[:n]
    b = b[:n]

    ones_a = int(np.count_nonzero(a))
    ones_b = int(np.count_nonzero(b))
    agree = int(np.count_nonzero(a == b))

    return TickAggregate(
        n_bits=n,
        ones_a=ones_a,
        ones_b=ones_b,
        agree_count=agree,
        sum_x=2 * ones_a - n,
        sum_y=2 * ones_b - n,
        # x*y is +1 on agreement, -1 otherwise
        sum_xy=2 * agree - n,
    )
