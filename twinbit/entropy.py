"""
Entropy Sources
===============

Bit providers for the two streams. The engine calls ``draw_bits(n)`` twice
per tick, stream A first, and only needs n uniform bits back as a numpy
array of 0/1.

Sources:
    NumpyEntropySource      numpy PCG64 generator, seedable
    CupyEntropySource       cupy.random on the GPU, copied back to host
    RecordedEntropySource   replays a stored bit array, wrapping at the end
    CoupledEntropySource    injects a known A/B coupling and per-stream bias

License: BSL 1.1
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

# Try GPU acceleration
try:
    import cupy as cp
    HAS_CUDA = True
except ImportError:
    cp = None
    HAS_CUDA = False


class EntropySource(ABC):
    """Anything that can hand out uniform bits."""

    name = "entropy"

    @abstractmethod
    def draw_bits(self, n: int) -> np.ndarray:
        """Return n bits as a uint8 array of 0/1."""

    def reseed(self, seed: Optional[int] = None):
        """Restart the generator. Sources without state ignore this."""


class NumpyEntropySource(EntropySource):
    name = "numpy"

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)

    def draw_bits(self, n: int) -> np.ndarray:
        return self.rng.integers(0, 2, size=n, dtype=np.uint8)

    def reseed(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)


class CupyEntropySource(EntropySource):
    """GPU bits. Raises RuntimeError when no CUDA device is usable."""

    name = "cupy"

    def __init__(self, seed: Optional[int] = None):
        if not HAS_CUDA:
            raise RuntimeError("CUDA not available (cupy not installed)")
        self.seed = seed
        self.rng = cp.random.RandomState(seed)

    def draw_bits(self, n: int) -> np.ndarray:
        bits = self.rng.randint(0, 2, size=n, dtype=cp.int32)
        return cp.asnumpy(bits).astype(np.uint8)

    def reseed(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = cp.random.RandomState(seed)


class RecordedEntropySource(EntropySource):
    """Replays bits in order; both streams read from the same tape."""

    name = "recorded"

    def __init__(self, bits):
        tape = np.asarray(bits).ravel()
        if tape.size == 0:
            raise ValueError("recorded source needs at least one bit")
        self.tape = (tape != 0).astype(np.uint8)
        self.position = 0

    def draw_bits(self, n: int) -> np.ndarray:
        idx = (self.position + np.arange(n)) % self.tape.size
        self.position = int((self.position + n) % self.tape.size)
        return self.tape[idx]

    def reseed(self, seed: Optional[int] = None):
        self.position = 0


class CoupledEntropySource(EntropySource):
    """Two-stream source with a controllable dependence between A and B.

    Draws alternate: the first call of a pair returns A, the second returns B.
    B copies A's bit with probability |coupling| (inverted when coupling is
    negative) and is otherwise an independent draw. bias_a / bias_b shift
    each stream's probability of a 1 away from 0.5.
    """

    name = "coupled"

    def __init__(self, coupling: float = 0.0, bias_a: float = 0.0,
                 bias_b: float = 0.0, seed: Optional[int] = None):
        if not -1.0 <= coupling <= 1.0:
            raise ValueError("coupling must be in [-1, 1]")
        if not (-0.5 <= bias_a <= 0.5 and -0.5 <= bias_b <= 0.5):
            raise ValueError("bias must be in [-0.5, 0.5]")
        self.coupling = coupling
        self.bias_a = bias_a
        self.bias_b = bias_b
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self._last_a: Optional[np.ndarray] = None

    def draw_bits(self, n: int) -> np.ndarray:
        if self._last_a is None or self._last_a.size != n:
            a = (self.rng.random(n) < 0.5 + self.bias_a).astype(np.uint8)
            self._last_a = a
            return a

        a = self._last_a
        self._last_a = None
        b = (self.rng.random(n) < 0.5 + self.bias_b).astype(np.uint8)
        copy = self.rng.random(n) < abs(self.coupling)
        source = a if self.coupling >= 0 else 1 - a
        return np.where(copy, source, b).astype(np.uint8)

    def reseed(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self._last_a = None
