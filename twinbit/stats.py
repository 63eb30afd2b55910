"""
Numeric helpers shared by the detector, calibrator and smoother.

All functions are total: every reachable input gives a finite result.

License: BSL 1.1
"""

import math

import numpy as np
from scipy import stats

P_FLOOR = 1e-18          # Smallest p-value ever reported
R_CLAMP = 0.999          # Fisher transform is undefined at |r| = 1
VARIANCE_FLOOR = 1e-6


def clamp01(v: float) -> float:
    return min(1.0, max(0.0, v))


def strength_from_z(z: float, z_start: float, z_full: float) -> float:
    """Map |z| linearly onto [0, 1] between z_start and z_full."""
    span = z_full - z_start
    if span <= 0:
        return 1.0 if abs(z) >= z_full else 0.0
    return clamp01((abs(z) - z_start) / span)


def two_sided_p(z: float) -> float:
    """Two-sided normal tail probability, kept inside [P_FLOOR, 1]."""
    p = 2.0 * float(stats.norm.sf(abs(z)))
    return min(1.0, max(P_FLOOR, p))


def z_from_ones(ones: int, n: int) -> float:
    """z of a ones count against a fair coin."""
    if n <= 0:
        return 0.0
    return (ones - n / 2.0) / math.sqrt(n / 4.0)


def fisher_z(r, n_bits):
    """Fisher-transformed significance of a correlation over n_bits samples.

    Works elementwise on arrays. r is clamped to +/-R_CLAMP first.
    """
    rc = np.clip(r, -R_CLAMP, R_CLAMP)
    return np.arctanh(rc) * np.sqrt(np.maximum(1.0, np.asarray(n_bits, dtype=float) - 3.0))


def smoothing_factor(dt: float, tau: float) -> float:
    """k = 1 - exp(-dt / tau); tau <= 0 snaps straight to the target."""
    if tau <= 0:
        return 1.0
    if dt <= 0:
        return 0.0
    return 1.0 - math.exp(-dt / tau)


def approach(current: float, target: float, dt: float,
             tau_rise: float, tau_fall: float) -> float:
    """Exponentially move current toward target with asymmetric time constants."""
    tau = tau_rise if target > current else tau_fall
    return current + (target - current) * smoothing_factor(dt, tau)
