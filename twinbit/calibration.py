"""
Significance Calibrator
=======================

Combines the six channel z-scores into one significance target in [0, 1].

Steps per tick:
1. Two-sided p-value per channel from the normal survival function.
2. Channels whose z is a maximum over many windows (stick, pearson) are
   divided by the median p they show under the null, compensating for the
   inflation the search itself causes.
3. The smallest corrected p is rescaled by the median of the minimum of six
   uniforms, so a pure-noise tick sits around p = 1, then limited from above
   by the coherence floor.
4. Surprisal S = -log10(p) is clamped to [-log10(floor), surprisal_max] and
   remapped linearly onto [0, 1].

The per-frame smoothing of the target into sig_energy lives in smoothing.py.

Null medians below come from estimate_null_constants(EngineConfig(),
n_trials=1500, seed=7), the same run experiments/exp01_null_calibration.py
makes, at the default lookback (120) and min_segment_len (5). Re-run it after
changing either.

License: BSL 1.1
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import numpy as np

from .aggregate import aggregate
from .channels import Channel, ChannelDetector, SIGNAL_CHANNELS
from .config import EngineConfig
from .series import DeviationSeries
from .stats import P_FLOOR, two_sided_p

STICK_NULL_MEDIAN_P = 0.274
PEARSON_NULL_MEDIAN_P = 0.09
MIN_OF_SIX_MEDIAN = 1.0 - 0.5 ** (1.0 / 6.0)     # ~0.1091


@dataclass(frozen=True)
class NullConstants:
    """Medians under a fair-coin null used to de-bias searched channels."""
    stick_median_p: float = STICK_NULL_MEDIAN_P
    pearson_median_p: float = PEARSON_NULL_MEDIAN_P
    min_of_six_median: float = MIN_OF_SIX_MEDIAN

    def search_median(self, channel: Channel) -> Optional[float]:
        if channel is Channel.STICK:
            return self.stick_median_p
        if channel is Channel.PEARSON:
            return self.pearson_median_p
        return None


@dataclass
class SignificanceState:
    target: float = 0.0               # Latest tick's significance
    sig_energy: float = 0.0           # Smoothed toward target every frame
    combined_p: float = 1.0
    surprisal: float = 0.0
    p_values: Dict[Channel, float] = field(default_factory=dict)


class SignificanceCalibrator:
    """Turns per-channel z into a calibrated significance target."""

    def __init__(self, coherence_floor: float = 0.35, surprisal_max: float = 4.0,
                 constants: NullConstants = NullConstants()):
        self.coherence_floor = coherence_floor
        self.surprisal_max = surprisal_max
        self.constants = constants

    @classmethod
    def from_config(cls, config: EngineConfig,
                    constants: NullConstants = NullConstants()) -> 'SignificanceCalibrator':
        return cls(config.coherence_floor, config.surprisal_max, constants)

    @property
    def surprisal_floor(self) -> float:
        return -math.log10(self.coherence_floor)

    def corrected_p(self, channel: Channel, z: float) -> float:
        p = two_sided_p(z)
        median = self.constants.search_median(channel)
        if median:
            p = min(1.0, p / median)
        return p

    def combine(self, p_values: Mapping[Channel, float]) -> float:
        """Family-wise p of the strongest channel, limited by the floor.

        Rescaled by min_of_six_median first, capped at coherence_floor second.
        The target leaves 0 once the smallest p falls below
        coherence_floor * min_of_six_median (about 0.038 with the defaults).
        """
        if not p_values:
            return self.coherence_floor
        p_min = min(p_values.values())
        p = min(1.0, p_min / self.constants.min_of_six_median)
        return max(P_FLOOR, min(p, self.coherence_floor))

    def target_from_p(self, p: float) -> float:
        s = -math.log10(max(P_FLOOR, p))
        s = min(self.surprisal_max, max(self.surprisal_floor, s))
        return (s - self.surprisal_floor) / (self.surprisal_max - self.surprisal_floor)

    def update(self, state: SignificanceState, z_by_channel: Mapping[Channel, float]):
        """Write this tick's p-values, surprisal and target into state."""
        state.p_values = {ch: self.corrected_p(ch, z) for ch, z in z_by_channel.items()}
        state.combined_p = self.combine(state.p_values)
        state.surprisal = -math.log10(state.combined_p)
        state.target = self.target_from_p(state.combined_p)
        return state


# =============================================================================
# NULL ESTIMATION
# =============================================================================

def simulate_null_detections(config: EngineConfig, n_trials: int, rng: np.random.Generator):
    """Yield one Detection per trial of a fair coin filling a fresh history."""
    detector = ChannelDetector(config)
    n_ticks = config.history_capacity
    for _ in range(n_trials):
        series = DeviationSeries.fresh(config.history_capacity)
        bits = rng.integers(0, 2, size=(n_ticks, 2, config.sample_bits), dtype=np.uint8)
        for tick_bits in bits:
            series.append(aggregate(tick_bits[0], tick_bits[1]))
        yield detector.detect(series)


def estimate_null_constants(config: EngineConfig = EngineConfig(), n_trials: int = 400,
                            seed: Optional[int] = None) -> NullConstants:
    """Monte Carlo medians of the searched p-values under a fair coin.

    min_of_six_median is measured after the search correction, so it can be
    compared against the independent-uniform value MIN_OF_SIX_MEDIAN.
    """
    config = config.validated()
    rng = np.random.default_rng(seed)
    detections = list(simulate_null_detections(config, n_trials, rng))

    stick_median = float(np.median([two_sided_p(d.z[Channel.STICK]) for d in detections]))
    pearson_median = float(np.median([two_sided_p(d.z[Channel.PEARSON]) for d in detections]))

    calibrator = SignificanceCalibrator(constants=NullConstants(stick_median, pearson_median))
    corrected_min = [
        min(calibrator.corrected_p(ch, d.z[ch]) for ch in SIGNAL_CHANNELS)
        for d in detections
    ]

    return NullConstants(
        stick_median_p=stick_median,
        pearson_median_p=pearson_median,
        min_of_six_median=float(np.median(corrected_min)),
    )
