"""
Channel Detector
================

Turns the deviation walks into one z per channel.

Channels:
    correlated_high  both streams drift toward 1s over the same segment
    correlated_low   both streams drift toward 0s
    anti_ab          A toward 1s while B drifts toward 0s
    anti_ba          B toward 1s while A drifts toward 0s
    stick            the streams agree more often than chance
    pearson          windowed Pearson correlation of the +/-1 streams

With the common-start pair strategy the four two-stream channels are mutually
exclusive per tick: at most one of them carries a nonzero z. The joint
strategy scores each pattern on its own best segment.

License: BSL 1.1
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict

from .config import EngineConfig, PairStrategy
from .search import (
    find_joint_starting_points,
    find_starting_point,
    find_starting_point_agreement,
    find_starting_point_pearson,
    segment_z,
)
from .series import DeviationSeries
from .stats import clamp01, strength_from_z


class Channel(Enum):
    BASELINE = "baseline"
    CORRELATED_HIGH = "correlated_high"
    CORRELATED_LOW = "correlated_low"
    ANTI_AB = "anti_ab"
    ANTI_BA = "anti_ba"
    STICK = "stick"
    PEARSON = "pearson"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]

    @property
    def is_baseline(self) -> bool:
        return self is Channel.BASELINE


# Everything the detector scores, in arbitration order
SIGNAL_CHANNELS = (
    Channel.CORRELATED_HIGH,
    Channel.CORRELATED_LOW,
    Channel.ANTI_AB,
    Channel.ANTI_BA,
    Channel.STICK,
    Channel.PEARSON,
)

DISPLAY_NAMES: Dict[Channel, str] = {
    Channel.BASELINE: "Baseline",
    Channel.CORRELATED_HIGH: "Correlated \u2191",
    Channel.CORRELATED_LOW: "Correlated \u2193",
    Channel.ANTI_AB: "Diverging A>B",
    Channel.ANTI_BA: "Diverging B>A",
    Channel.STICK: "Agreement",
    Channel.PEARSON: "Pearson",
}


@dataclass
class ChannelState:
    """Per-channel values exposed to arbitration and rendering."""
    raw_strength: float = 0.0         # Latest tick's strength
    smoothed_strength: float = 0.0    # Per-frame smoothed toward raw_strength
    current_z: float = 0.0
    segment_start_tick: int = 0


@dataclass
class Detection:
    """One tick's detector output."""
    tick: int
    z: Dict[Channel, float] = field(default_factory=dict)
    starts: Dict[Channel, int] = field(default_factory=dict)
    pearson_r: float = 0.0
    pearson_z: float = 0.0            # Signed; sign is the spin direction


def channel_strength(channel: Channel, z: float, config: EngineConfig) -> float:
    """Strength in [0, 1] for a channel's |z| under the active sensitivity."""
    z_start, z_full = config.sensitivity_preset.pair_for(stick=channel is Channel.STICK)
    return strength_from_z(z, z_start, z_full)


def spin_from_pearson(r: float, z: float, config: EngineConfig) -> float:
    """Continuous motion signal: sign of r, magnitude from |z| / z_full."""
    if r == 0.0 or z == 0.0:
        return 0.0
    _, z_full = config.sensitivity_preset.pair_for()
    magnitude = clamp01(abs(z) / z_full)
    return magnitude if r > 0 else -magnitude


class ChannelDetector:
    """Runs every starting-point search for the current tick."""

    def __init__(self, config: EngineConfig):
        self.config = config

    def detect(self, series: DeviationSeries) -> Detection:
        cfg = self.config
        cur = series.current_tick
        detection = Detection(tick=cur)

        for channel in SIGNAL_CHANNELS:
            detection.z[channel] = 0.0
            detection.starts[channel] = cur

        if cfg.pair_strategy is PairStrategy.JOINT:
            self._detect_pairs_joint(series, cur, detection)
        else:
            self._detect_pairs_common_start(series, cur, detection)

        stick = find_starting_point_agreement(
            series.agreement, cur, cfg.sample_bits, cfg.lookback, cfg.min_segment_len)
        detection.z[Channel.STICK] = stick.z
        detection.starts[Channel.STICK] = stick.start

        pearson = find_starting_point_pearson(
            series.xy, series.a, series.b, cur,
            cfg.sample_bits, cfg.lookback, cfg.min_segment_len)
        detection.z[Channel.PEARSON] = abs(pearson.z)
        detection.starts[Channel.PEARSON] = pearson.start
        detection.pearson_r = pearson.r
        detection.pearson_z = pearson.z

        return detection

    def _detect_pairs_common_start(self, series: DeviationSeries, cur: int,
                                   detection: Detection):
        cfg = self.config
        sa = find_starting_point(series.a, cur, cfg.sample_bits, cfg.lookback, cfg.min_segment_len)
        sb = find_starting_point(series.b, cur, cfg.sample_bits, cfg.lookback, cfg.min_segment_len)

        common = max(sa.start, sb.start)
        if cur - common < cfg.min_segment_len:
            return

        za = segment_z(series.a, common, cur, cfg.sample_bits)
        zb = segment_z(series.b, common, cur, cfg.sample_bits)
        if za == 0.0 or zb == 0.0:
            return

        weaker = min(abs(za), abs(zb))
        if za > 0 and zb > 0:
            channel = Channel.CORRELATED_HIGH
        elif za < 0 and zb < 0:
            channel = Channel.CORRELATED_LOW
        elif za > 0:
            channel = Channel.ANTI_AB
        else:
            channel = Channel.ANTI_BA

        detection.z[channel] = weaker
        detection.starts[channel] = common

    def _detect_pairs_joint(self, series: DeviationSeries, cur: int,
                            detection: Detection):
        cfg = self.config
        pairs = find_joint_starting_points(
            series.a, series.b, cur, cfg.sample_bits, cfg.lookback, cfg.min_segment_len)

        results = {
            Channel.CORRELATED_HIGH: pairs.high,
            Channel.CORRELATED_LOW: pairs.low,
            Channel.ANTI_AB: pairs.ab,
            Channel.ANTI_BA: pairs.ba,
        }
        for channel, best in results.items():
            detection.z[channel] = best.z
            detection.starts[channel] = best.start
