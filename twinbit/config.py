"""
Engine Configuration
====================

Preset tables and the engine configuration dataclass.

Sensitivity presets trade event frequency against false positives: a higher
sensitivity lowers every z threshold. Light-mode presets only change how the
smoothed outputs feel (rise/fall time constants, switching hysteresis); they
never change the statistics.

License: BSL 1.1
"""

import logging
import math
from dataclasses import dataclass, asdict, fields, replace
from enum import Enum
from typing import Dict

logger = logging.getLogger(__name__)


class Sensitivity(Enum):
    """How readily channels activate."""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    ENGAGING = "engaging"


class LightMode(Enum):
    """Smoothing feel of the render-facing outputs."""
    WOW = "wow"
    MELLOW = "mellow"


class Speed(Enum):
    """Time-constant multiplier applied on top of a light mode."""
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class PairStrategy(Enum):
    """How the four two-stream channels pick their shared segment."""
    COMMON_START = "common_start"   # Independent searches, shared later start
    JOINT = "joint"                 # One scan scoring both streams together


# =============================================================================
# PRESETS
# =============================================================================

@dataclass(frozen=True)
class SensitivityPreset:
    """Statistical thresholds selected by a Sensitivity."""
    z_start: float              # |z| at which strength leaves 0
    z_full: float               # |z| at which strength reaches 1
    stick_z_start: float        # Stricter pair for agreement (rarer)
    stick_z_full: float
    episode_z: float            # |z| that opens an episode
    dominance_threshold: float  # Smoothed strength needed to take dominance

    def pair_for(self, stick: bool = False):
        if stick:
            return self.stick_z_start, self.stick_z_full
        return self.z_start, self.z_full


@dataclass(frozen=True)
class ModePreset:
    """Smoothing time constants (seconds) and arbitration hysteresis."""
    sig_rise_s: float
    sig_fall_s: float
    strength_rise_s: float
    strength_fall_s: float
    dominance_rise_s: float
    dominance_fall_s: float
    spin_tau_s: float
    switch_margin: float        # How much stronger a challenger must be
    keep_bonus: float           # Bonus credited to the current dominant

    def scaled(self, factor: float) -> 'ModePreset':
        """Return a copy with every time constant multiplied by factor."""
        return replace(
            self,
            sig_rise_s=self.sig_rise_s * factor,
            sig_fall_s=self.sig_fall_s * factor,
            strength_rise_s=self.strength_rise_s * factor,
            strength_fall_s=self.strength_fall_s * factor,
            dominance_rise_s=self.dominance_rise_s * factor,
            dominance_fall_s=self.dominance_fall_s * factor,
            spin_tau_s=self.spin_tau_s * factor,
        )


SENSITIVITY_PRESETS: Dict[Sensitivity, SensitivityPreset] = {
    Sensitivity.CONSERVATIVE: SensitivityPreset(
        z_start=2.0, z_full=3.5,
        stick_z_start=2.6, stick_z_full=4.0,
        episode_z=2.5,
        dominance_threshold=0.25,
    ),
    Sensitivity.MODERATE: SensitivityPreset(
        z_start=1.6, z_full=3.0,
        stick_z_start=2.2, stick_z_full=3.6,
        episode_z=2.0,
        dominance_threshold=0.18,
    ),
    Sensitivity.ENGAGING: SensitivityPreset(
        z_start=1.2, z_full=2.5,
        stick_z_start=1.8, stick_z_full=3.2,
        episode_z=1.6,
        dominance_threshold=0.12,
    ),
}

MODE_PRESETS: Dict[LightMode, ModePreset] = {
    LightMode.WOW: ModePreset(
        sig_rise_s=0.6, sig_fall_s=2.5,
        strength_rise_s=0.4, strength_fall_s=1.5,
        dominance_rise_s=0.5, dominance_fall_s=2.0,
        spin_tau_s=0.8,
        switch_margin=0.08, keep_bonus=0.04,
    ),
    LightMode.MELLOW: ModePreset(
        sig_rise_s=1.5, sig_fall_s=5.0,
        strength_rise_s=1.0, strength_fall_s=3.0,
        dominance_rise_s=1.2, dominance_fall_s=4.0,
        spin_tau_s=2.0,
        switch_margin=0.12, keep_bonus=0.06,
    ),
}

SPEED_FACTORS: Dict[Speed, float] = {
    Speed.SLOW: 2.0,
    Speed.NORMAL: 1.0,
    Speed.FAST: 0.5,
}

_ENUM_FIELDS = {
    'sensitivity': Sensitivity,
    'mode': LightMode,
    'speed': Speed,
    'pair_strategy': PairStrategy,
}


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class EngineConfig:
    """Everything a tick needs besides state. Immutable; swap between ticks."""
    sample_bits: int = 200            # Bits per stream per tick
    updates_per_sec: float = 1.0      # Logic tick rate
    lookback: int = 120               # Ticks searched backward
    min_segment_len: int = 5          # Shortest segment considered (ticks)
    history_margin: int = 8           # Extra history kept beyond lookback
    max_catchup_ticks: int = 8        # Tick cap per frame after a stall
    sensitivity: Sensitivity = Sensitivity.MODERATE
    mode: LightMode = LightMode.WOW
    speed: Speed = Speed.NORMAL
    pair_strategy: PairStrategy = PairStrategy.COMMON_START
    coherence_floor: float = 0.35     # p at or above this reads as "nothing"
    surprisal_max: float = 4.0        # -log10(p) mapped to full significance
    episode_decay: float = 0.8        # Restart episode below this * peak
    episode_hold: float = 0.7         # Strength floor while active, * peak

    @property
    def history_capacity(self) -> int:
        return self.lookback + self.history_margin

    @property
    def sensitivity_preset(self) -> SensitivityPreset:
        return SENSITIVITY_PRESETS[self.sensitivity]

    @property
    def mode_preset(self) -> ModePreset:
        return MODE_PRESETS[self.mode].scaled(SPEED_FACTORS[self.speed])

    def validated(self) -> 'EngineConfig':
        """Return a config safe to run, replacing unusable fields with defaults.

        min_segment_len > lookback and sample_bits < 1 would leave the engine
        without any candidate window; they are never allowed through.
        """
        defaults = EngineConfig()
        changes = {}

        if self.sample_bits < 1:
            changes['sample_bits'] = defaults.sample_bits
        if not self.updates_per_sec > 0:
            changes['updates_per_sec'] = defaults.updates_per_sec
        if self.lookback < 1:
            changes['lookback'] = defaults.lookback
        if self.min_segment_len < 1:
            changes['min_segment_len'] = defaults.min_segment_len
        if self.history_margin < 1:
            changes['history_margin'] = defaults.history_margin
        if self.max_catchup_ticks < 1:
            changes['max_catchup_ticks'] = defaults.max_catchup_ticks
        if not 0.0 < self.coherence_floor < 1.0:
            changes['coherence_floor'] = defaults.coherence_floor
        if self.surprisal_max <= -math.log10(changes.get('coherence_floor', self.coherence_floor)):
            changes['surprisal_max'] = defaults.surprisal_max
        if not 0.0 < self.episode_decay <= 1.0:
            changes['episode_decay'] = defaults.episode_decay
        if not 0.0 <= self.episode_hold <= 1.0:
            changes['episode_hold'] = defaults.episode_hold

        lookback = changes.get('lookback', self.lookback)
        min_len = changes.get('min_segment_len', self.min_segment_len)
        if min_len > lookback:
            changes['lookback'] = defaults.lookback
            changes['min_segment_len'] = defaults.min_segment_len

        if not changes:
            return self

        for name, value in changes.items():
            logger.warning("Rejected %s=%r, using default %r",
                           name, getattr(self, name), value)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        d = asdict(self)
        for name in _ENUM_FIELDS:
            d[name] = d[name].value
        return d

    @classmethod
    def from_dict(cls, d: dict) -> 'EngineConfig':
        """Build from plain values; preset names are looked up by value.

        Raises ValueError for an unknown preset name or field.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")

        kwargs = dict(d)
        for name, enum_cls in _ENUM_FIELDS.items():
            if name in kwargs and not isinstance(kwargs[name], enum_cls):
                kwargs[name] = enum_cls(kwargs[name])
        return cls(**kwargs)