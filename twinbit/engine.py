"""
Signal Engine
=============

Owns the whole mutable state and bridges the two clocks.

Logic clock (updates_per_sec, default 1 Hz), once per tick:
    draw bits -> aggregate -> append series -> detect channels
    -> episodes -> strengths -> calibrate significance -> arbitrate

Render clock (every advance() call), once per frame:
    smooth strengths, sig_energy, dominance magnitude and spin
    -> publish an immutable EngineSnapshot

advance(dt) adds updates_per_sec * dt to a tick budget and drains its integer
part, at most max_catchup_ticks per frame. Time lost beyond that cap after a
stall is dropped, never simulated later.

Usage:
    from twinbit import SignalEngine, NumpyEntropySource

    engine = SignalEngine(source=NumpyEntropySource(seed=1))
    snap = engine.advance(1 / 60)
    print(snap.dominant, snap.sig_energy)

Author: CIRIS L3C
License: BSL 1.1
"""

import logging
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from .aggregate import aggregate
from .arbiter import DominanceState, arbitrate
from .calibration import NullConstants, SignificanceCalibrator, SignificanceState
from .channels import (
    Channel,
    ChannelDetector,
    ChannelState,
    Detection,
    SIGNAL_CHANNELS,
    channel_strength,
    spin_from_pearson,
)
from .config import EngineConfig
from .entropy import EntropySource, NumpyEntropySource
from .episodes import EpisodeTracker
from .series import DeviationSeries
from .smoothing import OutputSmoother

logger = logging.getLogger(__name__)


# =============================================================================
# STATE
# =============================================================================

@dataclass
class EngineState:
    """Everything a reseed throws away."""
    series: DeviationSeries
    episodes: EpisodeTracker
    channels: Dict[Channel, ChannelState] = field(
        default_factory=lambda: {ch: ChannelState() for ch in SIGNAL_CHANNELS})
    significance: SignificanceState = field(default_factory=SignificanceState)
    dominance: DominanceState = field(default_factory=DominanceState)
    detection: Optional[Detection] = None
    pearson_r: float = 0.0
    spin: float = 0.0
    spin_target: float = 0.0
    budget: float = 0.0               # Fractional ticks owed to the logic clock
    frames: int = 0

    @classmethod
    def fresh(cls, config: EngineConfig) -> 'EngineState':
        return cls(
            series=DeviationSeries.fresh(config.history_capacity),
            episodes=EpisodeTracker(
                config.sensitivity_preset.episode_z,
                config.episode_decay,
                config.episode_hold,
            ),
        )

    @property
    def tick(self) -> int:
        return self.series.current_tick


@dataclass(frozen=True)
class EngineSnapshot:
    """Read-only per-frame view. Mappings are keyed by channel value."""
    tick: int
    frames: int
    strengths: Mapping[str, float]
    raw_strengths: Mapping[str, float]
    z: Mapping[str, float]
    dominant: str
    dominant_name: str
    magnitude: float
    sig_energy: float
    significance_target: float
    combined_p: float
    pearson_r: float
    spin: float
    episode_duration: Mapping[str, int]
    episode_peak_z: Mapping[str, float]
    display_names: Mapping[str, str]

    @classmethod
    def from_state(cls, state: EngineState) -> 'EngineSnapshot':
        tick = state.tick
        episodes = state.episodes

        def per_channel(fn):
            return MappingProxyType({ch.value: fn(ch) for ch in SIGNAL_CHANNELS})

        return cls(
            tick=tick,
            frames=state.frames,
            strengths=per_channel(lambda ch: state.channels[ch].smoothed_strength),
            raw_strengths=per_channel(lambda ch: state.channels[ch].raw_strength),
            z=per_channel(lambda ch: state.channels[ch].current_z),
            dominant=state.dominance.dominant.value,
            dominant_name=state.dominance.dominant.display_name,
            magnitude=state.dominance.magnitude,
            sig_energy=state.significance.sig_energy,
            significance_target=state.significance.target,
            combined_p=state.significance.combined_p,
            pearson_r=state.pearson_r,
            spin=state.spin,
            episode_duration=per_channel(lambda ch: episodes.duration(ch, tick)),
            episode_peak_z=per_channel(lambda ch: episodes[ch].peak_z),
            display_names=per_channel(lambda ch: ch.display_name),
        )

    def to_dict(self) -> dict:
        d = {}
        for f in fields(self):
            value = getattr(self, f.name)
            d[f.name] = dict(value) if isinstance(value, Mapping) else value
        return d


# =============================================================================
# ENGINE
# =============================================================================

class SignalEngine:
    """Frame-driven engine. Single-threaded; call advance() from the render loop."""

    def __init__(self, config: EngineConfig = None, source: EntropySource = None,
                 constants: NullConstants = NullConstants()):
        self.config = (config or EngineConfig()).validated()
        self.source = source or NumpyEntropySource()
        self.constants = constants
        self._pending: Optional[EngineConfig] = None
        self._build_components()
        self.state = EngineState.fresh(self.config)

    def _build_components(self):
        cfg = self.config
        self.detector = ChannelDetector(cfg)
        self.calibrator = SignificanceCalibrator.from_config(cfg, self.constants)
        self.smoother = OutputSmoother(cfg.mode_preset)

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    def reseed(self, seed: Optional[int] = None):
        """Cold start: replace all state. A seed also restarts the source."""
        if seed is not None:
            self.source.reseed(seed)
        self.state = EngineState.fresh(self.config)
        logger.info("Engine reseeded (source=%s, seed=%s)", self.source.name, seed)

    def request_config(self, config: EngineConfig):
        """Queue a configuration; it takes effect at the start of the next tick."""
        self._pending = config.validated()

    def _apply_pending(self):
        new, self._pending = self._pending, None
        old = self.config
        if new == old:
            return
        self.config = new
        self._build_components()

        if new.pair_strategy is not old.pair_strategy:
            logger.info("Pair strategy %s -> %s", old.pair_strategy.value, new.pair_strategy.value)

        if new.sample_bits != old.sample_bits:
            # Walks built from a different N are not comparable
            self.reseed()
            return

        state = self.state
        if new.history_capacity != old.history_capacity:
            state.series.resize(new.history_capacity)
        state.episodes.configure(
            new.sensitivity_preset.episode_z, new.episode_decay, new.episode_hold)

    # -------------------------------------------------------------------------
    # Clocks
    # -------------------------------------------------------------------------

    def tick(self) -> Detection:
        """Run one logic tick."""
        if self._pending is not None:
            self._apply_pending()

        cfg = self.config
        state = self.state

        bits_a = self.source.draw_bits(cfg.sample_bits)
        bits_b = self.source.draw_bits(cfg.sample_bits)
        cur = state.series.append(aggregate(bits_a, bits_b))

        detection = self.detector.detect(state.series)
        state.detection = detection

        for channel in SIGNAL_CHANNELS:
            z = detection.z[channel]
            effective = state.episodes.update(channel, z, cur)
            strength = channel_strength(channel, effective, cfg)
            state.episodes[channel].strength = strength

            cs = state.channels[channel]
            cs.raw_strength = strength
            cs.current_z = z
            cs.segment_start_tick = detection.starts[channel]

        self.calibrator.update(state.significance, detection.z)

        state.pearson_r = detection.pearson_r
        state.spin_target = spin_from_pearson(detection.pearson_r, detection.pearson_z, cfg)

        preset = cfg.mode_preset
        state.dominance = arbitrate(
            state.dominance,
            {ch: cs.smoothed_strength for ch, cs in state.channels.items()},
            cfg.sensitivity_preset.dominance_threshold,
            preset.keep_bonus,
            preset.switch_margin,
        )
        return detection

    def frame(self, dt: float):
        """Run one smoothing frame of dt seconds."""
        state = self.state
        self.smoother.channels(state.channels, dt)
        self.smoother.significance(state.significance, dt)
        state.dominance = self.smoother.dominance(state.dominance, dt)
        state.spin = self.smoother.spin(state.spin, state.spin_target, dt)
        state.frames += 1

    def advance(self, dt: float) -> EngineSnapshot:
        """Advance both clocks by dt seconds and return the frame's snapshot."""
        dt = max(0.0, dt)
        state = self.state
        state.budget += self.config.updates_per_sec * dt

        n_ticks = int(state.budget)
        state.budget -= n_ticks
        cap = self.config.max_catchup_ticks
        if n_ticks > cap:
            logger.debug("Dropping %d ticks after stall", n_ticks - cap)
            n_ticks = cap

        for _ in range(n_ticks):
            self.tick()

        # A tick may have reseeded; carry the remaining budget into the new state
        if self.state is not state:
            self.state.budget = state.budget
        self.frame(dt)
        return self.snapshot()

    def run(self, duration_s: float, frame_rate: float = 60.0,
            callback: Callable[[EngineSnapshot], None] = None) -> EngineSnapshot:
        """Simulate frames at a fixed rate without sleeping. Returns the last snapshot."""
        dt = 1.0 / frame_rate
        n_frames = int(round(duration_s * frame_rate))
        snap = self.snapshot()
        for _ in range(n_frames):
            snap = self.advance(dt)
            if callback:
                callback(snap)
        return snap

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot.from_state(self.state)
