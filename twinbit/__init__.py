"""
Twin-Bit Signal Engine
======================

Statistical detection of short-lived dependence between two bit streams.

Usage:
    from twinbit import SignalEngine, EngineConfig, Sensitivity

    engine = SignalEngine(EngineConfig(sensitivity=Sensitivity.ENGAGING))

    while True:
        snap = engine.advance(1 / 60)
        print(f"{snap.dominant_name}: {snap.magnitude:.2f} sig={snap.sig_energy:.2f}")

Components:
    - SignalEngine: Owns state, runs logic ticks and smoothing frames
    - ChannelDetector: Starting-point searches for the six channels
    - EpisodeTracker: Per-channel persistence
    - SignificanceCalibrator: Search-corrected combined significance
    - arbitrate: Dominance selection with hysteresis
    - OutputSmoother: Per-frame exponential smoothing
    - Entropy sources: numpy, cupy, recorded, coupled

Author: CIRIS L3C
License: BSL 1.1
"""

from .config import (
    # Configuration
    EngineConfig,
    Sensitivity,
    LightMode,
    Speed,
    PairStrategy,
    SensitivityPreset,
    ModePreset,
    SENSITIVITY_PRESETS,
    MODE_PRESETS,
)

from .channels import (
    Channel,
    ChannelDetector,
    ChannelState,
    Detection,
    SIGNAL_CHANNELS,
)

from .episodes import Episode, EpisodeTracker
from .calibration import NullConstants, SignificanceCalibrator, SignificanceState
from .arbiter import DominanceState, arbitrate
from .smoothing import OutputSmoother

from .entropy import (
    # Sources
    EntropySource,
    NumpyEntropySource,
    CupyEntropySource,
    RecordedEntropySource,
    CoupledEntropySource,
    HAS_CUDA,
)

from .engine import (
    # Main engine
    SignalEngine,
    EngineState,
    EngineSnapshot,
)

__version__ = "0.1.0"
__author__ = "CIRIS L3C"
