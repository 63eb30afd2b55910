"""
Output Smoother
===============

Per-frame exponential smoothing of everything the renderer reads.

Each value moves toward its latest tick target by k = 1 - exp(-dt / tau),
with tau taken from the active light mode: rise constants when the target is
above the value, fall constants otherwise. Spin uses one symmetric constant.

License: BSL 1.1
"""

from dataclasses import replace
from typing import Dict

from .arbiter import DominanceState
from .calibration import SignificanceState
from .channels import Channel, ChannelState
from .config import ModePreset
from .stats import approach


class OutputSmoother:
    """Applies one frame of smoothing with a fixed mode preset."""

    def __init__(self, preset: ModePreset):
        self.preset = preset

    def channels(self, states: Dict[Channel, ChannelState], dt: float):
        p = self.preset
        for state in states.values():
            state.smoothed_strength = approach(
                state.smoothed_strength, state.raw_strength, dt,
                p.strength_rise_s, p.strength_fall_s)

    def significance(self, state: SignificanceState, dt: float):
        p = self.preset
        state.sig_energy = approach(state.sig_energy, state.target, dt,
                                    p.sig_rise_s, p.sig_fall_s)

    def dominance(self, state: DominanceState, dt: float) -> DominanceState:
        p = self.preset
        magnitude = approach(state.magnitude, state.target, dt,
                             p.dominance_rise_s, p.dominance_fall_s)
        return replace(state, magnitude=magnitude)

    def spin(self, value: float, target: float, dt: float) -> float:
        tau = self.preset.spin_tau_s
        return approach(value, target, dt, tau, tau)
