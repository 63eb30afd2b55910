"""
Dominance Arbiter
=================

Picks which channel the display follows, with hysteresis.

A challenger only takes over from an established channel when its smoothed
strength beats the incumbent's strength plus keep_bonus by more than
switch_margin. Leaving baseline needs nothing beyond crossing the dominance
threshold.

License: BSL 1.1
"""

from dataclasses import dataclass, replace
from typing import Mapping

from .channels import Channel, SIGNAL_CHANNELS


@dataclass(frozen=True)
class DominanceState:
    dominant: Channel = Channel.BASELINE
    magnitude: float = 0.0        # Smoothed toward target every frame
    target: float = 0.0           # Strength of the dominant channel


def best_channel(strengths: Mapping[Channel, float]):
    """Strongest signal channel; ties go to the earliest in SIGNAL_CHANNELS."""
    best, best_v = Channel.BASELINE, 0.0
    for channel in SIGNAL_CHANNELS:
        v = strengths.get(channel, 0.0)
        if v > best_v:
            best, best_v = channel, v
    return best, best_v


def arbitrate(state: DominanceState, strengths: Mapping[Channel, float],
              dominance_threshold: float, keep_bonus: float,
              switch_margin: float) -> DominanceState:
    """One arbitration step over smoothed strengths. Does not touch magnitude."""
    best, best_v = best_channel(strengths)
    candidate = best if best_v > dominance_threshold else Channel.BASELINE

    dominant = state.dominant
    if dominant.is_baseline:
        if not candidate.is_baseline:
            dominant = candidate
    elif not candidate.is_baseline and candidate is not dominant:
        current = strengths.get(dominant, 0.0) + keep_bonus
        if strengths.get(candidate, 0.0) > current + switch_margin:
            dominant = candidate

    target = 0.0 if dominant.is_baseline else strengths.get(dominant, 0.0)
    return replace(state, dominant=dominant, target=target)
