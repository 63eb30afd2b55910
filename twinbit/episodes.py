"""
Episode Tracker
===============

Gives each channel temporal persistence so its strength does not chatter
around a threshold.

Lifecycle per channel:
    never started  start_tick is None, only the instantaneous |z| is kept
    active         |z| first exceeded the episode threshold; peak_z tracks
                   the highest |z| since start_tick
    restart        |z| fell below decay * peak_z: start_tick moves to the
                   current tick and peak_z restarts from |z|

While active the exposed z is floored at hold * peak_z so a short dip does
not collapse the channel mid-episode.

License: BSL 1.1
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from .channels import Channel, SIGNAL_CHANNELS


@dataclass
class Episode:
    start_tick: Optional[int] = None
    peak_z: float = 0.0
    current_z: float = 0.0
    strength: float = 0.0

    @property
    def started(self) -> bool:
        return self.start_tick is not None

    def duration(self, tick: int) -> int:
        """Ticks since the episode started; 0 while not active."""
        if self.start_tick is None:
            return 0
        return max(0, tick - self.start_tick)


class EpisodeTracker:
    """Fixed table of one Episode per signal channel."""

    def __init__(self, threshold: float, decay: float = 0.8, hold: float = 0.7,
                 channels: Iterable[Channel] = SIGNAL_CHANNELS):
        self.threshold = threshold
        self.decay = decay
        self.hold = hold
        self.episodes: Dict[Channel, Episode] = {ch: Episode() for ch in channels}

    def __getitem__(self, channel: Channel) -> Episode:
        return self.episodes[channel]

    def configure(self, threshold: float, decay: float, hold: float):
        """Swap thresholds between ticks without losing running episodes."""
        self.threshold = threshold
        self.decay = decay
        self.hold = hold

    def update(self, channel: Channel, z: float, tick: int) -> float:
        """Feed this tick's z. Returns the effective |z| to map to strength."""
        ep = self.episodes[channel]
        az = abs(z)
        ep.current_z = az

        if not self._active(ep):
            if az <= self.threshold:
                return az
            ep.start_tick = tick
            ep.peak_z = az
        elif az > ep.peak_z:
            ep.peak_z = az
        elif az < self.decay * ep.peak_z:
            ep.start_tick = tick
            ep.peak_z = az
            if not self._active(ep):
                return az

        return max(az, self.hold * ep.peak_z)

    def _active(self, ep: Episode) -> bool:
        return ep.start_tick is not None and ep.peak_z >= self.threshold

    def is_active(self, channel: Channel) -> bool:
        return self._active(self.episodes[channel])

    def duration(self, channel: Channel, tick: int) -> int:
        if not self.is_active(channel):
            return 0
        return self.episodes[channel].duration(tick)

    def reset(self):
        for channel in self.episodes:
            self.episodes[channel] = Episode()
