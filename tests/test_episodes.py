"""Tests for per-channel episode persistence."""

import pytest

from twinbit.channels import Channel, SIGNAL_CHANNELS
from twinbit.episodes import EpisodeTracker

CH = Channel.CORRELATED_HIGH


def test_new_tracker_is_never_started() -> None:
    tracker = EpisodeTracker(threshold=2.0)

    for channel in SIGNAL_CHANNELS:
        assert tracker[channel].start_tick is None
        assert tracker[channel].peak_z == 0.0
        assert not tracker.is_active(channel)


def test_below_threshold_only_tracks_current_z() -> None:
    tracker = EpisodeTracker(threshold=2.0)

    assert tracker.update(CH, -1.5, tick=1) == 1.5
    assert tracker[CH].current_z == 1.5
    assert tracker[CH].start_tick is None


def test_crossing_threshold_opens_episode() -> None:
    tracker = EpisodeTracker(threshold=2.0)
    tracker.update(CH, 1.0, tick=1)

    assert tracker.update(CH, 3.0, tick=2) == 3.0
    assert tracker[CH].start_tick == 2
    assert tracker[CH].peak_z == 3.0
    assert tracker.is_active(CH)


def test_shallow_dip_keeps_start_tick() -> None:
    tracker = EpisodeTracker(threshold=2.0)
    tracker.update(CH, 3.0, tick=1)
    tracker.update(CH, 0.9 * 3.0, tick=2)

    assert tracker[CH].start_tick == 1
    assert tracker[CH].peak_z == 3.0
    assert tracker.duration(CH, 5) == 4


def test_deep_dip_restarts_at_current_tick() -> None:
    tracker = EpisodeTracker(threshold=2.0)
    tracker.update(CH, 3.0, tick=1)
    tracker.update(CH, 0.7 * 3.0, tick=3)

    assert tracker[CH].start_tick == 3
    assert tracker[CH].peak_z == pytest.approx(2.1)
    assert tracker.is_active(CH)


def test_restart_below_threshold_deactivates() -> None:
    tracker = EpisodeTracker(threshold=2.0)
    tracker.update(CH, 3.0, tick=1)

    assert tracker.update(CH, 0.5, tick=2) == 0.5
    assert not tracker.is_active(CH)
    assert tracker.duration(CH, 10) == 0


def test_new_peak_raises_peak_z() -> None:
    tracker = EpisodeTracker(threshold=2.0)
    tracker.update(CH, 2.5, tick=1)
    tracker.update(CH, 4.0, tick=2)

    assert tracker[CH].peak_z == 4.0
    assert tracker[CH].start_tick == 1


def test_hold_floors_effective_z() -> None:
    tracker = EpisodeTracker(threshold=2.0, decay=0.5, hold=0.9)
    tracker.update(CH, 4.0, tick=1)

    # 2.5 is above the 2.0 decay floor, so the episode holds at 0.9 * 4.0
    assert tracker.update(CH, 2.5, tick=2) == pytest.approx(3.6)


def test_channels_are_independent_and_reset() -> None:
    tracker = EpisodeTracker(threshold=2.0)
    tracker.update(CH, 3.0, tick=1)

    assert not tracker.is_active(Channel.STICK)

    tracker.reset()
    assert tracker[CH].start_tick is None
    assert tracker[CH].peak_z == 0.0
