"""Tests for dominance arbitration with hysteresis."""

import pytest

from twinbit.arbiter import DominanceState, arbitrate, best_channel
from twinbit.channels import Channel

KEEP_BONUS = 0.04
SWITCH_MARGIN = 0.08
THRESHOLD = 0.18


def _step(state, **strengths):
    values = {Channel(name): v for name, v in strengths.items()}
    return arbitrate(state, values, THRESHOLD, KEEP_BONUS, SWITCH_MARGIN)


def test_baseline_takes_first_channel_over_threshold() -> None:
    state = _step(DominanceState(), stick=0.3, pearson=0.1)

    assert state.dominant is Channel.STICK
    assert state.target == pytest.approx(0.3)


def test_baseline_holds_below_threshold() -> None:
    state = _step(DominanceState(), stick=0.18, pearson=0.1)

    assert state.dominant is Channel.BASELINE
    assert state.target == 0.0


@pytest.mark.parametrize(
    "challenger, switches",
    [
        (0.55, False),
        (0.62 - 1e-9, False),
        (0.63, True),
    ],
)
def test_hysteresis(challenger: float, switches: bool) -> None:
    state = DominanceState(dominant=Channel.CORRELATED_HIGH)

    state = _step(state, correlated_high=0.50, anti_ab=challenger)

    expected = Channel.ANTI_AB if switches else Channel.CORRELATED_HIGH
    assert state.dominant is expected


def test_target_follows_dominant_not_best() -> None:
    state = DominanceState(dominant=Channel.CORRELATED_HIGH)

    state = _step(state, correlated_high=0.50, anti_ab=0.55)

    assert state.target == pytest.approx(0.50)


def test_established_dominant_fades_instead_of_dropping() -> None:
    state = DominanceState(dominant=Channel.PEARSON, magnitude=0.7, target=0.7)

    state = _step(state, pearson=0.05)

    assert state.dominant is Channel.PEARSON
    assert state.target == pytest.approx(0.05)
    assert state.magnitude == 0.7


def test_best_channel_breaks_ties_by_channel_order() -> None:
    best, value = best_channel({Channel.PEARSON: 0.4, Channel.CORRELATED_LOW: 0.4})

    assert best is Channel.CORRELATED_LOW
    assert value == 0.4


def test_best_channel_of_nothing_is_baseline() -> None:
    assert best_channel({}) == (Channel.BASELINE, 0.0)
