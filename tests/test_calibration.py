"""Tests for the significance calibrator."""

import math

import pytest

from twinbit.calibration import (
    MIN_OF_SIX_MEDIAN,
    PEARSON_NULL_MEDIAN_P,
    STICK_NULL_MEDIAN_P,
    NullConstants,
    SignificanceCalibrator,
    SignificanceState,
    estimate_null_constants,
)
from twinbit.channels import Channel, SIGNAL_CHANNELS
from twinbit.config import EngineConfig


def _zs(**overrides):
    z = {ch: 0.0 for ch in SIGNAL_CHANNELS}
    for name, value in overrides.items():
        z[Channel(name)] = value
    return z


def test_min_of_six_median() -> None:
    assert MIN_OF_SIX_MEDIAN == pytest.approx(0.1091, abs=1e-4)
    # P(min of six uniforms <= m) = 1/2
    assert 1 - (1 - MIN_OF_SIX_MEDIAN) ** 6 == pytest.approx(0.5)


def test_searched_channels_are_corrected() -> None:
    calibrator = SignificanceCalibrator()
    z = 2.5
    raw = calibrator.corrected_p(Channel.CORRELATED_HIGH, z)

    assert calibrator.corrected_p(Channel.STICK, z) == pytest.approx(raw / STICK_NULL_MEDIAN_P)
    assert calibrator.corrected_p(Channel.PEARSON, z) == pytest.approx(raw / PEARSON_NULL_MEDIAN_P)
    assert calibrator.corrected_p(Channel.STICK, 0.0) == 1.0


def test_pure_noise_sits_on_the_floor() -> None:
    calibrator = SignificanceCalibrator()
    state = calibrator.update(SignificanceState(), _zs())

    assert state.combined_p == pytest.approx(0.35)
    assert state.target == 0.0


def test_strong_signal_saturates() -> None:
    calibrator = SignificanceCalibrator()
    state = calibrator.update(SignificanceState(), _zs(correlated_high=6.0))

    assert state.target == 1.0
    assert state.surprisal > 4.0


def test_target_is_monotonic_between_floor_and_max() -> None:
    calibrator = SignificanceCalibrator()
    t3 = calibrator.update(SignificanceState(), _zs(anti_ab=3.0)).target
    t35 = calibrator.update(SignificanceState(), _zs(anti_ab=3.5)).target

    assert 0.0 < t3 < t35 < 1.0


def test_target_from_p_endpoints() -> None:
    calibrator = SignificanceCalibrator(coherence_floor=0.35, surprisal_max=4.0)

    assert calibrator.target_from_p(0.35) == 0.0
    assert calibrator.target_from_p(1e-4) == pytest.approx(1.0)
    assert calibrator.target_from_p(0.0) == 1.0
    mid = 10 ** -((calibrator.surprisal_floor + 4.0) / 2)
    assert calibrator.target_from_p(mid) == pytest.approx(0.5)


def test_update_keeps_sig_energy() -> None:
    state = SignificanceState(sig_energy=0.4)
    SignificanceCalibrator().update(state, _zs(stick=5.0))

    assert state.sig_energy == 0.4
    assert set(state.p_values) == set(SIGNAL_CHANNELS)


def test_from_config() -> None:
    config = EngineConfig(coherence_floor=0.2, surprisal_max=5.0)
    calibrator = SignificanceCalibrator.from_config(config)

    assert calibrator.coherence_floor == 0.2
    assert calibrator.surprisal_max == 5.0
    assert calibrator.surprisal_floor == pytest.approx(-math.log10(0.2))


def test_estimate_null_constants_is_reproducible() -> None:
    config = EngineConfig(sample_bits=50, lookback=20, history_margin=2)
    first = estimate_null_constants(config, n_trials=6, seed=3)
    second = estimate_null_constants(config, n_trials=6, seed=3)

    assert first == second
    assert isinstance(first, NullConstants)
    for value in (first.stick_median_p, first.pearson_median_p, first.min_of_six_median):
        assert 0.0 < value <= 1.0


def test_null_medians_match_the_estimator() -> None:
    estimated = estimate_null_constants(EngineConfig(), n_trials=1500, seed=7)

    assert estimated.stick_median_p == pytest.approx(STICK_NULL_MEDIAN_P, abs=0.03)
    assert estimated.pearson_median_p == pytest.approx(PEARSON_NULL_MEDIAN_P, abs=0.02)


@pytest.mark.parametrize(
    "p_min, expected",
    [
        (0.05, 0.35),                       # 0.05 / MIN6 ~ 0.46, capped
        (0.03, 0.03 / MIN_OF_SIX_MEDIAN),   # rescaled below the floor
        (0.2, 0.35),
    ],
)
def test_combine_rescales_before_capping(p_min: float, expected: float) -> None:
    calibrator = SignificanceCalibrator()
    p = calibrator.combine({Channel.ANTI_BA: p_min, Channel.STICK: 1.0})

    assert p == pytest.approx(expected)


def test_signal_threshold_on_smallest_p() -> None:
    calibrator = SignificanceCalibrator()
    threshold = calibrator.coherence_floor * MIN_OF_SIX_MEDIAN

    above = calibrator.target_from_p(calibrator.combine({Channel.ANTI_BA: threshold * 1.01}))
    below = calibrator.target_from_p(calibrator.combine({Channel.ANTI_BA: threshold * 0.9}))

    assert above == 0.0
    assert below > 0.0
