"""Tests for presets and configuration validation."""

import logging

import pytest

from twinbit.config import (
    EngineConfig,
    LightMode,
    MODE_PRESETS,
    PairStrategy,
    SENSITIVITY_PRESETS,
    Sensitivity,
    Speed,
)


def test_defaults_are_already_valid() -> None:
    config = EngineConfig()

    assert config.validated() is config
    assert config.history_capacity == 128


def test_sensitivity_presets_are_ordered() -> None:
    c = SENSITIVITY_PRESETS[Sensitivity.CONSERVATIVE]
    m = SENSITIVITY_PRESETS[Sensitivity.MODERATE]
    e = SENSITIVITY_PRESETS[Sensitivity.ENGAGING]

    assert c.z_start > m.z_start > e.z_start
    assert c.episode_z > m.episode_z > e.episode_z
    assert c.dominance_threshold > m.dominance_threshold > e.dominance_threshold
    for preset in (c, m, e):
        assert preset.stick_z_start > preset.z_start
        assert preset.pair_for(stick=True) == (preset.stick_z_start, preset.stick_z_full)


def test_speed_scales_time_constants_only() -> None:
    slow = EngineConfig(mode=LightMode.MELLOW, speed=Speed.SLOW).mode_preset
    base = MODE_PRESETS[LightMode.MELLOW]

    assert slow.sig_rise_s == pytest.approx(2 * base.sig_rise_s)
    assert slow.spin_tau_s == pytest.approx(2 * base.spin_tau_s)
    assert slow.switch_margin == base.switch_margin
    assert slow.keep_bonus == base.keep_bonus


def test_segment_longer_than_lookback_falls_back(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="twinbit.config"):
        config = EngineConfig(lookback=10, min_segment_len=20).validated()

    assert config.lookback == 120
    assert config.min_segment_len == 5
    assert "Rejected" in caplog.text


@pytest.mark.parametrize(
    "field, bad, default",
    [
        ("sample_bits", 0, 200),
        ("updates_per_sec", 0.0, 1.0),
        ("max_catchup_ticks", 0, 8),
        ("coherence_floor", 1.5, 0.35),
        ("episode_decay", 0.0, 0.8),
    ],
)
def test_bad_fields_fall_back_to_defaults(field, bad, default) -> None:
    config = EngineConfig(**{field: bad}).validated()

    assert getattr(config, field) == default


def test_surprisal_max_must_exceed_floor() -> None:
    config = EngineConfig(coherence_floor=0.01, surprisal_max=1.5).validated()

    assert config.surprisal_max == 4.0


def test_dict_round_trip_uses_preset_names() -> None:
    config = EngineConfig(sensitivity=Sensitivity.ENGAGING, pair_strategy=PairStrategy.JOINT)
    d = config.to_dict()

    assert d['sensitivity'] == 'engaging'
    assert d['pair_strategy'] == 'joint'
    assert EngineConfig.from_dict(d) == config


def test_from_dict_rejects_unknown_preset() -> None:
    with pytest.raises(ValueError):
        EngineConfig.from_dict({'sensitivity': 'reckless'})


def test_from_dict_rejects_unknown_field() -> None:
    with pytest.raises(ValueError):
        EngineConfig.from_dict({'lookback': 60, 'window': 3})
