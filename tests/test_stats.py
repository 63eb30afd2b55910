"""Tests for the shared numeric helpers."""

import math

import numpy as np
import pytest

from twinbit.stats import (
    P_FLOOR,
    approach,
    clamp01,
    fisher_z,
    smoothing_factor,
    strength_from_z,
    two_sided_p,
    z_from_ones,
)


def test_strength_is_monotonic_in_abs_z() -> None:
    zs = np.linspace(-5.0, 5.0, 101)
    strengths = [strength_from_z(z, 1.6, 3.0) for z in np.abs(zs)]

    assert all(b >= a for a, b in zip(strengths, strengths[1:]))


@pytest.mark.parametrize(
    "z, expected",
    [
        (0.0, 0.0),
        (1.6, 0.0),
        (-1.6, 0.0),
        (2.3, 0.5),
        (3.0, 1.0),
        (-7.0, 1.0),
    ],
)
def test_strength_from_z_endpoints(z: float, expected: float) -> None:
    assert strength_from_z(z, 1.6, 3.0) == pytest.approx(expected)


def test_strength_with_degenerate_span_is_a_step() -> None:
    assert strength_from_z(1.9, 2.0, 2.0) == 0.0
    assert strength_from_z(2.0, 2.0, 2.0) == 1.0


def test_clamp01() -> None:
    assert clamp01(-0.2) == 0.0
    assert clamp01(0.4) == 0.4
    assert clamp01(3.0) == 1.0


def test_two_sided_p_matches_normal_table() -> None:
    assert two_sided_p(0.0) == 1.0
    assert two_sided_p(1.959964) == pytest.approx(0.05, abs=1e-5)
    assert two_sided_p(-1.959964) == pytest.approx(0.05, abs=1e-5)


def test_p_values_never_reach_zero() -> None:
    assert two_sided_p(60.0) == P_FLOOR


def test_z_from_ones() -> None:
    assert z_from_ones(50, 100) == 0.0
    assert z_from_ones(60, 100) == pytest.approx(2.0)
    assert z_from_ones(0, 0) == 0.0


def test_fisher_z_is_finite_at_perfect_correlation() -> None:
    z = fisher_z(1.0, 400)
    assert math.isfinite(z)
    assert z == pytest.approx(fisher_z(0.999, 400))
    assert fisher_z(-1.0, 400) == pytest.approx(-z)


def test_fisher_z_small_sample_uses_unit_scale() -> None:
    assert fisher_z(0.5, 2) == pytest.approx(math.atanh(0.5))


def test_fisher_z_vectorized() -> None:
    z = fisher_z(np.array([0.0, 0.5, -0.5]), np.array([103, 103, 103]))
    assert z.shape == (3,)
    assert z[0] == 0.0
    assert z[1] == pytest.approx(math.atanh(0.5) * 10.0)
    assert z[2] == pytest.approx(-z[1])


def test_smoothing_factor_edges() -> None:
    assert smoothing_factor(0.5, 0.0) == 1.0
    assert smoothing_factor(0.0, 1.0) == 0.0
    assert smoothing_factor(1.0, 1.0) == pytest.approx(1.0 - math.exp(-1.0))


def test_approach_uses_rise_and_fall_constants() -> None:
    up = approach(0.0, 1.0, 1.0, tau_rise=0.5, tau_fall=5.0)
    down = approach(1.0, 0.0, 1.0, tau_rise=0.5, tau_fall=5.0)

    assert up == pytest.approx(1.0 - math.exp(-2.0))
    assert 1.0 - down == pytest.approx(1.0 - math.exp(-0.2))
    assert up > 1.0 - down
