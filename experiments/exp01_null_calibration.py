#!/usr/bin/env python3
"""
Experiment 01: Null Calibration
===============================

Re-derive the calibrator's null constants and check that the statistics
behave under a fair coin.

Tests:
1. Fixed-window z of each walk is N(0, 1) (Kolmogorov-Smirnov)
2. Median p of the searched stick and pearson channels
3. Median of the search-corrected minimum over six channels, against
   the independent-uniform value 1 - 0.5**(1/6)
4. Combined significance on pure noise: how often it leaves the floor

Author: CIRIS L3C
License: BSL 1.1
"""

import argparse
import json
from datetime import datetime, timezone

import numpy as np
from scipy import stats

from twinbit import EngineConfig, NumpyEntropySource, SignalEngine
from twinbit.aggregate import aggregate
from twinbit.calibration import (
    MIN_OF_SIX_MEDIAN,
    PEARSON_NULL_MEDIAN_P,
    STICK_NULL_MEDIAN_P,
    estimate_null_constants,
)
from twinbit.search import AGREEMENT_VARIANCE, segment_z
from twinbit.series import DeviationSeries
from twinbit.stats import z_from_ones


def fixed_window_z(config: EngineConfig, n_trials: int, window: int, seed: int) -> dict:
    """z over the last `window` ticks for each walk, many independent trials."""
    rng = np.random.default_rng(seed)
    za, zb, zs = [], [], []
    # Largest gap between the walk z and z of the raw ones count
    walk_gap = 0.0
    for _ in range(n_trials):
        series = DeviationSeries.fresh(window + 1)
        ones_a = 0
        for _ in range(window):
            bits = rng.integers(0, 2, size=(2, config.sample_bits), dtype=np.uint8)
            agg = aggregate(bits[0], bits[1])
            ones_a += agg.ones_a
            series.append(agg)
        cur = series.current_tick
        za.append(segment_z(series.a, 0, cur, config.sample_bits))
        walk_gap = max(walk_gap, abs(za[-1] - z_from_ones(ones_a, window * config.sample_bits)))
        zb.append(segment_z(series.b, 0, cur, config.sample_bits))
        zs.append(segment_z(series.agreement, 0, cur, config.sample_bits, AGREEMENT_VARIANCE))

    results = {}
    for name, z in (('a', za), ('b', zb), ('agreement', zs)):
        z = np.array(z)
        ks = stats.kstest(z, 'norm')
        results[name] = {
            'mean': float(z.mean()),
            'std': float(z.std()),
            'ks_stat': float(ks.statistic),
            'ks_p': float(ks.pvalue),
        }
    results['walk_gap'] = walk_gap
    return results


def main():
    parser = argparse.ArgumentParser(description='Null calibration of the twin-bit engine')
    parser.add_argument('--trials', type=int, default=1500, help='Monte Carlo trials')
    parser.add_argument('--ticks', type=int, default=600, help='Engine ticks on pure noise')
    parser.add_argument('--seed', type=int, default=0)
    parser.add_argument('--null-seed', type=int, default=7,
                        help='Seed for the searched-channel null medians')
    parser.add_argument('--output', '-o', help='Output JSON file')
    args = parser.parse_args()

    config = EngineConfig()

    print("=" * 70)
    print("EXPERIMENT 01: NULL CALIBRATION")
    print("=" * 70)
    print(f"Time: {datetime.now(timezone.utc).isoformat()}")
    print(f"Bits/tick: {config.sample_bits}  Lookback: {config.lookback}  "
          f"Min segment: {config.min_segment_len}")

    # =========================================================================
    # TEST 1: Fixed-window normality
    # =========================================================================
    print("\n" + "=" * 70)
    print("TEST 1: FIXED-WINDOW Z NORMALITY")
    print("=" * 70)

    normality = fixed_window_z(config, args.trials, window=30, seed=args.seed)
    for name in ('a', 'b', 'agreement'):
        r = normality[name]
        verdict = "PASS" if r['ks_p'] > 0.01 else "FAIL"
        print(f"  {name:<10s} mean={r['mean']:+.3f}  std={r['std']:.3f}  "
              f"KS={r['ks_stat']:.3f} (p={r['ks_p']:.3f})  {verdict}")
    print(f"  walk vs ones-count z, max gap: {normality['walk_gap']:.2e}")

    # =========================================================================
    # TEST 2/3: Search-inflation constants
    # =========================================================================
    print("\n" + "=" * 70)
    print("TEST 2: SEARCHED-CHANNEL NULL MEDIANS")
    print("=" * 70)

    constants = estimate_null_constants(config, n_trials=args.trials, seed=args.null_seed)
    print(f"  stick median p:    {constants.stick_median_p:.4f}  (in use: {STICK_NULL_MEDIAN_P})")
    print(f"  pearson median p:  {constants.pearson_median_p:.4f}  (in use: {PEARSON_NULL_MEDIAN_P})")

    print("\n" + "=" * 70)
    print("TEST 3: CORRECTED MINIMUM OF SIX")
    print("=" * 70)
    print(f"  measured median:   {constants.min_of_six_median:.4f}")
    print(f"  independent value: {MIN_OF_SIX_MEDIAN:.4f}")

    # =========================================================================
    # TEST 4: Engine on pure noise
    # =========================================================================
    print("\n" + "=" * 70)
    print("TEST 4: ENGINE SIGNIFICANCE ON PURE NOISE")
    print("=" * 70)

    engine = SignalEngine(config, NumpyEntropySource(seed=args.seed + 2))
    targets = []
    for _ in range(args.ticks):
        engine.tick()
        targets.append(engine.state.significance.target)
    targets = np.array(targets)
    print(f"  ticks:               {len(targets)}")
    print(f"  target > 0:          {np.mean(targets > 0) * 100:.1f}%")
    print(f"  target > 0.5:        {np.mean(targets > 0.5) * 100:.1f}%")
    print(f"  mean target:         {targets.mean():.3f}")

    results = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'config': config.to_dict(),
        'normality': normality,
        'stick_median_p': constants.stick_median_p,
        'pearson_median_p': constants.pearson_median_p,
        'min_of_six_median': constants.min_of_six_median,
        'noise_target_nonzero': float(np.mean(targets > 0)),
        'noise_target_mean': float(targets.mean()),
    }

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2, default=str)
        print(f"\nResults saved to: {args.output}")

    return results


if __name__ == "__main__":
    results = main()
