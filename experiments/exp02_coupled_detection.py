#!/usr/bin/env python3
"""
Experiment 02: Coupled Detection
================================

Detection latency versus false-positive rate for each sensitivity preset.

For every preset the engine is run repeatedly on:
- a fair coin (coupling 0): any departure from baseline is a false positive
- a coupled source: B copies A with the given probability

Latency is the first tick whose dominant channel is not baseline.

Author: CIRIS L3C
License: BSL 1.1
"""

import argparse
import json
from datetime import datetime, timezone
from typing import Optional

import numpy as np
from scipy import stats

from twinbit import CoupledEntropySource, EngineConfig, Sensitivity, SignalEngine


def first_detection(config: EngineConfig, coupling: float, n_ticks: int,
                    seed: int) -> Optional[int]:
    engine = SignalEngine(config, CoupledEntropySource(coupling=coupling, seed=seed))
    for _ in range(n_ticks):
        snap = engine.advance(1.0 / config.updates_per_sec)
        if snap.dominant != 'baseline':
            return snap.tick
    return None


def run_preset(sensitivity: Sensitivity, coupling: float, n_runs: int,
               n_ticks: int, seed: int) -> dict:
    config = EngineConfig(sensitivity=sensitivity)

    null_hits = [first_detection(config, 0.0, n_ticks, seed + i) for i in range(n_runs)]
    coupled_hits = [first_detection(config, coupling, n_ticks, seed + 10_000 + i)
                    for i in range(n_runs)]

    fp = sum(h is not None for h in null_hits)
    detected = [h for h in coupled_hits if h is not None]
    # Exact 95% interval for the false-positive proportion
    fp_ci = stats.binomtest(fp, n_runs).proportion_ci(confidence_level=0.95)

    return {
        'sensitivity': sensitivity.value,
        'false_positive_rate': fp / n_runs,
        'false_positive_ci': [float(fp_ci.low), float(fp_ci.high)],
        'detection_rate': len(detected) / n_runs,
        'latency_median': float(np.median(detected)) if detected else None,
        'latency_p90': float(np.percentile(detected, 90)) if detected else None,
    }


def main():
    parser = argparse.ArgumentParser(description='Detection latency per sensitivity preset')
    parser.add_argument('--coupling', type=float, default=0.15)
    parser.add_argument('--runs', type=int, default=30)
    parser.add_argument('--ticks', type=int, default=60, help='Ticks per run')
    parser.add_argument('--seed', type=int, default=0)
    parser.add_argument('--output', '-o', help='Output JSON file')
    args = parser.parse_args()

    print("=" * 70)
    print("EXPERIMENT 02: COUPLED DETECTION")
    print("=" * 70)
    print(f"Time: {datetime.now(timezone.utc).isoformat()}")
    print(f"Coupling: {args.coupling}  Runs: {args.runs}  Ticks/run: {args.ticks}")
    print()

    results = []
    for sensitivity in Sensitivity:
        r = run_preset(sensitivity, args.coupling, args.runs, args.ticks, args.seed)
        results.append(r)
        latency = f"{r['latency_median']:.0f}" if r['latency_median'] is not None else "-"
        print(f"  {r['sensitivity']:<13s} FP={r['false_positive_rate'] * 100:5.1f}% "
              f"[{r['false_positive_ci'][0] * 100:.0f}-{r['false_positive_ci'][1] * 100:.0f}%]  "
              f"detected={r['detection_rate'] * 100:5.1f}%  median latency={latency} ticks")

    if args.output:
        with open(args.output, 'w') as f:
            json.dump({
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'coupling': args.coupling,
                'runs': args.runs,
                'ticks': args.ticks,
                'results': results,
            }, f, indent=2, default=str)
        print(f"\nResults saved to: {args.output}")

    return results


if __name__ == "__main__":
    results = main()
