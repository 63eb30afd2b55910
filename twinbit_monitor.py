#!/usr/bin/env python3
"""
Twin-Bit Monitor
================

Runs the signal engine against an entropy source and reports every logic tick.

Usage:
    # Fair-coin baseline, one minute
    python twinbit_monitor.py --source numpy --duration 60

    # Inject a known A/B coupling
    python twinbit_monitor.py --source coupled --coupling 0.15 --duration 90

    # GPU bits, engaging sensitivity, save the session
    python twinbit_monitor.py --source cupy --sensitivity engaging -o session.json

Author: CIRIS L3C
License: BSL 1.1
"""

import argparse
import json
import logging
from datetime import datetime, timezone

import numpy as np

from twinbit import (
    CoupledEntropySource,
    CupyEntropySource,
    EngineConfig,
    EngineSnapshot,
    LightMode,
    NumpyEntropySource,
    PairStrategy,
    Sensitivity,
    SignalEngine,
    Speed,
)


def build_source(args):
    if args.source == 'cupy':
        return CupyEntropySource(seed=args.seed)
    if args.source == 'coupled':
        return CoupledEntropySource(coupling=args.coupling, bias_a=args.bias_a,
                                    bias_b=args.bias_b, seed=args.seed)
    return NumpyEntropySource(seed=args.seed)


def print_tick(snap: EngineSnapshot):
    """Status line for one logic tick."""
    spin = "↻" if snap.spin > 0.05 else "↺" if snap.spin < -0.05 else "·"
    z_max = max(snap.z.values())
    print(f"  t={snap.tick:4d}  {snap.dominant_name:<14s} "
          f"mag={snap.magnitude:.2f}  sig={snap.sig_energy:.2f}  "
          f"p={snap.combined_p:.3f}  zmax={z_max:.2f}  "
          f"r={snap.pearson_r:+.3f} {spin}")


class TickReporter:
    """Frame callback that prints and records once per new logic tick."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.last_tick = 0
        self.ticks = []
        self.dominance_time = {}

    def __call__(self, snap: EngineSnapshot):
        if snap.tick == self.last_tick:
            return
        self.last_tick = snap.tick
        self.ticks.append(snap.to_dict())
        self.dominance_time[snap.dominant] = self.dominance_time.get(snap.dominant, 0) + 1
        if not self.quiet:
            print_tick(snap)

    def summary(self) -> dict:
        if not self.ticks:
            return {'n_ticks': 0}
        sig = np.array([t['sig_energy'] for t in self.ticks])
        p = np.array([t['combined_p'] for t in self.ticks])
        return {
            'n_ticks': len(self.ticks),
            'sig_energy_mean': float(sig.mean()),
            'sig_energy_max': float(sig.max()),
            'combined_p_min': float(p.min()),
            'dominance_ticks': dict(self.dominance_time),
        }


def main():
    parser = argparse.ArgumentParser(description='Twin-Bit Signal Monitor')
    parser.add_argument('--source', choices=['numpy', 'cupy', 'coupled'],
                        default='numpy', help='Entropy source')
    parser.add_argument('--duration', type=float, default=60.0,
                        help='Simulated duration in seconds')
    parser.add_argument('--frame-rate', type=float, default=60.0,
                        help='Render frames per simulated second')
    parser.add_argument('--sensitivity', choices=[s.value for s in Sensitivity],
                        default=Sensitivity.MODERATE.value)
    parser.add_argument('--mode', choices=[m.value for m in LightMode],
                        default=LightMode.WOW.value)
    parser.add_argument('--speed', choices=[s.value for s in Speed],
                        default=Speed.NORMAL.value)
    parser.add_argument('--pairs', choices=[p.value for p in PairStrategy],
                        default=PairStrategy.COMMON_START.value,
                        help='Pair strategy for the two-stream channels')
    parser.add_argument('--bits', type=int, default=200, help='Bits per stream per tick')
    parser.add_argument('--rate', type=float, default=1.0, help='Logic ticks per second')
    parser.add_argument('--coupling', type=float, default=0.15,
                        help='Coupled source: probability B copies A (negative inverts)')
    parser.add_argument('--bias-a', type=float, default=0.0)
    parser.add_argument('--bias-b', type=float, default=0.0)
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--quiet', '-q', action='store_true', help='Only print the summary')
    parser.add_argument('--verbose', '-v', action='store_true', help='Engine debug logging')
    parser.add_argument('--output', '-o', help='Output JSON file')

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    print("=" * 60)
    print("TWIN-BIT SIGNAL MONITOR")
    print("=" * 60)

    try:
        source = build_source(args)
    except (RuntimeError, ValueError) as e:
        print(f"ERROR: {e}")
        return

    config = EngineConfig.from_dict({
        'sample_bits': args.bits,
        'updates_per_sec': args.rate,
        'sensitivity': args.sensitivity,
        'mode': args.mode,
        'speed': args.speed,
        'pair_strategy': args.pairs,
    })
    engine = SignalEngine(config, source)

    print(f"Source: {source.name}")
    print(f"Sensitivity: {engine.config.sensitivity.value}  "
          f"Mode: {engine.config.mode.value}/{engine.config.speed.value}  "
          f"Pairs: {engine.config.pair_strategy.value}")
    print(f"Bits/tick: {engine.config.sample_bits}  "
          f"Rate: {engine.config.updates_per_sec} Hz  "
          f"Duration: {args.duration}s")
    print()

    reporter = TickReporter(quiet=args.quiet)
    final = engine.run(args.duration, args.frame_rate, callback=reporter)
    summary = reporter.summary()

    print("\n" + "=" * 60)
    print("SESSION SUMMARY")
    print("=" * 60)
    print(f"Ticks: {summary['n_ticks']}")
    if summary['n_ticks']:
        print(f"Mean significance: {summary['sig_energy_mean']:.3f}")
        print(f"Peak significance: {summary['sig_energy_max']:.3f}")
        print(f"Smallest combined p: {summary['combined_p_min']:.4f}")
        print("Dominance (ticks):")
        for channel, n in sorted(summary['dominance_ticks'].items(), key=lambda kv: -kv[1]):
            print(f"  {channel:<16s} {n:5d}  ({100.0 * n / summary['n_ticks']:.1f}%)")

    if args.output:
        results = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'source': source.name,
            'config': engine.config.to_dict(),
            'summary': summary,
            'final': final.to_dict(),
            'ticks': reporter.ticks,
        }
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2, default=str)
        print(f"\nResults saved to: {args.output}")

    print("\n" + "=" * 60)
    print("MONITOR SESSION COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
