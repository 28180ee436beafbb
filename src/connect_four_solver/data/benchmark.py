#!/usr/bin/env python3
"""
Benchmark the solver on a test-position file.

Usage:
    python -m connect_four_solver.data.benchmark positions.txt [--weak] [--no-book]
"""

import argparse
import time

import numpy as np
from tqdm import tqdm

from connect_four_solver.engine.solver import Solver
from connect_four_solver.data.test_positions import TestPosition, load_test_positions


def run_benchmark(solver: Solver, positions: list[TestPosition], weak: bool = False, show_progress: bool = True) -> dict:
    """
    Solve every position and compare with the expected scores.

    Args:
        solver: Solver to benchmark (reset before each position)
        positions: Positions with known scores
        weak: Compare signs only
        show_progress: Display a tqdm progress bar

    Returns:
        Dictionary with accuracy, mean time (ms), mean nodes and failures
    """
    times_ms = []
    nodes = []
    failures = []

    for test in tqdm(positions, desc="Solving", disable=not show_progress):
        solver.reset()
        expected = test.score
        if weak:
            expected = (expected > 0) - (expected < 0)

        start = time.perf_counter()
        result = solver.search(test.position(), weak=weak)
        times_ms.append((time.perf_counter() - start) * 1000.0)
        nodes.append(result.nodes_searched)

        if result.score != expected:
            failures.append((test.moves, expected, result.score))

    n = len(positions)
    return {
        'positions': n,
        'accuracy': 0.0 if n == 0 else (n - len(failures)) / n,
        'mean_time_ms': float(np.mean(times_ms)) if n else 0.0,
        'mean_nodes': float(np.mean(nodes)) if n else 0.0,
        'failures': failures,
    }


def main():
    ap = argparse.ArgumentParser(description="Benchmark the Connect Four solver")
    ap.add_argument('file', type=str, help="Test-position file ('<moves> <score>' per line)")
    ap.add_argument('--weak', action='store_true', help="Only check win/draw/loss")
    ap.add_argument('--no-book', action='store_true', help="Solve without the opening book")
    args = ap.parse_args()

    positions = load_test_positions(args.file)
    solver = Solver(opening_book=None) if args.no_book else Solver()

    stats = run_benchmark(solver, positions, weak=args.weak)

    print("=" * 70)
    print(f"BENCHMARK: {args.file}")
    print("=" * 70)
    print(f"Positions:    {stats['positions']}")
    print(f"Accuracy:     {stats['accuracy']:.1%}")
    print(f"Mean time:    {stats['mean_time_ms']:.2f} ms")
    print(f"Mean nodes:   {stats['mean_nodes']:.0f}")
    for moves, expected, got in stats['failures']:
        print(f"  FAIL {moves}: expected {expected}, got {got}")


if __name__ == '__main__':
    main()
