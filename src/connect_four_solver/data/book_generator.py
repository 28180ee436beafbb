#!/usr/bin/env python3
"""
Generate an opening book offline.

Enumerates every distinct position (up to mirror symmetry) with at most
`max_depth` plies, solves each one exactly in a pool of worker processes and
writes the sorted book file.

Usage:
    python -m connect_four_solver.data.book_generator --depth 8 --output book.bin
"""

import argparse
import logging
import multiprocessing as mp
import time
from typing import Optional

from tqdm import tqdm

from connect_four_solver.config import BOOK_GENERATOR_CONFIG
from connect_four_solver.game.position import Position, WIDTH
from connect_four_solver.engine.opening_book import OpeningBook
from connect_four_solver.engine.solver import Solver


logger = logging.getLogger(__name__)

# Per-process solver, created by the pool initializer
_worker_solver: Optional[Solver] = None


def enumerate_positions(max_depth: int, root: Optional[Position] = None) -> list[Position]:
    """
    Breadth-first enumeration of the positions reachable from `root`.

    Keeps one representative per canonical key. Moves that end the game are
    not followed.

    Args:
        max_depth: Deepest ply count to include
        root: Starting position (empty board if None)

    Returns:
        Positions in breadth-first order, `root` first
    """
    root = root.copy() if root is not None else Position()
    if root.moves > max_depth:
        return []

    seen = {root.canonical_key()}
    positions = [root]
    frontier = [root]

    while frontier and frontier[0].moves < max_depth:
        next_frontier = []
        for position in frontier:
            if position.is_over():
                continue
            for column in range(WIDTH):
                if not position.can_play(column) or position.is_winning_move(column):
                    continue
                child = position.child(column)
                key = child.canonical_key()
                if key in seen:
                    continue
                seen.add(key)
                positions.append(child)
                next_frontier.append(child)
        frontier = next_frontier

    return positions


def _init_worker(tt_size: int):
    """Create the private solver of a worker process (books are never consulted)."""
    global _worker_solver
    _worker_solver = Solver(tt_size=tt_size, opening_book=None)


def _solve_task(task: tuple[int, int, int]) -> tuple[int, int]:
    """Solve one position given as (current, mask, moves); returns (canonical key, score)."""
    position = Position(*task)
    return position.canonical_key(), _worker_solver.solve(position)


def generate_opening_book(
    max_depth: Optional[int] = None,
    num_workers: Optional[int] = None,
    chunk_size: Optional[int] = None,
    tt_size: Optional[int] = None,
    root: Optional[Position] = None,
    show_progress: bool = True,
) -> OpeningBook:
    """
    Build an opening book by solving every position up to `max_depth` plies.

    Args:
        max_depth: Deepest ply count (BOOK_GENERATOR_CONFIG default if None)
        num_workers: Worker processes; 1 or less solves in this process
        chunk_size: Positions handed to a worker at a time
        tt_size: Transposition table size of each worker's solver
        root: Starting position (empty board if None)
        show_progress: Display a tqdm progress bar

    Returns:
        The generated OpeningBook
    """
    if max_depth is None:
        max_depth = BOOK_GENERATOR_CONFIG['max_depth']
    if num_workers is None:
        num_workers = BOOK_GENERATOR_CONFIG['num_workers']
    if chunk_size is None:
        chunk_size = BOOK_GENERATOR_CONFIG['chunk_size']
    if tt_size is None:
        tt_size = BOOK_GENERATOR_CONFIG['tt_size']

    positions = enumerate_positions(max_depth, root)
    tasks = [(position.current, position.mask, position.moves) for position in positions]
    logger.info("Solving %d positions up to depth %d with %d workers", len(tasks), max_depth, num_workers)

    start_time = time.time()
    progress = dict(total=len(tasks), desc="Solving positions", disable=not show_progress)

    if num_workers <= 1:
        _init_worker(tt_size)
        results = [_solve_task(task) for task in tqdm(tasks, **progress)]
    else:
        # Spawn keeps workers independent of the parent's state
        ctx = mp.get_context('spawn')
        with ctx.Pool(processes=num_workers, initializer=_init_worker, initargs=(tt_size,)) as pool:
            results = list(tqdm(pool.imap(_solve_task, tasks, chunksize=chunk_size), **progress))

    logger.info("Solved %d positions in %.1fs", len(results), time.time() - start_time)
    return OpeningBook.from_entries(results, max_depth)


def main():
    ap = argparse.ArgumentParser(description="Generate a Connect Four opening book")
    ap.add_argument('--depth', type=int, default=BOOK_GENERATOR_CONFIG['max_depth'])
    ap.add_argument('--output', type=str, default=BOOK_GENERATOR_CONFIG['output_path'])
    ap.add_argument('--workers', type=int, default=BOOK_GENERATOR_CONFIG['num_workers'])
    ap.add_argument('--chunk-size', type=int, default=BOOK_GENERATOR_CONFIG['chunk_size'])
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')

    print("=" * 70)
    print(f"OPENING BOOK: depth {args.depth}, {args.workers} workers")
    print("=" * 70)

    book = generate_opening_book(args.depth, args.workers, args.chunk_size)
    book.save(args.output)

    print(f"Wrote {len(book):,} positions to {args.output}")


if __name__ == '__main__':
    main()
