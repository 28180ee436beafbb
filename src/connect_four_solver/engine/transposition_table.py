"""
Transposition table for caching alpha-beta search results.

The transposition table stores bounds on the scores of previously searched
positions so that transpositions (the same position reached by different move
orders) and repeated null-window searches are not searched twice.

Key concepts:
- One bound per entry: the solver only runs null-window searches, so a single
  upper or lower bound is all one search can prove; the bound kind is folded
  into the value byte (see Solver)
- Replacement policy: always-replace, no chaining, no aging
- Collision check: each slot keeps `key // size`, which together with the slot
  index `key % size` identifies the key exactly
- Slots are single 64-bit words (check << 8 | value), written in one store,
  so a slot is never observed half-written
"""

import numpy as np
from typing import Optional

from connect_four_solver.config import SOLVER_CONFIG


_VALUE_BITS = 8
_VALUE_MASK = (1 << _VALUE_BITS) - 1


class TranspositionTable:
    """
    Fixed-size transposition table with always-replace policy.

    Implementation:
    - Flat numpy uint64 array indexed by `key % size` (prime size by default)
    - Value 0 marks an empty slot; stored values are 1..255
    - Keys up to 56 bits are supported (board keys use 49)

    Memory usage: 8 bytes per slot
    Example: (1 << 23) + 9 slots = 64 MB
    """

    def __init__(self, size: Optional[int] = None):
        """
        Initialize transposition table.

        Args:
            size: Number of slots (defaults to SOLVER_CONFIG['tt_size'])
        """
        if size is None:
            size = SOLVER_CONFIG['tt_size']
        if size < 1:
            raise ValueError(f"transposition table size must be positive, got {size}")

        self.size = size
        self.slots = np.zeros(size, dtype=np.uint64)

        # Statistics
        self.hits = 0
        self.misses = 0
        self.collisions = 0
        self.stores = 0

    def get(self, key: int) -> Optional[int]:
        """
        Look up the stored value for a key.

        Args:
            key: Position key (non-negative, below 2**56)

        Returns:
            The stored value (1..255) or None on a miss
        """
        slot = int(self.slots[key % self.size])
        if slot == 0:
            self.misses += 1
            return None

        if slot >> _VALUE_BITS != key // self.size:
            self.collisions += 1
            self.misses += 1
            return None

        self.hits += 1
        return slot & _VALUE_MASK

    def put(self, key: int, value: int):
        """
        Store a value, overwriting whatever occupied the slot.

        Args:
            key: Position key
            value: Encoded bound in 1..255
        """
        if not 0 < value <= _VALUE_MASK:
            raise ValueError(f"transposition table values must be in 1..{_VALUE_MASK}, got {value}")

        self.slots[key % self.size] = ((key // self.size) << _VALUE_BITS) | value
        self.stores += 1

    def clear(self):
        """Clear all entries (use between unrelated solves)."""
        self.slots.fill(0)
        self._reset_stats()

    def _reset_stats(self):
        """Reset statistics counters."""
        self.hits = 0
        self.misses = 0
        self.collisions = 0
        self.stores = 0

    def get_stats(self) -> dict:
        """
        Get transposition table statistics.

        Returns:
            Dictionary with hits, misses, hit rate, collisions
        """
        total_queries = self.hits + self.misses
        hit_rate = self.hits / total_queries if total_queries > 0 else 0.0

        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': hit_rate,
            'collisions': self.collisions,
            'stores': self.stores,
            'size_entries': self.size,
        }

    def get_fill_rate(self) -> float:
        """
        Calculate percentage of table slots occupied.

        Returns:
            Fill rate as percentage (0-100)
        """
        occupied = int(np.count_nonzero(self.slots))
        return (occupied / self.size) * 100.0
