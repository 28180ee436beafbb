"""
Unit tests for the transposition table.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from connect_four_solver.engine.transposition_table import TranspositionTable


class TestTranspositionTable:
    """Test store/lookup behaviour of the table."""

    def test_store_and_lookup(self):
        """Stored values are found again."""
        tt = TranspositionTable(size=101)
        tt.put(12345, 40)
        assert tt.get(12345) == 40

    def test_miss_on_empty_table(self):
        """An empty table misses."""
        tt = TranspositionTable(size=101)
        assert tt.get(7) is None
        assert tt.misses == 1

    def test_collision_detected(self):
        """Keys sharing a slot never return each other's value."""
        tt = TranspositionTable(size=101)
        tt.put(5, 10)
        tt.put(5 + 101, 20)

        assert tt.get(5) is None
        assert tt.get(5 + 101) == 20
        assert tt.collisions == 1

    def test_always_replace(self):
        """Later values replace earlier ones."""
        tt = TranspositionTable(size=101)
        tt.put(5, 10)
        tt.put(5, 11)
        assert tt.get(5) == 11

    def test_large_keys(self):
        """Board keys use up to 49 bits."""
        tt = TranspositionTable(size=(1 << 23) + 9)
        key = (1 << 49) - 12345
        tt.put(key, 74)
        assert tt.get(key) == 74

    def test_single_slot_table(self):
        """A one-slot table still stores."""
        tt = TranspositionTable(size=1)
        tt.put(3, 1)
        tt.put(4, 2)
        assert tt.get(3) is None
        assert tt.get(4) == 2

    def test_invalid_values_rejected(self):
        """Values outside a byte are rejected."""
        tt = TranspositionTable(size=101)
        with pytest.raises(ValueError):
            tt.put(1, 0)
        with pytest.raises(ValueError):
            tt.put(1, 256)

    def test_invalid_size_rejected(self):
        """Non-positive sizes are rejected."""
        with pytest.raises(ValueError):
            TranspositionTable(size=0)

    def test_clear(self):
        """Cleared tables miss."""
        tt = TranspositionTable(size=101)
        for key in range(50):
            tt.put(key, 1 + key)
        assert tt.get_fill_rate() == pytest.approx(50 / 101 * 100)

        tt.clear()
        assert tt.get_fill_rate() == 0.0
        assert tt.get(3) is None
        assert tt.get_stats()['stores'] == 0

    def test_stats(self):
        """Hits and misses are counted."""
        tt = TranspositionTable(size=101)
        tt.put(1, 5)
        tt.get(1)
        tt.get(2)
        stats = tt.get_stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5
        assert stats['size_entries'] == 101
