"""
Unit tests for move ordering heuristics.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from connect_four_solver.game.position import Position
from connect_four_solver.engine.move_ordering import MoveOrdering, order_moves_simple, CENTER_ORDER


class TestMoveOrdering:
    """Test candidate ordering."""

    def test_center_order(self):
        """Static order starts at the center."""
        assert CENTER_ORDER == (3, 2, 4, 1, 5, 0, 6)

    def test_empty_board_uses_static_order(self):
        """Without threats the static order decides."""
        position = Position()
        ordering = MoveOrdering()
        assert ordering.order_moves(position, position.possible()) == list(CENTER_ORDER)

    def test_threat_creating_move_first(self):
        """Columns creating threats come first."""
        # X holds columns 3 and 4 of the bottom row; extending to 2 or 5
        # creates an open three with two winning cells
        position = Position.from_move_sequence("4455")
        ordering = MoveOrdering()
        columns = ordering.order_moves(position, position.possible())
        assert columns[:2] == [2, 5]
        assert len(columns) == 7

    def test_only_candidates_returned(self):
        """Only candidate columns are returned."""
        position = Position.from_move_sequence("12131")
        ordering = MoveOrdering()
        assert ordering.order_moves(position, position.possible_non_losing_moves()) == [0]

    def test_custom_order_must_be_permutation(self):
        """A custom order must list every column once."""
        with pytest.raises(ValueError):
            MoveOrdering(column_order=(0, 1, 2))

    def test_order_moves_simple_skips_full_columns(self):
        """Full columns are left out of the static order."""
        position = Position.from_move_sequence("444444")
        assert order_moves_simple(position) == [2, 4, 1, 5, 0, 6]
