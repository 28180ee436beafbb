"""
Unit tests for the bitboard position.

Tests verify:
1. Move sequences and board strings build the right positions
2. Invalid input is rejected with ParseError / InvalidMove
3. Keys are unique and mirror-symmetric
4. Threat detection (winning moves, non-losing moves)
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from connect_four_solver.errors import ParseError, InvalidMove
from connect_four_solver.game.position import Position, column_mask, has_alignment, mirror_bits


FULL_DRAW_BOARD = """
xxooxxo
ooxxoox
xxooxxo
ooxxoox
xxooxxo
ooxxoox
"""


class TestMoveSequence:
    """Test building positions from move strings."""

    def test_empty_sequence(self):
        """An empty sequence is the start position."""
        position = Position.from_move_sequence("")
        assert position.nb_moves() == 0
        assert position.key() == 0

    def test_moves_counted(self):
        """Every digit counts as one move."""
        position = Position.from_move_sequence("4453")
        assert position.nb_moves() == 4
        assert position.column_height(3) == 2
        assert position.column_height(4) == 1
        assert position.column_height(2) == 1

    def test_column_eight_rejected(self):
        """Column 8 does not exist."""
        with pytest.raises(ParseError) as exc_info:
            Position.from_move_sequence("8")
        assert exc_info.value.index == 0
        assert exc_info.value.column == 8

    def test_column_zero_rejected(self):
        """Columns are numbered from 1."""
        with pytest.raises(ParseError):
            Position.from_move_sequence("440")

    def test_non_digit_rejected(self):
        """Only digits are accepted."""
        with pytest.raises(ParseError) as exc_info:
            Position.from_move_sequence("44a")
        assert exc_info.value.index == 2

    def test_full_column_rejected(self):
        """A seventh disc in a column is rejected."""
        with pytest.raises(ParseError) as exc_info:
            Position.from_move_sequence("1111111")
        assert exc_info.value.index == 6

    def test_move_after_win_rejected(self):
        """Moves after a win are rejected."""
        with pytest.raises(ParseError):
            Position.from_move_sequence("12121212")

    def test_parse_error_is_value_error(self):
        """Parse errors are ValueErrors."""
        with pytest.raises(ValueError):
            Position.from_move_sequence("9")


class TestPlay:
    """Test direct moves."""

    def test_full_column_raises(self):
        """Playing a full column raises."""
        position = Position.from_move_sequence("111111")
        assert not position.can_play(0)
        with pytest.raises(InvalidMove) as exc_info:
            position.play(0)
        assert exc_info.value.column == 0

    def test_out_of_range_raises(self):
        """Playing outside the board raises."""
        position = Position()
        with pytest.raises(InvalidMove):
            position.play(7)
        with pytest.raises(InvalidMove):
            position.play(-1)

    def test_play_after_win_raises(self):
        """Playing after a win raises."""
        position = Position.from_move_sequence("1212121")
        assert position.is_won()
        assert position.is_over()
        with pytest.raises(InvalidMove):
            position.play(3)

    def test_play_matches_child(self):
        """play agrees with building the sequence."""
        position = Position.from_move_sequence("4453")
        child = position.child(5)
        position.play(5)
        assert position == child
        assert position.moves == child.moves == 5

    def test_failed_play_leaves_position_unchanged(self):
        """A rejected move leaves the position as it was."""
        position = Position.from_move_sequence("111111")
        before = position.copy()
        with pytest.raises(InvalidMove):
            position.play(0)
        assert position == before
        assert position.moves == before.moves


class TestBoardString:
    """Test board drawings."""

    def test_round_trip(self):
        """Board strings parse back to the same position."""
        position = Position.from_move_sequence("44536")
        assert Position.from_board_string(position.to_board_string()) == position

    def test_full_board_draw(self):
        """A full board without alignment is a draw."""
        position = Position.from_board_string(FULL_DRAW_BOARD)
        assert position.nb_moves() == 42
        assert position.is_over()
        assert not position.is_won()

    def test_wrong_length_rejected(self):
        """Board strings need six rows of seven cells."""
        with pytest.raises(ParseError):
            Position.from_board_string("x" * 10)

    def test_floating_disc_rejected(self):
        """Discs above an empty cell are rejected."""
        board = "......." * 4 + "...x..." + "......."
        with pytest.raises(ParseError):
            Position.from_board_string(board)

    def test_unbalanced_counts_rejected(self):
        """Disc counts must match a legal turn order."""
        board = "......." * 5 + "xx....."
        with pytest.raises(ParseError):
            Position.from_board_string(board)


class TestKeys:
    """Test position keys and symmetry."""

    def test_keys_differ_by_move_order_only_when_positions_differ(self):
        """Transposed move orders share a key, other positions do not."""
        a = Position.from_move_sequence("4453")
        b = Position.from_move_sequence("5344")
        c = Position.from_move_sequence("4435")
        assert a.key() == b.key()
        assert a.key() != c.key()

    def test_mirror_positions_share_canonical_key(self):
        """A position and its mirror share the canonical key."""
        left = Position.from_move_sequence("12")
        right = Position.from_move_sequence("76")
        assert left.key() != right.key()
        assert left.mirrored_key() == right.key()
        assert left.canonical_key() == right.canonical_key()

    def test_mirror_is_involution(self):
        """Mirroring twice gives the original."""
        position = Position.from_move_sequence("1234567")
        assert position.mirror().mirror() == position
        assert mirror_bits(mirror_bits(position.mask)) == position.mask

    def test_canonical_key_is_minimum(self):
        """The canonical key is the smaller of the two keys."""
        position = Position.from_move_sequence("6654")
        assert position.canonical_key() == min(position.key(), position.mirrored_key())

    def test_first_move_keys(self):
        """Single discs have the expected keys."""
        assert Position.from_move_sequence("1").key() == 1
        assert Position.from_move_sequence("4").key() == 1 << 21


class TestThreats:
    """Test winning move and non-losing move detection."""

    def test_vertical_win_available(self):
        """Three stacked discs give a winning move."""
        position = Position.from_move_sequence("121212")
        assert position.can_win_next()
        assert position.is_winning_move(0)
        assert not position.is_winning_move(1)

    def test_horizontal_alignment(self):
        """Four in a row is detected."""
        assert has_alignment(1 | 1 << 7 | 1 << 14 | 1 << 21)
        assert not has_alignment(1 | 1 << 7 | 1 << 14)

    def test_guard_bit_blocks_vertical_wrap(self):
        """Alignments do not wrap between columns."""
        # Top three cells of column 0 and the bottom cell of column 1
        assert not has_alignment(1 << 3 | 1 << 4 | 1 << 5 | 1 << 7)

    def test_forced_block(self):
        """An opponent threat leaves one non-losing move."""
        # X has three discs in column 1, O must block there
        position = Position.from_move_sequence("12131")
        assert position.possible_non_losing_moves() == position.possible() & column_mask(0)

    def test_no_threats_all_moves_non_losing(self):
        """Without threats every move is non-losing."""
        position = Position()
        assert position.possible_non_losing_moves() == position.possible()

    def test_double_threat_loses(self):
        """Two opponent threats leave no non-losing move."""
        # X threatens both ends of an open three on the bottom row
        position = Position.from_move_sequence("3344")
        position.play(4)
        assert position.possible_non_losing_moves() == 0
