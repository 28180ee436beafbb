"""
Unit tests for opening book generation and test-position files.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from connect_four_solver.errors import ParseError
from connect_four_solver.game.position import Position
from connect_four_solver.engine.opening_book import OpeningBook
from connect_four_solver.engine.solver import Solver
from connect_four_solver.data.book_generator import enumerate_positions, generate_opening_book
from connect_four_solver.data.test_positions import load_test_positions, parse_test_positions
from connect_four_solver.data.benchmark import run_benchmark


DRAW_ROWS = [
    "xxooxxo",
    "ooxxoox",
    "xxooxxo",
    "ooxxoox",
    "xxooxxo",
    "ooxxoox",
]


def late_root() -> Position:
    """28-ply position with two empty rows left."""
    rows = ["......."] * 2 + DRAW_ROWS[2:]
    return Position.from_board_string("\n".join(rows))


class TestEnumeration:
    """Test breadth-first position enumeration."""

    def test_first_ply_symmetric(self):
        """Mirror openings collapse to one entry."""
        positions = enumerate_positions(1)
        # Empty board plus columns 1..4 (5..7 are mirrors)
        assert len(positions) == 5
        assert positions[0] == Position()

    def test_second_ply_count(self):
        """Two-ply enumeration yields the distinct canonical positions."""
        positions = enumerate_positions(2)
        assert len([p for p in positions if p.moves == 2]) == 25

    def test_keys_unique(self):
        """Enumerated keys are distinct."""
        positions = enumerate_positions(3)
        keys = [p.canonical_key() for p in positions]
        assert len(keys) == len(set(keys))

    def test_root_deeper_than_depth(self):
        """A root already past the depth yields nothing."""
        assert enumerate_positions(5, root=late_root()) == []


class TestGenerateBook:
    """Test that generated books agree with the solver."""

    def test_book_matches_solver(self):
        """Every book score equals the solver's."""
        root = late_root()
        book = generate_opening_book(max_depth=29, num_workers=1, tt_size=65537, root=root, show_progress=False)

        positions = enumerate_positions(29, root=root)
        assert len(book) == len(positions)
        assert book.max_depth == 29

        solver = Solver(tt_size=65537, opening_book=None)
        for position in positions:
            assert book.lookup(position) == solver.solve(position)

    def test_solver_with_generated_book(self):
        """A solver using the generated book scores alike."""
        root = late_root()
        book = generate_opening_book(max_depth=29, num_workers=1, tt_size=65537, root=root, show_progress=False)

        with_book = Solver(tt_size=65537, opening_book=book)
        without_book = Solver(tt_size=65537, opening_book=None)
        assert with_book.solve(root) == without_book.solve(root)
        assert with_book.search(root).nodes_searched == 0

    def test_book_survives_file_round_trip(self, tmp_path):
        """A generated book reloads from disk unchanged."""
        book = generate_opening_book(max_depth=36, num_workers=1, tt_size=65537, show_progress=False,
                                     root=Position.from_board_string("\n".join(["......."] + DRAW_ROWS[1:])))
        assert len(book) > 1
        path = tmp_path / 'book.bin'
        book.save(path)
        loaded = OpeningBook.load(path)
        assert list(loaded.keys) == list(book.keys)
        assert list(loaded.scores) == list(book.scores)

    def test_worker_pool_matches_sequential(self):
        """The worker pool gives the sequential scores."""
        root = late_root()
        sequential = generate_opening_book(max_depth=29, num_workers=1, tt_size=65537, root=root,
                                           show_progress=False)
        parallel = generate_opening_book(max_depth=29, num_workers=2, chunk_size=2, tt_size=65537, root=root,
                                         show_progress=False)
        assert list(parallel.keys) == list(sequential.keys)
        assert list(parallel.scores) == list(sequential.scores)


class TestTestPositions:
    """Test the '<moves> <score>' file format."""

    def test_parse_skips_comments_and_blanks(self):
        """Comment and blank lines are ignored."""
        lines = ["# known scores", "", "121212 18", "  1212121 -18  "]
        positions = parse_test_positions(lines)
        assert [(p.moves, p.score) for p in positions] == [("121212", 18), ("1212121", -18)]

    def test_malformed_line(self):
        """A line without a score is rejected."""
        with pytest.raises(ParseError) as exc_info:
            parse_test_positions(["121212 18", "121212"])
        assert exc_info.value.index == 2

    def test_invalid_score(self):
        """A non-integer score is rejected."""
        with pytest.raises(ParseError):
            parse_test_positions(["121212 abc"])

    def test_load_and_benchmark(self, tmp_path):
        """Positions load from a file and all solve correctly."""
        path = tmp_path / 'positions.txt'
        path.write_text("121212 18\n1212121 -18\n")
        positions = load_test_positions(path)

        stats = run_benchmark(Solver(tt_size=65537, opening_book=None), positions, show_progress=False)
        assert stats['positions'] == 2
        assert stats['accuracy'] == 1.0
        assert stats['failures'] == []

    def test_weak_benchmark(self, tmp_path):
        """Weak benchmarks compare signs only."""
        positions = parse_test_positions(["121212 18", "1212121 -18"])
        stats = run_benchmark(Solver(tt_size=65537, opening_book=None), positions, weak=True, show_progress=False)
        assert stats['accuracy'] == 1.0
