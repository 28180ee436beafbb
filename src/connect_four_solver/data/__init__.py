"""
Offline tools: opening book generation, test-position files and benchmarks.
"""

from connect_four_solver.data.book_generator import generate_opening_book, enumerate_positions
from connect_four_solver.data.test_positions import TestPosition, load_test_positions, parse_test_positions

__all__ = [
    'generate_opening_book',
    'enumerate_positions',
    'TestPosition',
    'load_test_positions',
    'parse_test_positions',
]
