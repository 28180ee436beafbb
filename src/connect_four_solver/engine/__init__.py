"""
Exact search engine for Connect Four.

This module contains the solver components:
- Transposition table for caching score bounds
- Opening book of precomputed early-game scores
- Negamax alpha-beta solver with null-window searches
- Move ordering heuristics
- Solver-backed AI player with adjustable difficulty
"""

from connect_four_solver.engine.transposition_table import TranspositionTable
from connect_four_solver.engine.move_ordering import MoveOrdering, order_moves_simple, CENTER_ORDER
from connect_four_solver.engine.opening_book import OpeningBook, get_default_book
from connect_four_solver.engine.solver import Solver, SearchResult
from connect_four_solver.engine.ai_player import AIPlayer, Difficulty, temperature_for

__all__ = [
    'TranspositionTable',
    'MoveOrdering',
    'order_moves_simple',
    'CENTER_ORDER',
    'OpeningBook',
    'get_default_book',
    'Solver',
    'SearchResult',
    'AIPlayer',
    'Difficulty',
    'temperature_for',
]
