"""
Strong solver for Connect Four.

    from connect_four_solver import Position, Solver
    score = Solver().solve(Position.from_move_sequence("4453"))
"""

from connect_four_solver.errors import ConnectFourError, ParseError, InvalidMove, BookLoadError
from connect_four_solver.game import Position
from connect_four_solver.engine import OpeningBook, Solver, SearchResult, AIPlayer, Difficulty

__version__ = '0.1.0'

__all__ = [
    'ConnectFourError',
    'ParseError',
    'InvalidMove',
    'BookLoadError',
    'Position',
    'OpeningBook',
    'Solver',
    'SearchResult',
    'AIPlayer',
    'Difficulty',
]
