"""
Board representation for Connect Four.
"""

from connect_four_solver.game.position import (
    Position,
    WIDTH,
    HEIGHT,
    BOARD_SIZE,
    MIN_SCORE,
    MAX_SCORE,
)

__all__ = ['Position', 'WIDTH', 'HEIGHT', 'BOARD_SIZE', 'MIN_SCORE', 'MAX_SCORE']
