"""
Exception hierarchy for the Connect Four solver.

- ParseError: a move sequence or board string cannot be turned into a position
- InvalidMove: a direct play() on a full column, an unknown column, or a finished game
- BookLoadError: the opening book resource is missing, corrupt or mis-versioned
- SearchInterrupted: a node/time budget ran out (internal, never escapes Solver.search)
"""

from typing import Optional


class ConnectFourError(Exception):
    """Base class for all solver errors."""


class ParseError(ConnectFourError, ValueError):
    """Raised when a move sequence or board string is not a valid position."""

    def __init__(self, message: str, index: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.index = index
        self.column = column


class InvalidMove(ConnectFourError, ValueError):
    """Raised when a column cannot be played in the current position."""

    def __init__(self, message: str, column: Optional[int] = None):
        super().__init__(message)
        self.column = column


class BookLoadError(ConnectFourError, RuntimeError):
    """Raised when an opening book cannot be loaded. Always fatal for the caller."""


class SearchInterrupted(ConnectFourError):
    """Signals that the node or time budget of a search was exceeded."""
