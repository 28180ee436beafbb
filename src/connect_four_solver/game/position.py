"""
Bitboard representation of a Connect Four position.

The 7x6 board is stored column-major in a single integer, with one extra
guard bit on top of every column so that columns never bleed into each other:

      6 13 20 27 34 41 48      <- guard row (always empty)
    ---------------------
    | 5 12 19 26 33 40 47 |
    | 4 11 18 25 32 39 46 |
    | 3 10 17 24 31 38 45 |
    | 2  9 16 23 30 37 44 |
    | 1  8 15 22 29 36 43 |
    | 0  7 14 21 28 35 42 |
    ---------------------

Two bitmasks describe a position:
- current: discs of the player to move
- mask:    all occupied cells

The opponent's discs are `current ^ mask`. Playing a move swaps the roles of
the two players, so "current" always means the side about to move (negamax
convention).
"""

from connect_four_solver.config import BOARD_CONFIG
from connect_four_solver.errors import InvalidMove, ParseError


WIDTH = BOARD_CONFIG['width']
HEIGHT = BOARD_CONFIG['height']
BOARD_SIZE = WIDTH * HEIGHT

# Extremes of the score of any position that is not already decided
MIN_SCORE = -(BOARD_SIZE // 2) + 3
MAX_SCORE = (BOARD_SIZE + 1) // 2 - 3

_COLUMN_STRIDE = HEIGHT + 1
_COLUMN_KEY_MASK = (1 << _COLUMN_STRIDE) - 1


def bottom_mask_col(column: int) -> int:
    """Single bit at the bottom cell of a column."""
    return 1 << (column * _COLUMN_STRIDE)


def top_mask_col(column: int) -> int:
    """Single bit at the top playable cell of a column."""
    return 1 << (HEIGHT - 1 + column * _COLUMN_STRIDE)


def column_mask(column: int) -> int:
    """All playable cells of a column."""
    return ((1 << HEIGHT) - 1) << (column * _COLUMN_STRIDE)


BOTTOM_MASK = sum(bottom_mask_col(column) for column in range(WIDTH))
BOARD_MASK = BOTTOM_MASK * ((1 << HEIGHT) - 1)


def compute_winning_positions(position: int, mask: int) -> int:
    """
    Mask of empty cells that would complete a 4-alignment for `position`.

    Includes cells that are not directly playable yet (floating threats).

    Args:
        position: Bitmask of one player's discs
        mask: Bitmask of all occupied cells

    Returns:
        Bitmask of winning cells
    """
    # Vertical
    r = (position << 1) & (position << 2) & (position << 3)

    # Horizontal
    p = (position << _COLUMN_STRIDE) & (position << 2 * _COLUMN_STRIDE)
    r |= p & (position << 3 * _COLUMN_STRIDE)
    r |= p & (position >> _COLUMN_STRIDE)
    p = (position >> _COLUMN_STRIDE) & (position >> 2 * _COLUMN_STRIDE)
    r |= p & (position << _COLUMN_STRIDE)
    r |= p & (position >> 3 * _COLUMN_STRIDE)

    # Diagonal going down to the right
    p = (position << HEIGHT) & (position << 2 * HEIGHT)
    r |= p & (position << 3 * HEIGHT)
    r |= p & (position >> HEIGHT)
    p = (position >> HEIGHT) & (position >> 2 * HEIGHT)
    r |= p & (position << HEIGHT)
    r |= p & (position >> 3 * HEIGHT)

    # Diagonal going up to the right
    p = (position << (HEIGHT + 2)) & (position << 2 * (HEIGHT + 2))
    r |= p & (position << 3 * (HEIGHT + 2))
    r |= p & (position >> (HEIGHT + 2))
    p = (position >> (HEIGHT + 2)) & (position >> 2 * (HEIGHT + 2))
    r |= p & (position << (HEIGHT + 2))
    r |= p & (position >> 3 * (HEIGHT + 2))

    return r & (BOARD_MASK ^ mask)


def has_alignment(position: int) -> bool:
    """True if the discs in `position` contain four in a row in any direction."""
    for shift in (_COLUMN_STRIDE, HEIGHT, HEIGHT + 2, 1):
        m = position & (position >> shift)
        if m & (m >> 2 * shift):
            return True
    return False


def mirror_bits(bits: int) -> int:
    """Mirror a column-major bitboard (or key) around the central column."""
    mirrored = 0
    for column in range(WIDTH):
        column_bits = (bits >> (column * _COLUMN_STRIDE)) & _COLUMN_KEY_MASK
        mirrored |= column_bits << ((WIDTH - 1 - column) * _COLUMN_STRIDE)
    return mirrored


class Position:
    """
    Connect Four position stored as two bitboards.

    Attributes:
        current: Bitmask of the discs of the player to move
        mask: Bitmask of all discs
        moves: Number of plies played so far (always popcount(mask))
    """

    __slots__ = ('current', 'mask', 'moves')

    WIDTH = WIDTH
    HEIGHT = HEIGHT
    BOARD_SIZE = BOARD_SIZE
    MIN_SCORE = MIN_SCORE
    MAX_SCORE = MAX_SCORE

    def __init__(self, current: int = 0, mask: int = 0, moves: int = 0):
        self.current = current
        self.mask = mask
        self.moves = moves

    @classmethod
    def from_move_sequence(cls, sequence: str) -> 'Position':
        """
        Build a position from a string of 1-indexed column digits.

        Example: "4453" plays columns 3, 3, 4, 2 (0-indexed) in turn.

        Args:
            sequence: Column digits, first player first

        Returns:
            The resulting position

        Raises:
            ParseError: On a non-digit character, a column outside 1..7, a full
                column, or a move played after the game has ended
        """
        position = cls()
        for index, char in enumerate(sequence.strip()):
            if char not in '0123456789':
                raise ParseError(f"invalid character {char!r} at index {index}", index=index)

            column = int(char) - 1
            if not 0 <= column < WIDTH:
                raise ParseError(
                    f"invalid column {column + 1} at index {index}", index=index, column=column + 1
                )
            if position.is_over():
                raise ParseError(
                    f"invalid move at index {index}: the game is already over",
                    index=index, column=column + 1
                )
            if not position.can_play(column):
                raise ParseError(
                    f"invalid move at index {index}: column {column + 1} is full",
                    index=index, column=column + 1
                )

            position.play(column)

        return position

    @classmethod
    def from_board_string(cls, board: str) -> 'Position':
        """
        Build a position from a drawing of the board.

        The string holds 42 cells from {'.', 'x', 'o'} read row by row from the
        top-left corner; every other character is ignored. 'x' marks the discs
        of the player to move, 'o' those of the opponent.

        Raises:
            ParseError: If the drawing cannot come from a legal game
        """
        cells = [char for char in board.lower() if char in '.xo']
        if len(cells) != BOARD_SIZE:
            raise ParseError(f"invalid board string length: found {len(cells)}, expected {BOARD_SIZE}")

        current = 0
        mask = 0
        for index, cell in enumerate(cells):
            if cell == '.':
                continue
            row = HEIGHT - 1 - index // WIDTH
            column = index % WIDTH
            bit = 1 << (row + column * _COLUMN_STRIDE)
            mask |= bit
            if cell == 'x':
                current |= bit

        for column in range(WIDTH):
            column_bits = (mask >> (column * _COLUMN_STRIDE)) & _COLUMN_KEY_MASK
            if column_bits & (column_bits + 1):
                raise ParseError(f"floating disc in column {column + 1}", column=column + 1)

        moves = mask.bit_count()
        if current.bit_count() != moves // 2:
            raise ParseError(
                f"disc counts do not match a legal game: {current.bit_count()} 'x' and "
                f"{moves - current.bit_count()} 'o'"
            )
        if has_alignment(current):
            raise ParseError("the player to move already has four in a row")

        return cls(current, mask, moves)

    def copy(self) -> 'Position':
        return Position(self.current, self.mask, self.moves)

    def nb_moves(self) -> int:
        """Number of plies played to reach this position."""
        return self.moves

    def can_play(self, column: int) -> bool:
        """True if `column` is on the board and not full."""
        return 0 <= column < WIDTH and self.mask & top_mask_col(column) == 0

    def play(self, column: int) -> None:
        """
        Drop a disc of the player to move into `column`.

        Raises:
            InvalidMove: If the column is out of range or full, or the game is over
        """
        if not 0 <= column < WIDTH:
            raise InvalidMove(f"column {column} is out of range", column=column)
        if self.is_over():
            raise InvalidMove(f"cannot play column {column}: the game is over", column=column)
        if self.mask & top_mask_col(column):
            raise InvalidMove(f"column {column} is full", column=column)

        self.current ^= self.mask
        self.mask |= self.mask + bottom_mask_col(column)
        self.moves += 1

    def child(self, column: int) -> 'Position':
        """
        New position after playing `column`, without validity checks.

        The column must be playable and the game must not be over.
        """
        mask = self.mask
        return Position(self.current ^ mask, mask | (mask + bottom_mask_col(column)), self.moves + 1)

    def possible(self) -> int:
        """Mask of the cells where a disc can be dropped next."""
        return (self.mask + BOTTOM_MASK) & BOARD_MASK

    def winning_positions(self) -> int:
        return compute_winning_positions(self.current, self.mask)

    def opponent_winning_positions(self) -> int:
        return compute_winning_positions(self.current ^ self.mask, self.mask)

    def can_win_next(self) -> bool:
        """True if the player to move has an immediately winning column."""
        return self.winning_positions() & self.possible() != 0

    def is_winning_move(self, column: int) -> bool:
        """True if playing `column` completes four in a row for the player to move."""
        return self.winning_positions() & self.possible() & column_mask(column) != 0

    def possible_non_losing_moves(self) -> int:
        """
        Mask of playable cells that do not hand the opponent an immediate win.

        Assumes the player to move cannot win immediately. An empty mask means
        the opponent wins whatever is played.
        """
        possible = self.possible()
        opponent_wins = self.opponent_winning_positions()
        forced_moves = possible & opponent_wins
        if forced_moves:
            if forced_moves & (forced_moves - 1):
                # Two open threats cannot both be blocked
                return 0
            possible = forced_moves

        # Never play directly below an opponent's winning cell
        return possible & ~(opponent_wins >> 1)

    def score_move(self, move_bit: int) -> int:
        """Number of winning cells the player to move owns after playing `move_bit`."""
        return compute_winning_positions(self.current | move_bit, self.mask).bit_count()

    def is_won(self) -> bool:
        """True if the player who made the last move has four in a row."""
        return has_alignment(self.current ^ self.mask)

    def is_over(self) -> bool:
        return self.moves >= BOARD_SIZE or self.is_won()

    def column_height(self, column: int) -> int:
        return ((self.mask >> (column * _COLUMN_STRIDE)) & _COLUMN_KEY_MASK).bit_count()

    def key(self) -> int:
        """
        Unique key of the position.

        Adding `mask` to `current` sets the bit just above the top disc of every
        column, which marks the column heights and keeps the key unique.
        """
        return self.current + self.mask

    def mirrored_key(self) -> int:
        """Key of the horizontally mirrored position."""
        return mirror_bits(self.key())

    def canonical_key(self) -> int:
        """Symmetry-reduced key shared by a position and its mirror image."""
        key = self.current + self.mask
        return min(key, mirror_bits(key))

    def mirror(self) -> 'Position':
        """Horizontally mirrored copy of the position."""
        return Position(mirror_bits(self.current), mirror_bits(self.mask), self.moves)

    def to_board_string(self) -> str:
        """Drawing of the board, top row first; 'x' is the player to move."""
        rows = []
        for row in range(HEIGHT - 1, -1, -1):
            cells = []
            for column in range(WIDTH):
                bit = 1 << (row + column * _COLUMN_STRIDE)
                if not self.mask & bit:
                    cells.append('.')
                elif self.current & bit:
                    cells.append('x')
                else:
                    cells.append('o')
            rows.append(''.join(cells))
        return '\n'.join(rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.current == other.current and self.mask == other.mask

    def __hash__(self) -> int:
        return hash((self.current, self.mask))

    def __repr__(self) -> str:
        return f"Position(moves={self.moves}, key={self.key()})"

    def __str__(self) -> str:
        return self.to_board_string()

