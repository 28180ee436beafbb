"""
Move ordering heuristics for alpha-beta search.

Good move ordering is critical for alpha-beta pruning efficiency. The goal is to
search the best moves first to maximize beta cutoffs.

Ordering priority (high to low):
1. Immediate wins (handled before ordering: the position is decided)
2. Moves creating the most winning cells for the player to move
3. Static center-first preference, columns 3,2,4,1,5,0,6 on the standard board

Losing moves (those handing the opponent an immediate win) never reach the
ordering: candidates come from Position.possible_non_losing_moves().
"""

from connect_four_solver.game.position import Position, WIDTH, column_mask


# Center-out static order: 3, 2, 4, 1, 5, 0, 6
CENTER_ORDER = tuple(
    WIDTH // 2 + (1 - 2 * (i % 2)) * (i + 1) // 2 for i in range(WIDTH)
)


class MoveOrdering:
    """
    Orders candidate columns by the number of winning cells they create.

    Stateless apart from the static column order, so one instance can be
    shared by any number of searches.
    """

    def __init__(self, column_order: tuple[int, ...] = CENTER_ORDER):
        """
        Initialize move ordering.

        Args:
            column_order: Static preference used to break ties
        """
        if sorted(column_order) != list(range(WIDTH)):
            raise ValueError(f"column_order must be a permutation of 0..{WIDTH - 1}")
        self.column_order = tuple(column_order)

    def order_moves(self, position: Position, candidates: int) -> list[int]:
        """
        Order candidate moves for optimal alpha-beta pruning.

        Args:
            position: Position to move from
            candidates: Bitmask of playable cells to consider, usually
                position.possible_non_losing_moves()

        Returns:
            Columns sorted by descending heuristic score, ties in static order
        """
        scored = []
        for column in self.column_order:
            move_bit = candidates & column_mask(column)
            if move_bit:
                scored.append((position.score_move(move_bit), column))

        # list.sort is stable, so equal scores keep the center-first order
        scored.sort(key=lambda entry: entry[0], reverse=True)
        return [column for _, column in scored]

def order_moves_simple(position: Position) -> list[int]:
    """
    Legal columns in static center-first order, without any heuristic.

    Useful when only a stable preference is needed (tie-breaking, fallbacks).
    """
    return [column for column in CENTER_ORDER if position.can_play(column)]
