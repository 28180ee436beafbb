"""
Strong solver for Connect Four: exact scores by negamax alpha-beta search.

This is the core search algorithm. Unlike a depth-limited engine it never
evaluates heuristically: every line is searched to the end of the game, so
the returned score is the game-theoretic value of the position.

Key features:
- Negamax framework (simplified minimax using negation)
- Alpha-beta pruning (cut branches that can't affect final result)
- Null-window searches driven by a binary search on the score
- Transposition table storing one bound per position
- Opening book for exact scores of early positions
- Move ordering: non-losing moves only, most new threats first
- Optional node/time budget returning certified bounds instead of a score


Scores (from the point of view of the player to move):
- positive: the player wins; 22 - k when winning with their k-th stone
- zero: draw with perfect play
- negative: the opponent wins; the negation of the opponent's win score


Algorithm overview:

    def solve(position):
        low, high = theoretical score range
        while low < high:
            mid = middle of [low, high], biased toward 0
            r = negamax(position, mid, mid + 1)     # is score > mid ?
            if r <= mid: high = r
            else:        low = r
        return low

    def negamax(position, alpha, beta):
        if no non-losing move: return loss score
        tighten [alpha, beta] with the reachable score range
        if book has the position: return book score
        tighten [alpha, beta] with the transposition table bound
        for move in ordered non-losing moves:
            score = -negamax(child, -beta, -alpha)
            if score >= beta:
                store lower bound, return score      # Beta cutoff
            alpha = max(alpha, score)
        store upper bound, return alpha
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Optional

from connect_four_solver.config import SOLVER_CONFIG
from connect_four_solver.errors import SearchInterrupted
from connect_four_solver.game.position import Position, WIDTH, BOARD_SIZE, MIN_SCORE, MAX_SCORE
from connect_four_solver.engine.move_ordering import MoveOrdering, order_moves_simple
from connect_four_solver.engine.opening_book import OpeningBook, get_default_book
from connect_four_solver.engine.transposition_table import TranspositionTable


logger = logging.getLogger(__name__)

# Bound encoding in the transposition table value byte:
#   upper bound s -> s - MIN_SCORE + 1                 (1 .. UPPER_BOUND_LIMIT)
#   lower bound s -> s + MAX_SCORE - 2*MIN_SCORE + 2   (above UPPER_BOUND_LIMIT)
UPPER_BOUND_LIMIT = MAX_SCORE - MIN_SCORE + 1
_LOWER_BOUND_OFFSET = MAX_SCORE - 2 * MIN_SCORE + 2

_USE_DEFAULT_BOOK = object()


@dataclass
class SearchResult:
    """Result of a solver search."""
    score: int
    exact: bool
    lower_bound: int
    upper_bound: int
    nodes_searched: int
    time_ms: int
    tt_stats: dict


def win_score(position: Position) -> int:
    """Score of the player to move winning with their next stone."""
    return (BOARD_SIZE + 1 - position.moves) // 2


def terminal_score(position: Position) -> int:
    """Score of a finished game: 0 for a draw, else the loss of the player to move."""
    if position.is_won():
        # The opponent won with the previous ply
        return -((BOARD_SIZE + 2 - position.moves) // 2)
    return 0


def _truncated_half(value: int) -> int:
    """value / 2 rounded toward zero."""
    return -((-value) // 2) if value < 0 else value // 2


def _clamp_score(score: int) -> int:
    # Bounds outside [MIN_SCORE, MAX_SCORE] carry no information beyond the extremes
    return min(max(score, MIN_SCORE), MAX_SCORE)


class Solver:
    """
    Exact Connect Four solver.

    A solver owns one transposition table which is kept across calls, so
    solving related positions (children of the same root, successive moves of
    a game) gets cheaper over time. A solver is not meant to be used from
    several threads at once; the opening book may be shared freely.
    """

    def __init__(
        self,
        tt_size: Optional[int] = None,
        opening_book=_USE_DEFAULT_BOOK,
        move_ordering: Optional[MoveOrdering] = None,
    ):
        """
        Initialize solver.

        Args:
            tt_size: Transposition table slot count (SOLVER_CONFIG['tt_size'] if None)
            opening_book: OpeningBook to consult, or None to run without a book.
                By default the packaged book is loaded when
                SOLVER_CONFIG['use_opening_book'] is set.
            move_ordering: Move ordering heuristics (center-first by default)

        Raises:
            BookLoadError: If the default book is requested but cannot be loaded
        """
        if opening_book is _USE_DEFAULT_BOOK:
            opening_book = get_default_book() if SOLVER_CONFIG['use_opening_book'] else None

        self.opening_book: Optional[OpeningBook] = opening_book
        self.transposition_table = TranspositionTable(tt_size)
        self.move_ordering = move_ordering or MoveOrdering()

        # Search statistics
        self.explored_positions = 0

        # Budget state of the running search
        self._max_nodes: Optional[int] = None
        self._deadline: Optional[float] = None
        self._next_budget_check = float('inf')

    def reset(self):
        """Forget everything learned so far (transposition table and counters)."""
        self.explored_positions = 0
        self.transposition_table.clear()

    def solve(self, position: Position, weak: bool = False) -> int:
        """
        Exact score of a position.

        Args:
            position: Any position built through Position's constructors
            weak: Only compute the sign of the score (win/draw/loss), faster

        Returns:
            The exact score, or -1/0/1 when `weak` is set
        """
        return self.search(position, weak=weak).score

    def search(
        self,
        position: Position,
        max_nodes: Optional[int] = None,
        time_limit_ms: Optional[int] = None,
        weak: bool = False,
    ) -> SearchResult:
        """
        Main search entry point with an optional budget.

        Strategy:
        - Trivial positions (finished, immediate win, book hit) return at once
        - Otherwise binary search on the score with null-window searches
        - When the budget runs out, the current null-window search is dropped and the
          bounds proven so far are returned with exact=False

        Args:
            position: Position to solve
            max_nodes: Node budget (None for unlimited)
            time_limit_ms: Time budget in milliseconds (None for unlimited)
            weak: Only compute the sign of the score

        Returns:
            SearchResult with score, bounds and statistics
        """
        deadline = None
        if time_limit_ms is not None:
            deadline = time.perf_counter() + time_limit_ms / 1000.0
        return self._search(position, max_nodes, deadline, weak)

    def _search(
        self,
        position: Position,
        max_nodes: Optional[int],
        deadline: Optional[float],
        weak: bool,
    ) -> SearchResult:
        start_time = time.perf_counter()
        self.explored_positions = 0

        score = self._trivial_score(position)
        if score is not None:
            if weak:
                score = (score > 0) - (score < 0)
            return self._result(score, score, score, start_time)

        if weak:
            low, high = -1, 1
        else:
            low = -((BOARD_SIZE - position.moves) // 2)
            high = (BOARD_SIZE + 1 - position.moves) // 2

        self._start_budget(max_nodes, deadline)
        try:
            while low < high:
                # Binary search for the true score, probing closer to 0 first
                mid = low + (high - low) // 2
                if mid <= 0 and _truncated_half(low) < mid:
                    mid = _truncated_half(low)
                elif mid >= 0 and _truncated_half(high) > mid:
                    mid = _truncated_half(high)

                # Null-window search: is the score greater than mid?
                r = self.negamax(position, mid, mid + 1)
                if r <= mid:
                    high = r
                else:
                    low = r
        except SearchInterrupted:
            logger.debug(
                "Search budget exhausted after %d nodes; score in [%d, %d]",
                self.explored_positions, low, high
            )
            estimate = min(max(0, low), high)
            return self._result(estimate, low, high, start_time, exact=False)
        finally:
            self._stop_budget()

        if weak:
            # Probes may prove more than the sign
            low = high = (low > 0) - (low < 0)
        return self._result(low, low, high, start_time)

    def _trivial_score(self, position: Position) -> Optional[int]:
        if position.is_over():
            return terminal_score(position)
        if position.can_win_next():
            return win_score(position)
        if self.opening_book is not None:
            return self.opening_book.lookup(position)
        return None

    def _result(self, score, lower, upper, start_time, exact=True) -> SearchResult:
        return SearchResult(
            score=score,
            exact=exact,
            lower_bound=lower,
            upper_bound=upper,
            nodes_searched=self.explored_positions,
            time_ms=int((time.perf_counter() - start_time) * 1000),
            tt_stats=self.transposition_table.get_stats(),
        )

    def negamax(self, position: Position, alpha: int, beta: int) -> int:
        """
        Negamax alpha-beta search.

        The player to move must not be able to win immediately; the solver
        checks this at the root and only ever plays non-losing moves below it.

        Args:
            position: Position to search
            alpha: Alpha bound
            beta: Beta bound (alpha < beta)

        Returns:
            The exact score if it lies in ]alpha, beta[, otherwise a bound:
            an upper bound <= alpha, or a lower bound >= beta
        """
        self.explored_positions += 1
        if self.explored_positions >= self._next_budget_check:
            self._check_budget()

        moves = position.moves
        candidates = position.possible_non_losing_moves()
        if candidates == 0:
            # Every move lets the opponent win next turn
            return -((BOARD_SIZE - moves) // 2)

        if moves >= BOARD_SIZE - 2:
            # Neither player can win with the last two discs
            return 0

        # Lower bound: the opponent cannot win with their next move
        low = -((BOARD_SIZE - 2 - moves) // 2)
        if alpha < low:
            alpha = low
            if alpha >= beta:
                return alpha

        # Upper bound: we cannot win with our next move
        high = (BOARD_SIZE - 1 - moves) // 2
        if beta > high:
            beta = high
            if alpha >= beta:
                return beta

        if self.opening_book is not None:
            book_score = self.opening_book.lookup(position)
            if book_score is not None:
                return book_score

        # Transposition table lookup
        key = position.canonical_key()
        value = self.transposition_table.get(key)
        if value is not None:
            if value > UPPER_BOUND_LIMIT:
                low = value - _LOWER_BOUND_OFFSET
                if alpha < low:
                    alpha = low
                    if alpha >= beta:
                        return alpha
            else:
                high = value + MIN_SCORE - 1
                if beta > high:
                    beta = high
                    if alpha >= beta:
                        return beta

        for column in self.move_ordering.order_moves(position, candidates):
            score = -self.negamax(position.child(column), -beta, -alpha)

            # Beta cutoff
            if score >= beta:
                self.transposition_table.put(key, _clamp_score(score) + _LOWER_BOUND_OFFSET)
                return score

            if score > alpha:
                alpha = score

        self.transposition_table.put(key, _clamp_score(alpha) - MIN_SCORE + 1)
        return alpha

    def analyse_moves(
        self,
        position: Position,
        max_nodes: Optional[int] = None,
        time_limit_ms: Optional[int] = None,
    ) -> list[Optional[SearchResult]]:
        """
        Search result of every column, from the point of view of the player to move.

        Columns cut off by the budget keep `exact=False` and carry the bounds
        proven before the cutoff, so estimates are never mistaken for exact scores.

        Args:
            position: Position to analyse
            max_nodes: Node budget for each child search
            time_limit_ms: Time budget for the whole analysis

        Returns:
            List of length WIDTH: the result of playing each column, or None
            for full columns (all None once the game is over)
        """
        results: list[Optional[SearchResult]] = [None] * WIDTH
        if position.is_over():
            return results

        deadline = None
        if time_limit_ms is not None:
            deadline = time.perf_counter() + time_limit_ms / 1000.0

        total_nodes = 0
        for column in order_moves_simple(position):
            if position.is_winning_move(column):
                score = win_score(position)
                results[column] = SearchResult(
                    score=score, exact=True, lower_bound=score, upper_bound=score,
                    nodes_searched=0, time_ms=0, tt_stats=self.transposition_table.get_stats(),
                )
                continue

            child = position.copy()
            child.play(column)
            result = self._search(child, max_nodes, deadline, weak=False)
            total_nodes += result.nodes_searched

            # Negamax: the child's bounds swap sides for the parent
            results[column] = replace(
                result,
                score=-result.score,
                lower_bound=-result.upper_bound,
                upper_bound=-result.lower_bound,
            )

        self.explored_positions = total_nodes
        return results

    def get_all_move_scores(
        self,
        position: Position,
        max_nodes: Optional[int] = None,
        time_limit_ms: Optional[int] = None,
    ) -> list[Optional[int]]:
        """
        Scores of every column from the point of view of the player to move.

        Under a budget some scores may be estimates; use analyse_moves to
        tell them apart from exact scores.

        Returns:
            List of length WIDTH: the score of playing each column, or None
            for full columns (all None once the game is over)
        """
        results = self.analyse_moves(position, max_nodes=max_nodes, time_limit_ms=time_limit_ms)
        return [None if result is None else result.score for result in results]

    def best_move(self, position: Position) -> Optional[int]:
        """Optimal column for the player to move (ties: center first), or None."""
        if position.is_over():
            return None
        scores = self.get_all_move_scores(position)
        best_column = None
        for column in order_moves_simple(position):
            if best_column is None or scores[column] > scores[best_column]:
                best_column = column
        return best_column

    def _start_budget(self, max_nodes: Optional[int], deadline: Optional[float]):
        self._max_nodes = max_nodes
        self._deadline = deadline
        if max_nodes is None and deadline is None:
            self._next_budget_check = float('inf')
        else:
            self._next_budget_check = 0

    def _stop_budget(self):
        self._max_nodes = None
        self._deadline = None
        self._next_budget_check = float('inf')

    def _check_budget(self):
        """Raise SearchInterrupted once the node or time budget is spent."""
        nodes = self.explored_positions
        if self._max_nodes is not None and nodes > self._max_nodes:
            raise SearchInterrupted(f"node budget of {self._max_nodes} exceeded")
        if self._deadline is not None and time.perf_counter() >= self._deadline:
            raise SearchInterrupted("time budget exceeded")

        next_check = nodes + SOLVER_CONFIG['node_check_interval']
        if self._max_nodes is not None:
            next_check = min(next_check, self._max_nodes + 1)
        self._next_budget_check = next_check

    def get_stats(self) -> dict:
        """Get search statistics."""
        return {
            'nodes_searched': self.explored_positions,
            'tt_stats': self.transposition_table.get_stats(),
            'tt_fill_rate': self.transposition_table.get_fill_rate(),
        }
