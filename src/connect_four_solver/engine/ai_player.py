"""
Computer opponent with adjustable strength.

The player asks the solver for the exact score of every column and then picks
one. At full difficulty it always plays the best column; below that it
samples from a softmax over the normalised scores, so it still prefers good
moves but makes mistakes more often the lower the difficulty:

    temperature = 0.1 * (1 - d) / d
    weight(column) = exp(normalised_score(column) / temperature)

Difficulty 0 plays uniformly at random among the legal columns.
"""

from typing import Optional, Union

import numpy as np

from connect_four_solver.config import AI_PLAYER_CONFIG
from connect_four_solver.game.position import Position, WIDTH, BOARD_SIZE
from connect_four_solver.engine.move_ordering import CENTER_ORDER
from connect_four_solver.engine.solver import Solver, SearchResult


class Difficulty:
    """Named difficulty presets."""
    EASY = AI_PLAYER_CONFIG['difficulty_presets']['easy']
    MEDIUM = AI_PLAYER_CONFIG['difficulty_presets']['medium']
    HARD = AI_PLAYER_CONFIG['difficulty_presets']['hard']
    IMPOSSIBLE = AI_PLAYER_CONFIG['difficulty_presets']['impossible']


def temperature_for(difficulty: float) -> float:
    """
    Softmax temperature for a difficulty.

    Returns 0.0 for greedy play (difficulty >= 1) and infinity for uniform
    play (difficulty <= 0).
    """
    if difficulty >= 1.0:
        return 0.0
    if difficulty <= 0.0:
        return float('inf')
    return AI_PLAYER_CONFIG['temperature_scale'] * (1.0 - difficulty) / difficulty


def _make_rng(rng) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


class AIPlayer:
    """
    Solver-backed Connect Four player.

    Owns one Solver, whose transposition table is reused from move to move.
    """

    def __init__(
        self,
        difficulty: Optional[float] = None,
        solver: Optional[Solver] = None,
        rng: Union[np.random.Generator, int, None] = None,
    ):
        """
        Args:
            difficulty: Strength in [0, 1] (AI_PLAYER_CONFIG default if None)
            solver: Solver to use (a new one with the default book if None)
            rng: numpy Generator or seed used for sampling
        """
        if difficulty is None:
            difficulty = AI_PLAYER_CONFIG['default_difficulty']
        self.difficulty = _check_difficulty(difficulty)
        self.solver = solver if solver is not None else Solver()
        self.rng = _make_rng(rng)

        # Outcome of the last choose_move analysis
        self.last_results: list[Optional[SearchResult]] = [None] * WIDTH
        self.last_move_exact = True

    def choose_move(
        self,
        position: Position,
        difficulty: Optional[float] = None,
        rng: Union[np.random.Generator, int, None] = None,
        max_nodes: Optional[int] = None,
        time_limit_ms: Optional[int] = None,
    ) -> Optional[int]:
        """
        Pick a column for the player to move.

        Args:
            position: Current position
            difficulty: Overrides the player's difficulty for this move
            rng: Overrides the player's generator for this move
            max_nodes: Node budget for each column's search
            time_limit_ms: Time budget for the whole analysis

        Returns:
            0-indexed column, or None if no move is possible. When a budget
            cut some column searches short, `last_move_exact` is False and
            `last_results` holds the proven bounds of every column.
        """
        results = self.solver.analyse_moves(position, max_nodes=max_nodes, time_limit_ms=time_limit_ms)
        self.last_results = results
        self.last_move_exact = all(result.exact for result in results if result is not None)

        scores = [None if result is None else result.score for result in results]
        return self.select_move(position, scores, difficulty=difficulty, rng=rng)

    def select_move(
        self,
        position: Position,
        scores: list,
        difficulty: Optional[float] = None,
        rng: Union[np.random.Generator, int, None] = None,
    ) -> Optional[int]:
        """Pick a column from precomputed scores (None marks unplayable columns)."""
        difficulty = self.difficulty if difficulty is None else _check_difficulty(difficulty)
        rng = self.rng if rng is None else _make_rng(rng)

        columns = [column for column in CENTER_ORDER if scores[column] is not None]
        if not columns:
            return None

        if difficulty >= 1.0:
            # First maximum in center order
            return max(columns, key=lambda column: scores[column])

        if difficulty <= 0.0:
            return int(rng.choice(columns))

        normalised = self.normalise_scores(position, [scores[column] for column in columns])
        logits = normalised / temperature_for(difficulty)
        weights = np.exp(logits - logits.max())
        probabilities = weights / weights.sum()

        return int(columns[rng.choice(len(columns), p=probabilities)])

    @staticmethod
    def normalise_scores(position: Position, scores) -> np.ndarray:
        """Scale scores to [-1, 1] by the largest score reachable from `position`."""
        scale = (BOARD_SIZE + 1 - position.moves) // 2
        return np.asarray(scores, dtype=np.float64) / max(scale, 1)

    def solve(self, position: Position) -> int:
        """Exact score of a position with the player's solver."""
        return self.solver.solve(position)

    def reset(self):
        """Forget the solver's cached results."""
        self.solver.reset()


def _check_difficulty(difficulty: float) -> float:
    if not 0.0 <= difficulty <= 1.0:
        raise ValueError(f"difficulty must be in [0, 1], got {difficulty}")
    return float(difficulty)
