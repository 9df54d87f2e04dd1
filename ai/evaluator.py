"""Static evaluation of Nine Men's Morris positions.

Scores a position from one side's perspective as a weighted sum of material,
completed mills, near-mills, mobility and blocked pieces. Every term is a
difference between the two sides, so the score is antisymmetric:
``evaluate(s, WHITE) == -evaluate(s, BLACK)``.
"""

from __future__ import annotations

from core.board import Board
from core.constants import Phase, Side
from core.game_state import GameState
from engine.rules import piece_moves

from .config import DEFAULT_WEIGHTS, EvaluationWeights


def count_blocked(board: Board, side: Side) -> int:
    """Number of ``side`` pieces with no empty neighbour."""
    return sum(1 for p in board.positions_of(side) if not board.has_empty_neighbor(p))


def count_mobility(state: GameState, side: Side) -> int:
    """Number of moves ``side`` could make in its own phase."""
    return len(piece_moves(state, side))


def terminal_score(state: GameState, side: Side, weights: EvaluationWeights = DEFAULT_WEIGHTS) -> int:
    """Score of a finished game: win, loss, or 0 if there is no winner."""
    if state.winner is None:
        return 0
    return weights.win_score if state.winner == side else -weights.win_score


def evaluation_breakdown(
    state: GameState,
    side: Side,
    weights: EvaluationWeights = DEFAULT_WEIGHTS,
) -> dict[str, int]:
    """Weighted value of each evaluation term for ``side``.

    Args:
        state: Non-terminal position to score.
        side: Perspective of the score.
        weights: Term weights.

    Returns:
        Mapping of term name to its weighted contribution.
    """
    board = state.board
    opp = side.opposite()

    material = state.on_board(side) - state.on_board(opp)
    mills = board.count_mills(side) - board.count_mills(opp)
    near_mills = board.count_near_mills(side) - board.count_near_mills(opp)
    mobility = count_mobility(state, side) - count_mobility(state, opp)

    blocked = 0
    if state.phase != Phase.PLACEMENT:
        blocked = count_blocked(board, side) - count_blocked(board, opp)

    return {
        "material": material * weights.piece,
        "mills": mills * weights.mill,
        "near_mills": near_mills * weights.potential_mill,
        "mobility": mobility * weights.mobility,
        "blocked": -blocked * weights.blocked,
    }


def evaluate(
    state: GameState,
    side: Side,
    weights: EvaluationWeights = DEFAULT_WEIGHTS,
) -> int:
    """Score a position from ``side``'s perspective (higher is better).

    Finished games score ``+win_score`` / ``-win_score`` (0 without a winner).
    """
    if state.game_over:
        return terminal_score(state, side, weights)
    return sum(evaluation_breakdown(state, side, weights).values())
