"""Look-ahead search for the automated opponent.

Minimax with alpha-beta pruning over complete turns. A turn that forms a
mill already includes its capture (a compound move), so every ply of the
search alternates sides and the capture is never a separate decision.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from core.constants import Side
from core.errors import GameOverError, NoLegalMoveError, PreconditionError
from core.game_state import GameState
from core.move import Move
from engine.rules import turn_successors

from .config import DEFAULT_SEARCH_CONFIG, DEFAULT_WEIGHTS, EvaluationWeights, SearchConfig
from .evaluator import evaluate, terminal_score

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """Outcome of one search.

    Attributes:
        move: The chosen turn.
        score: Its minimax value from the searching side's perspective.
        nodes: Number of positions visited.
        depth: Depth searched, in turns.
    """

    move: Move
    score: float
    nodes: int
    depth: int


@dataclass
class _SearchContext:
    """Per-search bookkeeping: node count and leaf evaluations."""

    nodes: int = 0
    leaf_cache: dict = field(default_factory=dict)


class SearchAgent:
    """Selects moves by bounded adversarial search.

    The agent holds no state between searches, so one instance may serve
    many games and threads at once.

    Usage:
        agent = SearchAgent(SearchConfig(depth=3))
        move = agent.select_move(state)
    """

    def __init__(
        self,
        config: SearchConfig = DEFAULT_SEARCH_CONFIG,
        weights: EvaluationWeights = DEFAULT_WEIGHTS,
    ):
        self.config = config
        self.weights = weights

    def select_move(self, state: GameState, side: Optional[Side] = None) -> Move:
        """Choose a move for the side to move.

        Args:
            state: Position to search from.
            side: Side expected to be on move. Defaults to the side to move.

        Returns:
            The chosen move. If a mill is formed, the capture is carried in
            ``removed``; in a capture-pending position a plain REMOVE.

        Raises:
            GameOverError: If the game has ended.
            PreconditionError: If ``side`` is not the side to move.
            NoLegalMoveError: If the side to move has no legal move.
        """
        return self.search(state, side).move

    def search(self, state: GameState, side: Optional[Side] = None) -> SearchResult:
        """Run a search and return the chosen move with diagnostics.

        Raises:
            See ``select_move``.
        """
        if state.game_over:
            raise GameOverError("Cannot search a completed game", context={"game_id": state.game_id})
        if side is None:
            side = state.current_side
        elif side != state.current_side:
            raise PreconditionError(
                f"It is {state.current_side.value}'s turn, not {side.value}'s",
                context={"game_id": state.game_id},
            )

        successors = turn_successors(state)
        if not successors:
            raise NoLegalMoveError(
                f"{side.value} has no legal move", context={"game_id": state.game_id}
            )

        depth = self.config.depth
        ctx = _SearchContext()

        best_move: Optional[Move] = None
        best_score = -math.inf
        alpha = -math.inf
        for move, child in successors:
            score = self._minimax(ctx, child, depth - 1, alpha, math.inf, side, 1)
            # Strict comparison keeps the first move among equal scores
            if best_move is None or score > best_score:
                best_move = move
                best_score = score
            if self.config.use_alpha_beta:
                alpha = max(alpha, best_score)

        logger.debug(
            "Search for %s in game %s at depth %d: %s (score %s, %d nodes)",
            side.value,
            state.game_id,
            depth,
            best_move,
            best_score,
            ctx.nodes,
        )
        return SearchResult(move=best_move, score=best_score, nodes=ctx.nodes, depth=depth)

    # -------------------------------------------------------------------------
    # Minimax
    # -------------------------------------------------------------------------

    def _minimax(
        self,
        ctx: _SearchContext,
        state: GameState,
        depth: int,
        alpha: float,
        beta: float,
        side: Side,
        ply: int,
    ) -> float:
        """Minimax value of ``state`` for ``side``.

        Wins found sooner score higher and losses found later score higher,
        so the agent closes out won games and delays lost ones.
        """
        ctx.nodes += 1

        if state.game_over:
            score = terminal_score(state, side, self.weights)
            if score > 0:
                return score - ply
            if score < 0:
                return score + ply
            return score

        if depth <= 0:
            return self._evaluate_leaf(ctx, state, side)

        successors = turn_successors(state)
        if not successors:
            return self._evaluate_leaf(ctx, state, side)

        if state.current_side == side:
            value = -math.inf
            for _, child in successors:
                value = max(value, self._minimax(ctx, child, depth - 1, alpha, beta, side, ply + 1))
                if self.config.use_alpha_beta:
                    alpha = max(alpha, value)
                    if alpha >= beta:
                        break
            return value

        value = math.inf
        for _, child in successors:
            value = min(value, self._minimax(ctx, child, depth - 1, alpha, beta, side, ply + 1))
            if self.config.use_alpha_beta:
                beta = min(beta, value)
                if alpha >= beta:
                    break
        return value

    def _evaluate_leaf(self, ctx: _SearchContext, state: GameState, side: Side) -> int:
        """Evaluate a leaf, memoised for the duration of one search."""
        key = state.search_key()
        score = ctx.leaf_cache.get(key)
        if score is None:
            score = evaluate(state, side, self.weights)
            ctx.leaf_cache[key] = score
        return score
