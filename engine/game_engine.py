"""Single-game driver for Nine Men's Morris.

The GameEngine wraps one game and is the interface used by the session
store, by tests and by AI self-play. It provides:
- reset(): Start a new game
- step(): Apply a move and report the outcome without raising
- apply(): Apply a move, raising on anything illegal
- get_valid_moves(): Return legal moves for the current state

Move legality is enforced by engine.rules; illegal moves never change the state.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from core.constants import Phase, Side
from core.errors import (
    GameOverError,
    IllegalMoveError,
    InvalidArgumentError,
    PreconditionError,
)
from core.game_state import GameState
from core.move import Move

from . import rules

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Result of executing a step in the game.

    Attributes:
        success: Whether the move was applied.
        state: The game state after the step (unchanged on failure).
        done: Whether the game has ended.
        info: Additional information about the step.
    """

    success: bool
    state: GameState
    done: bool
    info: dict[str, Any]


class GameEngine:
    """Engine for playing one game of Nine Men's Morris.

    Every applied move replaces the current state with a new one, so a state
    obtained from ``state`` is never modified afterwards.

    Usage:
        engine = GameEngine()
        engine.reset()

        while not engine.is_game_over():
            moves = engine.get_valid_moves()
            move = select_move(moves)  # Player or agent selects
            result = engine.step(move)
    """

    def __init__(self, keep_history: bool = True):
        """Initialize the game engine.

        Args:
            keep_history: Whether to keep prior states so moves can be undone.
        """
        self._state: Optional[GameState] = None
        self._keep_history = keep_history
        self._history: list[tuple[GameState, Move]] = []

    @property
    def state(self) -> GameState:
        """Get the current game state.

        Raises:
            RuntimeError: If the game has not been initialized.
        """
        if self._state is None:
            raise RuntimeError("Game not initialized. Call reset() first.")
        return self._state

    @property
    def phase(self) -> Phase:
        """Get the phase for the side to move."""
        return self.state.phase

    @property
    def current_side(self) -> Side:
        """Get the side to move."""
        return self.state.current_side

    @property
    def history(self) -> tuple[Move, ...]:
        """Moves applied since the last reset or load, oldest first."""
        return tuple(move for _, move in self._history)

    def is_game_over(self) -> bool:
        """Check if the game has ended."""
        return self._state is not None and self._state.game_over

    # -------------------------------------------------------------------------
    # Game Initialization
    # -------------------------------------------------------------------------

    def reset(self, game_id: Optional[str] = None) -> GameState:
        """Start a new game.

        Args:
            game_id: Optional identifier. If None, a fresh uuid is used.

        Returns:
            The initial game state.
        """
        if game_id is None:
            game_id = str(uuid.uuid4())
        self._state = GameState.create_initial_state(game_id)
        self._history.clear()
        return self._state

    def load(self, state: GameState) -> GameState:
        """Resume from an existing state (for example a reloaded snapshot).

        Raises:
            InvalidArgumentError: If the state is inconsistent.
        """
        errors = state.validate()
        if errors:
            raise InvalidArgumentError(
                "Cannot load inconsistent game state",
                context={"game_id": state.game_id, "errors": "; ".join(errors)},
            )
        self._state = state.clone()
        self._history.clear()
        return self._state

    # -------------------------------------------------------------------------
    # Move Execution
    # -------------------------------------------------------------------------

    def apply(self, move: Move) -> GameState:
        """Apply a move and return the new state.

        Raises:
            InvalidArgumentError: If the move is malformed.
            GameOverError: If the game has already ended.
            IllegalMoveError: If the move breaks a rule.
        """
        previous = self.state
        new_state = rules.apply_move(previous, move)
        if self._keep_history:
            self._history.append((previous, move))
        self._state = new_state

        logger.debug(
            "Game %s ply %d: %s%s",
            new_state.game_id,
            new_state.ply,
            move,
            " (game over)" if new_state.game_over else "",
        )
        return new_state

    def step(self, move: Move) -> StepResult:
        """Apply a move without raising.

        Args:
            move: The move to apply.

        Returns:
            StepResult with the outcome. On failure ``info`` holds the error
            message, its code and, for rule violations, the reason.
        """
        try:
            state = self.apply(move)
        except (IllegalMoveError, InvalidArgumentError, GameOverError) as e:
            info: dict[str, Any] = {"error": e.message, "code": e.code}
            if isinstance(e, IllegalMoveError):
                info["reason"] = e.reason.value
            return StepResult(
                success=False,
                state=self.state,
                done=self.is_game_over(),
                info=info,
            )

        info = {
            "move": str(move),
            "phase": state.phase.value,
            "ply": state.ply,
            "mill_formed": state.capture_pending,
        }
        if state.game_over:
            info["winner"] = state.winner.value if state.winner else None

        return StepResult(success=True, state=state, done=state.game_over, info=info)

    def forfeit(self, side: Side) -> GameState:
        """End the game with ``side`` losing.

        Raises:
            GameOverError: If the game has already ended.
        """
        self._state = rules.forfeit(self.state, side)
        return self._state

    def undo(self) -> GameState:
        """Roll back the most recently applied move.

        Returns:
            The restored state.

        Raises:
            PreconditionError: If there is no move to undo.
        """
        if not self._history:
            raise PreconditionError("No move to undo")
        previous, _ = self._history.pop()
        self._state = previous
        return previous

    # -------------------------------------------------------------------------
    # Valid Moves
    # -------------------------------------------------------------------------

    def get_valid_moves(self, side: Optional[Side] = None) -> list[Move]:
        """Get all legal single moves for a side (default: the side to move)."""
        return rules.legal_moves(self.state, side)

    def get_turn_options(self) -> list[Move]:
        """Get complete turns (captures folded in) for the side to move."""
        return rules.turn_options(self.state)

    def is_valid_move(self, move: Move) -> bool:
        """Check if a move is legal in the current state."""
        return rules.is_valid_move(self.state, move)

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def clone(self) -> GameEngine:
        """Create a copy of the engine for simulation.

        States are never mutated once produced, so history entries are shared.

        Returns:
            A new GameEngine with the same state and history.
        """
        new_engine = GameEngine(keep_history=self._keep_history)
        new_engine._state = self._state
        new_engine._history = list(self._history)
        return new_engine

    def get_game_summary(self) -> dict[str, Any]:
        """Get a summary of the current game state.

        Returns:
            Dictionary with game summary information.
        """
        state = self.state
        return {
            "game_id": state.game_id,
            "phase": state.phase.value,
            "ply": state.ply,
            "current_side": state.current_side.value,
            "capture_pending": state.capture_pending,
            "sides": [
                {
                    "side": side.value,
                    "on_board": state.on_board(side),
                    "remaining": state.remaining(side),
                    "mills": state.board.count_mills(side),
                    "phase": state.phase_for(side).value,
                }
                for side in Side
            ],
            "game_over": state.game_over,
            "winner": state.winner.value if state.winner else None,
        }

    def __str__(self) -> str:
        """Return string representation of the engine."""
        if self._state is None:
            return "GameEngine(not initialized)"
        return f"GameEngine(phase={self.phase.value}, ply={self._state.ply})"

