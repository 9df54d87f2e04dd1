"""Game state for the Nine Men's Morris engine.

GameState is the single source of truth for one game.
It holds the board and per-side counters, derives the phase from those
counters, and provides cloning, serialization and hashing for the session
layer and the search.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Optional

from .board import Board
from .constants import (
    FIRST_SIDE,
    FLYING_PIECE_COUNT,
    MIN_PIECES,
    PIECES_PER_SIDE,
    Phase,
    Side,
)
from .errors import InvalidArgumentError


def determine_phase(
    pieces_remaining: dict[Side, int],
    pieces_on_board: dict[Side, int],
    side: Side,
) -> Phase:
    """Phase governing ``side`` given the piece counters.

    Placement lasts while either side still has pieces in hand. After that a
    side with exactly three pieces on the board flies; otherwise it moves.
    """
    if any(count > 0 for count in pieces_remaining.values()):
        return Phase.PLACEMENT
    if pieces_on_board[side] == FLYING_PIECE_COUNT:
        return Phase.FLYING
    return Phase.MOVEMENT


def _full_hand() -> dict[Side, int]:
    return {side: PIECES_PER_SIDE for side in Side}


def _empty_count() -> dict[Side, int]:
    return {side: 0 for side in Side}


@dataclass
class GameState:
    """The complete state of one game.

    States are produced by the rule engine one validated move at a time.
    Once a state has been handed to the session store it is treated as
    immutable; the engine always works on a clone.

    Attributes:
        game_id: Identifier of the game.
        board: Occupancy of the 24 positions.
        current_side: Side to move.
        pieces_remaining: Pieces still in hand per side (starts at 9).
        pieces_on_board: Pieces on the board per side.
        capture_pending: A mill was just formed; the mover must remove a piece.
        game_over: Whether the game has ended.
        winner: Winning side once the game is over.
        ply: Number of moves applied so far (a capture counts separately).
    """

    game_id: str
    board: Board = field(default_factory=Board)
    current_side: Side = FIRST_SIDE
    pieces_remaining: dict[Side, int] = field(default_factory=_full_hand)
    pieces_on_board: dict[Side, int] = field(default_factory=_empty_count)
    capture_pending: bool = False
    game_over: bool = False
    winner: Optional[Side] = None
    ply: int = 0

    @classmethod
    def create_initial_state(cls, game_id: str) -> GameState:
        """Create the starting position: empty board, nine pieces in each hand.

        Raises:
            InvalidArgumentError: If game_id is blank.
        """
        if not isinstance(game_id, str) or not game_id.strip():
            raise InvalidArgumentError("Game ID cannot be null or empty")
        return cls(game_id=game_id)

    # -------------------------------------------------------------------------
    # Phase
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        """Phase for the side to move (derived, never stored)."""
        return self.phase_for(self.current_side)

    def phase_for(self, side: Side) -> Phase:
        """Phase governing a given side."""
        return determine_phase(self.pieces_remaining, self.pieces_on_board, side)

    def is_placement_over(self) -> bool:
        """Check if both hands are empty."""
        return all(count == 0 for count in self.pieces_remaining.values())

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    def remaining(self, side: Side) -> int:
        """Pieces a side still has to place."""
        return self.pieces_remaining[side]

    def on_board(self, side: Side) -> int:
        """Pieces a side has on the board."""
        return self.pieces_on_board[side]

    def total_pieces(self, side: Side) -> int:
        """Pieces on the board plus pieces in hand."""
        return self.pieces_on_board[side] + self.pieces_remaining[side]

    def is_below_minimum(self, side: Side) -> bool:
        """Check if a side can no longer field the minimum three pieces."""
        return self.total_pieces(side) < MIN_PIECES

    def is_game_over(self) -> bool:
        """Check if the game has ended."""
        return self.game_over

    def end_game(self, winner: Optional[Side]) -> None:
        """Mark the game finished with the given winner."""
        self.game_over = True
        self.capture_pending = False
        self.winner = winner

    # -------------------------------------------------------------------------
    # Cloning and serialization
    # -------------------------------------------------------------------------

    def clone(self) -> GameState:
        """Create a copy that shares nothing mutable with this state.

        Returns:
            A new GameState with a copied board and counters.
        """
        return GameState(
            game_id=self.game_id,
            board=self.board.clone(),
            current_side=self.current_side,
            pieces_remaining=dict(self.pieces_remaining),
            pieces_on_board=dict(self.pieces_on_board),
            capture_pending=self.capture_pending,
            game_over=self.game_over,
            winner=self.winner,
            ply=self.ply,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the game state to the external snapshot record.

        The first ten keys and their order are a stable contract with the
        renderer and client-side cache. New keys are only ever appended.

        Returns:
            Dictionary representation of the game state.
        """
        return {
            "gameId": self.game_id,
            "phase": self.phase.value,
            "currentPlayer": self.current_side.value,
            "board": self.board.to_list(),
            "whitePiecesRemaining": self.pieces_remaining[Side.WHITE],
            "blackPiecesRemaining": self.pieces_remaining[Side.BLACK],
            "whitePiecesOnBoard": self.pieces_on_board[Side.WHITE],
            "blackPiecesOnBoard": self.pieces_on_board[Side.BLACK],
            "gameOver": self.game_over,
            "winner": self.winner.value if self.winner else None,
            # Appended fields
            "millFormed": self.capture_pending,
            "ply": self.ply,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """Reload a snapshot produced by ``to_dict``.

        The stored ``phase`` is ignored and re-derived from the counters.
        Snapshots written before ``millFormed``/``ply`` existed load with
        their defaults.

        Raises:
            InvalidArgumentError: If a required field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise InvalidArgumentError("Game state data must be a dictionary")
        required = [
            "gameId",
            "currentPlayer",
            "board",
            "whitePiecesRemaining",
            "blackPiecesRemaining",
            "whitePiecesOnBoard",
            "blackPiecesOnBoard",
            "gameOver",
        ]
        for key in required:
            if key not in data:
                raise InvalidArgumentError(f"Game state missing required field: {key}")

        try:
            current_side = Side(data["currentPlayer"])
            winner = Side(data["winner"]) if data.get("winner") else None
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid side in game state: {e}")

        state = cls(
            game_id=data["gameId"],
            board=Board.from_list(data["board"]),
            current_side=current_side,
            pieces_remaining={
                Side.WHITE: int(data["whitePiecesRemaining"]),
                Side.BLACK: int(data["blackPiecesRemaining"]),
            },
            pieces_on_board={
                Side.WHITE: int(data["whitePiecesOnBoard"]),
                Side.BLACK: int(data["blackPiecesOnBoard"]),
            },
            capture_pending=bool(data.get("millFormed", False)),
            game_over=bool(data["gameOver"]),
            winner=winner,
            ply=int(data.get("ply", 0)),
        )

        errors = state.validate()
        if errors:
            raise InvalidArgumentError(
                "Inconsistent game state snapshot",
                context={"game_id": state.game_id, "errors": "; ".join(errors)},
            )
        return state

    def search_key(self) -> tuple:
        """Compact hashable key of everything that affects play.

        Excludes the game id and ply, so transpositions share a key.
        """
        return (
            self.board.key(),
            self.current_side,
            self.pieces_remaining[Side.WHITE],
            self.pieces_remaining[Side.BLACK],
            self.capture_pending,
            self.game_over,
        )

    def state_hash(self) -> str:
        """Compute a hash of the game state.

        Returns:
            A hex string hash of the serialized state.
        """
        state_json = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(state_json.encode()).hexdigest()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[str]:
        """Validate the game state for consistency.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors: list[str] = []

        for side in Side:
            remaining = self.pieces_remaining[side]
            on_board = self.pieces_on_board[side]
            if remaining < 0 or on_board < 0:
                errors.append(f"Negative piece count for {side.value}")
            if remaining + on_board > PIECES_PER_SIDE:
                errors.append(
                    f"{side.value} has {on_board} on board and {remaining} in hand "
                    f"(max {PIECES_PER_SIDE})"
                )
            actual = self.board.count(side)
            if actual != on_board:
                errors.append(
                    f"{side.value} on-board count is {on_board} but the board holds {actual}"
                )
            if not self.game_over and self.is_placement_over() and on_board == 0:
                errors.append(f"{side.value} has no pieces left but the game is not over")

        if self.board.total_pieces() > 2 * PIECES_PER_SIDE:
            errors.append(f"Board holds more than {2 * PIECES_PER_SIDE} pieces")
        if self.winner is not None and not self.game_over:
            errors.append("Winner set on a game that is not over")
        if self.capture_pending and self.game_over:
            errors.append("Capture pending on a finished game")
        if self.ply < 0:
            errors.append(f"Negative ply: {self.ply}")

        return errors

    # -------------------------------------------------------------------------
    # String representation
    # -------------------------------------------------------------------------

    def __str__(self) -> str:
        """Return a human-readable string representation."""
        status = f"winner={self.winner.value if self.winner else None}" if self.game_over else "active"
        lines = [
            f"GameState(id={self.game_id}, phase={self.phase.value}, ply={self.ply})",
            f"  To move: {self.current_side.value}"
            + (" (capture pending)" if self.capture_pending else ""),
            f"  White: {self.pieces_on_board[Side.WHITE]} on board, "
            f"{self.pieces_remaining[Side.WHITE]} in hand",
            f"  Black: {self.pieces_on_board[Side.BLACK]} on board, "
            f"{self.pieces_remaining[Side.BLACK]} in hand",
            f"  Status: {status}",
            str(self.board),
        ]
        return "\n".join(lines)

