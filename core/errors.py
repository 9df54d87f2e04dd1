"""Error hierarchy for the Nine Men's Morris engine.

Every error raised across the engine, the AI and the session store derives
from MorrisError, so transport code can catch one type and still tell the
categories apart through ``code`` and the concrete subclass.

Usage:
    from core.errors import IllegalMoveError

    try:
        store.apply_move(game_id, move)
    except IllegalMoveError as e:
        logger.warning("Rejected move: %s (reason=%s)", e.message, e.reason.value)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

__all__ = [
    "MorrisError",
    "InvalidArgumentError",
    "IllegalMoveReason",
    "IllegalMoveError",
    "StaleMoveError",
    "GameNotFoundError",
    "GameOverError",
    "PreconditionError",
    "NoLegalMoveError",
    "TopologyError",
]


class MorrisError(Exception):
    """Base exception for all engine errors.

    Attributes:
        code: Machine-readable error code for categorization.
        message: Human-readable error description.
        context: Additional context (game id, move, ...) for rendering.
    """

    code: str = "MORRIS_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Caller errors
# =============================================================================


class InvalidArgumentError(MorrisError, ValueError):
    """Malformed identifier, out-of-range position or missing field.

    Raised before any session is touched.
    """

    code: str = "INVALID_ARGUMENT"


class IllegalMoveReason(Enum):
    """Which legality predicate a rejected move failed."""

    NOT_YOUR_TURN = "not_your_turn"
    WRONG_PHASE = "wrong_phase"
    NO_PIECES_TO_PLACE = "no_pieces_to_place"
    TARGET_OCCUPIED = "target_occupied"
    NOT_YOUR_PIECE = "not_your_piece"
    NOT_ADJACENT = "not_adjacent"
    CAPTURE_PENDING = "capture_pending"
    CAPTURE_NOT_PENDING = "capture_not_pending"
    NOT_OPPONENT_PIECE = "not_opponent_piece"
    PIECE_IN_MILL = "piece_in_mill"


class IllegalMoveError(MorrisError):
    """Move violates the rules for the current state.

    Attributes:
        reason: The predicate that failed.
    """

    code: str = "ILLEGAL_MOVE"

    def __init__(
        self,
        message: str,
        reason: IllegalMoveReason,
        context: Optional[dict[str, Any]] = None,
    ):
        context = dict(context or {})
        context.setdefault("reason", reason.value)
        super().__init__(message, context=context)
        self.reason = reason


class StaleMoveError(MorrisError):
    """Move was computed against a position that has since changed."""

    code: str = "STALE_MOVE"


class GameNotFoundError(MorrisError):
    """Unknown game identifier."""

    code: str = "GAME_NOT_FOUND"


class GameOverError(MorrisError):
    """Mutating call on a game that has already ended."""

    code: str = "GAME_OVER"


class PreconditionError(MorrisError):
    """Call made in a state where it is never valid (programmer error).

    For example requesting an AI move on a two-player game, or when it is
    the human's turn.
    """

    code: str = "PRECONDITION_FAILED"


class NoLegalMoveError(PreconditionError):
    """Search invoked for a side that has no legal move."""

    code: str = "NO_LEGAL_MOVE"


class TopologyError(MorrisError):
    """Board topology failed validation."""

    code: str = "TOPOLOGY_INVALID"
