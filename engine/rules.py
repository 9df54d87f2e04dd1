"""Rules of Nine Men's Morris.

Stateless functions over GameState:
- Phase determination
- Move validation (each failed predicate has its own reason)
- Move application (always on a clone, after validation)
- Legal-move generation in a stable ascending order
- Mill detection, capture targets and terminal detection

Move legality is enforced here and nowhere else; callers never mutate a
GameState directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.board import Board
from core.constants import MoveType, Phase, Side
from core.errors import (
    GameOverError,
    IllegalMoveError,
    IllegalMoveReason,
    InvalidArgumentError,
)
from core.game_state import GameState
from core.move import Move
from core.topology import Mill, check_position


@dataclass
class MoveValidationResult:
    """Result of checking a move without raising.

    Attributes:
        valid: Whether the move is legal.
        reason: The failed predicate, None if valid.
        message: Description of the failure, None if valid.
    """

    valid: bool
    reason: Optional[IllegalMoveReason] = None
    message: Optional[str] = None


# =============================================================================
# Phase
# =============================================================================


def determine_phase(state: GameState, side: Optional[Side] = None) -> Phase:
    """Phase governing ``side`` (default: the side to move)."""
    return state.phase_for(side if side is not None else state.current_side)


# =============================================================================
# Mills and captures
# =============================================================================


def newly_formed_mills(before: Board, after: Board, to: int, side: Side) -> list[Mill]:
    """Mills through ``to`` that are complete after a move but were not before.

    Only triples containing the destination are considered, and a triple
    that was already complete when the move started never counts again.
    """
    return [
        mill
        for mill in after.topology.mills_containing(to)
        if after.is_mill_complete(mill, side) and not before.is_mill_complete(mill, side)
    ]


def capture_targets(state: GameState, side: Optional[Side] = None) -> list[int]:
    """Opponent positions ``side`` may capture, ascending.

    Pieces standing in a mill are protected while the opponent has any
    piece outside a mill; if every opponent piece is in a mill, all are
    targets.
    """
    side = side if side is not None else state.current_side
    board = state.board
    pieces = board.positions_of(side.opposite())
    free = [p for p in pieces if not board.is_in_mill(p)]
    return free if free else pieces


# =============================================================================
# Move generation
# =============================================================================


def piece_moves(state: GameState, side: Side) -> list[Move]:
    """PLACE/MOVE moves for ``side`` in its phase, ignoring turn and captures.

    Placements are ordered by target; moves by ``(from, to)``.
    """
    board = state.board
    phase = state.phase_for(side)

    if phase == Phase.PLACEMENT:
        if state.remaining(side) == 0:
            return []
        return [Move.place(side, p) for p in board.empty_positions()]

    moves: list[Move] = []
    empty = board.empty_positions()
    for src in board.positions_of(side):
        if phase == Phase.FLYING:
            targets = empty
        else:
            targets = sorted(n for n in board.neighbors(src) if board.is_empty(n))
        moves.extend(Move.step(side, src, dst) for dst in targets)
    return moves


def legal_moves(state: GameState, side: Optional[Side] = None) -> list[Move]:
    """All legal moves for ``side`` (default: the side to move).

    While a capture is pending for the side to move, only its REMOVE moves
    are returned. A finished game has no legal moves.
    """
    side = side if side is not None else state.current_side
    if state.game_over:
        return []
    if state.capture_pending and side == state.current_side:
        return [Move.remove(side, p) for p in capture_targets(state, side)]
    return piece_moves(state, side)


def has_legal_moves(state: GameState, side: Optional[Side] = None) -> bool:
    """Check if ``side`` has at least one legal move."""
    return bool(legal_moves(state, side))


def turn_successors(state: GameState) -> list[tuple[Move, GameState]]:
    """Every complete turn for the side to move with its resulting state.

    A move that forms a mill is expanded into one compound move per legal
    capture, so each entry hands the turn to the opponent (or ends the game).
    If the state is already capture-pending, the entries are the REMOVE moves.
    """
    if state.game_over:
        return []
    if state.capture_pending:
        return [(move, _apply_unchecked(state, move)) for move in legal_moves(state)]

    side = state.current_side
    successors: list[tuple[Move, GameState]] = []
    for move in piece_moves(state, side):
        child = _apply_unchecked(state, move)
        if child.capture_pending:
            for target in capture_targets(child, side):
                successors.append((move.with_removal(target), _apply_removal(child, target)))
        else:
            successors.append((move, child))
    return successors


def turn_options(state: GameState) -> list[Move]:
    """Complete turns available to the side to move, in generation order."""
    return [move for move, _ in turn_successors(state)]


# =============================================================================
# Validation
# =============================================================================


def _illegal(message: str, reason: IllegalMoveReason, move: Move) -> IllegalMoveError:
    return IllegalMoveError(message, reason, context={"move": str(move)})


def validate_move(state: GameState, move: Move) -> None:
    """Check a move against every legality predicate.

    Raises:
        InvalidArgumentError: If the move is malformed or out of range.
        GameOverError: If the game has already ended.
        IllegalMoveError: If a rule is violated; ``reason`` names it.
    """
    if not isinstance(move, Move):
        raise InvalidArgumentError(f"Expected a Move, got {type(move).__name__}")
    if state.game_over:
        raise GameOverError(
            "Cannot make move on completed game", context={"game_id": state.game_id}
        )
    if move.side != state.current_side:
        raise _illegal(
            f"It is {state.current_side.value}'s turn", IllegalMoveReason.NOT_YOUR_TURN, move
        )

    check_position(move.to)
    if move.is_movement():
        check_position(move.from_pos)
    if move.has_removal():
        check_position(move.removed)

    if state.capture_pending:
        if not move.is_removal():
            raise _illegal(
                "A mill was formed; an opponent piece must be removed first",
                IllegalMoveReason.CAPTURE_PENDING,
                move,
            )
        _validate_removal(state, move)
        return

    if move.is_removal():
        raise _illegal(
            "No mill was formed; nothing may be removed",
            IllegalMoveReason.CAPTURE_NOT_PENDING,
            move,
        )

    _validate_piece_move(state, move)

    if move.has_removal():
        intermediate = _apply_unchecked(state, move.base())
        if not intermediate.capture_pending:
            raise _illegal(
                "Move does not form a mill; it cannot carry a capture",
                IllegalMoveReason.CAPTURE_NOT_PENDING,
                move,
            )
        _validate_removal(intermediate, move.removal())


def check_move(state: GameState, move: Move) -> MoveValidationResult:
    """Non-raising form of ``validate_move`` for rule violations.

    Malformed moves and finished games still raise.
    """
    try:
        validate_move(state, move)
    except IllegalMoveError as e:
        return MoveValidationResult(valid=False, reason=e.reason, message=e.message)
    return MoveValidationResult(valid=True)


def is_valid_move(state: GameState, move: Move) -> bool:
    """Check if a move is legal in the given state."""
    try:
        validate_move(state, move)
    except (IllegalMoveError, GameOverError, InvalidArgumentError):
        return False
    return True


def _validate_piece_move(state: GameState, move: Move) -> None:
    """Validate a PLACE or MOVE against the mover's phase and the board."""
    board = state.board
    side = move.side
    phase = state.phase_for(side)

    if move.move_type == MoveType.PLACE:
        if phase != Phase.PLACEMENT:
            raise _illegal(
                f"Pieces can only be placed during placement (phase is {phase.value})",
                IllegalMoveReason.WRONG_PHASE,
                move,
            )
        if state.remaining(side) <= 0:
            raise _illegal(
                f"{side.value} has no pieces left to place",
                IllegalMoveReason.NO_PIECES_TO_PLACE,
                move,
            )
        if not board.is_empty(move.to):
            raise _illegal(
                f"Position {move.to} is occupied", IllegalMoveReason.TARGET_OCCUPIED, move
            )
        return

    if phase == Phase.PLACEMENT:
        raise _illegal(
            "Pieces cannot be moved until all pieces are placed",
            IllegalMoveReason.WRONG_PHASE,
            move,
        )
    if not board.is_occupied_by(move.from_pos, side):
        raise _illegal(
            f"Position {move.from_pos} does not hold a {side.value} piece",
            IllegalMoveReason.NOT_YOUR_PIECE,
            move,
        )
    if not board.is_empty(move.to):
        raise _illegal(
            f"Position {move.to} is occupied", IllegalMoveReason.TARGET_OCCUPIED, move
        )
    if phase == Phase.MOVEMENT and move.to not in board.neighbors(move.from_pos):
        raise _illegal(
            f"Position {move.to} is not adjacent to {move.from_pos}",
            IllegalMoveReason.NOT_ADJACENT,
            move,
        )


def _validate_removal(state: GameState, move: Move) -> None:
    """Validate a REMOVE against the capture-protection rule."""
    board = state.board
    opponent = move.side.opposite()

    if not board.is_occupied_by(move.to, opponent):
        raise _illegal(
            f"Position {move.to} does not hold a {opponent.value} piece",
            IllegalMoveReason.NOT_OPPONENT_PIECE,
            move,
        )
    if move.to not in capture_targets(state, move.side):
        raise _illegal(
            f"Piece at {move.to} is in a mill and {opponent.value} has pieces outside mills",
            IllegalMoveReason.PIECE_IN_MILL,
            move,
        )


# =============================================================================
# Application
# =============================================================================


def apply_move(state: GameState, move: Move) -> GameState:
    """Validate a move and return the resulting state.

    The input state is never modified.

    Raises:
        InvalidArgumentError, GameOverError, IllegalMoveError: See
            ``validate_move``.
    """
    validate_move(state, move)
    return _apply_unchecked(state, move)


def forfeit(state: GameState, side: Side) -> GameState:
    """Return a finished copy of ``state`` in which ``side`` has lost.

    Raises:
        GameOverError: If the game has already ended.
    """
    if state.game_over:
        raise GameOverError("Cannot forfeit completed game", context={"game_id": state.game_id})
    new_state = state.clone()
    new_state.end_game(side.opposite())
    return new_state


def _apply_unchecked(state: GameState, move: Move) -> GameState:
    """Apply a move known to be legal. Works on a clone."""
    if move.is_removal():
        return _apply_removal(state, move.to)

    new_state = state.clone()
    board = new_state.board
    side = move.side

    if move.move_type == MoveType.PLACE:
        board.place(move.to, side)
        new_state.pieces_remaining[side] -= 1
        new_state.pieces_on_board[side] += 1
    else:
        board.move_piece(move.from_pos, move.to)
    new_state.ply += 1

    # No capture is possible against a side with nothing on the board
    formed = newly_formed_mills(state.board, board, move.to, side)
    if formed and new_state.on_board(side.opposite()) > 0:
        new_state.capture_pending = True
        if move.has_removal():
            return _apply_removal(new_state, move.removed)
        return new_state

    _pass_turn(new_state)
    return new_state


def _apply_removal(state: GameState, position: int) -> GameState:
    """Capture the piece at ``position`` and pass the turn. Works on a clone."""
    new_state = state.clone()
    captured = new_state.board.clear(position)
    new_state.pieces_on_board[captured] -= 1
    new_state.capture_pending = False
    new_state.ply += 1
    _pass_turn(new_state)
    return new_state


def _pass_turn(state: GameState) -> None:
    """Hand the turn to the opponent and check whether it has already lost."""
    state.current_side = state.current_side.opposite()
    check_terminal(state)


def check_terminal(state: GameState) -> bool:
    """End the game if the side to move has lost.

    The side to move loses when it can no longer field three pieces (board
    plus hand) or has no legal move in its phase. A flying side only runs
    out of moves on a full board.

    Returns:
        True if the game is over.
    """
    if state.game_over:
        return True
    side = state.current_side
    if state.is_below_minimum(side) or not piece_moves(state, side):
        state.end_game(side.opposite())
        return True
    return False
