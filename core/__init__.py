"""Core data models for the Nine Men's Morris engine."""

from .constants import (
    Side,
    Phase,
    MoveType,
    GameMode,
    NUM_RINGS,
    RING_SIZE,
    NUM_POSITIONS,
    NUM_MILLS,
    PIECES_PER_SIDE,
    FLYING_PIECE_COUNT,
    MIN_PIECES,
    FIRST_SIDE,
)

from .errors import (
    MorrisError,
    InvalidArgumentError,
    IllegalMoveReason,
    IllegalMoveError,
    StaleMoveError,
    GameNotFoundError,
    GameOverError,
    PreconditionError,
    NoLegalMoveError,
    TopologyError,
)

from .topology import (
    Position,
    Mill,
    Topology,
    build_topology,
    validate_topology,
    get_topology,
    check_position,
    neighbors,
    mills_containing,
)

from .board import Board

from .move import Move, NO_POSITION

from .game_state import GameState, determine_phase

__all__ = [
    # Constants
    "Side",
    "Phase",
    "MoveType",
    "GameMode",
    "NUM_RINGS",
    "RING_SIZE",
    "NUM_POSITIONS",
    "NUM_MILLS",
    "PIECES_PER_SIDE",
    "FLYING_PIECE_COUNT",
    "MIN_PIECES",
    "FIRST_SIDE",
    # Errors
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
    # Topology
    "Position",
    "Mill",
    "Topology",
    "build_topology",
    "validate_topology",
    "get_topology",
    "check_position",
    "neighbors",
    "mills_containing",
    # Board
    "Board",
    # Move
    "Move",
    "NO_POSITION",
    # Game State
    "GameState",
    "determine_phase",
]
