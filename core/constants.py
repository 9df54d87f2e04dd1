"""Constants and enums for the Nine Men's Morris engine."""

from enum import Enum


class Side(Enum):
    """The two sides. White always moves first."""

    WHITE = "WHITE"
    BLACK = "BLACK"

    def opposite(self) -> "Side":
        """Return the other side."""
        return Side.BLACK if self is Side.WHITE else Side.WHITE


class Phase(Enum):
    """Game phases, derived from piece counts and never stored."""

    PLACEMENT = "PLACEMENT"  # Pieces are still being put on the board
    MOVEMENT = "MOVEMENT"  # Pieces slide along board lines
    FLYING = "FLYING"  # A side with three pieces may jump anywhere

    @property
    def description(self) -> str:
        """Human-readable description of what a move looks like in this phase."""
        return _PHASE_DESCRIPTIONS[self]


_PHASE_DESCRIPTIONS = {
    Phase.PLACEMENT: "Place your pieces on the board",
    Phase.MOVEMENT: "Move your pieces to adjacent positions",
    Phase.FLYING: "Move your pieces to any empty position",
}


class MoveType(Enum):
    """Shapes of move. MOVE covers both sliding and flying."""

    PLACE = "PLACE"
    MOVE = "MOVE"
    REMOVE = "REMOVE"


class GameMode(Enum):
    """How a session is played."""

    SINGLE_PLAYER = "SINGLE_PLAYER"  # Human vs automated opponent
    LOCAL_TWO_PLAYER = "LOCAL_TWO_PLAYER"
    ONLINE_MULTIPLAYER = "ONLINE_MULTIPLAYER"


# Board geometry
NUM_RINGS = 3
RING_SIZE = 8
NUM_POSITIONS = NUM_RINGS * RING_SIZE  # 24
NUM_MILLS = 16

# Piece limits per side
PIECES_PER_SIDE = 9
FLYING_PIECE_COUNT = 3  # Exactly this many on board enables flying
MIN_PIECES = 3  # Fewer than this (on board + in hand) loses

# Side that opens every game
FIRST_SIDE = Side.WHITE

# Occupancy codes used in the board array
EMPTY_CELL = 0
SIDE_CODES = {Side.WHITE: 1, Side.BLACK: 2}
CODE_SIDES = {code: side for side, code in SIDE_CODES.items()}
