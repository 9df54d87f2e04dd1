"""Move model for the Nine Men's Morris engine.

A move is one of:
- PLACE: put a piece from hand on an empty position
- MOVE: relocate a piece (sliding or flying, decided by the mover's phase)
- REMOVE: capture an opponent piece after forming a mill

PLACE and MOVE may carry their follow-up capture in ``removed``; this is how
the automated player reports a whole turn as a single decision.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .constants import MoveType, Side
from .errors import InvalidArgumentError

NO_POSITION = -1


@dataclass(frozen=True)
class Move:
    """A single move by one side.

    Attributes:
        move_type: Shape of the move.
        side: The side making the move.
        to: Destination (PLACE/MOVE) or captured position (REMOVE).
        from_pos: Source position for MOVE, -1 otherwise.
        removed: Capture carried by a PLACE/MOVE that forms a mill, -1 if none.
    """

    move_type: MoveType
    side: Side
    to: int
    from_pos: int = NO_POSITION
    removed: int = NO_POSITION

    def __post_init__(self):
        if self.move_type == MoveType.MOVE:
            if self.from_pos == NO_POSITION:
                raise InvalidArgumentError("MOVE requires a source position")
        elif self.from_pos != NO_POSITION:
            raise InvalidArgumentError(f"{self.move_type.value} must not have a source position")
        if self.move_type == MoveType.REMOVE and self.removed != NO_POSITION:
            raise InvalidArgumentError("REMOVE cannot carry a further capture")

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def place(cls, side: Side, to: int) -> Move:
        """Create a placement."""
        return cls(MoveType.PLACE, side, to)

    @classmethod
    def step(cls, side: Side, src: int, dst: int) -> Move:
        """Create a move of a piece (adjacent step or flight)."""
        return cls(MoveType.MOVE, side, dst, from_pos=src)

    @classmethod
    def remove(cls, side: Side, position: int) -> Move:
        """Create a capture of the opponent piece at ``position``."""
        return cls(MoveType.REMOVE, side, position)

    def with_removal(self, position: int) -> Move:
        """Return this move carrying a follow-up capture at ``position``."""
        if self.move_type == MoveType.REMOVE:
            raise InvalidArgumentError("REMOVE cannot carry a further capture")
        return replace(self, removed=position)

    def base(self) -> Move:
        """This move without its follow-up capture."""
        return replace(self, removed=NO_POSITION) if self.has_removal() else self

    def removal(self) -> Move:
        """The follow-up capture as a standalone REMOVE.

        Raises:
            ValueError: If the move carries no capture.
        """
        if not self.has_removal():
            raise ValueError(f"{self} carries no capture")
        return Move.remove(self.side, self.removed)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_placement(self) -> bool:
        return self.move_type == MoveType.PLACE

    def is_movement(self) -> bool:
        return self.move_type == MoveType.MOVE

    def is_removal(self) -> bool:
        return self.move_type == MoveType.REMOVE

    def has_removal(self) -> bool:
        """Check if this move carries a follow-up capture."""
        return self.removed != NO_POSITION

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the client move record."""
        return {
            "type": self.move_type.value,
            "from": self.from_pos,
            "to": self.to,
            "player": self.side.value,
            "removed": self.removed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Move:
        """Deserialize a client move record.

        Raises:
            InvalidArgumentError: If a field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise InvalidArgumentError("Move data must be a dictionary")
        for key in ("type", "to", "player"):
            if data.get(key) is None:
                raise InvalidArgumentError(f"Move missing required field: {key}")

        try:
            move_type = MoveType(data["type"])
        except ValueError:
            raise InvalidArgumentError(f"Invalid move type: {data['type']!r}")
        try:
            side = Side(data["player"])
        except ValueError:
            raise InvalidArgumentError(f"Invalid player: {data['player']!r}")

        fields = {}
        for key in ("to", "from", "removed"):
            value = data.get(key, NO_POSITION)
            if value is None:
                value = NO_POSITION
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidArgumentError(f"Move field '{key}' must be an int, got {value!r}")
            fields[key] = value

        from_pos = fields["from"] if move_type == MoveType.MOVE else NO_POSITION
        return cls(move_type, side, fields["to"], from_pos=from_pos, removed=fields["removed"])

    def __str__(self) -> str:
        if self.move_type == MoveType.PLACE:
            text = f"{self.side.value} places at {self.to}"
        elif self.move_type == MoveType.MOVE:
            text = f"{self.side.value} moves {self.from_pos}->{self.to}"
        else:
            text = f"{self.side.value} removes {self.to}"
        if self.has_removal():
            text += f", removes {self.removed}"
        return text
