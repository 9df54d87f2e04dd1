"""Board model for the Nine Men's Morris engine.

The board is a fixed array of 24 occupancy slots:
- Each slot is empty or holds one side's piece
- Topology (adjacency, mills) is static and shared; only occupancy changes
- The board is owned by a GameState and is never shared between states
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .constants import CODE_SIDES, EMPTY_CELL, NUM_POSITIONS, SIDE_CODES, Side
from .errors import InvalidArgumentError
from .topology import Mill, Position, Topology, check_position, get_topology


class Board:
    """Occupancy of the 24 board positions.

    Cells are stored as an ``int8`` numpy array (0 empty, 1 white,
    2 black) so that mill and near-mill counts can be computed with a single
    fancy-index into the topology's mill table.
    """

    __slots__ = ("_cells", "_topology")

    def __init__(
        self,
        cells: Optional[np.ndarray] = None,
        topology: Optional[Topology] = None,
    ):
        """Initialize the board.

        Args:
            cells: Optional occupancy array to adopt (not copied).
            topology: Optional topology; defaults to the process-wide one.
        """
        self._topology = topology if topology is not None else get_topology()
        if cells is None:
            cells = np.zeros(NUM_POSITIONS, dtype=np.int8)
        self._cells = cells

    @property
    def topology(self) -> Topology:
        """The static topology this board is laid out on."""
        return self._topology

    @property
    def cells(self) -> np.ndarray:
        """Read-only view of the raw occupancy codes."""
        view = self._cells.view()
        view.setflags(write=False)
        return view

    # -------------------------------------------------------------------------
    # Occupancy queries
    # -------------------------------------------------------------------------

    def occupant(self, position: Position) -> Optional[Side]:
        """Get the side occupying a position, or None if empty."""
        code = int(self._cells[check_position(position)])
        return CODE_SIDES.get(code)

    def is_empty(self, position: Position) -> bool:
        """Check if a position has no piece."""
        return int(self._cells[check_position(position)]) == EMPTY_CELL

    def is_occupied_by(self, position: Position, side: Side) -> bool:
        """Check if a position holds a piece of the given side."""
        return int(self._cells[check_position(position)]) == SIDE_CODES[side]

    def positions_of(self, side: Side) -> list[int]:
        """Positions occupied by a side, ascending."""
        return [int(p) for p in np.flatnonzero(self._cells == SIDE_CODES[side])]

    def empty_positions(self) -> list[int]:
        """Empty positions, ascending."""
        return [int(p) for p in np.flatnonzero(self._cells == EMPTY_CELL)]

    def count(self, side: Side) -> int:
        """Number of pieces a side has on the board."""
        return int(np.count_nonzero(self._cells == SIDE_CODES[side]))

    def total_pieces(self) -> int:
        """Number of occupied positions."""
        return int(np.count_nonzero(self._cells))

    def is_full(self) -> bool:
        """Check if every position is occupied."""
        return self.total_pieces() == NUM_POSITIONS

    def neighbors(self, position: Position) -> frozenset[int]:
        """Adjacent positions, from the topology."""
        return self._topology.neighbors(position)

    def has_empty_neighbor(self, position: Position) -> bool:
        """Check if any adjacent position is empty."""
        return any(self._cells[n] == EMPTY_CELL for n in self.neighbors(position))

    # -------------------------------------------------------------------------
    # Mills
    # -------------------------------------------------------------------------

    def is_mill_complete(self, mill: Mill, side: Side) -> bool:
        """Check if all three positions of a triple hold ``side``."""
        code = SIDE_CODES[side]
        return all(self._cells[p] == code for p in mill)

    def is_in_mill(self, position: Position) -> bool:
        """Check if the piece at ``position`` is part of a completed mill.

        Empty positions are never in a mill.
        """
        side = self.occupant(position)
        if side is None:
            return False
        return any(
            self.is_mill_complete(mill, side)
            for mill in self._topology.mills_containing(position)
        )

    def completed_mills(self, side: Side) -> list[Mill]:
        """All mill triples fully occupied by a side, in topology order."""
        code = SIDE_CODES[side]
        lines = self._cells[self._topology.mill_table]
        complete = np.all(lines == code, axis=1)
        return [self._topology.mills[i] for i in np.flatnonzero(complete)]

    def count_mills(self, side: Side) -> int:
        """Number of completed mills for a side."""
        lines = self._cells[self._topology.mill_table]
        return int(np.count_nonzero(np.all(lines == SIDE_CODES[side], axis=1)))

    def count_near_mills(self, side: Side) -> int:
        """Number of triples with exactly two ``side`` pieces and one empty slot."""
        lines = self._cells[self._topology.mill_table]
        own = np.count_nonzero(lines == SIDE_CODES[side], axis=1)
        empty = np.count_nonzero(lines == EMPTY_CELL, axis=1)
        return int(np.count_nonzero((own == 2) & (empty == 1)))

    # -------------------------------------------------------------------------
    # Mutation (engine-internal; the rule engine validates first)
    # -------------------------------------------------------------------------

    def place(self, position: Position, side: Side) -> None:
        """Put a piece on an empty position.

        Raises:
            ValueError: If the position is already occupied.
        """
        position = check_position(position)
        if self._cells[position] != EMPTY_CELL:
            raise ValueError(f"Position {position} already occupied by {self.occupant(position)}")
        self._cells[position] = SIDE_CODES[side]

    def clear(self, position: Position) -> Side:
        """Remove the piece at a position and return its side.

        Raises:
            ValueError: If the position is empty.
        """
        side = self.occupant(position)
        if side is None:
            raise ValueError(f"Position {position} is empty")
        self._cells[position] = EMPTY_CELL
        return side

    def move_piece(self, src: Position, dst: Position) -> None:
        """Relocate a piece from ``src`` to an empty ``dst``.

        Raises:
            ValueError: If ``src`` is empty or ``dst`` is occupied.
        """
        if not self.is_empty(dst):
            raise ValueError(f"Position {dst} already occupied by {self.occupant(dst)}")
        side = self.clear(src)
        self._cells[dst] = SIDE_CODES[side]

    # -------------------------------------------------------------------------
    # Copying and serialization
    # -------------------------------------------------------------------------

    def clone(self) -> Board:
        """Create a copy of the occupancy; the topology is shared."""
        return Board(cells=self._cells.copy(), topology=self._topology)

    def to_list(self) -> list[Optional[str]]:
        """Wire form: side value per slot, None for empty."""
        return [
            CODE_SIDES[int(code)].value if code != EMPTY_CELL else None
            for code in self._cells
        ]

    @classmethod
    def from_list(cls, slots: Sequence[Optional[str]]) -> Board:
        """Rebuild a board from its wire form.

        Raises:
            InvalidArgumentError: If the sequence has the wrong length or an
                unknown occupant.
        """
        if len(slots) != NUM_POSITIONS:
            raise InvalidArgumentError(
                f"Board must have {NUM_POSITIONS} slots, got {len(slots)}"
            )
        cells = np.zeros(NUM_POSITIONS, dtype=np.int8)
        for position, slot in enumerate(slots):
            if slot is None:
                continue
            try:
                cells[position] = SIDE_CODES[Side(slot)]
            except ValueError:
                raise InvalidArgumentError(
                    f"Invalid occupant {slot!r} at position {position}"
                )
        return cls(cells=cells)

    def key(self) -> bytes:
        """Compact hashable form of the occupancy."""
        return self._cells.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return bool(np.array_equal(self._cells, other._cells))

    def __hash__(self) -> int:
        return hash(self.key())

    def __str__(self) -> str:
        """Return an ASCII diagram of the board."""
        c = ["." if s is None else s[0] for s in self.to_list()]
        return (
            f"{c[0]}-----------{c[1]}-----------{c[2]}\n"
            f"|           |           |\n"
            f"|   {c[8]}-------{c[9]}-------{c[10]}   |\n"
            f"|   |       |       |   |\n"
            f"|   |   {c[16]}---{c[17]}---{c[18]}   |   |\n"
            f"|   |   |       |   |   |\n"
            f"{c[7]}---{c[15]}---{c[23]}       {c[19]}---{c[11]}---{c[3]}\n"
            f"|   |   |       |   |   |\n"
            f"|   |   {c[22]}---{c[21]}---{c[20]}   |   |\n"
            f"|   |       |       |   |\n"
            f"|   {c[14]}-------{c[13]}-------{c[12]}   |\n"
            f"|           |           |\n"
            f"{c[6]}-----------{c[5]}-----------{c[4]}"
        )

    def __repr__(self) -> str:
        return f"Board({self.to_list()!r})"
