"""Board topology for Nine Men's Morris.

The board is a static graph of 24 points on three concentric squares:
- Outer ring 0-7, middle ring 8-15, inner ring 16-23
- Within a ring, offset 0 is the top-left corner and offsets run clockwise;
  even offsets are corners, odd offsets are midpoints
- Midpoints of neighbouring rings are joined radially; corners never are

Topology is immutable and built once per process; it is shared by
reference across every game and thread without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np

from .constants import NUM_MILLS, NUM_POSITIONS, NUM_RINGS, RING_SIZE
from .errors import InvalidArgumentError, TopologyError


# Type aliases for clarity
Position = int
Mill = tuple[int, int, int]


def ring_of(position: Position) -> int:
    """Ring index (0 outer, 1 middle, 2 inner) of a position."""
    return position // RING_SIZE


def is_midpoint(position: Position) -> bool:
    """Check if a position is a side midpoint (the only points with radial edges)."""
    return position % 2 == 1


def check_position(position: Position) -> Position:
    """Return the position unchanged, or raise if it is outside 0..23.

    Raises:
        InvalidArgumentError: If position is not an int in range.
    """
    if isinstance(position, bool) or not isinstance(position, (int, np.integer)):
        raise InvalidArgumentError(f"Position must be an int, got {position!r}")
    if not 0 <= position < NUM_POSITIONS:
        raise InvalidArgumentError(
            f"Position index must be between 0 and {NUM_POSITIONS - 1}, got: {position}"
        )
    return int(position)


@dataclass(frozen=True, eq=False)
class Topology:
    """Adjacency relation and mill triples of the board.

    Attributes:
        adjacency: Neighbours of each position, indexed by position.
        mills: The 16 mill triples, each sorted ascending.
        mills_by_position: Mills containing each position, indexed by position.
        mill_table: ``(16, 3)`` int array of the mills, for vectorised lookups
            into a board array.
    """

    adjacency: tuple[frozenset[int], ...]
    mills: tuple[Mill, ...]
    mills_by_position: tuple[tuple[Mill, ...], ...]
    mill_table: np.ndarray

    def neighbors(self, position: Position) -> frozenset[int]:
        """Positions directly reachable from ``position`` in one step."""
        return self.adjacency[check_position(position)]

    def mills_containing(self, position: Position) -> tuple[Mill, ...]:
        """All mill triples that include ``position``."""
        return self.mills_by_position[check_position(position)]

    def are_adjacent(self, a: Position, b: Position) -> bool:
        """Check if two positions share a board line segment."""
        return check_position(b) in self.neighbors(a)

    def num_edges(self) -> int:
        """Number of undirected board edges."""
        return sum(len(n) for n in self.adjacency) // 2


def build_topology() -> Topology:
    """Construct and validate the standard 24-point topology.

    Returns:
        A validated Topology.

    Raises:
        TopologyError: If the constructed tables are inconsistent.
    """
    adjacency: list[set[int]] = [set() for _ in range(NUM_POSITIONS)]

    for ring in range(NUM_RINGS):
        base = ring * RING_SIZE
        for offset in range(RING_SIZE):
            a = base + offset
            b = base + (offset + 1) % RING_SIZE
            adjacency[a].add(b)
            adjacency[b].add(a)

            # Radial connectors join midpoints to the next ring inward
            if is_midpoint(a) and ring < NUM_RINGS - 1:
                inner = a + RING_SIZE
                adjacency[a].add(inner)
                adjacency[inner].add(a)

    mills: list[Mill] = []
    for ring in range(NUM_RINGS):
        base = ring * RING_SIZE
        for corner in range(0, RING_SIZE, 2):
            side = (
                base + corner,
                base + corner + 1,
                base + (corner + 2) % RING_SIZE,
            )
            mills.append(tuple(sorted(side)))
    for midpoint in range(1, RING_SIZE, 2):
        mills.append(tuple(midpoint + ring * RING_SIZE for ring in range(NUM_RINGS)))

    mills_by_position = tuple(
        tuple(mill for mill in mills if position in mill)
        for position in range(NUM_POSITIONS)
    )

    mill_table = np.array(mills, dtype=np.intp)
    mill_table.setflags(write=False)

    topology = Topology(
        adjacency=tuple(frozenset(n) for n in adjacency),
        mills=tuple(mills),
        mills_by_position=mills_by_position,
        mill_table=mill_table,
    )
    validate_topology(topology)
    return topology


def validate_topology(topology: Topology) -> None:
    """Validate the topology tables.

    Raises:
        TopologyError: On the first inconsistency found.
    """
    if len(topology.adjacency) != NUM_POSITIONS:
        raise TopologyError(
            f"Expected {NUM_POSITIONS} positions, found {len(topology.adjacency)}"
        )

    for position, neighbors in enumerate(topology.adjacency):
        if position in neighbors:
            raise TopologyError(f"Self-loop edge not allowed at {position}")
        for neighbor in neighbors:
            if not 0 <= neighbor < NUM_POSITIONS:
                raise TopologyError(f"Edge references unknown position: {neighbor}")
            if position not in topology.adjacency[neighbor]:
                raise TopologyError(
                    f"Adjacency is not symmetric: {position} -> {neighbor}"
                )
        if not is_midpoint(position) and any(
            ring_of(n) != ring_of(position) for n in neighbors
        ):
            raise TopologyError(f"Corner {position} has a radial edge")

    if len(topology.mills) != NUM_MILLS:
        raise TopologyError(f"Expected {NUM_MILLS} mills, found {len(topology.mills)}")
    if len(set(topology.mills)) != len(topology.mills):
        raise TopologyError("Duplicate mill triple")

    for mill in topology.mills:
        if len(set(mill)) != 3:
            raise TopologyError(f"Mill must have three distinct positions: {mill}")
        # A mill is a line: two ends touching only the middle point
        degrees = sorted(len(topology.adjacency[p] & set(mill)) for p in mill)
        if degrees != [1, 1, 2]:
            raise TopologyError(f"Mill {mill} is not a connected line")

    # Connectivity (all positions reachable from position 0)
    visited: set[int] = set()
    _dfs(topology, 0, visited)
    if len(visited) != NUM_POSITIONS:
        unreachable = set(range(NUM_POSITIONS)) - visited
        raise TopologyError(f"Graph is not connected. Unreachable positions: {unreachable}")


def _dfs(topology: Topology, position: int, visited: set[int]) -> None:
    """Depth-first search to check connectivity."""
    visited.add(position)
    for neighbor in topology.adjacency[position]:
        if neighbor not in visited:
            _dfs(topology, neighbor, visited)


@lru_cache(maxsize=1)
def get_topology() -> Topology:
    """Return the process-wide topology, building it on first use."""
    return build_topology()


def neighbors(position: Position) -> frozenset[int]:
    """Neighbours of a position on the standard board."""
    return get_topology().neighbors(position)


def mills_containing(position: Position) -> tuple[Mill, ...]:
    """Mill triples containing a position on the standard board."""
    return get_topology().mills_containing(position)
