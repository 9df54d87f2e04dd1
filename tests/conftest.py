"""Shared fixtures for the test suite."""

from typing import Callable, Iterable

import pytest

from core.board import Board
from core.constants import Side
from core.game_state import GameState


def build_state(
    white: Iterable[int] = (),
    black: Iterable[int] = (),
    to_move: Side = Side.WHITE,
    white_remaining: int = 0,
    black_remaining: int = 0,
    capture_pending: bool = False,
    game_id: str = "test-game",
) -> GameState:
    """Build a position directly, without playing up to it.

    No terminal check is run, so positions that could never be reached
    (for example a side to move with no legal move) can be built.
    """
    board = Board()
    for p in white:
        board.place(p, Side.WHITE)
    for p in black:
        board.place(p, Side.BLACK)
    return GameState(
        game_id=game_id,
        board=board,
        current_side=to_move,
        pieces_remaining={Side.WHITE: white_remaining, Side.BLACK: black_remaining},
        pieces_on_board={Side.WHITE: board.count(Side.WHITE), Side.BLACK: board.count(Side.BLACK)},
        capture_pending=capture_pending,
    )


@pytest.fixture
def make_state() -> Callable[..., GameState]:
    """Factory for hand-built positions."""
    return build_state
