"""Tests for the rules of the game.

Tests cover:
1. Legal move generation in each phase
2. Every illegal-move reason
3. Move application and mill formation
4. Capture protection
5. Flying
6. Terminal detection and forfeit
7. End-to-end placement and flying scenarios
"""

import pytest

from core.constants import Phase, Side
from core.errors import (
    GameOverError,
    IllegalMoveError,
    IllegalMoveReason,
    InvalidArgumentError,
)
from core.game_state import GameState
from core.move import Move
from engine import rules
from engine.game_engine import GameEngine


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def initial_state() -> GameState:
    """A freshly created game."""
    return GameState.create_initial_state("rules-test")


@pytest.fixture
def midgame(make_state) -> GameState:
    """Movement phase: White holds the mill 0-1-2, five pieces each, White to move."""
    return make_state(white=[0, 1, 2, 16, 20], black=[8, 10, 12, 14, 22])


@pytest.fixture
def about_to_mill(make_state) -> GameState:
    """Movement phase: White can close 0-1-2 with 3->2, Black has four pieces."""
    return make_state(white=[0, 1, 3, 20], black=[8, 10, 12, 22])


def assert_illegal(state: GameState, move: Move, reason: IllegalMoveReason) -> None:
    """Check that a move is rejected for the given reason without changing state."""
    before = state.state_hash()
    with pytest.raises(IllegalMoveError) as exc_info:
        rules.apply_move(state, move)
    assert exc_info.value.reason == reason
    assert state.state_hash() == before


# =============================================================================
# Move Generation Tests
# =============================================================================


class TestLegalMoves:
    """Test legal move generation."""

    def test_initial_placements(self, initial_state: GameState):
        """White may place on any of the 24 points, in ascending order."""
        moves = rules.legal_moves(initial_state)
        assert moves == [Move.place(Side.WHITE, p) for p in range(24)]

    def test_movement_only_adjacent(self, midgame: GameState):
        """In movement, pieces slide to empty neighbours, ordered by (from, to)."""
        moves = rules.legal_moves(midgame)
        pairs = [(m.from_pos, m.to) for m in moves]

        assert pairs == sorted(pairs)
        for move in moves:
            assert move.to in midgame.board.neighbors(move.from_pos)
            assert midgame.board.is_empty(move.to)
        assert (2, 3) in pairs
        assert (16, 17) in pairs
        assert (0, 7) in pairs

    def test_moves_for_other_side(self, midgame: GameState):
        """Moves can be listed for the side not on move."""
        moves = rules.legal_moves(midgame, Side.BLACK)
        assert moves
        assert all(m.side == Side.BLACK for m in moves)

    def test_capture_pending_lists_removals(self, make_state):
        """While a capture is pending, only removals are listed."""
        state = make_state(white=[0, 1, 2], black=[8, 9], white_remaining=6,
                           black_remaining=7, capture_pending=True)
        moves = rules.legal_moves(state)
        assert moves == [Move.remove(Side.WHITE, 8), Move.remove(Side.WHITE, 9)]

    def test_game_over_has_no_moves(self, midgame: GameState):
        """A finished game has no legal moves."""
        midgame.end_game(Side.WHITE)
        assert rules.legal_moves(midgame) == []
        assert not rules.has_legal_moves(midgame)

    def test_turn_options_fold_in_captures(self, about_to_mill: GameState):
        """A mill-forming move appears once per capture target."""
        options = rules.turn_options(about_to_mill)
        closing = [m for m in options if m.base() == Move.step(Side.WHITE, 3, 2)]

        assert sorted(m.removed for m in closing) == [8, 10, 12, 22]
        assert Move.step(Side.WHITE, 3, 2) not in options
        assert all(not m.has_removal() for m in options if m not in closing)

    def test_turn_successors_hand_over_turn(self, about_to_mill: GameState):
        """Every complete turn leaves the opponent to move."""
        for move, child in rules.turn_successors(about_to_mill):
            assert child.current_side == Side.BLACK
            assert not child.capture_pending
            assert child == rules.apply_move(about_to_mill, move)


# =============================================================================
# Illegal Move Tests
# =============================================================================


class TestIllegalMoves:
    """Test that each legality predicate rejects with its own reason."""

    def test_not_your_turn(self, initial_state: GameState):
        """Black cannot move first."""
        assert_illegal(initial_state, Move.place(Side.BLACK, 0), IllegalMoveReason.NOT_YOUR_TURN)

    def test_out_of_range(self, initial_state: GameState):
        """Positions outside the board are invalid arguments."""
        with pytest.raises(InvalidArgumentError):
            rules.apply_move(initial_state, Move.place(Side.WHITE, 24))

    def test_not_a_move(self, initial_state: GameState):
        """Anything other than a Move is an invalid argument."""
        with pytest.raises(InvalidArgumentError):
            rules.validate_move(initial_state, {"type": "PLACE", "to": 0})

    def test_place_occupied(self, make_state):
        """Placing on an occupied point fails."""
        state = make_state(white=[0], black=[1], white_remaining=8, black_remaining=8)
        assert_illegal(state, Move.place(Side.WHITE, 1), IllegalMoveReason.TARGET_OCCUPIED)

    def test_move_during_placement(self, make_state):
        """Pieces cannot slide while pieces remain to be placed."""
        state = make_state(white=[0], black=[8], white_remaining=8, black_remaining=8)
        assert_illegal(state, Move.step(Side.WHITE, 0, 1), IllegalMoveReason.WRONG_PHASE)

    def test_place_during_movement(self, midgame: GameState):
        """Pieces cannot be placed once both hands are empty."""
        assert_illegal(midgame, Move.place(Side.WHITE, 3), IllegalMoveReason.WRONG_PHASE)

    def test_no_pieces_to_place(self, make_state):
        """A side with an empty hand cannot place."""
        state = make_state(white=[0, 1, 3, 5, 7, 9, 11, 13, 15],
                           black=[2, 4, 6, 8, 10, 12, 14, 16],
                           black_remaining=1)
        assert_illegal(state, Move.place(Side.WHITE, 20), IllegalMoveReason.NO_PIECES_TO_PLACE)

    def test_not_your_piece(self, midgame: GameState):
        """The source must hold one of the mover's pieces."""
        assert_illegal(midgame, Move.step(Side.WHITE, 8, 9), IllegalMoveReason.NOT_YOUR_PIECE)
        assert_illegal(midgame, Move.step(Side.WHITE, 3, 4), IllegalMoveReason.NOT_YOUR_PIECE)

    def test_move_onto_occupied(self, make_state):
        """The target of a slide must be empty."""
        state = make_state(white=[0, 1, 4, 20], black=[7, 10, 12, 22])
        assert_illegal(state, Move.step(Side.WHITE, 0, 7), IllegalMoveReason.TARGET_OCCUPIED)

    def test_not_adjacent(self, midgame: GameState):
        """In movement a piece may only slide to a neighbour."""
        assert_illegal(midgame, Move.step(Side.WHITE, 16, 19), IllegalMoveReason.NOT_ADJACENT)

    def test_capture_pending_blocks_other_moves(self, make_state):
        """A pending capture must be resolved first."""
        state = make_state(white=[0, 1, 2], black=[8, 9], white_remaining=6,
                           black_remaining=7, capture_pending=True)
        assert_illegal(state, Move.place(Side.WHITE, 5), IllegalMoveReason.CAPTURE_PENDING)

    def test_remove_without_mill(self, midgame: GameState):
        """Nothing may be removed unless a mill was just formed."""
        assert_illegal(midgame, Move.remove(Side.WHITE, 8), IllegalMoveReason.CAPTURE_NOT_PENDING)

    def test_compound_without_mill(self, midgame: GameState):
        """A move that forms no mill cannot carry a capture."""
        move = Move.step(Side.WHITE, 16, 17).with_removal(8)
        assert_illegal(midgame, move, IllegalMoveReason.CAPTURE_NOT_PENDING)

    def test_remove_not_opponent(self, make_state):
        """Only opponent pieces can be removed."""
        state = make_state(white=[0, 1, 2], black=[8, 9], white_remaining=6,
                           black_remaining=7, capture_pending=True)
        assert_illegal(state, Move.remove(Side.WHITE, 1), IllegalMoveReason.NOT_OPPONENT_PIECE)
        assert_illegal(state, Move.remove(Side.WHITE, 20), IllegalMoveReason.NOT_OPPONENT_PIECE)

    def test_game_over(self, midgame: GameState):
        """Any move on a finished game raises GameOverError."""
        midgame.end_game(Side.BLACK)
        with pytest.raises(GameOverError):
            rules.apply_move(midgame, Move.step(Side.WHITE, 16, 17))

    def test_check_move_reports_reason(self, midgame: GameState):
        """check_move is the non-raising form."""
        result = rules.check_move(midgame, Move.step(Side.WHITE, 16, 19))
        assert not result.valid
        assert result.reason == IllegalMoveReason.NOT_ADJACENT
        assert "not adjacent" in result.message

        assert rules.check_move(midgame, Move.step(Side.WHITE, 16, 17)).valid

    def test_is_valid_move(self, midgame: GameState):
        """is_valid_move never raises."""
        assert rules.is_valid_move(midgame, Move.step(Side.WHITE, 16, 17))
        assert not rules.is_valid_move(midgame, Move.place(Side.WHITE, 30))


# =============================================================================
# Application and Mill Tests
# =============================================================================


class TestApplyMove:
    """Test move application."""

    def test_place_updates_counters(self, initial_state: GameState):
        """A placement moves one piece from hand to board and passes the turn."""
        state = rules.apply_move(initial_state, Move.place(Side.WHITE, 5))

        assert state.board.occupant(5) == Side.WHITE
        assert state.remaining(Side.WHITE) == 8
        assert state.on_board(Side.WHITE) == 1
        assert state.current_side == Side.BLACK
        assert state.ply == 1

    def test_input_state_unchanged(self, initial_state: GameState):
        """Application never mutates its input."""
        before = initial_state.state_hash()
        rules.apply_move(initial_state, Move.place(Side.WHITE, 5))
        assert initial_state.state_hash() == before

    def test_slide_keeps_counts(self, midgame: GameState):
        """A slide relocates without changing counts."""
        state = rules.apply_move(midgame, Move.step(Side.WHITE, 16, 17))
        assert state.board.occupant(17) == Side.WHITE
        assert state.board.is_empty(16)
        assert state.on_board(Side.WHITE) == 5

    def test_placement_mill_sets_capture_pending(self, make_state):
        """Completing a line during placement sets capture pending; turn stays."""
        state = make_state(white=[0, 1], black=[8, 20], white_remaining=7, black_remaining=7)
        state = rules.apply_move(state, Move.place(Side.WHITE, 2))

        assert state.capture_pending
        assert state.current_side == Side.WHITE
        assert state.phase == Phase.PLACEMENT

    def test_remove_resolves_capture(self, make_state):
        """A removal clears the piece, the flag and passes the turn."""
        state = make_state(white=[0, 1, 2], black=[8, 20], white_remaining=6,
                           black_remaining=7, capture_pending=True)
        state = rules.apply_move(state, Move.remove(Side.WHITE, 20))

        assert state.board.is_empty(20)
        assert state.on_board(Side.BLACK) == 1
        assert not state.capture_pending
        assert state.current_side == Side.BLACK

    def test_compound_move_counts_two_plies(self, about_to_mill: GameState):
        """A compound move applies both parts atomically."""
        state = rules.apply_move(about_to_mill, Move.step(Side.WHITE, 3, 2).with_removal(8))

        assert state.board.is_empty(8)
        assert state.on_board(Side.BLACK) == 3
        assert state.current_side == Side.BLACK
        assert not state.capture_pending
        assert state.ply == 2

    def test_slide_into_mill(self, about_to_mill: GameState):
        """Closing a previously incomplete line by sliding triggers a capture."""
        state = rules.apply_move(about_to_mill, Move.step(Side.WHITE, 3, 2))
        assert state.capture_pending
        assert rules.newly_formed_mills(about_to_mill.board, state.board, 2, Side.WHITE) == [(0, 1, 2)]

    def test_standing_mill_does_not_trigger(self, midgame: GameState):
        """A mill that already stood when the turn started never triggers a capture."""
        state = rules.apply_move(midgame, Move.step(Side.WHITE, 16, 17))
        assert midgame.board.count_mills(Side.WHITE) == 1
        assert not state.capture_pending
        assert state.current_side == Side.BLACK

    def test_reclosing_mill_triggers(self, midgame: GameState):
        """Opening a mill and closing it on a later turn triggers again."""
        state = rules.apply_move(midgame, Move.step(Side.WHITE, 2, 3))
        assert not state.capture_pending
        state = rules.apply_move(state, Move.step(Side.BLACK, 22, 21))
        state = rules.apply_move(state, Move.step(Side.WHITE, 3, 2))
        assert state.capture_pending

    def test_no_capture_against_empty_board(self, make_state):
        """A mill against an opponent with nothing on the board just passes the turn."""
        state = make_state(white=[0, 1], black=[], white_remaining=6, black_remaining=9)
        state = rules.apply_move(state, Move.place(Side.WHITE, 2))
        assert not state.capture_pending
        assert state.current_side == Side.BLACK


# =============================================================================
# Capture Protection Tests
# =============================================================================


class TestCaptureTargets:
    """Test the mill-protection rule for captures."""

    def test_mill_pieces_protected(self, make_state):
        """Pieces in a mill are protected while others exist."""
        state = make_state(white=[0, 1, 2, 20], black=[8, 9, 10, 22],
                           white_remaining=5, black_remaining=5, capture_pending=True)
        assert rules.capture_targets(state) == [22]
        assert_illegal(state, Move.remove(Side.WHITE, 9), IllegalMoveReason.PIECE_IN_MILL)

        result = rules.apply_move(state, Move.remove(Side.WHITE, 22))
        assert result.board.is_empty(22)

    def test_all_in_mills_any_target(self, make_state):
        """If every opponent piece is in a mill, any may be taken."""
        state = make_state(white=[0, 1, 2, 20], black=[8, 9, 10],
                           white_remaining=5, black_remaining=6, capture_pending=True)
        assert rules.capture_targets(state) == [8, 9, 10]

        result = rules.apply_move(state, Move.remove(Side.WHITE, 9))
        assert result.board.is_empty(9)

    def test_compound_capture_checked_after_base_move(self, make_state):
        """The capture of a compound move is checked on the intermediate state."""
        state = make_state(white=[0, 1, 3, 20], black=[8, 9, 10, 22])
        move = Move.step(Side.WHITE, 3, 2).with_removal(9)
        assert_illegal(state, move, IllegalMoveReason.PIECE_IN_MILL)


# =============================================================================
# Flying Tests
# =============================================================================


class TestFlying:
    """Test the flying phase."""

    def test_three_pieces_fly_anywhere(self, make_state):
        """A side with three pieces may move to any empty point."""
        state = make_state(white=[0, 1, 3, 20, 16], black=[8, 12, 22], to_move=Side.BLACK)
        assert state.phase == Phase.FLYING

        moves = rules.legal_moves(state)
        assert len(moves) == 3 * 16
        result = rules.apply_move(state, Move.step(Side.BLACK, 8, 4))
        assert result.board.occupant(4) == Side.BLACK

    def test_four_pieces_do_not_fly(self, make_state):
        """With four pieces only adjacent moves are allowed."""
        state = make_state(white=[0, 1, 3, 20, 16], black=[8, 10, 12, 22], to_move=Side.BLACK)
        assert state.phase == Phase.MOVEMENT
        assert_illegal(state, Move.step(Side.BLACK, 8, 4), IllegalMoveReason.NOT_ADJACENT)

    def test_phase_is_per_side(self, make_state):
        """One side can fly while the other moves."""
        state = make_state(white=[0, 1, 3, 20, 16], black=[8, 12, 22], to_move=Side.WHITE)
        assert rules.determine_phase(state) == Phase.MOVEMENT
        assert rules.determine_phase(state, Side.BLACK) == Phase.FLYING


# =============================================================================
# Terminal Tests
# =============================================================================


class TestTerminal:
    """Test game-over detection."""

    def test_reduced_to_two_loses(self, make_state):
        """A side reduced to two pieces after placement loses."""
        state = make_state(white=[0, 1, 3, 20], black=[8, 12, 22])
        state = rules.apply_move(state, Move.step(Side.WHITE, 3, 2).with_removal(22))

        assert state.game_over
        assert state.winner == Side.WHITE
        assert rules.legal_moves(state) == []

    def test_blocked_side_loses(self, make_state):
        """A side with no legal slide loses."""
        state = make_state(white=[1, 3, 5, 7, 16], black=[0, 2, 4, 6])
        state = rules.apply_move(state, Move.step(Side.WHITE, 16, 17))

        assert state.game_over
        assert state.winner == Side.WHITE

    def test_flying_side_not_blocked(self, make_state):
        """Surrounded pieces can still fly when only three remain."""
        state = make_state(white=[1, 3, 7, 16, 20], black=[0, 2, 6])
        state = rules.apply_move(state, Move.step(Side.WHITE, 16, 17))
        assert not state.game_over

    def test_check_terminal(self, make_state):
        """check_terminal ends a game whose side to move is stuck."""
        state = make_state(white=[1, 3, 5, 7, 17], black=[0, 2, 4, 6], to_move=Side.BLACK)
        assert rules.check_terminal(state)
        assert state.winner == Side.WHITE

    def test_forfeit(self, midgame: GameState):
        """The forfeiting side loses; the input is unchanged."""
        state = rules.forfeit(midgame, Side.WHITE)
        assert state.game_over
        assert state.winner == Side.BLACK
        assert not midgame.game_over

        with pytest.raises(GameOverError):
            rules.forfeit(state, Side.BLACK)


# =============================================================================
# Scenario Tests
# =============================================================================


class TestScenarios:
    """End-to-end scenarios through the game engine."""

    def test_placement_until_white_mills(self):
        """White completes 0-1-2; only a valid removal is then accepted."""
        engine = GameEngine()
        engine.reset("scenario-a")
        for move in [
            Move.place(Side.WHITE, 0),
            Move.place(Side.BLACK, 8),
            Move.place(Side.WHITE, 1),
            Move.place(Side.BLACK, 9),
            Move.place(Side.WHITE, 2),
        ]:
            assert engine.step(move).success

        state = engine.state
        assert state.capture_pending
        assert state.current_side == Side.WHITE

        result = engine.step(Move.place(Side.WHITE, 3))
        assert not result.success
        assert result.info["reason"] == IllegalMoveReason.CAPTURE_PENDING.value

        result = engine.step(Move.remove(Side.WHITE, 0))
        assert not result.success
        assert result.info["reason"] == IllegalMoveReason.NOT_OPPONENT_PIECE.value

        result = engine.step(Move.remove(Side.WHITE, 9))
        assert result.success
        assert result.state.on_board(Side.BLACK) == 1
        assert result.state.remaining(Side.BLACK) == 7
        assert result.state.current_side == Side.BLACK
        assert not result.state.capture_pending

    def test_black_reduced_to_three_flies(self, about_to_mill: GameState):
        """Black flies at three pieces and stops flying when rolled back to four."""
        engine = GameEngine()
        engine.load(about_to_mill)

        engine.apply(Move.step(Side.WHITE, 3, 2).with_removal(8))
        assert engine.state.on_board(Side.BLACK) == 3
        assert engine.phase == Phase.FLYING
        assert engine.is_valid_move(Move.step(Side.BLACK, 10, 5))

        engine.undo()
        assert engine.state.on_board(Side.BLACK) == 4
        assert engine.state.phase_for(Side.BLACK) == Phase.MOVEMENT
        assert engine.current_side == Side.WHITE
