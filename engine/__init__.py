"""Game engine for Nine Men's Morris.

This module provides the game logic including:
- Rules: phase determination, validation, application and move generation
- Game engine for driving one game step by step
"""

from .rules import (
    MoveValidationResult,
    determine_phase,
    newly_formed_mills,
    capture_targets,
    piece_moves,
    legal_moves,
    has_legal_moves,
    turn_successors,
    turn_options,
    validate_move,
    check_move,
    is_valid_move,
    apply_move,
    forfeit,
    check_terminal,
)

from .game_engine import (
    GameEngine,
    StepResult,
)

__all__ = [
    # Rules
    "MoveValidationResult",
    "determine_phase",
    "newly_formed_mills",
    "capture_targets",
    "piece_moves",
    "legal_moves",
    "has_legal_moves",
    "turn_successors",
    "turn_options",
    "validate_move",
    "check_move",
    "is_valid_move",
    "apply_move",
    "forfeit",
    "check_terminal",
    # Game engine
    "GameEngine",
    "StepResult",
]
