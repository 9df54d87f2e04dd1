"""Automated opponent for Nine Men's Morris.

This module provides:
- Static position evaluation
- Minimax search with alpha-beta pruning over complete turns
- Configuration of weights and search depth
"""

from .config import (
    EvaluationWeights,
    SearchConfig,
    DEFAULT_WEIGHTS,
    DEFAULT_SEARCH_CONFIG,
)

from .evaluator import (
    evaluate,
    evaluation_breakdown,
    terminal_score,
    count_blocked,
    count_mobility,
)

from .search import SearchAgent, SearchResult

__all__ = [
    # Config
    "EvaluationWeights",
    "SearchConfig",
    "DEFAULT_WEIGHTS",
    "DEFAULT_SEARCH_CONFIG",
    # Evaluator
    "evaluate",
    "evaluation_breakdown",
    "terminal_score",
    "count_blocked",
    "count_mobility",
    # Search
    "SearchAgent",
    "SearchResult",
]
