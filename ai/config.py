"""Configuration for the automated opponent.

This module defines the evaluation weights and the search settings. Both are
frozen dataclasses with module-level defaults.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EvaluationWeights:
    """Weights of the evaluation terms.

    The relative ordering material > mills > near-mills > mobility > blocking
    is what gives the opponent its playing style; magnitudes are tunable but
    the ordering is enforced.
    """

    piece: int = 100
    mill: int = 50
    potential_mill: int = 10
    mobility: int = 5
    blocked: int = 3

    # Terminal scores; always dominate any heuristic sum
    win_score: int = 10000

    def __post_init__(self):
        ordered = (self.piece, self.mill, self.potential_mill, self.mobility, self.blocked)
        if any(w <= 0 for w in ordered):
            raise ValueError(f"Evaluation weights must be positive, got {ordered}")
        if any(a <= b for a, b in zip(ordered, ordered[1:])):
            raise ValueError(
                "Evaluation weights must satisfy piece > mill > potential_mill "
                f"> mobility > blocked, got {ordered}"
            )
        if self.win_score <= self.piece:
            raise ValueError(f"win_score must exceed the piece weight, got {self.win_score}")


@dataclass(frozen=True)
class SearchConfig:
    """Settings for the look-ahead search.

    Attributes:
        depth: Number of complete turns searched (a capture belongs to the
            turn that formed the mill).
        use_alpha_beta: Prune with alpha-beta. Never changes the chosen move.
    """

    depth: int = 3
    use_alpha_beta: bool = True

    def __post_init__(self):
        if self.depth < 1:
            raise ValueError(f"Search depth must be at least 1, got {self.depth}")


DEFAULT_WEIGHTS = EvaluationWeights()
DEFAULT_SEARCH_CONFIG = SearchConfig()
