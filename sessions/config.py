"""Configuration for the session store."""

from dataclasses import dataclass

from core.constants import Side


@dataclass(frozen=True)
class SessionConfig:
    """Settings for hosting concurrent games.

    Attributes:
        sweep_interval_seconds: How often the background reaper runs.
        retention_seconds: How long a finished game is kept before it may
            be swept.
        ai_depth: Search depth (in turns) of the automated opponent.
        ai_side: Side played by the automated opponent in single-player games.
    """

    sweep_interval_seconds: float = 30 * 60
    retention_seconds: float = 5 * 60
    ai_depth: int = 3
    ai_side: Side = Side.BLACK

    def __post_init__(self):
        if self.sweep_interval_seconds <= 0:
            raise ValueError(
                f"sweep_interval_seconds must be positive, got {self.sweep_interval_seconds}"
            )
        if self.retention_seconds < 0:
            raise ValueError(
                f"retention_seconds must not be negative, got {self.retention_seconds}"
            )
        if self.ai_depth < 1:
            raise ValueError(f"ai_depth must be at least 1, got {self.ai_depth}")
        if not isinstance(self.ai_side, Side):
            raise ValueError(f"ai_side must be a Side, got {self.ai_side!r}")


DEFAULT_SESSION_CONFIG = SessionConfig()
