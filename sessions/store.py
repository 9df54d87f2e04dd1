"""Concurrent hosting of many independent games.

The SessionStore maps game ids to sessions. Locking is two-level:
- A short registry lock guards the id -> session dict (insert, remove,
  snapshot) and is never held while a move or a search runs
- Each session has its own lock; every mutation of that game happens under it

A move produces a new GameState that replaces the old one in a single
assignment, so readers never lock and never see a half-applied move.
Lock order is always session lock before registry lock.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ai.config import SearchConfig
from ai.search import SearchAgent
from core.constants import GameMode, Side
from core.errors import (
    GameNotFoundError,
    GameOverError,
    IllegalMoveError,
    InvalidArgumentError,
    PreconditionError,
    StaleMoveError,
)
from core.game_state import GameState
from core.move import Move
from engine.game_engine import GameEngine

from .config import DEFAULT_SESSION_CONFIG, SessionConfig

logger = logging.getLogger(__name__)


def _check_id(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{what} cannot be null or empty")
    return value


@dataclass
class Session:
    """One hosted game and its participants.

    Attributes:
        game_id: Identifier of the game.
        mode: How the game is played.
        player1: Player id of the first participant (White unless the
            automated opponent plays White).
        player2: Player id of the second participant, None in single player.
        engine: Driver holding the current GameState.
        ai_side: Side of the automated opponent, None unless single player.
        created_at: Store clock reading at creation.
        finished_at: Store clock reading when the game ended, None while active.
        forfeited_by: Side that forfeited, if the game ended that way.
        lock: Serializes every mutation of this session.
    """

    game_id: str
    mode: GameMode
    player1: str
    player2: Optional[str]
    engine: GameEngine
    ai_side: Optional[Side] = None
    created_at: float = 0.0
    finished_at: Optional[float] = None
    forfeited_by: Optional[Side] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def state(self) -> GameState:
        """Current state (an immutable snapshot)."""
        return self.engine.state

    def side_of(self, player_id: str) -> Side:
        """Side played by a participant.

        Raises:
            InvalidArgumentError: If the player is not part of this game.
        """
        if self.ai_side is not None:
            if player_id == self.player1:
                return self.ai_side.opposite()
        elif player_id == self.player1:
            return Side.WHITE
        elif player_id == self.player2:
            return Side.BLACK
        raise InvalidArgumentError(
            f"Player {player_id!r} is not part of game {self.game_id}",
            context={"game_id": self.game_id},
        )

    def is_expired(self, now: float, retention_seconds: float) -> bool:
        """Check if the game ended at least ``retention_seconds`` before ``now``."""
        return (
            self.state.game_over
            and self.finished_at is not None
            and now - self.finished_at >= retention_seconds
        )


class SessionStore:
    """Registry of concurrently played games.

    Usage:
        with SessionStore() as store:
            store.start_reaper()
            state = store.create_game(GameMode.SINGLE_PLAYER, "alice")
            store.apply_move(state.game_id, Move.place(Side.WHITE, 0))
            ai_move = store.request_ai_move(state.game_id)
    """

    def __init__(
        self,
        config: SessionConfig = DEFAULT_SESSION_CONFIG,
        agent: Optional[SearchAgent] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the store.

        Args:
            config: Store settings.
            agent: Automated opponent. Defaults to a SearchAgent at
                ``config.ai_depth``.
            clock: Time source for creation, finish and sweep timestamps.
        """
        self.config = config
        self._agent = agent if agent is not None else SearchAgent(SearchConfig(depth=config.ai_depth))
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._registry_lock = threading.Lock()
        self._stop = threading.Event()
        self._reaper: Optional[threading.Thread] = None

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def create_game(
        self,
        mode: GameMode,
        player1: str,
        player2: Optional[str] = None,
    ) -> GameState:
        """Create and register a new game.

        Args:
            mode: How the game is played.
            player1: Id of the first player.
            player2: Id of the second player; must be None in single player.

        Returns:
            The initial game state.

        Raises:
            InvalidArgumentError: If the mode or players are invalid.
        """
        if not isinstance(mode, GameMode):
            try:
                mode = GameMode(mode)
            except ValueError:
                raise InvalidArgumentError(f"Invalid game mode: {mode!r}")
        _check_id(player1, "Player 1 ID")

        if mode == GameMode.SINGLE_PLAYER:
            if player2 is not None:
                raise InvalidArgumentError("Single player games cannot have a second player")
            ai_side = self.config.ai_side
        else:
            _check_id(player2, "Player 2 ID")
            if player2 == player1:
                raise InvalidArgumentError("Player 1 and Player 2 must be different")
            ai_side = None

        game_id = str(uuid.uuid4())
        engine = GameEngine(keep_history=False)
        state = engine.reset(game_id)
        session = Session(
            game_id=game_id,
            mode=mode,
            player1=player1,
            player2=player2,
            engine=engine,
            ai_side=ai_side,
            created_at=self._clock(),
        )

        with self._registry_lock:
            self._sessions[game_id] = session

        logger.info(
            "Created %s game %s for %s%s",
            mode.value,
            game_id,
            player1,
            f" vs {player2}" if player2 else "",
        )
        return state

    def _get_session(self, game_id: str) -> Session:
        _check_id(game_id, "Game ID")
        with self._registry_lock:
            session = self._sessions.get(game_id)
        if session is None:
            raise GameNotFoundError(f"Game not found: {game_id}", context={"game_id": game_id})
        return session

    def get_game(self, game_id: str) -> GameState:
        """Current state of a game.

        Raises:
            InvalidArgumentError: If the id is blank.
            GameNotFoundError: If no such game exists.
        """
        return self._get_session(game_id).state

    def end_game(self, game_id: str) -> None:
        """Drop a game immediately, whatever its status.

        Raises:
            GameNotFoundError: If no such game exists.
        """
        _check_id(game_id, "Game ID")
        with self._registry_lock:
            session = self._sessions.pop(game_id, None)
        if session is None:
            raise GameNotFoundError(f"Game not found: {game_id}", context={"game_id": game_id})
        logger.info("Ended game %s", game_id)

    def active_game_count(self) -> int:
        """Number of registered games (finished ones count until swept)."""
        with self._registry_lock:
            return len(self._sessions)

    def list_game_ids(self) -> list[str]:
        """Ids of all registered games, in creation order."""
        with self._registry_lock:
            return list(self._sessions)

    def get_session_info(self, game_id: str) -> dict[str, Any]:
        """Describe a game's participants and progress."""
        session = self._get_session(game_id)
        state = session.state
        return {
            "game_id": session.game_id,
            "mode": session.mode.value,
            "player1": session.player1,
            "player2": session.player2,
            "ai_side": session.ai_side.value if session.ai_side else None,
            "ply": state.ply,
            "phase": state.phase.value,
            "game_over": state.game_over,
            "winner": state.winner.value if state.winner else None,
            "forfeited_by": session.forfeited_by.value if session.forfeited_by else None,
        }

    # -------------------------------------------------------------------------
    # Moves
    # -------------------------------------------------------------------------

    def apply_move(
        self,
        game_id: str,
        move: Move,
        expected_ply: Optional[int] = None,
    ) -> GameState:
        """Apply a player's move.

        Args:
            game_id: Game to move in.
            move: The move.
            expected_ply: If given, the ply the move was computed against;
                the move is rejected if the game has moved on since.

        Returns:
            The new game state.

        Raises:
            InvalidArgumentError: If the id or move is malformed.
            GameNotFoundError: If no such game exists.
            StaleMoveError: If ``expected_ply`` does not match.
            PreconditionError: If the move is for the automated side.
            GameOverError: If the game has ended.
            IllegalMoveError: If the move breaks a rule.
        """
        session = self._get_session(game_id)
        if not isinstance(move, Move):
            raise InvalidArgumentError(f"Expected a Move, got {type(move).__name__}")

        with session.lock:
            state = session.state
            if expected_ply is not None and expected_ply != state.ply:
                raise StaleMoveError(
                    f"Move expected ply {expected_ply} but game is at ply {state.ply}",
                    context={"game_id": game_id, "move": str(move)},
                )
            if session.ai_side is not None and move.side == session.ai_side:
                raise PreconditionError(
                    "Moves for the automated player are made with request_ai_move",
                    context={"game_id": game_id, "move": str(move)},
                )
            try:
                new_state = session.engine.apply(move)
            except (IllegalMoveError, GameOverError) as e:
                logger.warning("Rejected move in game %s: %s", game_id, e)
                raise
            self._record_finish(session, new_state)
        return new_state

    def request_ai_move(self, game_id: str, apply: bool = True) -> Move:
        """Let the automated opponent choose (and by default play) its turn.

        The search runs under the session lock, so no other move can be
        applied to the game while it runs.

        Args:
            game_id: Game to move in.
            apply: Whether to apply the chosen move.

        Returns:
            The chosen move (a compound move when it forms a mill).

        Raises:
            GameNotFoundError: If no such game exists.
            PreconditionError: If the game has no automated player or it is
                not its turn.
            GameOverError: If the game has ended.
        """
        session = self._get_session(game_id)
        if session.ai_side is None:
            raise PreconditionError(
                f"Game {game_id} has no automated player", context={"game_id": game_id}
            )

        with session.lock:
            state = session.state
            if state.game_over:
                raise GameOverError(
                    "Cannot make move on completed game", context={"game_id": game_id}
                )
            if state.current_side != session.ai_side:
                raise PreconditionError(
                    "It is not the automated player's turn", context={"game_id": game_id}
                )
            move = self._agent.select_move(state, session.ai_side)
            if apply:
                new_state = session.engine.apply(move)
                self._record_finish(session, new_state)

        logger.debug("AI move in game %s: %s", game_id, move)
        return move

    def forfeit(self, game_id: str, player: str) -> GameState:
        """End a game with ``player`` losing.

        Repeating the same player's forfeit returns the final state again.

        Raises:
            GameNotFoundError: If no such game exists.
            InvalidArgumentError: If the player is not part of the game.
            GameOverError: If the game already ended another way.
        """
        session = self._get_session(game_id)
        side = session.side_of(player)

        with session.lock:
            state = session.state
            if state.game_over:
                if session.forfeited_by == side:
                    return state
                raise GameOverError(
                    "Cannot forfeit completed game", context={"game_id": game_id}
                )
            new_state = session.engine.forfeit(side)
            session.forfeited_by = side
            session.finished_at = self._clock()

        logger.info("Game %s forfeited by %s (%s)", game_id, player, side.value)
        return new_state

    def _record_finish(self, session: Session, state: GameState) -> None:
        """Stamp the finish time once a move ends the game. Caller holds the session lock."""
        if state.game_over and session.finished_at is None:
            session.finished_at = self._clock()
            logger.info(
                "Game %s finished at ply %d: %s wins",
                session.game_id,
                state.ply,
                state.winner.value if state.winner else "nobody",
            )

    # -------------------------------------------------------------------------
    # Reclamation
    # -------------------------------------------------------------------------

    def sweep_finished(self, now: Optional[float] = None) -> int:
        """Remove games that finished more than ``retention_seconds`` ago.

        Each candidate is re-checked under its own lock before removal, and
        only removed if it is still the registered session for its id.

        Args:
            now: Clock reading to sweep against. Defaults to the store clock.

        Returns:
            Number of games removed.
        """
        if now is None:
            now = self._clock()
        with self._registry_lock:
            candidates = list(self._sessions.values())

        removed = 0
        for session in candidates:
            with session.lock:
                if not session.is_expired(now, self.config.retention_seconds):
                    continue
                with self._registry_lock:
                    if self._sessions.get(session.game_id) is session:
                        del self._sessions[session.game_id]
                        removed += 1

        if removed:
            logger.info("Swept %d finished games", removed)
        return removed

    def start_reaper(self) -> None:
        """Start the background thread that sweeps finished games periodically."""
        if self._reaper is not None and self._reaper.is_alive():
            return
        self._stop.clear()
        self._reaper = threading.Thread(
            target=self._run_reaper,
            name="morris-session-reaper",
            daemon=True,
        )
        self._reaper.start()
        logger.info(
            "Started session reaper (every %ss, retention %ss)",
            self.config.sweep_interval_seconds,
            self.config.retention_seconds,
        )

    def _run_reaper(self) -> None:
        while not self._stop.wait(self.config.sweep_interval_seconds):
            try:
                self.sweep_finished()
            except Exception:
                logger.exception("Session sweep failed")

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the reaper thread, if running."""
        self._stop.set()
        if self._reaper is not None:
            self._reaper.join(timeout)
            self._reaper = None

    def __enter__(self) -> SessionStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
