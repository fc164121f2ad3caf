"""
Game manager for handling multiple game instances.

Owns the read -> resolve -> compare-and-swap cycle: every change to a game
is computed from the latest committed state and written back only if
nobody else committed in between. Listeners are told about each commit.
"""

import logging
import random
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable

from server.config import settings
from server.game_engine import (
    Action,
    ActionResolver,
    ActionResult,
    GameEvent,
    GameState,
    create_game,
    join_game,
    start_game,
)
from server.persistence import GameRepository, VersionConflictError, get_database
from shared.enums import GameStatus


logger = logging.getLogger(__name__)

StateListener = Callable[[GameState], None]
LobbyStep = Callable[[GameState], tuple[bool, str, GameState]]

MAX_CODE_ATTEMPTS = 10


@dataclass
class SubmitResult:
    """Outcome of submitting an action to a game."""
    accepted: bool
    message: str
    state: GameState | None = None
    events: list[GameEvent] = field(default_factory=list)
    result: ActionResult | None = None
    conflict: bool = False
    attempts: int = 0


class GameManager:
    """
    Manages game instances stored in the repository.

    Provides methods for:
    - Creating, joining and starting games
    - Submitting actions with optimistic concurrency
    - Subscribing to committed state changes
    - Listing games
    """

    def __init__(
        self,
        repository: GameRepository | None = None,
        resolver: ActionResolver | None = None,
        max_retries: int | None = None,
        rng: random.Random | None = None
    ):
        self._repository = repository or GameRepository(get_database())
        self._resolver = resolver or ActionResolver()
        self._max_retries = max_retries or settings.MAX_COMMIT_RETRIES
        self._rng = rng

        # player_id -> game_id (for quick lookup)
        self._player_games: dict[str, str] = {}

        # game_id -> listeners
        self._listeners: dict[str, list[StateListener]] = {}

    # =========================================================================
    # Game Creation
    # =========================================================================

    def create_game(
        self,
        host_id: str,
        host_name: str
    ) -> tuple[bool, str, GameState | None]:
        """
        Create a new game with the host seated.

        Args:
            host_id: Player ID of the host
            host_name: Display name of the host

        Returns:
            Tuple of (success, message, GameState or None)
        """
        if host_id in self._player_games:
            return False, "You are already in a game", None

        if not host_name.strip():
            return False, "A display name is required", None

        for _ in range(MAX_CODE_ATTEMPTS):
            state = create_game(host_id, host_name.strip(), rng=self._rng)
            if self._repository.find_game_by_code(state.game_code):
                continue
            try:
                record = self._repository.create_game(state)
            except sqlite3.IntegrityError:
                logger.warning(f"Game code {state.game_code} taken concurrently, retrying")
                continue

            self._player_games[host_id] = state.id
            logger.info(f"Game {state.game_code} ({state.id}) created by {host_name}")
            return True, f"Game {state.game_code} created", record.to_state()

        return False, "Could not allocate a game code", None

    # =========================================================================
    # Joining and Starting
    # =========================================================================

    def join_game(
        self,
        game_code: str,
        player_id: str,
        player_name: str
    ) -> tuple[bool, str, GameState | None, str | None]:
        """
        Join a game by code, or take back a seat with the same display name.

        Returns:
            Tuple of (success, message, GameState or None, previous player ID
            when an existing seat was rebound)
        """
        record = self._repository.find_game_by_code(game_code)
        if not record:
            return False, "Game not found", None, None

        current = self._player_games.get(player_id)
        if current and current != record.id:
            return False, "You are already in another game", None, None

        previous: dict[str, str | None] = {"id": None}

        def step(state: GameState) -> tuple[bool, str, GameState]:
            seat = state.find_player_by_name(player_name)
            previous["id"] = seat.id if seat and seat.id != player_id else None
            success, message, new_state, _ = join_game(state, player_id, player_name)
            return success, message, new_state

        success, message, state = self._commit_lobby_step(record.id, step)
        if not success:
            return False, message, state, None

        previous_id = previous["id"]
        if previous_id:
            self._player_games.pop(previous_id, None)
            logger.info(f"{player_name} rejoined game {record.id} as {player_id} (was {previous_id})")
        else:
            logger.info(f"Player {player_name} ({player_id}) joined game {record.id}")
        self._player_games[player_id] = record.id

        return True, message, state, previous_id

    def start_game(self, game_id: str, requester_id: str) -> tuple[bool, str, GameState | None]:
        """
        Start a game (host only).

        Returns:
            Tuple of (success, message, GameState or None)
        """
        success, message, state = self._commit_lobby_step(
            game_id,
            lambda current: start_game(current, requester_id, settings.MIN_PLAYERS)
        )
        if success:
            logger.info(f"Game {game_id} started")
        return success, message, state

    def _commit_lobby_step(
        self,
        game_id: str,
        step: LobbyStep
    ) -> tuple[bool, str, GameState | None]:
        """Apply a lobby function to the latest state and commit it."""
        for attempt in range(1, self._max_retries + 1):
            state = self._repository.load_state(game_id)
            if state is None:
                return False, "Game not found", None

            success, message, new_state = step(state)
            if not success or new_state is state:
                return success, message, state

            try:
                new_state.version = self._repository.save_state(new_state)
            except VersionConflictError as e:
                logger.warning(f"Lobby commit conflict on attempt {attempt}: {e}")
                continue

            self._notify(game_id, new_state)
            return True, message, new_state

        return False, "Game is busy, try again", None

    # =========================================================================
    # Actions
    # =========================================================================

    def submit_action(self, game_id: str, action: Action) -> SubmitResult:
        """
        Resolve an action against the latest state and commit the result.

        On a version conflict the state is re-read and the action is
        validated and applied again, up to the configured retry count.

        Raises:
            InvariantViolation: if resolution breaks a game invariant
        """
        for attempt in range(1, self._max_retries + 1):
            state = self._repository.load_state(game_id)
            if state is None:
                return SubmitResult(False, "Game not found", attempts=attempt)

            resolution = self._resolver.resolve(state, action)
            if not resolution.accepted:
                return SubmitResult(
                    accepted=False,
                    message=resolution.message,
                    state=state,
                    result=resolution.result.result,
                    attempts=attempt,
                )

            try:
                resolution.state.version = self._repository.save_state(resolution.state)
            except VersionConflictError as e:
                logger.warning(
                    f"Commit conflict for {action.kind.value} in game {game_id} "
                    f"on attempt {attempt}: {e}"
                )
                continue

            self._notify(game_id, resolution.state)
            return SubmitResult(
                accepted=True,
                message=resolution.message,
                state=resolution.state,
                events=resolution.events,
                result=resolution.result.result,
                attempts=attempt,
            )

        logger.error(
            f"Giving up on {action.kind.value} in game {game_id} "
            f"after {self._max_retries} conflicting commits"
        )
        return SubmitResult(
            accepted=False,
            message="Game is busy, try again",
            conflict=True,
            attempts=self._max_retries,
        )

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, game_id: str, listener: StateListener) -> Callable[[], None]:
        """
        Call listener with every state committed for a game.

        Returns:
            A function that removes the listener
        """
        self._listeners.setdefault(game_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(game_id, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(game_id, None)

        return unsubscribe

    def _notify(self, game_id: str, state: GameState) -> None:
        for listener in list(self._listeners.get(game_id, [])):
            try:
                listener(state)
            except Exception:
                logger.exception(f"State listener failed for game {game_id}")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_state(self, game_id: str) -> GameState | None:
        """Latest committed state of a game."""
        return self._repository.load_state(game_id)

    def get_game_for_player(self, player_id: str) -> GameState | None:
        """Get the latest state of the game a player is in."""
        game_id = self._player_games.get(player_id)
        if game_id:
            return self._repository.load_state(game_id)
        return None

    def get_game_id_for_player(self, player_id: str) -> str | None:
        return self._player_games.get(player_id)

    def set_player_connected(self, game_id: str, player_id: str, connected: bool) -> None:
        """Record a seat's connection status for listings."""
        self._repository.update_player_connection(game_id, player_id, connected)

    def list_games(self, status: str | None = None) -> list[dict[str, Any]]:
        """List stored games, optionally filtered by status."""
        return [summary.to_dict() for summary in self._repository.list_games(status=status)]

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get game manager statistics."""
        games = self._repository.list_games(limit=1000)
        return {
            "total_games": len(games),
            "waiting_games": sum(1 for g in games if g.status == GameStatus.WAITING.value),
            "active_games": sum(1 for g in games if g.status == GameStatus.PLAYING.value),
            "total_players_in_games": len(self._player_games),
            "subscribed_games": len(self._listeners),
        }
