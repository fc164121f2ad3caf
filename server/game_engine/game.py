"""
Game lifecycle around the rules engine: creating a table, seating and
re-seating players, starting play, and per-player views of the state.

Every function here takes a state and hands back a new one; the state
passed in is never modified.
"""
import random
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

from shared.constants import (
    GAME_CODE_LENGTH, MAX_PLAYERS, MIN_PLAYERS, SETS_TO_WIN, STARTING_HAND_SIZE
)
from shared.enums import GameStatus

from .cards import shuffled_deck
from .player import Player
from .state import GameState
from .turns import draw_into_hand, start_first_turn


@dataclass
class GameEvent:
    """Represents something that happened in the game."""
    event_type: str
    data: dict
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


def generate_game_code(rng: Optional[random.Random] = None) -> str:
    """Short uppercase code players type to find a game."""
    alphabet = string.ascii_uppercase + string.digits
    return "".join((rng or random).choice(alphabet) for _ in range(GAME_CODE_LENGTH))


def create_game(
    host_id: str,
    host_name: str,
    game_code: Optional[str] = None,
    rng: Optional[random.Random] = None
) -> GameState:
    """
    Create a table with a freshly shuffled deck and the host seated.

    Args:
        host_id: Identity of the host
        host_name: Display name of the host
        game_code: Code to use instead of a generated one
        rng: Random source for shuffling (for reproducible games)
    """
    state = GameState(
        game_code=game_code or generate_game_code(rng),
        host_id=host_id,
        draw_pile=shuffled_deck(rng),
    )
    host = Player(display_name=host_name, id=host_id, is_host=True)
    draw_into_hand(state, host, STARTING_HAND_SIZE)
    host.recompute()
    state.players[host.id] = host
    return state


# =========== Player Management ===========

def add_player(
    state: GameState,
    player_id: str,
    display_name: str,
    max_players: int = MAX_PLAYERS
) -> Tuple[bool, str, GameState]:
    """
    Seat a new player and deal their starting hand.

    Returns:
        Tuple of (success, message, state)
    """
    if state.status != GameStatus.WAITING:
        return False, "Game has already started", state

    if len(state.players) >= max_players:
        return False, f"Game is full ({max_players} players maximum)", state

    if player_id in state.players:
        return False, "You are already seated", state

    if not display_name.strip():
        return False, "A display name is required", state

    if state.find_player_by_name(display_name):
        return False, f"{display_name} is already taken", state

    new_state = state.copy()
    player = Player(display_name=display_name.strip(), id=player_id)
    draw_into_hand(new_state, player, STARTING_HAND_SIZE)
    player.recompute()
    new_state.players[player.id] = player
    return True, f"{player.display_name} joined the game", new_state


def rejoin_player(state: GameState, display_name: str, new_id: str) -> Tuple[bool, str, GameState]:
    """
    Rebind an existing seat to a new identity.

    The seat keeps its hand, bank, properties, host flag and place in the
    turn order.

    Returns:
        Tuple of (success, message, state)
    """
    player = state.find_player_by_name(display_name)
    if player is None:
        return False, f"No player named {display_name} in this game", state

    if player.id == new_id:
        return True, f"{player.display_name} is already seated", state

    if new_id in state.players:
        return False, "That identity already holds another seat", state

    new_state = state.copy()
    new_state.rekey_player(player.id, new_id)
    return True, f"{player.display_name} rejoined the game", new_state


def join_game(state: GameState, player_id: str, display_name: str) -> Tuple[bool, str, GameState, bool]:
    """
    Join a game, or rejoin it when the display name is already seated.

    Returns:
        Tuple of (success, message, state, rejoined)
    """
    if state.find_player_by_name(display_name):
        success, message, new_state = rejoin_player(state, display_name, player_id)
        return success, message, new_state, success

    success, message, new_state = add_player(state, player_id, display_name)
    return success, message, new_state, False


def start_game(
    state: GameState,
    requester_id: str,
    min_players: int = MIN_PLAYERS
) -> Tuple[bool, str, GameState]:
    """Start play; the first seat takes the first turn."""
    if state.status != GameStatus.WAITING:
        return False, "Game has already started", state

    if requester_id != state.host_id:
        return False, "Only the host can start the game", state

    if len(state.players) < min_players:
        return False, f"Need at least {min_players} players to start", state

    new_state = state.copy()
    start_first_turn(new_state)
    return True, "Game started", new_state


# =========== Observation ===========

def winner(state: GameState) -> Optional[Player]:
    """First player in seat order holding enough complete sets, if any."""
    for player in state.players.values():
        if player.completed_sets >= SETS_TO_WIN:
            return player
    return None


def get_state_for_player(state: GameState, viewer_id: Optional[str]) -> dict:
    """
    State as seen by one player.

    Other players' hands and the draw pile are reduced to counts.
    """
    data = state.to_dict()
    data["draw_pile_count"] = len(state.draw_pile)
    del data["draw_pile"]

    for player_data in data["players"]:
        player_data["hand_count"] = len(player_data["hand"])
        if player_data["id"] != viewer_id:
            player_data["hand"] = []

    champion = winner(state)
    data["winner_id"] = champion.id if champion else None
    data["viewer_id"] = viewer_id
    return data
