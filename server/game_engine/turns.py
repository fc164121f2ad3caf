"""
Turn and phase state machine: Draw -> Play -> Discard -> next player's Draw.
"""
from typing import List, Optional

from shared.constants import CARDS_DRAWN_PER_TURN, HAND_LIMIT
from shared.enums import GameStatus, TurnPhase

from .player import Player
from .state import GameState


def draw_into_hand(state: GameState, player: Player, count: int) -> List[str]:
    """
    Move up to count cards from the top of the draw pile into a hand.

    An exhausted pile simply yields fewer cards.
    """
    drawn = state.draw_pile[:count]
    del state.draw_pile[:len(drawn)]
    player.hand.extend(drawn)
    return drawn


def draw_for_turn(state: GameState, player: Player) -> List[str]:
    """Start-of-turn draw. Moves the turn into the play phase."""
    drawn = draw_into_hand(state, player, CARDS_DRAWN_PER_TURN)
    state.cards_drawn_this_turn = len(drawn)
    state.turn_phase = TurnPhase.PLAY
    return drawn


def next_seat(state: GameState, player_id: str) -> Optional[str]:
    """The player after player_id in seat order, wrapping around."""
    order = state.turn_order
    if not order:
        return None
    if player_id not in order:
        return order[0]
    return order[(order.index(player_id) + 1) % len(order)]


def begin_turn(state: GameState, player_id: Optional[str]) -> None:
    state.current_turn_player_id = player_id
    state.turn_phase = TurnPhase.DRAW
    state.cards_drawn_this_turn = 0
    state.cards_played_this_turn = 0


def start_first_turn(state: GameState) -> None:
    """Hand the first turn to the first seat."""
    state.status = GameStatus.PLAYING
    order = state.turn_order
    begin_turn(state, order[0] if order else None)


def finish_turn(state: GameState, player: Player) -> bool:
    """
    Try to end the current player's turn.

    A hand over the limit sends the player to the discard phase instead.

    Returns:
        True if the turn passed to the next seat
    """
    if len(player.hand) > HAND_LIMIT:
        state.turn_phase = TurnPhase.DISCARD
        return False
    begin_turn(state, next_seat(state, player.id))
    return True
