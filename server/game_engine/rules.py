"""
Rule enforcement and validation.

Every check here is read-only. A failed check means the action is
rejected and the state is left untouched.
"""
from collections import Counter
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from shared.constants import MAX_HOUSES_PER_SET, MAX_PLAYS_PER_TURN
from shared.enums import (
    ActionBehavior, ActionKind, CardKind, GameStatus, InteractionKind, TurnPhase
)

from .actions import Action
from .cards import get_card, parse_color
from .player import Player
from .state import ConfirmAction, GameState, PayDebt


class ActionResult(Enum):
    """Result of attempting an action."""
    SUCCESS = auto()
    GAME_NOT_STARTED = auto()
    UNKNOWN_PLAYER = auto()
    NOT_YOUR_TURN = auto()
    WRONG_PHASE = auto()
    ALREADY_DRAWN = auto()
    NO_PLAYS_LEFT = auto()
    NO_CARDS = auto()
    CARD_NOT_IN_HAND = auto()
    WRONG_CARD_KIND = auto()
    INVALID_COLOR = auto()
    SET_NOT_COMPLETE = auto()
    MAX_DEVELOPMENT = auto()
    NO_HOUSES = auto()
    HAS_HOTEL = auto()
    INVALID_TARGET = auto()
    INTERACTION_PENDING = auto()
    NO_PENDING_INTERACTION = auto()
    NOT_INTERACTION_TARGET = auto()
    NOT_BLOCKABLE = auto()
    INELIGIBLE_PAYMENT = auto()
    INSUFFICIENT_PAYMENT = auto()


@dataclass
class ValidationResult:
    """Result of validating an action."""
    valid: bool
    result: ActionResult
    message: str = ""

    @classmethod
    def success(cls, message: str = "") -> "ValidationResult":
        return cls(valid=True, result=ActionResult.SUCCESS, message=message)

    @classmethod
    def failure(cls, result: ActionResult, message: str = "") -> "ValidationResult":
        return cls(valid=False, result=result, message=message)


# Responses that come from the interaction target rather than the turn owner
RESPONSE_KINDS = {ActionKind.SAY_NO, ActionKind.ACCEPT_ACTION, ActionKind.PAY_DEBT}

PLAY_KINDS = {
    ActionKind.PLAY_MONEY,
    ActionKind.PLAY_PROPERTY,
    ActionKind.PLAY_IMPROVEMENT,
    ActionKind.PLAY_ACTION,
}

TARGETED_BEHAVIORS = {
    ActionBehavior.DEBT_COLLECTOR,
    ActionBehavior.RENT,
    ActionBehavior.WILD_RENT,
    ActionBehavior.SLY_DEAL,
    ActionBehavior.DEAL_BREAKER,
    ActionBehavior.FORCED_DEAL,
}

COLOR_BEHAVIORS = {
    ActionBehavior.RENT,
    ActionBehavior.WILD_RENT,
    ActionBehavior.SLY_DEAL,
    ActionBehavior.DEAL_BREAKER,
}


class RuleEngine:
    """
    Validates actions against the current state.
    """

    def validate_actor(self, state: GameState, action: Action) -> ValidationResult:
        """Check the game is running and the actor may act now."""
        if state.status != GameStatus.PLAYING:
            return ValidationResult.failure(
                ActionResult.GAME_NOT_STARTED,
                "Game is not in progress"
            )

        if action.acting_player_id not in state.players:
            return ValidationResult.failure(
                ActionResult.UNKNOWN_PLAYER,
                "You are not seated in this game"
            )

        if action.kind in RESPONSE_KINDS:
            interaction = state.pending_interaction
            if interaction is None:
                return ValidationResult.failure(
                    ActionResult.NO_PENDING_INTERACTION,
                    "There is nothing to respond to"
                )
            if interaction.target_id != action.acting_player_id:
                return ValidationResult.failure(
                    ActionResult.NOT_INTERACTION_TARGET,
                    "This response is not yours to give"
                )
            return ValidationResult.success()

        if action.acting_player_id != state.current_turn_player_id:
            return ValidationResult.failure(
                ActionResult.NOT_YOUR_TURN,
                "It's not your turn"
            )

        return ValidationResult.success()

    # =========== Turn Actions ===========

    def validate_draw(self, state: GameState) -> ValidationResult:
        if state.turn_phase != TurnPhase.DRAW:
            return ValidationResult.failure(
                ActionResult.WRONG_PHASE,
                "Cards can only be drawn at the start of your turn"
            )
        if state.cards_drawn_this_turn > 0:
            return ValidationResult.failure(
                ActionResult.ALREADY_DRAWN,
                "You have already drawn this turn"
            )
        return ValidationResult.success()

    def validate_play_slot(self, state: GameState) -> ValidationResult:
        """Check a card may be played right now."""
        if state.turn_phase != TurnPhase.PLAY:
            return ValidationResult.failure(
                ActionResult.WRONG_PHASE,
                "Cards can only be played during the play phase"
            )
        if state.cards_played_this_turn >= MAX_PLAYS_PER_TURN:
            return ValidationResult.failure(
                ActionResult.NO_PLAYS_LEFT,
                f"You can only play {MAX_PLAYS_PER_TURN} cards per turn"
            )
        return ValidationResult.success()

    def validate_end_turn(self, state: GameState) -> ValidationResult:
        if state.turn_phase != TurnPhase.PLAY:
            return ValidationResult.failure(
                ActionResult.WRONG_PHASE,
                "You can only end your turn during the play phase"
            )
        return ValidationResult.success()

    def validate_discard(self, state: GameState, player: Player, card_ids: List[str]) -> ValidationResult:
        if state.turn_phase != TurnPhase.DISCARD:
            return ValidationResult.failure(
                ActionResult.WRONG_PHASE,
                "You can only discard when over the hand limit"
            )
        if not card_ids:
            return ValidationResult.failure(ActionResult.NO_CARDS, "Choose cards to discard")
        if not self._hand_contains(player, card_ids):
            return ValidationResult.failure(
                ActionResult.CARD_NOT_IN_HAND,
                "You can only discard cards from your hand"
            )
        return ValidationResult.success()

    # =========== Card Plays ===========

    def validate_play_money(self, player: Player, card_id: Optional[str]) -> ValidationResult:
        card = get_card(card_id) if card_id else None
        if card is None or card_id not in player.hand:
            return ValidationResult.failure(ActionResult.CARD_NOT_IN_HAND, "Card is not in your hand")
        if card.value <= 0:
            return ValidationResult.failure(
                ActionResult.WRONG_CARD_KIND,
                f"{card.name} has no cash value"
            )
        return ValidationResult.success()

    def validate_play_property(
        self,
        player: Player,
        card_id: Optional[str],
        requested_color: Optional[str]
    ) -> ValidationResult:
        card = get_card(card_id) if card_id else None
        if card is None or card_id not in player.hand:
            return ValidationResult.failure(ActionResult.CARD_NOT_IN_HAND, "Card is not in your hand")
        if card.kind != CardKind.PROPERTY:
            return ValidationResult.failure(
                ActionResult.WRONG_CARD_KIND,
                f"{card.name} is not a property"
            )
        if property_placement_color(card_id, requested_color) is None:
            return ValidationResult.failure(
                ActionResult.INVALID_COLOR,
                f"{card.name} cannot be placed in that color"
            )
        return ValidationResult.success()

    def validate_play_improvement(
        self,
        player: Player,
        card_id: Optional[str],
        requested_color: Optional[str]
    ) -> ValidationResult:
        card = get_card(card_id) if card_id else None
        if card is None or card_id not in player.hand:
            return ValidationResult.failure(ActionResult.CARD_NOT_IN_HAND, "Card is not in your hand")
        if card.kind not in (CardKind.HOUSE, CardKind.HOTEL):
            return ValidationResult.failure(
                ActionResult.WRONG_CARD_KIND,
                f"{card.name} is not a house or hotel"
            )

        color = parse_color(requested_color)
        if color is None:
            return ValidationResult.failure(ActionResult.INVALID_COLOR, "Choose a property set")
        if not player.is_set_complete(color):
            return ValidationResult.failure(
                ActionResult.SET_NOT_COMPLETE,
                "Improvements can only go on a complete set"
            )

        improvement = player.improvements.get(color)
        houses = len(improvement.houses) if improvement else 0
        has_hotel = bool(improvement and improvement.hotel)

        if has_hotel:
            return ValidationResult.failure(
                ActionResult.HAS_HOTEL,
                "That set already has a hotel"
            )
        if card.kind == CardKind.HOUSE and houses >= MAX_HOUSES_PER_SET:
            return ValidationResult.failure(
                ActionResult.MAX_DEVELOPMENT,
                f"A set can hold at most {MAX_HOUSES_PER_SET} houses"
            )
        if card.kind == CardKind.HOTEL and houses == 0:
            return ValidationResult.failure(
                ActionResult.NO_HOUSES,
                "A hotel needs at least one house on the set"
            )
        return ValidationResult.success()

    def validate_play_action(self, state: GameState, player: Player, action: Action) -> ValidationResult:
        """
        Validate the request shape of an action card play.

        Whether the effect can actually land is decided later; a card
        whose effect can't land is still spent.
        """
        card_id = action.card_id
        card = get_card(card_id) if card_id else None
        if card is None or card_id not in player.hand:
            return ValidationResult.failure(ActionResult.CARD_NOT_IN_HAND, "Card is not in your hand")
        if card.kind not in (CardKind.ACTION, CardKind.RENT):
            return ValidationResult.failure(
                ActionResult.WRONG_CARD_KIND,
                f"{card.name} is not an action card"
            )
        if state.pending_interaction is not None:
            return ValidationResult.failure(
                ActionResult.INTERACTION_PENDING,
                "Wait for the current action to be resolved"
            )

        if card.behavior in TARGETED_BEHAVIORS:
            target_id = action.target_player_id
            if (
                not isinstance(target_id, str)
                or target_id not in state.players
                or target_id == player.id
            ):
                return ValidationResult.failure(
                    ActionResult.INVALID_TARGET,
                    f"{card.name} needs another player as its target"
                )

        if card.behavior in COLOR_BEHAVIORS and parse_color(action.property_color) is None:
            return ValidationResult.failure(
                ActionResult.INVALID_COLOR,
                f"{card.name} needs a property color"
            )

        if card.behavior == ActionBehavior.FORCED_DEAL and len(action.card_ids) != 3:
            return ValidationResult.failure(
                ActionResult.NO_CARDS,
                "Forced Deal needs one of your properties and one of theirs"
            )

        return ValidationResult.success()

    # =========== Responses ===========

    def validate_say_no(self, state: GameState, player: Player, card_id: Optional[str]) -> ValidationResult:
        interaction = state.pending_interaction
        if not isinstance(interaction, ConfirmAction):
            return ValidationResult.failure(
                ActionResult.NO_PENDING_INTERACTION,
                "There is no action to block"
            )
        if not interaction.blockable:
            return ValidationResult.failure(ActionResult.NOT_BLOCKABLE, "This action cannot be blocked")

        card = get_card(card_id) if card_id else None
        if card is None or card_id not in player.hand:
            return ValidationResult.failure(ActionResult.CARD_NOT_IN_HAND, "Card is not in your hand")
        if card.behavior != ActionBehavior.JUST_SAY_NO:
            return ValidationResult.failure(
                ActionResult.WRONG_CARD_KIND,
                f"{card.name} cannot block an action"
            )
        return ValidationResult.success()

    def validate_accept(self, state: GameState) -> ValidationResult:
        if state.pending_interaction is None or state.pending_interaction.kind != InteractionKind.CONFIRM_ACTION:
            return ValidationResult.failure(
                ActionResult.NO_PENDING_INTERACTION,
                "There is no action to accept"
            )
        return ValidationResult.success()

    def validate_pay_debt(
        self,
        state: GameState,
        eligible: List[str],
        card_ids: List[str]
    ) -> ValidationResult:
        """Check the proposed payment only uses the debtor's eligible assets."""
        if not isinstance(state.pending_interaction, PayDebt):
            return ValidationResult.failure(
                ActionResult.NO_PENDING_INTERACTION,
                "There is no debt to pay"
            )
        if len(set(card_ids)) != len(card_ids):
            return ValidationResult.failure(
                ActionResult.INELIGIBLE_PAYMENT,
                "The same card was offered twice"
            )
        if any(card_id not in eligible for card_id in card_ids):
            return ValidationResult.failure(
                ActionResult.INELIGIBLE_PAYMENT,
                "You can only pay with banked money or properties outside complete sets"
            )
        return ValidationResult.success()

    def _hand_contains(self, player: Player, card_ids: List[str]) -> bool:
        wanted = Counter(card_ids)
        held = Counter(player.hand)
        return all(held[card_id] >= n for card_id, n in wanted.items())


def property_placement_color(card_id: Optional[str], requested_color: Optional[str]):
    """
    Work out which color a property card goes into.

    A fixed-color card defaults to its own color. A wildcard must be given
    one of its options.

    Returns:
        The PropertyColor, or None if the placement is not allowed
    """
    card = get_card(card_id) if card_id else None
    if card is None or card.kind != CardKind.PROPERTY:
        return None
    if requested_color is None:
        return card.color
    color = parse_color(requested_color)
    if color is None or color not in card.eligible_colors():
        return None
    return color
