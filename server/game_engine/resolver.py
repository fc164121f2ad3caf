"""
Action resolution: the single entry point that changes a game state.

``resolve(state, action)`` never modifies ``state``. A legal action is
applied to a copy which is returned; an illegal one hands back the very
same state object together with the reason it was rejected.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from shared.constants import HAND_LIMIT, PASS_GO_DRAW_COUNT
from shared.enums import ActionBehavior, ActionKind, CardKind

from .actions import Action
from .cards import get_card, parse_color
from .game import GameEvent
from .interactions import (
    accept, block, open_attack, pay_debt, run_birthday
)
from .player import Improvement, Player
from .rules import (
    ActionResult, RuleEngine, TARGETED_BEHAVIORS, ValidationResult, property_placement_color
)
from .settlement import eligible_assets, release_broken_improvements
from .state import ActionRecord, GameState, InvariantViolation, PayDebt, check_invariants
from .turns import draw_for_turn, draw_into_hand, finish_turn


logger = logging.getLogger(__name__)

HandlerOutcome = Tuple[ValidationResult, List[GameEvent]]


@dataclass
class Resolution:
    """Result of resolving one action."""
    state: GameState
    result: ValidationResult
    events: List[GameEvent] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.result.valid

    @property
    def message(self) -> str:
        return self.result.message


class ActionResolver:
    """
    Validates and applies actions.

    Stateless; every piece of game data lives in the GameState.
    """

    def __init__(self, rules: Optional[RuleEngine] = None):
        self.rules = rules or RuleEngine()

    def resolve(self, state: GameState, action: Action) -> Resolution:
        """
        Apply an action to a state.

        Returns:
            Resolution whose state is a new GameState when accepted, or the
            unchanged input state when rejected

        Raises:
            InvariantViolation: if the resulting state is inconsistent
        """
        check = self.rules.validate_actor(state, action)
        if not check.valid:
            return self._reject(state, action, check)

        handler = self._get_handler(action.kind)
        if handler is None:
            raise InvariantViolation(f"No handler for action kind {action.kind}")

        working = state.copy()
        player = working.players[action.acting_player_id]
        result, events = handler(working, player, action)
        if not result.valid:
            return self._reject(state, action, result)

        try:
            check_invariants(working)
        except InvariantViolation as e:
            logger.error(f"Invariant violated resolving {action.kind.value} in game {state.id}: {e}")
            raise

        return Resolution(state=working, result=result, events=events)

    def _reject(self, state: GameState, action: Action, result: ValidationResult) -> Resolution:
        logger.debug(
            f"Rejected {action.kind.value} from {action.acting_player_id}: "
            f"{result.result.name} {result.message}"
        )
        return Resolution(state=state, result=result)

    def _get_handler(self, kind: ActionKind) -> Optional[Callable[[GameState, Player, Action], HandlerOutcome]]:
        handlers = {
            ActionKind.DRAW_CARDS: self._handle_draw,
            ActionKind.PLAY_MONEY: self._handle_play_money,
            ActionKind.PLAY_PROPERTY: self._handle_play_property,
            ActionKind.PLAY_IMPROVEMENT: self._handle_play_improvement,
            ActionKind.PLAY_ACTION: self._handle_play_action,
            ActionKind.DISCARD_CARDS: self._handle_discard,
            ActionKind.END_TURN: self._handle_end_turn,
            ActionKind.SAY_NO: self._handle_say_no,
            ActionKind.ACCEPT_ACTION: self._handle_accept,
            ActionKind.PAY_DEBT: self._handle_pay_debt,
        }
        return handlers.get(kind)

    # =========== Helpers ===========

    def _record(
        self,
        state: GameState,
        kind: str,
        player: Player,
        target_id: Optional[str] = None,
        card_id: Optional[str] = None
    ) -> None:
        state.last_resolved_action = ActionRecord(
            kind=kind,
            player_id=player.id,
            target_id=target_id,
            card_id=card_id,
        )

    def _play_from_hand(self, state: GameState, player: Player, card_id: str) -> None:
        """Take a card out of hand and count it as one of the turn's plays."""
        if not player.take_from_hand(card_id):
            raise InvariantViolation(f"{player.display_name} does not hold {card_id}")
        state.cards_played_this_turn += 1

    # =========== Turn Handlers ===========

    def _handle_draw(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_draw(state)
        if not check.valid:
            return check, []

        drawn = draw_for_turn(state, player)
        self._record(state, ActionKind.DRAW_CARDS.value, player)
        return ValidationResult.success(f"Drew {len(drawn)} cards"), [
            GameEvent("cards_drawn", {"player_id": player.id, "count": len(drawn)})
        ]

    def _handle_end_turn(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_end_turn(state)
        if not check.valid:
            return check, []

        self._record(state, ActionKind.END_TURN.value, player)
        if not finish_turn(state, player):
            excess = len(player.hand) - HAND_LIMIT
            return ValidationResult.success(f"Discard {excess} cards to end your turn"), [
                GameEvent("discard_required", {"player_id": player.id, "excess": excess})
            ]

        return ValidationResult.success("Turn ended"), [
            GameEvent("turn_started", {"player_id": state.current_turn_player_id})
        ]

    def _handle_discard(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_discard(state, player, action.card_ids)
        if not check.valid:
            return check, []

        for card_id in action.card_ids:
            if not player.take_from_hand(card_id):
                raise InvariantViolation(f"{player.display_name} does not hold {card_id}")
            state.discard_pile.append(card_id)

        self._record(state, ActionKind.DISCARD_CARDS.value, player)
        events = [GameEvent("cards_discarded", {"player_id": player.id, "card_ids": list(action.card_ids)})]

        if finish_turn(state, player):
            events.append(GameEvent("turn_started", {"player_id": state.current_turn_player_id}))
            return ValidationResult.success("Turn ended"), events
        return ValidationResult.success(
            f"Discard {len(player.hand) - HAND_LIMIT} more cards"
        ), events

    # =========== Play Handlers ===========

    def _handle_play_money(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_play_slot(state)
        if check.valid:
            check = self.rules.validate_play_money(player, action.card_id)
        if not check.valid:
            return check, []

        card = get_card(action.card_id)
        self._play_from_hand(state, player, card.id)
        player.bank.append(card.id)
        player.recompute()

        self._record(state, ActionKind.PLAY_MONEY.value, player, card_id=card.id)
        return ValidationResult.success(f"Banked {card.value}M"), [
            GameEvent("money_banked", {"player_id": player.id, "card_id": card.id, "value": card.value})
        ]

    def _handle_play_property(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_play_slot(state)
        if check.valid:
            check = self.rules.validate_play_property(player, action.card_id, action.property_color)
        if not check.valid:
            return check, []

        card = get_card(action.card_id)
        color = property_placement_color(card.id, action.property_color)
        self._play_from_hand(state, player, card.id)
        player.add_property(color, card.id)
        player.recompute()
        release_broken_improvements(state, player)

        self._record(state, ActionKind.PLAY_PROPERTY.value, player, card_id=card.id)
        return ValidationResult.success(f"Played {card.name}"), [
            GameEvent("property_played", {
                "player_id": player.id,
                "card_id": card.id,
                "color": color.value,
                "set_complete": player.is_set_complete(color),
            })
        ]

    def _handle_play_improvement(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_play_slot(state)
        if check.valid:
            check = self.rules.validate_play_improvement(player, action.card_id, action.property_color)
        if not check.valid:
            return check, []

        card = get_card(action.card_id)
        color = parse_color(action.property_color)
        self._play_from_hand(state, player, card.id)
        improvement = player.improvements.setdefault(color, Improvement())

        if card.kind == CardKind.HOUSE:
            improvement.houses.append(card.id)
        else:
            state.discard_pile.extend(improvement.houses)
            improvement.houses = []
            improvement.hotel = card.id

        self._record(state, ActionKind.PLAY_IMPROVEMENT.value, player, card_id=card.id)
        return ValidationResult.success(f"Built a {card.name.lower()}"), [
            GameEvent("improvement_built", {
                "player_id": player.id,
                "card_id": card.id,
                "color": color.value,
                "houses": len(improvement.houses),
                "hotel": improvement.hotel is not None,
            })
        ]

    def _handle_play_action(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_play_slot(state)
        if check.valid:
            check = self.rules.validate_play_action(state, player, action)
        if not check.valid:
            return check, []

        card = get_card(action.card_id)
        self._play_from_hand(state, player, card.id)
        state.discard_pile.append(card.id)

        events = [GameEvent("action_played", {
            "player_id": player.id,
            "card_id": card.id,
            "target_id": action.target_player_id,
        })]
        message = f"Played {card.name}"

        if card.behavior == ActionBehavior.PASS_GO:
            drawn = draw_into_hand(state, player, PASS_GO_DRAW_COUNT)
            events.append(GameEvent("cards_drawn", {"player_id": player.id, "count": len(drawn)}))

        elif card.behavior == ActionBehavior.BIRTHDAY:
            shortfalls = run_birthday(state, player)
            for entry in shortfalls:
                events.append(GameEvent("debt_owed", {
                    "creditor_id": entry.creditor_id,
                    "debtor_id": entry.debtor_id,
                    "amount": entry.amount,
                }))

        elif card.behavior in TARGETED_BEHAVIORS:
            interaction = open_attack(state, player, card, action)
            if interaction is None:
                message = f"{card.name} had no effect"
                events.append(GameEvent("action_fizzled", {"player_id": player.id, "card_id": card.id}))
            else:
                events.append(GameEvent("action_pending", {
                    "initiator_id": interaction.initiator_id,
                    "target_id": interaction.target_id,
                    "attack_kind": interaction.attack_kind.value,
                    "description": interaction.description,
                }))

        self._record(state, card.behavior.value, player, action.target_player_id, card.id)
        return ValidationResult.success(message), events

    # =========== Response Handlers ===========

    def _handle_say_no(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_say_no(state, player, action.card_id)
        if not check.valid:
            return check, []

        interaction = block(state, player, action.card_id)
        logger.info(f"{player.display_name} blocked {interaction.attack_kind.value} in game {state.id}")

        self._record(state, ActionBehavior.JUST_SAY_NO.value, player, interaction.initiator_id, action.card_id)
        return ValidationResult.success("Action blocked"), [
            GameEvent("action_blocked", {
                "player_id": player.id,
                "initiator_id": interaction.initiator_id,
                "attack_kind": interaction.attack_kind.value,
            })
        ]

    def _handle_accept(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_accept(state)
        if not check.valid:
            return check, []

        interaction, applied = accept(state)
        self._record(
            state,
            f"{interaction.attack_kind.value}_ACCEPTED",
            player,
            interaction.initiator_id,
            interaction.card_id,
        )

        events = [GameEvent("action_accepted", {
            "player_id": player.id,
            "initiator_id": interaction.initiator_id,
            "attack_kind": interaction.attack_kind.value,
            "applied": applied,
        })]
        if isinstance(state.pending_interaction, PayDebt):
            debt = state.pending_interaction
            events.append(GameEvent("debt_owed", {
                "creditor_id": debt.creditor_id,
                "debtor_id": debt.debtor_id,
                "amount": debt.amount,
            }))
        return ValidationResult.success("Action accepted" if applied else "Action had no effect"), events

    def _handle_pay_debt(self, state: GameState, player: Player, action: Action) -> HandlerOutcome:
        check = self.rules.validate_pay_debt(state, eligible_assets(player), action.card_ids)
        if not check.valid:
            return check, []

        debt = state.pending_interaction
        result = pay_debt(state, player, action.card_ids)
        if not result.accepted:
            return ValidationResult.failure(
                ActionResult.INSUFFICIENT_PAYMENT,
                f"Pay at least {debt.amount}M or everything you can pay with"
            ), []

        logger.info(
            f"{player.display_name} paid {result.total}M of {debt.amount}M "
            f"({debt.reason.value}) in game {state.id}"
        )
        self._record(state, f"DEBT_PAID_{debt.reason.value}", player, debt.creditor_id)
        return ValidationResult.success(f"Paid {result.total}M"), [
            GameEvent("debt_paid", {
                "debtor_id": player.id,
                "creditor_id": debt.creditor_id,
                "amount": debt.amount,
                "paid": result.total,
                "forgiven": result.forgiven,
                "card_ids": list(action.card_ids),
            })
        ]


_default_resolver = ActionResolver()


def resolve(state: GameState, action: Action) -> Resolution:
    """Resolve an action with the default rule set."""
    return _default_resolver.resolve(state, action)
