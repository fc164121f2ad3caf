"""
Attack effects and the accept / block / pay protocol around them.

An attack card opens a ConfirmAction for its target. The target either
blocks it with a counter card or accepts it, at which point the effect
is rebuilt from the captured action and applied. Money effects that the
target's bank can't cover turn into a PayDebt interaction.
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from shared.constants import (
    BIRTHDAY_AMOUNT, DEBT_COLLECTOR_AMOUNT, HOTEL_RENT_BONUS, HOUSE_RENT_BONUS
)
from shared.enums import ActionBehavior, DebtReason, PropertyColor

from .actions import (
    Action, AttackEffect, DebtCollection, PropertySwap, PropertyTheft, RentCharge, SetTheft
)
from .cards import Card, color_info, get_card, parse_color
from .player import Player
from .settlement import (
    SettlementResult, apply_settlement, choose_bank_payment, move_bank_cards,
    move_property, release_broken_improvements, settle
)
from .state import ConfirmAction, DebtEntry, GameState, InvariantViolation, PayDebt


logger = logging.getLogger(__name__)


def rent_amount(owner: Player, color: PropertyColor) -> int:
    """
    Rent an owner can charge for one color.

    Base rent comes from the number of cards held. Each house adds a
    fixed bonus; a hotel replaces the house bonus with its own.
    """
    base = color_info(color).rent_for(len(owner.properties.get(color, [])))
    if base == 0:
        return 0
    improvement = owner.improvements.get(color)
    if improvement is None:
        return base
    if improvement.hotel:
        return base + HOTEL_RENT_BONUS
    return base + HOUSE_RENT_BONUS * len(improvement.houses)


def build_effect(card: Card, action: Action) -> Optional[AttackEffect]:
    """
    Turn a played attack card into its effect.

    Returns:
        The effect, or None if the card is not a targeted attack or the
        request can't describe one (e.g. a rent color not on the card)
    """
    behavior = card.behavior
    color = parse_color(action.property_color)

    if behavior == ActionBehavior.DEBT_COLLECTOR:
        return DebtCollection(amount=DEBT_COLLECTOR_AMOUNT)
    if behavior in (ActionBehavior.RENT, ActionBehavior.WILD_RENT):
        if color is None or color not in card.eligible_colors():
            return None
        return RentCharge(color=color)
    if behavior == ActionBehavior.SLY_DEAL:
        return PropertyTheft(color=color) if color else None
    if behavior == ActionBehavior.DEAL_BREAKER:
        return SetTheft(color=color) if color else None
    if behavior == ActionBehavior.FORCED_DEAL:
        if len(action.card_ids) != 3:
            return None
        return PropertySwap(offered_card_id=action.card_ids[1], requested_card_id=action.card_ids[2])
    return None


# =========== Effect Checks ===========

def _can_collect_debt(state: GameState, attacker: Player, target: Player, effect: DebtCollection) -> bool:
    return effect.amount > 0


def _can_charge_rent(state: GameState, attacker: Player, target: Player, effect: RentCharge) -> bool:
    return bool(attacker.properties.get(effect.color))


def _can_steal_property(state: GameState, attacker: Player, target: Player, effect: PropertyTheft) -> bool:
    return bool(target.properties.get(effect.color))


def _can_steal_set(state: GameState, attacker: Player, target: Player, effect: SetTheft) -> bool:
    return target.is_set_complete(effect.color)


def _can_swap(state: GameState, attacker: Player, target: Player, effect: PropertySwap) -> bool:
    return (
        attacker.property_color_of(effect.offered_card_id) is not None
        and target.property_color_of(effect.requested_card_id) is not None
    )


_EFFECT_CHECKS: Dict[type, Callable] = {
    DebtCollection: _can_collect_debt,
    RentCharge: _can_charge_rent,
    PropertyTheft: _can_steal_property,
    SetTheft: _can_steal_set,
    PropertySwap: _can_swap,
}


def _lookup(table: Dict[type, Callable], effect: AttackEffect) -> Callable:
    handler = table.get(type(effect))
    if handler is None:
        raise InvariantViolation(f"No handler for attack effect {effect!r}")
    return handler


def effect_possible(state: GameState, attacker: Player, target: Player, effect: AttackEffect) -> bool:
    return _lookup(_EFFECT_CHECKS, effect)(state, attacker, target, effect)


# =========== Descriptions ===========

def describe(attacker: Player, target: Player, effect: AttackEffect) -> str:
    """Human-readable prompt shown to the target."""
    name = attacker.display_name
    if isinstance(effect, DebtCollection):
        return f"{name} wants you to pay a {effect.amount}M debt."
    if isinstance(effect, RentCharge):
        return (
            f"{name} wants to charge you {rent_amount(attacker, effect.color)}M rent "
            f"for {color_info(effect.color).display_name} properties."
        )
    if isinstance(effect, PropertyTheft):
        return f"{name} wants to steal one of your {color_info(effect.color).display_name} properties."
    if isinstance(effect, SetTheft):
        return f"{name} wants to steal your complete {color_info(effect.color).display_name} property set!"
    if isinstance(effect, PropertySwap):
        mine = attacker.property_color_of(effect.offered_card_id)
        theirs = target.property_color_of(effect.requested_card_id)
        return (
            f"{name} wants to trade their {color_info(mine).display_name} property "
            f"for your {color_info(theirs).display_name} property."
        )
    raise InvariantViolation(f"No description for attack effect {effect!r}")


# =========== Effect Application ===========

def collect_debt(
    state: GameState,
    creditor: Player,
    debtor: Player,
    amount: int,
    reason: DebtReason
) -> Optional[PayDebt]:
    """
    Take what the debtor's bank can cover.

    Any shortfall becomes the active PayDebt interaction.

    Returns:
        The PayDebt installed, or None if the bank covered it
    """
    paid = move_bank_cards(debtor, creditor, choose_bank_payment(debtor, amount))
    shortfall = amount - paid
    if shortfall <= 0:
        return None
    debt = PayDebt(
        initiator_id=creditor.id,
        target_id=debtor.id,
        amount=shortfall,
        reason=reason,
    )
    state.pending_interaction = debt
    return debt


def _apply_debt_collection(state: GameState, attacker: Player, target: Player, effect: DebtCollection) -> None:
    collect_debt(state, attacker, target, effect.amount, DebtReason.DEBT_COLLECTOR)


def _apply_rent(state: GameState, attacker: Player, target: Player, effect: RentCharge) -> None:
    collect_debt(state, attacker, target, rent_amount(attacker, effect.color), DebtReason.RENT)


def _apply_property_theft(state: GameState, attacker: Player, target: Player, effect: PropertyTheft) -> None:
    move_property(target, attacker, target.properties[effect.color][0])


def _apply_set_theft(state: GameState, attacker: Player, target: Player, effect: SetTheft) -> None:
    for card_id in list(target.properties[effect.color]):
        move_property(target, attacker, card_id)

    improvement = target.improvements.pop(effect.color, None)
    if improvement is not None:
        if effect.color in attacker.improvements:
            state.discard_pile.extend(improvement.cards())
        else:
            attacker.improvements[effect.color] = improvement


def _apply_swap(state: GameState, attacker: Player, target: Player, effect: PropertySwap) -> None:
    move_property(attacker, target, effect.offered_card_id)
    move_property(target, attacker, effect.requested_card_id)


_EFFECT_APPLIERS: Dict[type, Callable] = {
    DebtCollection: _apply_debt_collection,
    RentCharge: _apply_rent,
    PropertyTheft: _apply_property_theft,
    SetTheft: _apply_set_theft,
    PropertySwap: _apply_swap,
}


def apply_effect(state: GameState, attacker: Player, target: Player, effect: AttackEffect) -> None:
    _lookup(_EFFECT_APPLIERS, effect)(state, attacker, target, effect)
    for player in (attacker, target):
        player.recompute()
        release_broken_improvements(state, player)


# =========== Protocol ===========

def open_attack(state: GameState, attacker: Player, card: Card, action: Action) -> Optional[ConfirmAction]:
    """
    Offer a targeted attack to its target.

    Returns:
        The ConfirmAction installed, or None if the attack can't land
    """
    target = state.get_player(action.target_player_id)
    effect = build_effect(card, action)
    if target is None or effect is None or not effect_possible(state, attacker, target, effect):
        logger.info(f"{attacker.display_name}'s {card.name} had no effect")
        return None

    interaction = ConfirmAction(
        initiator_id=attacker.id,
        target_id=target.id,
        attack_kind=card.behavior,
        card_id=card.id,
        description=describe(attacker, target, effect),
        original_action=action,
    )
    state.pending_interaction = interaction
    return interaction


def run_birthday(state: GameState, collector: Player) -> List[DebtEntry]:
    """
    Every other player pays the collector from their bank.

    Shortfalls are queued; the first becomes the active PayDebt.

    Returns:
        The shortfall debts, in seat order
    """
    shortfalls: List[DebtEntry] = []
    for player in list(state.players.values()):
        if player.id == collector.id:
            continue
        paid = move_bank_cards(player, collector, choose_bank_payment(player, BIRTHDAY_AMOUNT))
        if paid < BIRTHDAY_AMOUNT:
            shortfalls.append(DebtEntry(
                creditor_id=collector.id,
                debtor_id=player.id,
                amount=BIRTHDAY_AMOUNT - paid,
                reason=DebtReason.BIRTHDAY,
            ))

    if shortfalls:
        state.pending_interaction = shortfalls[0].to_interaction()
        state.pending_debt_queue.extend(shortfalls[1:])
    return shortfalls


def block(state: GameState, responder: Player, counter_card_id: str) -> ConfirmAction:
    """Spend a counter card and cancel the pending attack."""
    interaction = state.pending_interaction
    if not isinstance(interaction, ConfirmAction):
        raise InvariantViolation("Block attempted with no attack pending")
    if not responder.take_from_hand(counter_card_id):
        raise InvariantViolation(f"{responder.display_name} does not hold {counter_card_id}")
    state.discard_pile.append(counter_card_id)
    state.pending_interaction = None
    return interaction


def accept(state: GameState) -> Tuple[ConfirmAction, bool]:
    """
    Apply the pending attack now.

    The effect is rebuilt from the captured action and checked again; if
    it can no longer land the attack simply clears.

    Returns:
        (the interaction that was accepted, whether its effect applied)
    """
    interaction = state.pending_interaction
    if not isinstance(interaction, ConfirmAction):
        raise InvariantViolation("Accept attempted with no attack pending")
    state.pending_interaction = None

    attacker = state.get_player(interaction.initiator_id)
    target = state.get_player(interaction.target_id)
    card = get_card(interaction.card_id)
    if attacker is None or target is None or card is None:
        raise InvariantViolation("Pending attack refers to unknown players or cards")

    effect = build_effect(card, interaction.original_action)
    if effect is None or not effect_possible(state, attacker, target, effect):
        logger.info(f"{card.name} from {attacker.display_name} no longer applies")
        return interaction, False

    apply_effect(state, attacker, target, effect)
    return interaction, True


def pay_debt(state: GameState, debtor: Player, card_ids: List[str]) -> SettlementResult:
    """
    Settle the active debt with the proposed cards.

    On acceptance the next queued debt, if any, becomes active.
    """
    interaction = state.pending_interaction
    if not isinstance(interaction, PayDebt):
        raise InvariantViolation("Payment attempted with no debt pending")
    creditor = state.get_player(interaction.creditor_id)
    if creditor is None:
        raise InvariantViolation(f"Unknown creditor {interaction.creditor_id}")

    result = settle(debtor, creditor, interaction.amount, card_ids)
    if not result.accepted:
        return result

    apply_settlement(state, debtor, creditor, result)
    advance_debt_queue(state)
    return result


def advance_debt_queue(state: GameState) -> None:
    """Activate the oldest queued debt, or clear the interaction."""
    if state.pending_debt_queue:
        state.pending_interaction = state.pending_debt_queue.pop(0).to_interaction()
    else:
        state.pending_interaction = None
