"""
Debt settlement and card transfers between players.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from shared.enums import PropertyColor

from .cards import card_value
from .player import Player
from .state import GameState, InvariantViolation


logger = logging.getLogger(__name__)


@dataclass
class Transfer:
    """One card moving from debtor to creditor."""
    card_id: str
    from_bank: bool
    color: Optional[PropertyColor] = None


@dataclass
class SettlementResult:
    """Outcome of checking a proposed payment."""
    accepted: bool
    transfers: List[Transfer] = field(default_factory=list)
    total: int = 0
    amount: int = 0

    @property
    def forgiven(self) -> int:
        """Part of the debt written off because the debtor ran out of assets."""
        return max(0, self.amount - self.total)


def eligible_assets(player: Player) -> List[str]:
    """
    Cards a debtor can be made to pay with.

    All banked cards plus properties in sets that are not complete.
    Complete sets are protected.
    """
    assets = list(player.bank)
    for color, cards in player.properties.items():
        if not player.is_set_complete(color):
            assets.extend(cards)
    return assets


def settle(
    debtor: Player,
    creditor: Player,
    amount: int,
    proposed_card_ids: List[str]
) -> SettlementResult:
    """
    Decide whether a proposed payment discharges a debt.

    Accepted when the proposal covers the amount, when it is everything
    the debtor can pay with, or when the debtor has nothing to pay with.
    Overpayment is allowed and not refunded.

    Args:
        debtor: Player who owes
        creditor: Player who is owed
        amount: Amount owed
        proposed_card_ids: Cards the debtor offers

    Returns:
        SettlementResult listing the transfers if accepted
    """
    eligible = eligible_assets(debtor)
    if len(set(proposed_card_ids)) != len(proposed_card_ids):
        return SettlementResult(accepted=False, amount=amount)
    if any(card_id not in eligible for card_id in proposed_card_ids):
        return SettlementResult(accepted=False, amount=amount)

    total = sum(card_value(card_id) for card_id in proposed_card_ids)
    pays_everything = set(proposed_card_ids) == set(eligible)

    if total < amount and not pays_everything:
        return SettlementResult(accepted=False, total=total, amount=amount)

    transfers = []
    for card_id in proposed_card_ids:
        if card_id in debtor.bank:
            transfers.append(Transfer(card_id, from_bank=True))
        else:
            transfers.append(Transfer(card_id, from_bank=False, color=debtor.property_color_of(card_id)))

    logger.debug(
        f"{debtor.display_name} pays {creditor.display_name} {total}M "
        f"towards {amount}M with {len(transfers)} cards"
    )
    return SettlementResult(accepted=True, transfers=transfers, total=total, amount=amount)


def apply_settlement(state: GameState, debtor: Player, creditor: Player, result: SettlementResult) -> None:
    """Carry out an accepted settlement and recompute both players."""
    if not result.accepted:
        raise InvariantViolation("Tried to apply a rejected settlement")

    for transfer in result.transfers:
        if transfer.from_bank:
            move_bank_cards(debtor, creditor, [transfer.card_id])
        else:
            move_property(debtor, creditor, transfer.card_id)

    debtor.recompute()
    creditor.recompute()
    release_broken_improvements(state, debtor)
    release_broken_improvements(state, creditor)


def choose_bank_payment(debtor: Player, amount: int) -> List[str]:
    """
    Pick bank cards to pay an amount automatically.

    If the bank can't cover the amount everything is taken. Otherwise the
    cheapest combination reaching the amount is used, preferring fewer
    cards. No change is given.
    """
    if amount <= 0:
        return []
    if debtor.bank_value <= amount:
        return list(debtor.bank)

    # reachable total -> indexes of the fewest bank cards reaching it
    best: Dict[int, List[int]] = {0: []}
    for index, card_id in enumerate(debtor.bank):
        value = card_value(card_id)
        for total, picked in list(best.items()):
            candidate = picked + [index]
            reached = total + value
            if reached not in best or len(candidate) < len(best[reached]):
                best[reached] = candidate

    target = min(total for total in best if total >= amount)
    return [debtor.bank[index] for index in best[target]]


# =========== Transfers ===========

def move_bank_cards(source: Player, dest: Player, card_ids: List[str]) -> int:
    """
    Move banked cards between players.

    Returns:
        The face value moved
    """
    moved = 0
    for card_id in card_ids:
        if not source.take_from_bank(card_id):
            raise InvariantViolation(f"{source.display_name} does not have {card_id} in the bank")
        dest.bank.append(card_id)
        moved += card_value(card_id)
    source.recompute()
    dest.recompute()
    return moved


def move_property(source: Player, dest: Player, card_id: str) -> PropertyColor:
    """Move a property card, keeping the color it was played as."""
    color = source.take_property(card_id)
    if color is None:
        raise InvariantViolation(f"{source.display_name} does not own {card_id}")
    dest.add_property(color, card_id)
    return color


def release_broken_improvements(state: GameState, player: Player) -> List[str]:
    """
    Discard houses and hotels from sets that are no longer complete.

    Returns:
        The improvement cards discarded
    """
    released: List[str] = []
    for color in list(player.improvements):
        if not player.is_set_complete(color):
            cards = player.improvements.pop(color).cards()
            state.discard_pile.extend(cards)
            released.extend(cards)
    if released:
        logger.info(f"{player.display_name} lost improvements {released} from a broken set")
    return released
