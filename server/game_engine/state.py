"""
Authoritative snapshot of one match.
"""
import copy
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Union

from shared.constants import MAX_HOUSES_PER_SET, MAX_PLAYS_PER_TURN
from shared.enums import (
    ActionBehavior, CardKind, DebtReason, GameStatus, InteractionKind, TurnPhase
)

from .actions import Action
from .cards import CATALOG, card_value
from .player import Player


class InvariantViolation(RuntimeError):
    """
    Internal consistency error.

    Raised when the engine would move a card the claimed owner doesn't hold,
    or when a resolved state fails its consistency checks. This is a bug,
    never a rule violation by a player.
    """


# =========== Pending Interactions ===========

@dataclass
class ConfirmAction:
    """An attack awaiting the target's accept or block."""

    kind: ClassVar[InteractionKind] = InteractionKind.CONFIRM_ACTION

    initiator_id: str
    target_id: str
    attack_kind: ActionBehavior
    card_id: str
    description: str
    original_action: Action
    blockable: bool = True

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "initiator_id": self.initiator_id,
            "target_id": self.target_id,
            "attack_kind": self.attack_kind.value,
            "card_id": self.card_id,
            "description": self.description,
            "original_action": self.original_action.to_dict(),
            "blockable": self.blockable,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConfirmAction":
        return cls(
            initiator_id=data["initiator_id"],
            target_id=data["target_id"],
            attack_kind=ActionBehavior(data["attack_kind"]),
            card_id=data["card_id"],
            description=data.get("description", ""),
            original_action=Action.from_dict(data["original_action"]),
            blockable=data.get("blockable", True),
        )


@dataclass
class PayDebt:
    """A debt the target must settle. Never blockable."""

    kind: ClassVar[InteractionKind] = InteractionKind.PAY_DEBT
    blockable: ClassVar[bool] = False

    initiator_id: str
    target_id: str
    amount: int
    reason: DebtReason

    @property
    def creditor_id(self) -> str:
        return self.initiator_id

    @property
    def debtor_id(self) -> str:
        return self.target_id

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "initiator_id": self.initiator_id,
            "target_id": self.target_id,
            "amount": self.amount,
            "reason": self.reason.value,
            "blockable": False,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PayDebt":
        return cls(
            initiator_id=data["initiator_id"],
            target_id=data["target_id"],
            amount=data["amount"],
            reason=DebtReason(data["reason"]),
        )


PendingInteraction = Union[ConfirmAction, PayDebt]


def interaction_from_dict(data: Optional[dict]) -> Optional[PendingInteraction]:
    if not data:
        return None
    kind = InteractionKind(data["kind"])
    if kind == InteractionKind.CONFIRM_ACTION:
        return ConfirmAction.from_dict(data)
    return PayDebt.from_dict(data)


@dataclass
class DebtEntry:
    """A deferred debt waiting in the queue."""
    creditor_id: str
    debtor_id: str
    amount: int
    reason: DebtReason

    def to_interaction(self) -> PayDebt:
        return PayDebt(
            initiator_id=self.creditor_id,
            target_id=self.debtor_id,
            amount=self.amount,
            reason=self.reason,
        )

    def to_dict(self) -> dict:
        return {
            "creditor_id": self.creditor_id,
            "debtor_id": self.debtor_id,
            "amount": self.amount,
            "reason": self.reason.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DebtEntry":
        return cls(
            creditor_id=data["creditor_id"],
            debtor_id=data["debtor_id"],
            amount=data["amount"],
            reason=DebtReason(data["reason"]),
        )


@dataclass
class ActionRecord:
    """Summary of the last successfully resolved action."""
    kind: str
    player_id: str
    target_id: Optional[str] = None
    card_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "player_id": self.player_id,
            "target_id": self.target_id,
            "card_id": self.card_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActionRecord":
        return cls(
            kind=data["kind"],
            player_id=data["player_id"],
            target_id=data.get("target_id"),
            card_id=data.get("card_id"),
        )


# =========== Game State ===========

@dataclass
class GameState:
    """
    One match: seats, piles, turn pointer and pending interaction.

    Seat order is the insertion order of ``players``.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    game_code: str = ""
    status: GameStatus = GameStatus.WAITING
    host_id: Optional[str] = None

    players: Dict[str, Player] = field(default_factory=dict)

    # Turn
    current_turn_player_id: Optional[str] = None
    turn_phase: TurnPhase = TurnPhase.DRAW
    cards_drawn_this_turn: int = 0
    cards_played_this_turn: int = 0

    # Piles
    draw_pile: List[str] = field(default_factory=list)
    discard_pile: List[str] = field(default_factory=list)

    # Interactions
    pending_interaction: Optional[PendingInteraction] = None
    pending_debt_queue: List[DebtEntry] = field(default_factory=list)

    last_resolved_action: Optional[ActionRecord] = None
    version: int = 0

    @property
    def turn_order(self) -> List[str]:
        return list(self.players)

    @property
    def current_player(self) -> Optional[Player]:
        if self.current_turn_player_id is None:
            return None
        return self.players.get(self.current_turn_player_id)

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        if player_id is None:
            return None
        return self.players.get(player_id)

    def find_player_by_name(self, display_name: str) -> Optional[Player]:
        """Case-insensitive display name lookup."""
        wanted = display_name.strip().lower()
        for player in self.players.values():
            if player.display_name.strip().lower() == wanted:
                return player
        return None

    def copy(self) -> "GameState":
        """Deep copy; the resolver only ever mutates a copy."""
        return copy.deepcopy(self)

    def rekey_player(self, old_id: str, new_id: str) -> None:
        """
        Rebind a seat to a new player id without moving it.

        Every reference to the old id (host, turn pointer, pending
        interaction, debt queue, last action) follows.
        """
        if old_id == new_id:
            return
        if old_id not in self.players:
            raise KeyError(old_id)
        if new_id in self.players:
            raise ValueError(f"Player id {new_id} is already seated")

        def swap(value: Optional[str]) -> Optional[str]:
            return new_id if value == old_id else value

        self.players = {
            (new_id if pid == old_id else pid): player
            for pid, player in self.players.items()
        }
        self.players[new_id].id = new_id

        self.host_id = swap(self.host_id)
        self.current_turn_player_id = swap(self.current_turn_player_id)

        interaction = self.pending_interaction
        if interaction is not None:
            interaction.initiator_id = swap(interaction.initiator_id)
            interaction.target_id = swap(interaction.target_id)
            if isinstance(interaction, ConfirmAction):
                original = interaction.original_action
                original.acting_player_id = swap(original.acting_player_id)
                original.target_player_id = swap(original.target_player_id)

        for entry in self.pending_debt_queue:
            entry.creditor_id = swap(entry.creditor_id)
            entry.debtor_id = swap(entry.debtor_id)

        if self.last_resolved_action is not None:
            record = self.last_resolved_action
            record.player_id = swap(record.player_id)
            record.target_id = swap(record.target_id)

    def to_dict(self) -> dict:
        """Serialize the full state."""
        return {
            "id": self.id,
            "game_code": self.game_code,
            "status": self.status.value,
            "host_id": self.host_id,
            "players": [player.to_dict() for player in self.players.values()],
            "current_turn_player_id": self.current_turn_player_id,
            "turn_phase": self.turn_phase.value,
            "cards_drawn_this_turn": self.cards_drawn_this_turn,
            "cards_played_this_turn": self.cards_played_this_turn,
            "draw_pile": list(self.draw_pile),
            "discard_pile": list(self.discard_pile),
            "pending_interaction": (
                self.pending_interaction.to_dict() if self.pending_interaction else None
            ),
            "pending_debt_queue": [entry.to_dict() for entry in self.pending_debt_queue],
            "last_resolved_action": (
                self.last_resolved_action.to_dict() if self.last_resolved_action else None
            ),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameState":
        """Restore a state serialized with to_dict."""
        players = [Player.from_dict(p) for p in data.get("players", [])]
        last_action = data.get("last_resolved_action")
        return cls(
            id=data["id"],
            game_code=data.get("game_code", ""),
            status=GameStatus(data.get("status", GameStatus.WAITING.value)),
            host_id=data.get("host_id"),
            players={player.id: player for player in players},
            current_turn_player_id=data.get("current_turn_player_id"),
            turn_phase=TurnPhase(data.get("turn_phase", TurnPhase.DRAW.value)),
            cards_drawn_this_turn=data.get("cards_drawn_this_turn", 0),
            cards_played_this_turn=data.get("cards_played_this_turn", 0),
            draw_pile=list(data.get("draw_pile", [])),
            discard_pile=list(data.get("discard_pile", [])),
            pending_interaction=interaction_from_dict(data.get("pending_interaction")),
            pending_debt_queue=[
                DebtEntry.from_dict(entry) for entry in data.get("pending_debt_queue", [])
            ],
            last_resolved_action=ActionRecord.from_dict(last_action) if last_action else None,
            version=data.get("version", 0),
        )


# =========== Consistency Checks ===========

def check_invariants(state: GameState) -> None:
    """
    Verify the state is internally consistent.

    Raises:
        InvariantViolation: describing the first problem found
    """
    _check_card_conservation(state)

    for player in state.players.values():
        _check_player(player)

    if state.cards_played_this_turn > MAX_PLAYS_PER_TURN:
        raise InvariantViolation(
            f"{state.cards_played_this_turn} plays recorded this turn"
        )

    if state.status == GameStatus.PLAYING and state.current_turn_player_id not in state.players:
        raise InvariantViolation("Turn pointer does not name a seated player")

    interaction = state.pending_interaction
    if interaction is not None:
        for pid in (interaction.initiator_id, interaction.target_id):
            if pid not in state.players:
                raise InvariantViolation(f"Pending interaction names unknown player {pid}")
    elif state.pending_debt_queue:
        raise InvariantViolation("Debt queue is non-empty with no active interaction")


def _check_card_conservation(state: GameState) -> None:
    held: List[str] = list(state.draw_pile) + list(state.discard_pile)
    for player in state.players.values():
        held.extend(player.all_cards())

    counts = Counter(held)
    duplicated = sorted(card_id for card_id, n in counts.items() if n > 1)
    if duplicated:
        raise InvariantViolation(f"Cards held in more than one place: {duplicated}")

    unknown = sorted(card_id for card_id in counts if card_id not in CATALOG)
    if unknown:
        raise InvariantViolation(f"Unknown cards in play: {unknown}")

    missing = sorted(card_id for card_id in CATALOG if card_id not in counts)
    if missing:
        raise InvariantViolation(f"Cards missing from the game: {missing}")


def _check_player(player: Player) -> None:
    bank_value = sum(card_value(c) for c in player.bank)
    if player.bank_value != bank_value:
        raise InvariantViolation(
            f"{player.display_name} bank value {player.bank_value} != {bank_value}"
        )

    completed = len(player.complete_colors())
    if player.completed_sets != completed:
        raise InvariantViolation(
            f"{player.display_name} completed sets {player.completed_sets} != {completed}"
        )

    for color, cards in player.properties.items():
        if not cards:
            raise InvariantViolation(f"{player.display_name} has an empty {color.value} slot")
        for card_id in cards:
            card = CATALOG[card_id]
            if card.kind != CardKind.PROPERTY or color not in card.eligible_colors():
                raise InvariantViolation(f"{card_id} cannot sit in the {color.value} set")

    for color, improvement in player.improvements.items():
        if improvement.is_empty():
            raise InvariantViolation(f"{player.display_name} has an empty {color.value} improvement")
        if not player.is_set_complete(color):
            raise InvariantViolation(
                f"{player.display_name} has improvements on incomplete {color.value} set"
            )
        if len(improvement.houses) > MAX_HOUSES_PER_SET:
            raise InvariantViolation(f"Too many houses on {color.value}")
        if improvement.hotel and improvement.houses:
            raise InvariantViolation(f"Houses left alongside a hotel on {color.value}")
        if any(CATALOG[c].kind != CardKind.HOUSE for c in improvement.houses):
            raise InvariantViolation(f"Non-house card in {color.value} houses")
        if improvement.hotel and CATALOG[improvement.hotel].kind != CardKind.HOTEL:
            raise InvariantViolation(f"Non-hotel card as {color.value} hotel")
