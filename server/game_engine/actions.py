"""
Action requests and attack effects.

An Action is what a player submits. An attack effect is the typed
description of what an accepted attack card will do, built from the
action that played it.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from shared.enums import ActionKind, PropertyColor


@dataclass
class Action:
    """A request from a player to change the game state."""

    kind: ActionKind
    acting_player_id: str
    card_ids: List[str] = field(default_factory=list)
    target_player_id: Optional[str] = None
    property_color: Optional[str] = None

    @property
    def card_id(self) -> Optional[str]:
        """The primary card of the action, if any."""
        return self.card_ids[0] if self.card_ids else None

    @classmethod
    def draw(cls, player_id: str) -> "Action":
        return cls(kind=ActionKind.DRAW_CARDS, acting_player_id=player_id)

    @classmethod
    def play_money(cls, player_id: str, card_id: str) -> "Action":
        return cls(kind=ActionKind.PLAY_MONEY, acting_player_id=player_id, card_ids=[card_id])

    @classmethod
    def play_property(cls, player_id: str, card_id: str, color: Optional[str] = None) -> "Action":
        return cls(
            kind=ActionKind.PLAY_PROPERTY,
            acting_player_id=player_id,
            card_ids=[card_id],
            property_color=color,
        )

    @classmethod
    def play_improvement(cls, player_id: str, card_id: str, color: str) -> "Action":
        return cls(
            kind=ActionKind.PLAY_IMPROVEMENT,
            acting_player_id=player_id,
            card_ids=[card_id],
            property_color=color,
        )

    @classmethod
    def play_action(
        cls,
        player_id: str,
        card_id: str,
        target_player_id: Optional[str] = None,
        color: Optional[str] = None,
    ) -> "Action":
        return cls(
            kind=ActionKind.PLAY_ACTION,
            acting_player_id=player_id,
            card_ids=[card_id],
            target_player_id=target_player_id,
            property_color=color,
        )

    @classmethod
    def forced_deal(
        cls,
        player_id: str,
        card_id: str,
        offered_property_id: str,
        requested_property_id: str,
        target_player_id: str,
    ) -> "Action":
        """Card ids are [forced deal card, own property, target's property]."""
        return cls(
            kind=ActionKind.PLAY_ACTION,
            acting_player_id=player_id,
            card_ids=[card_id, offered_property_id, requested_property_id],
            target_player_id=target_player_id,
        )

    @classmethod
    def discard(cls, player_id: str, card_ids: List[str]) -> "Action":
        return cls(kind=ActionKind.DISCARD_CARDS, acting_player_id=player_id, card_ids=list(card_ids))

    @classmethod
    def end_turn(cls, player_id: str) -> "Action":
        return cls(kind=ActionKind.END_TURN, acting_player_id=player_id)

    @classmethod
    def say_no(cls, player_id: str, card_id: str) -> "Action":
        return cls(kind=ActionKind.SAY_NO, acting_player_id=player_id, card_ids=[card_id])

    @classmethod
    def accept(cls, player_id: str) -> "Action":
        return cls(kind=ActionKind.ACCEPT_ACTION, acting_player_id=player_id)

    @classmethod
    def pay_debt(cls, player_id: str, card_ids: List[str]) -> "Action":
        return cls(kind=ActionKind.PAY_DEBT, acting_player_id=player_id, card_ids=list(card_ids))

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "acting_player_id": self.acting_player_id,
            "card_ids": list(self.card_ids),
            "target_player_id": self.target_player_id,
            "property_color": self.property_color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Action":
        """
        Create an action from a dictionary.

        Raises:
            ValueError: if the kind is unknown
            KeyError: if a required field is missing
        """
        return cls(
            kind=ActionKind(data["kind"]),
            acting_player_id=data["acting_player_id"],
            card_ids=list(data.get("card_ids") or []),
            target_player_id=data.get("target_player_id"),
            property_color=data.get("property_color"),
        )


# =========== Attack Effects ===========

@dataclass(frozen=True)
class DebtCollection:
    """Target pays a fixed amount."""
    amount: int


@dataclass(frozen=True)
class RentCharge:
    """Target pays rent for the attacker's properties of one color."""
    color: PropertyColor


@dataclass(frozen=True)
class PropertyTheft:
    """Attacker takes one of the target's properties of a color."""
    color: PropertyColor


@dataclass(frozen=True)
class SetTheft:
    """Attacker takes the target's complete set of a color, improvements included."""
    color: PropertyColor


@dataclass(frozen=True)
class PropertySwap:
    """Attacker and target exchange one property each."""
    offered_card_id: str
    requested_card_id: str


AttackEffect = Union[DebtCollection, RentCharge, PropertyTheft, SetTheft, PropertySwap]
