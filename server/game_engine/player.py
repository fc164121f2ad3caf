"""
Player state management.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import uuid

from shared.enums import PropertyColor

from .cards import card_value, color_info


@dataclass
class Improvement:
    """Houses and hotel placed on one complete color set."""

    houses: List[str] = field(default_factory=list)
    hotel: Optional[str] = None

    def cards(self) -> List[str]:
        return self.houses + ([self.hotel] if self.hotel else [])

    def is_empty(self) -> bool:
        return not self.houses and self.hotel is None

    def to_dict(self) -> dict:
        return {"houses": list(self.houses), "hotel": self.hotel}

    @classmethod
    def from_dict(cls, data: dict) -> "Improvement":
        return cls(houses=list(data.get("houses", [])), hotel=data.get("hotel"))


@dataclass
class Player:
    """Represents a seated player."""

    display_name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    hand: List[str] = field(default_factory=list)
    bank: List[str] = field(default_factory=list)
    properties: Dict[PropertyColor, List[str]] = field(default_factory=dict)
    improvements: Dict[PropertyColor, Improvement] = field(default_factory=dict)
    is_host: bool = False

    # Derived, always recomputed from the fields above
    bank_value: int = 0
    completed_sets: int = 0

    def recompute(self) -> None:
        """
        Recompute bank value and completed sets from scratch.

        Called after every structural change; never patched incrementally.
        """
        self.bank_value = sum(card_value(c) for c in self.bank)
        self.completed_sets = len(self.complete_colors())

    def is_set_complete(self, color: PropertyColor) -> bool:
        """A set is complete when it holds exactly set_size cards."""
        return len(self.properties.get(color, [])) == color_info(color).set_size

    def complete_colors(self) -> List[PropertyColor]:
        return [color for color in self.properties if self.is_set_complete(color)]

    def property_color_of(self, card_id: str) -> Optional[PropertyColor]:
        """Find which color slot holds a property card, if any."""
        for color, cards in self.properties.items():
            if card_id in cards:
                return color
        return None

    # =========== Card Movement ===========

    def take_from_hand(self, card_id: str) -> bool:
        """
        Remove one copy of a card from the hand.

        Returns:
            True if the card was in hand, False otherwise
        """
        if card_id in self.hand:
            self.hand.remove(card_id)
            return True
        return False

    def take_from_bank(self, card_id: str) -> bool:
        if card_id in self.bank:
            self.bank.remove(card_id)
            return True
        return False

    def take_property(self, card_id: str) -> Optional[PropertyColor]:
        """
        Remove a property card from whichever color slot holds it.

        Empty slots are dropped.

        Returns:
            The color it was taken from, or None if not owned
        """
        color = self.property_color_of(card_id)
        if color is None:
            return None
        self.properties[color].remove(card_id)
        if not self.properties[color]:
            del self.properties[color]
        return color

    def add_property(self, color: PropertyColor, card_id: str) -> None:
        self.properties.setdefault(color, []).append(card_id)

    def all_cards(self) -> List[str]:
        """Every card id this player holds, in any zone."""
        held = list(self.hand) + list(self.bank)
        for cards in self.properties.values():
            held.extend(cards)
        for improvement in self.improvements.values():
            held.extend(improvement.cards())
        return held

    def to_dict(self) -> dict:
        """Convert player to dictionary for serialization."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "hand": list(self.hand),
            "bank": list(self.bank),
            "properties": {color.value: list(cards) for color, cards in self.properties.items()},
            "improvements": {
                color.value: improvement.to_dict()
                for color, improvement in self.improvements.items()
            },
            "bank_value": self.bank_value,
            "completed_sets": self.completed_sets,
            "is_host": self.is_host,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        """Create player from dictionary."""
        player = cls(
            display_name=data["display_name"],
            id=data["id"],
            hand=list(data.get("hand", [])),
            bank=list(data.get("bank", [])),
            properties={
                PropertyColor(color): list(cards)
                for color, cards in data.get("properties", {}).items()
            },
            improvements={
                PropertyColor(color): Improvement.from_dict(improvement)
                for color, improvement in data.get("improvements", {}).items()
            },
            is_host=data.get("is_host", False),
        )
        player.recompute()
        return player
