"""
Card catalog: static reference data for every card in the deck.
"""
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from shared.constants import (
    PROPERTY_COLORS, PROPERTY_CARDS, WILDCARD_CARDS, MONEY_DENOMINATIONS,
    RENT_CARDS, RENT_CARD_VALUE, WILD_RENT_COUNT, WILD_RENT_VALUE
)
from shared.enums import CardKind, ActionBehavior, PropertyColor


@dataclass(frozen=True)
class PropertyColorInfo:
    """Set size and rent ladder for one property color."""
    color: PropertyColor
    display_name: str
    set_size: int
    rent_by_set_count: Tuple[int, ...]

    def rent_for(self, card_count: int) -> int:
        """Base rent charged when the owner holds card_count cards of this color."""
        if card_count <= 0:
            return 0
        return self.rent_by_set_count[min(card_count, self.set_size) - 1]


@dataclass(frozen=True)
class Card:
    """A single card in the deck."""

    id: str
    kind: CardKind
    name: str
    value: int
    color: Optional[PropertyColor] = None
    color_options: Tuple[PropertyColor, ...] = ()
    behavior: Optional[ActionBehavior] = None
    description: str = ""

    @property
    def is_wildcard(self) -> bool:
        return self.kind == CardKind.PROPERTY and bool(self.color_options)

    @property
    def improvement_family(self) -> Optional[str]:
        if self.kind in (CardKind.HOUSE, CardKind.HOTEL):
            return self.kind.value
        return None

    def eligible_colors(self) -> Tuple[PropertyColor, ...]:
        """Colors this card may be placed in (properties) or charge for (rent)."""
        if self.color is not None:
            return (self.color,)
        return self.color_options

    def to_dict(self) -> dict:
        """Convert card to dictionary."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "value": self.value,
            "color": self.color.value if self.color else None,
            "color_options": [c.value for c in self.color_options],
            "behavior": self.behavior.value if self.behavior else None,
            "description": self.description,
        }


COLOR_INFO: Dict[PropertyColor, PropertyColorInfo] = {
    PropertyColor(color): PropertyColorInfo(
        color=PropertyColor(color),
        display_name=name,
        set_size=set_size,
        rent_by_set_count=tuple(rents),
    )
    for color, (name, set_size, rents) in PROPERTY_COLORS.items()
}


# Format: (id prefix, name, count, value, behavior, description)
_ACTION_CARDS = [
    ("deal_breaker", "Deal Breaker", 2, 5, ActionBehavior.DEAL_BREAKER,
     "Steal a complete set of properties from any player."),
    ("sly_deal", "Sly Deal", 3, 3, ActionBehavior.SLY_DEAL,
     "Steal a property from the player of your choice."),
    ("forced_deal", "Forced Deal", 3, 3, ActionBehavior.FORCED_DEAL,
     "Swap any property with another player."),
    ("debt_collector", "Debt Collector", 3, 3, ActionBehavior.DEBT_COLLECTOR,
     "Force any player to pay you 5M."),
    ("birthday", "It's My Birthday", 3, 2, ActionBehavior.BIRTHDAY,
     "All players give you 2M as a gift."),
    ("pass_go", "Pass Go", 10, 1, ActionBehavior.PASS_GO,
     "Draw 2 extra cards."),
    ("just_say_no", "Just Say No!", 3, 4, ActionBehavior.JUST_SAY_NO,
     "Use any time when an action card is played against you."),
]

_IMPROVEMENT_CARDS = [
    ("house", "House", CardKind.HOUSE, 3, "Add onto any full set you own to add 3M to the rent value."),
    ("hotel", "Hotel", CardKind.HOTEL, 4, "Add onto any full set you own that has a house to raise the rent bonus to 5M."),
]


def _build_catalog() -> List[Card]:
    cards: List[Card] = []

    for card_id, name, color, value in PROPERTY_CARDS:
        cards.append(Card(card_id, CardKind.PROPERTY, name, value, color=PropertyColor(color)))

    for card_id, colors, value in WILDCARD_CARDS:
        cards.append(Card(
            card_id, CardKind.PROPERTY, "Property Wildcard", value,
            color_options=tuple(PropertyColor(c) for c in colors),
            description="Use as part of either color set.",
        ))

    for value, count in MONEY_DENOMINATIONS.items():
        for i in range(1, count + 1):
            cards.append(Card(f"money_{value}m_{i}", CardKind.MONEY, f"{value}M", value))

    for prefix, name, count, value, behavior, description in _ACTION_CARDS:
        for i in range(1, count + 1):
            cards.append(Card(
                f"{prefix}_{i}", CardKind.ACTION, name, value,
                behavior=behavior, description=description,
            ))

    for card_id, colors in RENT_CARDS:
        options = tuple(PropertyColor(c) for c in colors)
        cards.append(Card(
            card_id, CardKind.RENT, "Rent", RENT_CARD_VALUE,
            color_options=options, behavior=ActionBehavior.RENT,
            description="Charge one player rent for "
            + " or ".join(COLOR_INFO[c].display_name for c in options) + " properties.",
        ))

    for i in range(1, WILD_RENT_COUNT + 1):
        cards.append(Card(
            f"wild_rent_{i}", CardKind.RENT, "Wild Rent", WILD_RENT_VALUE,
            color_options=tuple(PropertyColor), behavior=ActionBehavior.WILD_RENT,
            description="Charge one player rent for properties of any color.",
        ))

    for prefix, name, kind, value, description in _IMPROVEMENT_CARDS:
        for i in range(1, 4):
            cards.append(Card(f"{prefix}_{i}", kind, name, value, description=description))

    return cards


ALL_CARDS: List[Card] = _build_catalog()
CATALOG: Dict[str, Card] = {card.id: card for card in ALL_CARDS}


def get_card(card_id: str) -> Optional[Card]:
    """Look up a card by id."""
    return CATALOG.get(card_id)


def card_value(card_id: str) -> int:
    """Face value of a card id. Unknown ids are worth nothing."""
    card = CATALOG.get(card_id)
    return card.value if card else 0


def color_info(color: PropertyColor) -> PropertyColorInfo:
    return COLOR_INFO[color]


def parse_color(value) -> Optional[PropertyColor]:
    """Parse a color name from a request. Returns None if it isn't a known color."""
    if not isinstance(value, str):
        return None
    try:
        return PropertyColor(value)
    except ValueError:
        return None


def shuffled_deck(rng: Optional[random.Random] = None) -> List[str]:
    """Return every card id in the catalog in shuffled order."""
    deck = [card.id for card in ALL_CARDS]
    (rng or random).shuffle(deck)
    return deck
