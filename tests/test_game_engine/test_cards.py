"""
Tests for the card catalog.

Run with: python -m pytest tests/ -v
"""

import random
import sys
import unittest
from collections import Counter
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from server.game_engine.cards import (
    ALL_CARDS, CATALOG, COLOR_INFO, card_value, get_card, parse_color, shuffled_deck
)
from shared.enums import ActionBehavior, CardKind, PropertyColor


class TestCatalog(unittest.TestCase):

    def test_catalog_size_and_unique_ids(self):
        self.assertEqual(len(ALL_CARDS), 94)
        self.assertEqual(len(CATALOG), 94)

    def test_kind_counts(self):
        kinds = Counter(card.kind for card in ALL_CARDS)
        self.assertEqual(kinds[CardKind.PROPERTY], 33)
        self.assertEqual(kinds[CardKind.MONEY], 20)
        self.assertEqual(kinds[CardKind.ACTION], 27)
        self.assertEqual(kinds[CardKind.RENT], 8)
        self.assertEqual(kinds[CardKind.HOUSE], 3)
        self.assertEqual(kinds[CardKind.HOTEL], 3)

    def test_action_card_counts(self):
        behaviors = Counter(card.behavior for card in ALL_CARDS if card.kind == CardKind.ACTION)
        self.assertEqual(behaviors[ActionBehavior.PASS_GO], 10)
        self.assertEqual(behaviors[ActionBehavior.DEAL_BREAKER], 2)
        self.assertEqual(behaviors[ActionBehavior.JUST_SAY_NO], 3)

    def test_property_has_color_or_options(self):
        for card in ALL_CARDS:
            if card.kind == CardKind.PROPERTY:
                self.assertTrue(card.eligible_colors(), card.id)
                self.assertFalse(card.color and card.color_options, card.id)

    def test_wildcard_colors(self):
        wildcard = get_card("wildcard_1")
        self.assertTrue(wildcard.is_wildcard)
        self.assertEqual(wildcard.eligible_colors(), (PropertyColor.BROWN, PropertyColor.LIGHT_BLUE))
        self.assertFalse(get_card("prop_brown_1").is_wildcard)

    def test_rent_ladders_match_set_sizes(self):
        for info in COLOR_INFO.values():
            self.assertEqual(len(info.rent_by_set_count), info.set_size, info.color)

    def test_rent_for_caps_at_set_size(self):
        brown = COLOR_INFO[PropertyColor.BROWN]
        self.assertEqual(brown.rent_for(0), 0)
        self.assertEqual(brown.rent_for(1), 1)
        self.assertEqual(brown.rent_for(2), 2)
        self.assertEqual(brown.rent_for(3), 2)

    def test_improvement_family(self):
        self.assertEqual(get_card("house_1").improvement_family, "HOUSE")
        self.assertEqual(get_card("hotel_2").improvement_family, "HOTEL")
        self.assertIsNone(get_card("money_1m_1").improvement_family)

    def test_card_value_and_lookup(self):
        self.assertEqual(card_value("money_10m_1"), 10)
        self.assertEqual(card_value("nope"), 0)
        self.assertIsNone(get_card("nope"))

    def test_parse_color(self):
        self.assertEqual(parse_color("RED"), PropertyColor.RED)
        self.assertIsNone(parse_color("PURPLE"))
        self.assertIsNone(parse_color(None))

    def test_shuffled_deck_is_a_permutation(self):
        deck = shuffled_deck(random.Random(7))
        self.assertEqual(sorted(deck), sorted(CATALOG))
        self.assertEqual(deck, shuffled_deck(random.Random(7)))

    def test_to_dict(self):
        data = get_card("rent_red_yellow").to_dict()
        self.assertEqual(data["kind"], "RENT")
        self.assertEqual(data["color_options"], ["RED", "YELLOW"])
        self.assertEqual(data["behavior"], "RENT")


if __name__ == "__main__":
    unittest.main()
