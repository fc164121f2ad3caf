"""
Tests for attack cards and the accept / block / pay protocol.

Run with: python -m pytest tests/ -v
"""

import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from server.game_engine import Action, ActionResult, resolve
from server.game_engine.interactions import rent_amount
from server.game_engine.state import ConfirmAction, PayDebt
from shared.enums import ActionBehavior, DebtReason, PropertyColor
from tests.deal_builders import give, new_table


class TestSlyDeal(unittest.TestCase):

    def setUp(self):
        self.state = new_table()
        give(self.state, "alice", hand=["sly_deal_1", "sly_deal_2"])
        give(self.state, "bob", properties={"BROWN": ["prop_brown_1"]})

    def play(self, state=None, card_id="sly_deal_1", color="BROWN"):
        return resolve(state or self.state, Action.play_action("alice", card_id, "bob", color))

    def test_play_opens_confirm_action(self):
        resolution = self.play()

        self.assertTrue(resolution.accepted)
        state = resolution.state
        interaction = state.pending_interaction
        self.assertIsInstance(interaction, ConfirmAction)
        self.assertEqual(interaction.attack_kind, ActionBehavior.SLY_DEAL)
        self.assertEqual(interaction.initiator_id, "alice")
        self.assertEqual(interaction.target_id, "bob")
        self.assertTrue(interaction.blockable)
        self.assertIn("Brown", interaction.description)

        self.assertIn("sly_deal_1", state.discard_pile)
        self.assertEqual(state.cards_played_this_turn, 1)
        self.assertEqual(state.players["bob"].properties[PropertyColor.BROWN], ["prop_brown_1"])
        self.assertEqual(state.players["alice"].properties, {})
        self.assertEqual(resolution.events[-1].event_type, "action_pending")

    def test_accept_moves_property(self):
        pending = self.play().state
        resolution = resolve(pending, Action.accept("bob"))

        self.assertTrue(resolution.accepted)
        self.assertEqual(resolution.message, "Action accepted")
        state = resolution.state
        self.assertIsNone(state.pending_interaction)
        self.assertEqual(state.players["alice"].properties[PropertyColor.BROWN], ["prop_brown_1"])
        self.assertEqual(state.players["bob"].properties, {})
        self.assertEqual(state.last_resolved_action.kind, "SLY_DEAL_ACCEPTED")

    def test_target_may_respond_out_of_turn(self):
        pending = self.play().state
        self.assertEqual(pending.current_turn_player_id, "alice")

        self.assertTrue(resolve(pending, Action.accept("bob")).accepted)

    def test_only_target_responds(self):
        pending = self.play().state

        self.assertEqual(
            resolve(pending, Action.accept("alice")).result.result,
            ActionResult.NOT_INTERACTION_TARGET
        )

    def test_pending_interaction_blocks_action_cards(self):
        pending = self.play().state
        resolution = self.play(pending, card_id="sly_deal_2")

        self.assertEqual(resolution.result.result, ActionResult.INTERACTION_PENDING)

    def test_attack_without_effect_is_spent(self):
        resolution = self.play(color="GREEN")

        self.assertTrue(resolution.accepted)
        self.assertEqual(resolution.message, "Sly Deal had no effect")
        state = resolution.state
        self.assertIsNone(state.pending_interaction)
        self.assertIn("sly_deal_1", state.discard_pile)
        self.assertEqual(state.cards_played_this_turn, 1)
        self.assertEqual(resolution.events[-1].event_type, "action_fizzled")

    def test_target_must_be_another_player(self):
        for target in (None, "alice", "nobody", ["bob"]):
            with self.subTest(target=target):
                resolution = resolve(
                    self.state, Action.play_action("alice", "sly_deal_1", target, "BROWN")
                )
                self.assertEqual(resolution.result.result, ActionResult.INVALID_TARGET)
                self.assertIs(resolution.state, self.state)

    def test_color_is_required(self):
        resolution = self.play(color=None)

        self.assertEqual(resolution.result.result, ActionResult.INVALID_COLOR)

    def test_accept_with_nothing_pending(self):
        resolution = resolve(self.state, Action.accept("bob"))

        self.assertEqual(resolution.result.result, ActionResult.NO_PENDING_INTERACTION)


class TestJustSayNo(unittest.TestCase):

    def setUp(self):
        state = new_table()
        give(state, "alice", hand=["sly_deal_1"])
        give(state, "bob", hand=["just_say_no_1", "money_1m_1"], properties={"BROWN": ["prop_brown_1"]})
        self.pending = resolve(state, Action.play_action("alice", "sly_deal_1", "bob", "BROWN")).state

    def test_block_cancels_attack(self):
        resolution = resolve(self.pending, Action.say_no("bob", "just_say_no_1"))

        self.assertTrue(resolution.accepted)
        self.assertEqual(resolution.message, "Action blocked")
        state = resolution.state
        self.assertIsNone(state.pending_interaction)
        self.assertIn("just_say_no_1", state.discard_pile)
        self.assertNotIn("just_say_no_1", state.players["bob"].hand)
        self.assertEqual(state.players["bob"].properties[PropertyColor.BROWN], ["prop_brown_1"])
        self.assertEqual(state.last_resolved_action.kind, "JUST_SAY_NO")
        self.assertEqual(state.last_resolved_action.target_id, "alice")

    def test_block_needs_the_counter_card(self):
        resolution = resolve(self.pending, Action.say_no("bob", "money_1m_1"))
        self.assertEqual(resolution.result.result, ActionResult.WRONG_CARD_KIND)

        resolution = resolve(self.pending, Action.say_no("bob", "just_say_no_2"))
        self.assertEqual(resolution.result.result, ActionResult.CARD_NOT_IN_HAND)

    def test_debts_cannot_be_blocked(self):
        state = new_table()
        give(state, "alice", hand=["debt_collector_1"])
        give(state, "bob", hand=["just_say_no_1"])
        state = resolve(state, Action.play_action("alice", "debt_collector_1", "bob")).state
        state = resolve(state, Action.accept("bob")).state
        self.assertIsInstance(state.pending_interaction, PayDebt)

        resolution = resolve(state, Action.say_no("bob", "just_say_no_1"))

        self.assertEqual(resolution.result.result, ActionResult.NO_PENDING_INTERACTION)


class TestDebtCollector(unittest.TestCase):

    def setUp(self):
        self.state = new_table()
        give(self.state, "alice", hand=["debt_collector_1"])

    def attack(self):
        state = resolve(self.state, Action.play_action("alice", "debt_collector_1", "bob")).state
        return resolve(state, Action.accept("bob"))

    def test_bank_covers_the_debt(self):
        give(self.state, "bob", bank=["money_5m_1", "money_1m_1"])
        resolution = self.attack()

        state = resolution.state
        self.assertIsNone(state.pending_interaction)
        self.assertEqual(state.players["alice"].bank, ["money_5m_1"])
        self.assertEqual(state.players["bob"].bank, ["money_1m_1"])

    def test_shortfall_becomes_pay_debt(self):
        give(self.state, "bob", bank=["money_1m_1", "money_2m_1"], properties={"RED": ["prop_red_1"]})
        resolution = self.attack()

        state = resolution.state
        debt = state.pending_interaction
        self.assertIsInstance(debt, PayDebt)
        self.assertEqual(debt.debtor_id, "bob")
        self.assertEqual(debt.creditor_id, "alice")
        self.assertEqual(debt.amount, 2)
        self.assertEqual(debt.reason, DebtReason.DEBT_COLLECTOR)
        self.assertEqual(state.players["alice"].bank_value, 3)
        self.assertEqual(state.players["bob"].bank, [])
        self.assertEqual(resolution.events[-1].event_type, "debt_owed")

        paid = resolve(state, Action.pay_debt("bob", ["prop_red_1"]))

        self.assertTrue(paid.accepted)
        self.assertEqual(paid.message, "Paid 3M")
        self.assertIsNone(paid.state.pending_interaction)
        self.assertEqual(paid.state.players["alice"].properties[PropertyColor.RED], ["prop_red_1"])
        self.assertEqual(paid.state.last_resolved_action.kind, "DEBT_PAID_DEBT_COLLECTOR")


class TestBirthday(unittest.TestCase):

    def setUp(self):
        self.state = new_table("Alice", "Bob", "Carol", "Dave")
        give(self.state, "alice", hand=["birthday_1"])
        give(self.state, "bob", bank=["money_1m_1"])
        give(self.state, "carol", properties={"GREEN": ["prop_green_1"]})
        give(self.state, "dave", bank=["money_2m_1"])

    def test_shortfalls_are_queued_in_seat_order(self):
        resolution = resolve(self.state, Action.play_action("alice", "birthday_1"))

        self.assertTrue(resolution.accepted)
        state = resolution.state
        self.assertEqual(state.players["alice"].bank_value, 3)
        self.assertEqual(state.players["dave"].bank, [])

        active = state.pending_interaction
        self.assertIsInstance(active, PayDebt)
        self.assertEqual((active.debtor_id, active.amount), ("bob", 1))
        self.assertEqual(active.reason, DebtReason.BIRTHDAY)
        self.assertEqual(
            [(entry.debtor_id, entry.amount) for entry in state.pending_debt_queue],
            [("carol", 2)]
        )

    def test_queue_advances_after_each_payment(self):
        state = resolve(self.state, Action.play_action("alice", "birthday_1")).state

        self.assertEqual(
            resolve(state, Action.pay_debt("carol", ["prop_green_1"])).result.result,
            ActionResult.NOT_INTERACTION_TARGET
        )

        # bob has nothing left to pay with; the rest is forgiven
        state = resolve(state, Action.pay_debt("bob", [])).state
        self.assertEqual(state.pending_interaction.debtor_id, "carol")
        self.assertEqual(state.pending_debt_queue, [])

        state = resolve(state, Action.pay_debt("carol", ["prop_green_1"])).state
        self.assertIsNone(state.pending_interaction)
        self.assertEqual(state.players["alice"].properties[PropertyColor.GREEN], ["prop_green_1"])

    def test_no_interaction_when_everyone_pays(self):
        state = new_table()
        give(state, "alice", hand=["birthday_1"])
        give(state, "bob", bank=["money_2m_1"])

        resolution = resolve(state, Action.play_action("alice", "birthday_1"))

        self.assertIsNone(resolution.state.pending_interaction)
        self.assertEqual(resolution.state.players["alice"].bank, ["money_2m_1"])


class TestDealBreaker(unittest.TestCase):

    def setUp(self):
        self.state = new_table()
        give(self.state, "alice", hand=["deal_breaker_1"])
        give(
            self.state, "bob",
            properties={"BROWN": ["prop_brown_1", "prop_brown_2"], "GREEN": ["prop_green_1"]},
            improvements={"BROWN": (["house_1"], None)},
        )

    def test_set_and_improvements_move(self):
        state = resolve(self.state, Action.play_action("alice", "deal_breaker_1", "bob", "BROWN")).state
        state = resolve(state, Action.accept("bob")).state

        alice = state.players["alice"]
        bob = state.players["bob"]
        self.assertEqual(alice.properties[PropertyColor.BROWN], ["prop_brown_1", "prop_brown_2"])
        self.assertEqual(alice.improvements[PropertyColor.BROWN].houses, ["house_1"])
        self.assertEqual(alice.completed_sets, 1)
        self.assertNotIn(PropertyColor.BROWN, bob.properties)
        self.assertEqual(bob.improvements, {})
        self.assertEqual(bob.completed_sets, 0)

    def test_incomplete_set_cannot_be_taken(self):
        resolution = resolve(self.state, Action.play_action("alice", "deal_breaker_1", "bob", "GREEN"))

        self.assertEqual(resolution.message, "Deal Breaker had no effect")
        self.assertIsNone(resolution.state.pending_interaction)


class TestBrokenSets(unittest.TestCase):

    def test_stealing_from_a_complete_set_discards_improvements(self):
        state = new_table()
        give(state, "alice", hand=["sly_deal_1"])
        give(
            state, "bob",
            properties={"BROWN": ["prop_brown_1", "prop_brown_2"]},
            improvements={"BROWN": (["house_1"], None)},
        )

        state = resolve(state, Action.play_action("alice", "sly_deal_1", "bob", "BROWN")).state
        state = resolve(state, Action.accept("bob")).state

        self.assertEqual(state.players["bob"].improvements, {})
        self.assertIn("house_1", state.discard_pile)
        self.assertEqual(state.players["bob"].completed_sets, 0)


class TestForcedDeal(unittest.TestCase):

    def setUp(self):
        self.state = new_table()
        give(self.state, "alice", hand=["forced_deal_1"], properties={"RED": ["prop_red_1"]})
        give(self.state, "bob", properties={"GREEN": ["prop_green_1"]})

    def test_properties_swap_on_accept(self):
        action = Action.forced_deal("alice", "forced_deal_1", "prop_red_1", "prop_green_1", "bob")
        state = resolve(self.state, action).state
        self.assertIn("Red", state.pending_interaction.description)

        state = resolve(state, Action.accept("bob")).state

        self.assertEqual(state.players["alice"].properties, {PropertyColor.GREEN: ["prop_green_1"]})
        self.assertEqual(state.players["bob"].properties, {PropertyColor.RED: ["prop_red_1"]})

    def test_both_cards_are_required(self):
        resolution = resolve(self.state, Action.play_action("alice", "forced_deal_1", "bob"))

        self.assertEqual(resolution.result.result, ActionResult.NO_CARDS)

    def test_cards_must_belong_to_their_owners(self):
        action = Action.forced_deal("alice", "forced_deal_1", "prop_green_1", "prop_red_1", "bob")
        resolution = resolve(self.state, action)

        self.assertEqual(resolution.message, "Forced Deal had no effect")


class TestRent(unittest.TestCase):

    def setUp(self):
        self.state = new_table()
        give(
            self.state, "alice",
            hand=["rent_red_yellow", "wild_rent_1"],
            properties={"RED": ["prop_red_1", "prop_red_2"]},
        )
        give(self.state, "bob", bank=["money_5m_1", "money_1m_1"])

    def test_rent_amount(self):
        alice = self.state.players["alice"]
        self.assertEqual(rent_amount(alice, PropertyColor.RED), 3)
        self.assertEqual(rent_amount(alice, PropertyColor.YELLOW), 0)

    def test_rent_is_collected_from_bank(self):
        pending = resolve(self.state, Action.play_action("alice", "rent_red_yellow", "bob", "RED")).state
        self.assertIn("3M", pending.pending_interaction.description)

        state = resolve(pending, Action.accept("bob")).state

        self.assertIsNone(state.pending_interaction)
        self.assertEqual(state.players["alice"].bank, ["money_5m_1"])
        self.assertEqual(state.players["bob"].bank, ["money_1m_1"])

    def test_wild_rent_any_color(self):
        resolution = resolve(self.state, Action.play_action("alice", "wild_rent_1", "bob", "RED"))

        self.assertIsInstance(resolution.state.pending_interaction, ConfirmAction)

    def test_rent_color_must_be_on_card_and_owned(self):
        for card_id, color in (("rent_red_yellow", "GREEN"), ("rent_red_yellow", "YELLOW")):
            with self.subTest(card_id=card_id, color=color):
                resolution = resolve(self.state, Action.play_action("alice", card_id, "bob", color))
                self.assertTrue(resolution.accepted)
                self.assertIsNone(resolution.state.pending_interaction)
                self.assertEqual(resolution.events[-1].event_type, "action_fizzled")


if __name__ == "__main__":
    unittest.main()
