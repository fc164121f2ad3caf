"""
Tests for game setup, seating, rejoining, views and serialization.

Run with: python -m pytest tests/ -v
"""

import random
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from server.game_engine import (
    Action, GameState, InvariantViolation, create_game, get_state_for_player,
    join_game, resolve, start_game, winner
)
from server.game_engine.game import add_player, rejoin_player
from server.game_engine.state import ConfirmAction, DebtEntry, check_invariants
from shared.constants import STARTING_HAND_SIZE
from shared.enums import DebtReason, GameStatus, TurnPhase
from tests.deal_builders import give, new_table


class TestCreateAndJoin(unittest.TestCase):

    def setUp(self):
        self.state = create_game("host-id", "Alice", rng=random.Random(3))

    def test_create_game(self):
        self.assertEqual(self.state.status, GameStatus.WAITING)
        self.assertEqual(self.state.host_id, "host-id")
        self.assertEqual(len(self.state.game_code), 6)

        host = self.state.players["host-id"]
        self.assertTrue(host.is_host)
        self.assertEqual(len(host.hand), STARTING_HAND_SIZE)
        self.assertEqual(len(self.state.draw_pile), 94 - STARTING_HAND_SIZE)
        check_invariants(self.state)

    def test_seeded_games_are_reproducible(self):
        again = create_game("host-id", "Alice", rng=random.Random(3))

        self.assertEqual(again.game_code, self.state.game_code)
        self.assertEqual(again.draw_pile, self.state.draw_pile)

    def test_join_deals_a_hand(self):
        success, message, state, rejoined = join_game(self.state, "bob-id", "Bob")

        self.assertTrue(success)
        self.assertFalse(rejoined)
        self.assertEqual(message, "Bob joined the game")
        self.assertEqual(list(state.players), ["host-id", "bob-id"])
        self.assertEqual(len(state.players["bob-id"].hand), STARTING_HAND_SIZE)
        self.assertEqual(len(self.state.players), 1)

    def test_table_limit(self):
        state = self.state
        for i in range(4):
            success, _, state = add_player(state, f"p{i}", f"Player {i}")
            self.assertTrue(success)

        success, message, same = add_player(state, "late", "Late")
        self.assertFalse(success)
        self.assertIn("full", message)
        self.assertIs(same, state)

    def test_blank_name_is_rejected(self):
        success, _, _ = add_player(self.state, "bob-id", "   ")
        self.assertFalse(success)

    def test_name_taken(self):
        success, message, _ = add_player(self.state, "other", "alice")
        self.assertFalse(success)
        self.assertIn("already taken", message)


class TestStartGame(unittest.TestCase):

    def setUp(self):
        self.state = create_game("host-id", "Alice")

    def test_needs_two_players(self):
        success, message, _ = start_game(self.state, "host-id")

        self.assertFalse(success)
        self.assertEqual(message, "Need at least 2 players to start")

    def test_host_only(self):
        _, _, state, _ = join_game(self.state, "bob-id", "Bob")
        success, message, _ = start_game(state, "bob-id")

        self.assertFalse(success)
        self.assertEqual(message, "Only the host can start the game")

    def test_first_seat_draws_first(self):
        _, _, state, _ = join_game(self.state, "bob-id", "Bob")
        success, _, started = start_game(state, "host-id")

        self.assertTrue(success)
        self.assertEqual(started.status, GameStatus.PLAYING)
        self.assertEqual(started.current_turn_player_id, "host-id")
        self.assertEqual(started.turn_phase, TurnPhase.DRAW)
        self.assertEqual(state.status, GameStatus.WAITING)

        success, message, _ = start_game(started, "host-id")
        self.assertFalse(success)
        self.assertEqual(message, "Game has already started")

    def test_no_new_seats_after_start(self):
        _, _, state, _ = join_game(self.state, "bob-id", "Bob")
        _, _, started = start_game(state, "host-id")

        success, message, _, _ = join_game(started, "carol-id", "Carol")
        self.assertFalse(success)
        self.assertEqual(message, "Game has already started")


class TestRejoin(unittest.TestCase):

    def setUp(self):
        self.state = new_table("Alice", "Bob", "Carol")
        give(self.state, "alice", hand=["sly_deal_1", "money_1m_1"])
        give(self.state, "bob", properties={"BROWN": ["prop_brown_1"]})

    def test_rejoin_keeps_seat_and_turn(self):
        success, _, state, rejoined = join_game(self.state, "alice-2", "ALICE")

        self.assertTrue(success)
        self.assertTrue(rejoined)
        self.assertEqual(list(state.players), ["alice-2", "bob", "carol"])
        self.assertEqual(state.current_turn_player_id, "alice-2")
        self.assertEqual(state.host_id, "alice-2")
        self.assertEqual(state.players["alice-2"].hand, ["sly_deal_1", "money_1m_1"])
        self.assertEqual(state.players["alice-2"].display_name, "Alice")
        self.assertIn("alice", self.state.players)

        self.assertTrue(resolve(state, Action.play_money("alice-2", "money_1m_1")).accepted)

    def test_rejoin_follows_pending_interaction(self):
        pending = resolve(self.state, Action.play_action("alice", "sly_deal_1", "bob", "BROWN")).state
        pending.pending_debt_queue.append(
            DebtEntry(creditor_id="alice", debtor_id="bob", amount=1, reason=DebtReason.BIRTHDAY)
        )

        success, _, state = rejoin_player(pending, "Bob", "bob-2")

        self.assertTrue(success)
        interaction = state.pending_interaction
        self.assertEqual(interaction.target_id, "bob-2")
        self.assertEqual(interaction.original_action.target_player_id, "bob-2")
        self.assertEqual(state.pending_debt_queue[0].debtor_id, "bob-2")
        self.assertEqual(state.last_resolved_action.target_id, "bob-2")

    def test_unknown_name(self):
        success, _, state = rejoin_player(self.state, "Zed", "zed")

        self.assertFalse(success)
        self.assertIs(state, self.state)

    def test_identity_already_seated(self):
        success, message, _ = rejoin_player(self.state, "Alice", "bob")

        self.assertFalse(success)
        self.assertEqual(message, "That identity already holds another seat")


class TestViews(unittest.TestCase):

    def setUp(self):
        self.state = new_table()
        give(self.state, "alice", hand=["money_1m_1", "money_2m_1"])
        give(self.state, "bob", hand=["money_3m_1"])

    def test_other_hands_are_hidden(self):
        view = get_state_for_player(self.state, "alice")
        players = {p["id"]: p for p in view["players"]}

        self.assertEqual(players["alice"]["hand"], ["money_1m_1", "money_2m_1"])
        self.assertEqual(players["bob"]["hand"], [])
        self.assertEqual(players["bob"]["hand_count"], 1)
        self.assertNotIn("draw_pile", view)
        self.assertEqual(view["draw_pile_count"], len(self.state.draw_pile))
        self.assertEqual(view["viewer_id"], "alice")
        self.assertIsNone(view["winner_id"])

    def test_anonymous_view_hides_all_hands(self):
        view = get_state_for_player(self.state, None)

        self.assertTrue(all(p["hand"] == [] for p in view["players"]))

    def test_winner(self):
        give(
            self.state, "bob",
            properties={
                "BROWN": ["prop_brown_1", "prop_brown_2"],
                "DARK_BLUE": ["prop_darkblue_1", "prop_darkblue_2"],
                "UTILITY": ["prop_utility_1", "prop_utility_2"],
            },
        )

        self.assertEqual(winner(self.state).id, "bob")
        self.assertEqual(get_state_for_player(self.state, "alice")["winner_id"], "bob")
        self.assertEqual(self.state.status, GameStatus.PLAYING)


class TestSerialization(unittest.TestCase):

    def test_round_trip_with_pending_interaction(self):
        state = new_table("Alice", "Bob", "Carol")
        give(state, "alice", hand=["sly_deal_1"], bank=["money_5m_1"])
        give(
            state, "bob",
            properties={"RED": ["prop_red_1", "prop_red_2", "wildcard_3"]},
            improvements={"RED": ([], "hotel_1")},
        )
        state = resolve(state, Action.play_action("alice", "sly_deal_1", "bob", "RED")).state
        state.pending_debt_queue.append(
            DebtEntry(creditor_id="alice", debtor_id="carol", amount=2, reason=DebtReason.BIRTHDAY)
        )
        state.version = 7

        restored = GameState.from_dict(state.to_dict())

        self.assertEqual(restored.to_dict(), state.to_dict())
        self.assertIsInstance(restored.pending_interaction, ConfirmAction)
        self.assertEqual(restored.pending_interaction.original_action.property_color, "RED")
        self.assertEqual(restored.players["bob"].completed_sets, 1)
        self.assertEqual(restored.version, 7)

    def test_copy_is_independent(self):
        state = new_table()
        clone = state.copy()
        clone.players["alice"].hand.append("x")
        clone.draw_pile.pop()

        self.assertEqual(state.players["alice"].hand, [])
        self.assertEqual(len(state.draw_pile), 94)


class TestInvariants(unittest.TestCase):

    def test_duplicated_card_is_detected(self):
        state = new_table()
        state.players["bob"].hand.append(state.draw_pile[0])

        with self.assertRaises(InvariantViolation):
            check_invariants(state)

    def test_resolver_refuses_to_return_broken_state(self):
        state = new_table()
        give(state, "alice", hand=["money_1m_2"])
        state.players["bob"].hand.append("money_1m_1")

        with self.assertLogs("server.game_engine.resolver", level="ERROR"):
            with self.assertRaises(InvariantViolation):
                resolve(state, Action.play_money("alice", "money_1m_2"))


if __name__ == "__main__":
    unittest.main()
