"""
Tests for the turn and phase state machine.

Run with: python -m pytest tests/ -v
"""

import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from server.game_engine import Action, ActionResult, resolve
from shared.enums import GameStatus, TurnPhase
from tests.deal_builders import give, new_table, stack_draw_pile


MONEY = [
    "money_1m_1", "money_1m_2", "money_1m_3", "money_1m_4",
    "money_1m_5", "money_1m_6", "money_2m_1", "money_2m_2",
]


class TestDrawPhase(unittest.TestCase):

    def setUp(self):
        self.state = new_table("Alice", "Bob", phase=TurnPhase.DRAW)

    def test_draw_takes_two_from_top(self):
        stack_draw_pile(self.state, ["money_5m_1", "money_5m_2"])
        resolution = resolve(self.state, Action.draw("alice"))

        self.assertTrue(resolution.accepted)
        alice = resolution.state.players["alice"]
        self.assertEqual(alice.hand, ["money_5m_1", "money_5m_2"])
        self.assertEqual(resolution.state.turn_phase, TurnPhase.PLAY)
        self.assertEqual(resolution.state.cards_drawn_this_turn, 2)
        self.assertEqual(resolution.state.last_resolved_action.kind, "DRAW_CARDS")

    def test_input_state_is_not_modified(self):
        pile_before = list(self.state.draw_pile)
        resolve(self.state, Action.draw("alice"))

        self.assertEqual(self.state.draw_pile, pile_before)
        self.assertEqual(self.state.players["alice"].hand, [])
        self.assertEqual(self.state.turn_phase, TurnPhase.DRAW)

    def test_second_draw_is_rejected(self):
        drawn = resolve(self.state, Action.draw("alice")).state
        again = resolve(drawn, Action.draw("alice"))

        self.assertFalse(again.accepted)
        self.assertIs(again.state, drawn)
        self.assertEqual(drawn.cards_drawn_this_turn, 2)
        self.assertEqual(len(drawn.players["alice"].hand), 2)

    def test_rejection_is_idempotent(self):
        first = resolve(self.state, Action.draw("bob"))
        second = resolve(self.state, Action.draw("bob"))

        self.assertEqual(first.result.result, ActionResult.NOT_YOUR_TURN)
        self.assertIs(first.state, self.state)
        self.assertIs(second.state, self.state)
        self.assertEqual(first.result, second.result)

    def test_short_draw_pile(self):
        self.state.discard_pile.extend(self.state.draw_pile[1:])
        del self.state.draw_pile[1:]

        resolution = resolve(self.state, Action.draw("alice"))

        self.assertTrue(resolution.accepted)
        self.assertEqual(len(resolution.state.players["alice"].hand), 1)
        self.assertEqual(resolution.state.draw_pile, [])
        self.assertEqual(resolution.state.turn_phase, TurnPhase.PLAY)

    def test_cannot_play_before_drawing(self):
        give(self.state, "alice", hand=["money_1m_1"])
        resolution = resolve(self.state, Action.play_money("alice", "money_1m_1"))

        self.assertEqual(resolution.result.result, ActionResult.WRONG_PHASE)

    def test_game_must_be_running(self):
        self.state.status = GameStatus.WAITING
        resolution = resolve(self.state, Action.draw("alice"))

        self.assertEqual(resolution.result.result, ActionResult.GAME_NOT_STARTED)

    def test_unknown_player(self):
        resolution = resolve(self.state, Action.draw("mallory"))

        self.assertEqual(resolution.result.result, ActionResult.UNKNOWN_PLAYER)


class TestPlayPhase(unittest.TestCase):

    def setUp(self):
        self.state = new_table("Alice", "Bob", "Carol")
        give(self.state, "alice", hand=MONEY[:4])

    def test_three_plays_per_turn(self):
        state = self.state
        for card_id in MONEY[:3]:
            resolution = resolve(state, Action.play_money("alice", card_id))
            self.assertTrue(resolution.accepted)
            state = resolution.state

        self.assertEqual(state.cards_played_this_turn, 3)
        fourth = resolve(state, Action.play_money("alice", MONEY[3]))
        self.assertEqual(fourth.result.result, ActionResult.NO_PLAYS_LEFT)
        self.assertIs(fourth.state, state)

    def test_end_turn_advances_and_resets(self):
        played = resolve(self.state, Action.play_money("alice", MONEY[0])).state
        ended = resolve(played, Action.end_turn("alice"))

        self.assertTrue(ended.accepted)
        self.assertEqual(ended.state.current_turn_player_id, "bob")
        self.assertEqual(ended.state.turn_phase, TurnPhase.DRAW)
        self.assertEqual(ended.state.cards_played_this_turn, 0)
        self.assertEqual(ended.state.cards_drawn_this_turn, 0)

    def test_turn_order_wraps(self):
        state = self.state
        seen = []
        for _ in range(4):
            current = state.current_turn_player_id
            seen.append(current)
            if state.turn_phase == TurnPhase.DRAW:
                state = resolve(state, Action.draw(current)).state
            state = resolve(state, Action.end_turn(current)).state

        self.assertEqual(seen, ["alice", "bob", "carol", "alice"])

    def test_only_current_player_ends_turn(self):
        resolution = resolve(self.state, Action.end_turn("bob"))

        self.assertEqual(resolution.result.result, ActionResult.NOT_YOUR_TURN)


class TestDiscardPhase(unittest.TestCase):

    def setUp(self):
        self.state = new_table("Alice", "Bob")
        give(self.state, "alice", hand=MONEY + ["money_2m_3"])

    def test_over_hand_limit_enters_discard(self):
        resolution = resolve(self.state, Action.end_turn("alice"))

        self.assertTrue(resolution.accepted)
        self.assertEqual(resolution.state.turn_phase, TurnPhase.DISCARD)
        self.assertEqual(resolution.state.current_turn_player_id, "alice")
        self.assertEqual(resolution.events[0].event_type, "discard_required")
        self.assertEqual(resolution.events[0].data["excess"], 2)

    def test_discard_down_to_limit_ends_turn(self):
        state = resolve(self.state, Action.end_turn("alice")).state

        partial = resolve(state, Action.discard("alice", ["money_1m_1"]))
        self.assertTrue(partial.accepted)
        self.assertEqual(partial.state.turn_phase, TurnPhase.DISCARD)

        done = resolve(partial.state, Action.discard("alice", ["money_1m_2"]))
        self.assertTrue(done.accepted)
        self.assertEqual(done.state.current_turn_player_id, "bob")
        self.assertEqual(done.state.turn_phase, TurnPhase.DRAW)
        self.assertEqual(done.state.discard_pile[-2:], ["money_1m_1", "money_1m_2"])

    def test_discarding_extra_cards_is_allowed(self):
        state = resolve(self.state, Action.end_turn("alice")).state
        resolution = resolve(state, Action.discard("alice", MONEY[:5]))

        self.assertTrue(resolution.accepted)
        self.assertEqual(len(resolution.state.players["alice"].hand), 4)
        self.assertEqual(resolution.state.current_turn_player_id, "bob")

    def test_only_discard_is_legal(self):
        state = resolve(self.state, Action.end_turn("alice")).state

        self.assertEqual(
            resolve(state, Action.end_turn("alice")).result.result,
            ActionResult.WRONG_PHASE
        )
        self.assertEqual(
            resolve(state, Action.play_money("alice", "money_1m_1")).result.result,
            ActionResult.WRONG_PHASE
        )

    def test_discard_outside_discard_phase(self):
        resolution = resolve(self.state, Action.discard("alice", ["money_1m_1"]))

        self.assertEqual(resolution.result.result, ActionResult.WRONG_PHASE)

    def test_discard_card_not_in_hand(self):
        state = resolve(self.state, Action.end_turn("alice")).state
        resolution = resolve(state, Action.discard("alice", ["money_10m_1"]))

        self.assertEqual(resolution.result.result, ActionResult.CARD_NOT_IN_HAND)


if __name__ == "__main__":
    unittest.main()
