"""Unit tests for BattleState."""

import json
import unittest

from teamsim.game.schema.battle_state import BattleState, opponent_of
from teamsim.game.schema.slot_state import SlotState


class BattleStateTest(unittest.TestCase):
    """Test BattleState queries."""

    def setUp(self) -> None:
        self.state = BattleState(
            slots={
                "p1a": SlotState(species="Incineroar", types=["Fire", "Dark"]),
                "p1b": SlotState(species="Amoonguss", hp_fraction=0.0),
                "p2a": None,
                "p2b": SlotState(species="Pikachu", types=["Electric"], hp_fraction=0.4),
            },
            stat_boosts={"p2b": {"spe": 2}},
            game_type="doubles",
            our_player_id="p1",
        )

    def test_opponent(self) -> None:
        """Test opponent lookup from our side."""
        self.assertEqual(self.state.opponent_player_id, "p2")
        self.assertEqual(opponent_of("p2"), "p1")
        self.assertIsNone(BattleState().opponent_player_id)

    def test_active_slots_skip_empty_and_fainted(self) -> None:
        """Test that only live occupants are reported as active."""
        self.assertEqual(
            [slot_id for slot_id, _ in self.state.active_slots("p1")], ["p1a"]
        )
        self.assertEqual(
            [slot_id for slot_id, _ in self.state.active_slots("p2")], ["p2b"]
        )

    def test_partner(self) -> None:
        """Test partner lookup ignores fainted partners."""
        self.assertEqual(self.state.partner_slot_id("p1a"), "p1b")
        self.assertEqual(self.state.partner_slot_id("p2b"), "p2a")
        self.assertIsNone(self.state.get_partner("p1a"))
        self.assertIsNone(self.state.get_partner("p2b"))

    def test_get_boosts_returns_copy(self) -> None:
        """Test that boosts returned to callers cannot mutate the state."""
        boosts = self.state.get_boosts("p2b")
        boosts["spe"] = 6

        self.assertEqual(self.state.get_boosts("p2b"), {"spe": 2})
        self.assertEqual(self.state.get_boosts("p1a"), {})

    def test_str_is_json(self) -> None:
        """Test that the string form is a JSON dump of to_dict."""
        data = json.loads(str(self.state))

        self.assertEqual(data["game_type"], "doubles")
        self.assertIsNone(data["slots"]["p2a"])
        self.assertEqual(data["slots"]["p2b"]["hp_fraction"], 0.4)
        self.assertEqual(data["stat_boosts"], {"p2b": {"spe": 2}})


if __name__ == "__main__":
    unittest.main()
