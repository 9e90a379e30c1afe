from typing import Optional

from absl.testing import absltest, parameterized

from teamsim.game.events.battle_event import (
    BattleEndEvent,
    BoostEvent,
    ClearBoostEvent,
    DamageEvent,
    ErrorEvent,
    FaintEvent,
    FieldConditionEvent,
    MoveEvent,
    PlayerEvent,
    RequestEvent,
    SetBoostEvent,
    SideConditionEvent,
    SwitchEvent,
    TieEvent,
    TurnEvent,
    UnknownEvent,
    WeatherEvent,
)
from teamsim.game.protocol.message_parser import MessageParser


class MessageParserTest(parameterized.TestCase):
    @parameterized.parameters(
        ("|turn|1", 1),
        ("|turn|10", 10),
        ("|turn|25", 25),
    )
    def test_parse_turn(self, raw_message: str, expected_turn: int) -> None:
        event = MessageParser().parse(raw_message)
        self.assertIsInstance(event, TurnEvent)
        self.assertEqual(event.turn_number, expected_turn)

    @parameterized.parameters(
        (
            "|switch|p1a: Incineroar|Incineroar, L50, M|100/100",
            "p1",
            "a",
            "Incineroar",
            "switch",
            1.0,
            None,
        ),
        (
            "|drag|p2b: Fluttermane|Flutter Mane, L50|41/131 par",
            "p2",
            "b",
            "Flutter Mane",
            "drag",
            41 / 131,
            "par",
        ),
        (
            "|replace|p2a: Zoroark|Zoroark-Hisui, L50, F",
            "p2",
            "a",
            "Zoroark-Hisui",
            "replace",
            1.0,
            None,
        ),
    )
    def test_parse_switch_variants(
        self,
        raw_message: str,
        expected_player: str,
        expected_position: str,
        expected_species: str,
        expected_kind: str,
        expected_hp: float,
        expected_status: Optional[str],
    ) -> None:
        event = MessageParser().parse(raw_message)
        self.assertIsInstance(event, SwitchEvent)
        self.assertEqual(event.player_id, expected_player)
        self.assertEqual(event.position, expected_position)
        self.assertEqual(event.species, expected_species)
        self.assertEqual(event.kind, expected_kind)
        self.assertAlmostEqual(event.hp_fraction, expected_hp)
        self.assertEqual(event.status, expected_status)

    def test_parse_move_with_target(self) -> None:
        event = MessageParser().parse("|move|p1a: Rillaboom|Fake Out|p2b: Amoonguss")
        self.assertIsInstance(event, MoveEvent)
        self.assertEqual(event.slot_id, "p1a")
        self.assertEqual(event.move_name, "Fake Out")
        self.assertEqual(event.target_player, "p2")
        self.assertEqual(event.target_position, "b")

    def test_parse_spread_move(self) -> None:
        event = MessageParser().parse(
            "|move|p2a: Landorus|Earthquake|p1a: Rillaboom|[spread] p1a,p1b"
        )
        self.assertIsInstance(event, MoveEvent)
        self.assertTrue(event.spread)

    @parameterized.parameters(
        ("|-boost|p1a: Gholdengo|spa|1", 1, False),
        ("|-unboost|p2a: Urshifu|atk|1", -1, True),
        ("|-boost|p1b: Annihilape|atk|12", 12, False),
    )
    def test_parse_boosts(
        self, raw_message: str, expected_delta: int, expected_unboost: bool
    ) -> None:
        event = MessageParser().parse(raw_message)
        self.assertIsInstance(event, BoostEvent)
        self.assertEqual(event.delta, expected_delta)
        self.assertEqual(event.is_unboost, expected_unboost)

    def test_parse_setboost(self) -> None:
        event = MessageParser().parse(
            "|-setboost|p2a: Annihilape|atk|12|[from] move: Belly Drum"
        )
        self.assertIsInstance(event, SetBoostEvent)
        self.assertEqual(event.slot_id, "p2a")
        self.assertEqual(event.stat, "atk")
        self.assertEqual(event.amount, 12)

    @parameterized.parameters(
        ("|-clearboost|p1b: Gholdengo", "p1b", 0),
        ("|-clearallboost", None, 0),
        ("|-clearnegativeboost|p2a: Urshifu|[silent]", "p2a", -1),
        ("|-clearpositiveboost|p2b: Kingambit|p1a: Tornadus|move: Spectral Thief", "p2b", 1),
    )
    def test_parse_clear_boosts(
        self, raw_message: str, expected_slot: Optional[str], expected_sign: int
    ) -> None:
        event = MessageParser().parse(raw_message)
        self.assertIsInstance(event, ClearBoostEvent)
        self.assertEqual(event.slot_id, expected_slot)
        self.assertEqual(event.only_sign, expected_sign)

    def test_parse_faint(self) -> None:
        event = MessageParser().parse("|faint|p2b: Amoonguss")
        self.assertIsInstance(event, FaintEvent)
        self.assertEqual(event.slot_id, "p2b")
        self.assertEqual(event.pokemon_name, "Amoonguss")

    def test_parse_damage_faint_condition(self) -> None:
        event = MessageParser().parse("|-damage|p1a: Incineroar|0 fnt")
        self.assertIsInstance(event, DamageEvent)
        self.assertEqual(event.hp_fraction, 0.0)

    def test_parse_win_and_tie(self) -> None:
        parser = MessageParser()
        win = parser.parse("|win|Player 1")
        self.assertIsInstance(win, BattleEndEvent)
        self.assertEqual(win.winner, "Player 1")
        self.assertIsInstance(parser.parse("|tie"), TieEvent)

    def test_parse_player(self) -> None:
        event = MessageParser().parse("|player|p2|Player 2||")
        self.assertIsInstance(event, PlayerEvent)
        self.assertEqual(event.player_id, "p2")
        self.assertEqual(event.username, "Player 2")

    @parameterized.parameters(
        ("|-weather|Snow", "Snow", False),
        ("|-weather|SunnyDay|[upkeep]", "SunnyDay", True),
        ("|-weather|none", "none", False),
    )
    def test_parse_weather(
        self, raw_message: str, expected_weather: str, expected_upkeep: bool
    ) -> None:
        event = MessageParser().parse(raw_message)
        self.assertIsInstance(event, WeatherEvent)
        self.assertEqual(event.weather, expected_weather)
        self.assertEqual(event.upkeep, expected_upkeep)

    def test_parse_side_and_field_conditions(self) -> None:
        parser = MessageParser()
        side = parser.parse("|-sidestart|p1: Player 1|move: Tailwind")
        self.assertIsInstance(side, SideConditionEvent)
        self.assertEqual(side.player_id, "p1")
        self.assertEqual(side.condition, "move: Tailwind")
        self.assertTrue(side.started)

        ended = parser.parse("|-sideend|p2: Player 2|Reflect")
        self.assertIsInstance(ended, SideConditionEvent)
        self.assertFalse(ended.started)

        field = parser.parse("|-fieldend|move: Trick Room")
        self.assertIsInstance(field, FieldConditionEvent)
        self.assertEqual(field.condition, "move: Trick Room")
        self.assertFalse(field.started)

    def test_parse_request_keeps_full_payload(self) -> None:
        raw = '|request|{"side":{"name":"a|b"},"rqid":3}'
        event = MessageParser().parse(raw)
        self.assertIsInstance(event, RequestEvent)
        self.assertEqual(event.request_json, '{"side":{"name":"a|b"},"rqid":3}')

    def test_parse_error(self) -> None:
        event = MessageParser().parse(
            "|error|[Invalid choice] Can't move: Incineroar's Fake Out is disabled"
        )
        self.assertIsInstance(event, ErrorEvent)
        self.assertIn("Invalid choice", event.error_text)

    @parameterized.parameters(
        "|j|someone",
        "|-crit|p1a: Incineroar",
        "not a protocol line",
    )
    def test_unknown_lines(self, raw_message: str) -> None:
        event = MessageParser().parse(raw_message)
        self.assertIsInstance(event, UnknownEvent)
        self.assertEqual(event.raw_message, raw_message)

    @parameterized.parameters(
        "|turn|abc",
        "|-boost|p1a: Gholdengo|spa",
        "|switch|p1a: Incineroar|Incineroar|x/100",
    )
    def test_malformed_known_lines_become_unknown(self, raw_message: str) -> None:
        event = MessageParser().parse(raw_message)
        self.assertIsInstance(event, UnknownEvent)

    def test_parse_chunk_preserves_order_and_skips_blanks(self) -> None:
        chunk = "\n".join(
            [
                "|",
                "|move|p1a: Incineroar|Fake Out|p2a: Rillaboom",
                "",
                "|-damage|p2a: Rillaboom|88/100",
                "|turn|2",
            ]
        )
        events = MessageParser().parse_chunk(chunk)
        self.assertLen(events, 4)
        self.assertIsInstance(events[0], UnknownEvent)
        self.assertIsInstance(events[1], MoveEvent)
        self.assertIsInstance(events[2], DamageEvent)
        self.assertIsInstance(events[3], TurnEvent)


if __name__ == "__main__":
    absltest.main()
