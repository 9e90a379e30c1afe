"""Tests for DoublesAgent lead, switch and move selection."""

import json
import unittest
from typing import Any, Dict, List

from absl.testing import parameterized

from teamsim.agents.doubles_agent import (
    DoublesAgent,
    lead_role,
    lead_score,
    own_side_target,
)
from teamsim.game.interface.battle_request import SidePokemon
from teamsim.game.protocol.battle_stream import QueueStreamView
from teamsim.testing.fake_game_data import fake_game_data


class FakeStreamView(QueueStreamView):
    """Stream view preloaded with chunks that records everything written."""

    def __init__(self, chunks: List[str]) -> None:
        self.written: List[str] = []
        super().__init__(writer=self.written.append)
        for chunk in chunks:
            self.push(chunk)
        self.close()


def _member(
    species: str,
    moves: List[str],
    ability: str = "",
    condition: str = "100/100",
    active: bool = False,
) -> Dict[str, Any]:
    return {
        "ident": f"p1: {species}",
        "details": f"{species}, L50",
        "condition": condition,
        "active": active,
        "moves": moves,
        "baseAbility": ability,
        "ability": ability,
    }


def _active(*move_ids: str) -> Dict[str, Any]:
    return {
        "moves": [
            {"move": move_id, "id": move_id, "pp": 10, "maxpp": 10, "disabled": False}
            for move_id in move_ids
        ]
    }


def _request_line(pokemon: List[Dict[str, Any]], **fields: Any) -> str:
    payload = {"side": {"id": "p1", "name": "Player 1", "pokemon": pokemon}}
    payload.update(fields)
    return "|request|" + json.dumps(payload)


INCINEROAR = _member(
    "Incineroar", ["fakeout", "flareblitz", "knockoff", "protect"], "intimidate"
)
AMOONGUSS = _member(
    "Amoonguss", ["spore", "ragepowder", "pollenpuff", "protect"], "regenerator"
)
PELIPPER = _member("Pelipper", ["hurricane", "weatherball", "protect", "tailwind"], "drizzle")
GARCHOMP = _member("Garchomp", ["earthquake", "rockslide", "dragonclaw", "protect"], "roughskin")
NINETALES = _member(
    "Ninetales-Alola", ["auroraveil", "blizzard", "moonblast", "protect"], "snowwarning"
)
FLUTTER_MANE = _member(
    "Flutter Mane", ["moonblast", "shadowball", "dazzlinggleam", "protect"], "protosynthesis"
)

FOES_IN = (
    "|switch|p2a: Blissey|Blissey, L50|100/100\n"
    "|switch|p2b: Pikachu|Pikachu, L50|100/100"
)


def _on_field(*members: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [dict(member, active=i < 2) for i, member in enumerate(members)]


class LeadTest(unittest.TestCase):
    def test_roles(self) -> None:
        self.assertEqual(lead_role(SidePokemon(**INCINEROAR)), "fakeout")
        self.assertEqual(lead_role(SidePokemon(**NINETALES)), "weather")
        self.assertEqual(lead_role(SidePokemon(**AMOONGUSS)), "support")
        self.assertEqual(lead_role(SidePokemon(**GARCHOMP)), "other")

    def test_lead_scores(self) -> None:
        self.assertEqual(lead_score(SidePokemon(**INCINEROAR)), 2500)
        self.assertEqual(lead_score(SidePokemon(**NINETALES)), 3400)
        self.assertEqual(lead_score(SidePokemon(**PELIPPER)), 1400)
        self.assertEqual(lead_score(SidePokemon(**GARCHOMP)), 800)


class OwnSideTargetTest(parameterized.TestCase):
    @parameterized.named_parameters(
        ("ally_from_left", "adjacentAlly", 0, -2),
        ("ally_from_right", "adjacentAlly", 1, -1),
        ("self_from_left", "adjacentAllyOrSelf", 0, -1),
        ("self_from_right", "adjacentAllyOrSelf", 1, -2),
        ("foe_move", "normal", 0, None),
        ("side_move", "allySide", 1, None),
    )
    def test_own_side_target(self, kind: str, position: int, expected) -> None:
        self.assertEqual(own_side_target(kind, position), expected)


class DoublesAgentTest(unittest.IsolatedAsyncioTestCase):
    async def _run(self, chunks: List[str]) -> DoublesAgent:
        self.view = FakeStreamView(chunks)
        agent = DoublesAgent("p1", self.view, fake_game_data(), battle_id="test", seed=7)
        await agent.run()
        return agent

    async def test_team_preview_lead_pair(self) -> None:
        team = [AMOONGUSS, PELIPPER, INCINEROAR, GARCHOMP, NINETALES, FLUTTER_MANE]
        await self._run([_request_line(team, teamPreview=True)])
        self.assertEqual(self.view.written, ["team 352146"])

    async def test_team_preview_without_special_roles(self) -> None:
        team = [FLUTTER_MANE, GARCHOMP]
        await self._run([_request_line(team, teamPreview=True)])
        self.assertEqual(self.view.written, ["team 21"])

    async def test_double_forced_switch_with_one_replacement(self) -> None:
        team = [
            dict(INCINEROAR, condition="0 fnt", active=True),
            dict(AMOONGUSS, condition="0 fnt", active=True),
            dict(GARCHOMP, condition="60/100"),
            dict(PELIPPER, condition="0 fnt"),
        ]
        await self._run([_request_line(team, forceSwitch=[True, True])])
        self.assertEqual(self.view.written, ["switch 3, pass"])

    async def test_forced_switch_prefers_intimidate(self) -> None:
        team = [
            dict(FLUTTER_MANE, condition="0 fnt", active=True),
            dict(AMOONGUSS, active=True),
            GARCHOMP,
            INCINEROAR,
        ]
        await self._run([_request_line(team, forceSwitch=[True, False])])
        self.assertEqual(self.view.written, ["switch 4, pass"])

    async def test_forced_switch_fills_both_slots_without_repeats(self) -> None:
        team = [
            dict(FLUTTER_MANE, condition="0 fnt", active=True),
            dict(PELIPPER, condition="0 fnt", active=True),
            GARCHOMP,
            INCINEROAR,
        ]
        await self._run([_request_line(team, forceSwitch=[True, True])])
        self.assertEqual(self.view.written, ["switch 4, switch 3"])

    async def test_fake_out_on_first_turn(self) -> None:
        team = _on_field(INCINEROAR, AMOONGUSS, GARCHOMP)
        await self._run(
            [
                FOES_IN,
                _request_line(
                    team,
                    active=[
                        _active("fakeout", "flareblitz", "knockoff", "protect"),
                        _active("spore", "ragepowder", "pollenpuff", "protect"),
                    ],
                ),
            ]
        )
        self.assertEqual(self.view.written, ["move 1 1, move 2"])

    async def test_fake_out_not_repeated_before_switching_out(self) -> None:
        team = _on_field(INCINEROAR, AMOONGUSS, GARCHOMP)
        await self._run(
            [
                "|switch|p1a: Incineroar|Incineroar, L50|100/100\n"
                "|switch|p1b: Amoonguss|Amoonguss, L50|100/100\n" + FOES_IN,
                "|move|p1a: Incineroar|Fake Out|p2a: Blissey\n|turn|2",
                _request_line(
                    team,
                    active=[
                        _active("fakeout", "flareblitz", "knockoff", "protect"),
                        _active("spore", "ragepowder", "pollenpuff", "protect"),
                    ],
                ),
            ]
        )
        self.assertEqual(self.view.written, ["move 2 1, move 2"])

    async def test_fake_out_not_chosen_after_first_turn_out(self) -> None:
        team = _on_field(INCINEROAR, AMOONGUSS, GARCHOMP)
        await self._run(
            [
                "|switch|p1a: Incineroar|Incineroar, L50|100/100\n"
                "|switch|p1b: Amoonguss|Amoonguss, L50|100/100\n" + FOES_IN + "\n|turn|1",
                "|move|p1a: Incineroar|Protect|p1a: Incineroar\n|turn|2",
                _request_line(
                    team,
                    active=[
                        _active("fakeout", "flareblitz", "knockoff", "protect"),
                        _active("spore", "ragepowder", "pollenpuff", "protect"),
                    ],
                ),
            ]
        )
        self.assertFalse(self.view.written[0].startswith("move 1"))

    async def test_fake_out_available_again_after_switching_back_in(self) -> None:
        team = _on_field(INCINEROAR, AMOONGUSS, GARCHOMP)
        await self._run(
            [
                "|switch|p1a: Incineroar|Incineroar, L50|100/100\n" + FOES_IN,
                "|move|p1a: Incineroar|Fake Out|p2a: Blissey\n|turn|2",
                "|switch|p1a: Garchomp|Garchomp, L50|100/100\n|turn|3",
                "|switch|p1a: Incineroar|Incineroar, L50|100/100\n|turn|4",
                _request_line(
                    team,
                    active=[
                        _active("fakeout", "flareblitz", "knockoff", "protect"),
                        _active("spore", "ragepowder", "pollenpuff", "protect"),
                    ],
                ),
            ]
        )
        self.assertTrue(self.view.written[0].startswith("move 1 "))

    async def test_helping_hand_targets_the_partner(self) -> None:
        team = _on_field(
            _member("Amoonguss", ["helpinghand"], "regenerator"), FLUTTER_MANE, GARCHOMP
        )
        await self._run(
            [
                FOES_IN,
                _request_line(
                    team,
                    active=[
                        _active("helpinghand"),
                        _active("moonblast", "shadowball", "dazzlinggleam", "protect"),
                    ],
                ),
            ]
        )
        self.assertTrue(self.view.written[0].startswith("move 1 -2, move "))

    async def test_helping_hand_from_the_right_targets_the_left(self) -> None:
        team = _on_field(
            FLUTTER_MANE, _member("Amoonguss", ["helpinghand"], "regenerator"), GARCHOMP
        )
        await self._run(
            [
                FOES_IN,
                _request_line(
                    team,
                    active=[
                        _active("moonblast", "shadowball", "dazzlinggleam", "protect"),
                        _active("helpinghand"),
                    ],
                ),
            ]
        )
        self.assertTrue(self.view.written[0].endswith(", move 1 -1"))

    async def test_aurora_veil_is_forced_for_snow_warning(self) -> None:
        team = _on_field(NINETALES, FLUTTER_MANE, GARCHOMP)
        await self._run(
            [
                FOES_IN,
                _request_line(
                    team,
                    active=[
                        _active("blizzard", "moonblast", "auroraveil", "protect"),
                        _active("moonblast", "shadowball", "dazzlinggleam", "protect"),
                    ],
                ),
            ]
        )
        self.assertTrue(self.view.written[0].startswith("move 3, "))

    async def test_targets_the_weaker_foe(self) -> None:
        team = _on_field(GARCHOMP, FLUTTER_MANE, INCINEROAR)
        await self._run(
            [
                "|switch|p2a: Dragonite|Dragonite, L50|100/100\n"
                "|switch|p2b: Kingambit|Kingambit, L50|100/100",
                _request_line(
                    team,
                    active=[
                        _active("dragonclaw", "protect"),
                        _active("moonblast", "protect"),
                    ],
                ),
            ]
        )
        self.assertEqual(self.view.written, ["move 1 1, move 1 1"])

    async def test_fainted_partner_slot_passes(self) -> None:
        team = [
            dict(GARCHOMP, active=True),
            dict(FLUTTER_MANE, condition="0 fnt", active=True),
        ]
        await self._run(
            [
                FOES_IN,
                _request_line(
                    team, active=[_active("dragonclaw", "protect"), _active("moonblast")]
                ),
            ]
        )
        self.assertEqual(self.view.written, ["move 1 1, pass"])


if __name__ == "__main__":
    unittest.main()
