import json

from absl.testing import absltest, parameterized
from pydantic import ValidationError

from teamsim.game.interface.battle_request import BattleRequest


def _side_pokemon(ident: str, details: str, condition: str, active: bool) -> dict:
    return {
        "ident": ident,
        "details": details,
        "condition": condition,
        "active": active,
        "moves": ["fakeout", "flareblitz"],
        "baseAbility": "intimidate",
        "item": "sitrusberry",
        "teraType": "Grass",
    }


class BattleRequestTest(parameterized.TestCase):
    def test_active_request(self) -> None:
        payload = {
            "active": [
                {
                    "moves": [
                        {"move": "Fake Out", "id": "fakeout", "pp": 16, "maxpp": 16,
                         "target": "normal", "disabled": False},
                        {"move": "Flare Blitz", "id": "flareblitz", "pp": 0, "maxpp": 24,
                         "target": "normal", "disabled": False},
                        {"move": "Knock Off", "id": "knockoff", "pp": 32, "maxpp": 32,
                         "target": "normal", "disabled": "Taunt"},
                        {"move": "Protect", "id": "protect", "pp": 16, "maxpp": 16,
                         "target": "self", "disabled": False},
                    ],
                    "trapped": True,
                }
            ],
            "side": {
                "name": "Player 1",
                "id": "p1",
                "pokemon": [
                    _side_pokemon("p1: Incineroar", "Incineroar, L50, M", "170/201", True),
                    _side_pokemon("p1: Amoonguss", "Amoonguss, L50, F", "0 fnt", False),
                    _side_pokemon("p1: Rillaboom", "Rillaboom, L50, M", "207/207 par", False),
                ],
            },
            "rqid": 4,
        }
        request = BattleRequest.from_json(json.dumps(payload))

        self.assertEqual(request.side.id, "p1")
        self.assertTrue(request.active[0].trapped)
        self.assertEqual(request.active[0].usable_moves(), [0, 3])
        self.assertFalse(request.needs_force_switch)
        self.assertEqual(request.bench_indices(), [3])

        incineroar, amoonguss, rillaboom = request.side.pokemon
        self.assertEqual(incineroar.species, "Incineroar")
        self.assertAlmostEqual(incineroar.hp_fraction, 170 / 201)
        self.assertEqual(incineroar.ability_id, "intimidate")
        self.assertTrue(amoonguss.fainted)
        self.assertEqual(rillaboom.status, "par")
        self.assertEqual(request.active_pokemon(), [incineroar])

    def test_force_switch_request(self) -> None:
        payload = {
            "forceSwitch": [False, True],
            "side": {
                "name": "Player 2",
                "id": "p2",
                "pokemon": [
                    _side_pokemon("p2: Incineroar", "Incineroar, L50", "100/201", True),
                    _side_pokemon("p2: Garchomp", "Garchomp, L50", "0 fnt", True),
                ],
            },
        }
        request = BattleRequest.from_json(json.dumps(payload))
        self.assertTrue(request.needs_force_switch)
        self.assertEqual(request.force_switch, [False, True])
        self.assertEqual(request.bench_indices(), [])
        self.assertIsNone(request.active)

    @parameterized.parameters(
        ({"teamPreview": True, "side": {"id": "p1", "pokemon": []}}, "team_preview"),
        ({"wait": True, "side": {"id": "p2", "pokemon": []}}, "wait"),
    )
    def test_flags(self, payload: dict, attribute: str) -> None:
        request = BattleRequest.from_json(json.dumps(payload))
        self.assertTrue(getattr(request, attribute))

    def test_struggle_move_without_pp_is_usable(self) -> None:
        payload = {
            "active": [{"moves": [{"move": "Struggle", "id": "struggle",
                                   "target": "randomNormal", "disabled": False}]}],
            "side": {"id": "p1", "pokemon": []},
        }
        request = BattleRequest.from_json(json.dumps(payload))
        self.assertEqual(request.active[0].usable_moves(), [0])

    def test_invalid_json_raises_value_error(self) -> None:
        with self.assertRaises(ValueError):
            BattleRequest.from_json("{not json")

    def test_missing_side_raises_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            BattleRequest.from_json('{"active": []}')


if __name__ == "__main__":
    absltest.main()
