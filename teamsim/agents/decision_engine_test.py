"""Tests for the request loop shared by every decision engine."""

import json
import unittest
from typing import List

from teamsim.agents.decision_engine import DecisionEngine
from teamsim.game.interface.action_command import ActionCommand
from teamsim.game.interface.battle_request import BattleRequest
from teamsim.game.protocol.battle_stream import QueueStreamView
from teamsim.testing.fake_game_data import fake_game_data

SIDE = {
    "id": "p1",
    "name": "Player 1",
    "pokemon": [
        {"ident": "p1: Pikachu", "details": "Pikachu, L50", "condition": "100/100", "active": True},
        {"ident": "p1: Blastoise", "details": "Blastoise, L50", "condition": "100/100"},
    ],
}
ACTIVE = [{"moves": [{"move": "Thunderbolt", "id": "thunderbolt", "pp": 10, "maxpp": 10}]}]


def _request_line(**fields) -> str:
    payload = {"side": SIDE}
    payload.update(fields)
    return "|request|" + json.dumps(payload)


class FakeStreamView(QueueStreamView):
    """Stream view preloaded with chunks that records everything written."""

    def __init__(self, chunks: List[str]) -> None:
        self.written: List[str] = []
        super().__init__(writer=self.written.append)
        for chunk in chunks:
            self.push(chunk)
        self.close()


class ScriptedEngine(DecisionEngine):
    """Engine with fixed answers that records which decision was asked for."""

    def __init__(self, view, fail: bool = False) -> None:
        super().__init__("p1", view, fake_game_data(), battle_id="test")
        self.calls: List[str] = []
        self._fail = fail

    def choose_team_order(self, request: BattleRequest) -> ActionCommand:
        self.calls.append("team")
        return ActionCommand.team("21")

    def choose_forced_switch(self, request: BattleRequest) -> List[ActionCommand]:
        self.calls.append("switch")
        return [ActionCommand.switch(2)]

    def choose_turn(self, request: BattleRequest) -> List[ActionCommand]:
        self.calls.append("turn")
        if self._fail:
            raise KeyError("boom")
        return [ActionCommand.move(1), ActionCommand.pass_()]


class DecisionEngineTest(unittest.IsolatedAsyncioTestCase):
    async def _run(self, chunks: List[str], fail: bool = False) -> ScriptedEngine:
        self.view = FakeStreamView(chunks)
        engine = ScriptedEngine(self.view, fail=fail)
        await engine.run()
        return engine

    async def test_dispatches_by_request_kind(self) -> None:
        engine = await self._run(
            [
                _request_line(teamPreview=True),
                _request_line(active=ACTIVE),
                _request_line(forceSwitch=[True]),
            ]
        )
        self.assertEqual(engine.calls, ["team", "turn", "switch"])
        self.assertEqual(self.view.written, ["team 21", "move 1, pass", "switch 2"])

    async def test_wait_writes_nothing(self) -> None:
        engine = await self._run([_request_line(wait=True)])
        self.assertEqual(engine.calls, [])
        self.assertEqual(self.view.written, [])

    async def test_empty_request_is_ignored(self) -> None:
        await self._run(["|request|", "|request|null"])
        self.assertEqual(self.view.written, [])

    async def test_malformed_json_writes_one_default_and_continues(self) -> None:
        engine = await self._run(
            ["|request|{not json", "|turn|4\n|-weather|RainDance", _request_line(active=ACTIVE)]
        )
        self.assertEqual(self.view.written, ["default", "move 1, pass"])
        self.assertEqual(engine.state.turn, 4)

    async def test_request_failing_validation_defaults(self) -> None:
        await self._run(['|request|{"active": []}'])
        self.assertEqual(self.view.written, ["default"])

    async def test_decision_error_defaults(self) -> None:
        engine = await self._run(
            [_request_line(active=ACTIVE), _request_line(teamPreview=True)], fail=True
        )
        self.assertEqual(engine.calls, ["turn", "team"])
        self.assertEqual(self.view.written, ["default", "team 21"])

    async def test_request_without_decision_defaults(self) -> None:
        await self._run([_request_line()])
        self.assertEqual(self.view.written, ["default"])

    async def test_tracks_state_from_stream(self) -> None:
        engine = await self._run(
            [
                "|player|p2|Player 2|\n|switch|p2a: Venusaur|Venusaur, L50|100/100\n"
                "|-boost|p2a: Venusaur|spa|2\n|turn|2"
            ]
        )
        self.assertEqual(engine.player_id, "p1")
        self.assertEqual(engine.state.turn, 2)
        self.assertEqual(engine.state.get_boosts("p2a"), {"spa": 2})
        self.assertEqual(engine.state.get_slot("p2a").types, ["Grass", "Poison"])


if __name__ == "__main__":
    unittest.main()
