"""Battle simulator that pits two decision engines against each other."""

import asyncio
import itertools
import json
from dataclasses import dataclass
from typing import List, Optional

from absl import logging

from teamsim.agents.agent_registry import AgentRegistry
from teamsim.battle.battle_outcome import BattleOutcome, SimulationResult, TeamEvaluation
from teamsim.battle.spectator_tracker import SpectatorTracker
from teamsim.game.data.game_data import GameData
from teamsim.game.exceptions import InvalidTeamError
from teamsim.game.interface.team_loader import PackedTeam, parse_packed_team
from teamsim.game.protocol.showdown_process import SimulatorBackend

BATTLE_TIMEOUT_SECONDS = 30.0
INTER_BATTLE_DELAY_SECONDS = 0.1
LOG_TAIL_CHUNKS = 10
TEAM_SIZE = 6

PLAYER_NAMES = {"p1": "Player 1", "p2": "Player 2"}


@dataclass(frozen=True)
class SimulatorConfig:
    """Settings shared by every battle of a simulator.

    Attributes:
        format_id: Showdown format id, e.g. "gen9ou" or "gen9vgc2024regg"
        battle_timeout: Seconds before a battle is cut short
        log_tail: Protocol chunks kept in each BattleOutcome
        inter_battle_delay: Pause between consecutive battles, in seconds
        team_size: Pokemon per side, used to count what remains
        p1_engine: Engine name for p1; picked from the format when None
        p2_engine: Engine name for p2; picked from the format when None
    """

    format_id: str = "gen9ou"
    battle_timeout: float = BATTLE_TIMEOUT_SECONDS
    log_tail: int = LOG_TAIL_CHUNKS
    inter_battle_delay: float = INTER_BATTLE_DELAY_SECONDS
    team_size: int = TEAM_SIZE
    p1_engine: Optional[str] = None
    p2_engine: Optional[str] = None

    def engine_for(self, player_id: str) -> str:
        override = self.p1_engine if player_id == "p1" else self.p2_engine
        return override or AgentRegistry.engine_for_format(self.format_id)


def team_label(team: PackedTeam) -> str:
    """Species list of a team, or its name when the packed text is unreadable."""
    try:
        return ", ".join(team.species)
    except InvalidTeamError:
        return team.name


class BattleSimulator:
    """Runs battles on a simulator backend and aggregates their outcomes.

    Each battle gets a fresh backend battle and fresh engines, one per side,
    each bound to its own side's stream. The simulator follows the spectator
    stream to learn the outcome. Battles run one after another.

    Example Usage:
        ```python
        simulator = BattleSimulator(
            SimulatorConfig(format_id="gen9vgc2024regg"),
            ShowdownSimulator("/opt/pokemon-showdown"),
            GameData.for_gen(9),
        )
        result = await simulator.run_simulation(my_team, sample_team, num_battles=3)
        ```
    """

    def __init__(
        self,
        config: SimulatorConfig,
        backend: SimulatorBackend,
        game_data: GameData,
    ) -> None:
        self._config = config
        self._backend = backend
        self._game_data = game_data
        self._battle_counter = itertools.count(1)

    @property
    def config(self) -> SimulatorConfig:
        return self._config

    async def simulate_battle(self, team1: PackedTeam, team2: PackedTeam) -> BattleOutcome:
        """Play one battle between two teams to completion or timeout.

        Raises:
            InvalidTeamError: If either team is empty or malformed.
            SimulatorProcessError: If the backend cannot start a battle.
        """
        parse_packed_team(team1.packed, team1.name)
        parse_packed_team(team2.packed, team2.name)

        format_id = self._config.format_id
        battle_id = f"{format_id}-{next(self._battle_counter)}"
        streams = await self._backend.open_battle()

        tracker = SpectatorTracker(
            battle_id,
            self._game_data,
            team_size=self._config.team_size,
            log_tail=self._config.log_tail,
        )
        engine_tasks = []
        timed_out = False
        try:
            for player_id in ("p1", "p2"):
                engine = AgentRegistry.create_agent(
                    self._config.engine_for(player_id),
                    player_id,
                    streams.for_player(player_id),
                    self._game_data,
                    battle_id,
                )
                engine_tasks.append(asyncio.create_task(engine.run()))

            streams.omniscient.write(f">start {json.dumps({'formatid': format_id})}")
            for player_id, team in (("p1", team1), ("p2", team2)):
                spec = {"name": PLAYER_NAMES[player_id], "team": team.packed}
                streams.omniscient.write(f">player {player_id} {json.dumps(spec)}")

            await asyncio.wait_for(
                tracker.consume(streams.spectator), self._config.battle_timeout
            )
        except asyncio.TimeoutError:
            timed_out = True
            logging.warning(
                "[%s] Battle timed out after %.1fs on turn %d",
                battle_id,
                self._config.battle_timeout,
                tracker.turn_count,
            )
        finally:
            for task in engine_tasks:
                task.cancel()
            results = await asyncio.gather(*engine_tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logging.error(
                        "[%s] Engine failed: %s", battle_id, result, exc_info=result
                    )
            await streams.close()

        outcome = tracker.get_outcome(timed_out=timed_out)
        logging.info(
            "[%s] Battle complete: %d turns, P1: %d left, P2: %d left, Winner: %s",
            battle_id,
            outcome.turns,
            outcome.p1_remaining,
            outcome.p2_remaining,
            outcome.winner,
        )
        return outcome

    async def run_simulation(
        self, team1: PackedTeam, team2: PackedTeam, num_battles: int = 3
    ) -> SimulationResult:
        """Play ``num_battles`` battles in sequence and aggregate them.

        A battle that raises is recorded as a tie with no turns, so the result
        always holds exactly ``num_battles`` outcomes.
        """
        outcomes: List[BattleOutcome] = []
        for i in range(num_battles):
            logging.info("========== Battle %d/%d ==========", i + 1, num_battles)
            try:
                outcomes.append(await self.simulate_battle(team1, team2))
                await asyncio.sleep(self._config.inter_battle_delay)
            except Exception as e:
                logging.error("Battle %d failed: %s", i + 1, e, exc_info=True)
                outcomes.append(BattleOutcome.failed())

        result = SimulationResult.from_outcomes(
            team_label(team1), team_label(team2), self._config.format_id, outcomes
        )
        logging.info(
            "Win rate: %.1f%% (%d/%d), average turns: %.1f",
            result.win_rate,
            result.wins,
            num_battles,
            result.avg_turns,
        )
        return result

    async def evaluate_team(
        self,
        team: PackedTeam,
        opponents: List[PackedTeam],
        battles_per_opponent: int = 3,
    ) -> TeamEvaluation:
        """Run ``team`` against every opponent and collect the per-opponent results."""
        matchups: List[SimulationResult] = []
        for opponent in opponents:
            logging.info("Evaluating %s against %s", team.name, opponent.name)
            matchups.append(
                await self.run_simulation(team, opponent, battles_per_opponent)
            )

        evaluation = TeamEvaluation(
            team=team_label(team), format_id=self._config.format_id, matchups=matchups
        )
        logging.info(
            "Overall win rate for %s: %.1f%%", team.name, evaluation.overall_win_rate
        )
        return evaluation
