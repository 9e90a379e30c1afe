"""Command line entry point for evaluating a team by simulated battles.

Plays the team against one or more reference teams on a local Pokemon
Showdown checkout and reports win rates.

Example:
    python -m teamsim.battle.run_simulation \
        --format=gen9vgc2024regg \
        --team=teams/mine.team \
        --showdown_path=/opt/pokemon-showdown
"""

import asyncio
import json
from pathlib import Path
from typing import List

from absl import app, flags, logging

from teamsim.agents.agent_registry import AgentRegistry
from teamsim.battle.battle_simulator import (
    BATTLE_TIMEOUT_SECONDS,
    BattleSimulator,
    SimulatorConfig,
)
from teamsim.game.data.game_data import GameData
from teamsim.game.interface.team_loader import PackedTeam, TeamLoader, load_packed_team
from teamsim.game.protocol.showdown_process import ShowdownSimulator

FLAGS = flags.FLAGS

flags.DEFINE_string("format", "gen9ou", "Battle format (e.g., gen9ou, gen9vgc2024regg)")
flags.DEFINE_string("team", None, "Path to the packed team to evaluate")
flags.DEFINE_list(
    "opponent_teams",
    [],
    "Packed team files to play against (default: every team in --teams_dir/<format>)",
)
flags.DEFINE_string("teams_dir", "data/teams", "Directory of reference teams by format")
flags.DEFINE_integer("num_battles", 3, "Battles to play against each opponent")
flags.DEFINE_float(
    "battle_timeout", BATTLE_TIMEOUT_SECONDS, "Seconds before a battle is cut short"
)
flags.DEFINE_string(
    "showdown_path", "pokemon-showdown", "Path to a Pokemon Showdown checkout"
)
flags.DEFINE_string("node_binary", "node", "Node.js binary used to run Showdown")
flags.DEFINE_string(
    "p1_engine",
    None,
    f"Engine for the evaluated team. Available: {', '.join(AgentRegistry.get_available_agents())}",
)
flags.DEFINE_string("p2_engine", None, "Engine for the opponent team")
flags.DEFINE_string("output", None, "Optional path to write the evaluation as JSON")

flags.mark_flag_as_required("team")


def load_opponents() -> List[PackedTeam]:
    if FLAGS.opponent_teams:
        return [load_packed_team(path) for path in FLAGS.opponent_teams]
    return TeamLoader(FLAGS.format, teams_dir=FLAGS.teams_dir).load_all()


def build_config() -> SimulatorConfig:
    for engine in (FLAGS.p1_engine, FLAGS.p2_engine):
        if engine and not AgentRegistry.has_agent(engine):
            raise app.UsageError(
                f"Unknown engine {engine!r}. "
                f"Available: {', '.join(AgentRegistry.get_available_agents())}"
            )
    return SimulatorConfig(
        format_id=FLAGS.format,
        battle_timeout=FLAGS.battle_timeout,
        p1_engine=FLAGS.p1_engine,
        p2_engine=FLAGS.p2_engine,
    )


async def run_simulation() -> None:
    """Evaluate the team against every opponent and report the results."""
    config = build_config()
    team = load_packed_team(FLAGS.team)
    opponents = load_opponents()
    logging.info(
        "Evaluating %s (%s) against %d opponent team(s)",
        team.name,
        team.summary(),
        len(opponents),
    )

    simulator = BattleSimulator(
        config,
        ShowdownSimulator(FLAGS.showdown_path, node_binary=FLAGS.node_binary),
        GameData.for_gen(9),
    )
    evaluation = await simulator.evaluate_team(team, opponents, FLAGS.num_battles)

    for result in evaluation.matchups:
        logging.info(
            "vs %s: %dW-%dL-%dT (%.1f%%), %.1f turns on average",
            result.team2,
            result.wins,
            result.losses,
            result.ties,
            result.win_rate,
            result.avg_turns,
        )
    logging.info("Overall win rate: %.1f%%", evaluation.overall_win_rate)

    if FLAGS.output:
        Path(FLAGS.output).write_text(json.dumps(evaluation.to_dict(), indent=2))
        logging.info("Wrote evaluation to %s", FLAGS.output)


def main(argv: List[str]) -> None:
    """Entry point for the script."""
    del argv

    logging.set_verbosity(logging.INFO)
    logging.info("Starting run_simulation script")
    logging.info("Format: %s", FLAGS.format)

    asyncio.run(run_simulation())


def run() -> None:
    app.run(main)


if __name__ == "__main__":
    run()
