"""Result types produced by the battle simulator."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

WINNERS = ("p1", "p2", "tie")


@dataclass(frozen=True)
class BattleOutcome:
    """Result of one simulated battle.

    Attributes:
        winner: "p1", "p2" or "tie"
        turns: Last turn number announced by the simulator
        p1_remaining: Pokemon p1 had not lost when the battle ended
        p2_remaining: Pokemon p2 had not lost when the battle ended
        log: The last few protocol chunks of the battle
        timed_out: True when the winner was inferred after the battle timeout
    """

    winner: str
    turns: int
    p1_remaining: int
    p2_remaining: int
    log: List[str] = field(default_factory=list)
    timed_out: bool = False

    def __post_init__(self) -> None:
        if self.winner not in WINNERS:
            raise ValueError(f"Invalid winner: {self.winner}")

    @classmethod
    def failed(cls) -> "BattleOutcome":
        """Tie with no turns, recorded in place of a battle that raised."""
        return cls(winner="tie", turns=0, p1_remaining=0, p2_remaining=0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SimulationResult:
    """Aggregate of repeated battles between the same two teams.

    ``win_rate`` is p1's share of wins as a percentage of all battles,
    ties included in the denominator.
    """

    team1: str
    team2: str
    format_id: str
    results: List[BattleOutcome]
    win_rate: float
    avg_turns: float

    @classmethod
    def from_outcomes(
        cls, team1: str, team2: str, format_id: str, results: List[BattleOutcome]
    ) -> "SimulationResult":
        total = len(results)
        wins = sum(1 for outcome in results if outcome.winner == "p1")
        win_rate = wins / total * 100 if total else 0.0
        avg_turns = sum(outcome.turns for outcome in results) / total if total else 0.0
        return cls(
            team1=team1,
            team2=team2,
            format_id=format_id,
            results=list(results),
            win_rate=win_rate,
            avg_turns=avg_turns,
        )

    @property
    def wins(self) -> int:
        return sum(1 for outcome in self.results if outcome.winner == "p1")

    @property
    def losses(self) -> int:
        return sum(1 for outcome in self.results if outcome.winner == "p2")

    @property
    def ties(self) -> int:
        return sum(1 for outcome in self.results if outcome.winner == "tie")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team1": self.team1,
            "team2": self.team2,
            "format": self.format_id,
            "results": [outcome.to_dict() for outcome in self.results],
            "winRate": self.win_rate,
            "avgTurns": self.avg_turns,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
        }


@dataclass(frozen=True)
class TeamEvaluation:
    """A team's results against every reference opponent of a format."""

    team: str
    format_id: str
    matchups: List[SimulationResult]

    @property
    def overall_win_rate(self) -> float:
        """Mean of the per-opponent win rates."""
        if not self.matchups:
            return 0.0
        return sum(result.win_rate for result in self.matchups) / len(self.matchups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team": self.team,
            "format": self.format_id,
            "overallWinRate": self.overall_win_rate,
            "matchups": [result.to_dict() for result in self.matchups],
        }
