import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from teamsim.game.exceptions import InvalidTeamError

# NICKNAME|SPECIES|ITEM|ABILITY|MOVES|NATURE|EVS|GENDER|IVS|SHINY|LEVEL|EXTRAS
MIN_PACKED_FIELDS = 5


@dataclass(frozen=True)
class PackedMember:
    nickname: str
    species: str
    item: str
    ability: str
    moves: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PackedTeam:
    """A team in Showdown's packed format, as sent with ``>player``."""

    name: str
    packed: str

    @property
    def members(self) -> List[PackedMember]:
        return parse_packed_team(self.packed, self.name)

    @property
    def species(self) -> List[str]:
        return [member.species for member in self.members]

    def summary(self) -> str:
        return " / ".join(self.species)


def parse_packed_team(packed: str, team_name: str = "team") -> List[PackedMember]:
    """Split a packed team into members.

    SPECIES is blank in the packed format when it equals NICKNAME, so the
    nickname stands in for it.

    Raises:
        InvalidTeamError: If the team is empty or a member has too few fields.
    """
    packed = packed.strip()
    if not packed:
        raise InvalidTeamError(team_name, "team is empty")

    members: List[PackedMember] = []
    for i, entry in enumerate(packed.split("]")):
        parts = entry.split("|")
        if len(parts) < MIN_PACKED_FIELDS or not (parts[0] or parts[1]):
            raise InvalidTeamError(team_name, f"member {i + 1} is malformed: {entry!r}")
        members.append(
            PackedMember(
                nickname=parts[0],
                species=parts[1] or parts[0],
                item=parts[2],
                ability=parts[3],
                moves=[move for move in parts[4].split(",") if move],
            )
        )
    return members


def load_packed_team(path: str) -> PackedTeam:
    """Load a single packed team from a file, validating it eagerly."""
    team_path = Path(path)
    if not team_path.exists():
        raise FileNotFoundError(f"Team file not found: {team_path}")
    team = PackedTeam(name=team_path.stem, packed=team_path.read_text().strip())
    parse_packed_team(team.packed, team.name)
    return team


class TeamLoader:
    """Loads packed reference teams stored as ``<teams_dir>/<format>/*.team``."""

    def __init__(self, format_name: str, teams_dir: str = "data/teams"):
        self.format_name = format_name
        self.teams_dir = Path(teams_dir)

    def _format_dir(self) -> Path:
        format_dir = self.teams_dir / self.format_name
        if not format_dir.exists():
            raise FileNotFoundError(f"Format directory not found: {format_dir}")
        return format_dir

    def load_all(self) -> List[PackedTeam]:
        team_files = sorted(self._format_dir().glob("*.team"))
        if not team_files:
            raise FileNotFoundError(f"No team files found in {self._format_dir()}")
        return [load_packed_team(str(team_file)) for team_file in team_files]

    def load_team(self, name: Optional[str] = None) -> PackedTeam:
        if name is None:
            return random.choice(self.load_all())
        return load_packed_team(str(self._format_dir() / f"{name}.team"))
