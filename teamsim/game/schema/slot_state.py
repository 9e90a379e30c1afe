"""Per-position state of an active Pokemon."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SlotState:
    """Immutable state of the Pokemon currently occupying a battle position.

    A fresh SlotState is created whenever something switches, is dragged or is
    revealed into the position, so everything here describes the current stint
    on the field only. Known moves are Showdown ids and grow as moves are seen.
    """

    species: str
    types: List[str] = field(default_factory=list)
    known_moves: List[str] = field(default_factory=list)
    hp_fraction: float = 1.0
    status: Optional[str] = None
    last_move: Optional[str] = None
    fake_out_used: bool = False
    switched_in_this_turn: bool = True
    turns_out: int = 0
    protect_streak: int = 0

    @property
    def is_fainted(self) -> bool:
        return self.hp_fraction <= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species": self.species,
            "types": list(self.types),
            "known_moves": list(self.known_moves),
            "hp_fraction": round(self.hp_fraction, 3),
            "status": self.status,
            "last_move": self.last_move,
            "fake_out_used": self.fake_out_used,
            "turns_out": self.turns_out,
            "protect_streak": self.protect_streak,
        }
