from dataclasses import dataclass, field
from typing import Any, Dict, List

from teamsim.game.schema.object_name_normalizer import normalize_name


@dataclass(frozen=True)
class Pokemon:
    id: str
    name: str
    types: List[str]
    base_stats: Dict[str, int]
    abilities: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_showdown_entry(cls, species_id: str, entry: Dict[str, Any]) -> "Pokemon":
        return cls(
            id=species_id,
            name=entry.get("name", species_id),
            types=list(entry.get("types", [])),
            base_stats=dict(entry.get("baseStats", {})),
            abilities=dict(entry.get("abilities", {})),
        )

    @property
    def ability_ids(self) -> List[str]:
        return [normalize_name(ability) for ability in self.abilities.values()]

    def has_ability(self, ability_id: str) -> bool:
        return ability_id in self.ability_ids

    @property
    def speed(self) -> int:
        return self.base_stats.get("spe", 0)
