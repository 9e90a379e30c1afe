from dataclasses import dataclass
from typing import Dict, Iterable


@dataclass(frozen=True)
class TypeChart:
    effectiveness: Dict[str, Dict[str, float]]

    @classmethod
    def from_defender_chart(cls, chart: Dict[str, Dict[str, float]]) -> "TypeChart":
        """Build a chart from poke-env's defender -> attacker layout."""
        effectiveness: Dict[str, Dict[str, float]] = {}
        for defending_type, row in chart.items():
            for attacking_type, multiplier in row.items():
                effectiveness.setdefault(attacking_type.lower(), {})[
                    defending_type.lower()
                ] = multiplier
        return cls(effectiveness=effectiveness)

    def get_effectiveness(self, attacking_type: str, defending_type: str) -> float:
        attacking_type = attacking_type.lower()
        defending_type = defending_type.lower()

        if attacking_type not in self.effectiveness:
            raise ValueError(f"Unknown attacking type: {attacking_type}")

        if defending_type not in self.effectiveness[attacking_type]:
            raise ValueError(f"Unknown defending type: {defending_type}")

        return self.effectiveness[attacking_type][defending_type]

    def get_multiplier(self, attacking_type: str, defending_types: Iterable[str]) -> float:
        multiplier = 1.0
        for defending_type in defending_types:
            multiplier *= self.get_effectiveness(attacking_type, defending_type)
        return multiplier
