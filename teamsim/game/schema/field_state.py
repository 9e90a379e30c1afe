"""Field conditions tracked from explicit start/end protocol events."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from teamsim.game.schema.enums import SideCondition, Terrain, Weather


@dataclass(frozen=True)
class FieldConditions:
    """Immutable snapshot of weather, terrain, Trick Room and side conditions.

    Side conditions map a player id ("p1"/"p2") to the active conditions on
    that side, with the layer count for stackable hazards.
    """

    weather: Optional[Weather] = None
    terrain: Optional[Terrain] = None
    trick_room: bool = False
    side_conditions: Dict[str, Dict[SideCondition, int]] = field(
        default_factory=lambda: {"p1": {}, "p2": {}}
    )

    def has_side_condition(self, player_id: str, condition: SideCondition) -> bool:
        return condition in self.side_conditions.get(player_id, {})

    def tailwind(self, player_id: str) -> bool:
        return self.has_side_condition(player_id, SideCondition.TAILWIND)

    def reflect(self, player_id: str) -> bool:
        return self.has_side_condition(player_id, SideCondition.REFLECT)

    def light_screen(self, player_id: str) -> bool:
        return self.has_side_condition(player_id, SideCondition.LIGHT_SCREEN)

    def aurora_veil(self, player_id: str) -> bool:
        return self.has_side_condition(player_id, SideCondition.AURORA_VEIL)

    def hazards(self, player_id: str) -> List[SideCondition]:
        return [c for c in self.side_conditions.get(player_id, {}) if c.is_hazard]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weather": self.weather.value if self.weather else None,
            "terrain": self.terrain.value if self.terrain else None,
            "trick_room": self.trick_room,
            "side_conditions": {
                player_id: {c.value: layers for c, layers in conditions.items()}
                for player_id, conditions in self.side_conditions.items()
            },
        }
