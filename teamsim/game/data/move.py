from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PROTECT_FAMILY = frozenset(
    {
        "protect",
        "detect",
        "wideguard",
        "quickguard",
        "spikyshield",
        "kingsshield",
        "banefulbunker",
        "silktrap",
        "obstruct",
        "burningbulwark",
        "maxguard",
    }
)

ENTRY_HAZARDS = frozenset({"stealthrock", "spikes", "toxicspikes", "stickyweb"})

# Showdown target kinds that take a foe slot as target in doubles.
TARGETED_KINDS = frozenset({"normal", "any", "adjacentFoe"})

SPREAD_KINDS = frozenset({"allAdjacentFoes", "allAdjacent"})

SELF_BOOST_KINDS = frozenset({"self", "allySide", "adjacentAllyOrSelf"})


@dataclass(frozen=True)
class Move:
    id: str
    name: str
    type: str
    category: str
    base_power: int = 0
    accuracy: Optional[int] = None
    priority: int = 0
    target: str = "normal"
    boosts: Dict[str, int] = field(default_factory=dict)
    self_boosts: Dict[str, int] = field(default_factory=dict)
    heals: bool = False
    status: Optional[str] = None
    volatile_status: Optional[str] = None
    side_condition: Optional[str] = None
    weather: Optional[str] = None
    pseudo_weather: Optional[str] = None
    terrain: Optional[str] = None
    flags: List[str] = field(default_factory=list)

    @classmethod
    def from_showdown_entry(cls, move_id: str, entry: Dict[str, Any]) -> "Move":
        """Build a Move from a Showdown moves.ts entry as exposed by poke-env.

        An accuracy of ``True`` in the source data means the move never misses
        and is stored as ``None``.
        """
        accuracy = entry.get("accuracy", True)
        self_effect = entry.get("self") or {}
        category = entry.get("category", "Status")
        flags = entry.get("flags") or {}
        # Draining attacks carry the heal flag too, so only status moves count
        heals = bool(entry.get("heal")) or (category == "Status" and "heal" in flags)
        return cls(
            id=move_id,
            name=entry.get("name", move_id),
            type=entry.get("type", "Normal"),
            category=category,
            base_power=int(entry.get("basePower", 0) or 0),
            accuracy=None if accuracy is True else int(accuracy),
            priority=int(entry.get("priority", 0)),
            target=entry.get("target", "normal"),
            boosts=dict(entry.get("boosts") or {}),
            self_boosts=dict(self_effect.get("boosts") or {}),
            heals=heals,
            status=entry.get("status"),
            volatile_status=entry.get("volatileStatus"),
            side_condition=entry.get("sideCondition"),
            weather=entry.get("weather"),
            pseudo_weather=entry.get("pseudoWeather"),
            terrain=entry.get("terrain"),
            flags=sorted(flags),
        )

    @property
    def is_damaging(self) -> bool:
        return self.category != "Status" and self.base_power > 0

    @property
    def accuracy_fraction(self) -> float:
        return 1.0 if self.accuracy is None else self.accuracy / 100

    @property
    def is_protect(self) -> bool:
        return self.id in PROTECT_FAMILY

    @property
    def is_hazard(self) -> bool:
        return self.id in ENTRY_HAZARDS

    @property
    def is_spread(self) -> bool:
        return self.target in SPREAD_KINDS

    @property
    def takes_target(self) -> bool:
        return self.target in TARGETED_KINDS

    @property
    def setup_boosts(self) -> Dict[str, int]:
        """Positive stat stages this move grants its user."""
        if self.category != "Status":
            return {}
        if self.target in SELF_BOOST_KINDS:
            source = self.boosts
        else:
            source = self.self_boosts
        return {stat: amount for stat, amount in source.items() if amount > 0}
