"""Battle state reconstructed from the protocol stream."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from teamsim.game.schema.field_state import FieldConditions
from teamsim.game.schema.slot_state import SlotState

PLAYER_IDS = ("p1", "p2")


def opponent_of(player_id: str) -> str:
    return "p2" if player_id == "p1" else "p1"


@dataclass(frozen=True)
class BattleState:
    """Immutable snapshot of what one side has observed about a battle.

    Positions are keyed "p1a", "p1b", "p2a" and "p2b". A position holds None
    when it is empty or its occupant fainted. Stat boosts are tracked per
    position and always stay within [-6, 6].
    """

    slots: Dict[str, Optional[SlotState]] = field(default_factory=dict)
    stat_boosts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    field_conditions: FieldConditions = field(default_factory=FieldConditions)
    turn: int = 0
    game_type: str = "singles"
    our_player_id: Optional[str] = None
    player_usernames: Dict[str, str] = field(default_factory=dict)
    battle_over: bool = False
    winner: Optional[str] = None

    @property
    def opponent_player_id(self) -> Optional[str]:
        if self.our_player_id is None:
            return None
        return opponent_of(self.our_player_id)

    def get_slot(self, slot_id: str) -> Optional[SlotState]:
        return self.slots.get(slot_id)

    def get_boosts(self, slot_id: str) -> Dict[str, int]:
        return dict(self.stat_boosts.get(slot_id, {}))

    def active_slots(self, player_id: str) -> List[Tuple[str, SlotState]]:
        """Occupied, non-fainted positions of a player in position order."""
        return [
            (slot_id, slot)
            for slot_id, slot in sorted(self.slots.items())
            if slot_id.startswith(player_id) and slot is not None and not slot.is_fainted
        ]

    def partner_slot_id(self, slot_id: str) -> str:
        player_id, position = slot_id[:2], slot_id[2:]
        return f"{player_id}{'b' if position == 'a' else 'a'}"

    def get_partner(self, slot_id: str) -> Optional[SlotState]:
        partner = self.slots.get(self.partner_slot_id(slot_id))
        if partner is None or partner.is_fainted:
            return None
        return partner

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "game_type": self.game_type,
            "our_player_id": self.our_player_id,
            "slots": {
                slot_id: slot.to_dict() if slot else None
                for slot_id, slot in sorted(self.slots.items())
            },
            "stat_boosts": self.stat_boosts,
            "field": self.field_conditions.to_dict(),
            "battle_over": self.battle_over,
            "winner": self.winner,
        }

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)
