"""Validated model of the JSON payload carried by ``|request|`` lines."""

import json
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from teamsim.game.events.battle_event import parse_condition


class RequestMove(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    move: str
    id: str
    pp: Optional[int] = None
    maxpp: Optional[int] = None
    target: str = "normal"
    # Showdown sends either a bool or the name of the disabling effect
    disabled: Union[bool, str] = False
    base_power: Optional[int] = Field(default=None, alias="basePower")

    @property
    def usable(self) -> bool:
        if self.disabled:
            return False
        return self.pp is None or self.pp > 0


class ActiveRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    moves: List[RequestMove] = Field(default_factory=list)
    trapped: bool = False
    maybe_trapped: bool = Field(default=False, alias="maybeTrapped")
    can_terastallize: Optional[str] = Field(default=None, alias="canTerastallize")

    def usable_moves(self) -> List[int]:
        """Zero-based indices of moves that are not disabled and have PP left."""
        return [i for i, move in enumerate(self.moves) if move.usable]


class SidePokemon(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    ident: str
    details: str
    condition: str
    active: bool = False
    moves: List[str] = Field(default_factory=list)
    base_ability: Optional[str] = Field(default=None, alias="baseAbility")
    ability: Optional[str] = None
    item: Optional[str] = None
    tera_type: Optional[str] = Field(default=None, alias="teraType")

    @property
    def species(self) -> str:
        return self.details.split(", ")[0]

    @property
    def hp_fraction(self) -> float:
        return parse_condition(self.condition)[0]

    @property
    def status(self) -> Optional[str]:
        return parse_condition(self.condition)[1]

    @property
    def fainted(self) -> bool:
        return self.condition.endswith(" fnt") or self.hp_fraction <= 0

    @property
    def ability_id(self) -> str:
        return self.ability or self.base_ability or ""


class RequestSide(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    pokemon: List[SidePokemon] = Field(default_factory=list)


class BattleRequest(BaseModel):
    """A decision request sent to one side by the simulator.

    Exactly one of ``team_preview``, ``force_switch``, ``active`` or ``wait``
    describes what the side has to do. Switch indices used by commands are
    1-based positions in ``side.pokemon``.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    side: RequestSide
    active: Optional[List[ActiveRequest]] = None
    force_switch: Optional[List[bool]] = Field(default=None, alias="forceSwitch")
    team_preview: bool = Field(default=False, alias="teamPreview")
    wait: bool = False
    rqid: Optional[int] = None

    @classmethod
    def from_json(cls, request_json: str) -> "BattleRequest":
        """Parse and validate a raw request payload.

        Raises:
            ValueError: If the payload is not JSON or fails validation
                (pydantic's ValidationError is a ValueError).
        """
        return cls.model_validate(json.loads(request_json))

    @property
    def needs_force_switch(self) -> bool:
        return bool(self.force_switch) and any(self.force_switch)

    def bench_indices(self) -> List[int]:
        """1-based indices of benched Pokemon that can legally switch in."""
        return [
            i + 1
            for i, pokemon in enumerate(self.side.pokemon)
            if not pokemon.active and not pokemon.fainted
        ]

    def active_pokemon(self) -> List[SidePokemon]:
        return [pokemon for pokemon in self.side.pokemon if pokemon.active]
