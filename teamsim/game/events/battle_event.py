"""Typed protocol events parsed from raw Showdown battle stream lines."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple


def _parse_ident(ident: str) -> Tuple[str, str, str]:
    """Split a protocol identifier into (player_id, position, name).

    Examples:
        >>> _parse_ident("p1a: Incineroar")
        ('p1', 'a', 'Incineroar')
        >>> _parse_ident("p2: Amoonguss")
        ('p2', '', 'Amoonguss')
    """
    ident_parts = ident.split(": ", 1)
    player_id = ident_parts[0][:2]
    position = ident_parts[0][2:3]
    name = ident_parts[1] if len(ident_parts) > 1 else ""
    return player_id, position, name


def parse_condition(condition: str) -> Tuple[float, Optional[str]]:
    """Parse an HP condition string into (hp_fraction, status).

    Handles "100/100", "45/100 par", "0 fnt" and bare percentages ("62").
    """
    condition = condition.strip()
    if not condition:
        return 1.0, None

    hp_part, _, status_part = condition.partition(" ")
    status = status_part or None
    if status == "fnt" or hp_part == "0":
        return 0.0, None

    if "/" in hp_part:
        current, maximum = hp_part.split("/", 1)
        max_hp = int(maximum)
        if max_hp <= 0:
            return 0.0, status
        return int(current) / max_hp, status

    return int(hp_part) / 100, status


class BattleEvent(ABC):
    @classmethod
    @abstractmethod
    def parse_raw_message(cls, raw_message: str) -> "BattleEvent":
        pass


@dataclass(frozen=True)
class TurnEvent(BattleEvent):
    raw_message: str
    turn_number: int

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "TurnEvent":
        parts = raw_message.split("|")
        return cls(raw_message=raw_message, turn_number=int(parts[2]))


@dataclass(frozen=True)
class BattleStartEvent(BattleEvent):
    raw_message: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "BattleStartEvent":
        return cls(raw_message=raw_message)


@dataclass(frozen=True)
class BattleEndEvent(BattleEvent):
    raw_message: str
    winner: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "BattleEndEvent":
        parts = raw_message.split("|")
        return cls(raw_message=raw_message, winner=parts[2].strip())


@dataclass(frozen=True)
class TieEvent(BattleEvent):
    raw_message: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "TieEvent":
        return cls(raw_message=raw_message)


@dataclass(frozen=True)
class PlayerEvent(BattleEvent):
    raw_message: str
    player_id: str
    username: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "PlayerEvent":
        parts = raw_message.split("|")
        username = parts[3] if len(parts) > 3 else ""
        return cls(raw_message=raw_message, player_id=parts[2], username=username)


@dataclass(frozen=True)
class GameTypeEvent(BattleEvent):
    raw_message: str
    game_type: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "GameTypeEvent":
        parts = raw_message.split("|")
        return cls(raw_message=raw_message, game_type=parts[2])


@dataclass(frozen=True)
class SwitchEvent(BattleEvent):
    """A Pokemon entering a position via switch, drag or replace (Illusion)."""

    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    species: str
    kind: str
    hp_fraction: float = 1.0
    status: Optional[str] = None

    @property
    def slot_id(self) -> str:
        return f"{self.player_id}{self.position}"

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "SwitchEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = _parse_ident(parts[2])
        species = parts[3].split(", ")[0] if len(parts) > 3 else pokemon_name

        hp_fraction, status = 1.0, None
        if len(parts) > 4 and parts[4]:
            hp_fraction, status = parse_condition(parts[4])

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            species=species,
            kind=parts[1],
            hp_fraction=hp_fraction,
            status=status,
        )


@dataclass(frozen=True)
class DamageEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    hp_fraction: float
    status: Optional[str] = None

    @property
    def slot_id(self) -> str:
        return f"{self.player_id}{self.position}"

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "DamageEvent":
        parts = raw_message.split("|")
        player_id, position, _ = _parse_ident(parts[2])
        hp_fraction, status = parse_condition(parts[3])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            hp_fraction=hp_fraction,
            status=status,
        )


@dataclass(frozen=True)
class HealEvent(DamageEvent):
    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "HealEvent":
        parts = raw_message.split("|")
        player_id, position, _ = _parse_ident(parts[2])
        hp_fraction, status = parse_condition(parts[3])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            hp_fraction=hp_fraction,
            status=status,
        )


@dataclass(frozen=True)
class FaintEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str

    @property
    def slot_id(self) -> str:
        return f"{self.player_id}{self.position}"

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "FaintEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = _parse_ident(parts[2])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
        )


@dataclass(frozen=True)
class StatusEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    status: str

    @property
    def slot_id(self) -> str:
        return f"{self.player_id}{self.position}"

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "StatusEvent":
        parts = raw_message.split("|")
        player_id, position, _ = _parse_ident(parts[2])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            status=parts[3],
        )


@dataclass(frozen=True)
class CureStatusEvent(StatusEvent):
    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "CureStatusEvent":
        parts = raw_message.split("|")
        player_id, position, _ = _parse_ident(parts[2])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            status=parts[3] if len(parts) > 3 else "",
        )


@dataclass(frozen=True)
class MoveEvent(BattleEvent):
    raw_message: str
    player_id: str
    position: str
    pokemon_name: str
    move_name: str
    target_player: Optional[str] = None
    target_position: Optional[str] = None
    spread: bool = False

    @property
    def slot_id(self) -> str:
        return f"{self.player_id}{self.position}"

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "MoveEvent":
        parts = raw_message.split("|")
        player_id, position, pokemon_name = _parse_ident(parts[2])

        target_player = None
        target_position = None
        if len(parts) > 4 and parts[4] and not parts[4].startswith("["):
            target_player, target_position, _ = _parse_ident(parts[4])

        spread = any(part.startswith("[spread]") for part in parts[4:])

        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            pokemon_name=pokemon_name,
            move_name=parts[3],
            target_player=target_player,
            target_position=target_position,
            spread=spread,
        )


@dataclass(frozen=True)
class BoostEvent(BattleEvent):
    """A stat stage change; unboosts carry is_unboost=True and a positive amount."""

    raw_message: str
    player_id: str
    position: str
    stat: str
    amount: int
    is_unboost: bool = False

    @property
    def slot_id(self) -> str:
        return f"{self.player_id}{self.position}"

    @property
    def delta(self) -> int:
        return -self.amount if self.is_unboost else self.amount

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "BoostEvent":
        parts = raw_message.split("|")
        player_id, position, _ = _parse_ident(parts[2])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            stat=parts[3],
            amount=int(parts[4]),
            is_unboost=parts[1] == "-unboost",
        )


@dataclass(frozen=True)
class SetBoostEvent(BattleEvent):
    """A stat stage set to an absolute value, as Belly Drum does."""

    raw_message: str
    player_id: str
    position: str
    stat: str
    amount: int

    @property
    def slot_id(self) -> str:
        return f"{self.player_id}{self.position}"

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "SetBoostEvent":
        parts = raw_message.split("|")
        player_id, position, _ = _parse_ident(parts[2])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            stat=parts[3],
            amount=int(parts[4]),
        )


CLEAR_BOOST_SIGNS = {"-clearnegativeboost": -1, "-clearpositiveboost": 1}


@dataclass(frozen=True)
class ClearBoostEvent(BattleEvent):
    """Stat stages wiped by Haze, Clear Smog, White Herb and the like.

    ``-clearallboost`` names no Pokemon and covers every position, so
    ``slot_id`` is None. ``only_sign`` limits the wipe to negative (-1) or
    positive (1) stages; 0 clears everything.
    """

    raw_message: str
    player_id: Optional[str] = None
    position: Optional[str] = None
    only_sign: int = 0

    @property
    def slot_id(self) -> Optional[str]:
        if self.player_id is None:
            return None
        return f"{self.player_id}{self.position}"

    def clears(self, stage: int) -> bool:
        return self.only_sign == 0 or stage * self.only_sign > 0

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "ClearBoostEvent":
        parts = raw_message.split("|")
        if parts[1] == "-clearallboost":
            return cls(raw_message=raw_message)
        player_id, position, _ = _parse_ident(parts[2])
        return cls(
            raw_message=raw_message,
            player_id=player_id,
            position=position,
            only_sign=CLEAR_BOOST_SIGNS.get(parts[1], 0),
        )


@dataclass(frozen=True)
class WeatherEvent(BattleEvent):
    raw_message: str
    weather: str
    upkeep: bool = False

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "WeatherEvent":
        parts = raw_message.split("|")
        upkeep = "[upkeep]" in parts[3:]
        return cls(raw_message=raw_message, weather=parts[2], upkeep=upkeep)


@dataclass(frozen=True)
class FieldConditionEvent(BattleEvent):
    """Start or end of a field-wide condition such as Trick Room or a terrain."""

    raw_message: str
    condition: str
    started: bool

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "FieldConditionEvent":
        parts = raw_message.split("|")
        return cls(
            raw_message=raw_message,
            condition=parts[2],
            started=parts[1] == "-fieldstart",
        )


@dataclass(frozen=True)
class SideConditionEvent(BattleEvent):
    """Start or end of a side condition (screens, Tailwind, hazards)."""

    raw_message: str
    player_id: str
    condition: str
    started: bool

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "SideConditionEvent":
        parts = raw_message.split("|")
        return cls(
            raw_message=raw_message,
            player_id=parts[2].split(":")[0][:2],
            condition=parts[3],
            started=parts[1] == "-sidestart",
        )


@dataclass(frozen=True)
class RequestEvent(BattleEvent):
    raw_message: str
    request_json: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "RequestEvent":
        # The payload itself may contain "|" characters, so keep everything after the tag
        request_json = raw_message[len("|request|") :]
        return cls(raw_message=raw_message, request_json=request_json)


@dataclass(frozen=True)
class ErrorEvent(BattleEvent):
    """Event for error messages from the simulator."""

    raw_message: str
    error_text: str

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "ErrorEvent":
        parts = raw_message.split("|")
        error_text = "|".join(parts[2:]) if len(parts) > 2 else ""
        return cls(raw_message=raw_message, error_text=error_text)


@dataclass(frozen=True)
class UnknownEvent(BattleEvent):
    raw_message: str
    message_type: Optional[str] = None

    @classmethod
    def parse_raw_message(cls, raw_message: str) -> "UnknownEvent":
        parts = raw_message.split("|")
        message_type = parts[1] if len(parts) > 1 else None
        return cls(raw_message=raw_message, message_type=message_type)
