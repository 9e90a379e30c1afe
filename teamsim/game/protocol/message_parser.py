from typing import Dict, List, Type

from absl import logging

from teamsim.game.events.battle_event import (
    BattleEndEvent,
    BattleEvent,
    BattleStartEvent,
    BoostEvent,
    ClearBoostEvent,
    CureStatusEvent,
    DamageEvent,
    ErrorEvent,
    FaintEvent,
    FieldConditionEvent,
    GameTypeEvent,
    HealEvent,
    MoveEvent,
    PlayerEvent,
    RequestEvent,
    SetBoostEvent,
    SideConditionEvent,
    StatusEvent,
    SwitchEvent,
    TieEvent,
    TurnEvent,
    UnknownEvent,
    WeatherEvent,
)


class MessageParser:
    MESSAGE_TYPE_MAP: Dict[str, Type[BattleEvent]] = {
        "request": RequestEvent,
        "turn": TurnEvent,
        "start": BattleStartEvent,
        "win": BattleEndEvent,
        "tie": TieEvent,
        "player": PlayerEvent,
        "gametype": GameTypeEvent,
        "switch": SwitchEvent,
        "drag": SwitchEvent,
        "replace": SwitchEvent,
        "-damage": DamageEvent,
        "-heal": HealEvent,
        "faint": FaintEvent,
        "-status": StatusEvent,
        "-curestatus": CureStatusEvent,
        "move": MoveEvent,
        "-boost": BoostEvent,
        "-unboost": BoostEvent,
        "-setboost": SetBoostEvent,
        "-clearboost": ClearBoostEvent,
        "-clearallboost": ClearBoostEvent,
        "-clearnegativeboost": ClearBoostEvent,
        "-clearpositiveboost": ClearBoostEvent,
        "-weather": WeatherEvent,
        "-fieldstart": FieldConditionEvent,
        "-fieldend": FieldConditionEvent,
        "-sidestart": SideConditionEvent,
        "-sideend": SideConditionEvent,
        "error": ErrorEvent,
    }

    def parse(self, raw_message: str) -> BattleEvent:
        parts = raw_message.split("|")
        message_type = parts[1] if len(parts) > 1 else ""

        event_class = self.MESSAGE_TYPE_MAP.get(message_type)
        if event_class is None:
            logging.debug("Unknown message type: %s", message_type)
            return UnknownEvent(raw_message=raw_message, message_type=message_type)

        try:
            return event_class.parse_raw_message(raw_message)
        except (IndexError, ValueError) as e:
            logging.warning("Malformed %s message %r: %s", message_type, raw_message, e)
            return UnknownEvent(raw_message=raw_message, message_type=message_type)

    def parse_chunk(self, chunk: str) -> List[BattleEvent]:
        """Parse a multi-line protocol chunk into events, preserving line order."""
        events: List[BattleEvent] = []
        for line in chunk.split("\n"):
            if not line.strip():
                continue
            events.append(self.parse(line))
        return events
