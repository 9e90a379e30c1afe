"""State transition logic for the battle state tracker.

StateTransition.apply() folds one protocol event into an immutable
BattleState and returns the new state. Inputs are never mutated.
"""

import json
from dataclasses import replace
from typing import Dict, Optional

from absl import logging

from teamsim.game.data.game_data import GameData
from teamsim.game.data.move import PROTECT_FAMILY
from teamsim.game.events.battle_event import (
    BattleEndEvent,
    BattleEvent,
    BoostEvent,
    ClearBoostEvent,
    CureStatusEvent,
    DamageEvent,
    FaintEvent,
    FieldConditionEvent,
    GameTypeEvent,
    MoveEvent,
    PlayerEvent,
    RequestEvent,
    SetBoostEvent,
    SideConditionEvent,
    StatusEvent,
    SwitchEvent,
    TieEvent,
    TurnEvent,
    WeatherEvent,
)
from teamsim.game.schema.battle_state import BattleState
from teamsim.game.schema.enums import SideCondition, Terrain, Weather
from teamsim.game.schema.object_name_normalizer import (
    normalize_effect_name,
    normalize_name,
)
from teamsim.game.schema.slot_state import SlotState

MIN_BOOST = -6
MAX_BOOST = 6

STACKING_HAZARD_LAYERS = {SideCondition.SPIKES: 3, SideCondition.TOXIC_SPIKES: 2}


class StateTransition:
    """Applies battle events to battle states.

    Species typing is looked up in the supplied GameData. Unknown species get
    an empty type list rather than an error.
    """

    def __init__(self, game_data: GameData) -> None:
        self._game_data = game_data

    def apply(self, state: BattleState, event: BattleEvent) -> BattleState:
        """Apply an event to a battle state, returning a new state.

        Args:
            state: Current battle state (immutable)
            event: Battle event to apply

        Returns:
            New battle state with event applied (original unchanged). Events
            that carry no tracked information return the input state.
        """
        if isinstance(event, SwitchEvent):
            return self._apply_switch(state, event)
        elif isinstance(event, FaintEvent):
            return self._apply_faint(state, event)
        elif isinstance(event, MoveEvent):
            return self._apply_move(state, event)
        elif isinstance(event, BoostEvent):
            return self._apply_boost(state, event)
        elif isinstance(event, SetBoostEvent):
            return self._apply_set_boost(state, event)
        elif isinstance(event, ClearBoostEvent):
            return self._apply_clear_boost(state, event)
        elif isinstance(event, DamageEvent):
            # HealEvent is a DamageEvent subclass; both just report a new condition
            return self._apply_condition(state, event)
        elif isinstance(event, CureStatusEvent):
            return self._update_slot(state, event.slot_id, status=None)
        elif isinstance(event, StatusEvent):
            return self._update_slot(state, event.slot_id, status=event.status)
        elif isinstance(event, TurnEvent):
            return self._apply_turn(state, event)
        elif isinstance(event, WeatherEvent):
            return self._apply_weather(state, event)
        elif isinstance(event, FieldConditionEvent):
            return self._apply_field_condition(state, event)
        elif isinstance(event, SideConditionEvent):
            return self._apply_side_condition(state, event)
        elif isinstance(event, PlayerEvent):
            usernames = {**state.player_usernames, event.player_id: event.username}
            return replace(state, player_usernames=usernames)
        elif isinstance(event, GameTypeEvent):
            return replace(state, game_type=event.game_type)
        elif isinstance(event, RequestEvent):
            return self._apply_request(state, event)
        elif isinstance(event, BattleEndEvent):
            return replace(state, battle_over=True, winner=event.winner)
        elif isinstance(event, TieEvent):
            return replace(state, battle_over=True, winner=None)
        return state

    def _update_slot(
        self, state: BattleState, slot_id: str, **changes: object
    ) -> BattleState:
        slot = state.slots.get(slot_id)
        if slot is None:
            return state
        new_slot = replace(slot, **changes)
        return replace(state, slots={**state.slots, slot_id: new_slot})

    def _apply_switch(self, state: BattleState, event: SwitchEvent) -> BattleState:
        """Reset a position for a switch, drag or replace.

        Boosts always reset. Fake Out usage carries over only when the exact
        same species re-enters the same position.
        """
        slot_id = event.slot_id
        previous = state.slots.get(slot_id)
        fake_out_used = (
            previous is not None
            and previous.species == event.species
            and previous.fake_out_used
        )

        new_slot = SlotState(
            species=event.species,
            types=self._game_data.species_types(event.species),
            hp_fraction=event.hp_fraction,
            status=event.status,
            fake_out_used=fake_out_used,
        )
        return replace(
            state,
            slots={**state.slots, slot_id: new_slot},
            stat_boosts={**state.stat_boosts, slot_id: {}},
        )

    def _apply_faint(self, state: BattleState, event: FaintEvent) -> BattleState:
        slot_id = event.slot_id
        return replace(
            state,
            slots={**state.slots, slot_id: None},
            stat_boosts={**state.stat_boosts, slot_id: {}},
        )

    def _apply_move(self, state: BattleState, event: MoveEvent) -> BattleState:
        slot = state.slots.get(event.slot_id)
        if slot is None:
            logging.debug("Move %s from untracked position %s", event.move_name, event.slot_id)
            return state

        move_id = normalize_name(event.move_name)
        known_moves = list(slot.known_moves)
        if move_id not in known_moves:
            known_moves.append(move_id)

        protect_streak = slot.protect_streak + 1 if move_id in PROTECT_FAMILY else 0

        return self._update_slot(
            state,
            event.slot_id,
            known_moves=known_moves,
            last_move=move_id,
            fake_out_used=slot.fake_out_used or move_id == "fakeout",
            protect_streak=protect_streak,
            switched_in_this_turn=False,
        )

    def _apply_boost(self, state: BattleState, event: BoostEvent) -> BattleState:
        slot_id = event.slot_id
        boosts: Dict[str, int] = dict(state.stat_boosts.get(slot_id, {}))
        current = boosts.get(event.stat, 0)
        boosts[event.stat] = max(MIN_BOOST, min(MAX_BOOST, current + event.delta))
        return replace(state, stat_boosts={**state.stat_boosts, slot_id: boosts})

    def _apply_set_boost(self, state: BattleState, event: SetBoostEvent) -> BattleState:
        slot_id = event.slot_id
        boosts: Dict[str, int] = dict(state.stat_boosts.get(slot_id, {}))
        boosts[event.stat] = max(MIN_BOOST, min(MAX_BOOST, event.amount))
        return replace(state, stat_boosts={**state.stat_boosts, slot_id: boosts})

    def _apply_clear_boost(
        self, state: BattleState, event: ClearBoostEvent
    ) -> BattleState:
        slot_ids = list(state.stat_boosts) if event.slot_id is None else [event.slot_id]
        stat_boosts = dict(state.stat_boosts)
        for slot_id in slot_ids:
            stat_boosts[slot_id] = {
                stat: stage
                for stat, stage in stat_boosts.get(slot_id, {}).items()
                if not event.clears(stage)
            }
        return replace(state, stat_boosts=stat_boosts)

    def _apply_condition(self, state: BattleState, event: DamageEvent) -> BattleState:
        return self._update_slot(
            state,
            event.slot_id,
            hp_fraction=max(0.0, min(1.0, event.hp_fraction)),
            status=event.status,
        )

    def _apply_turn(self, state: BattleState, event: TurnEvent) -> BattleState:
        slots: Dict[str, Optional[SlotState]] = {}
        for slot_id, slot in state.slots.items():
            if slot is None:
                slots[slot_id] = None
                continue
            slots[slot_id] = replace(
                slot, turns_out=slot.turns_out + 1, switched_in_this_turn=False
            )
        return replace(state, slots=slots, turn=event.turn_number)

    def _apply_weather(self, state: BattleState, event: WeatherEvent) -> BattleState:
        # Upkeep lines only announce that the current weather continues
        if event.upkeep:
            return state

        try:
            weather: Optional[Weather] = Weather.from_protocol(event.weather)
        except ValueError:
            logging.warning("Ignoring unknown weather: %s", event.weather)
            return state

        field_conditions = replace(state.field_conditions, weather=weather)
        return replace(state, field_conditions=field_conditions)

    def _apply_field_condition(
        self, state: BattleState, event: FieldConditionEvent
    ) -> BattleState:
        condition = normalize_effect_name(event.condition)
        field_conditions = state.field_conditions

        if condition == "trickroom":
            field_conditions = replace(field_conditions, trick_room=event.started)
        elif condition in {terrain.value for terrain in Terrain}:
            terrain = Terrain(condition)
            if event.started:
                field_conditions = replace(field_conditions, terrain=terrain)
            elif field_conditions.terrain == terrain:
                field_conditions = replace(field_conditions, terrain=None)
        else:
            return state

        return replace(state, field_conditions=field_conditions)

    def _apply_side_condition(
        self, state: BattleState, event: SideConditionEvent
    ) -> BattleState:
        try:
            condition = SideCondition(normalize_effect_name(event.condition))
        except ValueError:
            logging.debug("Untracked side condition: %s", event.condition)
            return state

        field_conditions = state.field_conditions
        side = dict(field_conditions.side_conditions.get(event.player_id, {}))

        if event.started:
            max_layers = STACKING_HAZARD_LAYERS.get(condition, 1)
            side[condition] = min(side.get(condition, 0) + 1, max_layers)
        else:
            side.pop(condition, None)

        side_conditions = {**field_conditions.side_conditions, event.player_id: side}
        return replace(
            state,
            field_conditions=replace(field_conditions, side_conditions=side_conditions),
        )

    def _apply_request(self, state: BattleState, event: RequestEvent) -> BattleState:
        if state.our_player_id is not None:
            return state
        try:
            request = json.loads(event.request_json)
        except ValueError:
            # The decision engine reports malformed requests
            return state
        side = request.get("side") if isinstance(request, dict) else None
        if isinstance(side, dict) and side.get("id") in ("p1", "p2"):
            return replace(state, our_player_id=side["id"])
        return state
