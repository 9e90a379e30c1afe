"""Heuristic engine for doubles battles."""

import random
from typing import Dict, List, Optional, Set, Tuple

from absl import logging

from teamsim.agents import doubles_rules, scoring
from teamsim.agents.decision_engine import DecisionEngine
from teamsim.agents.doubles_rules import EXCLUDED, SlotContext
from teamsim.game.data.game_data import GameData
from teamsim.game.data.move import TARGETED_KINDS
from teamsim.game.interface.action_command import ActionCommand
from teamsim.game.interface.battle_request import (
    ActiveRequest,
    BattleRequest,
    SidePokemon,
)
from teamsim.game.protocol.battle_stream import BattleStreamView
from teamsim.game.schema.battle_state import opponent_of
from teamsim.game.schema.slot_state import SlotState

LEAD_ROLES = ("fakeout", "weather", "intimidate", "support", "other")

WEATHER_SETTER_ABILITIES = frozenset(
    {
        "drought",
        "drizzle",
        "sandstream",
        "snowwarning",
        "orichalcumpulse",
        "electricsurge",
        "grassysurge",
        "psychicsurge",
        "mistysurge",
        "hadronengine",
    }
)
LEAD_WEATHER_ABILITIES = frozenset({"drought", "drizzle", "sandstream"})
LEAD_SPREAD_MOVES = frozenset(
    {
        "earthquake",
        "rockslide",
        "heatwave",
        "dazzlinggleam",
        "makeitrain",
        "bleakwindstorm",
        "surf",
        "discharge",
        "blizzard",
    }
)
SUPPORT_MOVEPOOL = doubles_rules.REDIRECTION_MOVES | doubles_rules.SUPPORT_MOVES

LEAD_VEIL_SCORE = 3000
LEAD_FAKE_OUT_SCORE = 1500
LEAD_INTIMIDATE_SCORE = 1000
LEAD_TAILWIND_SCORE = 800
LEAD_TRICK_ROOM_SCORE = 700
LEAD_WEATHER_SCORE = 600
LEAD_SPREAD_SCORE = 400
LEAD_REDIRECTION_SCORE = 500

SWITCH_INTIMIDATE_BONUS = 300
SWITCH_FAKE_OUT_BONUS = 200
SWITCH_FIELD_SETTER_BONUS = 100
SWITCH_SPEED_FIT_BONUS = 50
SWITCH_SUPPORT_BONUS = 50
SWITCH_SPREAD_BONUS = 30
SWITCH_STATUS_PENALTY = 40
SWITCH_PARTNER_SYNERGY_BONUS = 100
SWITCH_WEATHER_FIT_BONUS = 50
SWITCH_JITTER = 1.0


def lead_role(pokemon: SidePokemon) -> str:
    """First role in LEAD_ROLES that fits this team member."""
    moves = set(pokemon.moves)
    if "fakeout" in moves:
        return "fakeout"
    if pokemon.ability_id in WEATHER_SETTER_ABILITIES:
        return "weather"
    if pokemon.ability_id == "intimidate":
        return "intimidate"
    if moves & SUPPORT_MOVEPOOL:
        return "support"
    return "other"


def lead_score(pokemon: SidePokemon) -> float:
    moves = set(pokemon.moves)
    ability = pokemon.ability_id
    score = 0.0
    if "auroraveil" in moves and ability == "snowwarning":
        score += LEAD_VEIL_SCORE
    if "fakeout" in moves:
        score += LEAD_FAKE_OUT_SCORE
    if ability == "intimidate":
        score += LEAD_INTIMIDATE_SCORE
    if "tailwind" in moves:
        score += LEAD_TAILWIND_SCORE
    if "trickroom" in moves:
        score += LEAD_TRICK_ROOM_SCORE
    if ability in LEAD_WEATHER_ABILITIES:
        score += LEAD_WEATHER_SCORE
    score += LEAD_SPREAD_SCORE * len(moves & LEAD_SPREAD_MOVES)
    if moves & doubles_rules.REDIRECTION_MOVES:
        score += LEAD_REDIRECTION_SCORE
    return score


def own_side_target(kind: str, position: int) -> Optional[int]:
    """Showdown target for a move aimed at our own side of the field.

    Our positions are numbered -1 and -2. ``adjacentAlly`` goes to the
    partner and ``adjacentAllyOrSelf`` is aimed back at the user.
    """
    if kind == "adjacentAlly":
        return position - 2
    if kind == "adjacentAllyOrSelf":
        return -(position + 1)
    return None


def default_target(kind: str, position: int) -> Optional[int]:
    if kind in TARGETED_KINDS:
        return 1
    return own_side_target(kind, position)


class DoublesAgent(DecisionEngine):
    """Engine that plays two active Pokemon per side.

    Each active position is decided on its own, but with knowledge of the
    partner's moves and tracked state, so support moves can react to what
    the partner could do this turn. The two decisions are not optimized
    jointly. Move choice runs the ordered rules in ``doubles_rules`` and keeps
    the best (move, target) pair.

    Switch-in choices add a small random jitter to break ties between
    otherwise equal candidates; pass ``seed`` for reproducible battles.
    """

    def __init__(
        self,
        player_id: str,
        view: BattleStreamView,
        game_data: GameData,
        battle_id: str = "",
        seed: Optional[int] = None,
    ) -> None:
        super().__init__(player_id, view, game_data, battle_id)
        self._random = random.Random(seed)

    def choose_team_order(self, request: BattleRequest) -> ActionCommand:
        """Lead with the best member of the highest priority role, plus its best partner."""
        members = list(enumerate(request.side.pokemon, start=1))
        roles = {index: lead_role(pokemon) for index, pokemon in members}
        scores = {index: lead_score(pokemon) for index, pokemon in members}

        by_role = sorted(
            roles, key=lambda i: (LEAD_ROLES.index(roles[i]), -scores[i], i)
        )
        order = by_role[:1]
        remaining = [i for i in by_role if i not in order]
        if remaining:
            order.append(max(remaining, key=lambda i: (scores[i], -i)))
        order.extend(i for i in by_role if i not in order)

        logging.debug(
            "[%s] %s lead roles %s, order %s", self._battle_id, self._player_id, roles, order
        )
        return ActionCommand.team("".join(str(i) for i in order))

    def choose_forced_switch(self, request: BattleRequest) -> List[ActionCommand]:
        """Fill every position that needs a replacement, passing when the bench runs out."""
        force_switch = request.force_switch or []
        bench = request.bench_indices()
        chosen: Set[int] = set()
        commands: List[ActionCommand] = []

        for position, needs_switch in enumerate(force_switch):
            if not needs_switch:
                commands.append(ActionCommand.pass_())
                continue
            candidates = [i for i in bench if i not in chosen]
            if not candidates:
                commands.append(ActionCommand.pass_())
                continue
            partner = self._switch_partner(request, position, chosen)
            best = max(
                candidates,
                key=lambda i: self.score_switch_in(request.side.pokemon[i - 1], partner),
            )
            chosen.add(best)
            commands.append(ActionCommand.switch(best))
        return commands

    def _switch_partner(
        self, request: BattleRequest, position: int, chosen: Set[int]
    ) -> Optional[SidePokemon]:
        """The Pokemon that will stand next to whatever switches into ``position``."""
        if chosen:
            return request.side.pokemon[min(chosen) - 1]
        other = 1 - position
        if other < len(request.side.pokemon):
            pokemon = request.side.pokemon[other]
            if pokemon.active and not pokemon.fainted:
                return pokemon
        return None

    def score_switch_in(
        self, pokemon: SidePokemon, partner: Optional[SidePokemon] = None
    ) -> float:
        """Value of bringing ``pokemon`` in next to ``partner``.

        Combines HP, the readiness bonuses a fresh switch-in gets (Intimidate,
        Fake Out, weather and terrain setters), type matchups against both
        known foes, fit with the current speed field, support and spread
        movepools, a status penalty and synergy with the partner.
        """
        moves = set(pokemon.moves)
        ability = pokemon.ability_id
        field = self._state.field_conditions

        score = pokemon.hp_fraction * 100
        if ability == "intimidate":
            score += SWITCH_INTIMIDATE_BONUS
        if "fakeout" in moves:
            score += SWITCH_FAKE_OUT_BONUS
        if ability in WEATHER_SETTER_ABILITIES:
            score += SWITCH_FIELD_SETTER_BONUS

        types = self._game_data.species_types(pokemon.species)
        for _, foe in self._foe_targets():
            score += scoring.matchup_bonus(self._game_data, types, foe.types)

        speed = doubles_rules.species_speed(self._game_data, pokemon.species)
        slow = speed < doubles_rules.TRICK_ROOM_SPEED_THRESHOLD
        if field.trick_room:
            score += SWITCH_SPEED_FIT_BONUS if slow else -SWITCH_SPEED_FIT_BONUS
        elif field.tailwind(self._player_id) and not slow:
            score += SWITCH_SPEED_FIT_BONUS

        if moves & SUPPORT_MOVEPOOL:
            score += SWITCH_SUPPORT_BONUS
        score += SWITCH_SPREAD_BONUS * len(moves & LEAD_SPREAD_MOVES)
        if pokemon.status:
            score -= SWITCH_STATUS_PENALTY

        if (
            partner is not None
            and moves & doubles_rules.REDIRECTION_MOVES
            and set(partner.moves) & doubles_rules.SETUP_MOVES
        ):
            score += SWITCH_PARTNER_SYNERGY_BONUS
        weather = field.weather
        if weather in doubles_rules.WEATHER_TYPES and (
            set(types) & doubles_rules.WEATHER_TYPES[weather]
            or ability in doubles_rules.WEATHER_ABILITIES[weather]
        ):
            score += SWITCH_WEATHER_FIT_BONUS

        return score + self._random.uniform(0, SWITCH_JITTER)

    def choose_turn(self, request: BattleRequest) -> List[ActionCommand]:
        commands: List[ActionCommand] = []
        actives = request.active or []
        for position, active in enumerate(actives):
            if position >= len(request.side.pokemon):
                commands.append(ActionCommand.pass_())
                continue
            pokemon = request.side.pokemon[position]
            if not pokemon.active or pokemon.fainted:
                commands.append(ActionCommand.pass_())
                continue
            ctx = self._slot_context(request, position)
            commands.append(self.choose_move_for_slot(active, ctx, position))
        return commands or [ActionCommand.pass_()]

    def _slot_context(self, request: BattleRequest, position: int) -> SlotContext:
        actives = request.active or []
        side = request.side.pokemon
        user = side[position]
        slot_id = f"{self._player_id}{'ab'[position]}"

        partner: Optional[SidePokemon] = None
        partner_moves = []
        other = 1 - position
        if other < len(side) and side[other].active and not side[other].fainted:
            partner = side[other]
            if other < len(actives):
                partner_moves = actives[other].moves

        return SlotContext(
            game_data=self._game_data,
            player_id=self._player_id,
            user=user,
            user_types=self._game_data.species_types(user.species),
            user_slot=self._state.get_slot(slot_id),
            user_boosts=self._state.get_boosts(slot_id),
            partner=partner,
            partner_types=(
                self._game_data.species_types(partner.species) if partner else []
            ),
            partner_moves=list(partner_moves),
            partner_slot=self._state.get_partner(slot_id),
            foes=[foe for _, foe in self._foe_targets()],
            field_conditions=self._state.field_conditions,
            turn=self._state.turn,
            team_speed=doubles_rules.team_average_speed(
                self._game_data, [pokemon.species for pokemon in side]
            ),
        )

    def _foe_targets(self) -> List[Tuple[int, SlotState]]:
        """Live foes with the target number Showdown uses for them."""
        targets = []
        for slot_id, slot in self._state.active_slots(opponent_of(self._player_id)):
            targets.append((1 if slot_id.endswith("a") else 2, slot))
        return targets

    def choose_move_for_slot(
        self, active: ActiveRequest, ctx: SlotContext, position: int = 0
    ) -> ActionCommand:
        """Best (move, target) pair for one active position."""
        usable = active.usable_moves()
        if not usable:
            return ActionCommand.move(1)

        override = doubles_rules.aurora_veil_override(ctx, active.moves)
        if override is not None:
            return ActionCommand.move(override + 1)

        foe_targets: List[Tuple[int, Optional[SlotState]]] = list(self._foe_targets())
        if not foe_targets:
            foe_targets = [(1, None), (2, None)]

        best: Optional[Tuple[float, int, Optional[int]]] = None
        scores: Dict[str, float] = {}
        for index in usable:
            option = active.moves[index]
            move = self._game_data.find_move(option.id)
            if move is None:
                target = default_target(option.target, position)
                candidates = [(float(option.base_power or 0), target)]
            elif move.takes_target:
                candidates = [
                    (doubles_rules.score_move(move, ctx, foe), target)
                    for target, foe in foe_targets
                ]
            else:
                candidates = [
                    (
                        doubles_rules.score_move(move, ctx),
                        own_side_target(move.target, position),
                    )
                ]

            for score, target in candidates:
                if score == EXCLUDED:
                    continue
                scores[option.id] = max(scores.get(option.id, score), score)
                if best is None or score > best[0]:
                    best = (score, index, target)

        logging.debug(
            "[%s] %s %s move scores %s",
            self._battle_id,
            self._player_id,
            ctx.user.species,
            scores,
        )
        if best is None:
            # Everything was excluded, take the first move that is not
            index = next(
                (i for i in usable if active.moves[i].id != "fakeout"), usable[0]
            )
            option = active.moves[index]
            move = self._game_data.find_move(option.id)
            kind = move.target if move else option.target
            return ActionCommand.move(index + 1, default_target(kind, position))
        _, index, target = best
        return ActionCommand.move(index + 1, target)
