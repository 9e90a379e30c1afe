"""Heuristic engine for singles battles."""

from typing import List

from absl import logging

from teamsim.agents import scoring
from teamsim.agents.decision_engine import DecisionEngine
from teamsim.game.interface.action_command import ActionCommand
from teamsim.game.interface.battle_request import BattleRequest
from teamsim.game.schema.battle_state import opponent_of


class SinglesAgent(DecisionEngine):
    """Engine that plays one active Pokemon per side.

    Decision logic:
    1. Team preview: keep the submitted order
    2. Forced switch: best benched Pokemon by HP, health and type matchup
    3. Turn: switch out below 25% HP when free to, otherwise use the best
       scoring usable move
    """

    def choose_team_order(self, request: BattleRequest) -> ActionCommand:
        order = "".join(str(i + 1) for i in range(len(request.side.pokemon)))
        return ActionCommand.team(order)

    def choose_forced_switch(self, request: BattleRequest) -> List[ActionCommand]:
        index = scoring.choose_best_switch(request, self._game_data, self._foe_types())
        if index is None:
            return [ActionCommand.pass_()]
        return [ActionCommand.switch(index)]

    def choose_turn(self, request: BattleRequest) -> List[ActionCommand]:
        active = request.active[0]
        actives = request.active_pokemon()
        pokemon = actives[0] if actives else request.side.pokemon[0]
        hp = pokemon.hp_fraction

        trapped = active.trapped or active.maybe_trapped
        if not trapped and hp < scoring.LOW_HP_SWITCH_THRESHOLD and request.bench_indices():
            logging.debug(
                "[%s] %s switching out %s at %.2f HP",
                self._battle_id,
                self._player_id,
                pokemon.species,
                hp,
            )
            return self.choose_forced_switch(request)

        usable = active.usable_moves()
        if not usable:
            # Showdown turns this into Struggle
            return [ActionCommand.move(1)]

        foe = self._state.get_slot(f"{opponent_of(self._player_id)}a")
        user_types = self._game_data.species_types(pokemon.species)
        boosts = self._state.get_boosts(f"{self._player_id}a")
        scores = [
            scoring.evaluate_move(
                active.moves[i],
                self._game_data,
                user_types=user_types,
                user_hp=hp,
                user_boosts=boosts,
                target_types=foe.types if foe else [],
                target_status=foe.status if foe else None,
                turn=self._state.turn,
            )
            for i in usable
        ]
        chosen = usable[scoring.best_index(scores)]
        return [ActionCommand.move(chosen + 1)]

    def _foe_types(self) -> List[str]:
        foe = self._state.get_slot(f"{opponent_of(self._player_id)}a")
        return list(foe.types) if foe else []
