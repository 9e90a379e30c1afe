"""Scoring primitives shared by the singles and doubles engines."""

from typing import Dict, Iterable, List, Optional, Sequence

from teamsim.game.data.game_data import GameData
from teamsim.game.data.move import Move
from teamsim.game.interface.battle_request import BattleRequest, RequestMove, SidePokemon

STAB_MULTIPLIER = 1.5
MAX_STAGE = 6

LOW_HP_SWITCH_THRESHOLD = 0.25
LOW_HP_PRIORITY_THRESHOLD = 0.3
LOW_HP_PRIORITY_BONUS = 100

HEAL_THRESHOLD = 0.6
HEAL_WEIGHT = 200

SETUP_HP_THRESHOLD = 0.5
SETUP_WEIGHT_PER_STAGE = 70
MAXED_SETUP_PENALTY = -100

HAZARD_BONUS = 80
HAZARD_TURN_LIMIT = 5

STATUS_BONUS = 60

PROTECT_HP_THRESHOLD = 0.3
PROTECT_BONUS = 50

HEALTHY_SWITCH_BONUS = 30
MATCHUP_WEIGHT = 20


def has_stab(move_type: str, user_types: Iterable[str]) -> bool:
    return move_type in set(user_types)


def stab_multiplier(move_type: str, user_types: Iterable[str]) -> float:
    return STAB_MULTIPLIER if has_stab(move_type, user_types) else 1.0


def evaluate_move(
    move_option: RequestMove,
    game_data: GameData,
    user_types: Sequence[str],
    user_hp: float,
    user_boosts: Dict[str, int],
    target_types: Sequence[str],
    target_status: Optional[str],
    turn: int,
) -> float:
    """Heuristic value of using one move from the current position.

    Damaging moves are valued by base power scaled by accuracy, STAB and type
    effectiveness against the target, with a bonus for priority when the user
    is low. Status moves are valued by what they do: healing when hurt,
    boosting stats that are not yet maxed, early hazards, inflicting a status
    on an unstatused target, and protecting when low.

    Moves missing from the reference data fall back to the request's own
    base power, or 0.

    Args:
        move_option: The move as listed in the request
        game_data: Reference data used to look the move up
        user_types: Types of the Pokemon using the move
        user_hp: HP fraction of the user in [0, 1]
        user_boosts: Current stat stages of the user
        target_types: Types of the target, empty when unknown
        target_status: Major status of the target, None when healthy or unknown
        turn: Current turn number

    Returns:
        The move's score, higher is better
    """
    move = game_data.find_move(move_option.id)
    if move is None:
        return float(move_option.base_power or 0)
    return evaluate_known_move(
        move,
        game_data,
        user_types,
        user_hp,
        user_boosts,
        target_types,
        target_status,
        turn,
    )


def evaluate_known_move(
    move: Move,
    game_data: GameData,
    user_types: Sequence[str],
    user_hp: float,
    user_boosts: Dict[str, int],
    target_types: Sequence[str],
    target_status: Optional[str],
    turn: int,
) -> float:
    score = 0.0

    if move.is_damaging:
        score = move.base_power * move.accuracy_fraction
        score *= stab_multiplier(move.type, user_types)
        score *= game_data.effectiveness(move.type, target_types)
        if user_hp < LOW_HP_PRIORITY_THRESHOLD and move.priority > 0:
            score += LOW_HP_PRIORITY_BONUS
        return score

    if move.category != "Status":
        return score

    if move.heals:
        if user_hp < HEAL_THRESHOLD:
            score += HEAL_WEIGHT * (1 - user_hp)
    elif move.setup_boosts:
        stages = sum(
            amount
            for stat, amount in move.setup_boosts.items()
            if user_boosts.get(stat, 0) < MAX_STAGE
        )
        if stages == 0:
            score = MAXED_SETUP_PENALTY
        elif user_hp > SETUP_HP_THRESHOLD:
            score += SETUP_WEIGHT_PER_STAGE * stages
    elif move.is_hazard:
        if turn < HAZARD_TURN_LIMIT:
            score += HAZARD_BONUS
    elif move.status:
        if not target_status:
            score += STATUS_BONUS
    elif move.is_protect:
        if user_hp < PROTECT_HP_THRESHOLD:
            # Grows from 50 at the threshold to 100 at zero HP
            score += PROTECT_BONUS * (
                1 + (PROTECT_HP_THRESHOLD - user_hp) / PROTECT_HP_THRESHOLD
            )

    return score


def matchup_bonus(
    game_data: GameData,
    candidate_types: Sequence[str],
    foe_types: Sequence[str],
) -> float:
    """Type matchup of a candidate against a foe, both ways.

    The candidate's best STAB type against the foe adds to the score, and the
    foe's best STAB type against the candidate takes away from it.
    Neutral both ways is 0. Unknown types on either side give 0.
    """
    if not candidate_types or not foe_types:
        return 0.0
    offensive = max(game_data.effectiveness(t, foe_types) for t in candidate_types)
    defensive = max(game_data.effectiveness(t, candidate_types) for t in foe_types)
    return MATCHUP_WEIGHT * (offensive - 1) - MATCHUP_WEIGHT * (defensive - 1)


def score_switch_candidate(
    pokemon: SidePokemon,
    game_data: GameData,
    foe_types: Sequence[str],
) -> float:
    score = pokemon.hp_fraction * 100
    if pokemon.status is None:
        score += HEALTHY_SWITCH_BONUS
    score += matchup_bonus(game_data, game_data.species_types(pokemon.species), foe_types)
    return score


def choose_best_switch(
    request: BattleRequest,
    game_data: GameData,
    foe_types: Sequence[str],
    exclude: Iterable[int] = (),
) -> Optional[int]:
    """1-based index of the best benched Pokemon, or None if none can switch in.

    The first of several equally scored candidates wins.
    """
    excluded = set(exclude)
    chosen: Optional[int] = None
    best_score = float("-inf")
    for index in request.bench_indices():
        if index in excluded:
            continue
        score = score_switch_candidate(
            request.side.pokemon[index - 1], game_data, foe_types
        )
        if score > best_score:
            chosen, best_score = index, score
    return chosen


def best_index(scores: List[float]) -> int:
    """Index of the first maximum of a non-empty score list."""
    return max(range(len(scores)), key=lambda i: (scores[i], -i))
