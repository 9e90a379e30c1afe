"""Named move-scoring rules for doubles.

Each rule looks at one move (and, for single-target moves, one foe) and
either returns a score or None when it does not apply. ``score_move`` runs
the rules in priority order and the first one that applies decides the
score, so earlier rules pre-empt later ones. A rule may return EXCLUDED to
drop the move from consideration altogether. The engine then keeps the
best scoring (move, target) pair.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from teamsim.agents import scoring
from teamsim.game.data.game_data import GameData
from teamsim.game.data.move import PROTECT_FAMILY, Move
from teamsim.game.interface.battle_request import RequestMove, SidePokemon
from teamsim.game.schema.enums import Terrain, Weather
from teamsim.game.schema.field_state import FieldConditions
from teamsim.game.schema.slot_state import SlotState

EXCLUDED = float("-inf")

REDIRECTION_MOVES = frozenset({"followme", "ragepowder"})
SETUP_MOVES = frozenset(
    {"swordsdance", "nastyplot", "dragondance", "quiverdance", "shellsmash", "howl"}
)
SUPPORT_MOVES = frozenset({"helpinghand", "coaching"})
SPEED_CONTROL_MOVES = frozenset({"tailwind", "trickroom"})
DISRUPTION_MOVES = frozenset({"thunderwave", "willowisp", "encore"})
REPEAT_EXEMPT = PROTECT_FAMILY | REDIRECTION_MOVES | {"fakeout"}

AURORA_VEIL_SCORE = 10000
FAKE_OUT_SCORE = 9000
REDIRECTION_SETUP_SCORE = 8000
REDIRECTION_SCORE = 350
SETUP_SUPPORTED_SCORE = 7000
SETUP_LOW_SCORE = 60
SETUP_HP_THRESHOLD = 0.6
HAZARD_SCORE = 30

SPREAD_TWO_TARGETS = 1.75
SPREAD_ONE_TARGET = 1.2
SPREAD_BONUSES = {
    "earthquake": 200,
    "rockslide": 180,
    "heatwave": 150,
    "dazzlinggleam": 150,
    "makeitrain": 200,
    "bleakwindstorm": 180,
    "blizzard": 170,
    "icywind": 100,
}
SNOW_BLIZZARD_BONUS = 300

PROTECT_LOW_HP = 0.3
PROTECT_MID_HP = 0.5
PROTECT_LOW_HP_SCORE = 400
PROTECT_MID_HP_SCORE = 200
PROTECT_HIGH_HP_SCORE = 50
PROTECT_PARTNER_BONUS = 150
WIDE_GUARD_BONUS = 200
PROTECT_REPEAT_FACTOR = 0.1
PROTECT_STREAK_CAP = 5
STRONG_SPREAD_POWER = 90

TRICK_ROOM_SPEED_THRESHOLD = 70
SPEED_CONTROL_SCORE = 500
SPEED_CONTROL_WEAK_SCORE = 100
SPEED_CONTROL_EARLY_BONUS = 200
TRICK_ROOM_REVERSE_SCORE = 400

SUPPORT_WEIGHT = 2.5
SUPPORT_STRONG_PARTNER_BONUS = 200
STRONG_ATTACK_POWER = 80

FIELD_SETUP_BASE = 100
FIELD_SYNERGY_BONUS = 150
FIELD_FOE_PENALTY = 100

PRIORITY_BONUS = 80
AURORA_VEIL_DAMAGE_FACTOR = 1.2
STATUS_MOVE_SCORE = 80
DISRUPTION_SCORE = 250
COMBO_BONUS = 100
HELPING_HAND_FOLLOWUP_BONUS = 50
REPEAT_FACTOR = 0.6

WEATHER_TYPES: Dict[Weather, FrozenSet[str]] = {
    Weather.SUN: frozenset({"Fire"}),
    Weather.RAIN: frozenset({"Water"}),
    Weather.SANDSTORM: frozenset({"Rock", "Ground", "Steel"}),
    Weather.SNOW: frozenset({"Ice"}),
}
WEATHER_ABILITIES: Dict[Weather, FrozenSet[str]] = {
    Weather.SUN: frozenset({"chlorophyll", "solarpower", "protosynthesis", "flowergift"}),
    Weather.RAIN: frozenset({"swiftswim", "raindish", "dryskin"}),
    Weather.SANDSTORM: frozenset({"sandrush", "sandforce"}),
    Weather.SNOW: frozenset({"slushrush", "icebody", "snowcloak"}),
}
OPPOSED_WEATHER_TYPES: Dict[Weather, FrozenSet[str]] = {
    Weather.SUN: frozenset({"Water"}),
    Weather.RAIN: frozenset({"Fire"}),
}
TERRAIN_TYPES: Dict[Terrain, FrozenSet[str]] = {
    Terrain.ELECTRIC: frozenset({"Electric"}),
    Terrain.GRASSY: frozenset({"Grass"}),
    Terrain.PSYCHIC: frozenset({"Psychic"}),
    Terrain.MISTY: frozenset({"Fairy"}),
}
TERRAIN_ABILITIES: Dict[Terrain, FrozenSet[str]] = {
    Terrain.ELECTRIC: frozenset({"surgesurfer", "quarkdrive"}),
    Terrain.GRASSY: frozenset({"grasspelt"}),
    Terrain.PSYCHIC: frozenset(),
    Terrain.MISTY: frozenset(),
}

# Abilities that let an ally take a hit from a move that also strikes it
ALLY_IMMUNITIES: Dict[str, FrozenSet[str]] = {
    "Electric": frozenset({"lightningrod", "voltabsorb", "motordrive"}),
    "Water": frozenset({"waterabsorb", "stormdrain", "dryskin"}),
    "Ground": frozenset({"levitate", "eartheater"}),
    "Fire": frozenset({"flashfire", "wellbakedbody"}),
    "Grass": frozenset({"sapsipper"}),
}


@dataclass(frozen=True)
class SlotContext:
    """Everything a rule may look at when scoring moves for one position.

    ``user`` and ``partner`` come from the request and carry our exact HP,
    abilities and movesets. ``user_slot``, ``partner_slot`` and ``foes`` come
    from the engine's tracker.
    """

    game_data: GameData
    player_id: str
    user: SidePokemon
    user_types: List[str]
    user_slot: Optional[SlotState] = None
    user_boosts: Dict[str, int] = field(default_factory=dict)
    partner: Optional[SidePokemon] = None
    partner_types: List[str] = field(default_factory=list)
    partner_moves: List[RequestMove] = field(default_factory=list)
    partner_slot: Optional[SlotState] = None
    foes: List[SlotState] = field(default_factory=list)
    field_conditions: FieldConditions = field(default_factory=FieldConditions)
    turn: int = 0
    team_speed: float = 0.0

    @property
    def user_hp(self) -> float:
        return self.user.hp_fraction

    def partner_can_use(self, move_ids: FrozenSet[str]) -> bool:
        return any(option.id in move_ids and option.usable for option in self.partner_moves)

    def our_abilities(self) -> List[str]:
        abilities = [self.user.ability_id]
        if self.partner is not None:
            abilities.append(self.partner.ability_id)
        return abilities

    def our_types(self) -> List[List[str]]:
        types = [self.user_types]
        if self.partner is not None:
            types.append(self.partner_types)
        return types

    def snow_on_our_side(self) -> bool:
        return (
            self.field_conditions.weather == Weather.SNOW
            or "snowwarning" in self.our_abilities()
        )


Rule = Callable[[Move, SlotContext, Optional[SlotState]], Optional[float]]


def aurora_veil_override(ctx: SlotContext, moves: Sequence[RequestMove]) -> Optional[int]:
    """0-based index of Aurora Veil when a Snow Warning user must set it up."""
    if ctx.user.ability_id != "snowwarning":
        return None
    if ctx.field_conditions.aurora_veil(ctx.player_id):
        return None
    for index, option in enumerate(moves):
        if option.id == "auroraveil" and option.usable:
            return index
    return None


def aurora_veil_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if move.id != "auroraveil":
        return None
    if ctx.field_conditions.aurora_veil(ctx.player_id) or not ctx.snow_on_our_side():
        return 0.0
    return AURORA_VEIL_SCORE


def fake_out_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if move.id != "fakeout":
        return None
    # turns_out reaches 1 at the first |turn| line after the switch-in
    if ctx.user_slot is not None and (
        ctx.user_slot.fake_out_used or ctx.user_slot.turns_out > 1
    ):
        return EXCLUDED
    return FAKE_OUT_SCORE


def redirection_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if move.id not in REDIRECTION_MOVES:
        return None
    if ctx.partner is None:
        return 0.0
    if ctx.partner_can_use(SETUP_MOVES):
        return REDIRECTION_SETUP_SCORE
    return REDIRECTION_SCORE


def favorable_speed_field(ctx: SlotContext) -> bool:
    """Our Tailwind is up, or Trick Room is up and the user is slow."""
    if ctx.field_conditions.tailwind(ctx.player_id):
        return True
    if ctx.field_conditions.trick_room:
        return species_speed(ctx.game_data, ctx.user.species) < TRICK_ROOM_SPEED_THRESHOLD
    return False


def setup_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if not move.setup_boosts or move.id in SUPPORT_MOVES:
        return None
    if all(
        ctx.user_boosts.get(stat, 0) >= scoring.MAX_STAGE for stat in move.setup_boosts
    ):
        return scoring.MAXED_SETUP_PENALTY
    supported = ctx.partner_can_use(REDIRECTION_MOVES) or favorable_speed_field(ctx)
    if supported and ctx.user_hp > SETUP_HP_THRESHOLD:
        return SETUP_SUPPORTED_SCORE
    return SETUP_LOW_SCORE


def spread_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if not move.is_spread or not move.is_damaging:
        return None
    effectiveness = [
        ctx.game_data.effectiveness(move.type, foe.types) for foe in ctx.foes
    ] or [1.0]
    score = (
        move.base_power
        * scoring.stab_multiplier(move.type, ctx.user_types)
        * (sum(effectiveness) / len(effectiveness))
        * move.accuracy_fraction
    )
    score *= SPREAD_TWO_TARGETS if len(ctx.foes) >= 2 else SPREAD_ONE_TARGET
    score += SPREAD_BONUSES.get(move.id, 0)
    if move.id == "blizzard" and ctx.snow_on_our_side():
        score += SNOW_BLIZZARD_BONUS
    return score


def _partner_mid_setup(ctx: SlotContext) -> bool:
    if ctx.partner_slot is None or ctx.partner_slot.last_move is None:
        return False
    return ctx.partner_slot.last_move in SETUP_MOVES


def _partner_has_strong_spread(ctx: SlotContext) -> bool:
    for option in ctx.partner_moves:
        move = ctx.game_data.find_move(option.id)
        if (
            option.usable
            and move is not None
            and move.is_spread
            and move.base_power >= STRONG_SPREAD_POWER
        ):
            return True
    return False


def _foes_have_spread(ctx: SlotContext) -> bool:
    for foe in ctx.foes:
        for move_id in foe.known_moves:
            move = ctx.game_data.find_move(move_id)
            if move is not None and move.is_spread and move.is_damaging:
                return True
    return False


def protect_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if not move.is_protect:
        return None
    if ctx.user_hp < PROTECT_LOW_HP:
        score = PROTECT_LOW_HP_SCORE
    elif ctx.user_hp < PROTECT_MID_HP:
        score = PROTECT_MID_HP_SCORE
    else:
        score = PROTECT_HIGH_HP_SCORE
    if _partner_mid_setup(ctx) or _partner_has_strong_spread(ctx):
        score += PROTECT_PARTNER_BONUS
    if move.id == "wideguard" and _foes_have_spread(ctx):
        score += WIDE_GUARD_BONUS

    streak = ctx.user_slot.protect_streak if ctx.user_slot else 0
    if streak == 1:
        return score * PROTECT_REPEAT_FACTOR
    if streak >= 2:
        return min(score * PROTECT_REPEAT_FACTOR**2, PROTECT_STREAK_CAP)
    return float(score)


def speed_control_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if move.id not in SPEED_CONTROL_MOVES:
        return None
    slow_team = ctx.team_speed < TRICK_ROOM_SPEED_THRESHOLD
    early = ctx.turn <= 2

    if move.id == "tailwind":
        if ctx.field_conditions.tailwind(ctx.player_id):
            return 0.0
        score = SPEED_CONTROL_WEAK_SCORE if slow_team else SPEED_CONTROL_SCORE
        return score + (SPEED_CONTROL_EARLY_BONUS if early else 0)

    if ctx.field_conditions.trick_room:
        # Casting it again ends it
        return 0.0 if slow_team else TRICK_ROOM_REVERSE_SCORE
    if not slow_team:
        return SPEED_CONTROL_WEAK_SCORE
    return SPEED_CONTROL_SCORE + (SPEED_CONTROL_EARLY_BONUS if early else 0)


def support_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if move.id not in SUPPORT_MOVES:
        return None
    if ctx.partner is None:
        return 0.0
    partner = ctx.game_data.find_pokemon(ctx.partner.species)
    if partner is None:
        offense = 0
    elif move.id == "coaching":
        offense = partner.base_stats.get("atk", 0)
    else:
        offense = max(partner.base_stats.get("atk", 0), partner.base_stats.get("spa", 0))
    score = SUPPORT_WEIGHT * offense
    for option in ctx.partner_moves:
        partner_move = ctx.game_data.find_move(option.id)
        if (
            option.usable
            and partner_move is not None
            and partner_move.base_power >= STRONG_ATTACK_POWER
        ):
            score += SUPPORT_STRONG_PARTNER_BONUS
            break
    return score


def _field_setup_score(
    ctx: SlotContext,
    element_types: FrozenSet[str],
    abilities: FrozenSet[str],
    opposed_types: FrozenSet[str],
) -> float:
    score = float(FIELD_SETUP_BASE)
    for types, ability in zip(ctx.our_types(), ctx.our_abilities()):
        if element_types & set(types) or ability in abilities:
            score += FIELD_SYNERGY_BONUS
        if opposed_types & set(types):
            score -= FIELD_SYNERGY_BONUS
    for foe in ctx.foes:
        if element_types & set(foe.types):
            score -= FIELD_FOE_PENALTY
    return score


def weather_terrain_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if move.weather:
        try:
            weather = Weather.from_protocol(move.weather)
        except ValueError:
            return None
        if weather is None or weather not in WEATHER_TYPES:
            return None
        if ctx.field_conditions.weather == weather:
            return 0.0
        return _field_setup_score(
            ctx,
            WEATHER_TYPES[weather],
            WEATHER_ABILITIES[weather],
            OPPOSED_WEATHER_TYPES.get(weather, frozenset()),
        )
    if move.terrain:
        try:
            terrain = Terrain(move.terrain)
        except ValueError:
            return None
        if ctx.field_conditions.terrain == terrain:
            return 0.0
        return _field_setup_score(
            ctx, TERRAIN_TYPES[terrain], TERRAIN_ABILITIES[terrain], frozenset()
        )
    return None


def hazard_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    if not move.is_hazard:
        return None
    return HAZARD_SCORE


def fallback_rule(
    move: Move, ctx: SlotContext, target: Optional[SlotState]
) -> Optional[float]:
    target_types = target.types if target else []
    target_status = target.status if target else None
    score = scoring.evaluate_known_move(
        move,
        ctx.game_data,
        ctx.user_types,
        ctx.user_hp,
        ctx.user_boosts,
        target_types,
        target_status,
        ctx.turn,
    )
    if move.is_damaging:
        if move.priority > 0:
            score += PRIORITY_BONUS
        if ctx.field_conditions.aurora_veil(ctx.player_id):
            score *= AURORA_VEIL_DAMAGE_FACTOR
        return score
    if move.id in DISRUPTION_MOVES:
        if move.status and target_status:
            return 0.0
        return max(score, DISRUPTION_SCORE)
    return max(score, STATUS_MOVE_SCORE)


RULES: List[Rule] = [
    aurora_veil_rule,
    fake_out_rule,
    redirection_rule,
    setup_rule,
    spread_rule,
    protect_rule,
    speed_control_rule,
    support_rule,
    weather_terrain_rule,
    hazard_rule,
    fallback_rule,
]


def partner_combo_bonus(move: Move, ctx: SlotContext) -> float:
    """Adjustment for how a damaging move plays with the partner.

    Moves that also strike the ally are rewarded when the partner is immune
    (or absorbs them) and penalized when the partner is weak to them. Attacks
    following a partner that has been using Helping Hand get a small bonus.
    """
    if not move.is_damaging or ctx.partner is None:
        return 0.0
    bonus = 0.0
    if move.target == "allAdjacent":
        effectiveness = ctx.game_data.effectiveness(move.type, ctx.partner_types)
        absorbs = ctx.partner.ability_id in ALLY_IMMUNITIES.get(move.type, frozenset())
        if absorbs or effectiveness == 0:
            bonus += COMBO_BONUS
        elif effectiveness > 1:
            bonus -= COMBO_BONUS
    if ctx.partner_slot is not None and ctx.partner_slot.last_move == "helpinghand":
        bonus += HELPING_HAND_FOLLOWUP_BONUS
    return bonus


def score_move(move: Move, ctx: SlotContext, target: Optional[SlotState] = None) -> float:
    """Score one move (against one target for single-target moves).

    Returns:
        The score, or EXCLUDED if the move must not be chosen
    """
    score = 0.0
    for rule in RULES:
        result = rule(move, ctx, target)
        if result is not None:
            score = result
            break
    if score == EXCLUDED:
        return EXCLUDED

    score += partner_combo_bonus(move, ctx)
    if (
        ctx.user_slot is not None
        and ctx.user_slot.last_move == move.id
        and move.id not in REPEAT_EXEMPT
        and score > 0
    ):
        score *= REPEAT_FACTOR
    return score


def species_speed(game_data: GameData, species: str) -> int:
    pokemon = game_data.find_pokemon(species)
    return pokemon.speed if pokemon else 0


def team_average_speed(game_data: GameData, species: Sequence[str]) -> float:
    """Mean base Speed of the species the reference data knows, 0 if none."""
    speeds = [
        pokemon.speed
        for pokemon in (game_data.find_pokemon(name) for name in species)
        if pokemon is not None
    ]
    if not speeds:
        return 0.0
    return sum(speeds) / len(speeds)
