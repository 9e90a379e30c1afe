from typing import Any, Dict, Iterable, List, Optional

from absl import logging
from poke_env.data import GenData

from teamsim.game.data.move import Move
from teamsim.game.data.pokemon import Pokemon
from teamsim.game.data.type_chart import TypeChart
from teamsim.game.schema.object_name_normalizer import normalize_name


class GameData:
    """Read-only access to species, move and type chart reference data.

    Instances wrap raw Showdown-format dictionaries. ``for_gen`` builds (and
    caches) one from the data poke-env bundles for a generation, so the
    process only loads each generation once.

    The ``get_*`` lookups raise ``ValueError`` for unknown names, while the
    ``find_*`` lookups return ``None`` so callers can fall back to neutral
    values.
    """

    _instances: Dict[int, "GameData"] = {}

    def __init__(
        self,
        pokedex: Dict[str, Dict[str, Any]],
        moves: Dict[str, Dict[str, Any]],
        type_chart: Dict[str, Dict[str, float]],
    ) -> None:
        self._pokedex = pokedex
        self._moves = moves
        self._type_chart = TypeChart.from_defender_chart(type_chart)
        self._pokemon_cache: Dict[str, Pokemon] = {}
        self._move_cache: Dict[str, Move] = {}

    @classmethod
    def for_gen(cls, gen: int = 9) -> "GameData":
        if gen not in cls._instances:
            gen_data = GenData.from_gen(gen)
            logging.info(
                "Loaded gen %d data: %d species, %d moves",
                gen,
                len(gen_data.pokedex),
                len(gen_data.moves),
            )
            cls._instances[gen] = cls(
                pokedex=gen_data.pokedex,
                moves=gen_data.moves,
                type_chart=gen_data.type_chart,
            )
        return cls._instances[gen]

    def find_pokemon(self, name: str) -> Optional[Pokemon]:
        key = normalize_name(name)
        if key not in self._pokemon_cache:
            entry = self._pokedex.get(key)
            if entry is None:
                # Cosmetic formes ("Vivillon-Fancy") fall back to the base species
                base_key = normalize_name(name.split("-")[0])
                entry = self._pokedex.get(base_key)
                if entry is None:
                    return None
            self._pokemon_cache[key] = Pokemon.from_showdown_entry(key, entry)
        return self._pokemon_cache[key]

    def get_pokemon(self, name: str) -> Pokemon:
        pokemon = self.find_pokemon(name)
        if pokemon is None:
            raise ValueError(f"Pokemon not found: {name}")
        return pokemon

    def find_move(self, name: str) -> Optional[Move]:
        key = normalize_name(name)
        if key not in self._move_cache:
            entry = self._moves.get(key)
            if entry is None:
                return None
            self._move_cache[key] = Move.from_showdown_entry(key, entry)
        return self._move_cache[key]

    def get_move(self, name: str) -> Move:
        move = self.find_move(name)
        if move is None:
            raise ValueError(f"Move not found: {name}")
        return move

    def get_type_chart(self) -> TypeChart:
        return self._type_chart

    def species_types(self, name: str) -> List[str]:
        pokemon = self.find_pokemon(name)
        return list(pokemon.types) if pokemon else []

    def effectiveness(self, move_type: str, defending_types: Iterable[str]) -> float:
        """Type multiplier of ``move_type`` against a defender, 1.0 when unknown."""
        defending_types = list(defending_types)
        if not defending_types:
            return 1.0
        try:
            return self._type_chart.get_multiplier(move_type, defending_types)
        except ValueError:
            logging.debug("No type chart entry for %s vs %s", move_type, defending_types)
            return 1.0
