"""Engine registry for mapping engine names to decision engine classes."""

from typing import Callable, Dict

from teamsim.agents.decision_engine import DecisionEngine
from teamsim.agents.doubles_agent import DoublesAgent
from teamsim.agents.singles_agent import SinglesAgent
from teamsim.game.data.game_data import GameData
from teamsim.game.protocol.battle_stream import BattleStreamView

EngineFactory = Callable[[str, BattleStreamView, GameData, str], DecisionEngine]

DOUBLES_FORMAT_MARKERS = ("doubles", "vgc")


class AgentRegistry:
    """Registry for managing available decision engine types.

    This registry maps engine names (used in CLI flags) to their factory
    functions. Engines are instantiated per battle with the side they play,
    that side's stream view, the reference data and a battle label.

    Example Usage:
        ```python
        # Pick the engine a format calls for
        name = AgentRegistry.engine_for_format("gen9vgc2024regg")

        engine = AgentRegistry.create_agent(
            name,
            player_id="p1",
            view=streams.p1,
            game_data=GameData.for_gen(9),
            battle_id="battle-1",
        )
        ```

    Attributes:
        _AGENT_MAP: Mapping from engine names to engine factory functions
    """

    _AGENT_MAP: Dict[str, EngineFactory] = {
        "singles": lambda player_id, view, game_data, battle_id: SinglesAgent(
            player_id, view, game_data, battle_id
        ),
        "doubles": lambda player_id, view, game_data, battle_id: DoublesAgent(
            player_id, view, game_data, battle_id
        ),
    }

    @classmethod
    def get_available_agents(cls) -> list[str]:
        """Get list of all available engine names.

        Returns:
            List of engine names that can be used with create_agent()
        """
        return sorted(cls._AGENT_MAP.keys())

    @classmethod
    def has_agent(cls, agent_name: str) -> bool:
        return agent_name.lower() in cls._AGENT_MAP

    @classmethod
    def engine_for_format(cls, format_id: str) -> str:
        """Default engine name for a Showdown format id.

        Examples:
            >>> AgentRegistry.engine_for_format("gen9vgc2024regg")
            'doubles'
            >>> AgentRegistry.engine_for_format("gen9ou")
            'singles'
        """
        format_id = format_id.lower()
        if any(marker in format_id for marker in DOUBLES_FORMAT_MARKERS):
            return "doubles"
        return "singles"

    @classmethod
    def create_agent(
        cls,
        agent_name: str,
        player_id: str,
        view: BattleStreamView,
        game_data: GameData,
        battle_id: str = "",
    ) -> DecisionEngine:
        """Create an engine instance by name for one side of a battle.

        Args:
            agent_name: Name of the engine to create (case insensitive)
            player_id: Side the engine plays ("p1" or "p2")
            view: The side's stream view
            game_data: Reference data
            battle_id: Label used to prefix log lines

        Returns:
            Instance of the requested engine

        Raises:
            ValueError: If agent_name is not registered
        """
        normalized_name = agent_name.lower()

        if normalized_name not in cls._AGENT_MAP:
            available = ", ".join(cls.get_available_agents())
            raise ValueError(
                f"Unknown agent: '{agent_name}'. Available agents: {available}"
            )

        return cls._AGENT_MAP[normalized_name](player_id, view, game_data, battle_id)

    @classmethod
    def register_agent(cls, agent_name: str, agent_factory: EngineFactory) -> None:
        """Register a new engine type.

        Raises:
            ValueError: If agent_name is already registered
        """
        normalized_name = agent_name.lower()

        if normalized_name in cls._AGENT_MAP:
            raise ValueError(f"Agent '{agent_name}' is already registered")

        cls._AGENT_MAP[normalized_name] = agent_factory
