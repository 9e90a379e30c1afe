"""Decision engines and the registry that names them."""

from teamsim.agents.decision_engine import DecisionEngine
from teamsim.agents.doubles_agent import DoublesAgent
from teamsim.agents.singles_agent import SinglesAgent

__all__ = ["DecisionEngine", "SinglesAgent", "DoublesAgent"]
