"""Battle state transition logic."""

from teamsim.game.environment.state_transition import StateTransition

__all__ = ["StateTransition"]
