"""Commands written back to the simulator for one side."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class ActionType(Enum):
    """Type of command a decision engine can emit."""

    MOVE = "move"
    SWITCH = "switch"
    TEAM = "team"
    PASS = "pass"
    DEFAULT = "default"


@dataclass(frozen=True)
class ActionCommand:
    """Immutable single-slot command in Showdown's choice syntax.

    Move and switch indices are 1-based. Move targets follow Showdown's doubles
    convention: 1 and 2 are the foe positions, -1 and -2 our own.

    Examples:
        >>> ActionCommand.move(2).to_showdown_command()
        'move 2'
        >>> ActionCommand.move(1, target=2).to_showdown_command()
        'move 1 2'
        >>> ActionCommand.switch(4).to_showdown_command()
        'switch 4'
        >>> ActionCommand.team("321456").to_showdown_command()
        'team 321456'
    """

    action_type: ActionType
    index: Optional[int] = None
    target: Optional[int] = None
    order: Optional[str] = None

    @classmethod
    def move(cls, index: int, target: Optional[int] = None) -> "ActionCommand":
        return cls(ActionType.MOVE, index=index, target=target)

    @classmethod
    def switch(cls, index: int) -> "ActionCommand":
        return cls(ActionType.SWITCH, index=index)

    @classmethod
    def team(cls, order: str) -> "ActionCommand":
        return cls(ActionType.TEAM, order=order)

    @classmethod
    def pass_(cls) -> "ActionCommand":
        return cls(ActionType.PASS)

    @classmethod
    def default(cls) -> "ActionCommand":
        return cls(ActionType.DEFAULT)

    def to_showdown_command(self) -> str:
        """Render the command, validating the fields its type needs.

        Raises:
            ValueError: If a move/switch lacks a positive index, a move target
                is 0, or a team command lacks an order.
        """
        if self.action_type in (ActionType.MOVE, ActionType.SWITCH):
            if self.index is None or self.index < 1:
                raise ValueError(
                    f"{self.action_type.value} command requires a 1-based index"
                )
            command = f"{self.action_type.value} {self.index}"
            if self.action_type == ActionType.MOVE and self.target is not None:
                if self.target == 0:
                    raise ValueError("Move target cannot be 0")
                command = f"{command} {self.target}"
            return command

        elif self.action_type == ActionType.TEAM:
            if not self.order:
                raise ValueError("team command requires an order")
            return f"team {self.order}"

        return self.action_type.value


def join_commands(commands: List[ActionCommand]) -> str:
    """Join per-slot commands into the single line Showdown expects."""
    return ", ".join(command.to_showdown_command() for command in commands)
