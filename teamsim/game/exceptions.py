"""Custom exceptions for team and simulator errors."""


class InvalidTeamError(ValueError):
    """Exception raised when a packed team is empty or cannot be parsed.

    Raised before a battle starts, so the battle is never opened on the
    simulator.

    Attributes:
        team_name: Name of the offending team
        reason: Why the team was rejected
    """

    def __init__(self, team_name: str, reason: str):
        self.team_name = team_name
        self.reason = reason
        super().__init__(f"Invalid team {team_name!r}: {reason}")


class SimulatorProcessError(RuntimeError):
    """Exception raised when the Showdown simulator process cannot be used.

    Attributes:
        command: The command line used to launch the simulator
    """

    def __init__(self, message: str, command: str = ""):
        self.command = command
        super().__init__(f"{message} ({command})" if command else message)
