"""Abstract base class for battle decision engines."""

from abc import ABC, abstractmethod
from typing import List, Optional

from absl import logging

from teamsim.game.data.game_data import GameData
from teamsim.game.environment.state_transition import StateTransition
from teamsim.game.events.battle_event import BattleEvent, RequestEvent
from teamsim.game.interface.action_command import ActionCommand, join_commands
from teamsim.game.interface.battle_request import BattleRequest
from teamsim.game.protocol.battle_stream import BattleStream, BattleStreamView
from teamsim.game.protocol.message_parser import MessageParser
from teamsim.game.schema.battle_state import BattleState


class DecisionEngine(ABC):
    """Rules-based player bound to one side of one battle.

    An engine consumes its side's protocol stream, folds every event into its
    own BattleState, and answers each ``|request|`` with a command line written
    back to the same stream view. Subclasses only implement the three
    decisions Showdown asks for:

    1. **Team preview**: ``choose_team_order`` returns a ``team`` command.

    2. **Forced switch**: ``choose_forced_switch`` returns one command per
       position in the request's ``forceSwitch`` list.

    3. **Turn**: ``choose_turn`` returns one command per active position.

    ``wait`` requests produce no write. A request that cannot be parsed, or a
    decision that raises, is answered with exactly one ``default`` so the
    battle keeps moving and the engine keeps consuming the stream.

    Engines are created per battle. Nothing is shared between battles.

    Example Usage:
        ```python
        streams = await backend.open_battle()
        engine = SinglesAgent("p1", streams.p1, GameData.for_gen(9))
        await engine.run()
        ```
    """

    def __init__(
        self,
        player_id: str,
        view: BattleStreamView,
        game_data: GameData,
        battle_id: str = "",
    ) -> None:
        """Initialize the engine.

        Args:
            player_id: Side this engine plays ("p1" or "p2")
            view: The side's stream view, read for events and written for commands
            game_data: Reference data for species, moves and types
            battle_id: Label used to prefix log lines
        """
        self._player_id = player_id
        self._view = view
        self._game_data = game_data
        self._battle_id = battle_id or player_id
        self._parser = MessageParser()
        self._state_transition = StateTransition(game_data)
        self._state = BattleState(our_player_id=player_id)

    @property
    def player_id(self) -> str:
        return self._player_id

    @property
    def state(self) -> BattleState:
        return self._state

    async def run(self) -> None:
        """Consume the stream until it closes, answering every request."""
        stream = BattleStream(
            self._view, self._parser, battle_id=f"{self._battle_id}|{self._player_id}"
        )
        async for events in stream:
            for event in events:
                self._apply(event)
                if isinstance(event, RequestEvent):
                    self.handle_request(event)
        logging.debug("[%s] %s stream closed", self._battle_id, self._player_id)

    def _apply(self, event: BattleEvent) -> None:
        self._state = self._state_transition.apply(self._state, event)

    def handle_request(self, event: RequestEvent) -> None:
        """Decide on one request and write the resulting command line, if any."""
        if not event.request_json or event.request_json == "null":
            return

        try:
            request = BattleRequest.from_json(event.request_json)
        except ValueError as e:
            logging.error(
                "[%s] %s could not parse request: %s", self._battle_id, self._player_id, e
            )
            self._write(ActionCommand.default().to_showdown_command())
            return

        if request.wait:
            return

        try:
            commands = self.decide(request)
        except Exception as e:
            logging.error(
                "[%s] %s failed to decide: %s",
                self._battle_id,
                self._player_id,
                e,
                exc_info=True,
            )
            self._write(ActionCommand.default().to_showdown_command())
            return

        if commands:
            self._write(join_commands(commands))

    def decide(self, request: BattleRequest) -> Optional[List[ActionCommand]]:
        """Map a parsed request to the commands answering it.

        Returns:
            The commands to send, or None when nothing should be written
        """
        if request.wait:
            return None
        if request.team_preview:
            return [self.choose_team_order(request)]
        if request.needs_force_switch:
            return self.choose_forced_switch(request)
        if request.active:
            return self.choose_turn(request)
        return [ActionCommand.default()]

    def _write(self, command: str) -> None:
        logging.info("[%s] %s >> %s", self._battle_id, self._player_id, command)
        self._view.write(command)

    @abstractmethod
    def choose_team_order(self, request: BattleRequest) -> ActionCommand:
        """Pick the team order at team preview."""

    @abstractmethod
    def choose_forced_switch(self, request: BattleRequest) -> List[ActionCommand]:
        """Replace fainted or forced-out Pokemon."""

    @abstractmethod
    def choose_turn(self, request: BattleRequest) -> List[ActionCommand]:
        """Pick a move or switch for every active position."""
