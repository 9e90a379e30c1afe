"""Spectator-side tracker that follows a battle to its outcome."""

from collections import deque
from enum import Enum
from typing import Deque, Dict, Optional, Set

from absl import logging

from teamsim.battle.battle_outcome import BattleOutcome
from teamsim.game.data.game_data import GameData
from teamsim.game.environment.state_transition import StateTransition
from teamsim.game.events.battle_event import (
    BattleEndEvent,
    BattleStartEvent,
    FaintEvent,
    TieEvent,
)
from teamsim.game.protocol.battle_stream import BattleStreamView
from teamsim.game.protocol.message_parser import MessageParser
from teamsim.game.schema.battle_state import PLAYER_IDS, BattleState


class BattleStatus(Enum):
    """Status of a battle."""

    INITIALIZING = "initializing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SpectatorTracker:
    """Tracks the public view of a single battle and reports its outcome.

    The tracker never decides anything. It records the turn counter, which
    Pokemon fainted on each side and the announced winner, and keeps the last
    few protocol chunks for the outcome log. When the battle is cut short the
    winner is inferred from how many Pokemon each side still has.
    """

    def __init__(
        self,
        battle_id: str,
        game_data: GameData,
        team_size: int = 6,
        log_tail: int = 10,
    ) -> None:
        """Initialize spectator tracker.

        Args:
            battle_id: Label used to prefix log lines
            game_data: Reference data for the underlying state tracker
            team_size: Number of Pokemon each side brings
            log_tail: Number of protocol chunks kept for the outcome log
        """
        self._battle_id = battle_id
        self._team_size = team_size
        self._parser = MessageParser()
        self._transition = StateTransition(game_data)
        self._state = BattleState()
        self._fainted: Dict[str, Set[str]] = {player_id: set() for player_id in PLAYER_IDS}
        self._log: Deque[str] = deque(maxlen=log_tail)
        self._status = BattleStatus.INITIALIZING
        self._winner: Optional[str] = None

    @property
    def battle_id(self) -> str:
        return self._battle_id

    @property
    def status(self) -> BattleStatus:
        return self._status

    @property
    def turn_count(self) -> int:
        return self._state.turn

    @property
    def state(self) -> BattleState:
        return self._state

    def remaining(self, player_id: str) -> int:
        """Pokemon of ``player_id`` not yet seen fainting."""
        return max(self._team_size - len(self._fainted[player_id]), 0)

    def is_complete(self) -> bool:
        return self._status == BattleStatus.COMPLETED

    def observe(self, chunk: str) -> None:
        """Fold one spectator chunk into the tracked battle."""
        self._log.append(chunk)
        for event in self._parser.parse_chunk(chunk):
            self._state = self._transition.apply(self._state, event)

            if isinstance(event, BattleStartEvent):
                self._status = BattleStatus.IN_PROGRESS
                logging.info("[%s] Battle started", self._battle_id)
            elif isinstance(event, FaintEvent):
                if event.player_id in self._fainted:
                    self._fainted[event.player_id].add(event.pokemon_name)
            elif isinstance(event, BattleEndEvent):
                self._winner = self._side_of(event.winner)
                self._status = BattleStatus.COMPLETED
            elif isinstance(event, TieEvent):
                self._winner = "tie"
                self._status = BattleStatus.COMPLETED

            if self.is_complete():
                return

    async def consume(self, view: BattleStreamView) -> None:
        """Read the spectator channel until the battle ends or the channel closes."""
        async for chunk in view:
            self.observe(chunk)
            if self.is_complete():
                return
        logging.warning("[%s] Spectator stream closed before the battle ended", self._battle_id)

    def _side_of(self, username: str) -> Optional[str]:
        for player_id, name in self._state.player_usernames.items():
            if name == username:
                return player_id
        logging.warning("[%s] Winner %r is not a known player", self._battle_id, username)
        return None

    def get_outcome(self, timed_out: bool = False) -> BattleOutcome:
        """Outcome of the battle so far.

        Without an announced result, the side with more Pokemon remaining
        wins and equal counts are a tie.
        """
        p1_remaining = self.remaining("p1")
        p2_remaining = self.remaining("p2")

        winner = self._winner
        if winner is None:
            if p1_remaining > p2_remaining:
                winner = "p1"
            elif p2_remaining > p1_remaining:
                winner = "p2"
            else:
                winner = "tie"
            logging.info(
                "[%s] Inferred winner %s from remaining Pokemon (%d vs %d)",
                self._battle_id,
                winner,
                p1_remaining,
                p2_remaining,
            )

        return BattleOutcome(
            winner=winner,
            turns=self.turn_count,
            p1_remaining=p1_remaining,
            p2_remaining=p2_remaining,
            log=list(self._log),
            timed_out=timed_out,
        )
