"""Stream views onto a running battle and event batching between decisions."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from absl import logging

from teamsim.game.events.battle_event import (
    BattleEndEvent,
    BattleEvent,
    ErrorEvent,
    RequestEvent,
    TieEvent,
)
from teamsim.game.protocol.message_parser import MessageParser


class BattleStreamView(ABC):
    """One channel of a battle: a player's, the spectator's or the omniscient one.

    Reading yields protocol chunks (multi-line strings) until the battle ends.
    Writing is non-blocking and never waits for the simulator.
    """

    @abstractmethod
    async def read(self) -> Optional[str]:
        """Return the next chunk, or None once the channel is closed."""

    @abstractmethod
    def write(self, data: str) -> None:
        """Send a command line on this channel."""

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while True:
            chunk = await self.read()
            if chunk is None:
                return
            yield chunk


class QueueStreamView(BattleStreamView):
    """Stream view fed by a producer through an asyncio queue."""

    def __init__(self, writer: Optional[Callable[[str], None]] = None) -> None:
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._writer = writer
        self._closed = False

    def push(self, chunk: str) -> None:
        if not self._closed:
            self._queue.put_nowait(chunk)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self) -> Optional[str]:
        return await self._queue.get()

    def write(self, data: str) -> None:
        if self._writer is None:
            raise RuntimeError("This stream view is read-only")
        self._writer(data)


@dataclass
class PlayerStreams:
    """The four views of one battle plus a coroutine that tears it down."""

    omniscient: BattleStreamView
    spectator: BattleStreamView
    p1: BattleStreamView
    p2: BattleStreamView
    close: Callable[[], Awaitable[None]]

    def for_player(self, player_id: str) -> BattleStreamView:
        if player_id == "p1":
            return self.p1
        if player_id == "p2":
            return self.p2
        raise ValueError(f"Invalid player ID: {player_id}")


class BattleStream:
    """Async iterator that batches battle events between decision points.

    Each batch ends with the RequestEvent that asks for a decision, or with
    the battle's end. Chunks are parsed line by line in order.
    """

    def __init__(
        self,
        view: BattleStreamView,
        parser: Optional[MessageParser] = None,
        battle_id: Optional[str] = None,
    ) -> None:
        """Initialize the battle stream.

        Args:
            view: Stream view to read protocol chunks from
            parser: MessageParser to parse messages (creates new one if None)
            battle_id: Label used to prefix log lines
        """
        self._view = view
        self._parser = parser or MessageParser()
        self._battle_id = battle_id
        self._pending: List[BattleEvent] = []
        self._done = False

    def __aiter__(self) -> AsyncIterator[List[BattleEvent]]:
        return self

    async def __anext__(self) -> List[BattleEvent]:
        """Return the next batch of events up to a decision point.

        Raises:
            StopAsyncIteration: When the stream is exhausted
        """
        batch: List[BattleEvent] = []

        while True:
            while self._pending:
                event = self._pending.pop(0)
                batch.append(event)
                if isinstance(event, ErrorEvent):
                    logging.error(
                        "[%s] Simulator error: %s", self._battle_id, event.error_text
                    )
                if self._is_decision_point(event):
                    return batch

            if self._done:
                if batch:
                    return batch
                raise StopAsyncIteration

            chunk = await self._view.read()
            if chunk is None:
                self._done = True
                continue
            self._pending.extend(self._parser.parse_chunk(chunk))

    def _is_decision_point(self, event: BattleEvent) -> bool:
        return isinstance(event, (RequestEvent, BattleEndEvent, TieEvent))
