"""Pokemon Showdown ``simulate-battle`` process adapter.

The simulator speaks a block-oriented protocol on stdout::

    update
    |split|p1
    |switch|p1a: Incineroar|Incineroar, L50, M|201/201
    |switch|p1a: Incineroar|Incineroar, L50, M|100/100
    ...
    sideupdate
    p1
    |request|{...}

ChannelSplitter turns that into the omniscient, spectator and per-player
channels the way Showdown's own getPlayerStreams does: after ``|split|pN`` the
first line is the secret version (omniscient and pN) and the second the public
one (spectator and the other player).
"""

import asyncio
import codecs
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from absl import logging

from teamsim.game.exceptions import SimulatorProcessError
from teamsim.game.protocol.battle_stream import PlayerStreams, QueueStreamView

CHANNELS = ("omniscient", "spectator", "p1", "p2")
BLOCK_HEADERS = ("update", "sideupdate", "end")


class SimulatorBackend(ABC):
    """Something that can host one battle and expose its stream views."""

    @abstractmethod
    async def open_battle(self) -> PlayerStreams:
        """Start a fresh battle and return its four stream views."""


class ChannelSplitter:
    """Stateful router from simulator output lines to protocol channels."""

    def __init__(self) -> None:
        self._block: Optional[str] = None
        self._side: Optional[str] = None
        self._split_player: Optional[str] = None
        self._split_stage = 0
        self._lines: Dict[str, List[str]] = {channel: [] for channel in CHANNELS}
        self.ended = False
        self.end_payload: Optional[str] = None

    def feed_line(self, line: str) -> None:
        if line in BLOCK_HEADERS:
            self._block = line
            self._side = None
            self._split_player = None
            self._split_stage = 0
            if line == "end":
                self.ended = True
            return

        if self._block == "sideupdate":
            if self._side is None:
                self._side = line.strip()
            elif self._side in self._lines:
                self._lines[self._side].append(line)
        elif self._block == "update":
            self._route_update_line(line)
        elif self._block == "end":
            self.end_payload = line
        else:
            logging.debug("Dropping simulator output outside a block: %s", line)

    def _route_update_line(self, line: str) -> None:
        if line.startswith("|split|"):
            self._split_player = line[len("|split|") :].strip()
            self._split_stage = 1
            return

        if self._split_stage == 1:
            self._lines["omniscient"].append(line)
            if self._split_player in ("p1", "p2"):
                self._lines[self._split_player].append(line)
            self._split_stage = 2
            return

        if self._split_stage == 2:
            self._lines["spectator"].append(line)
            for player_id in ("p1", "p2"):
                if player_id != self._split_player:
                    self._lines[player_id].append(line)
            self._split_stage = 0
            self._split_player = None
            return

        for channel in CHANNELS:
            self._lines[channel].append(line)

    def flush(self) -> Dict[str, str]:
        """Return and clear the chunk accumulated for each channel."""
        chunks = {
            channel: "\n".join(lines) for channel, lines in self._lines.items() if lines
        }
        self._lines = {channel: [] for channel in CHANNELS}
        return chunks


class ShowdownSimulator(SimulatorBackend):
    """Runs each battle in its own ``pokemon-showdown simulate-battle`` process."""

    READ_SIZE = 65536
    SHUTDOWN_TIMEOUT_SECONDS = 5.0

    def __init__(self, showdown_path: str, node_binary: str = "node") -> None:
        self._script = str(Path(showdown_path) / "pokemon-showdown")
        self._node_binary = node_binary

    @property
    def command(self) -> str:
        return f"{self._node_binary} {self._script} simulate-battle"

    async def open_battle(self) -> PlayerStreams:
        try:
            process = await asyncio.create_subprocess_exec(
                self._node_binary,
                self._script,
                "simulate-battle",
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SimulatorProcessError(
                f"Could not launch simulator: {e}", self.command
            ) from e

        logging.info("Started simulator pid=%s", process.pid)

        def write_raw(data: str) -> None:
            if process.stdin is None or process.stdin.is_closing():
                logging.warning("Dropping write to closed simulator: %s", data)
                return
            process.stdin.write((data.rstrip("\n") + "\n").encode())

        def player_writer(player_id: str):
            def write(data: str) -> None:
                for line in data.split("\n"):
                    if line:
                        write_raw(f">{player_id} {line}")

            return write

        views = {
            "omniscient": QueueStreamView(writer=write_raw),
            "spectator": QueueStreamView(),
            "p1": QueueStreamView(writer=player_writer("p1")),
            "p2": QueueStreamView(writer=player_writer("p2")),
        }

        reader = asyncio.create_task(self._pump_output(process, views))
        stderr_reader = asyncio.create_task(self._drain_stderr(process))

        async def close() -> None:
            for task in (reader, stderr_reader):
                task.cancel()
            for view in views.values():
                view.close()
            if process.stdin is not None and not process.stdin.is_closing():
                process.stdin.close()
            if process.returncode is None:
                process.terminate()
                try:
                    await asyncio.wait_for(process.wait(), self.SHUTDOWN_TIMEOUT_SECONDS)
                except asyncio.TimeoutError:
                    logging.warning("Simulator pid=%s did not exit, killing", process.pid)
                    process.kill()
                    await process.wait()

        return PlayerStreams(
            omniscient=views["omniscient"],
            spectator=views["spectator"],
            p1=views["p1"],
            p2=views["p2"],
            close=close,
        )

    async def _pump_output(
        self,
        process: asyncio.subprocess.Process,
        views: Dict[str, QueueStreamView],
    ) -> None:
        splitter = ChannelSplitter()
        decoder = codecs.getincrementaldecoder("utf-8")()
        pending = ""
        assert process.stdout is not None

        try:
            while True:
                data = await process.stdout.read(self.READ_SIZE)
                if not data:
                    pending += decoder.decode(b"", final=True)
                    break
                pending += decoder.decode(data)
                *lines, pending = pending.split("\n")
                for line in lines:
                    splitter.feed_line(line)
                # Showdown writes each block in one go, so a read ending on a line
                # boundary is the end of what is currently available
                if not pending:
                    self._dispatch(splitter, views)
                if splitter.ended:
                    break

            if pending:
                splitter.feed_line(pending)
            self._dispatch(splitter, views)
            if splitter.end_payload:
                logging.debug("Simulator end payload: %s", splitter.end_payload)
        except (UnicodeDecodeError, OSError) as e:
            logging.error("Simulator output unreadable: %s", e)
        finally:
            for view in views.values():
                view.close()

    def _dispatch(self, splitter: ChannelSplitter, views: Dict[str, QueueStreamView]) -> None:
        for channel, chunk in splitter.flush().items():
            views[channel].push(chunk)

    async def _drain_stderr(self, process: asyncio.subprocess.Process) -> None:
        assert process.stderr is not None
        while True:
            line = await process.stderr.readline()
            if not line:
                return
            logging.warning("Simulator stderr: %s", line.decode(errors="replace").rstrip())
