"""
High-level UCCI client.

Drives one engine subprocess through the protocol: handshake, option and
position setup, searches, readiness checks and shutdown. Every command is
checked against the protocol state machine before it is serialized, so an
illegal call fails without touching the engine.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from common import EngineError, InvalidCommandError

from .channel import DEFAULT_GRACE_PERIOD, ProcessChannel
from .parser import parse_response
from .protocol import (
    BanMoves,
    BestMove,
    Bye,
    Command,
    Depth,
    EngineInfo,
    EngineOption,
    EngineState,
    Go,
    GoMode,
    Handshake,
    HandshakeOk,
    Id,
    Infinite,
    Info,
    IsReady,
    MoveResult,
    NoBestMove,
    Nodes,
    Option,
    PonderHit,
    PopHash,
    Probe,
    Quit,
    Response,
    SetOption,
    SetPosition,
    Stop,
    TimeControl,
    move_result_from,
)
from .serializer import serialize_command
from .state import ProtocolStateMachine

logger = logging.getLogger(__name__)

# Seconds shutdown() waits for the engine's reply to quit
SHUTDOWN_READ_TIMEOUT = 1.0


class UcciClient:
    """
    Client for one UCCI engine process.

    This class is NOT thread-safe; the engine protocol is strictly
    request/response and a client must be driven by one thread.

    Usage:
        with UcciClient.spawn("/usr/local/bin/eleeye") as client:
            client.initialize()
            client.set_position(fen, ["h2e2", "h9g7"])
            client.go_depth(10)
            result = client.wait()
    """

    def __init__(self, channel: ProcessChannel, read_timeout: float | None = None) -> None:
        """Initialize the client around an open channel.

        Args:
            channel: Channel to the engine process. The client takes ownership.
            read_timeout: Seconds to wait for each engine line (None = forever).
        """
        self._channel = channel
        self._read_timeout = read_timeout
        self._state = ProtocolStateMachine()
        self._info = EngineInfo()
        self._options: dict[str, EngineOption] = {}
        self._infos: list[Info] = []

    @classmethod
    def spawn(
        cls,
        executable: str | Path,
        args: Sequence[str] = (),
        read_timeout: float | None = None,
    ) -> UcciClient:
        """Spawn an engine and wrap it in a client.

        Raises:
            EngineSpawnError: If the engine cannot be started.
        """
        return cls(ProcessChannel.spawn(executable, args), read_timeout=read_timeout)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def engine_info(self) -> EngineInfo:
        """Engine identification reported during the handshake."""
        return self._info

    @property
    def options(self) -> dict[str, EngineOption]:
        """Options advertised by the engine, keyed by name."""
        return self._options

    @property
    def state(self) -> EngineState:
        return self._state.state

    def is_idle(self) -> bool:
        return self._state.is_idle()

    def is_thinking(self) -> bool:
        return self._state.is_thinking()

    def is_running(self) -> bool:
        """Check if the engine process is alive."""
        return self._channel.is_running()

    # -------------------------------------------------------------------------
    # Handshake and configuration
    # -------------------------------------------------------------------------

    def initialize(self, timeout: float | None = None) -> None:
        """Send ``ucci`` and collect id/option lines until ``ucciok``.

        Args:
            timeout: Per-line read timeout; defaults to the client's.

        Raises:
            ParseError: If the engine sends a malformed line.
            EngineError: On any I/O or sequencing failure.
        """
        self._send(Handshake())

        while True:
            response = self._read_response(timeout)
            if isinstance(response, HandshakeOk):
                break
            if isinstance(response, Id):
                self._record_id(response)
            elif isinstance(response, Option):
                self._options[response.name] = EngineOption.from_response(response)
            else:
                logger.debug(f"Ignoring {type(response).__name__} during handshake")

        logger.info(f"Engine initialized: {self._info.name}")

    def is_ready(self, timeout: float | None = None) -> bool:
        """Send ``isready``; True iff the engine answers ``readyok``.

        Args:
            timeout: Seconds to wait for the answer; defaults to the
                client's read timeout.

        Raises:
            EngineTimeoutError: If no answer arrives in time.
        """
        self._send(IsReady())
        return self._read_line(timeout) == "readyok"

    def set_option(self, name: str, value: str | int | bool | None = None) -> None:
        """Send ``setoption``. Requires the engine to be idle."""
        if isinstance(value, bool):
            text: str | None = "true" if value else "false"
        else:
            text = None if value is None else str(value)
        self._send_idle(SetOption(name, text))

    def set_position(self, fen: str, moves: Iterable[str] = ()) -> None:
        """Send ``position fen ... [moves ...]``. Requires the engine to be idle."""
        self._send_idle(SetPosition(fen, tuple(moves)))

    def ban_moves(self, moves: Iterable[str]) -> None:
        """Send ``banmoves``. Requires the engine to be idle."""
        self._send_idle(BanMoves(tuple(moves)))

    # -------------------------------------------------------------------------
    # Searching
    # -------------------------------------------------------------------------

    def go(self, mode: GoMode, ponder: bool = False, allow_draw: bool = False) -> None:
        """Start a search. Requires the engine to be idle.

        Clears the telemetry buffered by the previous search.
        """
        command = Go(mode, ponder=ponder, allow_draw=allow_draw)
        self._require_idle(command)
        self._infos.clear()
        self._send(command)

    def go_depth(self, depth: int) -> None:
        """Search to a fixed depth."""
        self.go(Depth(depth))

    def go_time(self, time_ms: int) -> None:
        """Search with a time budget in milliseconds."""
        self.go(TimeControl(time=time_ms))

    def go_nodes(self, nodes: int) -> None:
        """Search a fixed number of nodes."""
        self.go(Nodes(nodes))

    def go_infinite(self) -> None:
        """Search until stop() is called."""
        self.go(Infinite())

    def ponder_hit(self, allow_draw: bool = False) -> None:
        """Tell a pondering engine that the expected move was played."""
        self._send(PonderHit(allow_draw=allow_draw))

    def stop(self) -> MoveResult:
        """Stop the current search and return its result.

        Info lines received before the result are buffered for read_info().

        Raises:
            InvalidCommandError: If no search is running.
        """
        self._require_thinking("stop")
        self._send(Stop())
        return self._await_result()

    def wait(self) -> MoveResult:
        """Wait for the current search to finish on its own.

        Meant for depth, node or time limited searches.

        Raises:
            InvalidCommandError: If no search is running.
        """
        self._require_thinking("wait")
        return self._await_result()

    def read_info(self) -> list[Info]:
        """Drain the info lines buffered during the last search."""
        infos = self._infos
        self._infos = []
        return infos

    def probe(self, fen: str, moves: Iterable[str] = ()) -> PopHash:
        """Query the engine's hash table for a position."""
        self._send_idle(Probe(fen, tuple(moves)))
        while True:
            response = self._read_response()
            if isinstance(response, PopHash):
                return response
            logger.debug(f"Ignoring {type(response).__name__} while waiting for pophash")

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    def shutdown(self, grace_period: float = DEFAULT_GRACE_PERIOD) -> None:
        """Quit the engine and terminate its process.

        Sends ``quit`` when the protocol allows it and waits for one line
        (normally ``bye``); failures there are tolerated. The process is
        terminated in every case.
        """
        if self._channel.closed:
            return

        try:
            if self._state.can_send(Quit()):
                self._send(Quit())
                # Bounded wait for bye; the process may already be gone
                with contextlib.suppress(EngineError, NotImplementedError):
                    self._channel.read_line(timeout=SHUTDOWN_READ_TIMEOUT)
            else:
                logger.warning(f"Shutting down engine in {self._state.state.name} state")
        except EngineError as e:
            logger.warning(f"Error during engine shutdown: {e}")
        finally:
            self._channel.terminate(grace_period)
            logger.info("Engine stopped")

    def __enter__(self) -> UcciClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _send(self, command: Command) -> None:
        # Pre-flight check first: illegal commands never reach the engine
        if not self._state.can_send(command):
            raise InvalidCommandError(
                f"{type(command).__name__} cannot be sent in {self._state.state.name} state"
            )
        self._channel.send_line(serialize_command(command))
        self._state.transition(command)

    def _send_idle(self, command: Command) -> None:
        self._require_idle(command)
        self._send(command)

    def _require_idle(self, command: Command) -> None:
        if not self._state.is_idle():
            raise InvalidCommandError(
                f"{type(command).__name__} requires IDLE state, "
                f"current state: {self._state.state.name}"
            )

    def _require_thinking(self, operation: str) -> None:
        if not self._state.is_thinking():
            raise InvalidCommandError(
                f"{operation} requires THINKING state, "
                f"current state: {self._state.state.name}"
            )

    def _read_line(self, timeout: float | None = None) -> str:
        return self._channel.read_line(timeout if timeout is not None else self._read_timeout)

    def _read_response(self, timeout: float | None = None) -> Response:
        response = parse_response(self._read_line(timeout))
        self._state.on_response(response)
        return response

    def _await_result(self) -> MoveResult:
        while True:
            response = self._read_response()
            if isinstance(response, Info):
                self._infos.append(response)
            elif isinstance(response, (BestMove, NoBestMove)):
                return move_result_from(response)
            elif isinstance(response, Bye):
                logger.warning("Engine said bye during a search")
            else:
                logger.debug(f"Ignoring {type(response).__name__} during search")

    def _record_id(self, response: Id) -> None:
        if response.field == "name":
            self._info.name = response.value
        elif response.field == "author":
            self._info.author = response.value
        elif response.field == "copyright":
            self._info.copyright = response.value
        elif response.field == "user":
            self._info.user = response.value
        else:
            logger.debug(f"Ignoring unknown id field: {response.field}")


