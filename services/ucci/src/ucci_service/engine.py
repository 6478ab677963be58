"""
UCCI engine wrapper.

Provides a config-driven interface around UcciClient: start the engine,
apply options, and run one-shot analyses with depth, time or node limits.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from common import (
    EngineError,
    EngineStartupError,
    EngineUnavailableError,
    InvalidFenError,
)

from .client import UcciClient
from .config import EngineConfig
from .protocol import (
    Depth,
    Draw,
    EngineInfo,
    EngineOption,
    EngineState,
    GoMode,
    Info,
    Move,
    MoveResult,
    Nodes,
    NoMove,
    Resign,
    TimeControl,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# Depth used when an analysis request carries no limit at all
DEFAULT_DEPTH = 10

# Piece letters accepted in a Xiangqi FEN board (h/e are the WXF aliases)
FEN_PIECES = set("rnbakcpheRNBAKCPHE")
FEN_RANKS = 10
FEN_FILES = 9


def validate_fen(fen: str) -> None:
    """Check that a Xiangqi FEN board is structurally sound.

    Only the shape is checked (10 ranks of 9 files, known piece letters);
    whether the position is legal is left to the board layer.

    Raises:
        InvalidFenError: If the FEN is malformed.
    """
    if "\n" in fen or "\r" in fen:
        raise InvalidFenError(f"Invalid FEN: {fen!r}")

    fields = fen.split()
    if not fields:
        raise InvalidFenError("Invalid FEN: empty")

    ranks = fields[0].split("/")
    if len(ranks) != FEN_RANKS:
        raise InvalidFenError(f"Invalid FEN: expected {FEN_RANKS} ranks in {fen}")

    for rank in ranks:
        files = 0
        for char in rank:
            if char.isdigit():
                files += int(char)
            elif char in FEN_PIECES:
                files += 1
            else:
                raise InvalidFenError(f"Invalid FEN: unknown piece {char!r} in {fen}")
        if files != FEN_FILES:
            raise InvalidFenError(f"Invalid FEN: rank {rank!r} does not span {FEN_FILES} files")


@dataclass
class AnalysisResult:
    """Outcome of one analysis: the engine's decision plus its search telemetry."""

    result: MoveResult
    infos: list[Info] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        """One of ``move``, ``nomove``, ``draw`` or ``resign``."""
        if isinstance(self.result, Move):
            return "move"
        if isinstance(self.result, NoMove):
            return "nomove"
        if isinstance(self.result, Draw):
            return "draw"
        if isinstance(self.result, Resign):
            return "resign"
        raise TypeError(f"Unknown move result: {self.result!r}")

    @property
    def best_move(self) -> str | None:
        return self.result.notation if isinstance(self.result, Move) else None

    @property
    def ponder(self) -> str | None:
        return self.result.ponder if isinstance(self.result, Move) else None

    @property
    def depth(self) -> int:
        """Deepest depth reported, 0 if none."""
        return max((info.depth for info in self.infos if info.depth is not None), default=0)

    @property
    def score(self) -> int | None:
        """Score of the last info line carrying one."""
        for info in reversed(self.infos):
            if info.score is not None:
                return info.score
        return None

    @property
    def pv(self) -> list[str]:
        """Principal variation of the last info line carrying one."""
        for info in reversed(self.infos):
            if info.pv:
                return list(info.pv)
        return []


class UcciEngine:
    """
    Config-driven wrapper around a UcciClient.

    This class is NOT thread-safe. Each engine instance should be
    used by one thread at a time (managed by EnginePool).

    Usage:
        engine = UcciEngine(config)
        engine.start()
        try:
            result = engine.analyze(fen, depth=12)
            print(f"Best move: {result.best_move}")
        finally:
            engine.stop()
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        """Initialize the engine wrapper.

        Args:
            config: Engine configuration. Uses defaults if not provided.
        """
        self._config = config or EngineConfig()
        self._client: UcciClient | None = None

    @property
    def path(self) -> Path:
        """Get the engine binary path."""
        return self._config.engine_path

    @property
    def version(self) -> str:
        """Get the engine name reported during the handshake."""
        if self._client is None:
            return "not started"
        return self._client.engine_info.name

    @property
    def engine_info(self) -> EngineInfo:
        return self._require_client().engine_info

    @property
    def options(self) -> dict[str, EngineOption]:
        return self._require_client().options

    @property
    def state(self) -> EngineState | None:
        """Protocol state of the engine, None when it is not started."""
        if self._client is None:
            return None
        return self._client.state

    def is_alive(self) -> bool:
        """Check if the engine process is running."""
        if self._client is None:
            return False
        return self._client.is_running()

    def start(self) -> None:
        """Start the engine process, handshake, and apply configured options.

        Raises:
            EngineStartupError: If the engine fails to start.
        """
        if self._client is not None:
            logger.warning("Engine already started, stopping first")
            self.stop()

        logger.info(f"Starting UCCI engine from {self._config.engine_path}")
        self._client = UcciClient.spawn(
            self._config.engine_path,
            self._config.engine_args,
            read_timeout=self._config.read_timeout,
        )

        try:
            self._client.initialize(timeout=self._config.startup_timeout)
            self._configure()
            if not self._client.is_ready(timeout=self._config.ready_timeout):
                raise EngineStartupError("Engine did not answer readyok")
        except EngineStartupError:
            self.stop()
            raise
        except EngineError as e:
            self.stop()
            raise EngineStartupError(f"Failed to start engine: {e}") from e

        logger.info(f"Engine started: {self.version}")

    def _configure(self) -> None:
        assert self._client is not None
        advertised = self._client.options

        if "hashsize" in advertised:
            self._client.set_option("hashsize", self._config.hash_mb)
        if self._config.threads > 1 and "threads" in advertised:
            self._client.set_option("threads", self._config.threads)

        for name, value in self._config.options.items():
            if name not in advertised:
                logger.warning(f"Engine does not advertise option {name}, sending anyway")
            self._client.set_option(name, value)

    def stop(self) -> None:
        """Stop the engine process gracefully."""
        if self._client is not None:
            try:
                self._client.shutdown(self._config.quit_grace_period)
            except Exception as e:
                logger.warning(f"Error stopping engine: {e}")
            finally:
                self._client = None

    def ensure_ready(self) -> None:
        """Verify the engine is idle and answering.

        Raises:
            EngineError: If the engine is not idle or does not answer in time.
        """
        client = self._require_client()
        if not client.is_idle():
            raise EngineError(f"Engine is not idle: {client.state.name}")
        if not client.is_ready(timeout=self._config.ready_timeout):
            raise EngineError("Engine did not answer readyok")

    def reset(self) -> None:
        """Return the engine to IDLE and confirm it answers ``isready``.

        A search left running (the caller raised mid-search) is stopped and
        its result and telemetry are discarded.

        Raises:
            EngineError: If the search cannot be stopped or the engine does
                not answer.
        """
        client = self._require_client()
        if client.is_thinking():
            logger.info("Stopping abandoned search")
            client.stop()
            client.read_info()
        self.ensure_ready()

    def analyze(
        self,
        fen: str,
        moves: Iterable[str] = (),
        depth: int | None = None,
        time_ms: int | None = None,
        nodes: int | None = None,
        ban_moves: Iterable[str] = (),
    ) -> AnalysisResult:
        """Search a position and return the engine's decision.

        Args:
            fen: Position in Xiangqi FEN notation.
            moves: Moves (ICCS) played from that position.
            depth: Search depth limit.
            time_ms: Time limit in milliseconds.
            nodes: Node limit.
            ban_moves: Moves the engine must not choose.

        Returns:
            AnalysisResult with the move result and search telemetry.

        Raises:
            EngineUnavailableError: If the engine is not started.
            InvalidFenError: If the FEN is malformed.
            EngineError: If the engine fails during the search.
        """
        client = self._require_client()
        validate_fen(fen)

        banned = list(ban_moves)
        client.set_position(fen, moves)
        if banned:
            client.ban_moves(banned)

        client.go(self._search_mode(depth, time_ms, nodes))
        result = client.wait()
        return AnalysisResult(result=result, infos=client.read_info())

    @staticmethod
    def _search_mode(depth: int | None, time_ms: int | None, nodes: int | None) -> GoMode:
        if depth and depth > 0:
            return Depth(depth)
        if time_ms and time_ms > 0:
            return TimeControl(time=time_ms)
        if nodes and nodes > 0:
            return Nodes(nodes)
        return Depth(DEFAULT_DEPTH)

    def _require_client(self) -> UcciClient:
        if self._client is None:
            raise EngineUnavailableError("Engine not started")
        return self._client
