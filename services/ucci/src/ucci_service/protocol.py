"""
UCCI protocol model.

Commands flow from the interface to the engine, responses flow back.
Each union is a closed set of frozen dataclasses; the serializer, the
parser and the state machine all dispatch on the concrete class.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class EngineState(Enum):
    """Engine lifecycle state tracked by the protocol state machine."""

    BOOT = "boot"  # Before ucciok
    IDLE = "idle"  # Waiting for commands
    THINKING = "thinking"  # Searching for a move


class OptionType(Enum):
    """Option types an engine may advertise during the handshake."""

    CHECK = "check"
    SPIN = "spin"
    COMBO = "combo"
    BUTTON = "button"
    STRING = "string"
    LABEL = "label"


def _check_line(value: str, what: str) -> None:
    if "\n" in value or "\r" in value:
        raise ValueError(f"{what} must not contain line breaks: {value!r}")


def _check_lines(values: tuple[str, ...], what: str) -> None:
    for value in values:
        _check_line(value, what)


# =============================================================================
# Go modes
# =============================================================================


@dataclass(frozen=True)
class Depth:
    """Search to a fixed depth."""

    depth: int


@dataclass(frozen=True)
class Infinite:
    """Search until told to stop."""


@dataclass(frozen=True)
class Nodes:
    """Search a fixed number of nodes."""

    nodes: int


@dataclass(frozen=True)
class TimeControl:
    """Clock-driven search. Times are in milliseconds."""

    time: int
    moves_to_go: int | None = None
    increment: int | None = None
    opp_time: int | None = None
    opp_moves_to_go: int | None = None
    opp_increment: int | None = None


GoMode = Union[Depth, Infinite, Nodes, TimeControl]


# =============================================================================
# Commands (interface -> engine)
# =============================================================================


@dataclass(frozen=True)
class Handshake:
    """``ucci``: start the protocol."""


@dataclass(frozen=True)
class SetOption:
    """``setoption <name> [<value>]``."""

    name: str
    value: str | None = None

    def __post_init__(self) -> None:
        _check_line(self.name, "option name")
        if self.value is not None:
            _check_line(self.value, "option value")


@dataclass(frozen=True)
class SetPosition:
    """``position fen <fen> [moves ...]``."""

    fen: str
    moves: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "moves", tuple(self.moves))
        _check_line(self.fen, "FEN")
        _check_lines(self.moves, "move")


@dataclass(frozen=True)
class BanMoves:
    """``banmoves ...``: exclude moves from the next search."""

    moves: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "moves", tuple(self.moves))
        _check_lines(self.moves, "move")


@dataclass(frozen=True)
class Go:
    """``go [ponder] [draw] <mode>``."""

    mode: GoMode
    ponder: bool = False
    allow_draw: bool = False


@dataclass(frozen=True)
class Stop:
    """``stop``: end the current search."""


@dataclass(frozen=True)
class PonderHit:
    """``ponderhit [draw]``: the pondered move was played."""

    allow_draw: bool = False


@dataclass(frozen=True)
class IsReady:
    """``isready``: readiness check."""


@dataclass(frozen=True)
class Quit:
    """``quit``: ask the engine to exit."""


@dataclass(frozen=True)
class Probe:
    """``probe fen <fen> [moves ...]``: query the hash table."""

    fen: str
    moves: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "moves", tuple(self.moves))
        _check_line(self.fen, "FEN")
        _check_lines(self.moves, "move")


Command = Union[
    Handshake,
    SetOption,
    SetPosition,
    BanMoves,
    Go,
    Stop,
    PonderHit,
    IsReady,
    Quit,
    Probe,
]


# =============================================================================
# Responses (engine -> interface)
# =============================================================================


@dataclass(frozen=True)
class Id:
    """``id <field> <value>``."""

    field: str
    value: str


@dataclass(frozen=True)
class Option:
    """``option <name> type <type> [min N] [max N] [var V]... [default D]``."""

    name: str
    type: OptionType
    min: int | None = None
    max: int | None = None
    vars: tuple[str, ...] = ()
    default: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "vars", tuple(self.vars))


@dataclass(frozen=True)
class HandshakeOk:
    """``ucciok``."""


@dataclass(frozen=True)
class ReadyOk:
    """``readyok``."""


@dataclass(frozen=True)
class BestMove:
    """``bestmove <move> [ponder <move>] [draw] [resign]``."""

    move: str
    ponder: str | None = None
    draw: bool = False
    resign: bool = False


@dataclass(frozen=True)
class NoBestMove:
    """``nobestmove``."""


@dataclass(frozen=True)
class Info:
    """One search progress snapshot (``info ...``).

    Also used as the telemetry record the client buffers during a search.
    """

    time: int | None = None  # Elapsed milliseconds
    nodes: int | None = None
    depth: int | None = None
    score: int | None = None
    pv: tuple[str, ...] = ()
    currmove: str | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "pv", tuple(self.pv))


@dataclass(frozen=True)
class PopHash:
    """``pophash``: hash table entry returned by ``probe``.

    Bounds are ``(score, depth)`` pairs.
    """

    bestmove: str | None = None
    lower_bound: tuple[int, int] | None = None
    upper_bound: tuple[int, int] | None = None


@dataclass(frozen=True)
class Bye:
    """``bye``: the engine is exiting."""


Response = Union[
    Id,
    Option,
    HandshakeOk,
    ReadyOk,
    BestMove,
    NoBestMove,
    Info,
    PopHash,
    Bye,
]


# =============================================================================
# Client-side records
# =============================================================================


@dataclass
class EngineInfo:
    """Engine identification collected during the handshake."""

    name: str = "Unknown"
    author: str | None = None
    copyright: str | None = None
    user: str | None = None


@dataclass(frozen=True)
class EngineOption:
    """Catalogue entry for an option advertised by the engine."""

    name: str
    type: OptionType
    min: int | None = None
    max: int | None = None
    vars: tuple[str, ...] = ()
    default: str | None = None

    @classmethod
    def from_response(cls, option: Option) -> EngineOption:
        return cls(
            name=option.name,
            type=option.type,
            min=option.min,
            max=option.max,
            vars=option.vars,
            default=option.default,
        )


# =============================================================================
# Search outcome
# =============================================================================


@dataclass(frozen=True)
class Move:
    """The engine chose a move (ICCS notation), optionally with a ponder move."""

    notation: str
    ponder: str | None = None


@dataclass(frozen=True)
class NoMove:
    """The engine has no legal move."""


@dataclass(frozen=True)
class Draw:
    """The engine offers or accepts a draw."""


@dataclass(frozen=True)
class Resign:
    """The engine resigns."""


MoveResult = Union[Move, NoMove, Draw, Resign]


def move_result_from(response: BestMove | NoBestMove) -> MoveResult:
    """Convert a terminal search response into a MoveResult.

    ``resign`` takes precedence over ``draw``.
    """
    if isinstance(response, NoBestMove):
        return NoMove()
    if response.resign:
        return Resign()
    if response.draw:
        return Draw()
    return Move(response.move, response.ponder)


__all__ = [
    "EngineState",
    "OptionType",
    # Go modes
    "Depth",
    "Infinite",
    "Nodes",
    "TimeControl",
    "GoMode",
    # Commands
    "Handshake",
    "SetOption",
    "SetPosition",
    "BanMoves",
    "Go",
    "Stop",
    "PonderHit",
    "IsReady",
    "Quit",
    "Probe",
    "Command",
    # Responses
    "Id",
    "Option",
    "HandshakeOk",
    "ReadyOk",
    "BestMove",
    "NoBestMove",
    "Info",
    "PopHash",
    "Bye",
    "Response",
    # Records
    "EngineInfo",
    "EngineOption",
    "Move",
    "NoMove",
    "Draw",
    "Resign",
    "MoveResult",
    "move_result_from",
]
