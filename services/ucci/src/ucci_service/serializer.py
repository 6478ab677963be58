"""
Serialize UCCI protocol values to their wire lines.

serialize_command renders what the interface sends; serialize_response
renders what an engine sends, so scripted engines and tests can produce
exactly the lines the parser expects.
"""

from __future__ import annotations

from .protocol import (
    BanMoves,
    BestMove,
    Bye,
    Command,
    Depth,
    Go,
    GoMode,
    Handshake,
    HandshakeOk,
    Id,
    Infinite,
    Info,
    IsReady,
    NoBestMove,
    Nodes,
    Option,
    PonderHit,
    PopHash,
    Probe,
    Quit,
    ReadyOk,
    Response,
    SetOption,
    SetPosition,
    Stop,
    TimeControl,
)


def serialize_command(command: Command) -> str:
    """Serialize a command to a single UCCI protocol line (no newline)."""
    if isinstance(command, Handshake):
        return "ucci"

    if isinstance(command, SetOption):
        if command.value is None:
            return f"setoption {command.name}"
        return f"setoption {command.name} {command.value}"

    if isinstance(command, SetPosition):
        return _with_moves(f"position fen {command.fen}", command.moves)

    if isinstance(command, BanMoves):
        return " ".join(["banmoves", *command.moves])

    if isinstance(command, Go):
        parts = ["go"]
        if command.ponder:
            parts.append("ponder")
        if command.allow_draw:
            parts.append("draw")
        parts.append(serialize_go_mode(command.mode))
        return " ".join(parts)

    if isinstance(command, Stop):
        return "stop"

    if isinstance(command, PonderHit):
        return "ponderhit draw" if command.allow_draw else "ponderhit"

    if isinstance(command, IsReady):
        return "isready"

    if isinstance(command, Quit):
        return "quit"

    if isinstance(command, Probe):
        return _with_moves(f"probe fen {command.fen}", command.moves)

    raise TypeError(f"Unknown UCCI command: {command!r}")


def serialize_go_mode(mode: GoMode) -> str:
    """Serialize the mode clause of a ``go`` command."""
    if isinstance(mode, Depth):
        return f"depth {mode.depth}"

    if isinstance(mode, Infinite):
        return "infinite"

    if isinstance(mode, Nodes):
        return f"nodes {mode.nodes}"

    if isinstance(mode, TimeControl):
        # Fixed field order; absent fields are omitted
        clauses = [
            ("time", mode.time),
            ("movestogo", mode.moves_to_go),
            ("increment", mode.increment),
            ("opptime", mode.opp_time),
            ("oppmovestogo", mode.opp_moves_to_go),
            ("oppincrement", mode.opp_increment),
        ]
        return " ".join(f"{key} {value}" for key, value in clauses if value is not None)

    raise TypeError(f"Unknown go mode: {mode!r}")


def serialize_response(response: Response) -> str:
    """Serialize an engine response to its UCCI protocol line.

    Raises:
        ValueError: If the response cannot be represented on the wire
            (an info line carrying both ``pv`` and ``message``, a token with
            whitespace in it, or free text the parser would not return
            unchanged).
        TypeError: If the value is not a known response.
    """
    if isinstance(response, Id):
        _check_free_text(response.value, "id value", exact_spacing=False)
        return f"id {_token(response.field, 'id field')} {response.value}"

    if isinstance(response, Option):
        parts = ["option", _token(response.name, "option name"), "type", response.type.value]
        if response.min is not None:
            parts += ["min", str(response.min)]
        if response.max is not None:
            parts += ["max", str(response.max)]
        for var in response.vars:
            parts += ["var", _token(var, "option var")]
        if response.default is not None:
            parts += ["default", _token(response.default, "option default")]
        return " ".join(parts)

    if isinstance(response, HandshakeOk):
        return "ucciok"

    if isinstance(response, ReadyOk):
        return "readyok"

    if isinstance(response, BestMove):
        parts = ["bestmove", _token(response.move, "bestmove")]
        if response.ponder is not None:
            parts += ["ponder", _token(response.ponder, "ponder move")]
        if response.draw:
            parts.append("draw")
        if response.resign:
            parts.append("resign")
        return " ".join(parts)

    if isinstance(response, NoBestMove):
        return "nobestmove"

    if isinstance(response, Info):
        return _serialize_info(response)

    if isinstance(response, PopHash):
        parts = ["pophash"]
        if response.bestmove is not None:
            parts += ["bestmove", _token(response.bestmove, "pophash bestmove")]
        if response.lower_bound is not None:
            parts += ["lowerbound", str(response.lower_bound[0]), str(response.lower_bound[1])]
        if response.upper_bound is not None:
            parts += ["upperbound", str(response.upper_bound[0]), str(response.upper_bound[1])]
        return " ".join(parts)

    if isinstance(response, Bye):
        return "bye"

    raise TypeError(f"Unknown UCCI response: {response!r}")


def _serialize_info(info: Info) -> str:
    # pv and message both swallow the rest of the line
    if info.pv and info.message is not None:
        raise ValueError("info line cannot carry both pv and message")

    parts = ["info"]
    for key, value in (
        ("depth", info.depth),
        ("score", info.score),
        ("time", info.time),
        ("nodes", info.nodes),
        ("currmove", info.currmove),
    ):
        if value is not None:
            if isinstance(value, int) and key != "score" and value < 0:
                raise ValueError(f"info {key} must not be negative: {value}")
            parts += [key, _token(str(value), key)]
    if info.pv:
        parts += ["pv", *(_token(move, "pv move") for move in info.pv)]
    if info.message is not None:
        _check_free_text(info.message, "info message", exact_spacing=True)
        parts += ["message", info.message]
    return " ".join(parts)


def _with_moves(head: str, moves: tuple[str, ...]) -> str:
    if not moves:
        return head
    return f"{head} moves {' '.join(moves)}"


def _token(value: str, what: str) -> str:
    # The parser splits on whitespace, so a token must be one word
    if len(value.split()) != 1 or value != value.strip():
        raise ValueError(f"{what} must be a single word: {value!r}")
    return value


def _check_free_text(value: str, what: str, exact_spacing: bool) -> None:
    """Reject text that would not parse back unchanged.

    Leading and trailing whitespace is always lost; ``info message`` is
    re-joined with single spaces, so there inner runs are lost as well.
    """
    if not value.strip():
        raise ValueError(f"{what} must not be empty")
    if "\n" in value or "\r" in value or value != value.strip():
        raise ValueError(f"{what} has surrounding whitespace or line breaks: {value!r}")
    if exact_spacing and " ".join(value.split()) != value:
        raise ValueError(f"{what} must use single spaces between words: {value!r}")
