"""
Parser for UCCI engine output.

Turns one line of engine output into a protocol Response. The grammar is
keyword driven: optional numeric fields that fail to parse are treated as
absent, unknown keywords are skipped, and ``pv`` / ``message`` consume the
rest of the line. Only structurally required fields raise ParseError.

Example engine output:
    id name ElephantEye 3.3
    option hashsize type spin min 0 max 1024 default 16
    ucciok
    info depth 6 score 4 pv b0c2 b9c7
    bestmove b0c2 ponder b9c7
"""

from __future__ import annotations

import logging
from typing import Callable

from common import ParseError, ParseErrorKind

from .protocol import (
    BestMove,
    Bye,
    HandshakeOk,
    Id,
    Info,
    NoBestMove,
    Option,
    OptionType,
    PopHash,
    ReadyOk,
    Response,
)

logger = logging.getLogger(__name__)

# Option type keyword -> OptionType
OPTION_TYPES = {option_type.value: option_type for option_type in OptionType}


def parse_response(line: str) -> Response:
    """
    Parse a single line of engine output.

    Args:
        line: One line of engine output, with or without trailing newline.

    Returns:
        The parsed Response.

    Raises:
        ParseError: If the line is empty, has an unknown leading keyword,
            or lacks a required field.
    """
    line = line.strip()
    if not line:
        raise ParseError(ParseErrorKind.INVALID_FORMAT, "empty line")

    parts = line.split()
    keyword = parts[0]

    if keyword == "id":
        return _parse_id(line)
    if keyword == "option":
        return _parse_option(parts)
    if keyword == "ucciok":
        return HandshakeOk()
    if keyword == "readyok":
        return ReadyOk()
    if keyword == "bestmove":
        return _parse_bestmove(parts)
    if keyword == "nobestmove":
        return NoBestMove()
    if keyword == "info":
        return _parse_info(parts)
    if keyword == "pophash":
        return _parse_pophash(parts)
    if keyword == "bye":
        return Bye()

    raise ParseError(ParseErrorKind.UNKNOWN_COMMAND, keyword)


def _parse_id(line: str) -> Id:
    # The value is free text and keeps its inner spacing
    parts = line.split(None, 2)
    if len(parts) < 3:
        raise ParseError(ParseErrorKind.MISSING_REQUIRED_FIELD, "id value")
    return Id(field=parts[1], value=parts[2])


def _parse_option(parts: list[str]) -> Option:
    if len(parts) < 4 or parts[2] != "type":
        raise ParseError(ParseErrorKind.INVALID_FORMAT, "invalid option format")

    name = parts[1]
    option_type = OPTION_TYPES.get(parts[3])
    if option_type is None:
        raise ParseError(ParseErrorKind.INVALID_PARAMETER, f"unknown option type: {parts[3]}")

    min_value: int | None = None
    max_value: int | None = None
    vars_: list[str] = []
    default: str | None = None

    i = 4
    while i < len(parts):
        key = parts[i]
        has_value = i + 1 < len(parts)
        if key == "min" and has_value:
            min_value = _parse_int(parts[i + 1])
            i += 2
        elif key == "max" and has_value:
            max_value = _parse_int(parts[i + 1])
            i += 2
        elif key == "var" and has_value:
            vars_.append(parts[i + 1])
            i += 2
        elif key == "default" and has_value:
            default = parts[i + 1]
            i += 2
        else:
            i += 1

    return Option(
        name=name,
        type=option_type,
        min=min_value,
        max=max_value,
        vars=tuple(vars_),
        default=default,
    )


def _parse_bestmove(parts: list[str]) -> BestMove:
    if len(parts) < 2:
        raise ParseError(ParseErrorKind.MISSING_REQUIRED_FIELD, "move")

    ponder: str | None = None
    draw = False
    resign = False

    i = 2
    while i < len(parts):
        key = parts[i]
        if key == "ponder" and i + 1 < len(parts):
            ponder = parts[i + 1]
            i += 2
            continue
        if key == "draw":
            draw = True
        elif key == "resign":
            resign = True
        i += 1

    return BestMove(move=parts[1], ponder=ponder, draw=draw, resign=resign)


def _parse_info(parts: list[str]) -> Info:
    fields: dict[str, object] = {}

    i = 1
    while i < len(parts):
        key = parts[i]
        if key == "pv":
            fields["pv"] = tuple(parts[i + 1 :])
            break
        if key == "message":
            if i + 1 < len(parts):
                fields["message"] = " ".join(parts[i + 1 :])
            break
        scalar = _INFO_SCALARS.get(key)
        if scalar is not None and i + 1 < len(parts):
            field_name, convert = scalar
            fields[field_name] = convert(parts[i + 1])
            i += 2
            continue
        if scalar is None:
            logger.debug(f"Skipping unknown info keyword: {key}")
        i += 1

    return Info(**fields)  # type: ignore[arg-type]


def _parse_pophash(parts: list[str]) -> PopHash:
    bestmove: str | None = None
    lower_bound: tuple[int, int] | None = None
    upper_bound: tuple[int, int] | None = None

    i = 1
    while i < len(parts):
        key = parts[i]
        if key == "bestmove" and i + 1 < len(parts):
            bestmove = parts[i + 1]
            i += 2
            continue
        if key in ("lowerbound", "upperbound") and i + 2 < len(parts):
            score = _parse_int(parts[i + 1])
            depth = _parse_uint(parts[i + 2])
            if score is not None and depth is not None:
                if key == "lowerbound":
                    lower_bound = (score, depth)
                else:
                    upper_bound = (score, depth)
                i += 3
                continue
        i += 1

    return PopHash(bestmove=bestmove, lower_bound=lower_bound, upper_bound=upper_bound)


def _parse_int(token: str) -> int | None:
    """Parse a signed integer, returning None if it is not one."""
    try:
        return int(token)
    except ValueError:
        return None


def _parse_uint(token: str) -> int | None:
    """Parse a non-negative integer, returning None otherwise."""
    value = _parse_int(token)
    if value is None or value < 0:
        return None
    return value


def _as_text(token: str) -> str:
    return token


# info keyword -> (Info field, value parser)
_INFO_SCALARS: dict[str, tuple[str, Callable[[str], int | str | None]]] = {
    "time": ("time", _parse_uint),
    "nodes": ("nodes", _parse_uint),
    "depth": ("depth", _parse_uint),
    "score": ("score", _parse_int),
    "currmove": ("currmove", _as_text),
}
