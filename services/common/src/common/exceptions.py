"""
Unified exception hierarchy for the UCCI bridge.

Every failure raised by the process channel, the protocol layer and the
client derives from EngineError, so callers that only care about
"the engine failed" can catch a single type while callers that want the
precise cause can match the subclass.
"""

from __future__ import annotations

from enum import Enum


class UcciBridgeError(Exception):
    """Base exception for all UCCI bridge errors."""


# =============================================================================
# Engine Exceptions
# =============================================================================


class EngineError(UcciBridgeError):
    """Base exception for engine-related errors."""


class EngineStartupError(EngineError):
    """Engine failed to start or initialize."""


class EngineSpawnError(EngineStartupError):
    """Engine executable is missing or could not be spawned."""


class EngineWriteError(EngineError):
    """Writing a command to the engine failed."""


class EngineReadError(EngineError):
    """Reading a response from the engine failed."""


class UnexpectedEofError(EngineReadError):
    """Engine closed its output before sending a terminal response."""


class EngineTimeoutError(EngineError):
    """Engine operation timed out."""


class EngineUnavailableError(EngineError):
    """Engine is not started or has been shut down."""


class ParseErrorKind(Enum):
    """Reason a line of engine output could not be parsed."""

    INVALID_FORMAT = "invalid format"
    UNKNOWN_COMMAND = "unknown command"
    INVALID_PARAMETER = "invalid parameter"
    MISSING_REQUIRED_FIELD = "missing required field"


class ParseError(EngineReadError):
    """A line of engine output does not match the UCCI grammar."""

    def __init__(self, kind: ParseErrorKind, detail: str) -> None:
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail


# =============================================================================
# Protocol State Exceptions
# =============================================================================


class ProtocolStateError(EngineError):
    """Base exception for protocol sequencing violations."""


class InvalidCommandError(ProtocolStateError):
    """Command cannot be sent in the current engine state."""


class UnexpectedResponseError(ProtocolStateError):
    """Response is not legal in the current engine state."""


# =============================================================================
# Common Exceptions
# =============================================================================


class InvalidFenError(UcciBridgeError):
    """Invalid FEN position provided."""


class ConfigError(UcciBridgeError):
    """Configuration file is unreadable or holds a value of the wrong type."""


# =============================================================================
# Pool Exceptions
# =============================================================================


class PoolError(UcciBridgeError):
    """Base exception for engine pool errors."""


class PoolExhaustedError(PoolError):
    """No engine available within the acquire timeout."""


class PoolShutdownError(PoolError):
    """Pool is shut down or not started."""
