"""Common utilities shared by the UCCI bridge packages."""

from .exceptions import (
    ConfigError,
    EngineError,
    EngineReadError,
    EngineSpawnError,
    EngineStartupError,
    EngineTimeoutError,
    EngineUnavailableError,
    EngineWriteError,
    InvalidCommandError,
    InvalidFenError,
    ParseError,
    ParseErrorKind,
    PoolError,
    PoolExhaustedError,
    PoolShutdownError,
    ProtocolStateError,
    UcciBridgeError,
    UnexpectedEofError,
    UnexpectedResponseError,
)
from .grpc_errors import (
    STATUS_BY_EXCEPTION,
    abort_with_exception,
    grpc_error_handler,
    status_for_exception,
)
from .server import GracefulServer

__all__ = [
    # Exceptions
    "UcciBridgeError",
    "EngineError",
    "EngineStartupError",
    "EngineSpawnError",
    "EngineWriteError",
    "EngineReadError",
    "UnexpectedEofError",
    "EngineTimeoutError",
    "EngineUnavailableError",
    "ParseError",
    "ParseErrorKind",
    "ProtocolStateError",
    "InvalidCommandError",
    "UnexpectedResponseError",
    "InvalidFenError",
    "ConfigError",
    "PoolError",
    "PoolExhaustedError",
    "PoolShutdownError",
    # gRPC utilities
    "grpc_error_handler",
    "STATUS_BY_EXCEPTION",
    "abort_with_exception",
    "status_for_exception",
    # Server utilities
    "GracefulServer",
]
