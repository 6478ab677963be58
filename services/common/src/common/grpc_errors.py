"""
Translate bridge failures into gRPC status codes.

Servicer methods raise the bridge's own exceptions and let
grpc_error_handler abort the RPC. The status is looked up along the
exception's MRO, so a subclass inherits its parent's code unless it is
registered itself (a ParseError is an EngineError and ends up INTERNAL).
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

import grpc

from .exceptions import (
    EngineError,
    EngineTimeoutError,
    EngineUnavailableError,
    InvalidFenError,
    PoolExhaustedError,
    PoolShutdownError,
    ProtocolStateError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

STATUS_BY_EXCEPTION: dict[type[BaseException], grpc.StatusCode] = {
    InvalidFenError: grpc.StatusCode.INVALID_ARGUMENT,
    # Command constructors reject moves and FENs containing line breaks
    ValueError: grpc.StatusCode.INVALID_ARGUMENT,
    PoolExhaustedError: grpc.StatusCode.RESOURCE_EXHAUSTED,
    PoolShutdownError: grpc.StatusCode.UNAVAILABLE,
    EngineUnavailableError: grpc.StatusCode.UNAVAILABLE,
    EngineTimeoutError: grpc.StatusCode.DEADLINE_EXCEEDED,
    ProtocolStateError: grpc.StatusCode.FAILED_PRECONDITION,
    EngineError: grpc.StatusCode.INTERNAL,
}


def status_for_exception(exc: BaseException) -> grpc.StatusCode:
    """Return the status registered for the nearest class of ``exc``.

    Unregistered exceptions map to INTERNAL.
    """
    for cls in type(exc).__mro__:
        status = STATUS_BY_EXCEPTION.get(cls)
        if status is not None:
            return status
    return grpc.StatusCode.INTERNAL


def abort_with_exception(
    context: grpc.ServicerContext, rpc_name: str, exc: BaseException
) -> None:
    """Log ``exc`` and abort the RPC with its mapped status.

    Server-side failures (INTERNAL) are logged with a traceback; rejected
    requests and engine-availability problems get a single warning line.
    """
    status = status_for_exception(exc)
    if status == grpc.StatusCode.INTERNAL:
        logger.exception(f"{rpc_name} failed: {exc}")
    else:
        logger.warning(f"{rpc_name} aborted with {status.name}: {exc}")
    context.abort(status, str(exc) or type(exc).__name__)


def grpc_error_handler(
    default_response: Callable[[], Any] | None = None,
) -> Callable[[F], F]:
    """Wrap a unary servicer method so exceptions become gRPC statuses.

    Args:
        default_response: Factory for the value returned after
            ``context.abort``. A real context raises from abort, so this is
            only reached with a mocked context.

    Example:
        @grpc_error_handler(default_response=lambda: AnalyzeResponse())
        def Analyze(self, request, context):
            ...
    """

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(
            self: Any,
            request: Any,
            context: grpc.ServicerContext,
            *args: Any,
            **kwargs: Any,
        ) -> Any:
            try:
                return method(self, request, context, *args, **kwargs)
            except Exception as e:
                abort_with_exception(context, method.__name__, e)
                return default_response() if default_response is not None else None

        return wrapper  # type: ignore[return-value]

    return decorator
