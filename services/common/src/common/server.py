"""
Signal-driven lifecycle for gRPC servers that own engine processes.

Shutdown order matters when RPCs hold pooled engines: the server stops
accepting calls first and in-flight searches get the grace period to
finish and hand their engines back; only then do the shutdown hooks
(pool shutdown, which quits every engine) run.
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    import grpc

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class GracefulServer:
    """
    Run a gRPC server until SIGTERM/SIGINT, then drain it and run hooks.

    Usage:
        server, pool = create_server(config)
        pool.start()

        with GracefulServer(server, on_shutdown=pool.shutdown) as graceful:
            graceful.wait()
    """

    def __init__(
        self,
        server: grpc.Server,
        grace_period: float = 5.0,
        on_shutdown: Callable[[], None] | None = None,
        signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS,
    ) -> None:
        self._server = server
        self._grace_period = grace_period
        self._hooks: list[Callable[[], None]] = []
        if on_shutdown is not None:
            self._hooks.append(on_shutdown)
        self._signals = signals
        self._previous_handlers: dict[signal.Signals, Any] = {}
        self._stop_requested = threading.Event()
        self._stopped = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def add_shutdown_hook(self, hook: Callable[[], None]) -> None:
        """Register a callback run after the server has drained, in order."""
        self._hooks.append(hook)

    def start(self) -> None:
        """Install signal handlers and start serving.

        Handlers can only be installed from the main thread; elsewhere the
        server still starts and stop() is the only way to end wait().
        """
        if threading.current_thread() is threading.main_thread():
            for signum in self._signals:
                self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
        else:
            logger.debug("Not on the main thread, signal handlers not installed")

        self._server.start()

    def _on_signal(self, signum: int, frame: object) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        self._stop_requested.set()

    def stop(self) -> None:
        """Request shutdown; wait() returns once it is done."""
        self._stop_requested.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until shutdown is requested, then shut down.

        Returns:
            True if the server was shut down, False if ``timeout`` elapsed
            first.
        """
        try:
            requested = self._stop_requested.wait(timeout)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
            requested = True

        if requested:
            self.shutdown()
        return requested

    def shutdown(self) -> None:
        """Drain the server, run the hooks and restore signal handlers.

        Safe to call more than once.
        """
        if self._stopped:
            return
        self._stopped = True

        logger.info(f"Stopping server (grace period {self._grace_period}s)")
        drained = self._server.stop(grace=self._grace_period)
        if drained is not None and not drained.wait(self._grace_period + 1.0):
            logger.warning("Server did not drain within the grace period")

        for hook in self._hooks:
            try:
                hook()
            except Exception as e:
                logger.exception(f"Shutdown hook {hook!r} failed: {e}")

        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

        logger.info("Shutdown complete")

    def __enter__(self) -> GracefulServer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
