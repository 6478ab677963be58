"""
Thread-safe pool of UCCI engines.

A UCCI engine serves one search at a time, so the pool hands each caller
an engine exclusively and tracks which ones are checked out. Engines are
checked against their protocol state on the way out and the way back in:

- acquire() replaces an engine whose process died or that is not IDLE.
- release() stops a search the caller abandoned, then requires
  ``readyok`` before the engine is offered again; an engine that fails
  this is replaced by a freshly spawned one, or dropped if spawning fails.
- shutdown() lets checked-out engines drain before quitting every engine.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TypedDict

from common import (
    EngineError,
    EngineStartupError,
    PoolExhaustedError,
    PoolShutdownError,
)

from .config import EngineConfig, PoolConfig
from .engine import UcciEngine
from .protocol import EngineState

logger = logging.getLogger(__name__)


class HealthStatus(TypedDict):
    """Engine counts by protocol state."""

    total: int
    available: int  # idle and not checked out
    in_use: int
    idle: int
    thinking: int
    dead: int
    healthy: int  # processes alive, idle or thinking
    version: str


class EnginePool:
    """
    Fixed-size pool of started UcciEngine instances.

    Usage:
        pool = EnginePool(pool_config, engine_config)
        pool.start()

        with pool.engine() as eng:
            result = eng.analyze(fen, depth=8)

        pool.shutdown()
    """

    def __init__(
        self,
        pool_config: PoolConfig | None = None,
        engine_config: EngineConfig | None = None,
    ) -> None:
        self._pool_config = pool_config or PoolConfig()
        self._engine_config = engine_config or EngineConfig()

        # All three are guarded by _cond
        self._engines: list[UcciEngine] = []
        self._idle: deque[UcciEngine] = deque()
        self._in_use: set[UcciEngine] = set()
        self._cond = threading.Condition()

        self._started = False
        self._shutdown = False

    @property
    def size(self) -> int:
        """Configured number of engines."""
        return self._pool_config.size

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def start(self) -> None:
        """Spawn and handshake every engine.

        Raises:
            PoolShutdownError: If the pool was already shut down.
            EngineError: If an engine fails to start; engines spawned so far
                are stopped again.
        """
        if self._started:
            logger.warning("Pool already started")
            return
        if self._shutdown:
            raise PoolShutdownError("Pool has been shut down")

        logger.info(f"Starting {self.size} UCCI engines from {self._engine_config.engine_path}")

        spawned: list[UcciEngine] = []
        try:
            for _ in range(self.size):
                spawned.append(self._spawn())
        except EngineError as e:
            logger.error(f"Engine {len(spawned) + 1}/{self.size} failed to start: {e}")
            for engine in spawned:
                engine.stop()
            raise EngineError(f"Failed to initialize pool: {e}") from e

        with self._cond:
            self._engines = spawned
            self._idle.extend(spawned)
            self._started = True
            self._cond.notify_all()

        logger.info(f"Engine pool ready: {len(spawned)} x {spawned[0].version if spawned else '-'}")

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop accepting acquires, wait for checked-out engines, quit all.

        Args:
            timeout: Seconds to wait for checked-out engines to come back
                (defaults to PoolConfig.drain_timeout). Engines still out
                after that are stopped anyway.
        """
        drain = self._pool_config.drain_timeout if timeout is None else timeout

        with self._cond:
            if self._shutdown:
                return
            self._shutdown = True
            self._cond.notify_all()

            if not self._cond.wait_for(lambda: not self._in_use, drain):
                logger.warning(f"{len(self._in_use)} engine(s) still in use, stopping anyway")

            engines = list(self._engines)
            self._engines.clear()
            self._idle.clear()

        logger.info(f"Shutting down engine pool ({len(engines)} engines)")
        for engine in engines:
            engine.stop()

        self._started = False
        logger.info("Engine pool shutdown complete")

    def acquire(self, timeout: float | None = None) -> UcciEngine:
        """Check out an idle engine.

        Args:
            timeout: Seconds to wait (defaults to PoolConfig.acquire_timeout).

        Raises:
            PoolShutdownError: If the pool is not running.
            PoolExhaustedError: If no engine became available in time.
            EngineStartupError: If the engine was broken and could not be
                replaced.
        """
        timeout = self._pool_config.acquire_timeout if timeout is None else timeout

        with self._cond:
            self._check_running()
            if not self._cond.wait_for(lambda: self._idle or self._shutdown, timeout):
                raise PoolExhaustedError(f"No engine available within {timeout}s timeout")
            self._check_running()

            engine = self._idle.popleft()
            self._in_use.add(engine)

        if not engine.is_alive():
            logger.warning("Engine process died while idle, replacing it")
            engine = self._replace(engine)
        elif engine.state is not EngineState.IDLE:
            logger.warning(f"Pooled engine in {engine.state} state, replacing it")
            engine = self._replace(engine)

        return engine

    def release(self, engine: UcciEngine) -> None:
        """Return a checked-out engine.

        The engine is reset first: an abandoned search is stopped and the
        engine must answer ``isready``. Engines failing the reset are
        replaced, or dropped from the pool if no replacement starts.
        """
        with self._cond:
            if engine not in self._in_use:
                logger.warning("Released an engine this pool did not hand out")
                return
            closing = self._shutdown

        if not closing:
            try:
                engine.reset()
            except EngineError as e:
                logger.warning(f"Engine failed to reset ({e}), replacing it")
                try:
                    engine = self._replace(engine)
                except EngineStartupError as restart_error:
                    logger.error(f"Dropping engine from pool: {restart_error}")
                    return

        with self._cond:
            self._in_use.discard(engine)
            returned = not self._shutdown
            if returned:
                self._idle.append(engine)
            self._cond.notify_all()

        if not returned:
            engine.stop()

    @contextmanager
    def engine(self, timeout: float | None = None) -> Iterator[UcciEngine]:
        """Check out an engine for the duration of a ``with`` block.

        Example:
            with pool.engine() as eng:
                result = eng.analyze(fen)
        """
        eng = self.acquire(timeout)
        try:
            yield eng
        finally:
            self.release(eng)

    def health_check(self) -> HealthStatus:
        """Count engines by process liveness and protocol state."""
        with self._cond:
            engines = list(self._engines)
            available = len(self._idle)
            in_use = len(self._in_use)

        idle = thinking = dead = 0
        version = "unknown"
        for engine in engines:
            if not engine.is_alive():
                dead += 1
                continue
            if version == "unknown":
                version = engine.version
            if engine.state is EngineState.THINKING:
                thinking += 1
            else:
                idle += 1

        return {
            "total": len(engines),
            "available": available,
            "in_use": in_use,
            "idle": idle,
            "thinking": thinking,
            "dead": dead,
            "healthy": idle + thinking,
            "version": version,
        }

    def _check_running(self) -> None:
        if self._shutdown:
            raise PoolShutdownError("Pool is shutting down")
        if not self._started:
            raise PoolShutdownError("Pool not started")

    def _spawn(self) -> UcciEngine:
        engine = UcciEngine(self._engine_config)
        engine.start()
        return engine

    def _replace(self, engine: UcciEngine) -> UcciEngine:
        """Swap a checked-out engine for a freshly spawned one.

        Raises:
            EngineStartupError: If no replacement started within
                PoolConfig.max_retries attempts; the slot is dropped.
        """
        engine.stop()

        attempts = max(self._pool_config.max_retries, 1)
        last_error: EngineError | None = None
        for attempt in range(1, attempts + 1):
            try:
                fresh = self._spawn()
            except EngineError as e:
                last_error = e
                logger.warning(f"Replacement attempt {attempt}/{attempts} failed: {e}")
                continue

            with self._cond:
                if engine in self._engines:
                    self._engines[self._engines.index(engine)] = fresh
                self._in_use.discard(engine)
                self._in_use.add(fresh)
            logger.info(f"Replaced engine (attempt {attempt})")
            return fresh

        with self._cond:
            if engine in self._engines:
                self._engines.remove(engine)
            self._in_use.discard(engine)
            self._cond.notify_all()
        raise EngineStartupError(
            f"Could not replace engine after {attempts} attempts: {last_error}"
        )
