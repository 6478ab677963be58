"""
Process channel for a UCCI engine subprocess.

Owns the engine's OS process and its stdin/stdout pipes and offers
line-based I/O. Reads go through an internal byte buffer on the raw pipe so
that a read timeout can be honoured with ``select`` without helper threads.

The child process is always killed and reaped when the channel goes away:
on terminate(), kill(), context exit, or garbage collection.
"""

from __future__ import annotations

import contextlib
import logging
import os
import select
import subprocess
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from common import (
    EngineReadError,
    EngineSpawnError,
    EngineTimeoutError,
    EngineWriteError,
    UnexpectedEofError,
)

logger = logging.getLogger(__name__)

# Bytes requested per read from the engine's stdout
_CHUNK_SIZE = 4096

# Seconds the engine gets to exit on its own after ``quit``
DEFAULT_GRACE_PERIOD = 0.1


class ProcessChannel:
    """
    Line-oriented channel to an engine subprocess.

    Not thread-safe; a channel belongs to exactly one client.

    Usage:
        with ProcessChannel.spawn("/usr/local/bin/eleeye") as channel:
            channel.send_line("ucci")
            line = channel.read_line(timeout=5.0)
    """

    def __init__(self, process: subprocess.Popen[bytes]) -> None:
        """Wrap an already spawned process. Use spawn() instead."""
        if process.stdin is None or process.stdout is None:
            raise EngineSpawnError("Engine process was started without pipes")
        self._process = process
        self._stdin = process.stdin
        self._stdout = process.stdout
        self._buffer = bytearray()
        self._closed = False

    @classmethod
    def spawn(cls, executable: str | Path, args: Sequence[str] = ()) -> ProcessChannel:
        """Start an engine process.

        Args:
            executable: Path to the engine binary.
            args: Extra command line arguments.

        Raises:
            EngineSpawnError: If the executable is missing or cannot be started.
        """
        command = [str(executable), *args]
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=None,  # Inherited, engines log diagnostics there
                bufsize=0,
            )
        except FileNotFoundError as e:
            raise EngineSpawnError(f"Engine binary not found at {executable}") from e
        except (OSError, ValueError) as e:
            raise EngineSpawnError(f"Failed to spawn engine {executable}: {e}") from e

        logger.debug(f"Spawned engine {executable} (pid {process.pid})")
        return cls(process)

    @property
    def pid(self) -> int:
        """Process id of the engine."""
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        """Exit code of the engine, or None while it is running."""
        return self._process.poll()

    @property
    def closed(self) -> bool:
        return self._closed

    def is_running(self) -> bool:
        """Check if the engine process is still running (non-blocking)."""
        if self._closed:
            return False
        return self._process.poll() is None

    def send_line(self, text: str) -> None:
        """Write one line to the engine.

        The pipe is unbuffered, so the line reaches the engine before
        this returns.

        Raises:
            EngineWriteError: If the channel is closed or the pipe is broken.
        """
        if self._closed:
            raise EngineWriteError("Engine channel is closed")

        view = memoryview((text + "\n").encode("utf-8"))
        try:
            while view:
                written = self._stdin.write(view)
                view = view[written:]
            self._stdin.flush()
        except (OSError, ValueError) as e:
            raise EngineWriteError(f"Failed to write to engine: {e}") from e
        logger.debug(f"Sent: {text}")

    def read_line(self, timeout: float | None = None) -> str:
        """Read one line from the engine, without the line terminator.

        Args:
            timeout: Seconds to wait for a complete line. None blocks
                until one arrives.

        Raises:
            UnexpectedEofError: If the engine closed its output.
            EngineTimeoutError: If no complete line arrived in time.
            EngineReadError: If the channel is closed or the pipe failed.
            NotImplementedError: If a timeout is requested on a platform
                without ``select`` support for pipes.
        """
        if self._closed:
            raise EngineReadError("Engine channel is closed")
        if timeout is not None and sys.platform == "win32":
            raise NotImplementedError("Read timeouts require a POSIX platform")

        deadline = None if timeout is None else time.monotonic() + timeout
        fd = self._stdout.fileno()

        while True:
            newline = self._buffer.find(b"\n")
            if newline >= 0:
                raw = bytes(self._buffer[:newline])
                del self._buffer[: newline + 1]
                return self._decode(raw)

            if deadline is not None:
                self._wait_readable(fd, deadline, timeout)

            try:
                chunk = os.read(fd, _CHUNK_SIZE)
            except OSError as e:
                raise EngineReadError(f"Failed to read from engine: {e}") from e

            if not chunk:
                if self._buffer:
                    # Final line without a terminator
                    raw = bytes(self._buffer)
                    self._buffer.clear()
                    return self._decode(raw)
                raise UnexpectedEofError("Unexpected end of output from engine")

            self._buffer.extend(chunk)

    def _wait_readable(self, fd: int, deadline: float, timeout: float | None) -> None:
        remaining = deadline - time.monotonic()
        if remaining > 0:
            try:
                readable, _, _ = select.select([fd], [], [], remaining)
            except (OSError, ValueError) as e:
                raise EngineReadError(f"Failed to wait for engine output: {e}") from e
            if readable:
                return
        raise EngineTimeoutError(f"No response from engine within {timeout}s")

    @staticmethod
    def _decode(raw: bytes) -> str:
        line = raw.decode("utf-8", errors="replace").rstrip()
        logger.debug(f"Recv: {line}")
        return line

    def terminate(self, grace_period: float = DEFAULT_GRACE_PERIOD) -> None:
        """Ask the engine to quit, then force-kill it if it is still running.

        Safe to call more than once.
        """
        if self._closed:
            return

        try:
            self.send_line("quit")
        except EngineWriteError as e:
            logger.debug(f"Could not send quit: {e}")

        try:
            self._process.wait(timeout=grace_period)
            logger.debug(f"Engine exited with code {self._process.returncode}")
        except subprocess.TimeoutExpired:
            logger.warning(f"Engine (pid {self._process.pid}) ignored quit, killing it")

        self.kill()

    def kill(self) -> None:
        """Force-kill and reap the engine, then close the pipes.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True

        if self._process.poll() is None:
            with contextlib.suppress(ProcessLookupError):
                self._process.kill()
        self._process.wait()

        for pipe in (self._stdin, self._stdout):
            with contextlib.suppress(OSError):
                pipe.close()
        self._buffer.clear()

    def __enter__(self) -> ProcessChannel:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.kill()

    def __del__(self) -> None:
        # Partially constructed channels have no process to reap
        if "_process" in self.__dict__:
            with contextlib.suppress(Exception):
                self.kill()
