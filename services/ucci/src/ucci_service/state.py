"""
UCCI protocol state machine.

Tracks the engine lifecycle (BOOT -> IDLE -> THINKING) and rejects commands
that are illegal in the current state before anything is written to the
engine. Legality table:

    BOOT      only ``ucci``; ``ucciok`` moves to IDLE
    IDLE      anything but ``ponderhit``; ``go`` moves to THINKING
    THINKING  only ``stop`` / ``ponderhit``; ``bestmove`` / ``nobestmove``
              move back to IDLE

``bye`` is accepted in every state and changes nothing.
"""

from __future__ import annotations

import logging

from common import InvalidCommandError, UnexpectedResponseError

from .protocol import (
    BestMove,
    Command,
    EngineState,
    Go,
    Handshake,
    HandshakeOk,
    NoBestMove,
    PonderHit,
    Response,
    Stop,
)

logger = logging.getLogger(__name__)


class ProtocolStateMachine:
    """Validates protocol flow for one engine session."""

    def __init__(self) -> None:
        self._state = EngineState.BOOT

    @property
    def state(self) -> EngineState:
        """Current engine state."""
        return self._state

    def is_boot(self) -> bool:
        return self._state is EngineState.BOOT

    def is_idle(self) -> bool:
        return self._state is EngineState.IDLE

    def is_thinking(self) -> bool:
        return self._state is EngineState.THINKING

    def can_send(self, command: Command) -> bool:
        """Check whether a command may be sent in the current state."""
        if self._state is EngineState.BOOT:
            return isinstance(command, Handshake)
        if self._state is EngineState.IDLE:
            return not isinstance(command, PonderHit)
        if self._state is EngineState.THINKING:
            return isinstance(command, (Stop, PonderHit))
        raise AssertionError(f"Unhandled engine state: {self._state}")

    def transition(self, command: Command) -> None:
        """Record that a command is being sent.

        Raises:
            InvalidCommandError: If the command is illegal in the current state.
        """
        if not self.can_send(command):
            raise InvalidCommandError(
                f"{type(command).__name__} cannot be sent in {self._state.name} state"
            )

        # Handshake stays in BOOT until ucciok; quit waits for bye / EOF
        if isinstance(command, Go):
            self._set_state(EngineState.THINKING)

    def on_response(self, response: Response) -> None:
        """Update the state from a received response.

        Raises:
            UnexpectedResponseError: If a state-changing response arrives in
                a state where it is not legal.
        """
        if isinstance(response, HandshakeOk):
            if self._state is not EngineState.BOOT:
                raise UnexpectedResponseError(
                    f"ucciok not expected in {self._state.name} state"
                )
            self._set_state(EngineState.IDLE)
        elif isinstance(response, (BestMove, NoBestMove)):
            if self._state is not EngineState.THINKING:
                raise UnexpectedResponseError(
                    f"bestmove/nobestmove not expected in {self._state.name} state"
                )
            self._set_state(EngineState.IDLE)

    def _set_state(self, state: EngineState) -> None:
        logger.debug(f"State {self._state.name} -> {state.name}")
        self._state = state
