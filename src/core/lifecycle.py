"""Startup state machine for the application process.

The process moves through::

    NOT_STARTED -> CONNECTING -> READY -> SERVING
                        |
                        +-> FAILED (terminal)

The application lifespan drives the machine. Uvicorn only binds its
sockets once lifespan startup has completed, so the HTTP listener never
opens before the machine has reached READY, and never at all on the
FAILED path.
"""

from enum import Enum

from loguru import logger


class StartupState(Enum):
    """States of the startup sequence."""

    NOT_STARTED = "NOT_STARTED"
    CONNECTING = "CONNECTING"
    READY = "READY"
    SERVING = "SERVING"
    FAILED = "FAILED"


_TRANSITIONS: dict[StartupState, frozenset[StartupState]] = {
    StartupState.NOT_STARTED: frozenset({StartupState.CONNECTING}),
    StartupState.CONNECTING: frozenset({StartupState.READY, StartupState.FAILED}),
    StartupState.READY: frozenset({StartupState.SERVING}),
    StartupState.SERVING: frozenset(),
    StartupState.FAILED: frozenset(),
}


class StartupStateMachine:
    """Tracks the startup state and rejects illegal transitions."""

    def __init__(self) -> None:
        self._state = StartupState.NOT_STARTED

    @property
    def state(self) -> StartupState:
        """Current startup state."""
        return self._state

    @property
    def is_serving(self) -> bool:
        """Whether the application accepts requests."""
        return self._state is StartupState.SERVING

    def transition(self, target: StartupState) -> None:
        """Move to ``target``.

        Args:
            target: The next state.

        Raises:
            RuntimeError: If the transition is not allowed from the current state.
        """
        if target not in _TRANSITIONS[self._state]:
            msg = (
                f"Invalid startup transition: {self._state.value} -> {target.value}"
            )
            raise RuntimeError(msg)

        logger.info(
            "Startup state {} -> {}",
            self._state.value,
            target.value,
            event="STARTUP_STATE",
        )
        self._state = target
