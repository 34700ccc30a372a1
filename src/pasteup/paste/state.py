"""Paste handler state machine.

Tracks the handler through the processing of one image and enforces
valid transitions, so an insertion can never happen without a completed
upload.
"""

from __future__ import annotations

from pasteup.models import HandlerState


class HandlerStateMachine:
    """Finite state machine for the paste handler.

    Valid transitions::

        IDLE       -> UPLOADING
        UPLOADING  -> INSERTING | NOTIFYING
        INSERTING  -> IDLE | NOTIFYING   (insertion target missing)
        NOTIFYING  -> IDLE
    """

    VALID_TRANSITIONS: dict[HandlerState, set[HandlerState]] = {
        HandlerState.IDLE: {HandlerState.UPLOADING},
        HandlerState.UPLOADING: {HandlerState.INSERTING, HandlerState.NOTIFYING},
        HandlerState.INSERTING: {HandlerState.IDLE, HandlerState.NOTIFYING},
        HandlerState.NOTIFYING: {HandlerState.IDLE},
    }

    def __init__(self) -> None:
        self.state: HandlerState = HandlerState.IDLE

    def transition(self, new_state: HandlerState) -> None:
        """Move to *new_state*.

        Raises
        ------
        ValueError
            If the transition from the current state is not allowed.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid state transition: {self.state.value} -> {new_state.value}. "
                f"Allowed transitions from {self.state.value}: "
                f"{{{', '.join(sorted(s.value for s in allowed))}}}"
            )
        self.state = new_state

    @property
    def idle(self) -> bool:
        return self.state == HandlerState.IDLE
