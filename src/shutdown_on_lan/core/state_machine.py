"""Simple lifecycle state machine for the listener service."""

from __future__ import annotations

from enum import Enum, auto
import logging


class ListenerState(Enum):
    CREATED = auto()
    LISTENING = auto()
    TERMINATED = auto()


class ListenerEvent(Enum):
    BIND = auto()
    BIND_FAILED = auto()
    CLOSE = auto()


_TRANSITIONS = {
    ListenerState.CREATED: {
        ListenerEvent.BIND: ListenerState.LISTENING,
        ListenerEvent.BIND_FAILED: ListenerState.TERMINATED,
        ListenerEvent.CLOSE: ListenerState.TERMINATED,
    },
    ListenerState.LISTENING: {
        ListenerEvent.CLOSE: ListenerState.TERMINATED,
    },
    ListenerState.TERMINATED: {},
}


class ListenerStateMachine:
    def __init__(self):
        self.state = ListenerState.CREATED

    def can_transition(self, event: ListenerEvent) -> bool:
        return event in _TRANSITIONS.get(self.state, {})

    def transition(self, event: ListenerEvent) -> ListenerState:
        next_state = _TRANSITIONS.get(self.state, {}).get(event, self.state)
        if not self.can_transition(event):
            logging.getLogger(__name__).warning(
                "Invalid state transition: %s --%s--> %s", self.state, event, next_state
            )
        self.state = next_state
        return self.state
