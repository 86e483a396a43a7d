"""Load controller state machine.

Each transition is triggered by exactly one named event. Anything not listed in
``TRANSITIONS`` is illegal and raises ``StateTransitionError``.

    idle ---select---> roster_loading ---roster_loaded---> snapshot_loading
    snapshot_loading ---snapshot_loaded---> ready
    ready ---submit---> submitting ---submit_succeeded---> snapshot_loading
    submitting ---submit_failed---> ready
    ready ---refresh---> snapshot_loading
    roster_loading | snapshot_loading ---fetch_failed---> error
    error ---retry---> roster_loading
    (any) ---select---> roster_loading
"""

import enum
from typing import Callable, Dict, List, Optional

from libs.common.logging import get_logger
from services.attendance_service.exceptions import StateTransitionError
from services.attendance_service.models import LoadState

logger = get_logger(__name__)


class LoadEvent(str, enum.Enum):
    SELECT = "select"
    ROSTER_LOADED = "roster_loaded"
    SNAPSHOT_LOADED = "snapshot_loaded"
    FETCH_FAILED = "fetch_failed"
    SUBMIT = "submit"
    SUBMIT_SUCCEEDED = "submit_succeeded"
    SUBMIT_FAILED = "submit_failed"
    REFRESH = "refresh"
    RETRY = "retry"


TRANSITIONS: Dict[LoadState, Dict[LoadEvent, LoadState]] = {
    LoadState.IDLE: {
        LoadEvent.SELECT: LoadState.ROSTER_LOADING,
    },
    LoadState.ROSTER_LOADING: {
        LoadEvent.SELECT: LoadState.ROSTER_LOADING,
        LoadEvent.ROSTER_LOADED: LoadState.SNAPSHOT_LOADING,
        LoadEvent.FETCH_FAILED: LoadState.ERROR,
    },
    LoadState.SNAPSHOT_LOADING: {
        LoadEvent.SELECT: LoadState.ROSTER_LOADING,
        LoadEvent.SNAPSHOT_LOADED: LoadState.READY,
        LoadEvent.FETCH_FAILED: LoadState.ERROR,
    },
    LoadState.READY: {
        LoadEvent.SELECT: LoadState.ROSTER_LOADING,
        LoadEvent.SUBMIT: LoadState.SUBMITTING,
        LoadEvent.REFRESH: LoadState.SNAPSHOT_LOADING,
    },
    LoadState.SUBMITTING: {
        LoadEvent.SELECT: LoadState.ROSTER_LOADING,
        LoadEvent.SUBMIT_SUCCEEDED: LoadState.SNAPSHOT_LOADING,
        LoadEvent.SUBMIT_FAILED: LoadState.READY,
    },
    LoadState.ERROR: {
        LoadEvent.SELECT: LoadState.ROSTER_LOADING,
        LoadEvent.RETRY: LoadState.ROSTER_LOADING,
    },
}

Listener = Callable[[LoadState, LoadEvent, LoadState], None]


class LoadController:
    def __init__(self, initial: LoadState = LoadState.IDLE):
        self._state = initial
        self._listeners: List[Listener] = []

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state in (LoadState.ROSTER_LOADING, LoadState.SNAPSHOT_LOADING)

    def can(self, event: LoadEvent) -> bool:
        return event in TRANSITIONS[self._state]

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def transition(self, event: LoadEvent) -> LoadState:
        target: Optional[LoadState] = TRANSITIONS[self._state].get(event)
        if target is None:
            raise StateTransitionError(
                f"Cannot {event.value.replace('_', ' ')} while {self._state.value}"
            )
        previous, self._state = self._state, target
        logger.debug("Load state %s -(%s)-> %s", previous.value, event.value, target.value)
        for listener in self._listeners:
            listener(previous, event, target)
        return target
