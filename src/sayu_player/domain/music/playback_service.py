"""Domain service holding the playback transition table.

Every engine operation is looked up here before it runs; the engine never
re-checks state on its own, and enters the target state listed here once the
operation succeeds. Targets marked ``None`` depend on the queue or the
transport (e.g. skip ends in PLAYING when a next track starts and IDLE
otherwise), so the engine settles them itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from sayu_player.domain.music.value_objects import PlaybackState
from sayu_player.domain.shared.exceptions import EmptyQueueError, InvalidOperationError

_ANY = frozenset(PlaybackState)
_ACTIVE = frozenset({PlaybackState.PLAYING, PlaybackState.PAUSED})


class Operation(Enum):
    ENQUEUE = "enqueue"
    SKIP = "skip"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    RESET = "reset"
    REMOVE = "remove"
    CLEAR = "clear"
    JUMP = "jump"
    JOIN = "join"
    SET_LOOP_MODE = "set_loop_mode"
    LIST = "list"
    TRACK_FINISHED = "track_finished"
    TRANSPORT_ERROR = "transport_error"
    CONNECTION_LOST = "connection_lost"


class Rejection(Enum):
    """What happens when an operation arrives in a state it is not allowed in."""

    INVALID_STATE = "invalid_state"
    EMPTY_QUEUE = "empty_queue"
    IGNORE = "ignore"


@dataclass(frozen=True, slots=True)
class Transition:
    allowed: frozenset[PlaybackState]
    target: PlaybackState | None
    rejection: Rejection = Rejection.INVALID_STATE


TRANSITIONS: MappingProxyType[Operation, Transition] = MappingProxyType(
    {
        Operation.ENQUEUE: Transition(_ANY, None),
        Operation.SKIP: Transition(_ACTIVE, None, Rejection.EMPTY_QUEUE),
        Operation.PAUSE: Transition(frozenset({PlaybackState.PLAYING}), PlaybackState.PAUSED),
        Operation.RESUME: Transition(frozenset({PlaybackState.PAUSED}), PlaybackState.PLAYING),
        Operation.STOP: Transition(_ANY, PlaybackState.IDLE),
        Operation.RESET: Transition(_ANY, PlaybackState.IDLE),
        Operation.REMOVE: Transition(_ANY, None),
        Operation.CLEAR: Transition(_ANY, PlaybackState.IDLE),
        Operation.JUMP: Transition(_ANY, None),
        Operation.JOIN: Transition(_ANY, None),
        Operation.SET_LOOP_MODE: Transition(_ANY, None),
        Operation.LIST: Transition(_ANY, None),
        Operation.TRACK_FINISHED: Transition(
            frozenset({PlaybackState.PLAYING}), None, Rejection.IGNORE
        ),
        Operation.TRANSPORT_ERROR: Transition(_ACTIVE, None, Rejection.IGNORE),
        Operation.CONNECTION_LOST: Transition(_ANY, PlaybackState.IDLE),
    }
)


class PlaybackDomainService:
    """Guards engine operations against the transition table."""

    @staticmethod
    def target_of(operation: Operation) -> PlaybackState | None:
        return TRANSITIONS[operation].target

    @staticmethod
    def admits(operation: Operation, state: PlaybackState) -> bool:
        """Return True if the operation may run; raise for rejected user commands.

        Rejected transport signals return False so the caller can drop them.
        """
        transition = TRANSITIONS[operation]
        if state in transition.allowed:
            return True

        if transition.rejection is Rejection.IGNORE:
            return False
        if transition.rejection is Rejection.EMPTY_QUEUE:
            raise EmptyQueueError(operation.value)
        raise InvalidOperationError(operation=operation.value, current_state=state.value)
