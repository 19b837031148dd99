"""Shared result type for engine commands and the error-to-message mapping."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from sayu_player.domain.shared.exceptions import (
    AlreadyConnectedElsewhereError,
    BusinessRuleViolationError,
    ConnectionTimeoutError,
    DomainError,
    EmptyQueueError,
    EngineClosedError,
    InvalidOperationError,
    NotConnectedError,
    OutOfRangeError,
    PermissionDeniedError,
    ResolutionError,
    TrackNotFoundError,
)
from sayu_player.domain.shared.messages import DiscordUIMessages


class CommandStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


class CommandResult(BaseModel):
    """Outcome of a command, carrying the text shown to the user."""

    status: CommandStatus
    message: str
    error_code: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == CommandStatus.SUCCESS

    @classmethod
    def success(cls, message: str) -> CommandResult:
        return cls(status=CommandStatus.SUCCESS, message=message)

    @classmethod
    def error(cls, error: DomainError, *, position: int | None = None) -> CommandResult:
        return cls(
            status=CommandStatus.FAILED,
            message=describe_error(error, position=position),
            error_code=error.code,
        )


def describe_error(error: DomainError, *, position: int | None = None) -> str:
    """Translate a domain error into a user-facing message.

    ``position`` is the 1-based number the user typed, if any.
    """
    match error:
        case OutOfRangeError():
            shown = position if position is not None else error.index + 1
            return DiscordUIMessages.ERROR_OUT_OF_RANGE.format(position=shown)
        case EmptyQueueError():
            return DiscordUIMessages.ERROR_EMPTY_QUEUE
        case NotConnectedError():
            return DiscordUIMessages.ERROR_NOT_CONNECTED
        case ConnectionTimeoutError():
            return DiscordUIMessages.ERROR_CONNECTION_TIMEOUT
        case AlreadyConnectedElsewhereError():
            return DiscordUIMessages.ERROR_ALREADY_CONNECTED_ELSEWHERE
        case PermissionDeniedError():
            return DiscordUIMessages.ERROR_PERMISSION_DENIED
        case TrackNotFoundError():
            return DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=error.query)
        case ResolutionError():
            return DiscordUIMessages.ERROR_RESOLUTION.format(query=error.query)
        case InvalidOperationError():
            return DiscordUIMessages.ERROR_INVALID_OPERATION
        case BusinessRuleViolationError(rule="MAX_QUEUE_SIZE"):
            return DiscordUIMessages.ERROR_QUEUE_FULL
        case EngineClosedError():
            return DiscordUIMessages.ERROR_ENGINE_CLOSED
        case _:
            return DiscordUIMessages.ERROR_OCCURRED.format(error=error.message)
