"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str | None = None) -> None:
        msg = message or f"Business rule violated: {rule}"
        super().__init__(msg, code="BUSINESS_RULE_VIOLATION")
        self.rule = rule


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class OutOfRangeError(DomainError):
    """Raised when a queue index does not address an existing item."""

    def __init__(self, index: int, length: int, message: str | None = None) -> None:
        msg = message or f"Index {index} is out of range for a queue of {length} items"
        super().__init__(msg, code="OUT_OF_RANGE")
        self.index = index
        self.length = length


class EmptyQueueError(DomainError):
    """Raised when an operation needs a current track and there is none."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}': nothing is queued"
        super().__init__(msg, code="EMPTY_QUEUE")
        self.operation = operation


class NotConnectedError(DomainError):
    """Raised when a transport operation needs a voice connection that does not exist."""

    def __init__(self, guild_id: int, message: str | None = None) -> None:
        msg = message or f"No voice connection for guild {guild_id}"
        super().__init__(msg, code="NOT_CONNECTED")
        self.guild_id = guild_id


class VoiceConnectionError(DomainError):
    """Base class for failures while establishing a voice connection."""

    def __init__(self, channel_id: int, message: str, code: str) -> None:
        super().__init__(message, code=code)
        self.channel_id = channel_id


class ConnectionTimeoutError(VoiceConnectionError):
    """Raised when joining a voice channel does not complete in time."""

    def __init__(self, channel_id: int, timeout: float | None = None) -> None:
        if timeout is None:
            msg = f"Timed out connecting to channel {channel_id}"
        else:
            msg = f"Timed out connecting to channel {channel_id} after {timeout:g}s"
        super().__init__(channel_id, msg, code="CONNECTION_TIMEOUT")
        self.timeout = timeout


class AlreadyConnectedElsewhereError(VoiceConnectionError):
    """Raised when the voice client is held by another channel and cannot move."""

    def __init__(self, channel_id: int, current_channel_id: int | None = None) -> None:
        msg = f"Already connected to channel {current_channel_id}, cannot join {channel_id}"
        super().__init__(channel_id, msg, code="ALREADY_CONNECTED_ELSEWHERE")
        self.current_channel_id = current_channel_id


class PermissionDeniedError(VoiceConnectionError):
    """Raised when the bot lacks permission to join a voice channel."""

    def __init__(self, channel_id: int) -> None:
        super().__init__(
            channel_id, f"No permission to connect to channel {channel_id}", code="PERMISSION_DENIED"
        )


class ResolutionError(DomainError):
    """Raised when a media lookup fails."""

    def __init__(self, query: str, message: str | None = None, code: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code=code or "RESOLUTION_ERROR")
        self.query = query


class TrackNotFoundError(ResolutionError):
    """Raised when a lookup succeeds but yields no playable track."""

    def __init__(self, query: str) -> None:
        super().__init__(query, f"No track found for '{query}'", code="TRACK_NOT_FOUND")


class EngineClosedError(DomainError):
    """Raised when a command is sent to an engine that has been disposed."""

    def __init__(self, guild_id: int) -> None:
        super().__init__(f"Playback engine for guild {guild_id} is closed", code="ENGINE_CLOSED")
        self.guild_id = guild_id
