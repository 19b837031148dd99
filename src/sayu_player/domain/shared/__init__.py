"""
Shared Domain Kernel

Contains types, messages, events and exceptions shared across the package.
"""

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
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "BusinessRuleViolationError",
    "InvalidOperationError",
    "OutOfRangeError",
    "EmptyQueueError",
    "NotConnectedError",
    "VoiceConnectionError",
    "ConnectionTimeoutError",
    "AlreadyConnectedElsewhereError",
    "PermissionDeniedError",
    "ResolutionError",
    "TrackNotFoundError",
    "EngineClosedError",
]
