"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum


class PlaybackState(Enum):
    """Playback state of a guild engine.

    - IDLE: nothing is being sent to the voice transport
    - PLAYING: the current track is streaming
    - PAUSED: the current track is held by the transport
    """

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"

    @property
    def is_active(self) -> bool:
        return self in {PlaybackState.PLAYING, PlaybackState.PAUSED}


class LoopMode(Enum):
    """Policy applied to the cursor when a track completes."""

    NONE = "none"
    TRACK = "track"  # Replay the current position
    QUEUE = "queue"  # Advance, wrapping to the first item

    @classmethod
    def parse(cls, value: str) -> LoopMode:
        return cls(value.strip().lower())


class StopReason(Enum):
    """Reasons playback can be stopped."""

    USER_REQUEST = "user_request"
    RESET = "reset"
    CONNECTION_LOST = "connection_lost"
