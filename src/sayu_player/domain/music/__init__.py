"""
Music Bounded Context

Tracks, the per-guild queue, loop and playback states, and the transition table.
"""

from sayu_player.domain.music.entities import Queue, QueueEntry, Removal, Track, UserRef
from sayu_player.domain.music.playback_service import Operation, PlaybackDomainService
from sayu_player.domain.music.queue_service import QueueDomainService
from sayu_player.domain.music.value_objects import LoopMode, PlaybackState, StopReason

__all__ = [
    # Entities
    "Track",
    "UserRef",
    "Queue",
    "QueueEntry",
    "Removal",
    # Value Objects
    "LoopMode",
    "PlaybackState",
    "StopReason",
    # Services
    "Operation",
    "PlaybackDomainService",
    "QueueDomainService",
]
