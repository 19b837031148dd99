"""
Application Commands

Command objects and their handlers for write operations.
Commands represent intent to change a guild's playback.
"""

from sayu_player.application.commands.play_track import (
    PlayTrackCommand,
    PlayTrackHandler,
    PlayTrackResult,
    PlayTrackStatus,
)
from sayu_player.application.commands.playback_controls import (
    JoinChannelCommand,
    PausePlaybackCommand,
    PlaybackControlHandler,
    ResumePlaybackCommand,
    SetLoopModeCommand,
)
from sayu_player.application.commands.queue_commands import (
    ClearQueueCommand,
    JumpToTrackCommand,
    QueueCommandHandler,
    RemoveTrackCommand,
)
from sayu_player.application.commands.results import CommandResult, CommandStatus, describe_error
from sayu_player.application.commands.skip_track import SkipTrackCommand, SkipTrackHandler
from sayu_player.application.commands.stop_playback import StopPlaybackCommand, StopPlaybackHandler

__all__ = [
    # Results
    "CommandResult",
    "CommandStatus",
    "describe_error",
    # Play
    "PlayTrackCommand",
    "PlayTrackHandler",
    "PlayTrackResult",
    "PlayTrackStatus",
    # Skip
    "SkipTrackCommand",
    "SkipTrackHandler",
    # Stop
    "StopPlaybackCommand",
    "StopPlaybackHandler",
    # Controls
    "PausePlaybackCommand",
    "ResumePlaybackCommand",
    "SetLoopModeCommand",
    "JoinChannelCommand",
    "PlaybackControlHandler",
    # Queue
    "RemoveTrackCommand",
    "JumpToTrackCommand",
    "ClearQueueCommand",
    "QueueCommandHandler",
]
