"""Command and handler for playing a track from a query or URL."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from sayu_player.application.commands.results import describe_error
from sayu_player.domain.music.entities import Track, UserRef
from sayu_player.domain.shared.exceptions import (
    DomainError,
    NotConnectedError,
    ResolutionError,
    VoiceConnectionError,
)
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.domain.shared.types import DiscordSnowflake, NonEmptyStr, NonNegativeInt

if TYPE_CHECKING:
    from ..interfaces.audio_resolver import AudioResolver
    from ..services.engine_registry import EngineRegistry


class PlayTrackStatus(Enum):
    """Status codes for play track results."""

    QUEUED = "queued"
    NOW_PLAYING = "now_playing"
    RESOLUTION_ERROR = "resolution_error"
    VOICE_ERROR = "voice_error"
    REJECTED = "rejected"


class PlayTrackCommand(BaseModel):
    """Request to resolve a query/URL, queue the track, and start playback if idle."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    channel_id: DiscordSnowflake
    user_id: DiscordSnowflake
    user_name: NonEmptyStr
    query: NonEmptyStr

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class PlayTrackResult(BaseModel):
    """Result of a play track command."""

    model_config = ConfigDict(frozen=True)

    status: PlayTrackStatus
    message: str
    track: Track | None = None
    # 1-based, as shown to users
    queue_position: NonNegativeInt | None = None
    queue_length: NonNegativeInt = 0

    @property
    def is_success(self) -> bool:
        return self.status in {PlayTrackStatus.QUEUED, PlayTrackStatus.NOW_PLAYING}

    @property
    def started_playing(self) -> bool:
        return self.status == PlayTrackStatus.NOW_PLAYING

    @classmethod
    def success(
        cls, track: Track, queue_position: int, queue_length: int, started_playing: bool = False
    ) -> PlayTrackResult:
        if started_playing:
            status = PlayTrackStatus.NOW_PLAYING
            message = DiscordUIMessages.ACTION_NOW_PLAYING.format(title=track.title)
        else:
            status = PlayTrackStatus.QUEUED
            message = DiscordUIMessages.ACTION_QUEUED.format(
                title=track.title, position=queue_position
            )

        return cls(
            status=status,
            message=message,
            track=track,
            queue_position=queue_position,
            queue_length=queue_length,
        )

    @classmethod
    def error(cls, status: PlayTrackStatus, message: str) -> PlayTrackResult:
        return cls(status=status, message=message)


class PlayTrackHandler:
    """Resolves a track from a query and hands it to the guild's engine.

    Resolution happens before the engine is involved, so a slow lookup never
    holds up other commands for the same guild.
    """

    def __init__(self, *, registry: EngineRegistry, audio_resolver: AudioResolver) -> None:
        self._registry = registry
        self._audio_resolver = audio_resolver

    async def handle(self, command: PlayTrackCommand) -> PlayTrackResult:
        requester = UserRef(id=command.user_id, display_name=command.user_name)
        try:
            track = await self._audio_resolver.resolve(command.query, requester)
        except ResolutionError as e:
            return PlayTrackResult.error(PlayTrackStatus.RESOLUTION_ERROR, describe_error(e))

        engine = self._registry.get(command.guild_id)
        try:
            outcome = await engine.enqueue(track, command.channel_id)
        except DomainError as e:
            if isinstance(e, VoiceConnectionError | NotConnectedError):
                status = PlayTrackStatus.VOICE_ERROR
            else:
                status = PlayTrackStatus.REJECTED
            return PlayTrackResult.error(status, describe_error(e))

        return PlayTrackResult.success(
            track=outcome.track,
            queue_position=outcome.index + 1,
            queue_length=outcome.queue_length,
            started_playing=outcome.started,
        )
