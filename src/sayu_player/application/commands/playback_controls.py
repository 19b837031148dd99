"""Commands for pause, resume, loop mode and joining a voice channel."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from sayu_player.application.commands.results import CommandResult
from sayu_player.domain.music.value_objects import LoopMode, PlaybackState
from sayu_player.domain.shared.exceptions import DomainError, InvalidOperationError
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.engine_registry import EngineRegistry


class PausePlaybackCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class ResumePlaybackCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class SetLoopModeCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    mode: LoopMode


class JoinChannelCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    channel_id: DiscordSnowflake


class PlaybackControlHandler:
    """Handles the commands that change how the current track plays."""

    def __init__(self, *, registry: EngineRegistry) -> None:
        self._registry = registry

    async def pause(self, command: PausePlaybackCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            await engine.pause()
        except InvalidOperationError as e:
            return _not_in_state(e, PlaybackState.PLAYING)
        except DomainError as e:
            return CommandResult.error(e)
        return CommandResult.success(DiscordUIMessages.ACTION_PAUSED)

    async def resume(self, command: ResumePlaybackCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            await engine.resume()
        except InvalidOperationError as e:
            return _not_in_state(e, PlaybackState.PAUSED)
        except DomainError as e:
            return CommandResult.error(e)
        return CommandResult.success(DiscordUIMessages.ACTION_RESUMED)

    async def set_loop_mode(self, command: SetLoopModeCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            mode = await engine.set_loop_mode(command.mode)
        except DomainError as e:
            return CommandResult.error(e)
        return CommandResult.success(DiscordUIMessages.LOOP_MODE_SET[mode.value])

    async def join(self, command: JoinChannelCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            started = await engine.join(command.channel_id)
        except DomainError as e:
            return CommandResult.error(e)

        track = engine.current_track
        if started and track is not None:
            return CommandResult.success(DiscordUIMessages.ACTION_NOW_PLAYING.format(title=track.title))
        return CommandResult.success(DiscordUIMessages.ACTION_JOINED)


def _not_in_state(error: InvalidOperationError, required: PlaybackState) -> CommandResult:
    result = CommandResult.error(error)
    if required is PlaybackState.PLAYING:
        message = DiscordUIMessages.STATE_NOTHING_PLAYING
    else:
        message = DiscordUIMessages.STATE_NOTHING_PAUSED
    return result.model_copy(update={"message": message})
