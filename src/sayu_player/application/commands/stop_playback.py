"""Command and handler for stopping playback, optionally leaving voice for good."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from sayu_player.application.commands.results import CommandResult
from sayu_player.domain.shared.exceptions import DomainError
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.engine_registry import EngineRegistry


class StopPlaybackCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake
    # Also forget loop mode and release the voice connector
    leave: bool = False


class StopPlaybackHandler:

    def __init__(self, *, registry: EngineRegistry) -> None:
        self._registry = registry

    async def handle(self, command: StopPlaybackCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            if command.leave:
                await engine.reset()
                return CommandResult.success(DiscordUIMessages.ACTION_LEFT)
            await engine.stop()
        except DomainError as e:
            return CommandResult.error(e)

        return CommandResult.success(DiscordUIMessages.ACTION_STOPPED)
