"""Commands that address queue items by the 1-based position users see."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from sayu_player.application.commands.results import CommandResult
from sayu_player.domain.music.queue_service import QueueDomainService
from sayu_player.domain.shared.exceptions import DomainError
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.engine_registry import EngineRegistry


class RemoveTrackCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    position: int


class JumpToTrackCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    position: int
    # Voice channel to join if the bot is not connected yet
    channel_id: DiscordSnowflake | None = None


class ClearQueueCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class QueueCommandHandler:
    """Handles remove, jump and clear.

    Positions are checked against the queue length when the command arrives
    and again by the engine when it runs, since the queue may change between.
    """

    def __init__(self, *, registry: EngineRegistry) -> None:
        self._registry = registry

    async def remove(self, command: RemoveTrackCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            index = QueueDomainService.to_index(command.position, len(engine.queue))
            outcome = await engine.remove(index)
        except DomainError as e:
            return CommandResult.error(e, position=command.position)
        return CommandResult.success(
            DiscordUIMessages.ACTION_TRACK_REMOVED.format(title=outcome.track.title)
        )

    async def jump(self, command: JumpToTrackCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            index = QueueDomainService.to_index(command.position, len(engine.queue))
            track = await engine.jump_to(index, command.channel_id)
        except DomainError as e:
            return CommandResult.error(e, position=command.position)
        return CommandResult.success(DiscordUIMessages.ACTION_JUMPED.format(title=track.title))

    async def clear(self, command: ClearQueueCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        try:
            count = await engine.clear_queue()
        except DomainError as e:
            return CommandResult.error(e)
        return CommandResult.success(DiscordUIMessages.ACTION_QUEUE_CLEARED.format(count=count))
