"""Query for retrieving the current queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from sayu_player.domain.music.entities import QueueEntry
from sayu_player.domain.music.value_objects import LoopMode, PlaybackState
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.engine_registry import EngineRegistry


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class QueueInfo(BaseModel):

    guild_id: DiscordSnowflake
    entries: list[QueueEntry] = Field(default_factory=list)
    state: PlaybackState = PlaybackState.IDLE
    loop_mode: LoopMode = LoopMode.NONE

    @property
    def length(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return len(self.entries) == 0

    @property
    def current(self) -> QueueEntry | None:
        return next((entry for entry in self.entries if entry.is_current), None)

    def render(self) -> str:
        """One line per item, with the current one marked."""
        if self.is_empty:
            return DiscordUIMessages.STATE_QUEUE_EMPTY

        marker = DiscordUIMessages.STATE_NOW_PLAYING_MARKER
        return "\n".join(
            f"{marker if entry.is_current else ' '} {entry.position}. {entry.title}"
            for entry in self.entries
        )


class GetQueueHandler:

    def __init__(self, *, registry: EngineRegistry) -> None:
        self._registry = registry

    async def handle(self, query: GetQueueQuery) -> QueueInfo:
        engine = self._registry.peek(query.guild_id)
        if engine is None:
            return QueueInfo(guild_id=query.guild_id)

        entries = await engine.list_queue()
        return QueueInfo(
            guild_id=query.guild_id,
            entries=entries,
            state=engine.state,
            loop_mode=engine.loop_mode,
        )
