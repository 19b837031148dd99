"""
Skip Track Command

Command and handler for skipping the current track.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from sayu_player.application.commands.results import CommandResult
from sayu_player.domain.shared.exceptions import DomainError
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.engine_models import SkipOutcome
    from ..services.engine_registry import EngineRegistry


class SkipTrackCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake


class SkipTrackHandler:
    """Handler for SkipTrackCommand.

    The playback id is read when the command arrives. If that track finishes
    or fails on its own before the skip runs, the skip does nothing instead
    of also skipping the track that followed it. A track replaced by an
    earlier command (jump, enqueue, remove) does not count as ended, so the
    skip then applies to whatever is playing when it runs.
    """

    def __init__(self, *, registry: EngineRegistry) -> None:
        self._registry = registry

    async def handle(self, command: SkipTrackCommand) -> CommandResult:
        engine = self._registry.get(command.guild_id)
        expected = engine.playback_id
        try:
            outcome = await engine.skip(expected_playback_id=expected)
        except DomainError as e:
            return CommandResult.error(e)

        return CommandResult.success(_describe(outcome))


def _describe(outcome: SkipOutcome) -> str:
    if outcome.skipped is None:
        if outcome.now_playing is None:
            return DiscordUIMessages.STATE_NOTHING_PLAYING
        return DiscordUIMessages.ACTION_NOW_PLAYING.format(title=outcome.now_playing.title)

    if outcome.now_playing is None:
        return DiscordUIMessages.ACTION_SKIPPED_END.format(title=outcome.skipped.title)
    return DiscordUIMessages.ACTION_SKIPPED_NEXT.format(
        title=outcome.skipped.title, next_title=outcome.now_playing.title
    )
