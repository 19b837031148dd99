"""Listeners for playback events published by the guild engines."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from sayu_player.domain.music.value_objects import StopReason
from sayu_player.domain.shared.events import (
    PlaybackStopped,
    QueueExhausted,
    TrackFailed,
    TrackStartedPlaying,
)
from sayu_player.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

# Stop reasons after which the guild's player starts from scratch
_FORGET_CHANNEL = {StopReason.RESET.value, StopReason.CONNECTION_LOST.value}


class EventCog(commands.Cog):
    """Logs engine events and posts track failures to the guild's last command channel.

    Event handlers run inside the engine's worker, so anything that talks to
    Discord is spawned as a task instead of awaited.
    """

    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        self._event_bus = container.event_bus

        # Text channel of the last slash command used in each guild
        self._text_channels: dict[int, int] = {}
        self._pending: set[asyncio.Task[None]] = set()

    async def cog_load(self) -> None:
        self._event_bus.subscribe(TrackStartedPlaying, self._on_track_started)
        self._event_bus.subscribe(TrackFailed, self._on_track_failed)
        self._event_bus.subscribe(QueueExhausted, self._on_queue_exhausted)
        self._event_bus.subscribe(PlaybackStopped, self._on_playback_stopped)

    async def cog_unload(self) -> None:
        self._event_bus.unsubscribe(TrackStartedPlaying, self._on_track_started)
        self._event_bus.unsubscribe(TrackFailed, self._on_track_failed)
        self._event_bus.unsubscribe(QueueExhausted, self._on_queue_exhausted)
        self._event_bus.unsubscribe(PlaybackStopped, self._on_playback_stopped)

        for task in self._pending:
            task.cancel()
        self._pending.clear()

    @commands.Cog.listener()
    async def on_app_command_completion(
        self, interaction: discord.Interaction, command: app_commands.Command
    ) -> None:
        if interaction.guild_id is None or interaction.channel_id is None:
            return
        self._text_channels[interaction.guild_id] = interaction.channel_id

    # ─────────────────────────────────────────────────────────────────
    # Engine events
    # ─────────────────────────────────────────────────────────────────

    async def _on_track_started(self, event: TrackStartedPlaying) -> None:
        logger.debug(
            LogTemplates.EVENT_TRACK_STARTED,
            event.track_title,
            event.queue_index + 1,
            event.guild_id,
        )

    async def _on_track_failed(self, event: TrackFailed) -> None:
        logger.debug(LogTemplates.EVENT_TRACK_FAILED, event.track_title, event.guild_id)
        self._announce(
            event.guild_id, DiscordUIMessages.ANNOUNCE_TRACK_FAILED.format(title=event.track_title)
        )

    async def _on_queue_exhausted(self, event: QueueExhausted) -> None:
        logger.debug(LogTemplates.EVENT_QUEUE_EXHAUSTED, event.last_track_title, event.guild_id)

    async def _on_playback_stopped(self, event: PlaybackStopped) -> None:
        logger.debug(LogTemplates.EVENT_PLAYBACK_STOPPED, event.guild_id, event.reason)
        if event.reason in _FORGET_CHANNEL:
            self._text_channels.pop(event.guild_id, None)

    # ─────────────────────────────────────────────────────────────────
    # Announcements
    # ─────────────────────────────────────────────────────────────────

    def _announce(self, guild_id: int, message: str) -> None:
        channel_id = self._text_channels.get(guild_id)
        if channel_id is None:
            return

        task = asyncio.create_task(self._send(channel_id, message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, channel_id: int, message: str) -> None:
        channel = self.bot.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            return
        try:
            await channel.send(message)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.EVENT_ANNOUNCE_FAILED, channel_id, e)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(EventCog(bot, container))
