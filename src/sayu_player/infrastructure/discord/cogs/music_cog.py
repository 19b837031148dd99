"""Slash-command group delegating every music command to the guild's engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from sayu_player.application.commands.play_track import PlayTrackCommand
from sayu_player.application.commands.playback_controls import (
    JoinChannelCommand,
    PausePlaybackCommand,
    ResumePlaybackCommand,
    SetLoopModeCommand,
)
from sayu_player.application.commands.queue_commands import (
    ClearQueueCommand,
    JumpToTrackCommand,
    RemoveTrackCommand,
)
from sayu_player.application.commands.skip_track import SkipTrackCommand
from sayu_player.application.commands.stop_playback import StopPlaybackCommand
from sayu_player.application.queries.get_queue import GetQueueQuery
from sayu_player.domain.music.value_objects import LoopMode
from sayu_player.domain.shared.messages import DiscordUIMessages, ErrorMessages

if TYPE_CHECKING:
    from ....application.commands.results import CommandResult
    from ....config.container import Container

logger = logging.getLogger(__name__)

LOOP_CHOICES = [app_commands.Choice(name=mode.value, value=mode.value) for mode in LoopMode]


class MusicCog(commands.Cog):
    """Registers one slash command group (``/<command_name> ...``) on the bot's tree."""

    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        self.group = self._build_group(container.settings.discord.command_name)

    async def cog_load(self) -> None:
        self.bot.tree.add_command(self.group, override=True)

    async def cog_unload(self) -> None:
        self.bot.tree.remove_command(self.group.name)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _send(
        self, interaction: discord.Interaction, message: str, *, ephemeral: bool = False
    ) -> None:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(message, ephemeral=ephemeral)

    async def _send_result(self, interaction: discord.Interaction, result: CommandResult) -> None:
        await self._send(interaction, result.message, ephemeral=not result.is_success)

    async def _defer(self, interaction: discord.Interaction, *, ephemeral: bool = False) -> None:
        """Acknowledge the interaction before waiting on the guild's engine.

        Engine commands run one at a time, so any of them can sit behind a
        voice connect for longer than the 3-second interaction deadline.
        """
        if not interaction.response.is_done():
            await interaction.response.defer(ephemeral=ephemeral)

    async def _guild_id(self, interaction: discord.Interaction) -> int | None:
        if interaction.guild is None:
            await self._send(interaction, DiscordUIMessages.STATE_SERVER_ONLY, ephemeral=True)
            return None
        return interaction.guild.id

    async def _voice_channel_id(self, interaction: discord.Interaction) -> int | None:
        """Voice channel the invoking member is in, replying with a hint if none."""
        user = interaction.user
        voice = getattr(user, "voice", None) if isinstance(user, discord.Member) else None
        if voice is None or voice.channel is None:
            await self._send(
                interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE, ephemeral=True
            )
            return None
        return voice.channel.id

    def _render_help(self) -> str:
        name = self.group.name
        lines = [DiscordUIMessages.HELP_HEADER.format(group=name)]
        lines.extend(
            DiscordUIMessages.HELP_LINE.format(
                group=name, name=command.name, description=command.description
            )
            for command in self.group.commands
        )
        help_url = self.container.settings.discord.help_url
        lines.append(DiscordUIMessages.HELP_MORE.format(url=help_url))
        return "\n".join(lines)

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    def _build_group(self, name: str) -> app_commands.Group:
        group = app_commands.Group(name=name, description="Music playback", guild_only=True)

        @group.command(name="play", description="Play a song by URL or search query.")
        @app_commands.describe(query="URL or search query")
        async def play(interaction: discord.Interaction, query: str) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            channel_id = await self._voice_channel_id(interaction)
            if channel_id is None:
                return

            await self._defer(interaction)
            user = interaction.user
            result = await self.container.play_track_handler.handle(
                PlayTrackCommand(
                    guild_id=guild_id,
                    channel_id=channel_id,
                    user_id=user.id,
                    user_name=getattr(user, "display_name", None) or user.name,
                    query=query,
                )
            )
            await self._send(interaction, result.message, ephemeral=not result.is_success)

        @group.command(name="skip", description="Skip the current track.")
        async def skip(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.skip_track_handler.handle(
                SkipTrackCommand(guild_id=guild_id, user_id=interaction.user.id)
            )
            await self._send_result(interaction, result)

        @group.command(name="stop", description="Stop playback, clear the queue and disconnect.")
        async def stop(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.stop_playback_handler.handle(
                StopPlaybackCommand(guild_id=guild_id, user_id=interaction.user.id)
            )
            await self._send_result(interaction, result)

        @group.command(name="leave", description="Leave the voice channel and reset the player.")
        async def leave(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.stop_playback_handler.handle(
                StopPlaybackCommand(guild_id=guild_id, user_id=interaction.user.id, leave=True)
            )
            await self._send_result(interaction, result)

        @group.command(name="join", description="Join your voice channel.")
        async def join(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            channel_id = await self._voice_channel_id(interaction)
            if channel_id is None:
                return

            await self._defer(interaction)
            result = await self.container.playback_control_handler.join(
                JoinChannelCommand(guild_id=guild_id, channel_id=channel_id)
            )
            await self._send_result(interaction, result)

        @group.command(name="pause", description="Pause the current track.")
        async def pause(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.playback_control_handler.pause(
                PausePlaybackCommand(guild_id=guild_id)
            )
            await self._send_result(interaction, result)

        @group.command(name="resume", description="Resume the paused track.")
        async def resume(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.playback_control_handler.resume(
                ResumePlaybackCommand(guild_id=guild_id)
            )
            await self._send_result(interaction, result)

        @group.command(name="loop", description="Set the loop mode.")
        @app_commands.describe(mode="What to repeat")
        @app_commands.choices(mode=LOOP_CHOICES)
        async def loop(interaction: discord.Interaction, mode: app_commands.Choice[str]) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.playback_control_handler.set_loop_mode(
                SetLoopModeCommand(guild_id=guild_id, mode=LoopMode.parse(mode.value))
            )
            await self._send_result(interaction, result)

        @group.command(name="list", description="Show the queue.")
        async def list_queue(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction, ephemeral=True)
            info = await self.container.get_queue_handler.handle(GetQueueQuery(guild_id=guild_id))
            await self._send(interaction, info.render(), ephemeral=True)

        @group.command(name="remove", description="Remove a track from the queue.")
        @app_commands.describe(position="Position in queue (1-based)")
        async def remove(interaction: discord.Interaction, position: int) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.queue_command_handler.remove(
                RemoveTrackCommand(guild_id=guild_id, position=position)
            )
            await self._send_result(interaction, result)

        @group.command(name="jump", description="Jump to a track in the queue.")
        @app_commands.describe(position="Position in queue (1-based)")
        async def jump(interaction: discord.Interaction, position: int) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return

            user = interaction.user
            voice = getattr(user, "voice", None) if isinstance(user, discord.Member) else None
            channel_id = voice.channel.id if voice and voice.channel else None

            await self._defer(interaction)
            result = await self.container.queue_command_handler.jump(
                JumpToTrackCommand(guild_id=guild_id, position=position, channel_id=channel_id)
            )
            await self._send_result(interaction, result)

        @group.command(name="clear", description="Clear the queue.")
        async def clear(interaction: discord.Interaction) -> None:
            guild_id = await self._guild_id(interaction)
            if guild_id is None:
                return
            await self._defer(interaction)
            result = await self.container.queue_command_handler.clear(
                ClearQueueCommand(guild_id=guild_id)
            )
            await self._send_result(interaction, result)

        @group.command(name="help", description="List the player's commands.")
        async def help_(interaction: discord.Interaction) -> None:
            await self._send(interaction, self._render_help(), ephemeral=True)

        @group.command(name="source", description="Link to the player's source code.")
        async def source(interaction: discord.Interaction) -> None:
            url = self.container.settings.discord.repository_url
            await self._send(interaction, DiscordUIMessages.SOURCE_CODE.format(url=url))

        return group


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
