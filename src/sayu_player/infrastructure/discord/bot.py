"""Main Discord bot class wiring the container, the music cog and guild lifecycle events."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from sayu_player.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS = (
    "sayu_player.infrastructure.discord.cogs.music_cog",
    "sayu_player.infrastructure.discord.cogs.event_cog",
)


class MusicBot(commands.Bot):
    def __init__(
        self,
        container: Container,
        settings: Settings,
        **kwargs,
    ) -> None:
        intents = discord.Intents.default()
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        self._shutdown_event = asyncio.Event()
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        await self._load_cogs()
        self.tree.on_error = self._on_app_command_error

        if self.settings.discord.sync_on_startup:
            await self._sync_commands()

        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def _load_cogs(self) -> None:
        for cog in COGS:
            try:
                await self.load_extension(cog)
                logger.info(LogTemplates.BOT_COG_LOADED, cog)
            except Exception as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, cog, e)

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: Exception
    ) -> None:
        """Global slash-command error handler; sends ephemeral messages to avoid channel spam."""
        original = getattr(error, "original", error)

        logger.error(
            LogTemplates.BOT_SLASH_COMMAND_ERROR,
            getattr(interaction.command, "name", "<unknown>"),
            original,
        )

        error_msg = f"❌ {DiscordUIMessages.ERROR_OCCURRED.format(error=original)}"

        try:
            if interaction.response.is_done():
                await interaction.followup.send(error_msg, ephemeral=True)
            else:
                await interaction.response.send_message(error_msg, ephemeral=True)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    async def _sync_commands(self) -> None:
        """Sync the command tree to the configured test guilds, or globally when there are none.

        Test-guild syncs take effect immediately; a global sync can take up to an hour.
        """
        guild_ids = self.settings.discord.test_guild_ids
        if not guild_ids:
            try:
                synced = await self.tree.sync()
            except discord.HTTPException as e:
                logger.warning(LogTemplates.BOT_SYNC_GLOBAL_FAILED, e)
            else:
                logger.info(LogTemplates.BOT_SYNCED_GLOBAL, len(synced))
            return

        for guild_id in guild_ids:
            await self._sync_guild(discord.Object(id=guild_id))

    async def _sync_guild(self, guild: discord.abc.Snowflake) -> None:
        self.tree.copy_global_to(guild=guild)
        try:
            synced = await self.tree.sync(guild=guild)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.BOT_SYNC_GUILD_FAILED, guild.id, e)
        else:
            logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), guild.id)

    # ─────────────────────────────────────────────────────────────────
    # Gateway events
    # ─────────────────────────────────────────────────────────────────

    async def on_ready(self) -> None:
        logger.info(
            LogTemplates.BOT_READY,
            self.user,  # type: ignore
            self.user.id,  # type: ignore
        )
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        registry = self.container.engine_registry
        for guild in self.guilds:
            registry.get(guild.id)

        activity = discord.Activity(
            type=discord.ActivityType.listening,
            name=f"/{self.settings.discord.command_name} play",
        )
        await self.change_presence(activity=activity)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.BOT_GUILD_JOINED, guild.name, guild.id)
        self.container.engine_registry.get(guild.id)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.BOT_GUILD_REMOVED, guild.name, guild.id)
        await self.container.engine_registry.dispose(guild.id)

    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Reset the guild's engine when the bot is dropped from voice mid-playback.

        Disconnects the engine makes itself (stop, end of queue) leave it idle
        and are not treated as a lost connection.
        """
        if self.user is None or member.id != self.user.id:
            return
        if before.channel is None or after.channel is not None:
            return

        engine = self.container.engine_registry.peek(member.guild.id)
        if engine is None or engine.is_closed or not engine.state.is_active:
            return
        await engine.connection_lost()

    # ─────────────────────────────────────────────────────────────────
    # Shutdown
    # ─────────────────────────────────────────────────────────────────

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        try:
            await self.container.shutdown()
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)

        await super().close()
        self._shutdown_event.set()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    async def _close_with_timeout(self, timeout: float) -> None:
        try:
            async with asyncio.timeout(timeout):
                await self.close()
        except TimeoutError:
            logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, timeout)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT/SIGTERM, then dispose every engine before closing the gateway."""

        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()
                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(
                        sig, lambda: asyncio.create_task(self._close_with_timeout(shutdown_timeout))
                    )
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
