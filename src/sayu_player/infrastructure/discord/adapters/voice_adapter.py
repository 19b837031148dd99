"""Discord voice connector: one guild's voice client, FFmpeg playback and end callbacks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from sayu_player.application.interfaces.voice_connector import TrackEndCallback, VoiceConnector
from sayu_player.config.settings import AudioSettings
from sayu_player.domain.shared.exceptions import (
    AlreadyConnectedElsewhereError,
    ConnectionTimeoutError,
    NotConnectedError,
    PermissionDeniedError,
    ResolutionError,
    VoiceConnectionError,
)
from sayu_player.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ....domain.music.entities import Track

logger = logging.getLogger(__name__)

# discord.py's own handshake timeout; the engine applies the shorter, configured one
HANDSHAKE_TIMEOUT: float = 60.0


class DiscordVoiceConnector(VoiceConnector):
    """Voice transport for a single guild backed by a discord.py ``VoiceClient``."""

    def __init__(
        self, bot: discord.Client, guild_id: int, settings: AudioSettings | None = None
    ) -> None:
        self._bot = bot
        self._guild_id = guild_id
        self._settings = settings or AudioSettings()
        self._volume = self._settings.default_volume
        self._ffmpeg_options = self._settings.ffmpeg_options

    def _get_guild(self) -> discord.Guild | None:
        return self._bot.get_guild(self._guild_id)

    def _get_voice_client(self) -> discord.VoiceClient | None:
        guild = self._get_guild()
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    def _get_channel(self, channel_id: int) -> discord.VoiceChannel | discord.StageChannel:
        guild = self._get_guild()
        channel = guild.get_channel(channel_id) if guild else None
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise VoiceConnectionError(
                channel_id, f"Channel {channel_id} is not a voice channel", code="NOT_VOICE_CHANNEL"
            )
        return channel

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def is_connected(self) -> bool:
        vc = self._get_voice_client()
        return vc is not None and vc.is_connected()

    @property
    def channel_id(self) -> int | None:
        vc = self._get_voice_client()
        if vc and vc.is_connected() and vc.channel:
            return vc.channel.id
        return None

    async def connect(self, channel_id: int) -> None:
        channel = self._get_channel(channel_id)
        vc = self._get_voice_client()

        if vc and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, self._guild_id)
            await self._force_disconnect(vc)
            vc = None

        try:
            if vc is None:
                await channel.connect(timeout=HANDSHAKE_TIMEOUT, self_deaf=True)
                logger.info(LogTemplates.VOICE_CONNECTED, channel.name, channel.guild.name)
            elif vc.channel is None or vc.channel.id != channel_id:
                await vc.move_to(channel)
                logger.info(LogTemplates.VOICE_MOVED, channel.name, channel.guild.name)
            else:
                return
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise ConnectionTimeoutError(channel_id, HANDSHAKE_TIMEOUT) from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise PermissionDeniedError(channel_id) from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            current = vc.channel.id if vc and vc.channel else None
            raise AlreadyConnectedElsewhereError(channel_id, current) from e

        await self._ensure_self_deaf(channel)

    async def _ensure_self_deaf(self, channel: discord.VoiceChannel | discord.StageChannel) -> None:
        guild = channel.guild
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except Exception as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    async def _force_disconnect(self, vc: discord.VoiceClient) -> None:
        try:
            await vc.disconnect(force=True)
        except Exception:
            logger.exception(LogTemplates.VOICE_CLEANUP_ERROR, self._guild_id)

    async def disconnect(self) -> None:
        vc = self._get_voice_client()
        if not vc:
            return

        await self._force_disconnect(vc)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self._guild_id)

    async def play(self, track: Track, *, on_end: TrackEndCallback) -> None:
        vc = self._get_voice_client()
        if not vc or not vc.is_connected():
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, self._guild_id)
            raise NotConnectedError(self._guild_id)

        if not track.stream_url:
            logger.error(LogTemplates.YTDLP_NO_STREAM_URL, track.title)
            raise ResolutionError(track.source_url, f"No stream URL for '{track.title}'")

        if vc.is_playing() or vc.is_paused():
            vc.stop()

        source = discord.FFmpegPCMAudio(
            track.stream_url,
            before_options=self._ffmpeg_options.get("before_options"),
            options=self._ffmpeg_options.get("options"),
        )
        volume_source = discord.PCMVolumeTransformer(source, volume=self._volume)
        loop = self._bot.loop
        guild_id = self._guild_id

        def after_callback(error: Exception | None = None) -> None:
            # Runs on discord.py's audio thread; hand the outcome back to the event loop.
            logger.debug(LogTemplates.TRACK_ENDED, guild_id, error)
            if not loop.is_closed():
                loop.call_soon_threadsafe(on_end, error)

        vc.play(volume_source, after=after_callback)

    async def stop(self) -> None:
        vc = self._get_voice_client()
        if vc and (vc.is_playing() or vc.is_paused()):
            vc.stop()

    async def pause(self) -> None:
        vc = self._get_voice_client()
        if not vc:
            raise NotConnectedError(self._guild_id)
        if vc.is_playing():
            vc.pause()

    async def resume(self) -> None:
        vc = self._get_voice_client()
        if not vc:
            raise NotConnectedError(self._guild_id)
        if vc.is_paused():
            vc.resume()
