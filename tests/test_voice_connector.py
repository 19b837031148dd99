"""
Unit Tests for the Discord Voice Connector

Tests connection handling, error mapping and playback callbacks of
DiscordVoiceConnector against mocked discord.py objects.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from sayu_player.config.settings import AudioSettings
from sayu_player.domain.shared.exceptions import (
    AlreadyConnectedElsewhereError,
    ConnectionTimeoutError,
    NotConnectedError,
    PermissionDeniedError,
    ResolutionError,
    VoiceConnectionError,
)
from sayu_player.infrastructure.discord.adapters.voice_adapter import DiscordVoiceConnector

GUILD_ID = 987654321
CHANNEL_ID = 555000111
OTHER_CHANNEL_ID = 555000222

MODULE = "sayu_player.infrastructure.discord.adapters.voice_adapter"


def _voice_channel(channel_id: int, guild) -> MagicMock:
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = channel_id
    channel.name = f"voice-{channel_id}"
    channel.guild = guild
    channel.connect = AsyncMock()
    return channel


def _voice_client(channel, *, connected: bool = True, playing: bool = False, paused: bool = False):
    vc = MagicMock(spec=discord.VoiceClient)
    vc.channel = channel
    vc.is_connected.return_value = connected
    vc.is_playing.return_value = playing
    vc.is_paused.return_value = paused
    vc.move_to = AsyncMock()
    vc.disconnect = AsyncMock()
    return vc


@pytest.fixture
def guild():
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.voice_client = None
    guild.change_voice_state = AsyncMock()
    return guild


@pytest.fixture
def channel(guild):
    channel = _voice_channel(CHANNEL_ID, guild)
    other = _voice_channel(OTHER_CHANNEL_ID, guild)
    guild.get_channel.side_effect = {CHANNEL_ID: channel, OTHER_CHANNEL_ID: other}.get
    return channel


@pytest.fixture
def bot(guild):
    bot = MagicMock()
    bot.get_guild.return_value = guild
    return bot


@pytest.fixture
def connector(bot):
    return DiscordVoiceConnector(bot, GUILD_ID, AudioSettings(default_volume=0.8))


# =============================================================================
# Connection Tests
# =============================================================================


class TestConnect:
    """Tests for joining and moving between channels."""

    @pytest.mark.asyncio
    async def test_connect_joins_self_deafened(self, connector, guild, channel):
        await connector.connect(CHANNEL_ID)

        channel.connect.assert_awaited_once()
        assert channel.connect.await_args.kwargs["self_deaf"] is True
        guild.change_voice_state.assert_awaited_once_with(channel=channel, self_deaf=True)

    @pytest.mark.asyncio
    async def test_connect_moves_existing_client(self, connector, guild, channel):
        other = guild.get_channel(OTHER_CHANNEL_ID)
        vc = _voice_client(other)
        guild.voice_client = vc

        await connector.connect(CHANNEL_ID)

        vc.move_to.assert_awaited_once_with(channel)
        channel.connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_connect_same_channel_is_noop(self, connector, guild, channel):
        vc = _voice_client(channel)
        guild.voice_client = vc

        await connector.connect(CHANNEL_ID)

        vc.move_to.assert_not_awaited()
        channel.connect.assert_not_awaited()
        guild.change_voice_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_client_is_cleaned_up(self, connector, guild, channel):
        stale = _voice_client(channel, connected=False)
        guild.voice_client = stale

        await connector.connect(CHANNEL_ID)

        stale.disconnect.assert_awaited_once_with(force=True)
        channel.connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_voice_channel_rejected(self, connector, guild):
        guild.get_channel.side_effect = None
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        with pytest.raises(VoiceConnectionError) as exc_info:
            await connector.connect(CHANNEL_ID)
        assert exc_info.value.code == "NOT_VOICE_CHANNEL"

    @pytest.mark.asyncio
    async def test_timeout_maps_to_domain_error(self, connector, channel):
        channel.connect.side_effect = TimeoutError()

        with pytest.raises(ConnectionTimeoutError):
            await connector.connect(CHANNEL_ID)

    @pytest.mark.asyncio
    async def test_forbidden_maps_to_permission_denied(self, connector, channel):
        channel.connect.side_effect = discord.Forbidden(MagicMock(status=403), "No permission")

        with pytest.raises(PermissionDeniedError):
            await connector.connect(CHANNEL_ID)

    @pytest.mark.asyncio
    async def test_client_exception_maps_to_already_connected(self, connector, guild, channel):
        other = guild.get_channel(OTHER_CHANNEL_ID)
        vc = _voice_client(other)
        vc.move_to.side_effect = discord.ClientException("busy")
        guild.voice_client = vc

        with pytest.raises(AlreadyConnectedElsewhereError) as exc_info:
            await connector.connect(CHANNEL_ID)
        assert exc_info.value.current_channel_id == OTHER_CHANNEL_ID

    @pytest.mark.asyncio
    async def test_self_deafen_failure_is_not_fatal(self, connector, guild, channel):
        guild.change_voice_state.side_effect = RuntimeError("gateway hiccup")

        await connector.connect(CHANNEL_ID)

        channel.connect.assert_awaited_once()


class TestConnectionState:
    """Tests for is_connected/channel_id/disconnect."""

    def test_not_connected_without_client(self, connector):
        assert connector.is_connected is False
        assert connector.channel_id is None

    def test_connected_client(self, connector, guild, channel):
        guild.voice_client = _voice_client(channel)

        assert connector.is_connected is True
        assert connector.channel_id == CHANNEL_ID

    def test_unknown_guild(self, connector, bot):
        bot.get_guild.return_value = None
        assert connector.is_connected is False

    @pytest.mark.asyncio
    async def test_disconnect(self, connector, guild, channel):
        vc = _voice_client(channel)
        guild.voice_client = vc

        await connector.disconnect()

        vc.disconnect.assert_awaited_once_with(force=True)

    @pytest.mark.asyncio
    async def test_disconnect_without_client_is_noop(self, connector):
        await connector.disconnect()

    @pytest.mark.asyncio
    async def test_disconnect_error_is_logged(self, connector, guild, channel):
        vc = _voice_client(channel)
        vc.disconnect.side_effect = RuntimeError("already gone")
        guild.voice_client = vc

        await connector.disconnect()


# =============================================================================
# Playback Tests
# =============================================================================


class TestPlayback:
    """Tests for play/stop/pause/resume."""

    @pytest.mark.asyncio
    async def test_play_requires_connection(self, connector, sample_track):
        with pytest.raises(NotConnectedError):
            await connector.play(sample_track, on_end=MagicMock())

    @pytest.mark.asyncio
    async def test_play_requires_stream_url(self, connector, guild, channel, make_track):
        guild.voice_client = _voice_client(channel)
        track = make_track("No Stream").model_copy(update={"stream_url": None})

        with pytest.raises(ResolutionError):
            await connector.play(track, on_end=MagicMock())

    @pytest.mark.asyncio
    async def test_play_streams_with_volume(self, connector, guild, channel, bot, sample_track):
        vc = _voice_client(channel)
        guild.voice_client = vc
        bot.loop = asyncio.get_running_loop()

        with (
            patch(f"{MODULE}.discord.FFmpegPCMAudio") as ffmpeg,
            patch(f"{MODULE}.discord.PCMVolumeTransformer") as volume,
        ):
            await connector.play(sample_track, on_end=MagicMock())

        assert ffmpeg.call_args.args[0] == sample_track.stream_url
        assert ffmpeg.call_args.kwargs["options"] == "-vn"
        assert volume.call_args.kwargs["volume"] == 0.8
        vc.play.assert_called_once()
        assert vc.play.call_args.args[0] is volume.return_value

    @pytest.mark.asyncio
    async def test_play_replaces_current_output(self, connector, guild, channel, bot, sample_track):
        vc = _voice_client(channel, playing=True)
        guild.voice_client = vc
        bot.loop = asyncio.get_running_loop()

        with patch(f"{MODULE}.discord.FFmpegPCMAudio"), patch(f"{MODULE}.discord.PCMVolumeTransformer"):
            await connector.play(sample_track, on_end=MagicMock())

        vc.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_after_callback_hands_result_to_loop(
        self, connector, guild, channel, bot, sample_track
    ):
        """The audio thread's callback reaches on_end on the event loop."""
        vc = _voice_client(channel)
        guild.voice_client = vc
        bot.loop = asyncio.get_running_loop()
        on_end = MagicMock()

        with patch(f"{MODULE}.discord.FFmpegPCMAudio"), patch(f"{MODULE}.discord.PCMVolumeTransformer"):
            await connector.play(sample_track, on_end=on_end)

        after = vc.play.call_args.kwargs["after"]
        error = RuntimeError("ffmpeg exited")
        await asyncio.to_thread(after, error)
        await asyncio.sleep(0)

        on_end.assert_called_once_with(error)

    @pytest.mark.asyncio
    async def test_stop_only_when_playing(self, connector, guild, channel):
        vc = _voice_client(channel)
        guild.voice_client = vc

        await connector.stop()
        vc.stop.assert_not_called()

        vc.is_paused.return_value = True
        await connector.stop()
        vc.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, connector, guild, channel):
        vc = _voice_client(channel, playing=True)
        guild.voice_client = vc

        await connector.pause()
        vc.pause.assert_called_once()

        vc.is_playing.return_value = False
        vc.is_paused.return_value = True
        await connector.resume()
        vc.resume.assert_called_once()

    @pytest.mark.asyncio
    async def test_pause_without_client(self, connector):
        with pytest.raises(NotConnectedError):
            await connector.pause()

    def test_guild_id(self, connector):
        assert connector.guild_id == GUILD_ID
