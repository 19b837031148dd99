"""
Unit Tests for the Music Cog

Tests the slash-command group: each command builds the right application
command, forwards it to the container's handler and replies with the
result, ephemerally when it failed.
"""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from discord import app_commands
from discord.ext import commands

from sayu_player.application.commands import CommandResult, PlayTrackResult, PlayTrackStatus
from sayu_player.application.queries import QueueInfo
from sayu_player.config.settings import DiscordSettings, Settings
from sayu_player.domain.music.entities import QueueEntry
from sayu_player.domain.music.value_objects import LoopMode
from sayu_player.domain.shared.exceptions import EmptyQueueError
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.infrastructure.discord.cogs import music_cog
from sayu_player.infrastructure.discord.cogs.music_cog import MusicCog

GUILD_ID = 987654321
CHANNEL_ID = 555000111
USER_ID = 111222333


@pytest.fixture
def container():
    container = MagicMock()
    container.settings = Settings(discord=DiscordSettings(command_name="dj"))
    container.play_track_handler.handle = AsyncMock()
    container.skip_track_handler.handle = AsyncMock()
    container.stop_playback_handler.handle = AsyncMock()
    container.playback_control_handler.join = AsyncMock()
    container.playback_control_handler.pause = AsyncMock()
    container.playback_control_handler.resume = AsyncMock()
    container.playback_control_handler.set_loop_mode = AsyncMock()
    container.queue_command_handler.remove = AsyncMock()
    container.queue_command_handler.jump = AsyncMock()
    container.queue_command_handler.clear = AsyncMock()
    container.get_queue_handler.handle = AsyncMock()
    return container


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.tree = MagicMock()
    return bot


@pytest.fixture
def cog(bot, container):
    return MusicCog(bot, container)


@pytest.fixture
def interaction():
    """Interaction from a member who sits in a voice channel."""
    interaction = MagicMock()
    interaction.guild.id = GUILD_ID

    member = MagicMock(spec=discord.Member)
    member.id = USER_ID
    member.name = "testuser"
    member.display_name = "Test User"
    member.voice.channel.id = CHANNEL_ID
    interaction.user = member

    response = interaction.response
    response.is_done.return_value = False
    response.send_message = AsyncMock()

    async def _defer(*args, **kwargs):
        response.is_done.return_value = True

    response.defer = AsyncMock(side_effect=_defer)
    interaction.followup.send = AsyncMock()
    return interaction


def _command(cog, name):
    return cog.group.get_command(name)


def _sent(interaction):
    """Return (message, ephemeral) of the single reply."""
    if interaction.followup.send.await_count:
        call = interaction.followup.send.await_args
    else:
        call = interaction.response.send_message.await_args
    return call.args[0], call.kwargs.get("ephemeral", False)


# =============================================================================
# Registration Tests
# =============================================================================


class TestRegistration:
    """Tests for group construction and loading."""

    def test_group_uses_configured_name(self, cog):
        assert cog.group.name == "dj"
        assert cog.group.guild_only is True

    def test_all_commands_present(self, cog):
        names = {command.name for command in cog.group.commands}
        assert names == {
            "play", "skip", "stop", "leave", "join", "pause",
            "resume", "loop", "list", "remove", "jump", "clear", "help", "source",
        }

    @pytest.mark.asyncio
    async def test_cog_load_and_unload(self, cog, bot):
        await cog.cog_load()
        bot.tree.add_command.assert_called_once_with(cog.group, override=True)

        await cog.cog_unload()
        bot.tree.remove_command.assert_called_once_with("dj")

    @pytest.mark.asyncio
    async def test_setup_requires_container(self):
        bot = MagicMock(spec=commands.Bot)
        with pytest.raises(RuntimeError, match="Container not found"):
            await music_cog.setup(bot)

    @pytest.mark.asyncio
    async def test_setup_adds_cog(self, container):
        bot = MagicMock()
        bot.container = container
        bot.add_cog = AsyncMock()

        await music_cog.setup(bot)

        assert isinstance(bot.add_cog.await_args.args[0], MusicCog)


# =============================================================================
# Play Tests
# =============================================================================


class TestPlayCommand:
    """Tests for /dj play."""

    @pytest.mark.asyncio
    async def test_play_forwards_request(self, cog, container, interaction, sample_track):
        container.play_track_handler.handle.return_value = PlayTrackResult.success(
            track=sample_track, queue_position=1, queue_length=1, started_playing=True
        )

        await _command(cog, "play").callback(interaction, "  test track  ")

        interaction.response.defer.assert_awaited_once()
        command = container.play_track_handler.handle.await_args.args[0]
        assert command.guild_id == GUILD_ID
        assert command.channel_id == CHANNEL_ID
        assert command.user_id == USER_ID
        assert command.user_name == "Test User"
        assert command.query == "test track"
        message, ephemeral = _sent(interaction)
        assert message == DiscordUIMessages.ACTION_NOW_PLAYING.format(title=sample_track.title)
        assert ephemeral is False

    @pytest.mark.asyncio
    async def test_play_failure_is_ephemeral(self, cog, container, interaction):
        container.play_track_handler.handle.return_value = PlayTrackResult.error(
            PlayTrackStatus.RESOLUTION_ERROR, "nope"
        )

        await _command(cog, "play").callback(interaction, "missing")

        assert _sent(interaction) == ("nope", True)

    @pytest.mark.asyncio
    async def test_play_requires_voice(self, cog, container, interaction):
        interaction.user.voice = None

        await _command(cog, "play").callback(interaction, "song")

        assert _sent(interaction) == (DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE, True)
        container.play_track_handler.handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_play_requires_guild(self, cog, container, interaction):
        interaction.guild = None

        await _command(cog, "play").callback(interaction, "song")

        assert _sent(interaction) == (DiscordUIMessages.STATE_SERVER_ONLY, True)
        container.play_track_handler.handle.assert_not_awaited()


# =============================================================================
# Other Command Tests
# =============================================================================


class TestControlCommands:
    """Tests for the commands that return a CommandResult."""

    @pytest.mark.asyncio
    async def test_skip(self, cog, container, interaction):
        container.skip_track_handler.handle.return_value = CommandResult.success("skipped")

        await _command(cog, "skip").callback(interaction)

        command = container.skip_track_handler.handle.await_args.args[0]
        assert (command.guild_id, command.user_id) == (GUILD_ID, USER_ID)
        assert _sent(interaction) == ("skipped", False)

    @pytest.mark.asyncio
    async def test_skip_error_is_ephemeral(self, cog, container, interaction):
        container.skip_track_handler.handle.return_value = CommandResult.error(
            EmptyQueueError("skip")
        )

        await _command(cog, "skip").callback(interaction)

        assert _sent(interaction) == (DiscordUIMessages.ERROR_EMPTY_QUEUE, True)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("name", "leave"), [("stop", False), ("leave", True)])
    async def test_stop_and_leave(self, cog, container, interaction, name, leave):
        container.stop_playback_handler.handle.return_value = CommandResult.success("ok")

        await _command(cog, name).callback(interaction)

        assert container.stop_playback_handler.handle.await_args.args[0].leave is leave

    @pytest.mark.asyncio
    async def test_join(self, cog, container, interaction):
        container.playback_control_handler.join.return_value = CommandResult.success("joined")

        await _command(cog, "join").callback(interaction)

        command = container.playback_control_handler.join.await_args.args[0]
        assert command.channel_id == CHANNEL_ID
        assert _sent(interaction) == ("joined", False)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["pause", "resume"])
    async def test_pause_resume(self, cog, container, interaction, name):
        handler = getattr(container.playback_control_handler, name)
        handler.return_value = CommandResult.success(name)

        await _command(cog, name).callback(interaction)

        assert handler.await_args.args[0].guild_id == GUILD_ID
        assert _sent(interaction) == (name, False)

    @pytest.mark.asyncio
    async def test_loop(self, cog, container, interaction):
        container.playback_control_handler.set_loop_mode.return_value = CommandResult.success("looping")

        choice = app_commands.Choice(name="queue", value="queue")
        await _command(cog, "loop").callback(interaction, choice)

        command = container.playback_control_handler.set_loop_mode.await_args.args[0]
        assert command.mode is LoopMode.QUEUE

    @pytest.mark.asyncio
    async def test_list(self, cog, container, interaction):
        container.get_queue_handler.handle.return_value = QueueInfo(
            guild_id=GUILD_ID, entries=[QueueEntry(position=1, title="Only", is_current=True)]
        )

        await _command(cog, "list").callback(interaction)

        message, ephemeral = _sent(interaction)
        assert "1. Only" in message
        assert ephemeral is True

    @pytest.mark.asyncio
    async def test_remove_passes_user_position(self, cog, container, interaction):
        container.queue_command_handler.remove.return_value = CommandResult.success("removed")

        await _command(cog, "remove").callback(interaction, 3)

        assert container.queue_command_handler.remove.await_args.args[0].position == 3

    @pytest.mark.asyncio
    async def test_jump_without_voice_sends_no_channel(self, cog, container, interaction):
        interaction.user.voice = None
        container.queue_command_handler.jump.return_value = CommandResult.success("jumped")

        await _command(cog, "jump").callback(interaction, 2)

        command = container.queue_command_handler.jump.await_args.args[0]
        assert command.position == 2
        assert command.channel_id is None
        assert _sent(interaction) == ("jumped", False)

    @pytest.mark.asyncio
    async def test_clear(self, cog, container, interaction):
        container.queue_command_handler.clear.return_value = CommandResult.success("cleared")

        await _command(cog, "clear").callback(interaction)

        assert _sent(interaction) == ("cleared", False)


# =============================================================================
# Deferral Tests
# =============================================================================


class TestDeferral:
    """Every engine command acknowledges the interaction before awaiting its handler."""

    HANDLERS = {
        "skip": ("skip_track_handler", "handle"),
        "stop": ("stop_playback_handler", "handle"),
        "leave": ("stop_playback_handler", "handle"),
        "join": ("playback_control_handler", "join"),
        "pause": ("playback_control_handler", "pause"),
        "resume": ("playback_control_handler", "resume"),
        "remove": ("queue_command_handler", "remove"),
        "jump": ("queue_command_handler", "jump"),
        "clear": ("queue_command_handler", "clear"),
    }

    ARGS = {"remove": (1,), "jump": (1,)}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", sorted(HANDLERS))
    async def test_defers_before_handler_and_replies_via_followup(
        self, cog, container, interaction, name
    ):
        service, method = self.HANDLERS[name]
        handler = getattr(getattr(container, service), method)

        async def respond(*args, **kwargs):
            assert interaction.response.is_done()
            return CommandResult.success("done")

        handler.side_effect = respond

        await _command(cog, name).callback(interaction, *self.ARGS.get(name, ()))

        interaction.response.defer.assert_awaited_once_with(ephemeral=False)
        interaction.response.send_message.assert_not_awaited()
        interaction.followup.send.assert_awaited_once_with("done", ephemeral=False)

    @pytest.mark.asyncio
    async def test_loop_defers(self, cog, container, interaction):
        container.playback_control_handler.set_loop_mode.return_value = CommandResult.success("ok")

        choice = app_commands.Choice(name="track", value="track")
        await _command(cog, "loop").callback(interaction, choice)

        interaction.response.defer.assert_awaited_once_with(ephemeral=False)
        interaction.followup.send.assert_awaited_once_with("ok", ephemeral=False)

    @pytest.mark.asyncio
    async def test_list_defers_ephemerally(self, cog, container, interaction):
        container.get_queue_handler.handle.return_value = QueueInfo(guild_id=GUILD_ID, entries=[])

        await _command(cog, "list").callback(interaction)

        interaction.response.defer.assert_awaited_once_with(ephemeral=True)
        assert interaction.followup.send.await_args.kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_guild_check_replies_without_deferring(self, cog, container, interaction):
        interaction.guild = None

        await _command(cog, "skip").callback(interaction)

        interaction.response.defer.assert_not_awaited()
        assert _sent(interaction) == (DiscordUIMessages.STATE_SERVER_ONLY, True)
        container.skip_track_handler.handle.assert_not_awaited()


# =============================================================================
# Info Command Tests
# =============================================================================


class TestInfoCommands:
    """Tests for /dj help and /dj source."""

    @pytest.mark.asyncio
    async def test_help_lists_every_command(self, cog, interaction):
        await _command(cog, "help").callback(interaction)

        message, ephemeral = _sent(interaction)
        assert ephemeral is True
        assert message.startswith(DiscordUIMessages.HELP_HEADER.format(group="dj"))
        for command in cog.group.commands:
            assert f"`/dj {command.name}`" in message
        assert DiscordSettings().help_url in message

    @pytest.mark.asyncio
    async def test_source_links_repository(self, cog, container, interaction):
        await _command(cog, "source").callback(interaction)

        url = container.settings.discord.repository_url
        assert _sent(interaction) == (DiscordUIMessages.SOURCE_CODE.format(url=url), False)

    @pytest.mark.asyncio
    async def test_urls_are_configurable(self, bot, container, interaction):
        container.settings = Settings(
            discord=DiscordSettings(
                command_name="dj",
                repository_url="https://example.com/fork",
                help_url="https://example.com/fork/help",
            )
        )
        cog = MusicCog(bot, container)

        await _command(cog, "source").callback(interaction)
        assert "https://example.com/fork" in _sent(interaction)[0]

        await _command(cog, "help").callback(interaction)
        assert "https://example.com/fork/help" in _sent(interaction)[0]
