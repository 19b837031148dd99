"""
Unit Tests for EventCog

Tests for:
- Subscribing to and unsubscribing from the event bus
- Remembering the text channel of the last slash command per guild
- Posting track failures to that channel without blocking the publisher
- Forgetting the channel when the player is reset
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio
from discord.ext import commands

from sayu_player.domain.shared.events import (
    EventBus,
    PlaybackStopped,
    QueueExhausted,
    TrackFailed,
    TrackStartedPlaying,
)
from sayu_player.domain.shared.messages import DiscordUIMessages
from sayu_player.infrastructure.discord.cogs import event_cog
from sayu_player.infrastructure.discord.cogs.event_cog import EventCog

GUILD_ID = 987654321
TEXT_CHANNEL_ID = 444000222
CHANNEL_ID = 555000111


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def text_channel():
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def bot(text_channel):
    bot = MagicMock(spec=commands.Bot)
    bot.get_channel = MagicMock(return_value=text_channel)
    return bot


@pytest.fixture
def container(bus):
    container = MagicMock()
    container.event_bus = bus
    return container


@pytest_asyncio.fixture
async def cog(bot, container):
    cog = EventCog(bot, container)
    await cog.cog_load()
    yield cog
    await cog.cog_unload()


def _interaction(guild_id=GUILD_ID, channel_id=TEXT_CHANNEL_ID):
    interaction = MagicMock()
    interaction.guild_id = guild_id
    interaction.channel_id = channel_id
    return interaction


async def _drain(cog):
    if cog._pending:
        await asyncio.gather(*cog._pending)


# =============================================================================
# Subscription Tests
# =============================================================================


class TestSubscription:
    """Tests for wiring the cog to the bus."""

    @pytest.mark.asyncio
    async def test_subscribes_to_every_playback_event(self, cog, bus):
        for event_type in (TrackStartedPlaying, TrackFailed, QueueExhausted, PlaybackStopped):
            assert len(bus._handlers[event_type]) == 1

    @pytest.mark.asyncio
    async def test_unload_unsubscribes(self, bot, container, bus):
        cog = EventCog(bot, container)
        await cog.cog_load()
        await cog.cog_unload()

        assert all(not handlers for handlers in bus._handlers.values())

    @pytest.mark.asyncio
    async def test_setup_requires_container(self):
        bot = MagicMock(spec=commands.Bot)
        with pytest.raises(RuntimeError, match="Container not found"):
            await event_cog.setup(bot)

    @pytest.mark.asyncio
    async def test_setup_adds_cog(self, container):
        bot = MagicMock()
        bot.container = container
        bot.add_cog = AsyncMock()

        await event_cog.setup(bot)

        assert isinstance(bot.add_cog.await_args.args[0], EventCog)


# =============================================================================
# Announcement Tests
# =============================================================================


class TestAnnouncements:
    """Tests for posting engine events to the guild's text channel."""

    @pytest.mark.asyncio
    async def test_track_failure_posted_to_last_command_channel(
        self, cog, bus, bot, text_channel
    ):
        await cog.on_app_command_completion(_interaction(), MagicMock())

        await bus.publish(TrackFailed(guild_id=GUILD_ID, track_title="Broken", error="403"))
        await _drain(cog)

        bot.get_channel.assert_called_once_with(TEXT_CHANNEL_ID)
        text_channel.send.assert_awaited_once_with(
            DiscordUIMessages.ANNOUNCE_TRACK_FAILED.format(title="Broken")
        )

    @pytest.mark.asyncio
    async def test_publish_does_not_wait_for_discord(self, cog, bus, text_channel):
        gate = asyncio.Event()

        async def slow_send(message):
            await gate.wait()

        text_channel.send.side_effect = slow_send
        await cog.on_app_command_completion(_interaction(), MagicMock())

        await asyncio.wait_for(
            bus.publish(TrackFailed(guild_id=GUILD_ID, track_title="Broken")), timeout=1
        )

        assert len(cog._pending) == 1
        gate.set()
        await _drain(cog)
        assert not cog._pending

    @pytest.mark.asyncio
    async def test_no_channel_known_posts_nothing(self, cog, bus, bot):
        await bus.publish(TrackFailed(guild_id=GUILD_ID, track_title="Broken"))

        assert not cog._pending
        bot.get_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_commands_outside_guilds_are_ignored(self, cog):
        await cog.on_app_command_completion(_interaction(guild_id=None), MagicMock())

        assert cog._text_channels == {}

    @pytest.mark.asyncio
    async def test_send_failure_is_logged(self, cog, bus, text_channel):
        text_channel.send.side_effect = discord.HTTPException(MagicMock(status=403), "denied")
        await cog.on_app_command_completion(_interaction(), MagicMock())

        await bus.publish(TrackFailed(guild_id=GUILD_ID, track_title="Broken"))
        await _drain(cog)

        text_channel.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_started_and_exhausted_are_not_posted(self, cog, bus, text_channel):
        await cog.on_app_command_completion(_interaction(), MagicMock())

        await bus.publish(TrackStartedPlaying(guild_id=GUILD_ID, track_title="A"))
        await bus.publish(QueueExhausted(guild_id=GUILD_ID, last_track_title="A"))
        await _drain(cog)

        text_channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("reason", "forgotten"),
        [("reset", True), ("connection_lost", True), ("user_request", False)],
    )
    async def test_reset_forgets_channel(self, cog, bus, reason, forgotten):
        await cog.on_app_command_completion(_interaction(), MagicMock())

        await bus.publish(PlaybackStopped(guild_id=GUILD_ID, reason=reason))

        assert (GUILD_ID not in cog._text_channels) is forgotten


class TestEngineIntegration:
    """Events from a real engine reach the cog through the shared bus."""

    @pytest.mark.asyncio
    async def test_failing_track_is_announced(
        self, cog, bus, text_channel, connector_factory, make_track
    ):
        from sayu_player.application.services.playback_engine import PlaybackEngine

        engine = PlaybackEngine(
            GUILD_ID, connector_factory=connector_factory, event_bus=bus, connect_timeout=0.5
        )
        await cog.on_app_command_completion(_interaction(), MagicMock())
        connector_factory.defaults["play_errors"] = {"Broken": RuntimeError("403")}

        try:
            await engine.enqueue(make_track("Broken"), CHANNEL_ID)
            await engine.enqueue(make_track("Fine"), CHANNEL_ID)
        finally:
            await engine.close()
        await _drain(cog)

        text_channel.send.assert_awaited_once_with(
            DiscordUIMessages.ANNOUNCE_TRACK_FAILED.format(title="Broken")
        )
