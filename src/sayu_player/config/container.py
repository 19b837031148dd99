"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the engine registry, adapters and handlers.
Components are created on first access and cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.play_track import PlayTrackHandler
    from ..application.commands.playback_controls import PlaybackControlHandler
    from ..application.commands.queue_commands import QueueCommandHandler
    from ..application.commands.skip_track import SkipTrackHandler
    from ..application.commands.stop_playback import StopPlaybackHandler
    from ..application.interfaces.audio_resolver import AudioResolver
    from ..application.interfaces.voice_connector import VoiceConnector, VoiceConnectorFactory
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.services.engine_registry import EngineRegistry
    from ..domain.music.queue_service import QueueDomainService
    from ..domain.shared.events import EventBus
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. Tests may pass
    ``connector_factory`` or ``audio_resolver`` to replace the Discord and
    yt-dlp adapters.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _audio_resolver: AudioResolver | None = None
    _connector_factory: VoiceConnectorFactory | None = None

    # Domain services and events
    _queue_domain_service: QueueDomainService | None = None
    _event_bus: EventBus | None = None

    # Engines
    _engine_registry: EngineRegistry | None = None

    # Command handlers
    _play_track_handler: PlayTrackHandler | None = None
    _skip_track_handler: SkipTrackHandler | None = None
    _stop_playback_handler: StopPlaybackHandler | None = None
    _playback_control_handler: PlaybackControlHandler | None = None
    _queue_command_handler: QueueCommandHandler | None = None

    # Query handlers
    _get_queue_handler: GetQueueHandler | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Adapters ===

    @property
    def audio_resolver(self) -> AudioResolver:
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._audio_resolver = YtDlpResolver(self.settings.audio)
        return self._audio_resolver

    @property
    def connector_factory(self) -> VoiceConnectorFactory:
        """Build one Discord voice connector per guild, bound to the bot."""
        if self._connector_factory is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceConnector

            def create_connector(guild_id: int) -> VoiceConnector:
                return DiscordVoiceConnector(self.bot, guild_id, self.settings.audio)

            self._connector_factory = create_connector
        return self._connector_factory

    # === Domain services ===

    @property
    def queue_domain_service(self) -> QueueDomainService:
        if self._queue_domain_service is None:
            from ..domain.music.queue_service import QueueDomainService

            self._queue_domain_service = QueueDomainService(
                max_queue_size=self.settings.engine.max_queue_size
            )
        return self._queue_domain_service

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    # === Engines ===

    @property
    def engine_registry(self) -> EngineRegistry:
        if self._engine_registry is None:
            from ..application.services.engine_registry import EngineRegistry

            self._engine_registry = EngineRegistry(
                self.connector_factory,
                queue_rules=self.queue_domain_service,
                event_bus=self.event_bus,
                connect_timeout=self.settings.engine.connect_timeout_seconds,
            )
        return self._engine_registry

    # === Command Handlers ===

    @property
    def play_track_handler(self) -> PlayTrackHandler:
        if self._play_track_handler is None:
            from ..application.commands.play_track import PlayTrackHandler

            self._play_track_handler = PlayTrackHandler(
                registry=self.engine_registry,
                audio_resolver=self.audio_resolver,
            )
        return self._play_track_handler

    @property
    def skip_track_handler(self) -> SkipTrackHandler:
        if self._skip_track_handler is None:
            from ..application.commands.skip_track import SkipTrackHandler

            self._skip_track_handler = SkipTrackHandler(registry=self.engine_registry)
        return self._skip_track_handler

    @property
    def stop_playback_handler(self) -> StopPlaybackHandler:
        if self._stop_playback_handler is None:
            from ..application.commands.stop_playback import StopPlaybackHandler

            self._stop_playback_handler = StopPlaybackHandler(registry=self.engine_registry)
        return self._stop_playback_handler

    @property
    def playback_control_handler(self) -> PlaybackControlHandler:
        if self._playback_control_handler is None:
            from ..application.commands.playback_controls import PlaybackControlHandler

            self._playback_control_handler = PlaybackControlHandler(registry=self.engine_registry)
        return self._playback_control_handler

    @property
    def queue_command_handler(self) -> QueueCommandHandler:
        if self._queue_command_handler is None:
            from ..application.commands.queue_commands import QueueCommandHandler

            self._queue_command_handler = QueueCommandHandler(registry=self.engine_registry)
        return self._queue_command_handler

    # === Query Handlers ===

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(registry=self.engine_registry)
        return self._get_queue_handler

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Dispose every guild engine and drop event subscribers."""
        if self._engine_registry is not None:
            await self._engine_registry.dispose_all()

        if self._event_bus is not None:
            self._event_bus.clear()


def create_container(
    settings: Settings,
    *,
    connector_factory: VoiceConnectorFactory | None = None,
    audio_resolver: AudioResolver | None = None,
) -> Container:
    """Create a new dependency injection container."""
    return Container(
        settings, _audio_resolver=audio_resolver, _connector_factory=connector_factory
    )
