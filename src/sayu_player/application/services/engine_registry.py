"""Registry mapping guild ids to their playback engines."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.music.queue_service import QueueDomainService
from ...domain.shared.messages import LogTemplates
from .playback_engine import PlaybackEngine

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ...domain.shared.events import EventBus
    from ..interfaces.voice_connector import VoiceConnectorFactory

logger = logging.getLogger(__name__)


class EngineRegistry:
    """Creates engines lazily, at most one per guild."""

    def __init__(
        self,
        connector_factory: VoiceConnectorFactory,
        *,
        queue_rules: QueueDomainService | None = None,
        event_bus: EventBus | None = None,
        connect_timeout: float = PlaybackEngine.DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self._connector_factory = connector_factory
        self._queue_rules = queue_rules or QueueDomainService()
        self._event_bus = event_bus
        self._connect_timeout = connect_timeout
        self._engines: dict[int, PlaybackEngine] = {}

    def get(self, guild_id: int) -> PlaybackEngine:
        """Return the guild's engine, creating an idle one on first use."""
        # No await between lookup and insert, so concurrent callers share one engine.
        engine = self._engines.get(guild_id)
        if engine is None:
            engine = PlaybackEngine(
                guild_id,
                connector_factory=self._connector_factory,
                queue_rules=self._queue_rules,
                event_bus=self._event_bus,
                connect_timeout=self._connect_timeout,
            )
            self._engines[guild_id] = engine
            logger.info(LogTemplates.ENGINE_CREATED, guild_id)
        return engine

    def peek(self, guild_id: int) -> PlaybackEngine | None:
        return self._engines.get(guild_id)

    async def dispose(self, guild_id: int) -> bool:
        """Reset and drop the guild's engine. Returns False if there was none.

        The mapping is removed first so a later ``get`` builds a fresh engine.
        """
        engine = self._engines.pop(guild_id, None)
        if engine is None:
            return False

        try:
            await engine.reset()
        except Exception:
            logger.exception(LogTemplates.ENGINE_DISPOSE_ERROR, guild_id)
        finally:
            await engine.close()

        logger.info(LogTemplates.ENGINE_DISPOSED, guild_id)
        return True

    async def dispose_all(self) -> None:
        for guild_id in list(self._engines):
            await self.dispose(guild_id)

    @property
    def guild_ids(self) -> list[int]:
        return list(self._engines)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    def __iter__(self) -> Iterator[PlaybackEngine]:
        return iter(list(self._engines.values()))
