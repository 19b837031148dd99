"""Port interface for a guild's voice transport."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

from sayu_player.domain.shared.types import ChannelIdField

if TYPE_CHECKING:
    from ...domain.music.entities import Track

TrackEndCallback = Callable[[Exception | None], None]
"""Called once when audio for a ``play`` stops: None on completion, the error otherwise."""


class VoiceConnector(ABC):
    """Voice capability owned by exactly one guild engine.

    ``play`` is fire-and-forget; the outcome arrives later through the
    ``on_end`` callback, invoked on the event loop thread. Stopping output
    also fires ``on_end`` for the track that was playing.
    """

    @abstractmethod
    async def connect(self, channel_id: ChannelIdField) -> None:
        """Join (or move to) a voice channel.

        Raises:
            ConnectionTimeoutError: the join did not complete in time.
            AlreadyConnectedElsewhereError: the voice client is held elsewhere.
            PermissionDeniedError: the bot may not join the channel.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the voice channel; a no-op when not connected."""
        ...

    @abstractmethod
    async def play(self, track: "Track", *, on_end: TrackEndCallback) -> None:
        """Start streaming a track, replacing anything currently playing."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def pause(self) -> None:
        ...

    @abstractmethod
    async def resume(self) -> None:
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @property
    @abstractmethod
    def channel_id(self) -> ChannelIdField | None:
        """Voice channel currently joined, or None if not connected."""
        ...


VoiceConnectorFactory = Callable[[int], VoiceConnector]
"""Builds the connector for a guild id."""
