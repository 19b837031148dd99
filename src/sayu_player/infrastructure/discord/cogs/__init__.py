"""Discord cogs - command handlers and event listeners."""

from sayu_player.infrastructure.discord.cogs.event_cog import EventCog
from sayu_player.infrastructure.discord.cogs.music_cog import MusicCog

__all__ = [
    "EventCog",
    "MusicCog",
]
