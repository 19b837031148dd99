"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (bot, music cog, voice connector)
- Audio (yt-dlp resolver)
"""

from sayu_player.infrastructure.discord.adapters.voice_adapter import DiscordVoiceConnector
from sayu_player.infrastructure.discord.bot import create_bot

__all__ = [
    "create_bot",
    "DiscordVoiceConnector",
]
