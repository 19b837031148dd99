"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from sayu_player.application.interfaces.audio_resolver import AudioResolver
from sayu_player.application.interfaces.voice_connector import (
    TrackEndCallback,
    VoiceConnector,
    VoiceConnectorFactory,
)

__all__ = [
    "AudioResolver",
    "VoiceConnector",
    "VoiceConnectorFactory",
    "TrackEndCallback",
]
