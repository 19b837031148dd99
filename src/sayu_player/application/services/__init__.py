"""
Application Services

The per-guild playback engine and the registry that owns the engines.
"""

from sayu_player.application.services.engine_models import (
    EnqueueOutcome,
    RemoveOutcome,
    SkipOutcome,
)
from sayu_player.application.services.engine_registry import EngineRegistry
from sayu_player.application.services.playback_engine import PlaybackEngine

__all__ = [
    "PlaybackEngine",
    "EngineRegistry",
    "EnqueueOutcome",
    "SkipOutcome",
    "RemoveOutcome",
]
