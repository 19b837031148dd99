"""DTOs returned by the playback engine."""

from __future__ import annotations

from pydantic import BaseModel

from ...domain.music.entities import Track
from ...domain.shared.types import NonNegativeInt


class EnqueueOutcome(BaseModel):
    track: Track
    index: NonNegativeInt
    queue_length: NonNegativeInt
    started: bool = False


class SkipOutcome(BaseModel):
    skipped: Track | None = None
    now_playing: Track | None = None

    @property
    def was_stale(self) -> bool:
        """The track the caller meant to skip had already ended."""
        return self.skipped is None


class RemoveOutcome(BaseModel):
    track: Track
    index: NonNegativeInt
    was_current: bool = False
    now_playing: Track | None = None
