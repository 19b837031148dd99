"""Core domain entities for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from sayu_player.domain.music.value_objects import LoopMode
from sayu_player.domain.shared.exceptions import OutOfRangeError
from sayu_player.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeInt,
    QueueIndex,
    TrackTitleStr,
)


class UserRef(BaseModel):
    """The member who asked for a track."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: DiscordSnowflake
    display_name: NonEmptyStr


class Track(BaseModel):
    """Immutable value object representing a playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: TrackTitleStr
    source_url: HttpUrlStr
    requested_by: UserRef
    # Handle the voice transport opens (direct media URL for FFmpeg)
    stream_url: NonEmptyStr | None = None
    duration_seconds: DurationSeconds | None = None


class QueueEntry(BaseModel):
    """One line of a queue listing, numbered the way users see it."""

    model_config = ConfigDict(frozen=True)

    position: NonNegativeInt
    title: str
    is_current: bool = False


@dataclass(frozen=True, slots=True)
class Removal:
    track: Track
    index: int
    was_current: bool


class Queue(BaseModel):
    """Ordered tracks of one guild with a movable cursor.

    Invariants:
    - ``0 <= cursor < len(items)`` whenever ``cursor`` is not None
    - ``cursor`` is None when the queue is empty or nothing has been started
    - items are only ever appended; nothing is reordered implicitly
    - ``resume_index`` is where playback begins the next time the engine starts
    """

    items: list[Track] = Field(default_factory=list)
    cursor: QueueIndex | None = None
    resume_index: QueueIndex = 0

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def pending_index(self) -> int | None:
        """Index playback would start from, or None if nothing is left unplayed."""
        if self.resume_index < len(self.items):
            return self.resume_index
        return None

    def check_index(self, index: int) -> None:
        if not 0 <= index < len(self.items):
            raise OutOfRangeError(index, len(self.items))

    def append(self, track: Track) -> int:
        """Add a track to the end of the queue and return its index."""
        self.items.append(track)
        return len(self.items) - 1

    def remove_at(self, index: int) -> Removal:
        self.check_index(index)

        track = self.items.pop(index)
        was_current = False
        if self.cursor is not None:
            if index < self.cursor:
                self.cursor -= 1
            elif index == self.cursor:
                self.cursor = None
                was_current = True

        if index < self.resume_index:
            self.resume_index -= 1
        self.resume_index = min(self.resume_index, len(self.items))

        return Removal(track=track, index=index, was_current=was_current)

    def clear(self) -> int:
        """Drop every item and return how many there were."""
        count = len(self.items)
        self.items.clear()
        self.cursor = None
        self.resume_index = 0
        return count

    def jump_to(self, index: int) -> Track:
        self.check_index(index)
        self.cursor = index
        return self.items[index]

    def peek_current(self) -> Track | None:
        if self.cursor is None:
            return None
        return self.items[self.cursor]

    def next_index(self, loop_mode: LoopMode, *, forced: bool = False) -> int | None:
        """Compute the cursor that follows the current one.

        ``forced`` advancement (skip, failures) never replays under track-loop.
        """
        if self.cursor is None:
            return None

        if loop_mode is LoopMode.TRACK and not forced:
            return self.cursor

        candidate = self.cursor + 1
        if candidate < len(self.items):
            return candidate
        if loop_mode is LoopMode.QUEUE and self.items:
            return 0
        return None

    def successor_of_removed(self, index: int, loop_mode: LoopMode) -> int | None:
        """Next index after the current item at ``index`` was removed.

        The following track has slid into ``index``.
        """
        if index < len(self.items):
            return index
        if loop_mode is LoopMode.QUEUE and self.items:
            return 0
        return None

    def mark_exhausted(self) -> None:
        """Playback ran off the end; later additions start after the last item."""
        self.cursor = None
        self.resume_index = len(self.items)

    def park(self, index: int) -> None:
        """Forget the cursor but remember ``index`` as the place to start from."""
        self.cursor = None
        self.resume_index = min(index, len(self.items))

    def entries(self) -> list[QueueEntry]:
        return [
            QueueEntry(position=i + 1, title=track.title, is_current=i == self.cursor)
            for i, track in enumerate(self.items)
        ]
