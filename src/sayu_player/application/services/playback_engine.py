"""Per-guild playback engine.

Each engine owns one guild's queue, cursor, loop mode and voice connector.
User commands and transport signals are posted to a single mailbox and run
one at a time by the engine's worker task, so no two operations of the same
guild ever interleave across an ``await``.

Every ``play`` is tagged with a playback id. End signals carry the id of the
play they belong to, and a signal whose id is no longer current is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from ...domain.music.entities import Queue, QueueEntry, Track
from ...domain.music.playback_service import Operation, PlaybackDomainService
from ...domain.music.queue_service import QueueDomainService
from ...domain.music.value_objects import LoopMode, PlaybackState, StopReason
from ...domain.shared.events import (
    EventBus,
    PlaybackStopped,
    QueueExhausted,
    TrackFailed,
    TrackStartedPlaying,
)
from ...domain.shared.exceptions import (
    ConnectionTimeoutError,
    DomainError,
    EngineClosedError,
    NotConnectedError,
)
from ...domain.shared.messages import LogTemplates
from .engine_models import EnqueueOutcome, RemoveOutcome, SkipOutcome

if TYPE_CHECKING:
    from ..interfaces.voice_connector import (
        TrackEndCallback,
        VoiceConnector,
        VoiceConnectorFactory,
    )

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class _Message:
    name: str
    handler: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]
    is_signal: bool = False


class PlaybackEngine:
    """Serialized playback state machine for one guild."""

    DEFAULT_CONNECT_TIMEOUT: float = 10.0

    def __init__(
        self,
        guild_id: int,
        *,
        connector_factory: VoiceConnectorFactory,
        queue_rules: QueueDomainService | None = None,
        event_bus: EventBus | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self.guild_id = guild_id
        self._connector_factory = connector_factory
        self._queue_rules = queue_rules or QueueDomainService()
        self._rules = PlaybackDomainService()
        self._event_bus = event_bus
        self._connect_timeout = connect_timeout

        self.queue = Queue()
        self.loop_mode = LoopMode.NONE
        self.state = PlaybackState.IDLE
        self.connection: VoiceConnector | None = None
        self.playback_id = 0
        # Id of the last play whose end signal the engine acted on
        self._last_ended_playback_id: int | None = None

        self._mailbox: asyncio.Queue[_Message | None] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def current_track(self) -> Track | None:
        return self.queue.peek_current()

    # === Mailbox ===

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(
                self._run(), name=f"playback-engine-{self.guild_id}"
            )

    def _post(
        self, name: str, handler: Callable[[], Awaitable[T]], *, is_signal: bool = False
    ) -> asyncio.Future[T]:
        if self._closed:
            raise EngineClosedError(self.guild_id)

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._ensure_worker()
        self._mailbox.put_nowait(_Message(name, handler, future, is_signal))
        return future

    async def _submit(self, name: str, handler: Callable[[], Awaitable[T]]) -> T:
        return await self._post(name, handler)

    async def _run(self) -> None:
        while True:
            message = await self._mailbox.get()
            try:
                if message is None:
                    logger.debug(LogTemplates.ENGINE_WORKER_STOPPED, self.guild_id)
                    return
                await self._dispatch(message)
            finally:
                self._mailbox.task_done()

    async def _dispatch(self, message: _Message) -> None:
        # A caller that gave up before its turn came does not get its command run.
        if message.future.cancelled():
            return

        result: Any = None
        error: Exception | None = None
        try:
            result = await message.handler()
        except DomainError as exc:
            if message.is_signal:
                logger.warning(LogTemplates.ENGINE_COMMAND_FAILED, message.name, self.guild_id)
            else:
                error = exc
        except Exception as exc:
            logger.exception(LogTemplates.ENGINE_COMMAND_FAILED, message.name, self.guild_id)
            if not message.is_signal:
                error = exc

        # Signals have no caller waiting, so their failures end here.
        if message.future.done():
            return
        if error is not None:
            message.future.set_exception(error)
        else:
            message.future.set_result(result)

    async def close(self) -> None:
        """Stop accepting messages and wait for the ones already queued to finish."""
        if self._closed:
            return
        self._closed = True

        if self._worker is None or self._worker.done():
            return
        self._mailbox.put_nowait(None)
        await self._worker

    # === Commands ===

    async def enqueue(self, track: Track, channel_id: int | None = None) -> EnqueueOutcome:
        """Append a track and start playback if the engine is idle.

        ``channel_id`` is the voice channel to join when no connection exists yet.
        """
        return await self._submit("enqueue", lambda: self._enqueue(track, channel_id))

    async def skip(self, *, expected_playback_id: int | None = None) -> SkipOutcome:
        """Stop the current track and move on regardless of track-loop.

        When ``expected_playback_id`` is given and that play has already ended
        on its own (finished or failed in the transport), nothing is skipped.
        Plays replaced by earlier commands do not count as ended.
        """
        return await self._submit("skip", lambda: self._skip(expected_playback_id))

    async def pause(self) -> None:
        await self._submit("pause", self._pause)

    async def resume(self) -> None:
        await self._submit("resume", self._resume)

    async def stop(self) -> int:
        """Stop output, empty the queue and leave voice. Returns the number of tracks dropped."""
        return await self._submit("stop", lambda: self._stop(StopReason.USER_REQUEST))

    async def reset(self) -> None:
        """Return to the freshly created state and release the voice connector."""
        await self._submit("reset", lambda: self._reset(StopReason.RESET))

    async def connection_lost(self) -> None:
        await self._submit("connection_lost", lambda: self._reset(StopReason.CONNECTION_LOST))

    async def remove(self, index: int) -> RemoveOutcome:
        return await self._submit("remove", lambda: self._remove(index))

    async def clear_queue(self) -> int:
        """Stop output and empty the queue; the voice connection stays up."""
        return await self._submit("clear", self._clear_queue)

    async def jump_to(self, index: int, channel_id: int | None = None) -> Track:
        return await self._submit("jump", lambda: self._jump_to(index, channel_id))

    async def join(self, channel_id: int) -> bool:
        """Join or move to a channel; start pending tracks if idle. Returns True if playback started."""
        return await self._submit("join", lambda: self._join(channel_id))

    async def set_loop_mode(self, mode: LoopMode) -> LoopMode:
        return await self._submit("set_loop_mode", lambda: self._set_loop_mode(mode))

    async def list_queue(self) -> list[QueueEntry]:
        return await self._submit("list", self._list_queue)

    # === Transport signals ===

    def notify_track_finished(self, playback_id: int) -> asyncio.Future[None]:
        return self._post(
            "track_finished", lambda: self._on_track_end(playback_id, None), is_signal=True
        )

    def notify_transport_error(self, playback_id: int, error: Exception) -> asyncio.Future[None]:
        return self._post(
            "transport_error", lambda: self._on_track_end(playback_id, error), is_signal=True
        )

    def _end_callback(self, playback_id: int) -> TrackEndCallback:
        def on_end(error: Exception | None) -> None:
            if self._closed:
                return
            if error is None:
                self.notify_track_finished(playback_id)
            else:
                self.notify_transport_error(playback_id, error)

        return on_end

    # === Handlers (run on the worker only) ===

    async def _enqueue(self, track: Track, channel_id: int | None) -> EnqueueOutcome:
        self._rules.admits(Operation.ENQUEUE, self.state)
        self._queue_rules.ensure_capacity(self.queue)

        index = self.queue.append(track)
        logger.info(LogTemplates.QUEUE_ENQUEUED, track.title, index + 1, self.guild_id)

        started = False
        start_index = self.queue.pending_index
        if self.state is PlaybackState.IDLE and start_index is not None:
            await self._connect(channel_id, start_index)
            await self._start_at(start_index)
            started = self.state is PlaybackState.PLAYING

        return EnqueueOutcome(
            track=track, index=index, queue_length=len(self.queue), started=started
        )

    async def _skip(self, expected_playback_id: int | None) -> SkipOutcome:
        ended = self._last_ended_playback_id
        if expected_playback_id is not None and expected_playback_id == ended:
            return SkipOutcome(skipped=None, now_playing=self.queue.peek_current())

        self._rules.admits(Operation.SKIP, self.state)

        skipped = self.queue.peek_current()
        next_index = self.queue.next_index(self.loop_mode, forced=True)
        logger.info(LogTemplates.TRACK_SKIPPED, skipped.title if skipped else None, self.guild_id)

        await self._halt_output()
        await self._advance_to(next_index)
        return SkipOutcome(skipped=skipped, now_playing=self.queue.peek_current())

    async def _pause(self) -> None:
        self._rules.admits(Operation.PAUSE, self.state)
        await self._require_connection().pause()
        self._enter(Operation.PAUSE)
        logger.info(LogTemplates.PLAYBACK_PAUSED, self.guild_id)

    async def _resume(self) -> None:
        self._rules.admits(Operation.RESUME, self.state)
        await self._require_connection().resume()
        self._enter(Operation.RESUME)
        logger.info(LogTemplates.PLAYBACK_RESUMED, self.guild_id)

    async def _stop(self, reason: StopReason) -> int:
        self._rules.admits(Operation.STOP, self.state)

        was_active = self.state.is_active
        await self._halt_output()
        count = self.queue.clear()
        self._enter(Operation.STOP)
        await self._disconnect()

        logger.info(LogTemplates.PLAYBACK_STOPPED, self.guild_id)
        if was_active or count:
            await self._publish(PlaybackStopped(guild_id=self.guild_id, reason=reason.value))
        return count

    async def _reset(self, reason: StopReason) -> None:
        lost = reason is StopReason.CONNECTION_LOST
        operation = Operation.CONNECTION_LOST if lost else Operation.RESET
        self._rules.admits(operation, self.state)

        if lost:
            logger.warning(LogTemplates.VOICE_CONNECTION_LOST, self.guild_id)

        await self._stop(reason)
        self._enter(operation)
        self.loop_mode = LoopMode.NONE
        self.connection = None
        logger.info(LogTemplates.PLAYBACK_RESET, self.guild_id)

    async def _remove(self, index: int) -> RemoveOutcome:
        self._rules.admits(Operation.REMOVE, self.state)

        removal = self.queue.remove_at(index)
        logger.info(LogTemplates.QUEUE_REMOVED, removal.track.title, self.guild_id)

        if removal.was_current and self.state.is_active:
            next_index = self.queue.successor_of_removed(removal.index, self.loop_mode)
            await self._halt_output()
            await self._advance_to(next_index)

        return RemoveOutcome(
            track=removal.track,
            index=removal.index,
            was_current=removal.was_current,
            now_playing=self.queue.peek_current(),
        )

    async def _clear_queue(self) -> int:
        self._rules.admits(Operation.CLEAR, self.state)

        was_active = self.state.is_active
        await self._halt_output()
        count = self.queue.clear()
        self._enter(Operation.CLEAR)

        logger.info(LogTemplates.QUEUE_CLEARED, count, self.guild_id)
        if was_active:
            await self._publish(
                PlaybackStopped(guild_id=self.guild_id, reason=StopReason.USER_REQUEST.value)
            )
        return count

    async def _jump_to(self, index: int, channel_id: int | None) -> Track:
        self._rules.admits(Operation.JUMP, self.state)
        self.queue.check_index(index)

        await self._halt_output()
        self.state = PlaybackState.IDLE
        await self._connect(channel_id, index)

        logger.info(LogTemplates.QUEUE_JUMPED, index + 1, self.guild_id)
        await self._start_at(index)
        return self.queue.items[index]

    async def _join(self, channel_id: int) -> bool:
        self._rules.admits(Operation.JOIN, self.state)

        start_index = self.queue.pending_index if self.state is PlaybackState.IDLE else None
        await self._connect(channel_id, start_index, move=True)

        if start_index is None:
            return False
        await self._start_at(start_index)
        return self.state is PlaybackState.PLAYING

    async def _set_loop_mode(self, mode: LoopMode) -> LoopMode:
        self._rules.admits(Operation.SET_LOOP_MODE, self.state)
        self.loop_mode = mode
        logger.info(LogTemplates.LOOP_MODE_CHANGED, mode.value, self.guild_id)
        return mode

    async def _list_queue(self) -> list[QueueEntry]:
        self._rules.admits(Operation.LIST, self.state)
        return self.queue.entries()

    async def _on_track_end(self, playback_id: int, error: Exception | None) -> None:
        if playback_id != self.playback_id:
            logger.debug(
                LogTemplates.PLAYBACK_STALE_SIGNAL, playback_id, self.guild_id, self.playback_id
            )
            return

        operation = Operation.TRACK_FINISHED if error is None else Operation.TRANSPORT_ERROR
        if not self._rules.admits(operation, self.state):
            return
        self._last_ended_playback_id = playback_id

        track = self.queue.peek_current()
        title = track.title if track else None
        if error is None:
            logger.info(LogTemplates.TRACK_FINISHED, title, self.guild_id)
            next_index = self.queue.next_index(self.loop_mode)
        else:
            logger.warning(LogTemplates.PLAYBACK_TRANSPORT_ERROR, title, self.guild_id, error)
            await self._publish(
                TrackFailed(
                    guild_id=self.guild_id,
                    track_title=title or "",
                    queue_index=self.queue.cursor or 0,
                    error=str(error),
                )
            )
            # A broken track never replays under track-loop.
            next_index = self.queue.next_index(self.loop_mode, forced=True)

        await self._advance_to(next_index)

    # === Internals ===

    def _enter(self, operation: Operation) -> None:
        target = self._rules.target_of(operation)
        if target is not None:
            self.state = target

    def _require_connection(self) -> VoiceConnector:
        if self.connection is None or not self.connection.is_connected:
            raise NotConnectedError(self.guild_id)
        return self.connection

    async def _connect(
        self, channel_id: int | None, start_index: int | None, *, move: bool = False
    ) -> VoiceConnector:
        """Make sure a voice connection exists before playing.

        On failure the engine stays idle and ``start_index`` is kept as the
        place to resume from.
        """
        try:
            return await self._ensure_connected(channel_id, move=move)
        except DomainError as exc:
            logger.warning(LogTemplates.PLAYBACK_CONNECT_FAILED, self.guild_id, exc.message)
            if not self.state.is_active:
                self.state = PlaybackState.IDLE
                if start_index is not None:
                    self.queue.park(start_index)
            raise

    async def _ensure_connected(self, channel_id: int | None, *, move: bool) -> VoiceConnector:
        if self.connection is None:
            self.connection = self._connector_factory(self.guild_id)
        connector = self.connection

        if connector.is_connected and (
            channel_id is None or not move or connector.channel_id == channel_id
        ):
            return connector
        if channel_id is None:
            raise NotConnectedError(self.guild_id)

        try:
            async with asyncio.timeout(self._connect_timeout):
                await connector.connect(channel_id)
        except TimeoutError as exc:
            logger.warning(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise ConnectionTimeoutError(channel_id, self._connect_timeout) from exc
        return connector

    async def _disconnect(self) -> None:
        if self.connection is not None and self.connection.is_connected:
            await self.connection.disconnect()

    async def _halt_output(self) -> None:
        # The stopped track's end signal becomes stale.
        self.playback_id += 1
        if self.state.is_active and self.connection is not None:
            await self.connection.stop()

    async def _advance_to(self, index: int | None) -> None:
        if index is None:
            await self._finish()
        else:
            await self._start_at(index)

    async def _start_at(self, index: int) -> None:
        """Play the item at ``index``, falling forward past items that fail to start.

        At most one attempt per queue item is made before giving up.
        """
        connector = self.connection
        if connector is None or not connector.is_connected:
            self.playback_id += 1
            self.queue.park(index)
            self.state = PlaybackState.IDLE
            raise NotConnectedError(self.guild_id)

        attempts = 0
        current: int | None = index

        while current is not None and attempts < len(self.queue):
            track = self.queue.jump_to(current)
            self.playback_id += 1
            playback_id = self.playback_id
            attempts += 1

            try:
                await connector.play(track, on_end=self._end_callback(playback_id))
            except Exception as exc:
                logger.warning(LogTemplates.PLAYBACK_START_FAILED, track.title, self.guild_id, exc)
                await self._publish(
                    TrackFailed(
                        guild_id=self.guild_id,
                        track_title=track.title,
                        queue_index=current,
                        error=str(exc),
                    )
                )
                current = self.queue.next_index(self.loop_mode, forced=True)
                continue

            self.state = PlaybackState.PLAYING
            logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self.guild_id)
            await self._publish(
                TrackStartedPlaying(
                    guild_id=self.guild_id,
                    track_title=track.title,
                    queue_index=current,
                    playback_id=playback_id,
                )
            )
            return

        if attempts:
            logger.error(LogTemplates.PLAYBACK_ALL_FAILED, self.guild_id, attempts)
        await self._finish()

    async def _finish(self) -> None:
        """Nothing left to play: go idle and leave voice, keeping the queue."""
        last_track = self.queue.peek_current()
        last = last_track.title if last_track else ""
        self.playback_id += 1
        self.queue.mark_exhausted()
        self.state = PlaybackState.IDLE
        await self._disconnect()

        logger.info(LogTemplates.QUEUE_EXHAUSTED, self.guild_id)
        await self._publish(QueueExhausted(guild_id=self.guild_id, last_track_title=last))

    async def _publish(self, event: Any) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
