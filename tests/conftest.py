import asyncio

import pytest
import pytest_asyncio

from sayu_player.application.interfaces.voice_connector import TrackEndCallback, VoiceConnector
from sayu_player.domain.music.entities import Track, UserRef

GUILD_ID = 987654321
OTHER_GUILD_ID = 123456789
CHANNEL_ID = 555000111
OTHER_CHANNEL_ID = 555000222


# ============================================================================
# Voice transport double
# ============================================================================


class FakeVoiceConnector(VoiceConnector):
    """In-memory voice transport recording every call.

    Like discord.py, stopping output fires the ``on_end`` callback of the
    track that was playing. Tests end a track on their own with
    ``finish_current``.
    """

    def __init__(self, guild_id: int = GUILD_ID) -> None:
        self.guild_id = guild_id
        self.calls: list[tuple] = []
        self.played: list[Track] = []
        self.callbacks: list[TrackEndCallback] = []
        self.connect_delay: float = 0.0
        self.connect_error: Exception | None = None
        self.play_errors: dict[str, Exception] = {}
        self.fire_end_on_stop = True
        self._channel_id: int | None = None
        self._current_on_end: TrackEndCallback | None = None

    async def connect(self, channel_id: int) -> None:
        self.calls.append(("connect", channel_id))
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        self._channel_id = channel_id

    async def disconnect(self) -> None:
        self.calls.append(("disconnect",))
        self._channel_id = None

    async def play(self, track: Track, *, on_end: TrackEndCallback) -> None:
        self.calls.append(("play", track.title))
        if track.title in self.play_errors:
            raise self.play_errors[track.title]
        self.played.append(track)
        self.callbacks.append(on_end)
        self._current_on_end = on_end

    async def stop(self) -> None:
        self.calls.append(("stop",))
        on_end, self._current_on_end = self._current_on_end, None
        if on_end is not None and self.fire_end_on_stop:
            on_end(None)

    async def pause(self) -> None:
        self.calls.append(("pause",))

    async def resume(self) -> None:
        self.calls.append(("resume",))

    @property
    def is_connected(self) -> bool:
        return self._channel_id is not None

    @property
    def channel_id(self) -> int | None:
        return self._channel_id

    def finish_current(self, error: Exception | None = None) -> None:
        """End the current track as the transport would."""
        on_end, self._current_on_end = self._current_on_end, None
        assert on_end is not None, "nothing is playing"
        on_end(error)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    @property
    def played_titles(self) -> list[str]:
        return [track.title for track in self.played]


class ConnectorFactory:
    """Connector factory that remembers every connector it built.

    Attributes in ``defaults`` are applied to each new connector, so tests can
    configure connectors the engine has not created yet.
    """

    def __init__(self) -> None:
        self.built: dict[int, list[FakeVoiceConnector]] = {}
        self.defaults: dict[str, object] = {}

    def __call__(self, guild_id: int) -> FakeVoiceConnector:
        connector = FakeVoiceConnector(guild_id)
        for name, value in self.defaults.items():
            setattr(connector, name, value)
        self.built.setdefault(guild_id, []).append(connector)
        return connector

    def latest(self, guild_id: int = GUILD_ID) -> FakeVoiceConnector:
        return self.built[guild_id][-1]


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


@pytest.fixture
def requester():
    return UserRef(id=111222333, display_name="TestUser")


@pytest.fixture
def make_track(requester):
    """Factory for tracks with distinct titles and URLs."""

    def _make(title: str, duration: int | None = 180) -> Track:
        slug = title.lower().replace(" ", "-")
        return Track(
            title=title,
            source_url=f"https://example.com/watch/{slug}",
            requested_by=requester,
            stream_url=f"https://stream.example.com/{slug}.m4a",
            duration_seconds=duration,
        )

    return _make


@pytest.fixture
def sample_track(make_track):
    return make_track("Test Track")


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def connector_factory():
    return ConnectorFactory()


@pytest_asyncio.fixture
async def engine(connector_factory):
    from sayu_player.application.services.playback_engine import PlaybackEngine

    engine = PlaybackEngine(GUILD_ID, connector_factory=connector_factory, connect_timeout=0.5)
    yield engine
    await engine.close()


@pytest_asyncio.fixture
async def registry(connector_factory):
    from sayu_player.application.services.engine_registry import EngineRegistry

    registry = EngineRegistry(connector_factory, connect_timeout=0.5)
    yield registry
    await registry.dispose_all()


@pytest.fixture
def settle():
    """Wait until every message posted to an engine so far has been handled."""

    async def _settle(engine) -> None:
        await engine.list_queue()

    return _settle
