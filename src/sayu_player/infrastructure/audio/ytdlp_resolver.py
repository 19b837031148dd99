"""AudioResolver implementation using yt-dlp for URL resolution and search."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from sayu_player.application.interfaces.audio_resolver import AudioResolver
from sayu_player.config.settings import AudioSettings
from sayu_player.domain.music.entities import Track, UserRef
from sayu_player.domain.shared.exceptions import ResolutionError, TrackNotFoundError
from sayu_player.domain.shared.messages import LogTemplates
from sayu_player.infrastructure.audio.models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    AudioFormatInfo,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

_info_cache: dict[str, CacheEntry] = {}

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]


class YtDlpResolver(AudioResolver):
    """Turns a URL or free-text search into a Track with a direct stream URL.

    yt-dlp is blocking, so every extraction runs in a worker thread.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format or "bestaudio/best")

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def is_url(self, query: str) -> bool:
        return any(pattern.match(query) for pattern in URL_PATTERNS)

    def _info_to_track(self, info: YtDlpTrackInfo, requester: UserRef) -> Track | None:
        source_url = info.webpage_url or (info.url if info.url and self.is_url(info.url) else None)
        if not source_url:
            logger.warning(LogTemplates.YTDLP_NO_URL_IN_INFO_DICT)
            return None

        stream_url = self._extract_stream_url(info)
        if not stream_url:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
            return None

        return Track(
            title=info.title,
            source_url=source_url,
            requested_by=requester,
            stream_url=stream_url,
            duration_seconds=info.duration,
        )

    def _extract_stream_url(self, info: YtDlpTrackInfo) -> str | None:
        if info.url:
            return info.url
        return self._extract_stream_from_formats(info.formats)

    @staticmethod
    def _extract_stream_from_formats(formats: list[AudioFormatInfo]) -> str | None:
        audio_formats = [f for f in formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1].url
        return None

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpTrackInfo:
        return YtDlpTrackInfo.model_validate(data)

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        now = time.time()
        cached = _info_cache.get(url)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            _info_cache.pop(url, None)

        with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
            data = ydl.extract_info(url, download=False)

        result = self._parse_info(dict(data)) if isinstance(data, dict) else None
        _info_cache[url] = CacheEntry(info=result, cached_at=now)

        if len(_info_cache) > CACHE_MAX_SIZE:
            expired = [k for k, entry in _info_cache.items() if now - entry.cached_at >= CACHE_TTL]
            for k in expired:
                _info_cache.pop(k, None)
            if expired:
                logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

        return result

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpTrackInfo]:
        search_query = f"ytsearch{limit}:{query}"
        with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
            data = ydl.extract_info(search_query, download=False)

        if not isinstance(data, dict):
            return []
        entries = data.get("entries", [])
        if not isinstance(entries, list):
            return []
        return [self._parse_info(dict(e)) for e in entries if e]

    async def resolve(self, query: str, requester: UserRef) -> Track:
        try:
            if self.is_url(query):
                info = await asyncio.to_thread(self._extract_info_sync, query)
            else:
                results = await asyncio.to_thread(self._search_sync, query, 1)
                info = results[0] if results else None
        except Exception as e:
            template = (
                LogTemplates.YTDLP_FAILED_EXTRACT_INFO
                if self.is_url(query)
                else LogTemplates.YTDLP_FAILED_SEARCH
            )
            logger.exception(template, query)
            raise ResolutionError(query) from e

        track = self._info_to_track(info, requester) if info is not None else None
        if track is None:
            raise TrackNotFoundError(query)
        return track
