"""
Invidious mirror pool for video-platform audio extraction.

No official streaming endpoint exists for server-side use, so metadata is
fetched from community mirrors. Mirrors are raced concurrently inside a
batch; batches are tried one after another. Mirrors come and go, so the
list is configuration only and nothing here assumes any one of them exists.
"""

import asyncio
from functools import partial
from typing import Any, Dict, Iterable, List, Optional, Tuple

import aiohttp
import yt_dlp

from ..config.config import config
from ..config.service_constants import ServiceConstants, ErrorMessages
from ..domain.valueobjects.audio_format import AudioFormat
from ..domain.valueobjects.source_type import SourceType
from ..utils.exceptions import (
    AllBackendsUnreachableError,
    NoAudioAvailableError,
    NotConfiguredError,
    ProviderUnavailableError,
)
from ..utils.race import RaceExhaustedError, first_success
from ..pkg.logger import get_context_logger

logger = get_context_logger("openbeats.mirrors", source=SourceType.YTMUSIC.value)

YTDLP_BACKEND = "yt-dlp"


def select_best_audio(formats: Iterable[Any]) -> Optional[AudioFormat]:
    """Highest bitrate audio-only stream; on equal bitrate prefer opus"""
    candidates = [f for f in (AudioFormat.from_adaptive_format(raw) for raw in formats or []) if f]
    if not candidates:
        return None
    return max(candidates, key=lambda f: (f.bitrate, f.is_opus))


class MirrorPool:
    """Races metadata requests across mirrors and picks the best audio stream"""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        batches: Optional[List[List[str]]] = None,
        timeout: Optional[float] = None,
        ytdlp_fallback: Optional[bool] = None,
    ):
        self._session = session
        raw_batches = batches if batches is not None else config.mirror_batches
        self.batches = [[m.rstrip("/") for m in batch] for batch in raw_batches if batch]
        self.timeout = timeout if timeout is not None else config.MIRROR_TIMEOUT
        self.ytdlp_fallback = ytdlp_fallback if ytdlp_fallback is not None else config.YTDLP_FALLBACK

    async def fetch_metadata(self, mirror: str, video_id: str) -> Dict[str, Any]:
        """GET {mirror}/api/v1/videos/{id}; failures become ProviderUnavailableError"""
        url = f"{mirror}/api/v1/videos/{video_id}"
        try:
            async with self._session.get(
                url, headers={"User-Agent": ServiceConstants.MIRROR_USER_AGENT}
            ) as resp:
                if resp.status != 200:
                    raise ProviderUnavailableError(f"HTTP {resp.status}", source="ytmusic", details=mirror)
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderUnavailableError("Mirror request failed", source="ytmusic", details=f"{mirror}: {e}") from e
        except ValueError as e:
            raise ProviderUnavailableError("Malformed mirror payload", source="ytmusic", details=mirror) from e

        if not isinstance(data, dict):
            raise ProviderUnavailableError("Malformed mirror payload", source="ytmusic", details=mirror)
        return data

    async def _try_mirror(self, mirror: str, video_id: str) -> AudioFormat:
        data = await self.fetch_metadata(mirror, video_id)
        best = select_best_audio(data.get("adaptiveFormats") or [])
        if best is None:
            raise NoAudioAvailableError(
                "Mirror returned no audio streams", source="ytmusic", source_track_id=video_id, details=mirror
            )
        return best

    async def fetch_best_audio(self, video_id: str) -> Tuple[str, AudioFormat]:
        """
        Return ``(backend, format)`` from the first mirror with usable audio.

        Raises NoAudioAvailableError when every backend answered but none had
        audio, AllBackendsUnreachableError otherwise.
        NotConfiguredError when there is no mirror and yt-dlp is off.
        """
        if not self.batches and not self.ytdlp_fallback:
            raise NotConfiguredError(
                ErrorMessages.source_not_configured(SourceType.YTMUSIC.value),
                source="ytmusic",
                source_track_id=video_id,
                details="YTMUSIC_MIRRORS is empty",
            )

        saw_no_audio = False
        saw_unreachable = False

        for number, batch in enumerate(self.batches, start=1):
            attempts = {mirror: partial(self._try_mirror, mirror, video_id) for mirror in batch}
            try:
                mirror, best = await first_success(attempts, timeout=self.timeout)
            except RaceExhaustedError as e:
                for failed, error in e.errors.items():
                    if isinstance(error, NoAudioAvailableError):
                        saw_no_audio = True
                    else:
                        saw_unreachable = True
                    logger.debug(f"✗ {failed}: {type(error).__name__}", extra={"mirror": failed})
                logger.warning(f"⚠️ Mirror batch {number}/{len(self.batches)} failed for {video_id}")
                continue

            logger.info(
                f"✓ Got stream from {mirror} ({best.codec}, {best.bitrate // 1000}kbps)",
                extra={"mirror": mirror, "track_id": video_id},
            )
            return mirror, best

        if self.ytdlp_fallback:
            try:
                best = await asyncio.wait_for(self._extract_with_ytdlp(video_id), timeout=self.timeout)
                if best is not None:
                    logger.info(f"✓ Got stream from yt-dlp for {video_id}")
                    return YTDLP_BACKEND, best
                saw_no_audio = True
            except (asyncio.TimeoutError, yt_dlp.utils.DownloadError) as e:
                saw_unreachable = True
                logger.warning(f"⚠️ yt-dlp fallback failed for {video_id}: {type(e).__name__}")

        track_name = f"ytmusic:{video_id}"
        if saw_no_audio and not saw_unreachable:
            raise NoAudioAvailableError(
                ErrorMessages.no_audio_available(track_name), source="ytmusic", source_track_id=video_id
            )
        raise AllBackendsUnreachableError(
            ErrorMessages.backends_unreachable(track_name), source="ytmusic", source_track_id=video_id
        )

    async def _extract_with_ytdlp(self, video_id: str) -> Optional[AudioFormat]:
        """Local extraction as a last resort; runs blocking yt-dlp in an executor"""
        opts = {
            "format": "bestaudio/best",
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "socket_timeout": self.timeout,
        }

        def extract():
            with yt_dlp.YoutubeDL(opts) as ydl:
                return ydl.extract_info(ServiceConstants.YOUTUBE_WATCH_URL.format(video_id=video_id), download=False)

        loop = asyncio.get_running_loop()
        info = await loop.run_in_executor(None, extract)
        if not info:
            return None

        audio_only = [
            f for f in info.get("formats") or []
            if f.get("url") and f.get("vcodec") == "none" and f.get("acodec") not in (None, "none")
        ]
        if not audio_only:
            return None

        return max(
            (
                AudioFormat(
                    url=f["url"],
                    bitrate=int((f.get("abr") or 0) * 1000),
                    codec=f.get("acodec") or "",
                    mime_type=f"audio/{f.get('ext') or 'webm'}",
                )
                for f in audio_only
            ),
            key=lambda f: (f.bitrate, f.is_opus),
        )
