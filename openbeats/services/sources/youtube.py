"""YouTube Music search through the YouTube Data API v3"""

import re
from typing import Any, Dict, List, Optional

import aiohttp

from .base import SourceAdapter
from ...config.config import config
from ...config.service_constants import ServiceConstants, ErrorMessages
from ...domain.entities.track import Track
from ...domain.valueobjects.source_type import SourceType
from ...utils.exceptions import NoAudioAvailableError

_ISO_DURATION_RE = re.compile(r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def parse_iso_duration(duration: Optional[str]) -> int:
    """PT1H2M30S -> 3750; anything unparseable -> 0"""
    if not duration:
        return 0
    match = _ISO_DURATION_RE.fullmatch(duration.strip())
    if not match:
        return 0
    days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


class YouTubeMusicAdapter(SourceAdapter):
    """
    Search only: the Data API has no audio endpoint, so streams for this
    source come from the mirror pool instead of get_stream_url.
    """

    source = SourceType.YTMUSIC

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(session, timeout)
        self._api_key = api_key if api_key is not None else config.YOUTUBE_API_KEY

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _search(self, query: str, limit: int) -> List[Track]:
        search = await self._get_json(
            ServiceConstants.YOUTUBE_SEARCH_URL,
            params={
                "part": "snippet",
                "q": f"{query} music",
                "type": "video",
                "videoCategoryId": ServiceConstants.YOUTUBE_MUSIC_CATEGORY,
                "maxResults": str(limit),
                "key": self._api_key,
            },
        )
        items = search.get("items") if isinstance(search, dict) else None
        video_ids = [
            item["id"]["videoId"]
            for item in items or []
            if isinstance(item, dict) and isinstance(item.get("id"), dict) and item["id"].get("videoId")
        ]
        if not video_ids:
            return []

        # Search results carry no durations; a second call fetches them
        details = await self._get_json(
            ServiceConstants.YOUTUBE_VIDEOS_URL,
            params={
                "part": "contentDetails,snippet",
                "id": ",".join(video_ids),
                "key": self._api_key,
            },
        )
        videos = details.get("items") if isinstance(details, dict) else None
        return [self._to_track(video) for video in videos or [] if isinstance(video, dict) and video.get("id")]

    def _to_track(self, raw: Dict[str, Any]) -> Track:
        snippet = raw.get("snippet") or {}
        thumbnails = snippet.get("thumbnails") or {}
        artwork = (thumbnails.get("high") or {}).get("url") or (thumbnails.get("default") or {}).get("url")
        return Track.create(
            source=self.source,
            source_track_id=raw["id"],
            title=snippet.get("title"),
            artists=[snippet.get("channelTitle")],
            duration_sec=parse_iso_duration((raw.get("contentDetails") or {}).get("duration")),
            artwork_url=artwork,
            license="YouTube Standard License",
        )

    async def get_stream_url(self, source_track_id: str) -> str:
        raise NoAudioAvailableError(
            ErrorMessages.no_audio_available(f"ytmusic:{source_track_id}"),
            source=self.name,
            source_track_id=source_track_id,
            details="video platform streams are resolved through mirrors",
        )
