"""Jamendo - licensed Creative Commons catalog"""

from typing import Any, Dict, List, Optional

import aiohttp

from .base import SourceAdapter
from ...config.config import config
from ...config.service_constants import ServiceConstants, ErrorMessages
from ...domain.entities.track import Track
from ...domain.valueobjects.source_type import SourceType
from ...utils.exceptions import NoAudioAvailableError


class JamendoAdapter(SourceAdapter):
    source = SourceType.JAMENDO

    def __init__(
        self,
        session: aiohttp.ClientSession,
        client_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(session, timeout)
        self._client_id = client_id if client_id is not None else config.JAMENDO_CLIENT_ID

    def is_configured(self) -> bool:
        return bool(self._client_id)

    async def _search(self, query: str, limit: int) -> List[Track]:
        data = await self._get_json(
            ServiceConstants.JAMENDO_TRACKS_URL,
            params={
                "client_id": self._client_id,
                "format": "json",
                "limit": str(limit),
                "search": query,
                "include": "musicinfo",
                "audioformat": "mp32",
            },
        )
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return []
        return [self._to_track(item) for item in results if isinstance(item, dict) and item.get("id")]

    def _to_track(self, raw: Dict[str, Any]) -> Track:
        return Track.create(
            source=self.source,
            source_track_id=raw["id"],
            title=raw.get("name"),
            artists=[raw.get("artist_name")],
            album_title=raw.get("album_name"),
            duration_sec=raw.get("duration"),  # already seconds
            artwork_url=raw.get("album_image") or raw.get("image"),
            license=raw.get("license_ccurl"),
        )

    async def get_stream_url(self, source_track_id: str) -> str:
        if not self.is_configured():
            raise self._not_configured(source_track_id)

        data = await self._get_json(
            ServiceConstants.JAMENDO_TRACKS_URL,
            params={
                "client_id": self._client_id,
                "format": "json",
                "id": source_track_id,
                "audioformat": "mp32",
            },
        )
        results = data.get("results") if isinstance(data, dict) else None
        audio = results[0].get("audio") if results and isinstance(results[0], dict) else None
        if not audio:
            raise NoAudioAvailableError(
                ErrorMessages.no_audio_available(f"jamendo:{source_track_id}"),
                source=self.name,
                source_track_id=source_track_id,
            )
        return audio
