"""Audius - decentralized catalog with rotating discovery hosts"""

import time
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from .base import SourceAdapter
from ...config.config import config
from ...config.service_constants import ServiceConstants, ErrorMessages
from ...config.time_constants import TimeIntervals
from ...domain.entities.track import Track
from ...domain.valueobjects.source_type import SourceType
from ...utils.exceptions import NoAudioAvailableError, ProviderUnavailableError
from ...pkg.logger import logger


class AudiusAdapter(SourceAdapter):
    source = SourceType.AUDIUS

    def __init__(
        self,
        session: aiohttp.ClientSession,
        app_name: Optional[str] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(session, timeout)
        self._app_name = app_name or config.AUDIUS_APP_NAME
        self._clock = clock
        self._host: Optional[str] = None
        self._host_fetched_at = 0.0

    async def discover_host(self) -> str:
        """Ask the discovery endpoint for an active API host (cached briefly)"""
        if self._host and (self._clock() - self._host_fetched_at) < TimeIntervals.DISCOVERY_HOST_TTL:
            return self._host

        try:
            data = await self._get_json(ServiceConstants.AUDIUS_DISCOVERY_URL)
            hosts = data.get("data") if isinstance(data, dict) else None
            host = hosts[0] if hosts else None
        except ProviderUnavailableError as e:
            logger.warning(f"⚠️ Audius discovery failed, using fallback host: {e}")
            host = None

        if not host:
            # Not cached, so the next call tries discovery again
            return ServiceConstants.AUDIUS_FALLBACK_HOST

        self._host = str(host).rstrip("/")
        self._host_fetched_at = self._clock()
        return self._host

    async def _search(self, query: str, limit: int) -> List[Track]:
        host = await self.discover_host()
        data = await self._get_json(
            f"{host}/v1/tracks/search",
            params={"query": query, "limit": str(limit), "app_name": self._app_name},
        )
        items = data.get("data") if isinstance(data, dict) else None
        if not items:
            return []
        return [self._to_track(item) for item in items if isinstance(item, dict) and item.get("id")]

    def _to_track(self, raw: Dict[str, Any]) -> Track:
        user = raw.get("user") or {}
        artwork = raw.get("artwork") or {}
        return Track.create(
            source=self.source,
            source_track_id=raw["id"],
            title=raw.get("title"),
            artists=[user.get("name")],
            duration_sec=raw.get("duration"),
            artwork_url=artwork.get("480x480") or artwork.get("150x150"),
            license="Creative Commons",
        )

    async def get_stream_url(self, source_track_id: str) -> str:
        host = await self.discover_host()
        data = await self._get_json(
            f"{host}/v1/tracks/{source_track_id}",
            params={"app_name": self._app_name},
        )
        if not isinstance(data, dict) or not data.get("data"):
            raise NoAudioAvailableError(
                ErrorMessages.no_audio_available(f"audius:{source_track_id}"),
                source=self.name,
                source_track_id=source_track_id,
            )
        return f"{host}/v1/tracks/{source_track_id}/stream?app_name={self._app_name}"
