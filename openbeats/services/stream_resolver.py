"""
Stream resolution: (source, source_track_id) -> something the output can play
"""

from typing import Dict, Iterable, Optional, Union

from .mirrors import MirrorPool
from .sources.base import SourceAdapter
from ..config.config import config
from ..config.service_constants import ServiceConstants, ErrorMessages
from ..domain.entities.track import Track
from ..domain.valueobjects.source_type import SourceType
from ..domain.valueobjects.stream_resolution import ResolutionKind, StreamResolution
from ..utils.cache import StreamUrlCache
from ..utils.exceptions import (
    AllBackendsUnreachableError,
    NotConfiguredError,
    ProviderUnavailableError,
    ResolutionFailedError,
)
from ..pkg.logger import logger


class StreamResolver:
    """
    Dispatches per source:

    - catalog sources: one ``get_stream_url`` call on the adapter, URL unmodified
    - video source: the mirror pool; when every backend is exhausted and the
      degraded policy is on, a DEGRADED link to the original video page

    Only PLAYABLE results are cached. A second request for a key that is
    already resolving awaits the first.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        mirror_pool: MirrorPool,
        cache: Optional[StreamUrlCache] = None,
        degraded_fallback: Optional[bool] = None,
    ):
        self._adapters: Dict[SourceType, SourceAdapter] = {a.source: a for a in adapters}
        self._mirrors = mirror_pool
        self.cache = cache if cache is not None else StreamUrlCache(ttl=config.STREAM_CACHE_TTL)
        self.degraded_fallback = (
            degraded_fallback if degraded_fallback is not None else config.YTMUSIC_DEGRADED_FALLBACK
        )

    async def resolve(self, source: Union[SourceType, str], source_track_id: str) -> StreamResolution:
        """Raises a ResolutionFailedError subclass when nothing playable was found"""
        if not isinstance(source, SourceType):
            source = SourceType.parse(source)

        resolution, was_cached = await self.cache.get_or_resolve(
            (source, source_track_id),
            lambda: self._resolve_uncached(source, source_track_id),
            should_cache=lambda r: r.is_playable,
        )
        if was_cached:
            logger.debug(f"💾 Stream cache hit: {source.value}:{source_track_id}")
            return resolution.cached()
        return resolution

    async def resolve_track(self, track: Track) -> StreamResolution:
        return await self.resolve(track.source, track.source_track_id)

    async def _resolve_uncached(self, source: SourceType, source_track_id: str) -> StreamResolution:
        if source.uses_mirrors:
            return await self._resolve_video(source, source_track_id)

        adapter = self._adapters.get(source)
        if adapter is None:
            raise NotConfiguredError(
                ErrorMessages.source_not_configured(source.value),
                source=source.value,
                source_track_id=source_track_id,
            )

        try:
            url = await adapter.get_stream_url(source_track_id)
        except ProviderUnavailableError as e:
            raise AllBackendsUnreachableError(
                ErrorMessages.backends_unreachable(f"{source.value}:{source_track_id}"),
                source=source.value,
                source_track_id=source_track_id,
                details=str(e),
            ) from e

        logger.info(f"🎵 Resolved {source.value}:{source_track_id}")
        return StreamResolution(
            kind=ResolutionKind.PLAYABLE,
            url=url,
            source=source,
            source_track_id=source_track_id,
            backend=adapter.name,
        )

    async def _resolve_video(self, source: SourceType, video_id: str) -> StreamResolution:
        try:
            backend, audio = await self._mirrors.fetch_best_audio(video_id)
        except ResolutionFailedError as e:
            if not self.degraded_fallback:
                raise
            url = ServiceConstants.YOUTUBE_WATCH_URL.format(video_id=video_id)
            logger.warning(f"⚠️ Falling back to external link for {video_id}: {e.message}")
            return StreamResolution(
                kind=ResolutionKind.DEGRADED,
                url=url,
                source=source,
                source_track_id=video_id,
            )

        return StreamResolution(
            kind=ResolutionKind.PLAYABLE,
            url=audio.url,
            source=source,
            source_track_id=video_id,
            backend=backend,
        )
