"""
Dependency Injection Container for OpenBeats
Wires catalogs, resolution and playback around one shared HTTP session
"""

from dataclasses import dataclass
from typing import List, Optional

import aiohttp

from ..config.config import config
from ..domain.entities.queue import PlayQueue
from ..domain.repositories.history_repository import (
    InMemoryHistoryRepository,
    ListeningHistoryRepository,
)
from ..services.audio.ffplay_output import FFplayAudioOutput
from ..services.audio.output import AudioOutput
from ..services.audio.playback_session import PlaybackSession
from ..services.media_controls import MediaControls
from ..services.mirrors import MirrorPool
from ..services.search_service import MusicSearchService
from ..services.sources.archive import ArchiveAdapter
from ..services.sources.audius import AudiusAdapter
from ..services.sources.base import SourceAdapter
from ..services.sources.jamendo import JamendoAdapter
from ..services.sources.youtube import YouTubeMusicAdapter
from ..services.stream_resolver import StreamResolver
from ..utils.cache import StreamUrlCache
from ..utils.events import EventBus
from ..utils.exceptions import OpenBeatsException
from ..pkg.logger import logger


@dataclass
class ServiceContainer:
    """
    Service container for dependency injection

    Owns the aiohttp session; every adapter and the mirror pool borrow it.
    Tests build one with ``create(http_session=..., output=...)`` to swap
    in fakes.
    """

    http_session: aiohttp.ClientSession
    adapters: List[SourceAdapter]
    search_service: MusicSearchService
    stream_cache: StreamUrlCache
    mirror_pool: MirrorPool
    resolver: StreamResolver
    queue: PlayQueue
    history: ListeningHistoryRepository
    event_bus: EventBus
    playback_session: PlaybackSession
    media_controls: MediaControls

    @classmethod
    def create(
        cls,
        http_session: Optional[aiohttp.ClientSession] = None,
        output: Optional[AudioOutput] = None,
        history: Optional[ListeningHistoryRepository] = None,
    ) -> "ServiceContainer":
        """
        Factory method to create service container with all dependencies

        Must be called from a running event loop (aiohttp sessions bind to it).
        """
        logger.info("🏗️ Creating service container...")

        if http_session is None:
            http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT),
                headers={"User-Agent": f"{config.APP_NAME}/{config.VERSION}"},
            )

        adapters: List[SourceAdapter] = [
            JamendoAdapter(http_session),
            ArchiveAdapter(http_session),
            AudiusAdapter(http_session),
            YouTubeMusicAdapter(http_session),
        ]
        search_service = MusicSearchService(adapters)
        logger.debug("✅ Source adapters created")

        stream_cache = StreamUrlCache(ttl=config.STREAM_CACHE_TTL)
        mirror_pool = MirrorPool(http_session)
        resolver = StreamResolver(adapters, mirror_pool, stream_cache)
        logger.debug("✅ Stream resolver created")

        queue = PlayQueue()
        history = history or InMemoryHistoryRepository()
        event_bus = EventBus()
        playback_session = PlaybackSession(
            resolver,
            queue,
            output or FFplayAudioOutput(),
            history=history,
            event_bus=event_bus,
        )
        media_controls = MediaControls(playback_session)
        logger.debug("✅ Playback session created")

        container = cls(
            http_session=http_session,
            adapters=adapters,
            search_service=search_service,
            stream_cache=stream_cache,
            mirror_pool=mirror_pool,
            resolver=resolver,
            queue=queue,
            history=history,
            event_bus=event_bus,
            playback_session=playback_session,
            media_controls=media_controls,
        )

        logger.info("✅ Service container created successfully")
        return container

    async def initialize(self) -> bool:
        """
        Start playback and media controls

        Returns:
            bool: True if initialization successful
        """
        for name in config.missing_credentials():
            logger.warning(f"⚠️ {name} is not set, that source is disabled")

        try:
            logger.info("🚀 Initializing services...")
            await self.playback_session.start()
            await self.media_controls.attach()
            logger.info("✅ All services initialized successfully")
            return True

        except OpenBeatsException as e:
            logger.error(f"❌ Failed to initialize services: {e}")
            return False

    async def shutdown(self):
        """Gracefully shutdown all services"""
        logger.info("🛑 Shutting down services...")

        await self.media_controls.detach()
        await self.playback_session.close()
        if not self.http_session.closed:
            await self.http_session.close()

        logger.info("✅ All services shutdown successfully")

    def get_service_stats(self) -> dict:
        return {
            "stream_cache": self.stream_cache.get_stats(),
            "queue_size": self.queue.size,
            "available_sources": [s.value for s in self.search_service.available_sources()],
        }
