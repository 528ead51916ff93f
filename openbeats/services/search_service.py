"""Multi-provider search aggregation"""

import asyncio
from typing import Dict, Iterable, List, Optional

from .sources.base import SourceAdapter
from ..config.config import config
from ..domain.entities.track import Track
from ..domain.valueobjects.source_type import SourceType
from ..pkg.logger import logger


class MusicSearchService:
    """
    Fans a query out to every selected catalog concurrently and concatenates
    the results in adapter order. A failing provider contributes nothing;
    partial results are a normal outcome. No cross-source de-duplication.
    """

    def __init__(self, adapters: Iterable[SourceAdapter], default_sources: Optional[List[str]] = None):
        self._adapters: Dict[SourceType, SourceAdapter] = {a.source: a for a in adapters}
        self._default_sources = default_sources if default_sources is not None else config.DEFAULT_SOURCES

    def get_adapter(self, source: SourceType) -> Optional[SourceAdapter]:
        return self._adapters.get(source)

    def available_sources(self) -> List[SourceType]:
        """Sources that have an adapter with credentials"""
        return [s for s, a in self._adapters.items() if a.is_configured()]

    def _select(self, sources: Optional[Iterable[str]]) -> List[SourceAdapter]:
        selected: List[SourceAdapter] = []
        for name in sources if sources is not None else self._default_sources:
            try:
                source = SourceType.parse(name)
            except ValueError:
                logger.warning(f"⚠️ Ignoring unknown source '{name}'")
                continue

            adapter = self._adapters.get(source)
            if adapter is None:
                logger.warning(f"⚠️ No adapter registered for '{source.value}'")
            elif not adapter.is_configured():
                logger.debug(f"Excluding unconfigured source '{source.value}'")
            elif adapter not in selected:
                selected.append(adapter)
        return selected

    async def search(
        self,
        query: str,
        sources: Optional[Iterable[str]] = None,
        limit: int = config.SEARCH_LIMIT,
    ) -> List[Track]:
        if not query or not query.strip():
            return []

        adapters = self._select(sources)
        if not adapters:
            logger.warning(f"⚠️ No configured sources for search '{query}'")
            return []

        logger.info(f"🔎 Searching '{query}' across: {', '.join(a.name for a in adapters)}")
        results = await asyncio.gather(*(a.search(query.strip(), limit) for a in adapters))

        tracks = [track for batch in results for track in batch]
        logger.info(f"✅ Found {len(tracks)} total tracks for '{query}'")
        return tracks
