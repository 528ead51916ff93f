"""
SourceAdapter - shared plumbing for catalog providers.

Subclass contract:

    class MySource(SourceAdapter):
        source = SourceType.JAMENDO

        async def _search(self, query, limit) -> list[Track]:
            '''Call the provider and normalize each item with _to_track().'''

        async def get_stream_url(self, source_track_id) -> str:
            '''Return the provider's playable URL, unmodified.'''

Optional overrides:
    is_configured()   - False when credentials are missing; the adapter is
                        then skipped by search and raises NotConfiguredError
                        from get_stream_url
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import aiohttp

from ...config.config import config
from ...domain.entities.track import Track
from ...domain.valueobjects.source_type import SourceType
from ...utils.exceptions import NotConfiguredError, ProviderUnavailableError
from ...config.service_constants import ErrorMessages
from ...pkg.logger import logger


class SourceAdapter(ABC):
    """One catalog provider: search normalization and stream URL lookup"""

    source: SourceType

    def __init__(self, session: aiohttp.ClientSession, timeout: Optional[float] = None):
        self._session = session
        self._timeout = timeout if timeout is not None else config.HTTP_TIMEOUT

    @property
    def name(self) -> str:
        return self.source.value

    def is_configured(self) -> bool:
        return True

    async def search(self, query: str, limit: int) -> List[Track]:
        """
        Best-effort search. Never raises: provider failures of any kind
        (network, malformed payload, missing credentials) yield [].
        """
        if not self.is_configured():
            logger.debug(f"Skipping {self.name} search: not configured")
            return []

        try:
            tracks = await self._search(query, limit)
        except NotConfiguredError:
            logger.debug(f"Skipping {self.name} search: not configured")
            return []
        except ProviderUnavailableError as e:
            logger.warning(f"⚠️ {self.name} search unavailable: {e}")
            return []
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ {self.name} search failed: {type(e).__name__}: {e}")
            return []

        logger.info(f"🔎 {self.name}: {len(tracks)} results for '{query}'")
        return tracks[:limit]

    @abstractmethod
    async def _search(self, query: str, limit: int) -> List[Track]:
        """Provider-specific search; may raise"""
        pass

    @abstractmethod
    async def get_stream_url(self, source_track_id: str) -> str:
        """Return a playable URL or raise a ResolutionFailedError subclass"""
        pass

    def _not_configured(self, source_track_id: str = "") -> NotConfiguredError:
        return NotConfiguredError(
            ErrorMessages.source_not_configured(self.name),
            source=self.name,
            source_track_id=source_track_id,
        )

    async def _get_json(
        self,
        url: str,
        params: Any = None,
        timeout: Optional[float] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """GET a JSON document; any transport or payload failure becomes ProviderUnavailableError"""
        client_timeout = aiohttp.ClientTimeout(total=timeout if timeout is not None else self._timeout)
        try:
            async with self._session.get(url, params=params, headers=headers, timeout=client_timeout) as resp:
                if resp.status != 200:
                    raise ProviderUnavailableError(f"HTTP {resp.status}", source=self.name, details=url)
                return await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ProviderUnavailableError("Request timed out", source=self.name, details=url) from e
        except aiohttp.ClientError as e:
            raise ProviderUnavailableError("Request failed", source=self.name, details=str(e)) from e
        except ValueError as e:
            raise ProviderUnavailableError("Malformed JSON payload", source=self.name, details=str(e)) from e


def first_value(value: Any) -> Optional[str]:
    """Providers sometimes send a scalar, sometimes a list of scalars"""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value)
