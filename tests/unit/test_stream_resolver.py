"""
Unit tests for StreamResolver
Adapters and the mirror pool are mocked; the cache is real
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from openbeats.domain.valueobjects.audio_format import AudioFormat
from openbeats.domain.valueobjects.source_type import SourceType
from openbeats.domain.valueobjects.stream_resolution import ResolutionKind
from openbeats.services.mirrors import MirrorPool
from openbeats.services.sources.base import SourceAdapter
from openbeats.services.stream_resolver import StreamResolver
from openbeats.utils.cache import StreamUrlCache
from openbeats.utils.exceptions import (
    AllBackendsUnreachableError,
    NoAudioAvailableError,
    NotConfiguredError,
    ProviderUnavailableError,
)

BEST = AudioFormat(url="https://mirror/audio", bitrate=128000, codec="opus", mime_type="audio/webm")


def mock_adapter(source: SourceType, url: str = "https://cdn/track.mp3"):
    adapter = MagicMock(spec=SourceAdapter)
    adapter.source = source
    adapter.name = source.value
    adapter.get_stream_url = AsyncMock(return_value=url)
    return adapter


@pytest.fixture
def clock():
    now = [0.0]

    def read():
        return now[0]

    read.now = now
    return read


@pytest.fixture
def mirror_pool():
    pool = MagicMock(spec=MirrorPool)
    pool.fetch_best_audio = AsyncMock(return_value=("https://yewtu.be", BEST))
    return pool


@pytest.fixture
def jamendo():
    return mock_adapter(SourceType.JAMENDO)


@pytest.fixture
def resolver(jamendo, mirror_pool, clock):
    return StreamResolver(
        [jamendo, mock_adapter(SourceType.FMA), mock_adapter(SourceType.AUDIUS)],
        mirror_pool,
        StreamUrlCache(ttl=300, clock=clock),
        degraded_fallback=True,
    )


@pytest.mark.asyncio
class TestCatalogResolution:
    """Test direct catalog sources"""

    async def test_single_adapter_call_url_unmodified(self, resolver, jamendo):
        resolution = await resolver.resolve(SourceType.JAMENDO, "1")

        assert resolution.kind is ResolutionKind.PLAYABLE
        assert resolution.url == "https://cdn/track.mp3"
        assert resolution.backend == "jamendo"
        assert not resolution.from_cache
        jamendo.get_stream_url.assert_awaited_once_with("1")

    async def test_accepts_source_tag_strings(self, resolver):
        resolution = await resolver.resolve("jamendo", "1")

        assert resolution.source is SourceType.JAMENDO

    async def test_missing_adapter_is_not_configured(self, mirror_pool):
        resolver = StreamResolver([], mirror_pool, StreamUrlCache(), degraded_fallback=True)

        with pytest.raises(NotConfiguredError):
            await resolver.resolve(SourceType.AUDIUS, "x")

    async def test_provider_outage_is_retryable(self, resolver, jamendo):
        jamendo.get_stream_url.side_effect = ProviderUnavailableError("HTTP 503", source="jamendo")

        with pytest.raises(AllBackendsUnreachableError) as exc_info:
            await resolver.resolve(SourceType.JAMENDO, "1")
        assert exc_info.value.retryable

    async def test_adapter_resolution_errors_propagate(self, resolver, jamendo):
        jamendo.get_stream_url.side_effect = NoAudioAvailableError("gone")

        with pytest.raises(NoAudioAvailableError):
            await resolver.resolve(SourceType.JAMENDO, "1")


@pytest.mark.asyncio
class TestCaching:
    """Test cache behaviour across resolutions"""

    async def test_cache_hit_skips_network(self, resolver, jamendo):
        await resolver.resolve(SourceType.JAMENDO, "1")
        cached = await resolver.resolve(SourceType.JAMENDO, "1")

        assert cached.from_cache
        assert cached.url == "https://cdn/track.mp3"
        assert jamendo.get_stream_url.await_count == 1

    async def test_expired_entry_resolves_again(self, resolver, jamendo, clock):
        await resolver.resolve(SourceType.JAMENDO, "1")
        clock.now[0] += 300

        fresh = await resolver.resolve(SourceType.JAMENDO, "1")

        assert not fresh.from_cache
        assert jamendo.get_stream_url.await_count == 2

    async def test_keys_are_per_source_and_track(self, resolver, jamendo):
        await resolver.resolve(SourceType.JAMENDO, "1")
        await resolver.resolve(SourceType.JAMENDO, "2")
        await resolver.resolve(SourceType.FMA, "1")

        assert jamendo.get_stream_url.await_count == 2

    async def test_concurrent_duplicates_share_one_call(self, resolver, jamendo):
        release = asyncio.Event()

        async def slow_url(track_id):
            await release.wait()
            return "https://cdn/slow.mp3"

        jamendo.get_stream_url.side_effect = slow_url
        first = asyncio.ensure_future(resolver.resolve(SourceType.JAMENDO, "1"))
        second = asyncio.ensure_future(resolver.resolve(SourceType.JAMENDO, "1"))
        await asyncio.sleep(0)
        release.set()

        a, b = await asyncio.gather(first, second)

        assert a.url == b.url == "https://cdn/slow.mp3"
        assert jamendo.get_stream_url.await_count == 1

    async def test_failures_are_not_cached(self, resolver, jamendo):
        jamendo.get_stream_url.side_effect = [NoAudioAvailableError("gone"), "https://cdn/ok.mp3"]

        with pytest.raises(NoAudioAvailableError):
            await resolver.resolve(SourceType.JAMENDO, "1")
        resolution = await resolver.resolve(SourceType.JAMENDO, "1")

        assert resolution.url == "https://cdn/ok.mp3"


@pytest.mark.asyncio
class TestVideoResolution:
    """Test the mirror-backed source and the degraded policy"""

    async def test_mirror_result_is_playable(self, resolver, mirror_pool):
        resolution = await resolver.resolve(SourceType.YTMUSIC, "vid")

        assert resolution.is_playable
        assert resolution.url == "https://mirror/audio"
        assert resolution.backend == "https://yewtu.be"
        mirror_pool.fetch_best_audio.assert_awaited_once_with("vid")

    @pytest.mark.parametrize("error", [AllBackendsUnreachableError("down"), NoAudioAvailableError("none")])
    async def test_exhausted_mirrors_degrade_to_watch_link(self, resolver, mirror_pool, error):
        mirror_pool.fetch_best_audio.side_effect = error

        resolution = await resolver.resolve(SourceType.YTMUSIC, "dQw4w9WgXcQ")

        assert resolution.kind is ResolutionKind.DEGRADED
        assert resolution.url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

    async def test_degraded_results_are_never_cached(self, resolver, mirror_pool):
        mirror_pool.fetch_best_audio.side_effect = [AllBackendsUnreachableError("down"), ("M", BEST)]

        first = await resolver.resolve(SourceType.YTMUSIC, "vid")
        second = await resolver.resolve(SourceType.YTMUSIC, "vid")

        assert first.is_degraded
        assert second.is_playable and not second.from_cache
        assert mirror_pool.fetch_best_audio.await_count == 2

    async def test_failure_propagates_when_degraded_policy_is_off(self, jamendo, mirror_pool):
        resolver = StreamResolver([jamendo], mirror_pool, StreamUrlCache(), degraded_fallback=False)
        mirror_pool.fetch_best_audio.side_effect = AllBackendsUnreachableError("down")

        with pytest.raises(AllBackendsUnreachableError):
            await resolver.resolve(SourceType.YTMUSIC, "vid")

    async def test_resolve_track(self, resolver, track_factory):
        track = track_factory("vid", source=SourceType.YTMUSIC)

        resolution = await resolver.resolve_track(track)

        assert resolution.source_track_id == "vid"
