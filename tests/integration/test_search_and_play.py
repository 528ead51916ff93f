"""
Integration tests: search -> play -> auto-advance through the real container
Network and audio are faked at the edges only
"""
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from openbeats.core.container import ServiceContainer
from openbeats.domain.valueobjects.audio_format import AudioFormat
from openbeats.domain.valueobjects.source_type import SourceType
from openbeats.services.sources.archive import ArchiveAdapter
from openbeats.utils.events import PlaybackEvents
from openbeats.utils.exceptions import AllBackendsUnreachableError

pytestmark = pytest.mark.integration

ARCHIVE_SEARCH = {
    "response": {
        "docs": [
            {"identifier": "night-one", "title": "Night One", "creator": "Ketsa", "format": ["VBR MP3"]},
            {"identifier": "night-two", "title": "Night Two", "creator": "Ketsa", "format": ["VBR MP3"]},
        ]
    }
}


async def archive_api(url, params=None, **kwargs):
    if "advancedsearch" in url:
        return ARCHIVE_SEARCH
    identifier = url.rstrip("/").rsplit("/", 1)[-1]
    return {"files": [{"name": f"{identifier}.mp3", "format": "VBR MP3"}]}


@pytest.fixture
async def container(output_factory, history):
    session = MagicMock(spec=aiohttp.ClientSession)
    session.closed = False
    session.close = AsyncMock()

    services = ServiceContainer.create(http_session=session, output=output_factory(), history=history)
    for adapter in services.adapters:
        if isinstance(adapter, ArchiveAdapter):
            adapter._get_json = AsyncMock(side_effect=archive_api)

    assert await services.initialize()
    yield services
    await services.shutdown()


@pytest.mark.asyncio
class TestSearchAndPlay:
    """Test the listening flow end to end"""

    async def test_search_play_and_run_out_of_queue(self, container, history):
        session = container.playback_session
        output = session._output
        stopped = []
        await container.event_bus.subscribe(PlaybackEvents.PLAYBACK_STOPPED, stopped.append)

        tracks = await container.search_service.search("night", sources=["fma"])
        assert [t.title for t in tracks] == ["Night One", "Night Two"]

        await session.play_from(tracks[0], tracks)
        assert output.loaded_url == "https://archive.org/download/night-one/night-one.mp3"
        assert container.media_controls.metadata["track"]["id"] == "fma-night-one"

        await output.finish()
        assert session.current_track == tracks[1]

        await output.finish()
        assert session.current_track is None
        assert stopped[-1].message == "Queue finished"
        assert container.media_controls.metadata is None

        await session.close()
        assert [r.track.source_track_id for r in history.records] == ["night-one", "night-two"]

    async def test_replay_is_served_from_cache(self, container):
        tracks = await container.search_service.search("night", sources=["fma"])

        first = await container.playback_session.play(tracks[0])
        again = await container.playback_session.play(tracks[0])

        assert not first.from_cache
        assert again.from_cache
        assert container.get_service_stats()["stream_cache"]["hits"] == 1

    async def test_remote_controls_drive_the_session(self, container):
        tracks = await container.search_service.search("night", sources=["fma"])
        await container.playback_session.play_from(tracks[0], tracks)
        controls = container.media_controls

        assert await controls.handle_action("next")
        assert await controls.handle_action("toggle")
        assert container.playback_session.is_paused
        assert await controls.handle_action("stop")
        assert container.playback_session.current_track is None

    async def test_video_track_through_mirror_pool(self, container, track_factory):
        video = track_factory("dQw4w9WgXcQ", source=SourceType.YTMUSIC)
        container.mirror_pool.fetch_best_audio = AsyncMock(
            return_value=(
                "https://yewtu.be",
                AudioFormat(url="https://mirror/audio.webm", bitrate=128000, codec="opus", mime_type="audio/webm"),
            )
        )

        resolution = await container.playback_session.play_from(video)

        assert resolution.backend == "https://yewtu.be"
        assert container.playback_session._output.loaded_url == "https://mirror/audio.webm"

    async def test_unreachable_mirrors_degrade_to_link(self, container, track_factory):
        container.resolver.degraded_fallback = True
        video = track_factory("dQw4w9WgXcQ", source=SourceType.YTMUSIC)
        container.mirror_pool.fetch_best_audio = AsyncMock(side_effect=AllBackendsUnreachableError("down"))
        links = []
        await container.event_bus.subscribe(PlaybackEvents.DEGRADED_LINK, links.append)

        resolution = await container.playback_session.play_from(video)

        assert resolution.is_degraded
        assert links[0].data["url"] == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert container.playback_session.current_track is None

    async def test_service_stats(self, container):
        stats = container.get_service_stats()

        assert "fma" in stats["available_sources"]
        assert stats["queue_size"] == 0
