"""
Pytest configuration and shared fixtures
"""
import random
from typing import Any, List, Optional

import pytest

from openbeats.domain.entities.queue import PlayQueue, QueueState
from openbeats.domain.entities.track import Track
from openbeats.domain.repositories.history_repository import InMemoryHistoryRepository
from openbeats.domain.valueobjects.source_type import SourceType
from openbeats.services.audio.output import AudioOutput
from openbeats.utils.exceptions import PlaybackRejectedError


def make_track(track_id: str, source: SourceType = SourceType.JAMENDO, duration: int = 180) -> Track:
    return Track.create(
        source=source,
        source_track_id=track_id,
        title=f"Song {track_id}",
        artists=["Test Artist"],
        duration_sec=duration,
    )


def make_state(tracks: List[Track], current_index: Optional[int] = 0, **kwargs) -> QueueState:
    return QueueState(entries=tuple(tracks), current_index=current_index if tracks else None, **kwargs)


class FakeAudioOutput(AudioOutput):
    """Records every call instead of producing sound"""

    def __init__(self, reject: bool = False):
        super().__init__()
        self.calls: List[tuple] = []
        self.reject = reject
        self.loaded_url: Optional[str] = None
        self.volume: Optional[int] = None
        self.playing = False
        self.paused = False
        self._position = 0.0

    @property
    def position(self) -> float:
        return self._position

    def advance(self, seconds: float):
        self._position += seconds

    async def open(self):
        self.calls.append(("open",))

    async def load(self, url: str):
        self.calls.append(("load", url))
        self.loaded_url = url
        self.playing = False
        self._position = 0.0

    async def play(self):
        self.calls.append(("play",))
        if self.reject:
            raise PlaybackRejectedError("unsupported codec")
        self.playing = True
        self.paused = False

    async def pause(self):
        self.calls.append(("pause",))
        self.paused = True

    async def resume(self):
        self.calls.append(("resume",))
        self.paused = False

    async def seek(self, seconds: float):
        self.calls.append(("seek", seconds))
        self._position = seconds

    async def set_volume(self, percent: int):
        self.calls.append(("set_volume", percent))
        self.volume = percent

    async def stop(self):
        self.calls.append(("stop",))
        self.playing = False
        self._position = 0.0

    async def close(self):
        self.calls.append(("close",))

    async def finish(self):
        """Simulate the stream reaching its natural end"""
        self.playing = False
        if self._end_callback is not None:
            await self._end_callback()

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeResponse:
    """Minimal stand-in for an aiohttp response used as an async context manager"""

    def __init__(self, status: int = 200, payload: Any = None, error: Optional[Exception] = None):
        self.status = status
        self._payload = payload
        self._error = error

    async def __aenter__(self):
        if self._error is not None:
            raise self._error
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type=None):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture
def t1() -> Track:
    return make_track("1")


@pytest.fixture
def t2() -> Track:
    return make_track("2")


@pytest.fixture
def t3() -> Track:
    return make_track("3")


@pytest.fixture
def t4() -> Track:
    return make_track("4")


@pytest.fixture
def three_tracks(t1, t2, t3) -> List[Track]:
    return [t1, t2, t3]


@pytest.fixture
def play_queue() -> PlayQueue:
    return PlayQueue(rng=random.Random(42))


@pytest.fixture
def fake_output() -> FakeAudioOutput:
    return FakeAudioOutput()


@pytest.fixture
def history() -> InMemoryHistoryRepository:
    return InMemoryHistoryRepository()


@pytest.fixture
def sample_adaptive_formats() -> list:
    """Mirror metadata adaptiveFormats with audio and video entries"""
    return [
        {"url": "https://cdn/video-1080", "bitrate": "4000000", "type": 'video/mp4; codecs="avc1.640028"'},
        {"url": "https://cdn/opus-64", "bitrate": "64000", "type": 'audio/webm; codecs="opus"'},
        {"url": "https://cdn/opus-128", "bitrate": "128000", "type": 'audio/webm; codecs="opus"'},
        {"url": "https://cdn/aac-128", "bitrate": "128000", "type": 'audio/mp4; codecs="mp4a.40.2"'},
        {"bitrate": "256000", "type": 'audio/webm; codecs="opus"'},
    ]


@pytest.fixture
def track_factory():
    """make_track(track_id, source=..., duration=...)"""
    return make_track


@pytest.fixture
def state_factory():
    """make_state(tracks, current_index=0, **fields)"""
    return make_state


@pytest.fixture
def response_factory():
    """FakeResponse(status=200, payload=None, error=None)"""
    return FakeResponse


@pytest.fixture
def output_factory():
    """FakeAudioOutput(reject=False)"""
    return FakeAudioOutput
