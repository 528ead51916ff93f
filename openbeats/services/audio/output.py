from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

EndCallback = Callable[[], Awaitable[None]]


class AudioOutput(ABC):
    """
    One audio sink, reused across track switches.

    Owned by a PlaybackSession for its whole lifetime: opened on session
    start, closed on session end, never shared. ``load`` replaces whatever
    was loaded before without recreating the output.
    """

    def __init__(self):
        self._end_callback: Optional[EndCallback] = None

    def set_end_callback(self, callback: Optional[EndCallback]) -> None:
        """Called (awaited) when a loaded stream reaches its natural end"""
        self._end_callback = callback

    @property
    @abstractmethod
    def position(self) -> float:
        """Seconds into the loaded stream"""
        pass

    @abstractmethod
    async def open(self) -> None:
        pass

    @abstractmethod
    async def load(self, url: str) -> None:
        pass

    @abstractmethod
    async def play(self) -> None:
        """Start the loaded stream; raises PlaybackRejectedError if refused"""
        pass

    @abstractmethod
    async def pause(self) -> None:
        pass

    @abstractmethod
    async def resume(self) -> None:
        pass

    @abstractmethod
    async def seek(self, seconds: float) -> None:
        pass

    @abstractmethod
    async def set_volume(self, percent: int) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass
