from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from ..entities.track import Track


@dataclass(frozen=True)
class PlayRecord:
    """One listening-history entry"""

    track: Track
    duration_played_sec: int
    played_at: datetime = field(default_factory=datetime.now)


class ListeningHistoryRepository(ABC):
    """Append-only store for plays, implemented by the persistence layer"""

    @abstractmethod
    async def record_play(self, track: Track, duration_played_sec: int) -> None:
        """Record that a track was played for the given number of seconds"""
        pass


class InMemoryHistoryRepository(ListeningHistoryRepository):
    """Keeps plays in memory; for local runs and tests"""

    def __init__(self):
        self.records: List[PlayRecord] = []

    async def record_play(self, track: Track, duration_played_sec: int) -> None:
        self.records.append(PlayRecord(track=track, duration_played_sec=max(0, int(duration_played_sec))))
