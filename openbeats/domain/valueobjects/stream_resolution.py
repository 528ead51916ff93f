from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .source_type import SourceType


class ResolutionKind(Enum):
    """Outcome of a successful resolution"""

    PLAYABLE = "playable"  # direct audio URL for the embedded output
    DEGRADED = "degraded"  # external page link, not embeddable


@dataclass(frozen=True)
class StreamResolution:
    """Result of turning (source, source_track_id) into something playable"""

    kind: ResolutionKind
    url: str
    source: SourceType
    source_track_id: str
    backend: Optional[str] = None
    from_cache: bool = False

    @property
    def is_playable(self) -> bool:
        return self.kind is ResolutionKind.PLAYABLE

    @property
    def is_degraded(self) -> bool:
        return self.kind is ResolutionKind.DEGRADED

    def cached(self) -> "StreamResolution":
        """Copy marked as served from cache"""
        return replace(self, from_cache=True)
