from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Iterable, Tuple

from ..valueobjects.source_type import SourceType


@dataclass(frozen=True)
class Track:
    """
    Immutable value identifying one playable catalog item.

    Identity is the ``(source, source_track_id)`` pair: two tracks with the
    same pair are the same playable entity regardless of their display
    metadata, and ``id`` is always derived from that pair.

    Example:
        >>> track = Track.create(
        ...     source=SourceType.JAMENDO,
        ...     source_track_id="1532771",
        ...     title="Moonlight",
        ...     artists=["Ketsa"],
        ...     duration_sec=214,
        ... )
        >>> track.id
        'jamendo-1532771'
    """

    source: SourceType
    source_track_id: str
    title: str = field(compare=False)
    artists: Tuple[str, ...] = field(default=("Unknown Artist",), compare=False)
    album_title: Optional[str] = field(default=None, compare=False)
    duration_sec: int = field(default=0, compare=False)  # 0 = unknown
    artwork_url: Optional[str] = field(default=None, compare=False)
    license: Optional[str] = field(default=None, compare=False)

    @classmethod
    def create(
        cls,
        source: SourceType,
        source_track_id: Any,
        title: Optional[str],
        artists: Optional[Iterable[Optional[str]]] = None,
        album_title: Optional[str] = None,
        duration_sec: Any = 0,
        artwork_url: Optional[str] = None,
        license: Optional[str] = None,
    ) -> "Track":
        """Build a Track, defaulting every optional field at the boundary"""
        names = tuple(str(a).strip() for a in (artists or []) if a and str(a).strip())
        return cls(
            source=source,
            source_track_id=str(source_track_id),
            title=(title or "").strip() or "Unknown",
            artists=names or ("Unknown Artist",),
            album_title=_blank_to_none(album_title),
            duration_sec=_to_seconds(duration_sec),
            artwork_url=_blank_to_none(artwork_url),
            license=_blank_to_none(license),
        )

    @property
    def id(self) -> str:
        return f"{self.source.value}-{self.source_track_id}"

    @property
    def artists_display(self) -> str:
        return ", ".join(self.artists)

    @property
    def display_name(self) -> str:
        """Human-readable track name"""
        return f"{self.artists_display} - {self.title}"

    @property
    def duration_formatted(self) -> str:
        """Duration in MM:SS (or H:MM:SS) format"""
        if self.duration_sec <= 0:
            return "00:00"
        minutes, seconds = divmod(self.duration_sec, 60)
        hours, minutes = divmod(minutes, 60)
        if hours:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes:02d}:{seconds:02d}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "source": self.source.value,
            "sourceTrackId": self.source_track_id,
            "title": self.title,
            "artists": list(self.artists),
            "albumTitle": self.album_title,
            "durationSec": self.duration_sec,
            "artworkUrl": self.artwork_url,
            "license": self.license,
        }


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _to_seconds(value: Any) -> int:
    try:
        seconds = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, seconds)
