"""Free Music Archive collection, hosted on archive.org"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .base import SourceAdapter, first_value
from ...config.service_constants import ServiceConstants, ErrorMessages
from ...domain.entities.track import Track
from ...domain.valueobjects.source_type import SourceType
from ...utils.exceptions import NoAudioAvailableError

MP3_FORMAT = "VBR MP3"


class ArchiveAdapter(SourceAdapter):
    """No credentials needed; every archive item is one track"""

    source = SourceType.FMA

    async def _search(self, query: str, limit: int) -> List[Track]:
        params = [
            ("q", f"{query} AND collection:({ServiceConstants.ARCHIVE_COLLECTION})"),
            ("fl[]", "identifier"),
            ("fl[]", "title"),
            ("fl[]", "creator"),
            ("fl[]", "date"),
            ("fl[]", "format"),
            ("rows", str(limit)),
            ("output", "json"),
        ]
        data = await self._get_json(ServiceConstants.ARCHIVE_SEARCH_URL, params=params)
        docs = (data.get("response") or {}).get("docs") if isinstance(data, dict) else None
        if not docs:
            return []
        return [self._to_track(doc) for doc in docs if self._has_mp3(doc)]

    @staticmethod
    def _has_mp3(doc: Any) -> bool:
        if not isinstance(doc, dict) or not doc.get("identifier"):
            return False
        formats = doc.get("format") or []
        if isinstance(formats, str):
            formats = [formats]
        return MP3_FORMAT in formats

    def _to_track(self, doc: Dict[str, Any]) -> Track:
        identifier = doc["identifier"]
        return Track.create(
            source=self.source,
            source_track_id=identifier,
            title=first_value(doc.get("title")),
            artists=[first_value(doc.get("creator"))],
            duration_sec=0,  # search index has no durations
            artwork_url=ServiceConstants.ARCHIVE_ARTWORK_URL.format(identifier=identifier),
            license="Creative Commons",
        )

    async def get_stream_url(self, source_track_id: str) -> str:
        data = await self._get_json(ServiceConstants.ARCHIVE_METADATA_URL.format(identifier=source_track_id))
        files = data.get("files") if isinstance(data, dict) else None
        filename = self._pick_audio_file(files or [])
        if not filename:
            raise NoAudioAvailableError(
                ErrorMessages.no_audio_available(f"fma:{source_track_id}"),
                source=self.name,
                source_track_id=source_track_id,
            )
        return ServiceConstants.ARCHIVE_DOWNLOAD_URL.format(
            identifier=source_track_id, filename=quote(filename)
        )

    @staticmethod
    def _pick_audio_file(files: List[Any]) -> Optional[str]:
        """Prefer the VBR MP3 derivative, else any .mp3"""
        mp3s = [f for f in files if isinstance(f, dict) and str(f.get("name", "")).lower().endswith(".mp3")]
        for f in mp3s:
            if f.get("format") == MP3_FORMAT:
                return f["name"]
        return mp3s[0]["name"] if mp3s else None
