from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

_CODECS_RE = re.compile(r'codecs="?([^";]+)"?')


@dataclass(frozen=True)
class AudioFormat:
    """One adaptive audio-only stream offered by a mirror"""

    url: str
    bitrate: int  # bits per second, 0 when unknown
    codec: str
    mime_type: str

    @property
    def is_opus(self) -> bool:
        return "opus" in self.codec.lower()

    @classmethod
    def from_adaptive_format(cls, raw: Dict[str, Any]) -> Optional["AudioFormat"]:
        """
        Parse an ``adaptiveFormats`` item, e.g.
        ``{"url": ..., "bitrate": "130000", "type": 'audio/webm; codecs="opus"'}``.
        Returns None for video formats and items without a URL.
        """
        if not isinstance(raw, dict):
            return None

        url = raw.get("url")
        mime = str(raw.get("type") or "")
        if not url or not mime.startswith("audio/"):
            return None

        codec = raw.get("encoding") or ""
        match = _CODECS_RE.search(mime)
        if match:
            codec = match.group(1).strip()

        try:
            bitrate = int(raw.get("bitrate") or 0)
        except (TypeError, ValueError):
            bitrate = 0

        return cls(
            url=url,
            bitrate=max(0, bitrate),
            codec=codec,
            mime_type=mime.split(";")[0].strip(),
        )
