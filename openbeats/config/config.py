"""Configuration management with validation and singleton pattern"""

import os
from typing import List, Optional
from dotenv import load_dotenv

from .time_constants import TimeIntervals, Defaults

load_dotenv()


DEFAULT_MIRRORS = [
    "https://inv.perditum.com",
    "https://invidious.nerdvpn.de",
    "https://yewtu.be",
    "https://inv.nadeko.net",
]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name, "")
    if not raw.strip():
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Centralized configuration with validation using singleton pattern"""

    _instance: Optional["Config"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize configuration only once"""
        if hasattr(self, "_initialized") and self._initialized:
            return

        self.APP_NAME: str = os.getenv("APP_NAME", "openbeats")
        self.VERSION: str = os.getenv("VERSION", "1.0.0")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text").strip().lower()
        self.LOG_FILE: str = os.getenv("LOG_FILE", "")

        # Provider credentials (optional - missing ones disable that source)
        self.JAMENDO_CLIENT_ID: str = os.getenv("JAMENDO_CLIENT_ID", "")
        self.YOUTUBE_API_KEY: str = os.getenv("YOUTUBE_API_KEY", "")
        self.AUDIUS_APP_NAME: str = os.getenv("AUDIUS_APP_NAME", "openbeats")

        # Search
        self.DEFAULT_SOURCES: List[str] = _env_list("DEFAULT_SOURCES", ["jamendo", "fma", "audius"])
        self.SEARCH_LIMIT: int = int(os.getenv("SEARCH_LIMIT", str(Defaults.SEARCH_LIMIT)))
        self.HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", str(TimeIntervals.CATALOG_REQUEST_TIMEOUT)))

        # Video platform mirrors
        self.YTMUSIC_MIRRORS: List[str] = _env_list("YTMUSIC_MIRRORS", DEFAULT_MIRRORS)
        self.MIRROR_BATCH_SIZE: int = int(os.getenv("MIRROR_BATCH_SIZE", "3"))
        self.MIRROR_TIMEOUT: float = float(os.getenv("MIRROR_TIMEOUT", "4"))
        self.YTMUSIC_DEGRADED_FALLBACK: bool = _env_bool("YTMUSIC_DEGRADED_FALLBACK", "true")
        self.YTDLP_FALLBACK: bool = _env_bool("YTDLP_FALLBACK", "false")

        # Stream cache
        self.STREAM_CACHE_TTL: int = int(os.getenv("STREAM_CACHE_TTL", str(TimeIntervals.STREAM_URL_TTL)))

        # Audio output
        self.FFPLAY_PATH: str = os.getenv("FFPLAY_PATH", "ffplay")
        self.DEFAULT_VOLUME: int = int(os.getenv("DEFAULT_VOLUME", str(Defaults.DEFAULT_VOLUME)))

        self._validate()
        self._initialized = True

    def _validate(self):
        """Normalize values that have hard bounds"""
        # Per-mirror timeout must stay short so a full batch fails fast
        self.MIRROR_TIMEOUT = max(TimeIntervals.MIRROR_TIMEOUT_MIN, min(TimeIntervals.MIRROR_TIMEOUT_MAX, self.MIRROR_TIMEOUT))
        self.MIRROR_BATCH_SIZE = max(1, self.MIRROR_BATCH_SIZE)
        self.SEARCH_LIMIT = max(1, self.SEARCH_LIMIT)
        self.STREAM_CACHE_TTL = max(0, self.STREAM_CACHE_TTL)
        self.DEFAULT_VOLUME = max(Defaults.MIN_VOLUME, min(Defaults.MAX_VOLUME, self.DEFAULT_VOLUME))
        self.DEFAULT_SOURCES = [s.lower() for s in self.DEFAULT_SOURCES]
        if self.LOG_FORMAT not in ("text", "json"):
            self.LOG_FORMAT = "text"

    def missing_credentials(self) -> List[str]:
        """Names of provider credentials that are not set"""
        missing = []
        if not self.JAMENDO_CLIENT_ID:
            missing.append("JAMENDO_CLIENT_ID")
        if not self.YOUTUBE_API_KEY:
            missing.append("YOUTUBE_API_KEY")
        return missing

    @property
    def mirror_batches(self) -> List[List[str]]:
        """Mirrors split into sequential batches"""
        size = self.MIRROR_BATCH_SIZE
        return [self.YTMUSIC_MIRRORS[i : i + size] for i in range(0, len(self.YTMUSIC_MIRRORS), size)]


# Global config instance
config = Config()
