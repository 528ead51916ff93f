"""
Service-level constants for configuration
Centralized magic numbers and user-facing messages
"""


class ServiceConstants:
    """Constants for service layer configuration"""

    # Stream resolution
    RESOLVE_RETRY_MAX_ATTEMPTS = 2  # one automatic retry for transient failures
    RESOLVE_RETRY_BASE_DELAY = 0.5
    MIRROR_USER_AGENT = "OpenBeats/1.0"
    YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

    # Catalog endpoints
    JAMENDO_TRACKS_URL = "https://api.jamendo.com/v3.0/tracks/"
    ARCHIVE_SEARCH_URL = "https://archive.org/advancedsearch.php"
    ARCHIVE_METADATA_URL = "https://archive.org/metadata/{identifier}"
    ARCHIVE_DOWNLOAD_URL = "https://archive.org/download/{identifier}/{filename}"
    ARCHIVE_ARTWORK_URL = "https://archive.org/services/img/{identifier}"
    ARCHIVE_COLLECTION = "freemusicarchive"
    AUDIUS_DISCOVERY_URL = "https://api.audius.co"
    AUDIUS_FALLBACK_HOST = "https://discoveryprovider.audius.co"
    YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
    YOUTUBE_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
    YOUTUBE_MUSIC_CATEGORY = "10"


class ErrorMessages:
    """Centralized user-facing messages"""

    @staticmethod
    def cannot_play(track_name: str, reason: str = "") -> str:
        """Message when a track cannot be resolved or started"""
        if reason:
            return f"Can't play **{track_name}**: {reason}"
        return f"Can't play **{track_name}**"

    @staticmethod
    def source_not_configured(source: str) -> str:
        """Message when a provider has no credentials"""
        return f"Source '{source}' is not configured"

    @staticmethod
    def no_audio_available(track_name: str) -> str:
        """Message when a track has no extractable audio"""
        return f"No playable audio found for **{track_name}**"

    @staticmethod
    def backends_unreachable(track_name: str) -> str:
        """Message when every stream backend failed"""
        return f"Stream servers are unreachable for **{track_name}**, try again shortly"

    @staticmethod
    def degraded_link(track_name: str, url: str) -> str:
        """Message when only an external link is available"""
        return f"**{track_name}** can't be played here. Open it externally: {url}"

    @staticmethod
    def playback_rejected(track_name: str) -> str:
        """Message when the audio output refuses the stream"""
        return f"Audio output refused to play **{track_name}**"

    @staticmethod
    def now_playing(track_name: str) -> str:
        return f"Now playing: **{track_name}**"

    @staticmethod
    def queue_finished() -> str:
        return "Queue finished"

    @staticmethod
    def playback_stopped() -> str:
        return "Playback stopped"
