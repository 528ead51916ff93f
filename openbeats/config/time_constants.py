"""Time-related constants"""


class TimeIntervals:
    """Time interval constants (in seconds)"""

    # Base units
    SECOND = 1
    MINUTE = 60
    HOUR = 3600

    # Stream URL cache
    STREAM_URL_TTL = 5 * MINUTE  # resolved URLs go stale quickly on mirrors

    # Audius discovery host
    DISCOVERY_HOST_TTL = 10 * MINUTE

    # Timeouts
    MIRROR_TIMEOUT_MIN = 3
    MIRROR_TIMEOUT_MAX = 6
    CATALOG_REQUEST_TIMEOUT = 10
    OUTPUT_START_GRACE = 0.5  # player exiting within this window refused the stream
    OUTPUT_STOP_TIMEOUT = 2


class Defaults:
    """Default values"""

    # Audio
    DEFAULT_VOLUME = 75
    MIN_VOLUME = 0
    MAX_VOLUME = 100

    # Search
    SEARCH_LIMIT = 10
