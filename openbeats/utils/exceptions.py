"""
Custom exception hierarchy for OpenBeats
Provides structured error handling with specific exception types
"""

from typing import Optional


class OpenBeatsException(Exception):
    """Base exception for all OpenBeats errors"""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# Source / catalog errors
class SourceError(OpenBeatsException):
    """Base class for catalog provider errors"""

    def __init__(self, message: str, source: str = "", details: str = None):
        self.source = source
        super().__init__(message, details)


class ProviderUnavailableError(SourceError):
    """Raised when a catalog request fails (network, status, malformed payload)"""
    pass


# Playback errors
class PlaybackError(OpenBeatsException):
    """Base class for playback related errors"""
    pass


class ResolutionFailedError(PlaybackError):
    """Raised when no backend could produce audio for a track"""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        source: str = "",
        source_track_id: str = "",
        details: Optional[str] = None,
    ):
        self.source = source
        self.source_track_id = source_track_id
        super().__init__(message, details)


class NotConfiguredError(ResolutionFailedError):
    """Raised when a source is missing its credentials"""
    pass


class NoAudioAvailableError(ResolutionFailedError):
    """Raised when a valid track has no extractable audio"""
    pass


class AllBackendsUnreachableError(ResolutionFailedError):
    """Raised when every backend failed transiently - safe to retry"""

    retryable = True


class PlaybackRejectedError(PlaybackError):
    """Raised when the audio output refuses to start a stream"""
    pass

