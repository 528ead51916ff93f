"""
Playback session - binds one track at a time to one audio output
"""

import asyncio
from typing import Any, Dict, Optional, Sequence, Set

from .output import AudioOutput
from ..stream_resolver import StreamResolver
from ...config.config import config
from ...config.service_constants import ServiceConstants, ErrorMessages
from ...config.time_constants import Defaults
from ...domain.entities.queue import PlayQueue
from ...domain.entities.track import Track
from ...domain.repositories.history_repository import ListeningHistoryRepository
from ...domain.valueobjects.stream_resolution import StreamResolution
from ...utils.events import EventBus, PlaybackEvent, PlaybackEvents
from ...utils.exceptions import OpenBeatsException, PlaybackRejectedError, ResolutionFailedError
from ...utils.retry_strategy import RetryStrategy
from ...pkg.logger import logger


def _is_retryable(error: BaseException) -> bool:
    return getattr(error, "retryable", False)


class PlaybackSession:
    """
    Owns the audio output for its lifetime; nothing outside the session
    touches it. All control goes through the public methods below.

    A failed resolution leaves whatever was playing untouched. Resolution
    of ``AllBackendsUnreachableError`` is retried once before surfacing.
    """

    def __init__(
        self,
        resolver: StreamResolver,
        queue: PlayQueue,
        output: AudioOutput,
        history: Optional[ListeningHistoryRepository] = None,
        event_bus: Optional[EventBus] = None,
        retry: Optional[RetryStrategy] = None,
    ):
        self._resolver = resolver
        self._queue = queue
        self._output = output
        self._history = history
        self.events = event_bus or EventBus()
        self._retry = retry or RetryStrategy(
            max_attempts=ServiceConstants.RESOLVE_RETRY_MAX_ATTEMPTS,
            base_delay=ServiceConstants.RESOLVE_RETRY_BASE_DELAY,
            timeout=None,
            retry_on=_is_retryable,
        )

        self.current_track: Optional[Track] = None
        self.is_playing = False
        self.is_paused = False
        self._volume = config.DEFAULT_VOLUME
        self._started = False

        # Bumped by every play(); a resolution finishing under an older value is stale
        self._generation = 0
        self._history_tasks: Set[asyncio.Task] = set()

    @property
    def queue(self) -> PlayQueue:
        return self._queue

    @property
    def volume(self) -> int:
        return self._volume

    @property
    def position(self) -> float:
        if self.current_track is None:
            return 0.0
        return self._output.position

    # Lifecycle

    async def start(self) -> None:
        if self._started:
            return
        await self._output.open()
        self._output.set_end_callback(self._on_track_end)
        self._started = True
        logger.info("🎧 Playback session started")

    async def close(self) -> None:
        if not self._started:
            return
        self._report_elapsed()
        self._generation += 1
        self._output.set_end_callback(None)
        await self._output.stop()
        await self._output.close()
        self.current_track = None
        self.is_playing = False
        self.is_paused = False
        self._started = False

        if self._history_tasks:
            await asyncio.gather(*self._history_tasks, return_exceptions=True)
        logger.info("🎧 Playback session closed")

    # Playback

    async def play(self, track: Track) -> StreamResolution:
        """
        Resolve and start ``track``.

        Returns the resolution; a DEGRADED one is published as a link and the
        output is left alone. Raises ResolutionFailedError or
        PlaybackRejectedError after publishing a track-specific message.
        """
        self._generation += 1
        generation = self._generation

        try:
            resolution = await self._retry.execute(
                lambda: self._resolver.resolve_track(track),
                operation_name=f"Resolve {track.id}",
            )
        except ResolutionFailedError as e:
            logger.error(f"❌ Cannot play {track.display_name}: {e}")
            if generation == self._generation:
                await self._publish(
                    PlaybackEvents.PLAYBACK_FAILED,
                    track,
                    ErrorMessages.cannot_play(track.display_name, e.message),
                    {"error": type(e).__name__, "retryable": e.retryable},
                )
            raise

        if generation != self._generation:
            logger.debug(f"Discarding stale resolution for {track.id}")
            return resolution

        if resolution.is_degraded:
            await self._publish(
                PlaybackEvents.DEGRADED_LINK,
                track,
                ErrorMessages.degraded_link(track.display_name, resolution.url),
                {"url": resolution.url},
            )
            return resolution

        self._report_elapsed()
        try:
            await self._output.load(resolution.url)
            await self._output.seek(0)
            await self._output.set_volume(self._volume)
            await self._output.play()
        except PlaybackRejectedError as e:
            logger.error(f"❌ Output rejected {track.display_name}: {e}")
            self.current_track = None
            self.is_playing = False
            self.is_paused = False
            await self._publish(
                PlaybackEvents.PLAYBACK_FAILED,
                track,
                ErrorMessages.playback_rejected(track.display_name),
                {"error": type(e).__name__, "retryable": False},
            )
            raise

        self.current_track = track
        self.is_playing = True
        self.is_paused = False
        logger.info(f"▶️ Now playing: {track.display_name} via {resolution.backend}")
        await self._publish(
            PlaybackEvents.NOW_PLAYING,
            track,
            ErrorMessages.now_playing(track.display_name),
            self.now_playing(),
        )
        return resolution

    async def play_from(self, track: Track, ordered_set: Optional[Sequence[Track]] = None) -> StreamResolution:
        """Establish a new listening context at ``track`` and play it"""
        selected = await self._queue.play_track(track, ordered_set)
        return await self.play(selected)

    async def next(self) -> Optional[StreamResolution]:
        track = await self._queue.next()
        if track is None:
            await self._stop(ErrorMessages.queue_finished())
            return None
        return await self.play(track)

    async def previous(self) -> Optional[StreamResolution]:
        track = await self._queue.previous()
        if track is None:
            return None
        return await self.play(track)

    async def pause(self) -> bool:
        if not self.is_playing or self.is_paused:
            return False
        await self._output.pause()
        self.is_paused = True
        return True

    async def resume(self) -> bool:
        if not self.is_paused:
            return False
        await self._output.resume()
        self.is_paused = False
        return True

    async def toggle_pause(self) -> bool:
        """Returns True when now paused"""
        if self.is_paused:
            await self.resume()
        else:
            await self.pause()
        return self.is_paused

    async def seek(self, seconds: float) -> Optional[float]:
        """Clamp to [0, duration] and seek; unknown duration clamps only below"""
        if self.current_track is None:
            return None
        position = max(0.0, float(seconds))
        if self.current_track.duration_sec > 0:
            position = min(position, float(self.current_track.duration_sec))
        await self._output.seek(position)
        return position

    async def set_volume(self, percent: float) -> int:
        self._volume = int(max(Defaults.MIN_VOLUME, min(Defaults.MAX_VOLUME, percent)))
        await self._output.set_volume(self._volume)
        return self._volume

    async def stop(self) -> None:
        await self._stop(ErrorMessages.playback_stopped())

    async def _stop(self, message: str) -> None:
        self._generation += 1
        self._report_elapsed()
        await self._output.stop()
        stopped = self.current_track
        self.current_track = None
        self.is_playing = False
        self.is_paused = False
        await self._publish(PlaybackEvents.PLAYBACK_STOPPED, stopped, message)

    def now_playing(self) -> Dict[str, Any]:
        track = self.current_track
        return {
            "track": track.to_dict() if track else None,
            "position": self.position,
            "volume": self._volume,
            "isPlaying": self.is_playing,
            "isPaused": self.is_paused,
            "repeatMode": self._queue.repeat_mode.value,
            "shuffle": self._queue.shuffle_active,
        }

    # Internals

    async def _on_track_end(self) -> None:
        """Natural end of the loaded stream: advance the queue"""
        finished = self.current_track
        if finished is not None:
            self._report_elapsed(finished.duration_sec or None)
            self.current_track = None
        self.is_playing = False
        self.is_paused = False

        upcoming = await self._queue.next()
        if upcoming is None:
            logger.info("📭 Queue finished")
            await self._stop(ErrorMessages.queue_finished())
            return

        try:
            await self.play(upcoming)
        except OpenBeatsException as e:
            # Surfaced through playback_failed; not advancing past a failed track
            logger.warning(f"⚠️ Auto-advance stopped at {upcoming.display_name}: {e}")

    def _report_elapsed(self, elapsed: Optional[float] = None) -> None:
        track = self.current_track
        if track is None or self._history is None:
            return
        seconds = int(max(0.0, elapsed if elapsed is not None else self._output.position))
        task = asyncio.ensure_future(self._record_play(track, seconds))
        self._history_tasks.add(task)
        task.add_done_callback(self._history_tasks.discard)

    async def _record_play(self, track: Track, seconds: int) -> None:
        try:
            await self._history.record_play(track, seconds)
        except Exception as e:
            logger.warning(f"⚠️ Listening history unavailable for {track.id}: {e}")

    async def _publish(
        self,
        event_type: str,
        track: Optional[Track],
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self.events.publish(
            event_type,
            PlaybackEvent(track_id=track.id if track else None, message=message, data=data or {}),
        )
