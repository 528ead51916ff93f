"""
MediaControls - bridge between external controls and the playback session.

Platform hooks (hardware keys, OS media notifications) call
``handle_action`` with a remote action name:

    controls = MediaControls(session)
    await controls.attach()
    await controls.handle_action("toggle")
    await controls.handle_action("seek", {"position": 42})

``action_map`` translates remote action -> session command. Now-playing
metadata published by the session is kept in ``metadata`` and forwarded to
the optional ``on_metadata`` hook.
"""

import inspect
from typing import Any, Callable, Dict, Optional

from .audio.playback_session import PlaybackSession
from ..utils.events import PlaybackEvent, PlaybackEvents
from ..utils.exceptions import OpenBeatsException
from ..pkg.logger import logger


class MediaControls:
    action_map: Dict[str, str] = {
        "play": "play",
        "pause": "pause",
        "toggle": "toggle",
        "go": "toggle",
        "next": "next",
        "previous": "previous",
        "prev": "previous",
        "seek": "seek",
        "stop": "stop",
        "volume": "volume",
    }

    def __init__(self, session: PlaybackSession, on_metadata: Optional[Callable] = None):
        self._session = session
        self._on_metadata = on_metadata
        self.metadata: Optional[Dict[str, Any]] = None
        self._attached = False

    async def attach(self) -> None:
        if self._attached:
            return
        await self._session.events.subscribe(PlaybackEvents.NOW_PLAYING, self._handle_now_playing)
        await self._session.events.subscribe(PlaybackEvents.PLAYBACK_STOPPED, self._handle_stopped)
        self._attached = True

    async def detach(self) -> None:
        if not self._attached:
            return
        await self._session.events.unsubscribe(PlaybackEvents.NOW_PLAYING, self._handle_now_playing)
        await self._session.events.unsubscribe(PlaybackEvents.PLAYBACK_STOPPED, self._handle_stopped)
        self._attached = False

    async def handle_action(self, action: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Returns False for unmapped actions and commands the session refused"""
        command = self.action_map.get((action or "").lower())
        if not command:
            logger.warning(f"⚠️ Unmapped media action: {action}")
            return False

        try:
            return await self.handle_command(command, data or {})
        except OpenBeatsException as e:
            logger.warning(f"⚠️ Media action '{action}' failed: {e}")
            return False

    async def handle_command(self, command: str, data: Dict[str, Any]) -> bool:
        session = self._session

        if command == "play":
            if session.is_paused:
                return await session.resume()
            track = session.queue.current_track
            if session.is_playing or track is None:
                return False
            await session.play(track)
            return True

        if command == "pause":
            return await session.pause()

        if command == "toggle":
            if not session.is_playing and not session.is_paused:
                return await self.handle_command("play", data)
            await session.toggle_pause()
            return True

        if command == "next":
            return await session.next() is not None

        if command == "previous":
            return await session.previous() is not None

        if command == "seek":
            try:
                position = float(data["position"])
            except (KeyError, TypeError, ValueError):
                logger.warning(f"⚠️ Seek needs a numeric position, got {data!r}")
                return False
            return await session.seek(position) is not None

        if command == "volume":
            try:
                percent = float(data["volume"])
            except (KeyError, TypeError, ValueError):
                logger.warning(f"⚠️ Volume needs a numeric value, got {data!r}")
                return False
            await session.set_volume(percent)
            return True

        if command == "stop":
            await session.stop()
            return True

        logger.warning(f"⚠️ Unknown media command: {command}")
        return False

    async def _handle_now_playing(self, event: PlaybackEvent) -> None:
        self.metadata = dict(event.data)
        await self._notify()

    async def _handle_stopped(self, event: PlaybackEvent) -> None:
        self.metadata = None
        await self._notify()

    async def _notify(self) -> None:
        if self._on_metadata is None:
            return
        if inspect.iscoroutinefunction(self._on_metadata):
            await self._on_metadata(self.metadata)
        else:
            self._on_metadata(self.metadata)
