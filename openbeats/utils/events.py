"""Event bus for playback notifications"""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..pkg.logger import logger


class PlaybackEvents:
    """Event names published by the playback session"""

    NOW_PLAYING = "now_playing"
    PLAYBACK_FAILED = "playback_failed"
    DEGRADED_LINK = "degraded_link"
    PLAYBACK_STOPPED = "playback_stopped"


@dataclass
class PlaybackEvent:
    """Payload delivered to subscribers"""

    track_id: Optional[str] = None
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


class EventBus:
    """Event bus for playback updates - pub/sub pattern"""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, event_type: str, handler: Callable):
        async with self._lock:
            if event_type not in self._subscribers:
                self._subscribers[event_type] = []
            self._subscribers[event_type].append(handler)
            logger.debug(f"Subscribed handler to event: {event_type}")

    async def unsubscribe(self, event_type: str, handler: Callable):
        async with self._lock:
            if event_type in self._subscribers:
                try:
                    self._subscribers[event_type].remove(handler)
                    logger.debug(f"Unsubscribed handler from event: {event_type}")
                except ValueError:
                    pass

    async def publish(self, event_type: str, event: PlaybackEvent):
        async with self._lock:
            handlers = self._subscribers.get(event_type, []).copy()

        if handlers:
            logger.debug(f"Publishing event {event_type} to {len(handlers)} handlers")
            for handler in handlers:
                try:
                    if inspect.iscoroutinefunction(handler):
                        await handler(event)
                    else:
                        handler(event)
                except Exception as e:
                    logger.error(f"Error in event handler for {event_type}: {e}")

    def has_subscribers(self, event_type: str) -> bool:
        return event_type in self._subscribers and len(self._subscribers[event_type]) > 0
