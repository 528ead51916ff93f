"""
Play queue state machine.

``QueueState`` is an immutable snapshot of the queue; every transition is a
pure function ``(state, ...) -> (new_state, result)`` so the full transition
table can be tested without an audio output. ``PlayQueue`` owns the current
state for one session and applies transitions under a lock.
"""

from __future__ import annotations
import asyncio
import random
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from .track import Track
from ..valueobjects.repeat_mode import RepeatMode


@dataclass(frozen=True)
class QueueState:
    """Ordered play sequence plus the now-playing pointer"""

    entries: Tuple[Track, ...] = ()
    current_index: Optional[int] = None  # None iff entries is empty
    shuffle_active: bool = False
    original_order: Tuple[Track, ...] = ()  # pre-shuffle snapshot
    repeat_mode: RepeatMode = RepeatMode.OFF

    @property
    def current_track(self) -> Optional[Track]:
        if self.current_index is None or not (0 <= self.current_index < len(self.entries)):
            return None
        return self.entries[self.current_index]

    @property
    def size(self) -> int:
        return len(self.entries)


def _index_of(entries: Sequence[Track], track: Track) -> int:
    """First position of a track matched by id, -1 when absent"""
    for i, entry in enumerate(entries):
        if entry.id == track.id:
            return i
    return -1


# ===============================
# Transitions
# ===============================


def play_track(
    state: QueueState, track: Track, ordered_set: Optional[Sequence[Track]] = None
) -> Tuple[QueueState, Track]:
    """Select a track, optionally establishing a new listening context"""
    if ordered_set is not None:
        entries = tuple(ordered_set)
        index = _index_of(entries, track)
        if index < 0:
            entries = entries + (track,)
            index = len(entries) - 1
        # A fresh context starts in sequential order
        new_state = replace(
            state,
            entries=entries,
            current_index=index,
            shuffle_active=False,
            original_order=(),
        )
        return new_state, entries[index]

    index = _index_of(state.entries, track)
    if index >= 0:
        return replace(state, current_index=index), state.entries[index]

    entries = state.entries + (track,)
    original = state.original_order + (track,) if state.shuffle_active else state.original_order
    new_state = replace(state, entries=entries, current_index=len(entries) - 1, original_order=original)
    return new_state, track


def next_track(state: QueueState) -> Tuple[QueueState, Optional[Track]]:
    """Advance; None means there is no next track and nothing moved"""
    if not state.entries or state.current_index is None:
        return state, None

    if state.repeat_mode is RepeatMode.ONE:
        return state, state.current_track

    index = state.current_index + 1
    if index >= len(state.entries):
        if state.repeat_mode is not RepeatMode.ALL:
            return state, None
        index = 0

    return replace(state, current_index=index), state.entries[index]


def previous_track(state: QueueState) -> Tuple[QueueState, Optional[Track]]:
    """Step back; None means there is no previous track and nothing moved"""
    if not state.entries or state.current_index is None:
        return state, None

    if state.repeat_mode is RepeatMode.ONE:
        return state, state.current_track

    index = state.current_index - 1
    if index < 0:
        if state.repeat_mode is not RepeatMode.ALL:
            return state, None
        index = len(state.entries) - 1

    return replace(state, current_index=index), state.entries[index]


def toggle_shuffle(state: QueueState, rng: Optional[random.Random] = None) -> Tuple[QueueState, bool]:
    """Enable (pin current first, Fisher-Yates the rest) or restore the original order"""
    if not state.shuffle_active:
        if not state.entries:
            return replace(state, shuffle_active=True, original_order=()), True

        rng = rng or random.Random()
        current_index = state.current_index or 0
        current = state.entries[current_index]
        remaining = [t for i, t in enumerate(state.entries) if i != current_index]

        for i in range(len(remaining) - 1, 0, -1):
            j = rng.randint(0, i)
            remaining[i], remaining[j] = remaining[j], remaining[i]

        new_state = replace(
            state,
            entries=(current, *remaining),
            current_index=0,
            shuffle_active=True,
            original_order=state.entries,
        )
        return new_state, True

    restored = state.original_order
    current = state.current_track
    if not restored:
        index = None
    elif current is None:
        index = 0
    else:
        index = max(0, _index_of(restored, current))

    new_state = replace(
        state,
        entries=restored,
        current_index=index,
        shuffle_active=False,
        original_order=(),
    )
    return new_state, False


def toggle_repeat(state: QueueState) -> Tuple[QueueState, RepeatMode]:
    mode = state.repeat_mode.next_mode()
    return replace(state, repeat_mode=mode), mode


def add_to_queue(state: QueueState, track: Track) -> Tuple[QueueState, int]:
    """Append; returns the new entry's index"""
    entries = state.entries + (track,)
    index = state.current_index if state.current_index is not None else 0
    original = state.original_order + (track,) if state.shuffle_active else state.original_order
    return replace(state, entries=entries, current_index=index, original_order=original), len(entries) - 1


def play_next(state: QueueState, track: Track) -> Tuple[QueueState, int]:
    """Insert right after the current track; returns the new entry's index"""
    if not state.entries or state.current_index is None:
        return add_to_queue(state, track)

    position = state.current_index + 1
    entries = state.entries[:position] + (track,) + state.entries[position:]

    original = state.original_order
    if state.shuffle_active:
        anchor = _index_of(original, state.entries[state.current_index])
        insert_at = anchor + 1 if anchor >= 0 else len(original)
        original = original[:insert_at] + (track,) + original[insert_at:]

    return replace(state, entries=entries, original_order=original), position


def remove_from_queue(state: QueueState, index: int) -> Tuple[QueueState, Optional[Track]]:
    """Remove the entry at index; out-of-range indices are a no-op returning None"""
    if not (0 <= index < len(state.entries)):
        return state, None

    removed = state.entries[index]
    entries = state.entries[:index] + state.entries[index + 1 :]

    current = state.current_index
    if not entries:
        current = None
    elif current is not None:
        if index < current:
            current -= 1
        elif current >= len(entries):
            # Removed the last entry while it was current
            current = len(entries) - 1

    original = state.original_order
    if state.shuffle_active:
        at = _index_of(original, removed)
        if at >= 0:
            original = original[:at] + original[at + 1 :]

    return replace(state, entries=entries, current_index=current, original_order=original), removed


def clear_queue(state: QueueState) -> Tuple[QueueState, None]:
    return (
        replace(state, entries=(), current_index=None, shuffle_active=False, original_order=()),
        None,
    )


# ===============================
# Session object
# ===============================


class PlayQueue:
    """
    Single-writer queue for one playback session.
    Every mutation swaps in a new QueueState under a lock, so callers
    never observe a partial transition.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._state = QueueState()
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()

    async def _apply(self, transition: Callable, *args):
        async with self._lock:
            self._state, result = transition(self._state, *args)
            return result

    # Read-only views
    @property
    def state(self) -> QueueState:
        return self._state

    @property
    def entries(self) -> List[Track]:
        return list(self._state.entries)

    @property
    def current_index(self) -> Optional[int]:
        return self._state.current_index

    @property
    def current_track(self) -> Optional[Track]:
        return self._state.current_track

    @property
    def shuffle_active(self) -> bool:
        return self._state.shuffle_active

    @property
    def repeat_mode(self) -> RepeatMode:
        return self._state.repeat_mode

    @property
    def size(self) -> int:
        return self._state.size

    def get_upcoming(self, limit: int = 5) -> List[Track]:
        """Tracks after the current one, in play order"""
        if self._state.current_index is None:
            return []
        start = self._state.current_index + 1
        return list(self._state.entries[start : start + limit])

    # Transitions
    async def play_track(self, track: Track, ordered_set: Optional[Sequence[Track]] = None) -> Track:
        return await self._apply(play_track, track, ordered_set)

    async def next(self) -> Optional[Track]:
        return await self._apply(next_track)

    async def previous(self) -> Optional[Track]:
        return await self._apply(previous_track)

    async def toggle_shuffle(self) -> bool:
        return await self._apply(toggle_shuffle, self._rng)

    async def toggle_repeat(self) -> RepeatMode:
        return await self._apply(toggle_repeat)

    async def add_to_queue(self, track: Track) -> int:
        return await self._apply(add_to_queue, track)

    async def play_next(self, track: Track) -> int:
        return await self._apply(play_next, track)

    async def remove_from_queue(self, index: int) -> Optional[Track]:
        return await self._apply(remove_from_queue, index)

    async def clear_queue(self) -> None:
        await self._apply(clear_queue)
