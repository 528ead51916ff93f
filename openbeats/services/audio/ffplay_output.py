"""
Audio output backed by an ffplay subprocess.

ffplay has no control channel, so pause/resume use SIGSTOP/SIGCONT and
seeking or changing volume restarts the player at the current position.
"""

import asyncio
import shutil
import signal
import time
from typing import Callable, List, Optional, Set

from .output import AudioOutput
from ...config.config import config
from ...config.time_constants import TimeIntervals
from ...utils.exceptions import PlaybackRejectedError
from ...pkg.logger import logger


class FFplayAudioOutput(AudioOutput):
    def __init__(self, ffplay_path: Optional[str] = None, clock: Callable[[], float] = time.monotonic):
        super().__init__()
        self._ffplay_path = ffplay_path or config.FFPLAY_PATH
        self._clock = clock
        self._executable: Optional[str] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._url: Optional[str] = None
        self._volume = config.DEFAULT_VOLUME
        self._paused = False
        # position = offset + time since the current process started
        self._offset = 0.0
        self._started_at: Optional[float] = None
        self._watchers: Set[asyncio.Task] = set()

    @property
    def position(self) -> float:
        if self._started_at is None:
            return self._offset
        return self._offset + (self._clock() - self._started_at)

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def open(self) -> None:
        self._executable = shutil.which(self._ffplay_path)
        if not self._executable:
            raise PlaybackRejectedError("ffplay not found", details=self._ffplay_path)
        logger.debug(f"Audio output ready: {self._executable}")

    async def load(self, url: str) -> None:
        await self._terminate()
        self._url = url
        self._offset = 0.0
        self._paused = False

    async def play(self) -> None:
        if not self._url:
            raise PlaybackRejectedError("Nothing loaded")
        await self._spawn(reject_early_exit=True)

    async def pause(self) -> None:
        if not self.is_running or self._paused:
            return
        self._process.send_signal(signal.SIGSTOP)
        self._offset = self.position
        self._started_at = None
        self._paused = True

    async def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        if self.is_running:
            self._process.send_signal(signal.SIGCONT)
            self._started_at = self._clock()
        elif self._url:
            # Seeked or volume changed while paused: the player was not restarted yet
            await self._spawn()

    async def seek(self, seconds: float) -> None:
        self._offset = max(0.0, seconds)
        if self.is_running:
            await self._restart()

    async def set_volume(self, percent: int) -> None:
        if percent == self._volume:
            return
        self._volume = percent
        if self.is_running:
            self._offset = self.position
            await self._restart()

    async def stop(self) -> None:
        await self._terminate()
        self._offset = 0.0
        self._paused = False

    async def close(self) -> None:
        await self.stop()
        self._url = None
        self._executable = None

    def _command(self) -> List[str]:
        return [
            self._executable or self._ffplay_path,
            "-nodisp",
            "-autoexit",
            "-loglevel", "quiet",
            "-infbuf",
            "-volume", str(self._volume),
            "-ss", f"{self._offset:.2f}",
            self._url,
        ]

    async def _restart(self) -> None:
        was_paused = self._paused
        await self._terminate()
        if was_paused:
            # Respawned on resume
            return
        await self._spawn()

    async def _spawn(self, reject_early_exit: bool = False) -> None:
        """
        Start ffplay at the current offset.

        A fresh stream that exits within the grace window was refused. A
        respawn (seek, volume, resume) that exits that fast started at or past
        the end, so the watcher reports it as a natural end instead.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command(),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise PlaybackRejectedError("Could not start ffplay", details=str(e)) from e

        try:
            await asyncio.wait_for(process.wait(), timeout=TimeIntervals.OUTPUT_START_GRACE)
        except asyncio.TimeoutError:
            pass
        else:
            if reject_early_exit:
                raise PlaybackRejectedError("ffplay refused the stream", details=f"exit code {process.returncode}")
            logger.debug(f"ffplay exited right after restart at {self._offset:.1f}s, treating as end of stream")

        self._process = process
        self._started_at = self._clock() - TimeIntervals.OUTPUT_START_GRACE
        self._paused = False
        watcher = asyncio.ensure_future(self._watch(process))
        self._watchers.add(watcher)
        watcher.add_done_callback(self._watchers.discard)
        logger.debug(f"▶️ ffplay started (PID: {process.pid}) at {self._offset:.1f}s")

    async def _watch(self, process: asyncio.subprocess.Process) -> None:
        """Fire the end callback when the current process exits on its own"""
        returncode = await process.wait()
        if process is not self._process:
            return  # terminated or replaced by us

        self._process = None
        self._started_at = None
        self._offset = 0.0
        logger.debug(f"ffplay finished with code {returncode}")

        if self._end_callback is not None:
            await self._end_callback()

    async def _terminate(self) -> None:
        process, self._process = self._process, None
        self._started_at = None
        if process is None or process.returncode is not None:
            return

        try:
            process.terminate()
            if self._paused:
                process.send_signal(signal.SIGCONT)
        except ProcessLookupError:
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=TimeIntervals.OUTPUT_STOP_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ ffplay (PID: {process.pid}) did not exit, killing")
            process.kill()
            await process.wait()
