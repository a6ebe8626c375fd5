"""Background frame callback driving an :class:`ExecutionScheduler`."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .scheduler import ExecutionScheduler

logger = logging.getLogger(__name__)


class FrameLoop:
    """Call ``scheduler.on_frame`` once per display refresh.

    Every frame runs under ``lock`` so that UI actions holding the same
    lock never interleave with a tick batch. Pausing the scheduler stops
    ticking, not the loop; the loop runs until :meth:`shutdown`.
    """

    def __init__(
        self,
        scheduler: ExecutionScheduler,
        lock: Optional[threading.RLock] = None,
        *,
        refresh_hz: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.scheduler = scheduler
        self.lock = lock or threading.RLock()
        self.refresh_hz = refresh_hz or scheduler.config.refresh_hz
        self._clock = clock
        self._shutdown = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.refresh_hz

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            return
        self._shutdown.clear()
        self._thread = threading.Thread(
            target=self._run, name="Chip8FrameLoop", daemon=True
        )
        self._thread.start()

    def shutdown(self, timeout: float = 1.0) -> None:
        self._shutdown.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def run_frame(self) -> bool:
        with self.lock:
            return self.scheduler.on_frame(self._clock() * 1000.0)

    def _run(self) -> None:
        next_frame = self._clock()
        while not self._shutdown.is_set():
            self.run_frame()
            next_frame += self.frame_interval
            delay = next_frame - self._clock()
            if delay < 0:
                # Missed frames are skipped, not replayed.
                next_frame = self._clock()
                delay = 0
            self._shutdown.wait(delay)
        logger.debug("Frame loop stopped after %d frames", self.scheduler.frame_count)


__all__ = ["FrameLoop"]
