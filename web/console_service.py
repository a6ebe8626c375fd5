"""Shared console lifecycle management for the web API."""

from __future__ import annotations

import base64
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Dict, Optional

from chip8console import ExecutionScheduler, FrameLoop, create_console
from chip8console.config import ConsoleConfig
from chip8console.rom import RomSource

logger = logging.getLogger(__name__)


class ConsoleService:
    """Own one console and the frame loop that drives it.

    Request handlers and the frame loop share ``_lock`` so that every
    scheduler call happens on one logical thread.
    """

    def __init__(self, config: Optional[ConsoleConfig] = None) -> None:
        self._lock = threading.RLock()
        self._config = config
        self._console: Optional[ExecutionScheduler] = None
        self._frame_loop: Optional[FrameLoop] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._screen_revision = -1
        self._screen_data_url: Optional[str] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def ensure_console(self) -> ExecutionScheduler:
        """Return an initialised console, creating it if necessary."""
        with self._lock:
            if self._console is None:
                config = self._config or ConsoleConfig.from_env()
                self._console = create_console(config)
                logger.info("Console created (pacing=%s)", config.pacing)
            return self._console

    def start_frame_loop(self) -> None:
        console = self.ensure_console()
        with self._lock:
            if self._frame_loop is None:
                self._frame_loop = FrameLoop(console, self._lock)
            self._frame_loop.start()

    def shutdown(self) -> None:
        """Stop the frame loop and release the console."""
        if self._frame_loop:
            self._frame_loop.shutdown()
        if self._executor:
            self._executor.shutdown(wait=False)
        with self._lock:
            self._frame_loop = None
            self._executor = None
            self._console = None
            self._screen_revision = -1
            self._screen_data_url = None

    # ------------------------------------------------------------------ #
    # Control surface
    # ------------------------------------------------------------------ #

    def command(self, name: str) -> bool:
        with self._lock:
            return self.ensure_console().dispatch(name)

    def key_event(self, symbol: str, action: str) -> bool:
        with self._lock:
            return self.ensure_console().key_event(symbol, action)

    def load_rom(self, source: RomSource) -> bool:
        with self._lock:
            return self.ensure_console().load_rom(source)

    def load_rom_async(self, source: RomSource) -> Future:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="Chip8RomReader"
                )
            return self.ensure_console().load_rom_async(source, self._executor)

    def status(self) -> Dict[str, object]:
        with self._lock:
            return self.ensure_console().status.to_dict()

    # ------------------------------------------------------------------ #
    # State helpers
    # ------------------------------------------------------------------ #

    def snapshot_state(self) -> Dict[str, object]:
        """Return the latest console state with the screen as a PNG data URL."""
        with self._lock:
            console = self.ensure_console()
            state = console.snapshot()
            state["screen"] = self._screen_locked(console)
            return state

    def _screen_locked(self, console: ExecutionScheduler) -> str:
        surface = console.target
        if self._screen_data_url is None or surface.revision != self._screen_revision:
            png = surface.to_png_bytes()
            encoded = base64.b64encode(png).decode("utf-8")
            self._screen_data_url = f"data:image/png;base64,{encoded}"
            self._screen_revision = surface.revision
        return self._screen_data_url

    @contextmanager
    def console_context(self):
        """Provide exclusive access to the underlying console."""
        with self._lock:
            yield self.ensure_console()


service = ConsoleService()


def init_app(app) -> None:
    """Ensure the console is ready and its frame loop running when the app starts."""
    with app.app_context():
        service.ensure_console()
        if not app.config.get("TESTING"):
            service.start_frame_loop()
