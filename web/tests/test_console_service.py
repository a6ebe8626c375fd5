"""Tests for console service lifecycle and state caching."""

from __future__ import annotations

import os
import sys
import time
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ["CHIP8_CONSOLE_TESTING"] = "1"

from chip8console.config import ConsoleConfig  # noqa: E402
from console_service import ConsoleService  # type: ignore  # noqa: E402

LOOP_ROM = bytes([0x60, 0x2A, 0x12, 0x02])


class ConsoleServiceTests(unittest.TestCase):
    """Validate ConsoleService behaviour."""

    def setUp(self) -> None:
        self.service = ConsoleService(ConsoleConfig(display_scale=1))

    def tearDown(self) -> None:
        self.service.shutdown()

    def test_ensure_console_is_lazy_and_shared(self):
        first = self.service.ensure_console()
        self.assertIs(self.service.ensure_console(), first)

    def test_screen_reencoded_only_on_new_upload(self):
        first = self.service.snapshot_state()["screen"]
        again = self.service.snapshot_state()["screen"]
        self.assertIs(first, again)

        self.service.load_rom(LOOP_ROM)
        self.assertIsNot(self.service.snapshot_state()["screen"], first)

    def test_async_load_swaps_on_frame(self):
        future = self.service.load_rom_async(LOOP_ROM)
        future.result(timeout=5)
        deadline = time.monotonic() + 5
        while time.monotonic() < deadline:
            with self.service.console_context() as console:
                console.on_frame(time.monotonic() * 1000)
                if console.rom.data == LOOP_ROM:
                    break
            time.sleep(0.01)
        with self.service.console_context() as console:
            self.assertEqual(console.rom.data, LOOP_ROM)
            self.assertFalse(console.status.loading)

    def test_frame_loop_ticks_when_running(self):
        self.service.load_rom(LOOP_ROM)
        self.service.command("toggle_run")
        self.service.start_frame_loop()
        deadline = time.monotonic() + 5
        while time.monotonic() < deadline:
            if self.service.snapshot_state()["tick_count"] > 0:
                break
            time.sleep(0.01)
        self.assertGreater(self.service.snapshot_state()["tick_count"], 0)

    def test_shutdown_releases_console(self):
        console = self.service.ensure_console()
        self.service.shutdown()
        self.assertIsNot(self.service.ensure_console(), console)


if __name__ == "__main__":
    unittest.main()
