"""Frame-paced execution harness driving the Machine Engine and inspectors."""

from __future__ import annotations

import logging
import queue
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import ConsoleConfig
from .debug.inspector import MemoryInspector, MemoryPanel
from .debug.registers import RegisterInspector, RegisterPanel, ScalarRegister
from .display.framebuffer import FramebufferView, PresentationTarget
from .engine.facade import MachineFacade, MachineFault
from .keymap import KeyMapper
from .rom import EMPTY_ROM, RomBuffer, RomLoadError, RomSource, read_rom_source

logger = logging.getLogger(__name__)


class PacingPolicy(Enum):
    """How ``on_frame`` decides how many ticks to run."""

    RATE_GATED = "rate-gated"
    FRAME_BUDGET = "frame-budget"


class RunMode(Enum):
    PAUSED = "paused"
    RUNNING = "running"


@dataclass
class TickSchedule:
    """Run state and tick budget; mutated only by user actions."""

    mode: RunMode = RunMode.PAUSED
    ticks_per_frame: int = 10
    turbo_multiplier: int = 10
    turbo: bool = False
    last_tick_timestamp: float = -1.0

    def __post_init__(self) -> None:
        if self.ticks_per_frame * self.turbo_multiplier < 1:
            raise ValueError("ticks_per_frame * turbo_multiplier must be at least 1")

    @property
    def running(self) -> bool:
        return self.mode is RunMode.RUNNING

    @property
    def resolved_ticks(self) -> int:
        """Ticks per batch with turbo applied."""

        return self.ticks_per_frame * (self.turbo_multiplier if self.turbo else 1)

    def to_dict(self) -> Dict[str, object]:
        return {
            "mode": self.mode.value,
            "ticks_per_frame": self.ticks_per_frame,
            "turbo_multiplier": self.turbo_multiplier,
            "turbo": self.turbo,
            "resolved_ticks": self.resolved_ticks,
        }


@dataclass
class ConsoleStatus:
    """User-visible indicators owned by the scheduler."""

    running: bool = False
    turbo: bool = False
    loading: bool = False
    rom_name: str = EMPTY_ROM.name
    rom_size: int = 0
    message: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "running": self.running,
            "turbo": self.turbo,
            "loading": self.loading,
            "rom_name": self.rom_name,
            "rom_size": self.rom_size,
            "message": self.message,
            "error": self.error,
        }


class ExecutionScheduler:
    """Owns run/pause/step/turbo state and renders after every tick batch.

    All methods are expected to run on one logical thread: the frame
    callback and UI actions must be serialised by the caller (see
    :class:`chip8console.frame_loop.FrameLoop`).
    """

    COMMANDS = ("toggle_run", "step", "reset", "toggle_turbo")

    def __init__(
        self,
        machine: MachineFacade,
        target: PresentationTarget,
        config: Optional[ConsoleConfig] = None,
        *,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or ConsoleConfig()
        self.machine = machine
        self.target = target
        self.policy = PacingPolicy(self.config.pacing)
        self.schedule = TickSchedule(
            ticks_per_frame=self.config.ticks_per_frame,
            turbo_multiplier=self.config.turbo_multiplier,
        )
        self.status = ConsoleStatus()
        self.key_mapper = KeyMapper(machine)
        self._clock = clock or (lambda: time.monotonic() * 1000.0)
        self._rom: RomBuffer = EMPTY_ROM
        self._completed_loads: "queue.SimpleQueue[Future]" = queue.SimpleQueue()

        self.framebuffer: Optional[FramebufferView] = None
        self.memory_inspector: Optional[MemoryInspector] = None
        self.register_inspector: Optional[RegisterInspector] = None
        self.frame: object = None
        self.memory_panel: Optional[MemoryPanel] = None
        self.register_panel: Optional[RegisterPanel] = None
        self.frame_count = 0
        self.tick_count = 0

        self.machine.init_character_sprites()
        self.machine.load_program(self._rom.data)
        self._acquire_views()
        self.render()

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def rom(self) -> RomBuffer:
        return self._rom

    def _scalar_registers(self) -> List[ScalarRegister]:
        m = self.machine
        return [
            ScalarRegister("i", 2, m.get_index_register()),
            ScalarRegister("pc", 2, m.get_program_counter()),
            ScalarRegister("sp", 1, m.get_stack_pointer()),
            ScalarRegister("dt", 1, m.get_delay_timer()),
            ScalarRegister("st", 1, m.get_sound_timer()),
        ]

    def _acquire_views(self) -> None:
        """Re-fetch every borrowed view; required after any call that can grow engine memory."""

        display = self.machine.get_display_view()
        memory = self.machine.get_memory_view()
        stack = self.machine.get_stack_view()
        gpr = self.machine.get_gpr_view()
        if self.framebuffer is None:
            self.framebuffer = FramebufferView(display, self.target)
            self.memory_inspector = MemoryInspector(memory, self.config.row_width)
            self.register_inspector = RegisterInspector(
                stack, gpr, self._scalar_registers
            )
        else:
            self.framebuffer.rebind(display)
            self.memory_inspector.rebind(memory)
            self.register_inspector.rebind(stack, gpr)
        logger.debug("Views acquired at arena offset 0x%X", display.offset)

    # ------------------------------------------------------------------ #
    # User actions
    # ------------------------------------------------------------------ #

    def toggle_run(self) -> bool:
        running = not self.schedule.running
        self.schedule.mode = RunMode.RUNNING if running else RunMode.PAUSED
        self.status.running = running
        logger.debug("Console %s", self.schedule.mode.value)
        return running

    def step(self) -> None:
        """Run one manual tick batch; pauses first so it cannot race the frame loop."""

        if self.schedule.running:
            self.toggle_run()
        timestamp = self._clock() if self.policy is PacingPolicy.FRAME_BUDGET else None
        self._tick_batch(self.config.step_ticks, timestamp)
        self.render()

    def toggle_turbo(self) -> bool:
        self.schedule.turbo = not self.schedule.turbo
        self.status.turbo = self.schedule.turbo
        logger.debug("Turbo %s", "on" if self.schedule.turbo else "off")
        return self.schedule.turbo

    def reset(self) -> None:
        """Power-cycle the engine and reload the current ROM."""

        self.status.error = None
        self.machine.reset()
        self.machine.init_character_sprites()
        self.machine.load_program(self._rom.data)
        self._acquire_views()
        self.framebuffer.set_dirty_flag()
        self.render()
        logger.info("Reset with ROM %s (%d bytes)", self._rom.name, len(self._rom))

    def load_rom(self, source: RomSource) -> bool:
        """Replace the ROM and reset; a read failure keeps the previous ROM."""

        try:
            rom = read_rom_source(source, max_size=self.machine.get_program_capacity())
        except RomLoadError as exc:
            self._report_load_failure(exc)
            return False
        return self._install_rom(rom)

    def load_rom_async(self, source: RomSource, executor: Executor) -> Future:
        """Read ``source`` on ``executor``; the swap happens in a later ``on_frame``."""

        self.status.loading = True
        future = executor.submit(
            read_rom_source, source, max_size=self.machine.get_program_capacity()
        )
        future.add_done_callback(self._completed_loads.put)
        return future

    def dispatch(self, command: str) -> bool:
        """Run a named control command; unknown names are reported, not dropped."""

        if command not in self.COMMANDS:
            self.report_unimplemented(command)
            return False
        getattr(self, command)()
        return True

    def report_unimplemented(self, action: str) -> None:
        message = f"{action!r} is not implemented"
        logger.warning("Unimplemented console action: %s", action)
        self.status.error = message
        self.status.message = message

    def key_event(self, symbol: str, action: str) -> bool:
        return self.key_mapper.handle(symbol, action)

    # ------------------------------------------------------------------ #
    # Frame callback
    # ------------------------------------------------------------------ #

    def on_frame(self, timestamp: float) -> bool:
        """Per-refresh entry point; returns whether a tick batch ran."""

        self.frame_count += 1
        self._apply_completed_loads()
        if not self.schedule.running:
            return False

        if self.policy is PacingPolicy.RATE_GATED:
            interval = 1000.0 / self.config.target_rate
            if timestamp <= self.schedule.last_tick_timestamp + interval:
                return False
            self._tick_batch(self.schedule.resolved_ticks, None)
        else:
            self._tick_batch(self.schedule.resolved_ticks, timestamp)
        self.schedule.last_tick_timestamp = timestamp
        self.render()
        return True

    def render(self) -> None:
        self.frame = self.framebuffer.render()
        self.register_panel = self.register_inspector.render()
        self.memory_panel = self.memory_inspector.render(
            self.machine.get_program_counter()
        )

    def snapshot(self) -> Dict[str, object]:
        return {
            "status": self.status.to_dict(),
            "schedule": self.schedule.to_dict(),
            "pacing": self.policy.value,
            "frame_count": self.frame_count,
            "tick_count": self.tick_count,
            "memory": self.memory_panel.to_dict() if self.memory_panel else None,
            "registers": self.register_panel.to_dict() if self.register_panel else None,
        }

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _tick_batch(self, count: int, timestamp: Optional[float]) -> None:
        executed = 0
        try:
            for _ in range(count):
                if timestamp is not None:
                    self.machine.advance_timers(int(timestamp))
                self.machine.tick()
                executed += 1
        except MachineFault as exc:
            logger.warning("Machine fault after %d ticks: %s", executed, exc)
            if self.schedule.running:
                self.toggle_run()
            self.status.error = str(exc)
        finally:
            self.tick_count += executed
            self.framebuffer.set_dirty_flag()

    def _install_rom(self, rom: RomBuffer) -> bool:
        """Swap in ``rom`` and reset; an image the engine rejects restores the old one."""

        previous = self._rom
        self._rom = rom
        try:
            self.reset()
        except ValueError as exc:
            self._rom = previous
            self.reset()
            self._report_load_failure(
                RomLoadError(f"could not load ROM {rom.name}: {exc}")
            )
            return False
        self.schedule.turbo = False
        self.status.turbo = False
        self.status.rom_name = rom.name
        self.status.rom_size = len(rom)
        self.status.message = f"Loaded {rom.name} ({len(rom)} bytes)"
        logger.info("Loaded ROM %s (%d bytes)", rom.name, len(rom))
        return True

    def _report_load_failure(self, exc: BaseException) -> None:
        logger.warning("ROM load failed: %s", exc)
        self.status.error = str(exc)
        self.status.message = "ROM load failed; keeping previous program"

    def _apply_completed_loads(self) -> None:
        while True:
            try:
                future = self._completed_loads.get_nowait()
            except queue.Empty:
                break
            self.status.loading = False
            exc = future.exception()
            if exc is not None:
                self._report_load_failure(exc)
            else:
                self._install_rom(future.result())


__all__ = [
    "ConsoleStatus",
    "ExecutionScheduler",
    "PacingPolicy",
    "RunMode",
    "TickSchedule",
]
