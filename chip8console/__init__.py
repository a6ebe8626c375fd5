"""Frame-paced visualization and control console for a CHIP-8 machine."""

from __future__ import annotations

from .config import ConsoleConfig
from .display import FramebufferView, ImageSurface
from .debug import MemoryInspector, RegisterInspector
from .engine import Chip8Engine, MachineFacade, StaleViewError
from .frame_loop import FrameLoop
from .keymap import KEY_BINDINGS, KeyMapper
from .rom import RomBuffer, RomLoadError
from .scheduler import (
    ConsoleStatus,
    ExecutionScheduler,
    PacingPolicy,
    RunMode,
    TickSchedule,
)


def create_console(config: ConsoleConfig | None = None) -> ExecutionScheduler:
    """Build a scheduler wired to the bundled engine and an image surface."""

    config = config or ConsoleConfig()
    engine = Chip8Engine(pixel_on=config.pixel_on, pixel_off=config.pixel_off)
    surface = ImageSurface(scale=config.display_scale)
    return ExecutionScheduler(engine, surface, config)


__all__ = [
    "Chip8Engine",
    "ConsoleConfig",
    "ConsoleStatus",
    "ExecutionScheduler",
    "FrameLoop",
    "FramebufferView",
    "ImageSurface",
    "KEY_BINDINGS",
    "KeyMapper",
    "MachineFacade",
    "MemoryInspector",
    "PacingPolicy",
    "RegisterInspector",
    "RomBuffer",
    "RomLoadError",
    "RunMode",
    "StaleViewError",
    "TickSchedule",
    "create_console",
]
