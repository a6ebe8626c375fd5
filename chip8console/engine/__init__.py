"""Machine Engine interface and the bundled CHIP-8 implementation."""

from .chip8 import Chip8Engine
from .facade import (
    BufferView,
    MachineFacade,
    MachineFault,
    MemoryArena,
    StaleViewError,
)

__all__ = [
    "BufferView",
    "Chip8Engine",
    "MachineFacade",
    "MachineFault",
    "MemoryArena",
    "StaleViewError",
]
