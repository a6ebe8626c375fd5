"""Memory and register inspectors for the console."""

from .inspector import MemoryInspector, MemoryPanel, MemoryRow, MemoryWindow
from .registers import RegisterInspector, RegisterPanel, ScalarRegister

__all__ = [
    "MemoryInspector",
    "MemoryPanel",
    "MemoryRow",
    "MemoryWindow",
    "RegisterInspector",
    "RegisterPanel",
    "ScalarRegister",
]
